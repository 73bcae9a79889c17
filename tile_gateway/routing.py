from __future__ import annotations

from typing import Tuple

from common.types import RouteDecision, TileCoordinate, TileFormat
from tile_gateway.config import GatewayConfig
from tile_gateway.errors import UnsupportedFormat

VECTOR_TEMPLATE = "/data/{source}/{z}/{x}/{y}.{ext}"
RASTER_TEMPLATE = "/styles/{style}/{z}/{x}/{y}.{ext}"


def split_tile_name(name: str) -> Tuple[str, str]:
    """'10.png' -> ('10', 'png'). A name without an extension yields ('10', '')."""
    stem, dot, ext = name.rpartition(".")
    if not dot:
        return name, ""
    return stem, ext


def parse_format(ext: str) -> TileFormat:
    fmt = TileFormat.lookup(ext)
    if fmt is None:
        raise UnsupportedFormat(ext)
    return fmt


def route(coord: TileCoordinate, fmt: TileFormat, config: GatewayConfig) -> RouteDecision:
    """
    Compute the upstream path and response policy for a validated tile.

    Vector tiles go to the configured data source and carry no style; raster
    tiles go to the configured style. Only the three TileFormat members are
    routable, anything else is a bug in the caller.
    """
    z, x, y = coord.zxy
    if fmt is TileFormat.VECTOR:
        path = VECTOR_TEMPLATE.format(source=config.vector_source, z=z, x=x, y=y, ext=fmt.extension)
    elif fmt is TileFormat.RASTER_PNG or fmt is TileFormat.RASTER_JPEG:
        path = RASTER_TEMPLATE.format(style=config.raster_style, z=z, x=x, y=y, ext=fmt.extension)
    else:
        raise AssertionError(f"unroutable tile format: {fmt!r}")

    return RouteDecision(
        upstream_path=path,
        cache_control=config.cache_control,
        exposed_origin=config.cors_origin,
        media_type=fmt.media_type,
    )
