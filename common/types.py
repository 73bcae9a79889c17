from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Tuple


class TileFormat(Enum):
    """
    Tile encodings the gateway knows how to route.

    The value is the canonical file extension used on the upstream side.
    """
    VECTOR = "pbf"
    RASTER_PNG = "png"
    RASTER_JPEG = "jpg"

    @classmethod
    def lookup(cls, ext: str) -> Optional["TileFormat"]:
        """Request extension (case-insensitive, leading dot optional) -> TileFormat or None."""
        return _EXTENSIONS.get((ext or "").lower().lstrip("."))

    @property
    def extension(self) -> str:
        return self.value

    @property
    def media_type(self) -> str:
        return _MEDIA_TYPES[self]


_EXTENSIONS: Dict[str, TileFormat] = {
    "pbf": TileFormat.VECTOR,
    "png": TileFormat.RASTER_PNG,
    "jpg": TileFormat.RASTER_JPEG,
    "jpeg": TileFormat.RASTER_JPEG,
}

_MEDIA_TYPES: Dict[TileFormat, str] = {
    TileFormat.VECTOR: "application/x-protobuf",
    TileFormat.RASTER_PNG: "image/png",
    TileFormat.RASTER_JPEG: "image/jpeg",
}

SUPPORTED_EXTENSIONS: Tuple[str, ...] = tuple(_EXTENSIONS)


@dataclass(frozen=True, slots=True)
class TileCoordinate:
    """
    A single XYZ tile address.

    Attributes:
        zoom: pyramid level, 0 at the single world tile.
        column: x index, 0 <= column < 2**zoom.
        row: y index, 0 <= row < 2**zoom.

    Build these through tile_gateway.validate.validate(); the checks here only
    guard the pyramid geometry, not the deployment's configured max zoom.
    """
    zoom: int
    column: int
    row: int

    def __post_init__(self) -> None:
        if self.zoom < 0:
            raise ValueError("zoom must be >= 0")
        if not (0 <= self.column < self.max_tile) or not (0 <= self.row < self.max_tile):
            raise ValueError("column/row outside the tile grid for this zoom")

    @property
    def max_tile(self) -> int:
        return 1 << self.zoom

    @property
    def zxy(self) -> Tuple[int, int, int]:
        return (self.zoom, self.column, self.row)


@dataclass(frozen=True, slots=True)
class RouteDecision:
    """
    Where to forward a tile request and which headers to put on the reply.

    Attributes:
        upstream_path: path on the upstream renderer, always starting with '/'.
        cache_control: value for the Cache-Control response header.
        exposed_origin: value for Access-Control-Allow-Origin.
        media_type: Content-Type to use when the upstream sends none.
    """
    upstream_path: str
    cache_control: str
    exposed_origin: str
    media_type: str
