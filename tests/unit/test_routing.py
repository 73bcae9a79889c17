"""
Unit tests for tile routing (TileCoordinate + TileFormat -> RouteDecision)
"""

import pytest
import os
import sys

# Add project root to path
project_root = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
sys.path.append(project_root)

from common.types import RouteDecision, TileCoordinate, TileFormat
from tile_gateway.config import GatewayConfig
from tile_gateway.errors import UnsupportedFormat
from tile_gateway.routing import parse_format, route, split_tile_name


@pytest.fixture
def config():
    return GatewayConfig()


class TestRoute:

    def test_vector_path(self, config):
        decision = route(TileCoordinate(5, 10, 10), TileFormat.VECTOR, config)
        assert decision.upstream_path == "/data/v3/5/10/10.pbf"
        assert decision.media_type == "application/x-protobuf"

    def test_png_uses_configured_style(self, config):
        decision = route(TileCoordinate(0, 0, 0), TileFormat.RASTER_PNG, config)
        assert decision.upstream_path == "/styles/basic/0/0/0.png"
        assert decision.media_type == "image/png"

    def test_custom_style_and_source(self):
        cfg = GatewayConfig(raster_style="osm-bright", vector_source="openmaptiles")
        assert route(TileCoordinate(3, 1, 2), TileFormat.RASTER_JPEG, cfg).upstream_path == (
            "/styles/osm-bright/3/1/2.jpg"
        )
        assert route(TileCoordinate(3, 1, 2), TileFormat.VECTOR, cfg).upstream_path == (
            "/data/openmaptiles/3/1/2.pbf"
        )

    def test_vector_has_no_style(self):
        cfg = GatewayConfig(raster_style="should-not-appear")
        decision = route(TileCoordinate(1, 0, 1), TileFormat.VECTOR, cfg)
        assert "should-not-appear" not in decision.upstream_path

    def test_default_headers(self, config):
        decision = route(TileCoordinate(1, 1, 1), TileFormat.RASTER_PNG, config)
        assert decision.cache_control == "public, max-age=86400"
        assert decision.exposed_origin == "*"

    def test_ttl_override(self):
        cfg = GatewayConfig(cache_ttl=600, cors_origin="https://maps.example.org")
        decision = route(TileCoordinate(1, 1, 1), TileFormat.VECTOR, cfg)
        assert decision.cache_control == "public, max-age=600"
        assert decision.exposed_origin == "https://maps.example.org"

    def test_idempotent(self, config):
        coord = TileCoordinate(12, 2047, 1361)
        for fmt in TileFormat:
            first = route(coord, fmt, config)
            assert isinstance(first, RouteDecision)
            assert all(route(coord, fmt, config) == first for _ in range(5))

    def test_unknown_format_is_a_bug(self, config):
        with pytest.raises(AssertionError):
            route(TileCoordinate(0, 0, 0), "webp", config)  # type: ignore[arg-type]


class TestParseFormat:

    @pytest.mark.parametrize(
        "ext, fmt",
        [
            ("pbf", TileFormat.VECTOR),
            ("png", TileFormat.RASTER_PNG),
            ("jpg", TileFormat.RASTER_JPEG),
            ("jpeg", TileFormat.RASTER_JPEG),
            ("PNG", TileFormat.RASTER_PNG),
        ],
    )
    def test_supported(self, ext, fmt):
        assert parse_format(ext) is fmt

    @pytest.mark.parametrize("ext", ["webp", "mvt", "", "gif"])
    def test_unsupported(self, ext):
        with pytest.raises(UnsupportedFormat) as ei:
            parse_format(ext)
        assert ei.value.extension == ext

    def test_split_tile_name(self):
        assert split_tile_name("10.png") == ("10", "png")
        assert split_tile_name("10") == ("10", "")
        assert split_tile_name("10.tar.gz") == ("10.tar", "gz")
