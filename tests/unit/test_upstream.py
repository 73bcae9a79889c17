"""
Unit tests for the upstream tile server client
"""

import pytest
import os
import sys
from unittest.mock import Mock

import requests

# Add project root to path
project_root = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
sys.path.append(project_root)

from common.types import RouteDecision
from tile_gateway.errors import UpstreamUnavailable
from tile_gateway.upstream import UpstreamClient, UpstreamTile


def _decision(path="/data/v3/5/10/10.pbf", media_type="application/x-protobuf"):
    return RouteDecision(
        upstream_path=path,
        cache_control="public, max-age=86400",
        exposed_origin="*",
        media_type=media_type,
    )


def _response(status=200, content=b"tile_bytes", headers=None):
    r = Mock()
    r.status_code = status
    r.content = content
    r.headers = headers if headers is not None else {}
    return r


class TestUpstreamClient:
    """Test cases for UpstreamClient"""

    def test_init(self):
        client = UpstreamClient("http://tileserver:8081/", timeout=3)
        assert client.base_url == "http://tileserver:8081"
        assert client.timeout == 3.0
        assert isinstance(client.session, requests.Session)

    def test_url_for(self):
        client = UpstreamClient("http://tileserver:8081")
        assert client.url_for(_decision()) == "http://tileserver:8081/data/v3/5/10/10.pbf"

    def test_fetch_success(self):
        session = Mock()
        session.request.return_value = _response(
            headers={"Content-Type": "application/x-protobuf", "ETag": "\"abc\"", "Server": "tileserver-gl"}
        )
        client = UpstreamClient("http://ts", timeout=5, session=session)

        tile = client.fetch(_decision())

        session.request.assert_called_once_with("GET", "http://ts/data/v3/5/10/10.pbf", timeout=5.0)
        assert isinstance(tile, UpstreamTile)
        assert tile.ok
        assert tile.content == b"tile_bytes"
        assert tile.media_type == "application/x-protobuf"
        assert tile.headers == {"ETag": "\"abc\""}

    def test_missing_content_type_falls_back(self):
        session = Mock()
        session.request.return_value = _response(headers={})
        client = UpstreamClient("http://ts", session=session)

        tile = client.fetch(_decision("/styles/basic/0/0/0.png", "image/png"))

        assert tile.media_type == "image/png"

    def test_upstream_error_status_is_returned(self):
        session = Mock()
        session.request.return_value = _response(status=404, content=b"Not found")
        client = UpstreamClient("http://ts", session=session)

        tile = client.fetch(_decision())

        assert tile.status_code == 404
        assert not tile.ok

    def test_head_forwards_method(self):
        session = Mock()
        session.request.return_value = _response(content=b"")
        client = UpstreamClient("http://ts", session=session)

        tile = client.fetch(_decision(), method="HEAD")

        assert session.request.call_args[0][0] == "HEAD"
        assert tile.content == b""

    @pytest.mark.parametrize(
        "exc",
        [
            requests.ConnectionError("Connection refused"),
            requests.Timeout("read timed out"),
            requests.exceptions.ChunkedEncodingError("broken framing"),
        ],
    )
    def test_transport_failure(self, exc):
        session = Mock()
        session.request.side_effect = exc
        client = UpstreamClient("http://ts", session=session)

        with pytest.raises(UpstreamUnavailable) as ei:
            client.fetch(_decision())
        assert ei.value.upstream_url == "http://ts/data/v3/5/10/10.pbf"

    def test_close(self):
        session = Mock()
        UpstreamClient("http://ts", session=session).close()
        session.close.assert_called_once()

    def test_head_keeps_content_length(self):
        session = Mock()
        session.request.return_value = _response(content=b"", headers={"Content-Length": "2048"})
        client = UpstreamClient("http://ts", session=session)

        assert client.fetch(_decision(), method="HEAD").headers == {"Content-Length": "2048"}

    def test_get_does_not_copy_content_length(self):
        session = Mock()
        session.request.return_value = _response(headers={"Content-Length": "10"})
        client = UpstreamClient("http://ts", session=session)

        assert "Content-Length" not in client.fetch(_decision()).headers
