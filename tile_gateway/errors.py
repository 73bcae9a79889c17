"""
Gateway error taxonomy and the error -> HTTP response table.

Client-input errors (400/404) carry the offending field and value so the
caller can see exactly what was rejected. UpstreamUnavailable keeps its reason
for logs only; clients get a generic 502 body.
"""

from __future__ import annotations

from typing import Any, Dict, Tuple, Type, Union

from common.types import SUPPORTED_EXTENSIONS


class GatewayError(Exception):
    """Base class for every recoverable, client-visible gateway failure."""

    title = "Bad Request"

    def details(self) -> Dict[str, Any]:
        return {}

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"error": self.title, "message": str(self)}
        body.update(self.details())
        return body


class InvalidCoordinateSyntax(GatewayError):
    title = "Invalid tile coordinates"

    def __init__(self, field: str, value: str):
        self.field = field
        self.value = value
        super().__init__(f"{field} must be a non-negative base-10 integer, got {value!r}")

    def details(self) -> Dict[str, Any]:
        return {"field": self.field, "value": self.value}


class ZoomOutOfRange(GatewayError):
    title = "Zoom level out of range"

    def __init__(self, zoom: Union[int, str], max_zoom: int):
        self.zoom = zoom
        self.max_zoom = max_zoom
        super().__init__(f"Zoom level must be between 0 and {max_zoom}, got {zoom}")

    def details(self) -> Dict[str, Any]:
        return {"zoom": self.zoom, "max_zoom": self.max_zoom}


class CoordinateOutOfRangeForZoom(GatewayError):
    title = "Tile coordinates out of range for zoom level"

    def __init__(self, axis: str, value: Union[int, str], zoom: int, max_tile: int):
        self.axis = axis
        self.value = value
        self.zoom = zoom
        self.max_tile = max_tile
        super().__init__(
            f"{axis} must be between 0 and {max_tile - 1} at zoom {zoom}, got {value}"
        )

    def details(self) -> Dict[str, Any]:
        return {"axis": self.axis, "value": self.value, "zoom": self.zoom, "max_tile": self.max_tile}


class UnsupportedFormat(GatewayError):
    title = "Not found"

    def __init__(self, extension: str):
        self.extension = extension
        super().__init__(
            f"Unsupported tile format {extension!r}; expected one of {', '.join(SUPPORTED_EXTENSIONS)}"
        )

    def details(self) -> Dict[str, Any]:
        return {"extension": self.extension, "supported": list(SUPPORTED_EXTENSIONS)}


class UpstreamUnavailable(GatewayError):
    title = "Bad Gateway"

    def __init__(self, reason: str, upstream_url: str = ""):
        self.reason = reason
        self.upstream_url = upstream_url
        super().__init__(reason)

    def to_dict(self) -> Dict[str, Any]:
        # reason may leak internal hostnames; it goes to the log, not the client
        return {"error": self.title, "message": "Failed to fetch tile from upstream server"}


STATUS_BY_ERROR: Dict[Type[GatewayError], int] = {
    InvalidCoordinateSyntax: 400,
    ZoomOutOfRange: 400,
    CoordinateOutOfRangeForZoom: 400,
    UnsupportedFormat: 404,
    UpstreamUnavailable: 502,
}


def translate(err: GatewayError) -> Tuple[int, Dict[str, Any]]:
    """Map a GatewayError to (HTTP status, JSON body)."""
    for cls in type(err).__mro__:
        status = STATUS_BY_ERROR.get(cls)  # type: ignore[arg-type]
        if status is not None:
            return status, err.to_dict()
    return 400, err.to_dict()
