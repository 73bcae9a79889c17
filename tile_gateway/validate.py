from __future__ import annotations

import re
from typing import Optional

from common.types import TileCoordinate
from tile_gateway.errors import (
    CoordinateOutOfRangeForZoom,
    InvalidCoordinateSyntax,
    ZoomOutOfRange,
)

DEFAULT_MAX_ZOOM = 22

# ASCII digits only; str.isdigit() would let through '²' and other Unicode digits
_DIGITS = re.compile(r"[0-9]+")

# Longer digit strings are out of range for any zoom the config allows (2**30 has 10 digits).
# Checked before int() so huge segments never reach the interpreter's int/str digit limit.
_MAX_DIGITS = 18


def _parse(field: str, raw: str) -> str:
    """Syntax check; returns the digit string without leading zeros."""
    if raw is None or not _DIGITS.fullmatch(raw):
        raise InvalidCoordinateSyntax(field, "" if raw is None else raw)
    return raw.lstrip("0") or "0"


def _to_int(digits: str) -> Optional[int]:
    if len(digits) > _MAX_DIGITS:
        return None
    return int(digits, 10)


def check_bounds(zoom: int, column: int, row: int, max_zoom: int = DEFAULT_MAX_ZOOM) -> TileCoordinate:
    """
    Range-check already-parsed integers against the tile pyramid.

    Raises ZoomOutOfRange unless 0 <= zoom <= max_zoom, then
    CoordinateOutOfRangeForZoom for the first of column/row outside [0, 2**zoom).
    """
    if zoom < 0 or zoom > max_zoom:
        raise ZoomOutOfRange(zoom, max_zoom)
    max_tile = 1 << zoom
    for axis, value in (("column", column), ("row", row)):
        if value < 0 or value >= max_tile:
            raise CoordinateOutOfRangeForZoom(axis, value, zoom, max_tile)
    return TileCoordinate(zoom=zoom, column=column, row=row)


def validate(zoom_raw: str, column_raw: str, row_raw: str, max_zoom: int = DEFAULT_MAX_ZOOM) -> TileCoordinate:
    """
    Parse raw path segments into a TileCoordinate.

    Syntax is checked for all three fields first (zoom, column, row order),
    then the zoom bound, then column and row against 2**zoom. Segments too
    long to be in range are rejected with the range error without being
    converted; the error then carries the digit string as its value.
    """
    zoom_s = _parse("zoom", zoom_raw)
    column_s = _parse("column", column_raw)
    row_s = _parse("row", row_raw)

    zoom = _to_int(zoom_s)
    if zoom is None:
        raise ZoomOutOfRange(zoom_s, max_zoom)
    if zoom > max_zoom:
        raise ZoomOutOfRange(zoom, max_zoom)

    max_tile = 1 << zoom
    column, row = _to_int(column_s), _to_int(row_s)
    for axis, value, digits in (("column", column, column_s), ("row", row, row_s)):
        if value is None:
            raise CoordinateOutOfRangeForZoom(axis, digits, zoom, max_tile)
        if value >= max_tile:
            raise CoordinateOutOfRangeForZoom(axis, value, zoom, max_tile)
    return TileCoordinate(zoom=zoom, column=column, row=row)
