"""Conversions between geographic coordinates and tile indices.

Tile rows follow the TMS/MBTiles convention: row 0 is the southern-most row.
Formulas are the spherical Web Mercator ones described at
http://wiki.openstreetmap.org/wiki/Slippy_map_tilenames .
"""

from __future__ import annotations

import math

from rastersync.core.models import MAX_LATITUDE, BoundingBox, TileBlock


def _n(level: int) -> int:
    return 1 << level


def x_to_lon(level: int, x: int) -> float:
    """Return the western edge longitude of column ``x``."""

    return x / _n(level) * 360.0 - 180.0


def lon_to_x(level: int, lon: float) -> int:
    """Return the column containing longitude ``lon``."""

    return int(_n(level) * (lon + 180.0) / 360.0)


def y_to_lat(level: int, y: int) -> float:
    """Return the southern edge latitude of row ``y``."""

    lat_rad = math.atan(math.sinh(math.pi * (1.0 - 2.0 * y / _n(level))))
    return -math.degrees(lat_rad)


def lat_to_y(level: int, lat: float) -> int:
    """Return the row containing latitude ``lat``."""

    n = _n(level)
    lat = max(-MAX_LATITUDE, min(MAX_LATITUDE, lat))
    lat_rad = math.radians(lat)
    y_osm = int(n * (1.0 - math.log(math.tan(lat_rad) + 1.0 / math.cos(lat_rad)) / math.pi) / 2.0)
    return max(0, min(n - 1, n - y_osm - 1))


def flip_y(level: int, y: int) -> int:
    """Convert a row index between the TMS and OSM conventions."""

    return _n(level) - y - 1


def tile_block_for(bbox: BoundingBox, level: int) -> TileBlock:
    """Return the tile block enveloping ``bbox`` at ``level``.

    Boxes crossing the antimeridian are not split; callers must pass one box
    per side.
    """

    x_min = lon_to_x(level, bbox.min_lon)
    x_max = lon_to_x(level, bbox.max_lon)
    y_min = lat_to_y(level, bbox.min_lat)
    y_max = lat_to_y(level, bbox.max_lat)

    if y_min > y_max:
        y_min, y_max = y_max, y_min

    # An east edge lying on a grid line must not pull in the next column.
    if x_to_lon(level, x_max) == bbox.max_lon:
        x_max -= 1

    return TileBlock(level=level, x_min=x_min, x_max=x_max, y_min=y_min, y_max=y_max)
