"""Area-of-interest helpers built on shapely."""

from __future__ import annotations

from shapely import wkt
from shapely.errors import ShapelyError
from shapely.geometry import box
from shapely.geometry.base import BaseGeometry
from shapely.prepared import prep

from rastersync.core.models import BoundingBox

from .transform import x_to_lon, y_to_lat


class GeometryError(RuntimeError):
    """Raised when an area of interest cannot be parsed."""


def geometry_from_wkt(text: str) -> BaseGeometry:
    """Parse a WKT area of interest."""

    try:
        geometry = wkt.loads(text)
    except ShapelyError as exc:
        raise GeometryError(f"Invalid area of interest: {text!r}") from exc
    if geometry.is_empty:
        raise GeometryError("Area of interest is empty")
    return geometry


def bounding_box_of(geometry: BaseGeometry) -> BoundingBox:
    min_lon, min_lat, max_lon, max_lat = geometry.bounds
    return BoundingBox(min_lon, min_lat, max_lon, max_lat)


def tile_polygon(level: int, x: int, y: int) -> BaseGeometry:
    """Return the lon/lat footprint of a tile."""

    return box(
        x_to_lon(level, x),
        y_to_lat(level, y),
        x_to_lon(level, x + 1),
        y_to_lat(level, y + 1),
    )


class IntersectsFilter:
    """Exclude tiles whose footprint does not intersect a geometry."""

    def __init__(self, geometry: BaseGeometry) -> None:
        self._geometry = geometry
        self._prepared = prep(geometry)

    @property
    def geometry(self) -> BaseGeometry:
        return self._geometry

    def excludes(self, level: int, x: int, y: int) -> bool:
        return not self._prepared.intersects(tile_polygon(level, x, y))
