"""Dataclasses describing core rastersync entities."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, Optional

MAX_LATITUDE = 85.0511287798066

WORLD_AOI_WKT = (
    "POLYGON((-180 -85.0511, 180 -85.0511, 180 85.0511, -180 85.0511, -180 -85.0511))"
)


@dataclass(frozen=True)
class TileAddress:
    """Identify a tile by zoom level and column/row (bottom-left origin)."""

    level: int
    x: int
    y: int

    def flip_y(self) -> "TileAddress":
        """Return the same tile addressed with the opposite row convention."""

        return TileAddress(self.level, self.x, (1 << self.level) - self.y - 1)


@dataclass(frozen=True)
class BoundingBox:
    """Geographic extent in degrees, normalized so that min <= max."""

    min_lon: float
    min_lat: float
    max_lon: float
    max_lat: float

    def __post_init__(self) -> None:
        if self.min_lon > self.max_lon:
            min_lon, max_lon = self.max_lon, self.min_lon
            object.__setattr__(self, "min_lon", min_lon)
            object.__setattr__(self, "max_lon", max_lon)
        if self.min_lat > self.max_lat:
            min_lat, max_lat = self.max_lat, self.min_lat
            object.__setattr__(self, "min_lat", min_lat)
            object.__setattr__(self, "max_lat", max_lat)

    @classmethod
    def world(cls) -> "BoundingBox":
        return cls(-180.0, -MAX_LATITUDE, 180.0, MAX_LATITUDE)

    def as_tuple(self) -> tuple[float, float, float, float]:
        return (self.min_lon, self.min_lat, self.max_lon, self.max_lat)


@dataclass(frozen=True)
class TileBlock:
    """Closed rectangular set of tiles at a single level.

    Iteration is deterministic: columns in the outer loop, rows in the inner
    loop, both ascending.
    """

    level: int
    x_min: int
    x_max: int
    y_min: int
    y_max: int

    def count(self) -> int:
        return (self.x_max - self.x_min + 1) * (self.y_max - self.y_min + 1)

    def __len__(self) -> int:
        return max(0, self.count())

    def __iter__(self) -> Iterator[TileAddress]:
        for x in range(self.x_min, self.x_max + 1):
            for y in range(self.y_min, self.y_max + 1):
                yield TileAddress(self.level, x, y)

    def __contains__(self, item: object) -> bool:
        if not isinstance(item, TileAddress):
            return False
        return (
            item.level == self.level
            and self.x_min <= item.x <= self.x_max
            and self.y_min <= item.y <= self.y_max
        )


@dataclass
class SyncConfig:
    """Options controlling a copy run between two tile stores."""

    source: str = ""
    source_driver: str = ""
    source_layer: str = ""
    destination: str = ""
    destination_driver: str = ""
    destination_layer: str = "data"
    level_min: int = 0
    level_max: int = 3
    aoi: str = WORLD_AOI_WKT
    replace: bool = False


@dataclass
class ServeConfig:
    """Options controlling the HTTP tile server."""

    source: str = ""
    source_driver: str = ""
    source_layer: str = ""
    host: str = "127.0.0.1"
    port: int = 8085
    zero_is_top: bool = False
    title: Optional[str] = None
