"""Tile addressing, store capabilities and copy orchestration."""

from .base import Driver, TileFilter, TileReader, TileReadWriter, TileSource, WritableTileSource
from .codec import UnsupportedFormatError, decode, encode, normalize_format
from .copier import Copier, CopyBlockError, copy_tile
from .filters import AllFilter, AnyFilter, CallableFilter, ContainsFilter, all_of, any_of
from .geometry import GeometryError, IntersectsFilter, bounding_box_of, geometry_from_wkt
from .transform import flip_y, lat_to_y, lon_to_x, tile_block_for, x_to_lon, y_to_lat

__all__ = [
    "AllFilter",
    "AnyFilter",
    "CallableFilter",
    "ContainsFilter",
    "Copier",
    "CopyBlockError",
    "Driver",
    "GeometryError",
    "IntersectsFilter",
    "TileFilter",
    "TileReadWriter",
    "TileReader",
    "TileSource",
    "UnsupportedFormatError",
    "WritableTileSource",
    "all_of",
    "any_of",
    "bounding_box_of",
    "copy_tile",
    "decode",
    "encode",
    "flip_y",
    "geometry_from_wkt",
    "lat_to_y",
    "lon_to_x",
    "normalize_format",
    "tile_block_for",
    "x_to_lon",
    "y_to_lat",
]
