"""Concrete tile store formats and their drivers."""

from rastersync.drivers.registry import DriverRegistry

from .gpkg import GeoPackage, GeoPackageDriver, GeoPackageTiles
from .mbtiles import MBTiles, MBTilesDriver, MBTilesMetadata
from .tilefolder import TileFolder, TileFolderDriver, TileFolderSource
from .zxyserver import SingleLayerSource, ZxyServer, ZxyServerDriver, ZxyServerError

__all__ = [
    "GeoPackage",
    "GeoPackageDriver",
    "GeoPackageTiles",
    "MBTiles",
    "MBTilesDriver",
    "MBTilesMetadata",
    "SingleLayerSource",
    "TileFolder",
    "TileFolderDriver",
    "TileFolderSource",
    "ZxyServer",
    "ZxyServerDriver",
    "ZxyServerError",
    "register_builtin_drivers",
]


def register_builtin_drivers(registry: DriverRegistry) -> None:
    """Register every driver shipped with rastersync."""

    registry.register("zxy", ZxyServerDriver())
    registry.register("mbtiles", MBTilesDriver())
    registry.register("gpkg", GeoPackageDriver())
    registry.register("folder", TileFolderDriver("png"))
    registry.register("jpgfolder", TileFolderDriver("jpg"))
