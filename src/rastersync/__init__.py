"""Rastersync raster tile pyramid synchronization package."""

from __future__ import annotations

import importlib
from typing import Any

__all__ = [
    "BoundingBox",
    "Copier",
    "CopyBlockError",
    "DriverRegistry",
    "GeoPackage",
    "MBTiles",
    "ServeConfig",
    "SyncConfig",
    "SyncManager",
    "TileAddress",
    "TileBlock",
    "TileFolder",
    "ZxyServer",
    "create_app",
    "default_registry",
    "load_config",
    "tile_block_for",
]

_MODULE_MAP = {
    "BoundingBox": ("rastersync.core", "BoundingBox"),
    "Copier": ("rastersync.tiling", "Copier"),
    "CopyBlockError": ("rastersync.tiling", "CopyBlockError"),
    "DriverRegistry": ("rastersync.drivers", "DriverRegistry"),
    "GeoPackage": ("rastersync.formats", "GeoPackage"),
    "MBTiles": ("rastersync.formats", "MBTiles"),
    "ServeConfig": ("rastersync.core", "ServeConfig"),
    "SyncConfig": ("rastersync.core", "SyncConfig"),
    "SyncManager": ("rastersync.sync", "SyncManager"),
    "TileAddress": ("rastersync.core", "TileAddress"),
    "TileBlock": ("rastersync.core", "TileBlock"),
    "TileFolder": ("rastersync.formats", "TileFolder"),
    "ZxyServer": ("rastersync.formats", "ZxyServer"),
    "create_app": ("rastersync.server", "create_app"),
    "default_registry": ("rastersync.drivers", "default_registry"),
    "load_config": ("rastersync.config", "load_config"),
    "tile_block_for": ("rastersync.tiling", "tile_block_for"),
}


def __getattr__(name: str) -> Any:
    if name not in _MODULE_MAP:
        raise AttributeError(f"module 'rastersync' has no attribute '{name}'")
    module_name, attr = _MODULE_MAP[name]
    module = importlib.import_module(module_name)
    return getattr(module, attr)
