"""Core data models for rastersync."""

from .models import (
    MAX_LATITUDE,
    WORLD_AOI_WKT,
    BoundingBox,
    ServeConfig,
    SyncConfig,
    TileAddress,
    TileBlock,
)

__all__ = [
    "MAX_LATITUDE",
    "WORLD_AOI_WKT",
    "BoundingBox",
    "ServeConfig",
    "SyncConfig",
    "TileAddress",
    "TileBlock",
]
