"""Protocol definitions for tile store capabilities.

Every store implementation, whatever its backend, is used exclusively through
these contracts. Implementations must be safe for concurrent callers.
"""

from __future__ import annotations

from typing import List, Optional, Protocol, runtime_checkable


@runtime_checkable
class TileReader(Protocol):
    """Interface for anything able to provide a tile for a level/x/y."""

    def tile_format(self) -> str:
        """Return the image encoding of stored tiles (``png`` or ``jpg``)."""

    def get_raw(self, level: int, x: int, y: int) -> Optional[bytes]:
        """Return the encoded tile, or ``None`` when it is absent."""

    def contains(self, level: int, x: int, y: int) -> bool:
        """Return True when the tile is already stored."""


@runtime_checkable
class TileReadWriter(TileReader, Protocol):
    """Interface for stores accepting tile writes."""

    def set_raw(self, level: int, x: int, y: int, data: bytes) -> None:
        """Store an encoded tile. The image format is not checked."""

    def clear(self, level: int) -> None:
        """Remove every tile stored at ``level``."""


@runtime_checkable
class TileSource(Protocol):
    """Interface for a data source exposing one or more tile layers."""

    def list_layers(self) -> List[str]:
        """Return the names of the available tile layers."""

    def open_layer(self, name: str) -> TileReader:
        """Open the named layer for reading."""


@runtime_checkable
class WritableTileSource(TileSource, Protocol):
    """Interface for data sources allowing layers to be written."""

    def create_layer(self, name: str) -> TileReadWriter:
        """Create the named layer, or open it for writing when it exists."""


@runtime_checkable
class Driver(Protocol):
    """Interface implemented by each tile source driver."""

    def can_open(self, dsn: str) -> bool:
        """Return True when the driver recognizes the data source name."""

    def open_tile_source(self, dsn: str) -> TileSource:
        """Open the data source designated by ``dsn``."""


@runtime_checkable
class TileFilter(Protocol):
    """Predicate deciding whether a tile is excluded from a copy."""

    def excludes(self, level: int, x: int, y: int) -> bool:
        """Return True to skip the tile. Errors are raised, not returned."""
