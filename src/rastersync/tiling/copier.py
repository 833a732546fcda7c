"""Tile copy between two stores with filtering and on-the-fly transcoding."""

from __future__ import annotations

from typing import Callable, Optional

from rastersync.core.models import TileAddress, TileBlock
from rastersync.logging import get_logger

from .base import TileFilter, TileReader, TileReadWriter
from .codec import transcoder_for

LOGGER = get_logger(__name__)

ProgressCallback = Callable[[TileAddress, bool], None]


class CopyBlockError(RuntimeError):
    """Raised when a block copy stops on its first failing tile.

    ``processed`` holds the number of tiles written before the failure; those
    tiles are left in place.
    """

    def __init__(self, address: TileAddress, processed: int, cause: BaseException) -> None:
        super().__init__(
            f"copy of tile {address.level}/{address.x}/{address.y} failed "
            f"after {processed} tiles: {cause}"
        )
        self.address = address
        self.processed = processed


class Copier:
    """Copy tiles from a reader into a read-writer.

    Bytes are passed through untouched when both stores share the same
    format, otherwise each tile is decoded and re-encoded. The copier never
    closes the stores it is given.
    """

    def __init__(
        self,
        source: TileReader,
        destination: TileReadWriter,
        *,
        tile_filter: Optional[TileFilter] = None,
    ) -> None:
        self._source = source
        self._destination = destination
        self._transcode = transcoder_for(source.tile_format(), destination.tile_format())
        self.filter = tile_filter
        if self._transcode is not None:
            LOGGER.debug(
                "transcoding enabled",
                extra={"from": source.tile_format(), "to": destination.tile_format()},
            )

    @property
    def transcodes(self) -> bool:
        return self._transcode is not None

    def copy(self, level: int, x: int, y: int) -> bool:
        """Copy a single tile, returning True when it was written."""

        if self.filter is not None and self.filter.excludes(level, x, y):
            return False

        raw = self._source.get_raw(level, x, y)
        if raw is None:
            LOGGER.debug("tile missing in source", extra={"level": level, "x": x, "y": y})
            return False

        if self._transcode is not None:
            raw = self._transcode(raw)

        self._destination.set_raw(level, x, y, raw)
        return True

    def copy_block(self, block: TileBlock, on_progress: Optional[ProgressCallback] = None) -> int:
        """Copy every tile of ``block`` and return how many were written.

        ``on_progress`` is called after each tile, processed or not. The first
        failure aborts the block with :class:`CopyBlockError`.
        """

        processed_count = 0
        for address in block:
            try:
                processed = self.copy(address.level, address.x, address.y)
            except Exception as exc:
                raise CopyBlockError(address, processed_count, exc) from exc
            if on_progress is not None:
                on_progress(address, processed)
            if processed:
                processed_count += 1
        return processed_count


def copy_tile(source: TileReader, destination: TileReadWriter, level: int, x: int, y: int) -> bool:
    """Copy one tile without keeping a :class:`Copier` around."""

    return Copier(source, destination).copy(level, x, y)
