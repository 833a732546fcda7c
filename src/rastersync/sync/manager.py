"""Synchronize a tile layer into another store over an area of interest."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from tqdm import tqdm

from rastersync.core.models import SyncConfig, TileAddress, TileBlock
from rastersync.drivers.registry import DriverRegistry, close_source, open_reader, open_writer
from rastersync.logging import get_logger
from rastersync.tiling.base import TileFilter, TileReader, TileReadWriter
from rastersync.tiling.copier import Copier
from rastersync.tiling.filters import ContainsFilter, any_of
from rastersync.tiling.geometry import IntersectsFilter, bounding_box_of, geometry_from_wkt
from rastersync.tiling.transform import tile_block_for

LOGGER = get_logger(__name__)


@dataclass
class LevelReport:
    """Outcome of the copy of one zoom level."""

    block: TileBlock
    processed: int


@dataclass
class SyncReport:
    """Outcome of a whole synchronization run."""

    levels: List[LevelReport] = field(default_factory=list)

    @property
    def processed(self) -> int:
        return sum(level.processed for level in self.levels)

    def by_level(self) -> Dict[int, int]:
        return {level.block.level: level.processed for level in self.levels}


class SyncManager:
    """Copy tiles level by level from a source store into a destination store.

    Without ``replace`` tiles already present in the destination are skipped;
    with it each level is cleared first and every tile of the area is copied.
    """

    def __init__(
        self,
        config: SyncConfig,
        *,
        registry: DriverRegistry,
        progress: bool = False,
    ) -> None:
        if config.level_max < config.level_min:
            raise ValueError("level_max must be greater than or equal to level_min")
        self._config = config
        self._registry = registry
        self._progress = progress
        self._geometry = geometry_from_wkt(config.aoi)
        self._bbox = bounding_box_of(self._geometry)

    def run(self) -> SyncReport:
        cfg = self._config
        source, reader = open_reader(
            self._registry, cfg.source, driver=cfg.source_driver, layer=cfg.source_layer
        )
        try:
            destination, writer = open_writer(
                self._registry,
                cfg.destination,
                driver=cfg.destination_driver,
                layer=cfg.destination_layer,
            )
            try:
                return self.copy_levels(reader, writer)
            finally:
                close_source(destination)
        finally:
            close_source(source)

    def build_filter(self, writer: TileReadWriter) -> TileFilter:
        polygon_filter = IntersectsFilter(self._geometry)
        if self._config.replace:
            return polygon_filter
        return any_of(ContainsFilter(writer), polygon_filter)

    def copy_levels(self, reader: TileReader, writer: TileReadWriter) -> SyncReport:
        """Copy every configured level between already opened stores."""

        copier = Copier(reader, writer, tile_filter=self.build_filter(writer))
        report = SyncReport()
        for level in range(self._config.level_min, self._config.level_max + 1):
            LOGGER.info("level start", extra={"level": level})

            if self._config.replace:
                writer.clear(level)
                LOGGER.info("level cleared in destination", extra={"level": level})

            block = tile_block_for(self._bbox, level)
            LOGGER.info(
                "tile block",
                extra={
                    "level": level,
                    "x_min": block.x_min,
                    "x_max": block.x_max,
                    "y_min": block.y_min,
                    "y_max": block.y_max,
                    "tiles": block.count(),
                },
            )

            processed = self._copy_block(copier, block)
            LOGGER.info("level done", extra={"level": level, "processed": processed})
            report.levels.append(LevelReport(block=block, processed=processed))
        return report

    def _copy_block(self, copier: Copier, block: TileBlock) -> int:
        with tqdm(
            total=block.count(),
            desc=f"level {block.level}",
            unit="tile",
            disable=not self._progress,
        ) as bar:

            def on_progress(address: TileAddress, processed: bool) -> None:
                bar.update(1)

            return copier.copy_block(block, on_progress)


def run_sync(config: SyncConfig, *, registry: DriverRegistry, progress: bool = False) -> SyncReport:
    """Convenience wrapper around :class:`SyncManager`."""

    return SyncManager(config, registry=registry, progress=progress).run()
