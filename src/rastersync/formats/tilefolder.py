"""Tile trees stored on disk as ``<layer>/<level>/<x>/<y>.<format>``."""

from __future__ import annotations

import shutil
from pathlib import Path
from typing import List, Optional

from rastersync.tiling import codec


class TileFolder:
    """Folder of tiles for a single layer."""

    def __init__(self, base_path: Path | str, tile_format: str) -> None:
        self._base_path = Path(base_path)
        self._tile_format = codec.normalize_format(tile_format)

    @property
    def base_path(self) -> Path:
        return self._base_path

    def tile_format(self) -> str:
        return self._tile_format

    def tile_path(self, level: int, x: int, y: int) -> Path:
        return self._base_path / str(level) / str(x) / f"{y}.{self._tile_format}"

    def get_raw(self, level: int, x: int, y: int) -> Optional[bytes]:
        try:
            return self.tile_path(level, x, y).read_bytes()
        except FileNotFoundError:
            return None

    def contains(self, level: int, x: int, y: int) -> bool:
        return self.tile_path(level, x, y).is_file()

    def set_raw(self, level: int, x: int, y: int, data: bytes) -> None:
        path = self.tile_path(level, x, y)
        path.parent.mkdir(parents=True, exist_ok=True)
        # readers never observe a partially written tile
        partial = path.with_name(path.name + ".part")
        partial.write_bytes(data)
        partial.replace(path)

    def clear(self, level: int) -> None:
        shutil.rmtree(self._base_path / str(level), ignore_errors=True)


class TileFolderSource:
    """Directory whose sub-directories are tile layers."""

    def __init__(self, root: Path | str, tile_format: str) -> None:
        self._root = Path(root)
        self._tile_format = tile_format

    def list_layers(self) -> List[str]:
        return sorted(entry.name for entry in self._root.iterdir() if entry.is_dir())

    def open_layer(self, name: str) -> TileFolder:
        return TileFolder(self._root / name, self._tile_format)

    def create_layer(self, name: str) -> TileFolder:
        return TileFolder(self._root / name, self._tile_format)


class TileFolderDriver:
    """Driver opening existing directories as tile folders of a fixed format."""

    def __init__(self, tile_format: str) -> None:
        self._tile_format = codec.normalize_format(tile_format)

    def can_open(self, dsn: str) -> bool:
        return Path(dsn).is_dir()

    def open_tile_source(self, dsn: str) -> TileFolderSource:
        return TileFolderSource(dsn, self._tile_format)
