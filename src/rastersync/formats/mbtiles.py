"""MBTiles database access.

An MBTiles file is a single sqlite database holding one tile layer; see
https://github.com/mapbox/mbtiles-spec . Rows use the TMS convention.
"""

from __future__ import annotations

import sqlite3
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from PIL import Image

from rastersync.drivers.registry import LayerNotFoundError
from rastersync.logging import get_logger
from rastersync.tiling import codec

LOGGER = get_logger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS metadata (name text, value text);
CREATE TABLE IF NOT EXISTS tiles (zoom_level integer, tile_column integer, tile_row integer, tile_data blob);
CREATE INDEX IF NOT EXISTS tiles_idx ON tiles (zoom_level, tile_column, tile_row);
"""

_METADATA_KEYS = ("name", "type", "version", "description", "format", "attribution")


@dataclass
class MBTilesMetadata:
    """Metadata entries stored in the ``metadata`` table."""

    name: str = ""
    type: str = "baselayer"
    version: int = 0
    description: str = ""
    format: str = "png"
    attribution: str = ""


class MBTiles:
    """Handle to an MBTiles database, safe for use from several threads."""

    def __init__(self, connection: sqlite3.Connection, metadata: MBTilesMetadata, path: Path) -> None:
        self._conn = connection
        self._lock = threading.Lock()
        self._metadata = metadata
        self._path = path

    @classmethod
    def open(cls, path: Path | str) -> "MBTiles":
        """Open a database, creating the MBTiles tables when missing."""

        db_path = Path(path)
        conn = sqlite3.connect(str(db_path), check_same_thread=False)
        try:
            conn.executescript(_SCHEMA)
            metadata = _read_metadata(conn)
        except sqlite3.Error:
            conn.close()
            raise
        LOGGER.debug("opened mbtiles", extra={"path": str(db_path), "format": metadata.format})
        return cls(conn, metadata, db_path)

    @classmethod
    def create(cls, path: Path | str, metadata: MBTilesMetadata) -> "MBTiles":
        """Initialize a new database at ``path`` with the given metadata."""

        db_path = Path(path)
        conn = sqlite3.connect(str(db_path), check_same_thread=False)
        try:
            conn.executescript(_SCHEMA)
            metadata.format = codec.normalize_format(metadata.format)
            with conn:
                for key in _METADATA_KEYS:
                    _save_metadata(conn, key, getattr(metadata, key))
            LOGGER.info("created mbtiles", extra={"path": str(db_path), "layer": metadata.name})
        except Exception:
            conn.close()
            raise
        return cls(conn, metadata, db_path)

    @property
    def path(self) -> Path:
        return self._path

    @property
    def metadata(self) -> MBTilesMetadata:
        return self._metadata

    def close(self) -> None:
        with self._lock:
            self._conn.close()

    def __enter__(self) -> "MBTiles":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Reader / writer
    # ------------------------------------------------------------------
    def tile_format(self) -> str:
        return self._metadata.format

    def get_raw(self, level: int, x: int, y: int) -> Optional[bytes]:
        with self._lock:
            row = self._conn.execute(
                "SELECT tile_data FROM tiles WHERE zoom_level = ? AND tile_column = ? AND tile_row = ?",
                (level, x, y),
            ).fetchone()
        if row is None or row[0] is None:
            return None
        return bytes(row[0])

    def contains(self, level: int, x: int, y: int) -> bool:
        with self._lock:
            row = self._conn.execute(
                "SELECT 1 FROM tiles WHERE zoom_level = ? AND tile_column = ? AND tile_row = ? LIMIT 1",
                (level, x, y),
            ).fetchone()
        return row is not None

    def set_raw(self, level: int, x: int, y: int, data: bytes) -> None:
        with self._lock, self._conn:
            self._conn.execute(
                "DELETE FROM tiles WHERE zoom_level = ? AND tile_column = ? AND tile_row = ?",
                (level, x, y),
            )
            self._conn.execute(
                "INSERT INTO tiles (zoom_level, tile_column, tile_row, tile_data) VALUES (?, ?, ?, ?)",
                (level, x, y, sqlite3.Binary(data)),
            )

    def clear(self, level: int) -> None:
        with self._lock, self._conn:
            self._conn.execute("DELETE FROM tiles WHERE zoom_level = ?", (level,))

    def get(self, level: int, x: int, y: int) -> Optional[Image.Image]:
        """Return the decoded tile, or None when absent."""

        raw = self.get_raw(level, x, y)
        if raw is None:
            return None
        return codec.decode(raw, self._metadata.format)

    def set(self, level: int, x: int, y: int, image: Image.Image) -> None:
        """Encode ``image`` in the database format and store it."""

        self.set_raw(level, x, y, codec.encode(image, self._metadata.format))

    # ------------------------------------------------------------------
    # Source
    # ------------------------------------------------------------------
    def list_layers(self) -> List[str]:
        return [self._metadata.name]

    def open_layer(self, name: str) -> "MBTiles":
        if name == self._metadata.name:
            return self
        raise LayerNotFoundError(f"layer {name!r} not found in {self._path}")

    def create_layer(self, name: str) -> "MBTiles":
        """Return this database when ``name`` designates its single layer.

        A database without a name adopts ``name``.
        """

        if name == self._metadata.name:
            return self
        if self._metadata.name == "":
            with self._lock, self._conn:
                _save_metadata(self._conn, "name", name)
            self._metadata.name = name
            return self
        raise LayerNotFoundError(
            f"layer {name!r} cannot be created in {self._path} (holds {self._metadata.name!r})"
        )


def _read_metadata(conn: sqlite3.Connection) -> MBTilesMetadata:
    values = dict(conn.execute("SELECT name, value FROM metadata").fetchall())
    metadata = MBTilesMetadata(
        name=str(values.get("name") or ""),
        type=str(values.get("type") or "baselayer"),
        description=str(values.get("description") or ""),
        format=str(values.get("format") or "png").lower(),
        attribution=str(values.get("attribution") or ""),
    )
    version = values.get("version")
    if version not in (None, ""):
        try:
            metadata.version = int(float(version))
        except (TypeError, ValueError):
            LOGGER.warning("ignoring non-numeric mbtiles version", extra={"version": version})
    if metadata.format == "jpeg":
        metadata.format = "jpg"
    return metadata


def _save_metadata(conn: sqlite3.Connection, key: str, value: object) -> None:
    conn.execute("DELETE FROM metadata WHERE name = ?", (key,))
    conn.execute("INSERT INTO metadata (name, value) VALUES (?, ?)", (key, str(value)))


class MBTilesDriver:
    """Driver opening ``*.mbtiles`` files."""

    def can_open(self, dsn: str) -> bool:
        return Path(dsn).suffix == ".mbtiles"

    def open_tile_source(self, dsn: str) -> MBTiles:
        return MBTiles.open(dsn)
