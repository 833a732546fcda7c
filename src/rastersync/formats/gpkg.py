"""Read-only access to GeoPackage tile pyramids.

GeoPackage (OGC 12-128r11) stores each tile pyramid in its own table listed in
``gpkg_tile_matrix_set``. Tables are exposed as layers. GeoPackage numbers
rows from the top, so rows are flipped to the TMS convention on access.
"""

from __future__ import annotations

import sqlite3
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from rastersync.drivers.registry import LayerNotFoundError
from rastersync.logging import get_logger
from rastersync.tiling.codec import detect_format

LOGGER = get_logger(__name__)

DEFAULT_TILE_FORMAT = "jpg"


@dataclass
class Contents:
    """Row of ``gpkg_contents``."""

    table_name: str
    data_type: str
    identifier: Optional[str] = None
    description: Optional[str] = None
    last_change: Optional[str] = None
    min_x: Optional[float] = None
    min_y: Optional[float] = None
    max_x: Optional[float] = None
    max_y: Optional[float] = None
    srs_id: Optional[int] = None


@dataclass
class TileMatrixSet:
    """Row of ``gpkg_tile_matrix_set``."""

    table_name: str
    srs_id: int
    min_x: float
    min_y: float
    max_x: float
    max_y: float


@dataclass
class TileMatrix:
    """Row of ``gpkg_tile_matrix``."""

    table_name: str
    zoom_level: int
    matrix_width: int
    matrix_height: int
    tile_width: int
    tile_height: int
    pixel_x_size: float
    pixel_y_size: float


class GeoPackage:
    """Handle to a GeoPackage, safe for use from several threads."""

    def __init__(self, connection: sqlite3.Connection, path: Path) -> None:
        self._conn = connection
        self._lock = threading.Lock()
        self._path = path

    @classmethod
    def open(cls, path: Path | str) -> "GeoPackage":
        db_path = Path(path)
        if not db_path.is_file():
            raise FileNotFoundError(f"GeoPackage not found: {db_path}")
        uri = db_path.resolve().as_uri() + "?mode=ro"
        conn = sqlite3.connect(uri, uri=True, check_same_thread=False)
        return cls(conn, db_path)

    @property
    def path(self) -> Path:
        return self._path

    def close(self) -> None:
        with self._lock:
            self._conn.close()

    def __enter__(self) -> "GeoPackage":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def query(self, sql: str, params: tuple = ()) -> list:
        with self._lock:
            return self._conn.execute(sql, params).fetchall()

    # ------------------------------------------------------------------
    # Catalog tables
    # ------------------------------------------------------------------
    def list_contents(self) -> List[Contents]:
        rows = self.query(
            "SELECT table_name, data_type, identifier, description, last_change,"
            " min_x, min_y, max_x, max_y, srs_id FROM gpkg_contents"
        )
        return [Contents(*row) for row in rows]

    def list_tile_matrix_sets(self) -> List[TileMatrixSet]:
        rows = self.query(
            "SELECT table_name, srs_id, min_x, min_y, max_x, max_y FROM gpkg_tile_matrix_set"
        )
        return [TileMatrixSet(*row) for row in rows]

    def list_tile_matrix(self, table_name: Optional[str] = None) -> List[TileMatrix]:
        sql = (
            "SELECT table_name, zoom_level, matrix_width, matrix_height, tile_width,"
            " tile_height, pixel_x_size, pixel_y_size FROM gpkg_tile_matrix"
        )
        params: tuple = ()
        if table_name is not None:
            sql += " WHERE table_name = ?"
            params = (table_name,)
        return [TileMatrix(*row) for row in self.query(sql + " ORDER BY table_name, zoom_level", params)]

    # ------------------------------------------------------------------
    # Source
    # ------------------------------------------------------------------
    def list_layers(self) -> List[str]:
        return [tms.table_name for tms in self.list_tile_matrix_sets()]

    def open_layer(self, name: str) -> "GeoPackageTiles":
        if name not in self.list_layers():
            raise LayerNotFoundError(f"tile table {name!r} not found in {self._path}")
        return GeoPackageTiles(self, name)


class GeoPackageTiles:
    """Tile reader over one GeoPackage tiles table."""

    def __init__(self, package: GeoPackage, table_name: str) -> None:
        self._package = package
        self._table = '"' + table_name.replace('"', '""') + '"'
        self._name = table_name
        self._format: Optional[str] = None

    @property
    def name(self) -> str:
        return self._name

    def tile_format(self) -> str:
        """Return the format of the first stored tile, ``jpg`` when unknown."""

        if self._format is None:
            rows = self._package.query(f"SELECT tile_data FROM {self._table} LIMIT 1")
            detected = detect_format(bytes(rows[0][0])) if rows and rows[0][0] else None
            self._format = detected or DEFAULT_TILE_FORMAT
        return self._format

    def get_raw(self, level: int, x: int, y: int) -> Optional[bytes]:
        rows = self._package.query(
            f"SELECT tile_data FROM {self._table} WHERE zoom_level = ? AND tile_column = ? AND tile_row = ?",
            (level, x, (1 << level) - y - 1),
        )
        if not rows or rows[0][0] is None:
            return None
        return bytes(rows[0][0])

    def contains(self, level: int, x: int, y: int) -> bool:
        rows = self._package.query(
            f"SELECT count(*) FROM {self._table} WHERE zoom_level = ? AND tile_column = ? AND tile_row = ?",
            (level, x, (1 << level) - y - 1),
        )
        return rows[0][0] > 0


class GeoPackageDriver:
    """Driver opening ``*.gpkg`` files."""

    def can_open(self, dsn: str) -> bool:
        return Path(dsn).suffix == ".gpkg"

    def open_tile_source(self, dsn: str) -> GeoPackage:
        return GeoPackage.open(dsn)
