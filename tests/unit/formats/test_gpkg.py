import io
import sqlite3
from pathlib import Path

import pytest
from PIL import Image

from rastersync.drivers.registry import DriverRegistry, LayerNotFoundError, ReadOnlySourceError, open_writer
from rastersync.formats import register_builtin_drivers
from rastersync.formats.gpkg import GeoPackage, GeoPackageDriver, GeoPackageTiles


def _png() -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", (256, 256), (0, 255, 0)).save(buffer, format="PNG")
    return buffer.getvalue()


def _build_geopackage(path: Path, tile: bytes) -> None:
    conn = sqlite3.connect(str(path))
    conn.executescript(
        """
        CREATE TABLE gpkg_contents (
            table_name TEXT NOT NULL PRIMARY KEY, data_type TEXT NOT NULL, identifier TEXT,
            description TEXT DEFAULT '', last_change DATETIME, min_x DOUBLE, min_y DOUBLE,
            max_x DOUBLE, max_y DOUBLE, srs_id INTEGER
        );
        CREATE TABLE gpkg_tile_matrix_set (
            table_name TEXT NOT NULL PRIMARY KEY, srs_id INTEGER NOT NULL,
            min_x DOUBLE NOT NULL, min_y DOUBLE NOT NULL, max_x DOUBLE NOT NULL, max_y DOUBLE NOT NULL
        );
        CREATE TABLE gpkg_tile_matrix (
            table_name TEXT NOT NULL, zoom_level INTEGER NOT NULL, matrix_width INTEGER NOT NULL,
            matrix_height INTEGER NOT NULL, tile_width INTEGER NOT NULL, tile_height INTEGER NOT NULL,
            pixel_x_size DOUBLE NOT NULL, pixel_y_size DOUBLE NOT NULL
        );
        CREATE TABLE "world tiles" (
            id INTEGER PRIMARY KEY AUTOINCREMENT, zoom_level INTEGER NOT NULL,
            tile_column INTEGER NOT NULL, tile_row INTEGER NOT NULL, tile_data BLOB NOT NULL
        );
        CREATE TABLE empty (
            id INTEGER PRIMARY KEY AUTOINCREMENT, zoom_level INTEGER NOT NULL,
            tile_column INTEGER NOT NULL, tile_row INTEGER NOT NULL, tile_data BLOB NOT NULL
        );
        """
    )
    extent = 20037508.342789244
    with conn:
        conn.execute(
            "INSERT INTO gpkg_contents (table_name, data_type, identifier) VALUES (?, 'tiles', ?)",
            ("world tiles", "World"),
        )
        conn.execute("INSERT INTO gpkg_contents (table_name, data_type) VALUES ('empty', 'tiles')")
        for table in ("world tiles", "empty"):
            conn.execute(
                "INSERT INTO gpkg_tile_matrix_set VALUES (?, 3857, ?, ?, ?, ?)",
                (table, -extent, -extent, extent, extent),
            )
        for zoom in (0, 1):
            size = 1 << zoom
            conn.execute(
                "INSERT INTO gpkg_tile_matrix VALUES ('world tiles', ?, ?, ?, 256, 256, ?, ?)",
                (zoom, size, size, 2 * extent / (256 * size), 2 * extent / (256 * size)),
            )
        # row 0 is the northern-most row
        conn.execute(
            'INSERT INTO "world tiles" (zoom_level, tile_column, tile_row, tile_data) VALUES (1, 0, 0, ?)',
            (tile,),
        )
    conn.close()


@pytest.fixture()
def package(tmp_path: Path) -> GeoPackage:
    path = tmp_path / "world.gpkg"
    _build_geopackage(path, _png())
    gpkg = GeoPackage.open(path)
    yield gpkg
    gpkg.close()


def test_open_missing_file(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        GeoPackage.open(tmp_path / "missing.gpkg")


def test_catalog_tables(package: GeoPackage) -> None:
    contents = package.list_contents()
    assert [item.table_name for item in contents] == ["world tiles", "empty"]
    assert contents[1].identifier is None
    assert contents[1].min_x is None

    matrix_sets = package.list_tile_matrix_sets()
    assert [item.srs_id for item in matrix_sets] == [3857, 3857]

    matrices = package.list_tile_matrix("world tiles")
    assert [(m.zoom_level, m.matrix_width) for m in matrices] == [(0, 1), (1, 2)]
    assert package.list_tile_matrix("empty") == []


def test_layers(package: GeoPackage) -> None:
    assert package.list_layers() == ["world tiles", "empty"]
    assert isinstance(package.open_layer("world tiles"), GeoPackageTiles)
    with pytest.raises(LayerNotFoundError):
        package.open_layer("roads")


def test_rows_are_flipped_to_bottom_origin(package: GeoPackage) -> None:
    tiles = package.open_layer("world tiles")

    assert tiles.contains(1, 0, 1) is True
    assert tiles.contains(1, 0, 0) is False
    assert tiles.get_raw(1, 0, 1) == _png()
    assert tiles.get_raw(1, 0, 0) is None


def test_tile_format_is_sniffed(package: GeoPackage) -> None:
    assert package.open_layer("world tiles").tile_format() == "png"
    assert package.open_layer("empty").tile_format() == "jpg"


def test_geopackage_is_read_only(tmp_path: Path) -> None:
    path = tmp_path / "world.gpkg"
    _build_geopackage(path, _png())
    registry = DriverRegistry()
    register_builtin_drivers(registry)

    with pytest.raises(ReadOnlySourceError):
        open_writer(registry, str(path), layer="world tiles")


def test_driver(tmp_path: Path) -> None:
    driver = GeoPackageDriver()

    assert driver.can_open(str(tmp_path / "a.gpkg")) is True
    assert driver.can_open(str(tmp_path / "a.mbtiles")) is False
