import json
import logging
from pathlib import Path

import pytest
from PIL import Image

from rastersync.core.models import SyncConfig
from rastersync.drivers.registry import DriverRegistry
from rastersync.formats import MBTiles, MBTilesMetadata, TileFolder, register_builtin_drivers
from rastersync.logging import JSONFormatter
from rastersync.sync.manager import SyncManager, run_sync
from rastersync.tiling.copier import CopyBlockError
from rastersync.tiling.geometry import GeometryError

SMALL_AOI = "POLYGON((7 47, 7.5 47, 7.5 47.5, 7 47.5, 7 47))"


@pytest.fixture()
def registry() -> DriverRegistry:
    reg = DriverRegistry()
    register_builtin_drivers(reg)
    return reg


@pytest.fixture()
def source_dir(tmp_path: Path) -> Path:
    root = tmp_path / "src"
    layer = TileFolder(root / "base", "png")
    for level in (0, 1):
        for x in range(1 << level):
            for y in range(1 << level):
                layer.set_raw(level, x, y, f"{level}/{x}/{y}".encode())
    return root


def _config(source_dir: Path, destination: Path, **overrides) -> SyncConfig:  # type: ignore[no-untyped-def]
    config = SyncConfig(
        source=str(source_dir),
        source_driver="folder",
        destination=str(destination),
        level_min=0,
        level_max=1,
    )
    for key, value in overrides.items():
        setattr(config, key, value)
    return config


def test_sync_world_into_mbtiles(tmp_path: Path, source_dir: Path, registry: DriverRegistry) -> None:
    destination = tmp_path / "out.mbtiles"

    report = run_sync(_config(source_dir, destination), registry=registry)

    assert report.processed == 5
    assert report.by_level() == {0: 1, 1: 4}
    with MBTiles.open(destination) as mbtiles:
        assert mbtiles.list_layers() == ["data"]
        assert mbtiles.get_raw(1, 1, 0) == b"1/1/0"


def test_second_run_skips_existing_tiles(tmp_path: Path, source_dir: Path, registry: DriverRegistry) -> None:
    destination = tmp_path / "out.mbtiles"
    run_sync(_config(source_dir, destination), registry=registry)

    report = run_sync(_config(source_dir, destination), registry=registry)

    assert report.processed == 0


def test_replace_clears_and_recopies(tmp_path: Path, source_dir: Path, registry: DriverRegistry) -> None:
    destination = tmp_path / "out.mbtiles"
    with MBTiles.open(destination) as mbtiles:
        mbtiles.create_layer("data")
        mbtiles.set_raw(1, 0, 0, b"stale")
        mbtiles.set_raw(3, 0, 0, b"untouched")

    report = run_sync(_config(source_dir, destination, replace=True), registry=registry)

    assert report.processed == 5
    with MBTiles.open(destination) as mbtiles:
        assert mbtiles.get_raw(1, 0, 0) == b"1/0/0"
        assert mbtiles.get_raw(3, 0, 0) == b"untouched"


def test_area_of_interest_limits_tiles(tmp_path: Path, source_dir: Path, registry: DriverRegistry) -> None:
    destination = tmp_path / "out.mbtiles"

    report = run_sync(_config(source_dir, destination, aoi=SMALL_AOI), registry=registry)

    assert report.by_level() == {0: 1, 1: 1}
    assert [len(level.block) for level in report.levels] == [1, 1]
    with MBTiles.open(destination) as mbtiles:
        assert mbtiles.contains(1, 1, 1) is True
        assert mbtiles.contains(1, 0, 0) is False


def test_transcodes_into_jpg_folder(
    tmp_path: Path, registry: DriverRegistry, caplog: pytest.LogCaptureFixture
) -> None:
    caplog.set_level(logging.DEBUG)
    source = tmp_path / "source.mbtiles"
    with MBTiles.open(source) as mbtiles:
        mbtiles.create_layer("jpg world")
        mbtiles.set(0, 0, 0, Image.new("RGB", (256, 256), (255, 0, 0)))
    destination = tmp_path / "tiles"
    destination.mkdir()

    report = run_sync(
        SyncConfig(
            source=str(source),
            destination=str(destination),
            destination_driver="jpgfolder",
            level_min=0,
            level_max=0,
        ),
        registry=registry,
    )

    assert report.processed == 1
    with Image.open(destination / "data" / "0" / "0" / "0.jpg") as image:
        assert image.format == "JPEG"
    assert any(record.getMessage() == "transcoding enabled" for record in caplog.records)


def test_debug_logging_into_new_mbtiles(
    tmp_path: Path, source_dir: Path, registry: DriverRegistry, caplog: pytest.LogCaptureFixture
) -> None:
    caplog.set_level(logging.DEBUG)
    destination = tmp_path / "out.mbtiles"
    MBTiles.create(destination, MBTilesMetadata(name="data")).close()

    report = run_sync(_config(source_dir, destination), registry=registry)

    assert report.processed == 5
    formatter = JSONFormatter()
    payloads = [json.loads(formatter.format(record)) for record in caplog.records]
    created = [p for p in payloads if p["message"] == "created mbtiles"]
    assert created[0]["layer"] == "data"
    done = [p for p in payloads if p["message"] == "level done"]
    assert [(p["level"], p["processed"]) for p in done] == [(0, 1), (1, 4)]
    assert any(p["message"] == "opening tile source" and p["driver"] == "folder" for p in payloads)


def test_invalid_settings(tmp_path: Path, source_dir: Path, registry: DriverRegistry) -> None:
    with pytest.raises(ValueError):
        SyncManager(_config(source_dir, tmp_path / "o.mbtiles", level_min=3, level_max=1), registry=registry)
    with pytest.raises(GeometryError):
        SyncManager(_config(source_dir, tmp_path / "o.mbtiles", aoi="POLYGON((0 0"), registry=registry)


def test_copy_failure_propagates(tmp_path: Path, source_dir: Path, registry: DriverRegistry) -> None:
    destination = tmp_path / "tiles"
    destination.mkdir()

    # source tiles are not decodable images
    with pytest.raises(CopyBlockError) as excinfo:
        run_sync(_config(source_dir, destination, destination_driver="jpgfolder"), registry=registry)

    assert excinfo.value.processed == 0
