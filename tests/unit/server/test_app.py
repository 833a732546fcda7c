import io
import logging
from typing import Dict, Optional, Tuple

import pytest
from fastapi.testclient import TestClient
from PIL import Image

from rastersync.server.app import create_app, parse_tile_path, placeholder_tile


class MemoryReader:
    def __init__(self, tile_format: str = "png") -> None:
        self._format = tile_format
        self.tiles: Dict[Tuple[int, int, int], bytes] = {}
        self.requests = []

    def tile_format(self) -> str:
        return self._format

    def get_raw(self, level: int, x: int, y: int) -> Optional[bytes]:
        self.requests.append((level, x, y))
        if (level, x, y) == (9, 9, 9):
            raise OSError("broken storage")
        return self.tiles.get((level, x, y))

    def contains(self, level: int, x: int, y: int) -> bool:
        return (level, x, y) in self.tiles


@pytest.mark.parametrize(
    "path, expected",
    [
        ("/tiles/1/0/1.png", (1, 0, 1, "png")),
        ("/tiles/any/sub/path/12/2048/1365.jpeg", (12, 2048, 1365, "jpeg")),
        ("/tiles/1/0/1.gif", None),
        ("/tiles/1/0.png", None),
        ("/1/0/1.png", None),
    ],
)
def test_parse_tile_path(path: str, expected) -> None:  # type: ignore[no-untyped-def]
    assert parse_tile_path(path) == expected


def test_placeholder_is_gray_png() -> None:
    with Image.open(io.BytesIO(placeholder_tile())) as image:
        assert image.format == "PNG"
        assert image.size == (256, 256)
        assert image.getpixel((0, 0)) == (96, 96, 96, 255)


def test_serves_stored_tile() -> None:
    reader = MemoryReader("jpg")
    reader.tiles[(1, 0, 1)] = b"jpeg-bytes"
    client = TestClient(create_app(reader, name="world"))

    response = client.get("/tiles/1/0/1.jpg")

    assert response.status_code == 200
    assert response.content == b"jpeg-bytes"
    assert response.headers["content-type"] == "image/jpeg"


def test_missing_tile_returns_placeholder(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.DEBUG)
    client = TestClient(create_app(MemoryReader()))

    response = client.get("/tiles/layer/3/1/1.png")

    assert response.status_code == 200
    assert response.content == placeholder_tile()
    assert response.headers["content-type"] == "image/png"


def test_zero_is_top_flips_rows() -> None:
    reader = MemoryReader()
    reader.tiles[(1, 0, 1)] = b"top-left"
    client = TestClient(create_app(reader, zero_is_top=True))

    response = client.get("/tiles/1/0/0.png")

    assert response.content == b"top-left"
    assert reader.requests == [(1, 0, 1)]


def test_invalid_path_is_not_found(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.DEBUG)
    client = TestClient(create_app(MemoryReader()))

    assert client.get("/tiles/not-a-tile.png").status_code == 404


def test_read_error_is_not_found(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.DEBUG)
    client = TestClient(create_app(MemoryReader()))

    assert client.get("/tiles/9/9/9.png").status_code == 404
    assert any(record.getMessage() == "tile read failed" for record in caplog.records)


def test_index_page_uses_row_convention() -> None:
    reader = MemoryReader("jpg")

    page = TestClient(create_app(reader, name="World <1>")).get("/").text
    top_page = TestClient(create_app(reader, zero_is_top=True)).get("/").text

    assert "/tiles/{z}/{x}/{-y}.jpg" in page
    assert "World &lt;1&gt;" in page
    assert "/tiles/{z}/{x}/{y}.jpg" in top_page
