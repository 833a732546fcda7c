"""Read tiles from OpenStreetMap-like HTTP tile servers.

See http://wiki.openstreetmap.org/wiki/Tile_usage_policy before pointing this
reader at the OpenStreetMap servers. Bulk downloading is strongly discouraged.
"""

from __future__ import annotations

import threading
from typing import List, Optional
from urllib.parse import urlsplit

import requests

from rastersync.logging import get_logger
from rastersync.tiling.base import TileReader
from rastersync.tiling.codec import normalize_format

LOGGER = get_logger(__name__)

DEFAULT_TIMEOUT = 30
USER_AGENT = "rastersync/0.1"


class ZxyServerError(RuntimeError):
    """Raised when a tile server answers with an unexpected status."""


def is_url_template(dsn: str) -> bool:
    if not dsn.startswith("http"):
        return False
    if dsn.count("%d") == 3:
        return True
    return all(token in dsn for token in ("{z}", "{x}", "{y}"))


class ZxyServer:
    """Tile reader for a URL template.

    The template holds either three ``%d`` (level, x and y in this order) or
    ``{z}``, ``{x}`` and ``{y}`` placeholders, e.g.
    ``http://a.tile.openstreetmap.org/%d/%d/%d.png``. Rows are flipped to the
    OSM convention before each request.
    """

    def __init__(self, url: str, *, timeout: float = DEFAULT_TIMEOUT) -> None:
        self._url = url
        self._timeout = timeout
        self._local = threading.local()

    @property
    def url(self) -> str:
        return self._url

    def tile_format(self) -> str:
        filename = urlsplit(self._url).path.rsplit("/", 1)[-1]
        _, _, suffix = filename.rpartition(".")
        return normalize_format(suffix if "." in filename else "")

    def tile_url(self, level: int, x: int, y: int) -> str:
        y_osm = (1 << level) - y - 1
        if "%d" in self._url:
            return self._url % (level, x, y_osm)
        return self._url.format(z=level, x=x, y=y_osm)

    def get_raw(self, level: int, x: int, y: int) -> Optional[bytes]:
        url = self.tile_url(level, x, y)
        LOGGER.debug("fetching tile", extra={"url": url})
        response = self._session().get(url, timeout=self._timeout)
        if response.status_code == 404:
            return None
        if response.status_code != 200:
            raise ZxyServerError(f"Failed to download tile {url}: {response.status_code}")
        return response.content

    def contains(self, level: int, x: int, y: int) -> bool:
        url = self.tile_url(level, x, y)
        response = self._session().head(url, timeout=self._timeout, allow_redirects=True)
        return response.status_code == 200

    def close(self) -> None:
        session = getattr(self._local, "session", None)
        if session is not None:
            session.close()
            self._local.session = None

    def _session(self) -> requests.Session:
        # requests.Session is not thread-safe: one per calling thread
        session = getattr(self._local, "session", None)
        if session is None:
            session = requests.Session()
            session.headers["User-Agent"] = USER_AGENT
            self._local.session = session
        return session


class SingleLayerSource:
    """Expose a lone reader as a source with one layer named after the DSN."""

    def __init__(self, reader: TileReader, name: str) -> None:
        self._reader = reader
        self._name = name

    @property
    def reader(self) -> TileReader:
        return self._reader

    def list_layers(self) -> List[str]:
        return [self._name]

    def open_layer(self, name: str) -> TileReader:
        return self._reader

    def close(self) -> None:
        close = getattr(self._reader, "close", None)
        if callable(close):
            close()


class ZxyServerDriver:
    """Driver opening ``http`` URL templates."""

    def __init__(self, *, timeout: float = DEFAULT_TIMEOUT) -> None:
        self._timeout = timeout

    def can_open(self, dsn: str) -> bool:
        return is_url_template(dsn)

    def open_tile_source(self, dsn: str) -> SingleLayerSource:
        return SingleLayerSource(ZxyServer(dsn, timeout=self._timeout), dsn)
