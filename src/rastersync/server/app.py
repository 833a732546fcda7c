"""HTTP tile server exposing a tile reader.

Tiles are served on URLs such as ``/tiles/any/sub/path/{level}/{x}/{y}.png``.
Rows follow the MBTiles convention unless ``zero_is_top`` is set, in which case
the OSM convention (row 0 at the top) is used.
"""

from __future__ import annotations

import html
import io
import re
from functools import lru_cache
from typing import Optional, Tuple

import uvicorn
from fastapi import FastAPI, HTTPException, Response
from fastapi.responses import HTMLResponse
from PIL import Image

from rastersync.logging import get_logger
from rastersync.tiling.base import TileReader
from rastersync.tiling.transform import flip_y

LOGGER = get_logger(__name__)

TILE_PATH_PATTERN = re.compile(r"\A/.*/(\d+)/(\d+)/(\d+)\.(png|jpg|jpeg)\Z")

PLACEHOLDER_COLOR = (96, 96, 96, 255)

_MEDIA_TYPES = {"png": "image/png", "jpg": "image/jpeg"}

MAP_PAGE = """<!doctype html>
<html lang="en">
  <head>
    <link rel="stylesheet" href="https://cdnjs.cloudflare.com/ajax/libs/ol3/3.5.0/ol.css" type="text/css">
    <style>
      html, body, .map {{
        margin: 0;
        padding: 0;
        width: 100%;
        height: 100%;
      }}
    </style>
    <script src="https://cdnjs.cloudflare.com/ajax/libs/ol3/3.5.0/ol.js" type="text/javascript"></script>
    <title>{title} - tile server</title>
  </head>
  <body>
    <div id="map" class="map"></div>
    <script type="text/javascript">
      var map = new ol.Map({{
        target: 'map',
        layers: [
          new ol.layer.Tile({{
            source: new ol.source.XYZ({{
              url: '/tiles/{{z}}/{{x}}/{y_token}.{tile_format}'
            }})
          }})
        ],
        view: new ol.View({{
          center: [0, 0],
          zoom: 1
        }})
      }});
    </script>
  </body>
</html>"""


@lru_cache(maxsize=1)
def placeholder_tile() -> bytes:
    """Return the gray PNG served in place of missing tiles."""

    image = Image.new("RGBA", (256, 256), PLACEHOLDER_COLOR)
    buffer = io.BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()


def parse_tile_path(path: str) -> Optional[Tuple[int, int, int, str]]:
    """Return ``(level, x, y, extension)`` for a tile URL path, else None."""

    match = TILE_PATH_PATTERN.match(path)
    if match is None:
        return None
    level, x, y, ext = match.groups()
    return int(level), int(x), int(y), ext


def create_app(reader: TileReader, *, name: str = "", zero_is_top: bool = False) -> FastAPI:
    """Build the FastAPI application serving ``reader``."""

    app = FastAPI(title=f"{name or 'rastersync'} tile server")

    @app.get("/tiles/{tile_path:path}")
    def tile(tile_path: str) -> Response:
        parsed = parse_tile_path("/tiles/" + tile_path)
        if parsed is None:
            LOGGER.warning("invalid tile url", extra={"path": tile_path})
            raise HTTPException(status_code=404, detail="Not Found")
        level, x, y, _ = parsed
        if zero_is_top:
            y = flip_y(level, y)

        try:
            data = reader.get_raw(level, x, y)
        except Exception as exc:
            LOGGER.error("tile read failed", extra={"level": level, "x": x, "y": y, "error": str(exc)})
            raise HTTPException(status_code=404, detail="Not Found") from exc

        if data is None:
            LOGGER.debug("tile not found", extra={"level": level, "x": x, "y": y})
            return Response(placeholder_tile(), media_type="image/png")
        return Response(data, media_type=_MEDIA_TYPES.get(reader.tile_format(), "application/octet-stream"))

    @app.get("/", response_class=HTMLResponse)
    def index() -> str:
        return MAP_PAGE.format(
            title=html.escape(name or "rastersync"),
            y_token="{y}" if zero_is_top else "{-y}",
            tile_format=reader.tile_format(),
        )

    return app


def serve(app: FastAPI, *, host: str = "127.0.0.1", port: int = 8085) -> None:
    """Run ``app`` with uvicorn until interrupted."""

    LOGGER.info("starting tile server", extra={"host": host, "port": port})
    uvicorn.run(app, host=host, port=port, log_level="info")
