"""HTTP tile serving for rastersync readers."""

from .app import create_app, parse_tile_path, placeholder_tile, serve

__all__ = ["create_app", "parse_tile_path", "placeholder_tile", "serve"]
