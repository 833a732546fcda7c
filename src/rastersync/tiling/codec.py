"""Tile image encoding helpers built on Pillow. Only png and jpg are supported."""

from __future__ import annotations

import io
from typing import Callable, Optional

from PIL import Image, UnidentifiedImageError

SUPPORTED_FORMATS = ("png", "jpg")

_PIL_FORMATS = {"png": "PNG", "jpg": "JPEG"}
_ALIASES = {"jpeg": "jpg"}
_JPEG_MODES = {"RGB", "L", "CMYK"}

Transcoder = Callable[[bytes], bytes]


class UnsupportedFormatError(RuntimeError):
    """Raised when an image format outside png/jpg is requested."""


def normalize_format(tile_format: str) -> str:
    """Return the canonical tile format name, rejecting unknown encodings."""

    fmt = (tile_format or "").strip().lower()
    fmt = _ALIASES.get(fmt, fmt)
    if fmt not in SUPPORTED_FORMATS:
        raise UnsupportedFormatError(
            f"Unsupported image format: '{tile_format}'. Only 'jpg' or 'png' allowed."
        )
    return fmt


def decode(raw: bytes, tile_format: str) -> Image.Image:
    """Decode ``raw`` bytes expected to hold an image in ``tile_format``."""

    fmt = normalize_format(tile_format)
    try:
        image = Image.open(io.BytesIO(raw), formats=[_PIL_FORMATS[fmt]])
        image.load()
    except UnidentifiedImageError as exc:
        raise ValueError(f"tile data is not a valid {fmt} image") from exc
    return image


def encode(image: Image.Image, tile_format: str) -> bytes:
    """Encode ``image`` in ``tile_format``."""

    fmt = normalize_format(tile_format)
    if fmt == "jpg" and image.mode not in _JPEG_MODES:
        image = image.convert("RGB")
    elif fmt == "png" and image.mode == "CMYK":
        image = image.convert("RGB")
    buffer = io.BytesIO()
    image.save(buffer, format=_PIL_FORMATS[fmt])
    return buffer.getvalue()


def detect_format(raw: bytes) -> Optional[str]:
    """Return the tile format of ``raw`` bytes, or None when not png/jpg."""

    try:
        with Image.open(io.BytesIO(raw)) as image:
            pil_format = (image.format or "").lower()
    except (UnidentifiedImageError, OSError):
        return None
    fmt = _ALIASES.get(pil_format, pil_format)
    return fmt if fmt in SUPPORTED_FORMATS else None


def transcoder_for(source_format: str, destination_format: str) -> Optional[Transcoder]:
    """Return a function converting between two tile formats.

    ``None`` means the formats already match and bytes must be copied as-is.
    """

    if normalize_format(source_format) == normalize_format(destination_format):
        return None

    def transcode(raw: bytes) -> bytes:
        return encode(decode(raw, source_format), destination_format)

    return transcode
