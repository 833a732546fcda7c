import io

import pytest
from PIL import Image

from rastersync.tiling import codec


def _image_bytes(pil_format: str, mode: str = "RGB") -> bytes:
    color = (10, 20, 30, 255) if mode == "RGBA" else (10, 20, 30)
    buffer = io.BytesIO()
    Image.new(mode, (16, 8), color).save(buffer, format=pil_format)
    return buffer.getvalue()


@pytest.mark.parametrize("name, expected", [("png", "png"), ("JPG", "jpg"), ("jpeg", "jpg"), (" Png ", "png")])
def test_normalize_format(name: str, expected: str) -> None:
    assert codec.normalize_format(name) == expected


@pytest.mark.parametrize("name", ["webp", "", "tiff"])
def test_normalize_format_rejects_other_encodings(name: str) -> None:
    with pytest.raises(codec.UnsupportedFormatError):
        codec.normalize_format(name)


def test_detect_format() -> None:
    assert codec.detect_format(_image_bytes("PNG")) == "png"
    assert codec.detect_format(_image_bytes("JPEG")) == "jpg"
    assert codec.detect_format(b"not an image") is None


def test_decode_rejects_mismatched_data() -> None:
    with pytest.raises(ValueError):
        codec.decode(_image_bytes("PNG"), "jpg")


def test_encode_rgba_as_jpg_drops_alpha() -> None:
    image = Image.new("RGBA", (4, 4), (255, 0, 0, 128))

    data = codec.encode(image, "jpg")

    with Image.open(io.BytesIO(data)) as decoded:
        assert decoded.format == "JPEG"
        assert decoded.mode == "RGB"


def test_transcoder_for_same_format_is_none() -> None:
    assert codec.transcoder_for("png", "png") is None
    assert codec.transcoder_for("jpeg", "JPG") is None


def test_transcoder_converts_png_to_jpg() -> None:
    transcode = codec.transcoder_for("png", "jpg")
    assert transcode is not None

    data = transcode(_image_bytes("PNG", "RGBA"))

    with Image.open(io.BytesIO(data)) as decoded:
        assert decoded.format == "JPEG"
        assert decoded.size == (16, 8)
