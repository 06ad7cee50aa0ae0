"""Tests for meal photo normalization."""

import base64
import io

import pytest
from PIL import Image

from intake.services.images import (
    ImageProcessingError,
    bounded_size,
    decode_image_payload,
    normalize_image,
)

_PREFIX = "data:image/jpeg;base64,"


def _image_bytes(width: int, height: int, mode: str = "RGB", fmt: str = "PNG") -> bytes:
    buffer = io.BytesIO()
    Image.new(mode, (width, height), color=0).save(buffer, format=fmt)
    return buffer.getvalue()


def _decode(data_url: str) -> Image.Image:
    assert data_url.startswith(_PREFIX)
    return Image.open(io.BytesIO(base64.b64decode(data_url[len(_PREFIX) :])))


def test_bounded_size_scales_longest_side() -> None:
    assert bounded_size(1024, 768, 512) == (512, 384)
    assert bounded_size(768, 1024, 512) == (384, 512)
    assert bounded_size(2000, 2000, 512) == (512, 512)


def test_bounded_size_never_upscales() -> None:
    assert bounded_size(300, 200, 512) == (300, 200)
    assert bounded_size(512, 100, 512) == (512, 100)


def test_normalize_image_downscales_to_jpeg() -> None:
    data_url = normalize_image(_image_bytes(1200, 600))

    image = _decode(data_url)
    assert image.format == "JPEG"
    assert image.size == (512, 256)


def test_normalize_image_respects_custom_bound() -> None:
    image = _decode(normalize_image(_image_bytes(400, 800), max_size=200))

    assert image.size == (100, 200)


def test_normalize_image_converts_transparent_images() -> None:
    image = _decode(normalize_image(_image_bytes(64, 32, mode="RGBA")))

    assert image.mode == "RGB"
    assert image.size == (64, 32)


def test_normalize_image_rejects_garbage() -> None:
    with pytest.raises(ImageProcessingError, match="Failed to process image."):
        normalize_image(b"definitely not an image")


def test_decode_image_payload_accepts_data_url_and_plain_base64() -> None:
    raw = _image_bytes(8, 8)
    encoded = base64.b64encode(raw).decode("ascii")

    assert decode_image_payload(encoded) == raw
    assert decode_image_payload(f"data:image/png;base64,{encoded}") == raw


@pytest.mark.parametrize("payload", ["", "data:image/png;base64,", "not base64!"])
def test_decode_image_payload_rejects_invalid_input(payload: str) -> None:
    with pytest.raises(ImageProcessingError):
        decode_image_payload(payload)


def test_normalize_image_rejects_decompression_bomb(monkeypatch) -> None:
    monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 1000)

    with pytest.raises(ImageProcessingError, match="Failed to process image."):
        normalize_image(_image_bytes(100, 100, mode="1"))
