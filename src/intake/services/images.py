"""Downscale and encode meal photos before they are sent for estimation."""

import base64
import binascii
import io
import logging

from PIL import Image, ImageOps, UnidentifiedImageError

DEFAULT_MAX_SIZE = 512
JPEG_QUALITY = 85

_logger = logging.getLogger(__name__)


class ImageProcessingError(ValueError):
    """Raised when an uploaded image cannot be decoded or encoded."""


def normalize_image(image_bytes: bytes, max_size: int = DEFAULT_MAX_SIZE) -> str:
    """Return a JPEG data URL whose longest side is at most ``max_size``."""
    try:
        with Image.open(io.BytesIO(image_bytes)) as opened:
            image = ImageOps.exif_transpose(opened)
            image = image.convert("RGB")
            width, height = bounded_size(image.width, image.height, max_size)
            if (width, height) != image.size:
                image = image.resize((width, height), Image.Resampling.LANCZOS)
            buffer = io.BytesIO()
            image.save(buffer, format="JPEG", quality=JPEG_QUALITY)
    except (
        Image.DecompressionBombError,
        UnidentifiedImageError,
        OSError,
        ValueError,
    ) as exc:
        _logger.warning("Failed to process image: %s", exc)
        raise ImageProcessingError("Failed to process image.") from exc
    encoded = base64.b64encode(buffer.getvalue()).decode("utf-8")
    return f"data:image/jpeg;base64,{encoded}"


def bounded_size(width: int, height: int, max_size: int) -> tuple[int, int]:
    """Scale dimensions so the longest side fits, keeping the aspect ratio."""
    if width > height:
        if width > max_size:
            return max_size, max(1, round(height * max_size / width))
    elif height > max_size:
        return max(1, round(width * max_size / height)), max_size
    return width, height


def decode_image_payload(value: str) -> bytes:
    """Decode a base64 string or data URL sent by a client."""
    payload = value.strip()
    if payload.startswith("data:"):
        _, _, payload = payload.partition(",")
    try:
        data = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ImageProcessingError("Failed to process image.") from exc
    if not data:
        raise ImageProcessingError("Failed to process image.")
    return data
