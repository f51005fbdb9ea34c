"""Validation of client-supplied base64 images."""

from __future__ import annotations

import re
from typing import Final

MAX_IMAGE_BYTES: Final[int] = 10 * 1024 * 1024
PREVIEW_CHARS: Final[int] = 100
DEFAULT_PREVIEW_PREFIX: Final[str] = "data:image/jpeg;base64"

_DATA_URL = re.compile(r"^data:image/(jpeg|jpg|png|webp|gif);base64,")
_BASE64_BODY = re.compile(r"^[A-Za-z0-9+/=]+$")


def _decoded_size(base64_data: str) -> float:
    return len(base64_data) * 3 / 4


def validate_image_base64(image: object) -> str:
    """Return the image string if it is an acceptable base64 image.

    Accepts either a ``data:image/...;base64,`` URL or bare base64.

    Raises:
        ValueError: With a user-facing message describing the problem.
    """
    if not image or not isinstance(image, str):
        raise ValueError("Image data is required")

    if image.startswith("data:"):
        if not _DATA_URL.match(image):
            raise ValueError("Unsupported image format (JPEG, PNG, WebP and GIF only)")
        body = image.split(",", 1)[1]
        if not body:
            raise ValueError("Invalid image data format")
    else:
        body = image
        if not _BASE64_BODY.match(body):
            raise ValueError("Invalid base64 format")

    if _decoded_size(body) > MAX_IMAGE_BYTES:
        raise ValueError("Image is too large (max 10MB)")
    return image


def image_preview(image: str | None) -> str | None:
    """Return a short data-URL preview suitable for storing with a record."""
    if not image:
        return None
    if image.startswith("data:"):
        prefix, _, body = image.partition(",")
        return f"{prefix},{body[:PREVIEW_CHARS]}..."
    return f"{DEFAULT_PREVIEW_PREFIX},{image[:PREVIEW_CHARS]}..."
