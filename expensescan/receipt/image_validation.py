"""Validate and decode uploaded receipt images."""

from __future__ import annotations

import io
import re

from PIL import Image, ImageOps, UnidentifiedImageError

from expensescan.domain.errors import InvalidImage
from expensescan.domain.receipt import RawImage
from expensescan.runtime.logging import get_logger
from expensescan.runtime.settings import UploadSettings

logger = get_logger(__name__)

_SIZE_PATTERN = re.compile(r"^\s*(\d+)\s*([KMG]B)?\s*$", re.IGNORECASE)
_SIZE_MULTIPLIERS = {None: 1, "KB": 1024, "MB": 1024**2, "GB": 1024**3}


def parse_file_size(value: str) -> int:
    """
    Parse a human size string like ``"10MB"`` into bytes.

    ``KB``/``MB``/``GB`` use a 1024 multiplier; a bare number is bytes.

    Raises:
        ValueError: If the string is not a recognised size.
    """
    match = _SIZE_PATTERN.match(value)
    if not match:
        raise ValueError(f"Invalid file size: {value!r}")
    unit = match.group(2).upper() if match.group(2) else None
    return int(match.group(1)) * _SIZE_MULTIPLIERS[unit]


def _extension(filename: str) -> str | None:
    if "." not in filename:
        return None
    ext = filename.rsplit(".", 1)[1].strip().lower()
    return ext or None


def validate_image(raw: RawImage, settings: UploadSettings) -> None:
    """Reject empty, disallowed or oversized uploads before decoding."""
    if not raw.data:
        raise InvalidImage("Image file is empty")

    ext = _extension(raw.filename)
    if ext is None:
        raise InvalidImage(f"File has no extension: {raw.filename!r}")
    if ext not in settings.extensions:
        allowed = ", ".join(sorted(settings.extensions))
        raise InvalidImage(f"File type '{ext}' not allowed. Allowed types: {allowed}")

    max_size = parse_file_size(settings.max_file_size)
    if raw.size > max_size:
        raise InvalidImage(f"File size exceeds maximum allowed size of {settings.max_file_size}")


def decode_image(raw: RawImage, settings: UploadSettings) -> Image.Image:
    """
    Validate ``raw`` and decode it into a Pillow image.

    EXIF orientation is applied so every later stage sees the upright image.

    Raises:
        InvalidImage: If validation fails or the bytes are not a decodable image.
    """
    validate_image(raw, settings)

    try:
        img = Image.open(io.BytesIO(raw.data))
        img.load()
    except (UnidentifiedImageError, OSError, ValueError) as e:
        logger.debug("Failed to decode %s: %s", raw.filename, e)
        raise InvalidImage(f"Could not read image file: {raw.filename}") from e

    img = ImageOps.exif_transpose(img)
    if img is None or img.size[0] == 0 or img.size[1] == 0:
        raise InvalidImage(f"Could not read image file: {raw.filename}")

    if img.mode not in ("RGB", "L"):
        img = img.convert("RGB")

    logger.debug("Decoded %s: %dx%d mode=%s", raw.filename, img.size[0], img.size[1], img.mode)
    return img
