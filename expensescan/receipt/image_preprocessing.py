"""Image normalization applied before OCR.

Stages run in a fixed order: downscale oversized images, convert to
grayscale, stretch contrast, then sharpen. Each stage is a pure function on a
Pillow image so it can be exercised on its own.
"""

from __future__ import annotations

import numpy as np
from PIL import Image

from expensescan.domain.errors import ImagePreprocessingFailed
from expensescan.domain.receipt import ProcessedImage, QualityRating
from expensescan.runtime.logging import get_logger
from expensescan.runtime.settings import PreprocessingSettings

logger = get_logger(__name__)

# Windows narrower than this get widened before stretching.
MIN_CONTRAST_RANGE = 50
CONTRAST_WIDEN = 20

SHARPEN_KERNEL = np.array([[0, -1, 0], [-1, 5, -1], [0, -1, 0]], dtype=np.int32)


def resize_if_needed(img: Image.Image, max_width: int, max_height: int) -> Image.Image:
    """Downscale preserving aspect ratio when either side exceeds its limit."""
    width, height = img.size
    if width <= max_width and height <= max_height:
        return img

    scale = min(max_width / width, max_height / height)
    new_width = max(1, int(width * scale))
    new_height = max(1, int(height * scale))
    logger.debug("Resizing %dx%d -> %dx%d", width, height, new_width, new_height)
    return img.resize((new_width, new_height), Image.Resampling.BILINEAR)


def to_grayscale(img: Image.Image) -> Image.Image:
    if img.mode == "L":
        return img
    return img.convert("L")


def enhance_contrast(img: Image.Image) -> Image.Image:
    """Linearly stretch the grayscale range to 0-255."""
    pixels = np.asarray(img, dtype=np.int32)
    if pixels.size == 0:
        return img

    lo = int(pixels.min())
    hi = int(pixels.max())
    if hi - lo < MIN_CONTRAST_RANGE:
        lo = max(0, lo - CONTRAST_WIDEN)
        hi = min(255, hi + CONTRAST_WIDEN)
    if hi == lo:
        return img

    stretched = ((pixels - lo) * 255 / (hi - lo)).astype(np.int32)
    return Image.fromarray(np.clip(stretched, 0, 255).astype(np.uint8))


def sharpen(img: Image.Image) -> Image.Image:
    """Apply a 3x3 sharpening kernel to interior pixels; the border is kept as-is."""
    pixels = np.asarray(img, dtype=np.int32)
    height, width = pixels.shape[:2]
    if height < 3 or width < 3:
        return img

    out = pixels.copy()
    acc = np.zeros((height - 2, width - 2), dtype=np.int32)
    for dy in range(3):
        for dx in range(3):
            weight = SHARPEN_KERNEL[dy, dx]
            if weight:
                acc += weight * pixels[dy : dy + height - 2, dx : dx + width - 2]
    out[1:-1, 1:-1] = np.clip(acc, 0, 255)
    return Image.fromarray(out.astype(np.uint8))


def assess_quality(img: Image.Image | None) -> QualityRating:
    if img is None:
        return QualityRating.POOR
    return QualityRating.from_dimensions(*img.size)


class ImagePreprocessor:
    """Normalize decoded receipt images for OCR."""

    def __init__(self, settings: PreprocessingSettings | None = None) -> None:
        self.settings = settings or PreprocessingSettings()

    def process(self, img: Image.Image) -> ProcessedImage:
        """
        Run the normalization stages on ``img``.

        When preprocessing is disabled the image passes through untouched.

        Raises:
            ImagePreprocessingFailed: If any stage raises.
        """
        if not self.settings.enabled:
            return ProcessedImage(image=img, quality=assess_quality(img))

        stages = (
            ("resize", lambda im: resize_if_needed(im, self.settings.max_width, self.settings.max_height)),
            ("grayscale", to_grayscale),
            ("contrast", enhance_contrast),
            ("sharpen", sharpen),
        )
        current = img
        for stage_name, stage in stages:
            try:
                current = stage(current)
            except Exception as e:
                logger.error("Image preprocessing failed at %s stage: %s", stage_name, e)
                raise ImagePreprocessingFailed(f"Image preprocessing failed during {stage_name}: {e}") from e

        quality = assess_quality(current)
        logger.debug("Preprocessed image %dx%d quality=%s", current.size[0], current.size[1], quality.name)
        return ProcessedImage(image=current, quality=quality)
