"""Shared pytest fixtures for expensescan tests."""

from __future__ import annotations

import io
from datetime import date

import numpy as np
import pytest
from PIL import Image

from expensescan.domain.receipt import RawImage
from expensescan.runtime.settings import load_settings

# Fixed reference date so the date plausibility window does not drift.
REFERENCE_TODAY = date(2025, 6, 1)


@pytest.fixture(autouse=True)
def _clear_settings_cache():
    load_settings.cache_clear()
    yield
    load_settings.cache_clear()


@pytest.fixture
def today() -> date:
    return REFERENCE_TODAY


def image_bytes(width: int, height: int, fmt: str = "PNG", *, mode: str = "RGB", gradient: bool = True) -> bytes:
    """Encode a synthetic image; a gradient gives the contrast stage something to do."""
    if gradient:
        row = np.linspace(60, 190, width, dtype=np.uint8)
        pixels = np.tile(row, (height, 1))
        img = Image.fromarray(pixels).convert(mode)
    else:
        img = Image.new(mode, (width, height), color="white")
    buffer = io.BytesIO()
    img.save(buffer, format=fmt)
    return buffer.getvalue()


@pytest.fixture
def receipt_image() -> RawImage:
    return RawImage(data=image_bytes(900, 700), filename="receipt.png")


@pytest.fixture
def make_image_bytes():
    return image_bytes
