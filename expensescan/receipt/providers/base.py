"""OCR provider interface."""

from __future__ import annotations

import time
from typing import Protocol, runtime_checkable

from expensescan.domain.receipt import ExtractionResult, ProcessedImage


@runtime_checkable
class OcrProvider(Protocol):
    """Anything that can turn a processed image into text."""

    name: str

    def is_available(self) -> bool: ...

    def extract_text(self, image: ProcessedImage) -> ExtractionResult: ...


def elapsed_ms(start: float) -> int:
    """Milliseconds since ``start`` (a ``time.perf_counter()`` value)."""
    return int((time.perf_counter() - start) * 1000)
