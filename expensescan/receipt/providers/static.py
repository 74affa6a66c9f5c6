"""Provider that returns preset text; used for offline runs and tests."""

from __future__ import annotations

from expensescan.domain.receipt import ExtractionResult, ProcessedImage


class StaticTextProvider:
    def __init__(self, text: str, *, name: str = "static", available: bool = True) -> None:
        self.name = name
        self.text = text
        self.available = available
        self.calls = 0

    def is_available(self) -> bool:
        return self.available

    def extract_text(self, image: ProcessedImage) -> ExtractionResult:
        self.calls += 1
        return ExtractionResult.ok(
            self.text,
            provider=self.name,
            processing_time_ms=0,
            quality=image.quality,
            width=image.width,
            height=image.height,
        )
