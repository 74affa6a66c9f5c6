"""Local Tesseract OCR via pytesseract."""

from __future__ import annotations

import re
import time

import pytesseract
from PIL import Image

from expensescan.domain.receipt import ExtractionResult, ProcessedImage
from expensescan.runtime.logging import get_logger
from expensescan.runtime.settings import TesseractSettings

from .base import elapsed_ms

logger = get_logger(__name__)

# Characters that are normal on receipts besides letters, digits and whitespace.
_EXPECTED_SYMBOLS = set(".,/$@#%&*()-+=:;'\"")
_PRICE_PATTERN = re.compile(r"\d+\.\d{2}")
_DATE_PATTERN = re.compile(r"\d{1,2}[/-]\d{1,2}[/-]\d{2,4}")


def estimate_text_confidence(text: str) -> float:
    """
    Heuristic 0-100 quality estimate for OCR output.

    Tesseract's plain-text mode reports no confidence, so receipt-like
    features (currency, prices, totals, dates) raise the score and a high
    share of unexpected symbols lowers it.
    """
    if not text or not text.strip():
        return 0.0

    confidence = 50.0
    if any(symbol in text for symbol in ("$", "€", "£")):
        confidence += 10
    if _PRICE_PATTERN.search(text):
        confidence += 10
    lowered = text.lower()
    if "total" in lowered or "subtotal" in lowered:
        confidence += 10
    if _DATE_PATTERN.search(text):
        confidence += 5

    garbled = sum(1 for c in text if not c.isalnum() and not c.isspace() and c not in _EXPECTED_SYMBOLS)
    if garbled / len(text) > 0.1:
        confidence -= 20

    return max(0.0, min(100.0, confidence))


class TesseractProvider:
    """Runs the local ``tesseract`` binary; availability is probed once."""

    name = "tesseract"

    def __init__(self, settings: TesseractSettings | None = None, *, probe: bool = True) -> None:
        self.settings = settings or TesseractSettings()
        if self.settings.cmd:
            pytesseract.pytesseract.tesseract_cmd = self.settings.cmd
        self.unavailable_reason: str | None = None
        self._available = False
        if probe:
            self._probe()

    @property
    def config(self) -> str:
        return f"--psm {self.settings.page_seg_mode} --oem {self.settings.oem_mode} -c preserve_interword_spaces=1"

    def _probe(self) -> None:
        try:
            version = pytesseract.get_tesseract_version()
        except (pytesseract.TesseractNotFoundError, OSError) as e:
            self._mark_unavailable(f"Tesseract is not installed or not on PATH: {e}")
            return

        # A blank page should OCR to nothing; a crash means the install is broken.
        blank = Image.new("L", (50, 50), color=255)
        try:
            pytesseract.image_to_string(blank, lang=self.settings.language, config=self.config)
        except pytesseract.TesseractError as e:
            logger.debug("Tesseract smoke test raised %s; engine still usable", e)
        except (pytesseract.TesseractNotFoundError, OSError, RuntimeError) as e:
            self._mark_unavailable(f"Tesseract OCR initialization failed: {e}")
            return

        self._available = True
        logger.info("Tesseract %s initialized (lang=%s)", version, self.settings.language)

    def _mark_unavailable(self, reason: str) -> None:
        self._available = False
        self.unavailable_reason = reason
        logger.warning("%s", reason)

    def is_available(self) -> bool:
        return self._available

    def extract_text(self, image: ProcessedImage) -> ExtractionResult:
        if not self._available:
            return ExtractionResult.failure(
                self.unavailable_reason or "Tesseract OCR is not available",
                provider=self.name,
                quality=image.quality,
            )

        start = time.perf_counter()
        try:
            text = pytesseract.image_to_string(image.image, lang=self.settings.language, config=self.config)
        except pytesseract.TesseractError as e:
            logger.error("Tesseract OCR failed: %s", e)
            return ExtractionResult.failure(
                f"OCR processing failed: {e}",
                provider=self.name,
                processing_time_ms=elapsed_ms(start),
                quality=image.quality,
            )
        except (pytesseract.TesseractNotFoundError, OSError) as e:
            self._mark_unavailable(f"Tesseract native error: {e}")
            return ExtractionResult.failure(
                "OCR native library error. Please ensure Tesseract is properly installed.",
                provider=self.name,
                processing_time_ms=elapsed_ms(start),
                quality=image.quality,
            )

        processing_ms = elapsed_ms(start)
        confidence = estimate_text_confidence(text)
        logger.debug("Tesseract finished in %dms, confidence %.0f", processing_ms, confidence)
        return ExtractionResult.ok(
            text,
            provider=self.name,
            processing_time_ms=processing_ms,
            quality=image.quality,
            text_confidence=confidence,
            width=image.width,
            height=image.height,
        )
