"""Runtime orchestration of the receipt OCR pipeline (non-HTTP)."""

from __future__ import annotations

import time
from collections.abc import Sequence
from datetime import date

from expensescan.domain.errors import ReceiptProcessingError
from expensescan.domain.receipt import ParsedReceipt, QualityRating, RawImage
from expensescan.receipt.image_preprocessing import ImagePreprocessor
from expensescan.receipt.image_validation import decode_image
from expensescan.receipt.ocr_result_parser import parse_receipt
from expensescan.receipt.page_merge import PageResult, merge_page_results
from expensescan.receipt.providers import ProviderRegistry, build_default_registry
from expensescan.runtime.logging import get_logger
from expensescan.runtime.settings import Settings, load_settings

logger = get_logger(__name__)

POOR_QUALITY_WARNING = "Image quality is poor - OCR results may be inaccurate"


class ReceiptPipeline:
    """Validate, normalize, OCR and parse receipt images."""

    def __init__(self, settings: Settings, registry: ProviderRegistry) -> None:
        self.settings = settings
        self.registry = registry
        self.preprocessor = ImagePreprocessor(settings.preprocessing)

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> ReceiptPipeline:
        settings = settings or load_settings()
        return cls(settings, build_default_registry(settings))

    def process(self, raw: RawImage, *, today: date | None = None) -> ParsedReceipt:
        """
        Run one image through the whole pipeline.

        Raises:
            InvalidImage: If the upload is rejected or cannot be decoded.
            ImagePreprocessingFailed: If normalization fails.
            NoProviderAvailable: If no OCR provider can be used.
            OcrExtractionFailed: If the OCR provider fails or times out.
        """
        start = time.perf_counter()
        logger.info("Processing receipt image: %s (%d bytes)", raw.filename, raw.size)

        decoded = decode_image(raw, self.settings.upload)
        processed = self.preprocessor.process(decoded)
        extraction = self.registry.extract(processed)
        receipt = parse_receipt(extraction, today=today, limits=self.settings.parsing)

        warnings = list(receipt.warnings)
        if processed.quality is QualityRating.POOR:
            warnings.append(POOR_QUALITY_WARNING)

        elapsed = int((time.perf_counter() - start) * 1000)
        receipt = receipt.with_updates(
            warnings=tuple(warnings),
            image_quality=processed.quality,
            processing_time_ms=elapsed,
        )
        logger.info(
            "Receipt processed in %dms via %s. Merchant: %s, Amount: %s, Confidence: %.2f",
            elapsed,
            extraction.provider,
            receipt.merchant,
            receipt.amount,
            receipt.overall_confidence,
        )
        return receipt

    def process_pages(self, raws: Sequence[RawImage], *, today: date | None = None) -> ParsedReceipt:
        """
        Process several images as pages of one receipt and merge them.

        A failing page becomes a warning; only when every page fails is an
        OcrExtractionFailed raised.
        """
        start = time.perf_counter()
        logger.info("Processing %d receipt images (multi-page scan)", len(raws))

        pages: list[PageResult] = []
        for number, raw in enumerate(raws, start=1):
            logger.debug("Processing page %d of %d: %s", number, len(raws), raw.filename)
            try:
                pages.append(PageResult(number=number, receipt=self.process(raw, today=today)))
            except ReceiptProcessingError as e:
                logger.warning("Failed to process page %d: %s", number, e)
                pages.append(PageResult(number=number, error=str(e)))

        merged = merge_page_results(pages, max_items=self.settings.parsing.max_items)
        elapsed = int((time.perf_counter() - start) * 1000)
        logger.info(
            "Multi-page receipt scan completed in %dms. Merchant: %s, Amount: %s, Items: %d",
            elapsed,
            merged.merchant,
            merged.amount,
            len(merged.items),
        )
        return merged.with_updates(processing_time_ms=elapsed)

    def is_available(self) -> bool:
        return self.registry.is_any_available()

    def active_provider(self) -> str | None:
        return self.registry.active_provider_name()
