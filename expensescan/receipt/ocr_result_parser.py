"""Parse raw OCR text into a structured, confidence-scored ParsedReceipt."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal

from expensescan.domain.receipt import (
    UNCATEGORIZED,
    ExtractedLineItem,
    ExtractionResult,
    FieldConfidence,
    ParsedReceipt,
    ParsingLimits,
    QualityRating,
    ReceiptField,
)
from expensescan.runtime.logging import get_logger

from .ocr_parser import (
    _detect_currency,
    _extract_date,
    _extract_items,
    _extract_merchant,
    _extract_payment_method,
    _extract_subtotal,
    _extract_tax,
    _extract_total,
    overall_confidence,
    suggest_category,
)

logger = get_logger(__name__)

NO_TEXT_WARNING = "OCR extraction produced no usable text"


@dataclass
class ReceiptDraft:
    """Mutable accumulator for one parse; ``build()`` freezes it."""

    raw_text: str
    processing_time_ms: int = 0
    image_quality: QualityRating | None = None
    merchant: str | None = None
    amount: Decimal | None = None
    date: date | None = None
    tax: Decimal | None = None
    subtotal: Decimal | None = None
    currency: str = "USD"
    payment_method: str | None = None
    items: list[ExtractedLineItem] = field(default_factory=list)
    suggested_category: str = UNCATEGORIZED
    confidence: dict[ReceiptField, FieldConfidence] = field(default_factory=dict)
    warnings: list[str] = field(default_factory=list)

    def record(self, receipt_field: ReceiptField, confidence: FieldConfidence | None) -> None:
        if confidence is not None:
            self.confidence[receipt_field] = confidence

    def build(self) -> ParsedReceipt:
        confidence = dict(self.confidence)
        return ParsedReceipt(
            merchant=self.merchant,
            amount=self.amount,
            date=self.date,
            tax=self.tax,
            subtotal=self.subtotal,
            currency=self.currency,
            payment_method=self.payment_method,
            items=tuple(self.items),
            confidence=confidence,
            overall_confidence=overall_confidence(confidence),
            suggested_category=self.suggested_category,
            warnings=tuple(self.warnings),
            raw_text=self.raw_text,
            image_quality=self.image_quality,
            processing_time_ms=self.processing_time_ms,
        )


def parse_receipt(
    extraction: ExtractionResult,
    *,
    today: date | None = None,
    limits: ParsingLimits | None = None,
) -> ParsedReceipt:
    """
    Parse OCR output into a ParsedReceipt.

    Never raises for missing or ambiguous data: absent fields stay None, and
    uncertainty is carried in the confidence map and warnings.

    Args:
        extraction: Successful OCR result.
        today: Reference date for the date plausibility window (defaults to today).
        limits: Line-item heuristics.
    """
    text = extraction.text or ""
    if not text.strip():
        logger.info("OCR produced no usable text")
        return ParsedReceipt.empty(
            NO_TEXT_WARNING,
            raw_text=text,
            image_quality=extraction.quality,
            processing_time_ms=extraction.processing_time_ms,
        )

    draft = ReceiptDraft(
        raw_text=text,
        processing_time_ms=extraction.processing_time_ms,
        image_quality=extraction.quality,
    )

    draft.merchant, merchant_conf = _extract_merchant(text)
    draft.record(ReceiptField.MERCHANT, merchant_conf)

    draft.amount, amount_conf = _extract_total(text)
    draft.record(ReceiptField.AMOUNT, amount_conf)

    draft.date, date_conf, date_warnings = _extract_date(text, today)
    draft.record(ReceiptField.DATE, date_conf)
    draft.warnings.extend(date_warnings)

    draft.tax, tax_conf = _extract_tax(text)
    draft.record(ReceiptField.TAX, tax_conf)

    draft.subtotal = _extract_subtotal(text)
    draft.payment_method = _extract_payment_method(text)
    draft.currency = _detect_currency(text)
    draft.items = _extract_items(text, limits)
    draft.suggested_category = suggest_category(draft.merchant, text)

    receipt = draft.build()
    logger.debug(
        "Parsed receipt: merchant=%s amount=%s date=%s items=%d confidence=%.2f",
        receipt.merchant,
        receipt.amount,
        receipt.date,
        len(receipt.items),
        receipt.overall_confidence,
    )
    return receipt
