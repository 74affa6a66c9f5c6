"""Merge per-page parse results of a multi-page receipt."""

from __future__ import annotations

from collections import Counter
from collections.abc import Sequence
from dataclasses import dataclass
from decimal import Decimal

from expensescan.domain.errors import OcrExtractionFailed
from expensescan.domain.receipt import (
    ExtractedLineItem,
    FieldConfidence,
    ParsedReceipt,
    QualityRating,
    ReceiptField,
)
from expensescan.runtime.logging import get_logger

from .ocr_parser import overall_confidence

logger = get_logger(__name__)

NO_PAGES_MESSAGE = "Failed to process any of the uploaded images"
DEFAULT_MERGED_CURRENCY = "INR"
# Pages that print one of these carry the authoritative bill total.
INVOICE_TOTAL_MARKERS = ("total invoice amount", "net payable", "total received amount")


@dataclass(frozen=True)
class PageResult:
    """Outcome of one page: a parsed receipt or the failure message."""

    number: int
    receipt: ParsedReceipt | None = None
    error: str | None = None


def _dedupe(items: list[ExtractedLineItem], max_items: int) -> tuple[ExtractedLineItem, ...]:
    seen: set[tuple[str, str]] = set()
    unique: list[ExtractedLineItem] = []
    for item in items:
        if item.dedup_key in seen:
            continue
        seen.add(item.dedup_key)
        unique.append(item)
    return tuple(unique[:max_items])


def _has_invoice_total(receipt: ParsedReceipt) -> bool:
    lowered = receipt.raw_text.lower()
    return any(marker in lowered for marker in INVOICE_TOTAL_MARKERS)


def merge_page_results(pages: Sequence[PageResult], *, max_items: int = 20) -> ParsedReceipt:
    """
    Combine page results into one receipt.

    Merchant, date, subtotal, payment method and category come from the first
    page that has them. The amount comes from the last page printing an
    invoice total, otherwise from the page with the most confident amount.
    Tax is summed, items are concatenated and deduplicated, the most common
    currency wins and the worst image quality is kept. Overall confidence is
    recomputed from the merged confidence map.

    Raises:
        OcrExtractionFailed: If no page parsed successfully.
    """
    parsed = [page.receipt for page in pages if page.receipt is not None]
    if not parsed:
        raise OcrExtractionFailed(NO_PAGES_MESSAGE)

    confidence: dict[ReceiptField, FieldConfidence] = {}
    merchant = None
    receipt_date = None
    subtotal = None
    payment_method = None
    category = None
    amount: Decimal | None = None
    amount_score = 0.0
    tax_total = Decimal("0")
    items: list[ExtractedLineItem] = []
    currencies: Counter[str] = Counter()
    quality: QualityRating | None = None

    for receipt in parsed:
        page_conf = receipt.confidence

        if merchant is None and receipt.merchant and receipt.merchant.strip():
            merchant = receipt.merchant
            if ReceiptField.MERCHANT in page_conf:
                confidence[ReceiptField.MERCHANT] = page_conf[ReceiptField.MERCHANT]

        if receipt.amount is not None:
            amount_conf = page_conf.get(ReceiptField.AMOUNT)
            score = amount_conf.score if amount_conf else 0.5
            invoice_total = _has_invoice_total(receipt)
            if invoice_total or score > amount_score:
                amount = receipt.amount
                amount_score = 1.0 if invoice_total else score
                if amount_conf is not None:
                    confidence[ReceiptField.AMOUNT] = amount_conf

        if receipt_date is None and receipt.date is not None:
            receipt_date = receipt.date
            if ReceiptField.DATE in page_conf:
                confidence[ReceiptField.DATE] = page_conf[ReceiptField.DATE]

        if receipt.tax is not None and receipt.tax > 0:
            tax_total += receipt.tax
            if ReceiptField.TAX not in confidence and ReceiptField.TAX in page_conf:
                confidence[ReceiptField.TAX] = page_conf[ReceiptField.TAX]

        subtotal = subtotal if subtotal is not None else receipt.subtotal
        payment_method = payment_method or receipt.payment_method
        category = category or receipt.suggested_category
        items.extend(receipt.items)
        if receipt.currency:
            currencies[receipt.currency] += 1
        if receipt.image_quality is not None and (quality is None or receipt.image_quality.rank() < quality.rank()):
            quality = receipt.image_quality

    logger.debug(
        "Mean page confidence %.2f over %d pages",
        sum(receipt.overall_confidence for receipt in parsed) / len(parsed),
        len(parsed),
    )

    warnings = [f"Scanned {len(pages)} pages, merged results"]
    raw_text_parts: list[str] = []
    for page in pages:
        if page.receipt is None:
            warnings.append(f"Page {page.number} processing failed: {page.error}")
            continue
        raw_text_parts.append(f"\n--- PAGE {page.number} ---\n{page.receipt.raw_text}")
        warnings.extend(f"Page {page.number}: {warning}" for warning in page.receipt.warnings)

    return ParsedReceipt(
        merchant=merchant,
        amount=amount,
        date=receipt_date,
        tax=tax_total if tax_total > 0 else None,
        subtotal=subtotal,
        currency=currencies.most_common(1)[0][0] if currencies else DEFAULT_MERGED_CURRENCY,
        payment_method=payment_method,
        items=_dedupe(items, max_items),
        confidence=confidence,
        overall_confidence=overall_confidence(confidence),
        suggested_category=category,
        warnings=tuple(warnings),
        raw_text="".join(raw_text_parts),
        image_quality=quality,
    )
