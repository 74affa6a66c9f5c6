"""Composable OCR receipt parser components."""

from .categories import suggest_category
from .common import _parse_amount, _should_skip_item_line
from .confidence import overall_confidence
from .fields_parser import (
    _detect_currency,
    _extract_date,
    _extract_merchant,
    _extract_payment_method,
    _extract_subtotal,
    _extract_tax,
    _extract_total,
)
from .items_text_parser import _extract_items

__all__ = [
    "_detect_currency",
    "_extract_date",
    "_extract_items",
    "_extract_merchant",
    "_extract_payment_method",
    "_extract_subtotal",
    "_extract_tax",
    "_extract_total",
    "_parse_amount",
    "_should_skip_item_line",
    "overall_confidence",
    "suggest_category",
]
