"""Weighted overall confidence over per-field confidence entries."""

from collections.abc import Mapping

from expensescan.domain.receipt import FieldConfidence, ReceiptField

FIELD_WEIGHTS: dict[ReceiptField, float] = {
    ReceiptField.AMOUNT: 3.0,
    ReceiptField.DATE: 2.0,
    ReceiptField.MERCHANT: 1.0,
    ReceiptField.TAX: 0.5,
}
DEFAULT_WEIGHT = 1.0


def overall_confidence(confidence: Mapping[ReceiptField, FieldConfidence]) -> float:
    """Weighted mean of the scores present in ``confidence``; 0.0 when empty.

    Absent fields contribute to neither the numerator nor the denominator.
    """
    total_weight = 0.0
    weighted = 0.0
    for field_name, entry in confidence.items():
        weight = FIELD_WEIGHTS.get(field_name, DEFAULT_WEIGHT)
        weighted += entry.score * weight
        total_weight += weight
    return weighted / total_weight if total_weight > 0 else 0.0
