"""End-to-end tests for OCR text to ParsedReceipt parsing."""

from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest

from expensescan.domain.receipt import (
    UNCATEGORIZED,
    ConfidenceLevel,
    ExtractionResult,
    FieldConfidence,
    QualityRating,
    ReceiptField,
)
from expensescan.receipt.ocr_parser import overall_confidence, suggest_category
from expensescan.receipt.ocr_parser.fields_parser import MULTIPLE_DATES_WARNING
from expensescan.receipt.ocr_result_parser import NO_TEXT_WARNING, parse_receipt

STAR_BAZAAR_TEXT = "STAR BAZAAR\n...\nTOTAL: Rs. 1,245.50\n12/06/2024\nUPI\n"

BAKERY_TEXT = """Corner Bakery
03/05/2025
Coffee x2 7.00
Muffin 3.25
Subtotal 10.25
Sales Tax 0.82
TOTAL 11.07
VISA ****1234
"""


def _extraction(text: str, quality: QualityRating = QualityRating.GOOD) -> ExtractionResult:
    return ExtractionResult.ok(text, provider="static", processing_time_ms=12, quality=quality)


def test_indian_grocery_receipt(today: date) -> None:
    receipt = parse_receipt(_extraction(STAR_BAZAAR_TEXT), today=today)

    assert receipt.merchant == "STAR BAZAAR"
    assert receipt.amount == Decimal("1245.50")
    assert receipt.date == date(2024, 6, 12)
    assert receipt.payment_method == "UPI"
    assert receipt.currency == "INR"
    assert receipt.suggested_category == "Groceries"
    for receipt_field in (ReceiptField.MERCHANT, ReceiptField.AMOUNT, ReceiptField.DATE):
        assert receipt.confidence[receipt_field].level is ConfidenceLevel.HIGH
    assert ReceiptField.TAX not in receipt.confidence
    assert receipt.overall_confidence == pytest.approx(0.9)
    assert receipt.warnings == ()
    assert receipt.raw_text == STAR_BAZAAR_TEXT
    assert receipt.image_quality is QualityRating.GOOD
    assert receipt.processing_time_ms == 12


def test_us_cafe_receipt(today: date) -> None:
    receipt = parse_receipt(_extraction(BAKERY_TEXT), today=today)

    assert receipt.merchant == "Corner Bakery"
    assert receipt.confidence[ReceiptField.MERCHANT].level is ConfidenceLevel.LOW
    assert receipt.amount == Decimal("11.07")
    assert receipt.subtotal == Decimal("10.25")
    assert receipt.tax == Decimal("0.82")
    assert receipt.date == date(2025, 5, 3)
    assert receipt.payment_method == "Credit Card"
    assert receipt.currency == "USD"
    assert receipt.suggested_category == "Food & Dining"
    assert [(i.description, i.quantity, i.total_price) for i in receipt.items] == [
        ("Coffee", 2, Decimal("7.00")),
        ("Muffin", 1, Decimal("3.25")),
    ]
    # merchant LOW (1.0), amount HIGH (3.0), date HIGH (2.0), tax HIGH (0.5)
    assert receipt.overall_confidence == pytest.approx((0.3 + 2.7 + 1.8 + 0.45) / 6.5)


@pytest.mark.parametrize("text", ["", "   \n\t\n"])
def test_blank_text_gives_empty_receipt(text: str, today: date) -> None:
    receipt = parse_receipt(_extraction(text, QualityRating.POOR), today=today)

    assert receipt.warnings == (NO_TEXT_WARNING,)
    assert receipt.overall_confidence == 0.0
    assert receipt.confidence == {}
    assert receipt.merchant is None
    assert receipt.amount is None
    assert receipt.items == ()
    assert receipt.image_quality is QualityRating.POOR


def test_multiple_dates_add_warning(today: date) -> None:
    receipt = parse_receipt(_extraction("Corner Bakery\n12/01/2024\n15/03/2024\nTOTAL 5.00"), today=today)

    assert receipt.date == date(2024, 3, 15)
    assert receipt.confidence[ReceiptField.DATE].level is ConfidenceLevel.MEDIUM
    assert receipt.warnings == (MULTIPLE_DATES_WARNING,)


def test_single_date_without_total_label(today: date) -> None:
    receipt = parse_receipt(_extraction("Corner Bakery\n03/05/2025\nCoffee $3.50\nMuffin $2.25"), today=today)

    assert receipt.date == date(2025, 5, 3)
    assert receipt.confidence[ReceiptField.DATE].level is ConfidenceLevel.HIGH
    assert receipt.amount == Decimal("3.50")
    assert receipt.confidence[ReceiptField.AMOUNT].level is ConfidenceLevel.MEDIUM
    assert receipt.warnings == ()


def test_confidence_map_is_read_only(today: date) -> None:
    receipt = parse_receipt(_extraction(STAR_BAZAAR_TEXT), today=today)

    with pytest.raises(TypeError):
        receipt.confidence[ReceiptField.TAX] = FieldConfidence.low("edited")  # type: ignore[index]

    updated = receipt.with_updates(confidence={ReceiptField.TAX: FieldConfidence.high("labeled")})
    with pytest.raises(TypeError):
        updated.confidence[ReceiptField.DATE] = FieldConfidence.low("edited")  # type: ignore[index]


def test_unparsable_text_still_returns_receipt(today: date) -> None:
    receipt = parse_receipt(_extraction("@@@ ### !!!"), today=today)

    assert receipt.merchant is None
    assert receipt.amount is None
    assert receipt.date is None
    assert receipt.suggested_category == UNCATEGORIZED
    assert receipt.overall_confidence == pytest.approx(0.3)


def test_to_dict_is_json_ready(today: date) -> None:
    data = parse_receipt(_extraction(BAKERY_TEXT), today=today).to_dict()

    assert data["amount"] == "11.07"
    assert data["date"] == "2025-05-03"
    assert data["image_quality"] == "GOOD"
    assert data["confidence"]["AMOUNT"]["level"] == "HIGH"
    assert data["items"][0] == {
        "description": "Coffee",
        "quantity": 2,
        "unit_price": "3.50",
        "total_price": "7.00",
        "confidence": "MEDIUM",
    }


@pytest.mark.parametrize(
    ("merchant", "text", "expected"),
    [
        ("STAR BAZAAR", "", "Groceries"),
        ("Green Leaf Cafe", "latte", "Food & Dining"),
        ("Indian Oil", "petrol", "Transportation"),
        ("Apollo Pharmacy", "", "Healthcare"),
        (None, "PVR cinemas", "Entertainment"),
        ("Zeta", "thank you", UNCATEGORIZED),
    ],
)
def test_suggest_category(merchant: str | None, text: str, expected: str) -> None:
    assert suggest_category(merchant, text) == expected


def test_overall_confidence_weights() -> None:
    assert overall_confidence({}) == 0.0
    confidence = {
        ReceiptField.AMOUNT: FieldConfidence.high("labeled"),
        ReceiptField.MERCHANT: FieldConfidence.low("guessed"),
    }
    assert overall_confidence(confidence) == pytest.approx((2.7 + 0.3) / 4.0)
