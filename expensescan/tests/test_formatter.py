"""Tests for the plain-text receipt summary."""

from __future__ import annotations

from datetime import date
from decimal import Decimal

from expensescan.domain.receipt import (
    ConfidenceLevel,
    ExtractedLineItem,
    FieldConfidence,
    ParsedReceipt,
    QualityRating,
    ReceiptField,
)
from expensescan.receipt.formatter import format_receipt


def test_format_receipt() -> None:
    receipt = ParsedReceipt(
        merchant="STAR BAZAAR",
        amount=Decimal("1245.5"),
        date=date(2024, 6, 12),
        currency="INR",
        items=(
            ExtractedLineItem(
                description="TOOR DAL",
                quantity=2,
                unit_price=Decimal("45.00"),
                total_price=Decimal("90.00"),
                confidence=ConfidenceLevel.HIGH,
            ),
        ),
        confidence={ReceiptField.AMOUNT: FieldConfidence.high("Total amount found with keyword label")},
        overall_confidence=0.9,
        warnings=("Image quality is poor",),
        image_quality=QualityRating.POOR,
    )

    output = format_receipt(receipt)
    lines = output.splitlines()

    assert lines[0] == "Receipt"
    assert "STAR BAZAAR" in lines[1]
    assert lines[3].rstrip().endswith("1245.50 INR  ; HIGH - Total amount found with keyword label")
    assert "  Overall confidence: 90%" in lines
    assert "  Image quality: POOR" in lines
    assert "2 x TOOR DAL" in output
    assert output.endswith("Warnings\n  ! Image quality is poor")


def test_format_missing_fields() -> None:
    output = format_receipt(ParsedReceipt())

    assert "Merchant  " in output
    assert "Items" not in output
    assert "Warnings" not in output
