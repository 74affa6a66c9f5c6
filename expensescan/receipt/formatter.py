"""Format ParsedReceipt data as a plain-text summary."""

from decimal import Decimal

from expensescan.domain.receipt import ParsedReceipt, ReceiptField


def _format_amount(value: Decimal | None, currency: str | None) -> str:
    if value is None:
        return "-"
    return f"{value:.2f} {currency or ''}".rstrip()


def _format_rows_aligned(rows: list[tuple[str, str, str | None]], indent: str = "  ") -> list[str]:
    """
    Format label/value rows with aligned values and optional trailing notes.

    Args:
        rows: List of (label, value, note_or_none) tuples
        indent: Indentation prefix for each line
    """
    if not rows:
        return []

    max_label_len = max(len(label) for label, _, _ in rows)
    max_value_len = max(len(value) for _, value, _ in rows)

    lines = []
    for label, value, note in rows:
        base = f"{indent}{label.ljust(max_label_len)}  {value.rjust(max_value_len)}"
        lines.append(f"{base}  ; {note}" if note else base)
    return lines


def format_receipt(receipt: ParsedReceipt) -> str:
    """Render a receipt summary: fields with confidence, items, then warnings."""

    def note(receipt_field: ReceiptField) -> str | None:
        entry = receipt.confidence.get(receipt_field)
        if entry is None:
            return None
        return f"{entry.level.name} - {entry.reason}"

    rows: list[tuple[str, str, str | None]] = [
        ("Merchant", receipt.merchant or "-", note(ReceiptField.MERCHANT)),
        ("Date", receipt.date.isoformat() if receipt.date else "-", note(ReceiptField.DATE)),
        ("Amount", _format_amount(receipt.amount, receipt.currency), note(ReceiptField.AMOUNT)),
        ("Tax", _format_amount(receipt.tax, receipt.currency), note(ReceiptField.TAX)),
        ("Subtotal", _format_amount(receipt.subtotal, receipt.currency), None),
        ("Payment", receipt.payment_method or "-", None),
        ("Category", receipt.suggested_category or "-", None),
    ]

    lines = ["Receipt"]
    lines.extend(_format_rows_aligned(rows))
    lines.append(f"  Overall confidence: {receipt.overall_confidence:.0%}")
    if receipt.image_quality is not None:
        lines.append(f"  Image quality: {receipt.image_quality.name}")

    if receipt.items:
        lines.append("")
        lines.append("Items")
        item_rows = [
            (
                f"{item.quantity} x {item.description}",
                _format_amount(item.total_price, receipt.currency),
                item.confidence.name,
            )
            for item in receipt.items
        ]
        lines.extend(_format_rows_aligned(item_rows))

    if receipt.warnings:
        lines.append("")
        lines.append("Warnings")
        lines.extend(f"  ! {warning}" for warning in receipt.warnings)

    return "\n".join(lines)
