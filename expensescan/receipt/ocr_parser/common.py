"""Shared constants and helpers for OCR receipt parsing."""

import re
from decimal import Decimal, InvalidOperation

from expensescan.runtime.logging import get_logger

logger = get_logger(__name__)

# Currency-prefix class used by labeled amount patterns (₹, Rs, Rs., %)
_RUPEE_PREFIX = r"[₹Rs\.%]*"
_AMOUNT = r"([\d,]+\.\d{2})"

DATE_LIKE_PATTERN = re.compile(r"\d{1,2}[/-]\d{1,2}[/-]\d{2,4}")

# Skip tokens for item lines: summaries, tax rows, payment and store metadata.
ITEM_SKIP_TOKENS = (
    "total",
    "subtotal",
    "sub total",
    "balance",
    "cgst",
    "sgst",
    "igst",
    "cess",
    "tax",
    "gst",
    "invoice",
    "tender",
    "credit card",
    "debit card",
    "received",
    "saving",
    "discount",
    "customer",
    "cashier",
    "counter",
    "fssai",
    "gstin",
)

# Lines containing any of these never name the merchant.
MERCHANT_NOISE_TOKENS = (
    "tax details",
    "tax detail",
    "invoice",
    "tender detail",
    "tender details",
    "payment",
    "gst ind",
    "cgst",
    "sgst",
    "igst",
    "cess",
    "total",
    "subtotal",
    "customer id",
    "cashier",
    "counter",
    "credit card",
    "debit card",
    "cash",
    "saving",
    "discount",
    "received",
    "balance",
    "fssai",
    "gstin",
    "amount",
    "item",
    "description",
    "qty",
    "hsn",
    "taxable",
    "net.amt",
    "net amt",
)


def split_lines(text: str) -> list[str]:
    return re.split(r"\r?\n", text)


def clean_label_text(text: str) -> str:
    """Replace decoration runs (``*#=-_``) with spaces and collapse whitespace."""
    cleaned = re.sub(r"[*#=\-_]+", " ", text)
    return re.sub(r"\s+", " ", cleaned).strip()


def count_digits(text: str) -> int:
    return sum(1 for c in text if c.isdigit())


def count_letters(text: str) -> int:
    return sum(1 for c in text if c.isascii() and c.isalpha())


def _should_skip_item_line(line: str | None) -> bool:
    """Return True for lines that cannot be purchased items."""
    if line is None or len(line) < 3:
        return True
    lower = line.lower()
    if any(token in lower for token in ITEM_SKIP_TOKENS):
        return True
    return DATE_LIKE_PATTERN.search(lower) is not None


def _is_merchant_noise(line: str) -> bool:
    lower = line.lower()
    return any(token in lower for token in MERCHANT_NOISE_TOKENS)


def _parse_amount(raw: str | None) -> Decimal | None:
    """
    Parse an OCR money capture into Decimal.

    Strips one leading currency marker (symbol, ``Rs``/``Rs.``, ``INR``) and
    thousands separators. Anything unparsable returns None.
    """
    if raw is None or not raw.strip():
        return None

    cleaned = re.sub(r"^[₹$€£]", "", raw.strip())
    cleaned = re.sub(r"^Rs\.?\s*", "", cleaned, flags=re.IGNORECASE)
    cleaned = re.sub(r"^INR\s*", "", cleaned, flags=re.IGNORECASE)
    cleaned = cleaned.replace(",", "").strip()
    if cleaned and not cleaned[0].isdigit() and cleaned[0] != ".":
        cleaned = cleaned[1:].strip()
    if not cleaned:
        return None

    try:
        return Decimal(cleaned)
    except InvalidOperation:
        logger.debug("Unparsable amount capture: %r", raw)
        return None


def labeled_amount_pattern(
    label: str,
    prefix: str = _RUPEE_PREFIX,
    separator: str = r"[:\s]*",
    suffix: str = "",
) -> re.Pattern[str]:
    """Compile ``LABEL <separator> <prefix> amount <suffix>`` case-insensitively.

    The label must start on a word boundary so ``TOTAL`` does not match inside
    ``SUBTOTAL`` and ``VAT`` does not match inside ``PRIVATE``.
    """
    return re.compile(rf"\b{label}{separator}{prefix}\s*{_AMOUNT}{suffix}", re.IGNORECASE)
