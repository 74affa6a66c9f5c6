"""Receipt-level field extraction: merchant, totals, tax, date, payment, currency."""

from __future__ import annotations

import re
from datetime import date
from decimal import Decimal

from expensescan.domain.receipt import FieldConfidence
from expensescan.runtime.logging import get_logger

from .common import (
    DATE_LIKE_PATTERN,
    _is_merchant_noise,
    _parse_amount,
    clean_label_text,
    count_digits,
    count_letters,
    labeled_amount_pattern,
    split_lines,
)

logger = get_logger(__name__)

KNOWN_MERCHANTS = (
    "trent hypermarket",
    "star bazaar",
    "star market",
    "dmart",
    "d-mart",
    "big bazaar",
    "bigbazaar",
    "reliance",
    "more supermarket",
    "spencer",
    "nilgiri",
    "nature basket",
    "easyday",
    "spar",
    "ratnadeep",
    "heritage",
    "foodworld",
    "hypercity",
    "lulu",
    "margin free",
    "metro cash",
    "walmart",
)

MAX_MERCHANT_LENGTH = 60
MERCHANT_CANDIDATE_LIMIT = 5

_FOREIGN_PREFIX = r"[$€£]?"
# Tax-rate noise such as "@2.5%" between the label and the amount.
_RATE_SEPARATOR = r"[:\s@%\d\.]*?"
# An amount directly followed by "%" is a tax rate, not money.
_NOT_RATE = r"(?!\s*%)"
# "Sub Total" and "Sub-Total" label the subtotal, never the bill total.
_NOT_SUBTOTAL = r"(?<!SUB\s)(?<!SUB\s\s)(?<!SUB-)"

TOTAL_PATTERNS = (
    labeled_amount_pattern(r"TOTAL\s*INVOICE\s*AMOUNT"),
    labeled_amount_pattern(r"TOTAL\s*RECEIVED\s*AMOUNT"),
    labeled_amount_pattern(rf"{_NOT_SUBTOTAL}(?:GRAND\s*)?TOTAL"),
    labeled_amount_pattern(r"NET\s*(?:AMOUNT|PAYABLE)"),
    labeled_amount_pattern(r"(?:AMOUNT|AMT)\s*(?:PAYABLE|DUE|PAID)"),
    labeled_amount_pattern(r"BILL\s*AMOUNT"),
    labeled_amount_pattern(r"(?:BALANCE|DUE)", prefix=_FOREIGN_PREFIX),
    labeled_amount_pattern(r"PAYMENT", prefix=_FOREIGN_PREFIX),
)

SUBTOTAL_PATTERNS = (
    labeled_amount_pattern(r"SUB\s*TOTAL", prefix=r"[₹Rs\.$€£]*"),
    labeled_amount_pattern(r"SUBTOTAL", prefix=r"[₹Rs\.$€£]*"),
    labeled_amount_pattern(r"TAXABLE\s*(?:VALUE|AMOUNT)", prefix=r"[₹Rs\.]*"),
)

TAX_PATTERNS = (
    labeled_amount_pattern(r"(?:TOTAL\s*)?GST", prefix=r"[₹Rs\.]*", suffix=_NOT_RATE),
    labeled_amount_pattern(r"CGST", prefix=r"[₹Rs\.]*", separator=_RATE_SEPARATOR, suffix=_NOT_RATE),
    labeled_amount_pattern(r"SGST", prefix=r"[₹Rs\.]*", separator=_RATE_SEPARATOR, suffix=_NOT_RATE),
    labeled_amount_pattern(r"IGST", prefix=r"[₹Rs\.]*", separator=_RATE_SEPARATOR, suffix=_NOT_RATE),
    labeled_amount_pattern(r"CESS", prefix=r"[₹Rs\.]*", separator=_RATE_SEPARATOR, suffix=_NOT_RATE),
    labeled_amount_pattern(r"(?:SALES\s*)?TAX", prefix=_FOREIGN_PREFIX),
    labeled_amount_pattern(r"VAT", prefix=_FOREIGN_PREFIX),
    labeled_amount_pattern(r"HST", prefix=_FOREIGN_PREFIX),
)

CURRENCY_AMOUNT_PATTERN = re.compile(
    r"[$€£¥₹%Rs\.?]\s*([\d,]+\.\d{2})|([\d,]+\.\d{2})\s*[$€£¥₹%]",
    re.IGNORECASE,
)

_MONTHS = ("jan", "feb", "mar", "apr", "may", "jun", "jul", "aug", "sep", "oct", "nov", "dec")
_MONTH_NAME = r"(Jan|Feb|Mar|Apr|May|Jun|Jul|Aug|Sep|Oct|Nov|Dec)[a-z]*"

# (pattern, group order) where order names what each of the three groups holds.
# Digit lookarounds stop a two-digit year from matching the front of a four-digit one.
DATE_PATTERNS = (
    (re.compile(r"(?<!\d)(\d{1,2})[/-](\d{1,2})[/-](\d{4})(?!\d)"), ("day", "month", "year")),
    (re.compile(r"(?<!\d)(\d{1,2})[/-](\d{1,2})[/-](\d{2})(?!\d)"), ("day", "month", "year")),
    (re.compile(r"(?<!\d)(\d{4})[/-](\d{1,2})[/-](\d{1,2})(?!\d)"), ("year", "month", "day")),
    (re.compile(rf"(?<!\d)(\d{{1,2}})\s*{_MONTH_NAME}\s*(\d{{4}})(?!\d)", re.IGNORECASE), ("day", "month", "year")),
    (re.compile(rf"{_MONTH_NAME}\s*(\d{{1,2}}),?\s*(\d{{4}})(?!\d)", re.IGNORECASE), ("month", "day", "year")),
)

MULTIPLE_DATES_WARNING = "Multiple dates found in receipt - using most recent"

# Ordered: the first whole-word hit decides.
PAYMENT_KEYWORDS = (
    ("CREDIT CARD", "Credit Card"),
    ("CREDITCARD", "Credit Card"),
    ("DEBIT CARD", "Debit Card"),
    ("DEBITCARD", "Debit Card"),
    ("VISA", "Credit Card"),
    ("MASTERCARD", "Credit Card"),
    ("MASTER CARD", "Credit Card"),
    ("AMEX", "Credit Card"),
    ("AMERICAN EXPRESS", "Credit Card"),
    ("RUPAY", "Debit Card"),
    ("UPI", "UPI"),
    ("PHONEPE", "UPI"),
    ("PAYTM", "UPI"),
    ("GPAY", "UPI"),
    ("GOOGLE PAY", "UPI"),
    ("NET BANKING", "Net Banking"),
    ("NEFT", "Net Banking"),
    ("IMPS", "Net Banking"),
    ("CASH", "Cash"),
    ("CHECK", "Check"),
    ("CHEQUE", "Check"),
)

_INR_TEXT_MARKERS = ("RS.", "RS ", "RUPEES", "INR", "PAISA")
_INR_TAX_MARKERS = ("CGST", "SGST", "IGST", "GSTIN", "FSSAI")


def _first_labeled_amount(text: str, patterns: tuple[re.Pattern[str], ...]) -> Decimal | None:
    for pattern in patterns:
        match = pattern.search(text)
        if not match:
            continue
        amount = _parse_amount(match.group(1))
        if amount is not None:
            return amount
    return None


def _extract_merchant(text: str) -> tuple[str | None, FieldConfidence]:
    """
    Find the store name.

    Tries known chains first, then company-suffix lines, then the first
    plausible header line. Only the last tier is LOW confidence.
    """
    lines = split_lines(text)
    lower_text = text.lower()

    for chain in KNOWN_MERCHANTS:
        if chain not in lower_text:
            continue
        for line in lines:
            if chain in line.lower():
                merchant = clean_label_text(line)
                if 5 <= len(merchant) <= MAX_MERCHANT_LENGTH:
                    return merchant, FieldConfidence.high("Merchant identified by known store pattern")

    for line in lines:
        trimmed = line.strip()
        lower = trimmed.lower()
        has_suffix = (
            "pvt ltd" in lower
            or "pvt. ltd" in lower
            or "private limited" in lower
            or lower.endswith(" ltd")
            or lower.endswith(" limited")
        )
        if has_suffix and len(trimmed) >= 10 and not _is_merchant_noise(trimmed):
            return clean_label_text(trimmed), FieldConfidence.high("Merchant identified by company suffix")

    candidates: list[str] = []
    for line in lines:
        trimmed = line.strip()
        if len(trimmed) < 4 or _is_merchant_noise(trimmed):
            continue
        if (
            DATE_LIKE_PATTERN.search(trimmed)
            or re.search(r"[₹$€£]\s*\d+", trimmed)
            or re.fullmatch(r"\d+", trimmed)
            or re.fullmatch(r"[\d\s\-:]+", trimmed)
            or re.match(r"\d{6,7}\s+", trimmed)
        ):
            continue
        if count_digits(trimmed) >= count_letters(trimmed):
            continue
        candidates.append(trimmed)
        if len(candidates) >= MERCHANT_CANDIDATE_LIMIT:
            break

    if candidates:
        candidate = clean_label_text(candidates[0])
        letters = count_letters(candidate)
        if letters >= 3 and letters > count_digits(candidate) and len(candidate) <= MAX_MERCHANT_LENGTH:
            return candidate, FieldConfidence.low("Merchant name extracted from first lines - verify manually")

    return None, FieldConfidence.low("No valid merchant name found")


def _extract_total(text: str) -> tuple[Decimal | None, FieldConfidence]:
    labeled = _first_labeled_amount(text, TOTAL_PATTERNS)
    if labeled is not None:
        return labeled, FieldConfidence.high("Total amount found with keyword label")

    amounts = []
    for match in CURRENCY_AMOUNT_PATTERN.finditer(text):
        amount = _parse_amount(match.group(1) or match.group(2))
        if amount is not None:
            amounts.append(amount)
    if amounts:
        return max(amounts), FieldConfidence.medium("Amount extracted as highest value - no 'TOTAL' keyword found")

    return None, FieldConfidence.low("No amount could be extracted")


def _extract_tax(text: str) -> tuple[Decimal | None, FieldConfidence | None]:
    tax = _first_labeled_amount(text, TAX_PATTERNS)
    if tax is None:
        return None, None
    return tax, FieldConfidence.high("Tax found with keyword label")


def _extract_subtotal(text: str) -> Decimal | None:
    return _first_labeled_amount(text, SUBTOTAL_PATTERNS)


def _month_number(name: str) -> int:
    lowered = name.lower()
    for index, prefix in enumerate(_MONTHS, start=1):
        if lowered.startswith(prefix):
            return index
    return 0


def _build_date(parts: dict[str, str]) -> date | None:
    raw_month = parts["month"]
    month = int(raw_month) if raw_month.isdigit() else _month_number(raw_month)
    day = int(parts["day"])
    year = int(parts["year"])
    if year < 100:
        year += 2000
    if month > 12 and day <= 12:
        month, day = day, month
    if not 1 <= month <= 12 or not 1 <= day <= 31:
        return None
    try:
        return date(year, month, day)
    except ValueError:
        logger.debug("Rejected impossible date %s-%s-%s", year, month, day)
        return None


def _is_reasonable_date(value: date, today: date) -> bool:
    """Strictly within five years back and one year ahead of ``today``."""
    return _shift_years(today, -5) < value < _shift_years(today, 1)


def _shift_years(value: date, years: int) -> date:
    try:
        return value.replace(year=value.year + years)
    except ValueError:
        # Feb 29 shifted into a non-leap year
        return value.replace(year=value.year + years, day=28)


def _find_dates(text: str, today: date) -> list[date]:
    found: list[date] = []
    for pattern, order in DATE_PATTERNS:
        for match in pattern.finditer(text):
            parsed = _build_date(dict(zip(order, match.groups())))
            if parsed is not None and _is_reasonable_date(parsed, today):
                found.append(parsed)
    return found


def _extract_date(text: str, today: date | None = None) -> tuple[date | None, FieldConfidence, list[str]]:
    """
    Pick the most recent plausible date.

    Returns:
        Tuple of (date or None, confidence, warnings).
    """
    today = today or date.today()
    distinct = set(_find_dates(text, today))
    if not distinct:
        return None, FieldConfidence.low("No date found"), []

    latest = max(distinct)
    if len(distinct) > 1:
        return latest, FieldConfidence.medium("Multiple dates found - selected most recent"), [MULTIPLE_DATES_WARNING]
    return latest, FieldConfidence.high("Single date found"), []


def _extract_payment_method(text: str) -> str | None:
    upper = text.upper()
    for keyword, label in PAYMENT_KEYWORDS:
        if re.search(rf"\b{re.escape(keyword)}\b", upper):
            return label
    return None


def _detect_currency(text: str) -> str:
    upper = text.upper()
    if "₹" in text:
        return "INR"
    if "$" in text and "RS" not in upper:
        return "USD"
    if "€" in text:
        return "EUR"
    if "£" in text:
        return "GBP"
    if "¥" in text:
        return "JPY"
    if any(marker in upper for marker in _INR_TEXT_MARKERS):
        return "INR"
    if any(marker in upper for marker in _INR_TAX_MARKERS):
        return "INR"
    return "USD"
