"""Line-item extraction from plain OCR text."""

import re
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

from expensescan.domain.receipt import ConfidenceLevel, ExtractedLineItem, ParsingLimits
from expensescan.runtime.logging import get_logger

from .common import _parse_amount, _should_skip_item_line, split_lines

logger = get_logger(__name__)

_PRICE_PREFIX = r"[₹Rs\.$€£%]?"

# "1234567 2 PC 45.00 90.00": code, quantity, optional unit, unit price, line total
CODED_ROW_PATTERN = re.compile(
    r"^\s*(\d{6,7})\s+"
    r"([\d.]+)\s*(KG|PC|GM|LTR|ML|PCS|NOS)?\s*"
    rf"{_PRICE_PREFIX}\s*([\d,]+\.\d{{2}})\s+"
    rf"{_PRICE_PREFIX}\s*([\d,]+\.\d{{2}})",
    re.IGNORECASE,
)
# "TOOR DAL 1KG 07139010 90.00": description, 8-digit HSN code, taxable amount
HSN_ROW_PATTERN = re.compile(
    rf"^\s*([A-Za-z][A-Za-z0-9\s]{{2,35}})\s+(\d{{8}})\s*{_PRICE_PREFIX}\s*([\d,]+\.\d{{2}})",
    re.IGNORECASE,
)
# "Coffee x2 7.00" / "Milk 2.49"
SIMPLE_ITEM_PATTERN = re.compile(
    rf"^\s*([A-Za-z][A-Za-z0-9\s]{{2,35}}?)\s+(?:[xX]?(\d+)\s+)?{_PRICE_PREFIX}\s*([\d,]+\.\d{{2}})\s*$",
    re.IGNORECASE,
)
DESCRIPTION_AMOUNT_PATTERN = re.compile(
    r"^\s*([A-Za-z][A-Za-z0-9\s]{3,40})\s+([\d,]+\.\d{2})\s*$",
    re.IGNORECASE,
)

_CENT = Decimal("0.01")


class _RowState(Enum):
    IDLE = "idle"
    AWAITING_DESCRIPTION = "awaiting_description"


@dataclass(frozen=True)
class _CodedRow:
    """A coded row waiting for its description line."""

    code: str
    quantity: int
    unit: str | None
    unit_price: Decimal
    total_price: Decimal


def _quantity(raw: str | None) -> int:
    if not raw:
        return 1
    try:
        return max(1, int(Decimal(raw)))
    except ArithmeticError:
        return 1


class _ItemCollector:
    """First-seen-wins dedup keyed on ``ExtractedLineItem.dedup_key``."""

    def __init__(self) -> None:
        self._items: dict[tuple[str, str], ExtractedLineItem] = {}

    def add(self, item: ExtractedLineItem) -> None:
        if item.dedup_key in self._items:
            logger.debug("Duplicate item skipped: %s", item.description)
            return
        self._items[item.dedup_key] = item

    def items(self) -> list[ExtractedLineItem]:
        return list(self._items.values())


def _extract_items(text: str, limits: ParsingLimits | None = None) -> list[ExtractedLineItem]:
    """
    Extract purchased line items from OCR text.

    Lines are tried against four shapes in priority order: coded rows, HSN
    description rows (merged into a preceding coded row when the totals
    agree), ``description [xQty] price`` and bare ``description amount``.

    Args:
        text: Raw OCR text.
        limits: Merge tolerance, per-item price ceiling and item cap.

    Returns:
        Deduplicated items in first-seen order, at most ``limits.max_items``.
    """
    limits = limits or ParsingLimits()
    collector = _ItemCollector()
    state = _RowState.IDLE
    pending: _CodedRow | None = None

    def implausible(value: Decimal | None) -> bool:
        return value is None or value > limits.max_item_price

    for raw_line in split_lines(text):
        line = raw_line.strip()
        if not line or _should_skip_item_line(line):
            continue

        match = CODED_ROW_PATTERN.search(line)
        if match:
            unit_price = _parse_amount(match.group(4))
            total_price = _parse_amount(match.group(5))
            if implausible(unit_price) or implausible(total_price):
                state, pending = _RowState.IDLE, None
                continue
            pending = _CodedRow(
                code=match.group(1),
                quantity=_quantity(match.group(2)),
                unit=match.group(3),
                unit_price=unit_price,
                total_price=total_price,
            )
            state = _RowState.AWAITING_DESCRIPTION
            continue

        match = HSN_ROW_PATTERN.search(line)
        if match:
            description = match.group(1).strip()
            taxable = _parse_amount(match.group(3))
            if implausible(taxable):
                continue
            if _should_skip_item_line(description):
                state, pending = _RowState.IDLE, None
                continue

            if state is _RowState.AWAITING_DESCRIPTION and pending is not None:
                if abs(taxable - pending.total_price) < limits.merge_tolerance:
                    collector.add(
                        ExtractedLineItem(
                            description=description,
                            quantity=pending.quantity,
                            unit_price=pending.unit_price,
                            total_price=pending.total_price,
                            confidence=ConfidenceLevel.HIGH,
                        )
                    )
                else:
                    logger.debug("Coded row %s does not match %s (%s)", pending.code, description, taxable)
            else:
                collector.add(
                    ExtractedLineItem(
                        description=description,
                        quantity=1,
                        unit_price=taxable,
                        total_price=taxable,
                        confidence=ConfidenceLevel.MEDIUM,
                    )
                )
            state, pending = _RowState.IDLE, None
            continue

        match = SIMPLE_ITEM_PATTERN.search(line)
        if match:
            description = match.group(1).strip()
            if _should_skip_item_line(description):
                continue
            price = _parse_amount(match.group(3))
            if implausible(price):
                continue
            quantity = _quantity(match.group(2))
            collector.add(
                ExtractedLineItem(
                    description=description,
                    quantity=quantity,
                    unit_price=(price / quantity).quantize(_CENT),
                    total_price=price,
                    confidence=ConfidenceLevel.MEDIUM,
                )
            )
            continue

        match = DESCRIPTION_AMOUNT_PATTERN.search(line)
        if match:
            description = match.group(1).strip()
            if _should_skip_item_line(description):
                continue
            price = _parse_amount(match.group(2))
            if implausible(price) or price < 1:
                continue
            collector.add(
                ExtractedLineItem(
                    description=description,
                    quantity=1,
                    unit_price=price,
                    total_price=price,
                    confidence=ConfidenceLevel.LOW,
                )
            )

    return collector.items()[: limits.max_items]
