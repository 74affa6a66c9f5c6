"""Data models for receipt scanning."""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from datetime import date
from decimal import Decimal
from enum import Enum
from pathlib import Path
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from PIL import Image


@dataclass(frozen=True)
class RawImage:
    """Uploaded image bytes plus the client-declared filename and size."""

    data: bytes
    filename: str
    size: int = -1

    def __post_init__(self) -> None:
        if self.size < 0:
            object.__setattr__(self, "size", len(self.data))

    @classmethod
    def from_path(cls, path: str | Path) -> RawImage:
        path = Path(path)
        data = path.read_bytes()
        return cls(data=data, filename=path.name, size=len(data))


class QualityRating(Enum):
    POOR = "poor"
    FAIR = "fair"
    GOOD = "good"

    @classmethod
    def from_dimensions(cls, width: int, height: int) -> QualityRating:
        if width < 200 or height < 200:
            return cls.POOR
        if width >= 800 and height >= 600:
            return cls.GOOD
        return cls.FAIR

    def rank(self) -> int:
        return _QUALITY_RANK[self]


_QUALITY_RANK = {QualityRating.POOR: 0, QualityRating.FAIR: 1, QualityRating.GOOD: 2}


@dataclass(frozen=True)
class ProcessedImage:
    """Normalized image handed to OCR providers."""

    image: Image.Image
    quality: QualityRating

    @property
    def width(self) -> int:
        return self.image.size[0]

    @property
    def height(self) -> int:
        return self.image.size[1]


@dataclass(frozen=True)
class ExtractionResult:
    """Outcome of a single OCR provider call."""

    text: str
    success: bool
    processing_time_ms: int
    quality: QualityRating
    provider: str
    error: str | None = None
    # Heuristic 0-100 estimate from the provider; None when it has no opinion.
    text_confidence: float | None = None
    width: int = 0
    height: int = 0

    @classmethod
    def ok(
        cls,
        text: str,
        *,
        provider: str,
        processing_time_ms: int,
        quality: QualityRating,
        text_confidence: float | None = None,
        width: int = 0,
        height: int = 0,
    ) -> ExtractionResult:
        return cls(
            text=text,
            success=True,
            processing_time_ms=processing_time_ms,
            quality=quality,
            provider=provider,
            text_confidence=text_confidence,
            width=width,
            height=height,
        )

    @classmethod
    def failure(
        cls,
        error: str,
        *,
        provider: str,
        processing_time_ms: int = 0,
        quality: QualityRating = QualityRating.POOR,
    ) -> ExtractionResult:
        return cls(
            text="",
            success=False,
            processing_time_ms=processing_time_ms,
            quality=quality,
            provider=provider,
            error=error,
        )


class ConfidenceLevel(Enum):
    LOW = 0.3
    MEDIUM = 0.6
    HIGH = 0.9

    @property
    def score(self) -> float:
        return float(self.value)


class ReceiptField(Enum):
    """Fields that carry a confidence entry."""

    MERCHANT = "merchant"
    AMOUNT = "amount"
    DATE = "date"
    TAX = "tax"


@dataclass(frozen=True)
class FieldConfidence:
    level: ConfidenceLevel
    score: float
    reason: str

    @classmethod
    def of(cls, level: ConfidenceLevel, reason: str) -> FieldConfidence:
        return cls(level=level, score=level.score, reason=reason)

    @classmethod
    def high(cls, reason: str) -> FieldConfidence:
        return cls.of(ConfidenceLevel.HIGH, reason)

    @classmethod
    def medium(cls, reason: str) -> FieldConfidence:
        return cls.of(ConfidenceLevel.MEDIUM, reason)

    @classmethod
    def low(cls, reason: str) -> FieldConfidence:
        return cls.of(ConfidenceLevel.LOW, reason)


@dataclass(frozen=True)
class ExtractedLineItem:
    """A single line item recovered from receipt text."""

    description: str
    quantity: int
    unit_price: Decimal
    total_price: Decimal
    confidence: ConfidenceLevel

    @property
    def dedup_key(self) -> tuple[str, str]:
        normalized = re.sub(r"\s+", " ", self.description.strip().lower())
        return normalized, f"{self.total_price:.2f}"


@dataclass(frozen=True)
class ParsingLimits:
    """Receipt-scale heuristics used by line-item extraction.

    ``merge_tolerance`` is how far a description row's taxable amount may drift
    from the pending coded row total and still be merged into it.
    ``max_item_price`` discards values that are implausible for one line.
    """

    merge_tolerance: Decimal = Decimal("1.0")
    max_item_price: Decimal = Decimal("50000")
    max_items: int = 20


UNCATEGORIZED = "Uncategorized"


def _decimal_str(value: Decimal | None) -> str | None:
    return None if value is None else f"{value:.2f}"


@dataclass(frozen=True)
class ParsedReceipt:
    """Structured, confidence-scored result of parsing one receipt."""

    merchant: str | None = None
    amount: Decimal | None = None
    date: date | None = None
    tax: Decimal | None = None
    subtotal: Decimal | None = None
    currency: str | None = None
    payment_method: str | None = None
    items: tuple[ExtractedLineItem, ...] = ()
    confidence: Mapping[ReceiptField, FieldConfidence] = field(default_factory=dict)
    overall_confidence: float = 0.0
    suggested_category: str | None = None
    warnings: tuple[str, ...] = ()
    raw_text: str = ""
    image_quality: QualityRating | None = None
    processing_time_ms: int = 0

    def __post_init__(self) -> None:
        object.__setattr__(self, "confidence", MappingProxyType(dict(self.confidence)))

    @classmethod
    def empty(
        cls,
        warning: str,
        *,
        raw_text: str = "",
        image_quality: QualityRating | None = None,
        processing_time_ms: int = 0,
    ) -> ParsedReceipt:
        """Result for an image that produced no usable text."""
        return cls(
            warnings=(warning,),
            raw_text=raw_text,
            image_quality=image_quality,
            processing_time_ms=processing_time_ms,
        )

    def with_updates(self, **changes: Any) -> ParsedReceipt:
        return replace(self, **changes)

    def to_dict(self) -> dict[str, Any]:
        """JSON-ready representation: ISO dates, decimals as strings, enums by name."""
        return {
            "merchant": self.merchant,
            "amount": _decimal_str(self.amount),
            "date": self.date.isoformat() if self.date else None,
            "tax": _decimal_str(self.tax),
            "subtotal": _decimal_str(self.subtotal),
            "currency": self.currency,
            "payment_method": self.payment_method,
            "items": [
                {
                    "description": item.description,
                    "quantity": item.quantity,
                    "unit_price": _decimal_str(item.unit_price),
                    "total_price": _decimal_str(item.total_price),
                    "confidence": item.confidence.name,
                }
                for item in self.items
            ],
            "confidence": {
                name.name: {"level": conf.level.name, "score": conf.score, "reason": conf.reason}
                for name, conf in self.confidence.items()
            },
            "overall_confidence": self.overall_confidence,
            "suggested_category": self.suggested_category,
            "warnings": list(self.warnings),
            "raw_text": self.raw_text,
            "image_quality": self.image_quality.name if self.image_quality else None,
            "processing_time_ms": self.processing_time_ms,
        }
