"""Core domain models for receipt scanning.

This module provides the data models shared by every pipeline stage:
- RawImage, ProcessedImage, ExtractionResult: image and OCR handoff types
- ParsedReceipt, ExtractedLineItem, FieldConfidence: parsed receipt output
- ReceiptProcessingError and subclasses: the pipeline's error taxonomy

Usage:
    from expensescan.domain import ParsedReceipt, RawImage
"""

from expensescan.domain.errors import (
    ImagePreprocessingFailed,
    InvalidImage,
    NoProviderAvailable,
    OcrExtractionFailed,
    ReceiptProcessingError,
)
from expensescan.domain.receipt import (
    UNCATEGORIZED,
    ConfidenceLevel,
    ExtractedLineItem,
    ExtractionResult,
    FieldConfidence,
    ParsedReceipt,
    ParsingLimits,
    ProcessedImage,
    QualityRating,
    RawImage,
    ReceiptField,
)

__all__ = [
    "UNCATEGORIZED",
    "ConfidenceLevel",
    "ExtractedLineItem",
    "ExtractionResult",
    "FieldConfidence",
    "ImagePreprocessingFailed",
    "InvalidImage",
    "NoProviderAvailable",
    "OcrExtractionFailed",
    "ParsedReceipt",
    "ParsingLimits",
    "ProcessedImage",
    "QualityRating",
    "RawImage",
    "ReceiptField",
    "ReceiptProcessingError",
]
