"""OCR providers and the registry that picks between them."""

from __future__ import annotations

from expensescan.runtime.logging import get_logger
from expensescan.runtime.settings import Settings

from .base import OcrProvider
from .ocr_service import OcrServiceProvider
from .registry import ProviderRegistry
from .static import StaticTextProvider
from .tesseract import TesseractProvider

logger = get_logger(__name__)


def build_provider(name: str, settings: Settings) -> OcrProvider:
    if name == "tesseract":
        return TesseractProvider(settings.tesseract)
    if name == "ocr_service":
        return OcrServiceProvider(settings.ocr.service_url, timeout=settings.ocr.service_timeout)
    raise ValueError(f"Unknown OCR provider: {name!r}")


def build_default_registry(settings: Settings) -> ProviderRegistry:
    """Build providers in the order listed by ``settings.ocr.providers``."""
    providers = [build_provider(name, settings) for name in settings.ocr.providers]
    logger.debug("Provider order: %s", ", ".join(p.name for p in providers))
    return ProviderRegistry(providers)


__all__ = [
    "OcrProvider",
    "OcrServiceProvider",
    "ProviderRegistry",
    "StaticTextProvider",
    "TesseractProvider",
    "build_default_registry",
    "build_provider",
]
