"""Ordered OCR provider selection."""

from __future__ import annotations

from collections.abc import Sequence

import httpx

from expensescan.domain.errors import NoProviderAvailable, OcrExtractionFailed
from expensescan.domain.receipt import ExtractionResult, ProcessedImage
from expensescan.runtime.logging import get_logger

from .base import OcrProvider

logger = get_logger(__name__)


class ProviderRegistry:
    """
    Holds providers in preference order.

    The first available provider handles a request. Failures are surfaced to
    the caller; there is no retry and no fallback to later providers.
    """

    def __init__(self, providers: Sequence[OcrProvider]) -> None:
        self.providers: tuple[OcrProvider, ...] = tuple(providers)

    def select(self) -> OcrProvider:
        for provider in self.providers:
            if provider.is_available():
                return provider
        names = ", ".join(p.name for p in self.providers) or "none configured"
        raise NoProviderAvailable(f"No OCR provider available ({names})")

    def extract(self, image: ProcessedImage) -> ExtractionResult:
        """
        Run OCR with the selected provider.

        Raises:
            NoProviderAvailable: If no provider is available.
            OcrExtractionFailed: If the provider reports failure or times out.
        """
        provider = self.select()
        logger.debug("Extracting text with %s", provider.name)
        try:
            result = provider.extract_text(image)
        except (TimeoutError, httpx.TimeoutException) as e:
            logger.error("OCR provider %s timed out: %s", provider.name, e)
            raise OcrExtractionFailed("OCR timed out", provider=provider.name) from e

        if not result.success:
            message = result.error or "OCR extraction failed"
            logger.error("OCR provider %s failed: %s", provider.name, message)
            raise OcrExtractionFailed(message, provider=provider.name)
        return result

    def active_provider_name(self) -> str | None:
        for provider in self.providers:
            if provider.is_available():
                return provider.name
        return None

    def is_any_available(self) -> bool:
        return self.active_provider_name() is not None
