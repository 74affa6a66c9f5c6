"""Error taxonomy for receipt processing."""


class ReceiptProcessingError(RuntimeError):
    """Base class for failures while turning an image into a receipt."""


class InvalidImage(ReceiptProcessingError):
    """Raised when uploaded bytes are empty, of a disallowed type, too large, or undecodable."""


class ImagePreprocessingFailed(ReceiptProcessingError):
    """Raised when an image normalization stage fails."""


class NoProviderAvailable(ReceiptProcessingError):
    """Raised when no configured OCR provider is usable."""


class OcrExtractionFailed(ReceiptProcessingError):
    """Raised when the selected OCR provider reports a failure."""

    def __init__(self, message: str, provider: str | None = None) -> None:
        super().__init__(message if provider is None else f"{provider}: {message}")
        self.provider = provider
        self.reason = message
