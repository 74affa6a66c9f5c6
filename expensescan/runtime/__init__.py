"""Runtime infrastructure for expensescan.

This package provides process/runtime services including:
- Logging setup via get_logger()
- Settings loading via load_settings(), Settings
- Pipeline construction via ReceiptPipeline.from_settings()

Usage:
    from expensescan.runtime import get_logger, load_settings

    logger = get_logger(__name__)
    settings = load_settings()
    print(settings.ocr.providers)
"""

from expensescan.runtime.logging import (
    DEFAULT_LOG_LEVEL,
    LOG_FORMAT,
    LOG_FORMAT_DEBUG,
    configure_logging,
    get_logger,
    set_log_level,
)
from expensescan.runtime.settings import (
    OcrSettings,
    PreprocessingSettings,
    Settings,
    TesseractSettings,
    UploadSettings,
    load_settings,
    settings_from_mapping,
)

__all__ = [
    # Logging
    "get_logger",
    "configure_logging",
    "set_log_level",
    "DEFAULT_LOG_LEVEL",
    "LOG_FORMAT",
    "LOG_FORMAT_DEBUG",
    # Settings
    "load_settings",
    "settings_from_mapping",
    "Settings",
    "UploadSettings",
    "PreprocessingSettings",
    "OcrSettings",
    "TesseractSettings",
]
