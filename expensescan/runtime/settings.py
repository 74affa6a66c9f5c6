"""Runtime loader for OCR pipeline settings.

Settings live in a TOML file (``config/ocr.toml`` by default, or the path in
``EXPENSESCAN_CONFIG``). Every key is optional; a missing file yields defaults.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from functools import lru_cache
from pathlib import Path
from typing import Any

from expensescan.domain.receipt import ParsingLimits
from expensescan.runtime.logging import get_logger

logger = get_logger(__name__)

DEFAULT_CONFIG_PATH = Path("config") / "ocr.toml"
CONFIG_ENV_VAR = "EXPENSESCAN_CONFIG"
OCR_SERVICE_URL_ENV_VAR = "OCR_SERVICE_URL"


@dataclass(frozen=True)
class UploadSettings:
    """Accepted upload types and size ceiling."""

    allowed_extensions: str = "jpg,jpeg,png,gif,bmp,tiff,webp"
    max_file_size: str = "10MB"

    @property
    def extensions(self) -> frozenset[str]:
        return frozenset(ext.strip().lower().lstrip(".") for ext in self.allowed_extensions.split(",") if ext.strip())


@dataclass(frozen=True)
class PreprocessingSettings:
    enabled: bool = True
    max_width: int = 2000
    max_height: int = 2000


@dataclass(frozen=True)
class TesseractSettings:
    language: str = "eng"
    page_seg_mode: int = 3
    oem_mode: int = 3
    cmd: str | None = None


@dataclass(frozen=True)
class OcrSettings:
    providers: tuple[str, ...] = ("tesseract", "ocr_service")
    service_url: str = "http://localhost:8001"
    service_timeout: float = 60.0


@dataclass(frozen=True)
class Settings:
    """All pipeline settings. Read-only after load."""

    upload: UploadSettings = field(default_factory=UploadSettings)
    preprocessing: PreprocessingSettings = field(default_factory=PreprocessingSettings)
    ocr: OcrSettings = field(default_factory=OcrSettings)
    tesseract: TesseractSettings = field(default_factory=TesseractSettings)
    parsing: ParsingLimits = field(default_factory=ParsingLimits)


def _load_toml(path: Path) -> dict[str, Any]:
    """Load TOML file and return parsed dict; missing files map to empty dict."""
    try:
        import tomllib
    except ImportError:
        import tomli as tomllib  # type: ignore[no-redef]

    if not path.exists():
        logger.debug("Settings file not found, using defaults: %s", path)
        return {}

    with open(path, "rb") as f:
        data = tomllib.load(f)
    return data if isinstance(data, dict) else {}


def _expect(section: str, key: str, value: Any, kind: type | tuple[type, ...]) -> Any:
    # bool is an int subclass; reject it where a number is expected
    if isinstance(value, bool) and kind is not bool:
        raise ValueError(f"[{section}] {key} must be {kind}, got bool")
    if not isinstance(value, kind):
        raise ValueError(f"[{section}] {key} must be {kind}, got {type(value).__name__}")
    return value


def _decimal(section: str, key: str, value: Any) -> Decimal:
    if isinstance(value, bool):
        raise ValueError(f"[{section}] {key} must be a number")
    try:
        return Decimal(str(value))
    except InvalidOperation as exc:
        raise ValueError(f"[{section}] {key} must be a number, got {value!r}") from exc


def _build_upload(data: dict[str, Any]) -> UploadSettings:
    defaults = UploadSettings()
    extensions = data.get("allowed_extensions", defaults.allowed_extensions)
    if isinstance(extensions, list):
        extensions = ",".join(str(ext) for ext in extensions)
    return UploadSettings(
        allowed_extensions=_expect("upload", "allowed_extensions", extensions, str),
        max_file_size=_expect("upload", "max_file_size", data.get("max_file_size", defaults.max_file_size), str),
    )


def _build_preprocessing(data: dict[str, Any]) -> PreprocessingSettings:
    defaults = PreprocessingSettings()
    return PreprocessingSettings(
        enabled=_expect("preprocessing", "enabled", data.get("enabled", defaults.enabled), bool),
        max_width=_expect("preprocessing", "max_width", data.get("max_width", defaults.max_width), int),
        max_height=_expect("preprocessing", "max_height", data.get("max_height", defaults.max_height), int),
    )


def _build_ocr(data: dict[str, Any]) -> OcrSettings:
    defaults = OcrSettings()
    providers = _expect("ocr", "providers", data.get("providers", list(defaults.providers)), (list, tuple))
    service_url = os.environ.get(OCR_SERVICE_URL_ENV_VAR) or data.get("service_url", defaults.service_url)
    timeout = _expect("ocr", "service_timeout", data.get("service_timeout", defaults.service_timeout), (int, float))
    return OcrSettings(
        providers=tuple(str(name).strip().lower() for name in providers),
        service_url=_expect("ocr", "service_url", service_url, str),
        service_timeout=float(timeout),
    )


def _build_tesseract(data: dict[str, Any]) -> TesseractSettings:
    defaults = TesseractSettings()
    cmd = data.get("cmd", defaults.cmd)
    return TesseractSettings(
        language=_expect("tesseract", "language", data.get("language", defaults.language), str),
        page_seg_mode=_expect("tesseract", "page_seg_mode", data.get("page_seg_mode", defaults.page_seg_mode), int),
        oem_mode=_expect("tesseract", "oem_mode", data.get("oem_mode", defaults.oem_mode), int),
        cmd=None if cmd is None else _expect("tesseract", "cmd", cmd, str),
    )


def _build_parsing(data: dict[str, Any]) -> ParsingLimits:
    defaults = ParsingLimits()
    return ParsingLimits(
        merge_tolerance=_decimal("parsing", "merge_tolerance", data.get("merge_tolerance", defaults.merge_tolerance)),
        max_item_price=_decimal("parsing", "max_item_price", data.get("max_item_price", defaults.max_item_price)),
        max_items=_expect("parsing", "max_items", data.get("max_items", defaults.max_items), int),
    )


def settings_from_mapping(data: dict[str, Any]) -> Settings:
    """Build Settings from an already-parsed TOML mapping."""
    return Settings(
        upload=_build_upload(data.get("upload", {})),
        preprocessing=_build_preprocessing(data.get("preprocessing", {})),
        ocr=_build_ocr(data.get("ocr", {})),
        tesseract=_build_tesseract(data.get("tesseract", {})),
        parsing=_build_parsing(data.get("parsing", {})),
    )


def resolve_config_path(config_path: str | None = None) -> Path:
    """Explicit path, then EXPENSESCAN_CONFIG, then config/ocr.toml."""
    if config_path is not None:
        return Path(config_path)
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        return Path(env_path)
    return DEFAULT_CONFIG_PATH


@lru_cache(maxsize=4)
def load_settings(config_path: str | None = None) -> Settings:
    """
    Load pipeline settings from TOML.

    Args:
        config_path: Optional TOML path override.

    Returns:
        Frozen Settings; defaults for anything the file leaves out.

    Raises:
        ValueError: If a configured value has the wrong type.
    """
    path = resolve_config_path(config_path)
    settings = settings_from_mapping(_load_toml(path))
    logger.debug("Loaded settings from %s: providers=%s", path, ", ".join(settings.ocr.providers))
    return settings
