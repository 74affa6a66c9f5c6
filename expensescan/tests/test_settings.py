"""Tests for TOML settings loading."""

from __future__ import annotations

from decimal import Decimal
from pathlib import Path

import pytest

from expensescan.runtime.settings import Settings, load_settings, resolve_config_path


def test_missing_file_yields_defaults(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("OCR_SERVICE_URL", raising=False)
    settings = load_settings(str(tmp_path / "absent.toml"))

    assert settings == Settings()
    assert settings.upload.max_file_size == "10MB"
    assert settings.preprocessing.max_width == 2000
    assert settings.ocr.providers == ("tesseract", "ocr_service")
    assert settings.parsing.merge_tolerance == Decimal("1.0")
    assert settings.parsing.max_items == 20


def test_toml_overrides(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("OCR_SERVICE_URL", raising=False)
    config = tmp_path / "ocr.toml"
    config.write_text(
        """
[upload]
allowed_extensions = "png, JPG"
max_file_size = "5MB"

[preprocessing]
enabled = false
max_width = 1000

[ocr]
providers = ["ocr_service"]
service_url = "http://ocr.internal:9000"
service_timeout = 15

[tesseract]
language = "eng+hin"

[parsing]
merge_tolerance = "0.5"
max_item_price = 1000
""",
        encoding="utf-8",
    )

    settings = load_settings(str(config))

    assert settings.upload.extensions == frozenset({"png", "jpg"})
    assert settings.preprocessing.enabled is False
    assert settings.preprocessing.max_width == 1000
    assert settings.preprocessing.max_height == 2000
    assert settings.ocr.providers == ("ocr_service",)
    assert settings.ocr.service_url == "http://ocr.internal:9000"
    assert settings.ocr.service_timeout == 15.0
    assert settings.tesseract.language == "eng+hin"
    assert settings.parsing.merge_tolerance == Decimal("0.5")
    assert settings.parsing.max_item_price == Decimal("1000")


def test_env_var_overrides_service_url(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("OCR_SERVICE_URL", "http://from-env:8001")

    settings = load_settings(str(tmp_path / "absent.toml"))

    assert settings.ocr.service_url == "http://from-env:8001"


def test_config_path_resolution(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("EXPENSESCAN_CONFIG", "/etc/expensescan.toml")
    assert resolve_config_path("explicit.toml") == Path("explicit.toml")
    assert resolve_config_path() == Path("/etc/expensescan.toml")

    monkeypatch.delenv("EXPENSESCAN_CONFIG")
    assert resolve_config_path() == Path("config") / "ocr.toml"


@pytest.mark.parametrize(
    "body",
    [
        "[preprocessing]\nmax_width = \"wide\"\n",
        "[preprocessing]\nenabled = 1\n",
        "[ocr]\nproviders = \"tesseract\"\n",
        "[parsing]\nmax_items = true\n",
        "[parsing]\nmerge_tolerance = \"abc\"\n",
    ],
)
def test_wrong_types_raise_value_error(tmp_path: Path, body: str) -> None:
    config = tmp_path / "bad.toml"
    config.write_text(body, encoding="utf-8")

    with pytest.raises(ValueError):
        load_settings(str(config))
