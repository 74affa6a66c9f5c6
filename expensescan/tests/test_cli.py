"""Tests for the expensescan command-line interface."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from expensescan.cli.main import main
from expensescan.receipt import providers as providers_module
from expensescan.receipt.providers import ProviderRegistry, StaticTextProvider
from expensescan.runtime.receipt_pipeline import ReceiptPipeline
from expensescan.runtime.settings import Settings

RECEIPT_TEXT = "STAR BAZAAR\nTOTAL: Rs. 1,245.50\n12/06/2024\nUPI\n"


@pytest.fixture
def static_pipeline(monkeypatch: pytest.MonkeyPatch) -> StaticTextProvider:
    provider = StaticTextProvider(RECEIPT_TEXT)

    def from_settings(cls, settings: Settings | None = None) -> ReceiptPipeline:
        return cls(settings or Settings(), ProviderRegistry([provider]))

    monkeypatch.setattr(ReceiptPipeline, "from_settings", classmethod(from_settings))
    return provider


@pytest.fixture
def config_path(tmp_path: Path) -> str:
    return str(tmp_path / "missing.toml")


@pytest.fixture
def write_image(tmp_path: Path, make_image_bytes):
    def write(name: str = "receipt.png") -> str:
        path = tmp_path / name
        path.write_bytes(make_image_bytes(900, 700))
        return str(path)

    return write


def test_scan_prints_summary(
    write_image, config_path: str, static_pipeline: StaticTextProvider, capsys: pytest.CaptureFixture[str]
) -> None:
    rc = main(["--config", config_path, "scan", write_image()])

    out = capsys.readouterr().out
    assert rc == 0
    assert out.startswith("Receipt\n")
    assert "STAR BAZAAR" in out
    assert "1245.50 INR" in out
    assert static_pipeline.calls == 1


def test_scan_json_output(
    write_image, config_path: str, static_pipeline: StaticTextProvider, capsys: pytest.CaptureFixture[str]
) -> None:
    rc = main(["scan", write_image(), "--json", "--config", config_path])

    data = json.loads(capsys.readouterr().out)
    assert rc == 0
    assert data["merchant"] == "STAR BAZAAR"
    assert data["amount"] == "1245.50"
    assert data["payment_method"] == "UPI"
    assert data["image_quality"] == "GOOD"


def test_scan_several_images_merges_pages(
    write_image, config_path: str, static_pipeline: StaticTextProvider, capsys: pytest.CaptureFixture[str]
) -> None:
    images = [write_image("p1.png"), write_image("p2.png")]

    rc = main(["--config", config_path, "scan", *images, "--json"])

    data = json.loads(capsys.readouterr().out)
    assert rc == 0
    assert data["warnings"][0] == "Scanned 2 pages, merged results"
    assert static_pipeline.calls == 2


def test_scan_missing_file(tmp_path: Path, config_path: str, capsys: pytest.CaptureFixture[str]) -> None:
    rc = main(["--config", config_path, "scan", str(tmp_path / "nope.png")])

    assert rc == 1
    assert "Cannot read image" in capsys.readouterr().out


def test_scan_rejected_upload(
    tmp_path: Path, config_path: str, static_pipeline: StaticTextProvider, capsys: pytest.CaptureFixture[str]
) -> None:
    path = tmp_path / "receipt.pdf"
    path.write_bytes(b"%PDF-1.7")

    rc = main(["--config", config_path, "scan", str(path)])

    assert rc == 1
    assert "File type 'pdf' not allowed" in capsys.readouterr().out
    assert static_pipeline.calls == 0


def test_invalid_config(tmp_path: Path, write_image, capsys: pytest.CaptureFixture[str]) -> None:
    config = tmp_path / "bad.toml"
    config.write_text("[preprocessing]\nenabled = 1\n", encoding="utf-8")

    rc = main(["--config", str(config), "scan", write_image()])

    assert rc == 1
    assert "Invalid configuration" in capsys.readouterr().out


def test_providers_command(
    config_path: str, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    registry = ProviderRegistry(
        [StaticTextProvider("", name="offline", available=False), StaticTextProvider("", name="static")]
    )
    monkeypatch.setattr(providers_module, "build_default_registry", lambda settings: registry)

    rc = main(["providers", "--config", config_path])

    out = capsys.readouterr().out.splitlines()
    assert rc == 0
    assert out == ["offline: unavailable", "static: available", "Active provider: static"]


def test_providers_command_none_available(
    config_path: str, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    registry = ProviderRegistry([StaticTextProvider("", name="offline", available=False)])
    monkeypatch.setattr(providers_module, "build_default_registry", lambda settings: registry)

    rc = main(["--config", config_path, "providers"])

    assert rc == 1
    assert capsys.readouterr().out.splitlines()[-1] == "Active provider: none"


def test_no_command_prints_help(capsys: pytest.CaptureFixture[str]) -> None:
    assert main([]) == 1
    assert "usage:" in capsys.readouterr().out
