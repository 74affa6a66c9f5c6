"""Tests for upload validation and decoding."""

from __future__ import annotations

import io

import pytest
from PIL import Image

from expensescan.domain.errors import InvalidImage
from expensescan.domain.receipt import RawImage
from expensescan.receipt.image_validation import decode_image, parse_file_size, validate_image
from expensescan.runtime.settings import UploadSettings


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("10MB", 10 * 1024 * 1024),
        ("512kb", 512 * 1024),
        ("1GB", 1024**3),
        (" 2 MB ", 2 * 1024 * 1024),
        ("4096", 4096),
    ],
)
def test_parse_file_size(value: str, expected: int) -> None:
    assert parse_file_size(value) == expected


@pytest.mark.parametrize("value", ["", "ten MB", "10TB", "1.5MB"])
def test_parse_file_size_rejects_garbage(value: str) -> None:
    with pytest.raises(ValueError):
        parse_file_size(value)


def test_empty_upload_rejected() -> None:
    with pytest.raises(InvalidImage, match="empty"):
        validate_image(RawImage(data=b"", filename="a.png"), UploadSettings())


def test_missing_extension_rejected() -> None:
    with pytest.raises(InvalidImage, match="no extension"):
        validate_image(RawImage(data=b"abc", filename="receipt"), UploadSettings())


def test_disallowed_extension_rejected() -> None:
    with pytest.raises(InvalidImage, match="File type 'pdf' not allowed"):
        validate_image(RawImage(data=b"abc", filename="receipt.pdf"), UploadSettings())


def test_extension_check_is_case_insensitive() -> None:
    validate_image(RawImage(data=b"abc", filename="RECEIPT.JPG"), UploadSettings())


def test_declared_size_over_limit_rejected() -> None:
    raw = RawImage(data=b"abc", filename="a.png", size=2 * 1024)
    with pytest.raises(InvalidImage, match="maximum allowed size of 1KB"):
        validate_image(raw, UploadSettings(max_file_size="1KB"))


def test_raw_image_size_defaults_to_length() -> None:
    assert RawImage(data=b"12345", filename="a.png").size == 5


def test_undecodable_bytes_rejected() -> None:
    with pytest.raises(InvalidImage, match="Could not read image file"):
        decode_image(RawImage(data=b"definitely not a png", filename="a.png"), UploadSettings())


def test_decode_converts_palette_to_rgb(make_image_bytes) -> None:
    data = make_image_bytes(40, 30, mode="P")

    img = decode_image(RawImage(data=data, filename="a.png"), UploadSettings())

    assert img.mode == "RGB"
    assert img.size == (40, 30)


def test_decode_keeps_grayscale(make_image_bytes) -> None:
    data = make_image_bytes(40, 30, mode="L")

    img = decode_image(RawImage(data=data, filename="a.png"), UploadSettings())

    assert img.mode == "L"


def test_decode_applies_exif_orientation() -> None:
    img = Image.new("RGB", (60, 20), color="white")
    exif = img.getexif()
    exif[0x0112] = 6  # rotate 90 CW on display
    buffer = io.BytesIO()
    img.save(buffer, format="JPEG", exif=exif)

    decoded = decode_image(RawImage(data=buffer.getvalue(), filename="a.jpg"), UploadSettings())

    assert decoded.size == (20, 60)
