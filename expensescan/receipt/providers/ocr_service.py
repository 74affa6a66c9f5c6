"""Remote PaddleOCR-style HTTP service provider.

The service accepts a JPEG upload at ``POST {url}/ocr`` and answers with
``{"image_width", "image_height", "detections": [[bbox, [text, conf]], ...]}``.
Detections are grouped into reading-order text lines here.
"""

from __future__ import annotations

import io
import time
from dataclasses import dataclass
from typing import Any

import httpx
from PIL import ImageOps

from expensescan.domain.receipt import ExtractionResult, ProcessedImage
from expensescan.runtime.logging import get_logger

from .base import elapsed_ms

logger = get_logger(__name__)

OCR_IMAGE_PADDING = 50  # White border so glyphs at the edge are not truncated
MIN_DETECTION_CONFIDENCE = 0.7
MIN_TEXT_LENGTH = 2

# Horizontal zones, as a fraction of image width.
LEFT_ZONE = 0.3
RIGHT_ZONE = 0.7


@dataclass(frozen=True)
class Detection:
    text: str
    confidence: float
    min_x: float
    y_min: float
    y_max: float

    @property
    def center_y(self) -> float:
        return (self.y_min + self.y_max) / 2

    @property
    def height(self) -> float:
        return self.y_max - self.y_min


def _vertical_overlap(a_min: float, a_max: float, b_min: float, b_max: float) -> float:
    """Overlap of two vertical spans relative to the shorter one (0 when disjoint)."""
    overlap = min(a_max, b_max) - max(a_min, b_min)
    if overlap <= 0:
        return 0.0
    shorter = min(a_max - a_min, b_max - b_min)
    if shorter <= 0:
        return 0.0
    return overlap / shorter


def _middle_threshold(detections: list[Detection]) -> float:
    heights = sorted(d.height for d in detections if d.height > 0)
    if not heights:
        return 24.0
    return max(12.0, min(30.0, heights[len(heights) // 2] * 0.8))


def group_detections_into_lines(detections: list[Detection], image_width: float) -> list[list[Detection]]:
    """
    Group detections into text lines.

    Left-column text is paired with the first unclaimed right-column text it
    overlaps vertically (item name + price). Middle-column text joins the
    closest line by overlap, then by center distance.
    """
    if not detections:
        return []
    width = image_width or 1.0

    left: list[Detection] = []
    middle: list[Detection] = []
    right: list[Detection] = []
    for det in detections:
        position = det.min_x / width
        if position < LEFT_ZONE:
            left.append(det)
        elif position > RIGHT_ZONE:
            right.append(det)
        else:
            middle.append(det)
    left.sort(key=lambda d: d.center_y)
    right.sort(key=lambda d: d.center_y)

    lines: list[list[Detection]] = []
    claimed: set[int] = set()
    for det in left:
        partner = next(
            (
                idx
                for idx, candidate in enumerate(right)
                if idx not in claimed and _vertical_overlap(det.y_min, det.y_max, candidate.y_min, candidate.y_max) >= 0.3
            ),
            None,
        )
        if partner is None:
            lines.append([det])
        else:
            claimed.add(partner)
            lines.append([det, right[partner]])
    lines.extend([det] for idx, det in enumerate(right) if idx not in claimed)

    threshold = _middle_threshold(detections)
    for det in middle:
        best: tuple[tuple[int, float, float], int] | None = None
        for idx, line in enumerate(lines):
            line_min = min(d.y_min for d in line)
            line_max = max(d.y_max for d in line)
            line_center = sum(d.center_y for d in line) / len(line)
            overlap = _vertical_overlap(det.y_min, det.y_max, line_min, line_max)
            distance = abs(det.center_y - line_center)
            if overlap < 0.25 and distance > threshold:
                continue
            outside = max(0.0, line_min - det.center_y, det.center_y - line_max)
            score = (0 if overlap >= 0.25 else 1, outside, distance)
            if best is None or score < best[0]:
                best = (score, idx)
        if best is None:
            lines.append([det])
        else:
            lines[best[1]].append(det)

    for line in lines:
        line.sort(key=lambda d: d.min_x)
    lines.sort(key=lambda line: sum(d.center_y for d in line) / len(line))
    return lines


def detections_to_text(raw_result: dict[str, Any], padding: int = OCR_IMAGE_PADDING) -> tuple[str, float | None]:
    """
    Convert a raw service response into newline-separated text.

    Returns:
        Tuple of (text, mean detection confidence scaled to 0-100 or None).
    """
    image_width = float(raw_result.get("image_width", 0)) - 2 * padding
    kept: list[Detection] = []
    for bbox, (text, confidence) in raw_result.get("detections", []):
        if confidence < MIN_DETECTION_CONFIDENCE or len(text.strip()) < MIN_TEXT_LENGTH:
            continue
        xs = [point[0] - padding for point in bbox]
        ys = [point[1] - padding for point in bbox]
        kept.append(Detection(text=text, confidence=float(confidence), min_x=min(xs), y_min=min(ys), y_max=max(ys)))

    if not kept:
        return "", None

    lines = group_detections_into_lines(kept, image_width)
    text = "\n".join(" ".join(d.text for d in line) for line in lines)
    mean_confidence = sum(d.confidence for d in kept) / len(kept) * 100
    return text, mean_confidence


def encode_for_upload(image: ProcessedImage, padding: int = OCR_IMAGE_PADDING) -> bytes:
    padded = ImageOps.expand(image.image, border=padding, fill="white") if padding > 0 else image.image
    buffer = io.BytesIO()
    padded.convert("RGB").save(buffer, format="JPEG", quality=95)
    return buffer.getvalue()


class OcrServiceProvider:
    """Sends images to an external OCR HTTP service."""

    name = "ocr_service"

    def __init__(self, base_url: str, *, timeout: float = 60.0, client: httpx.Client | None = None) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client = client or httpx.Client(timeout=timeout)

    def is_available(self) -> bool:
        try:
            response = self._client.get(f"{self.base_url}/health", timeout=min(self.timeout, 5.0))
        except httpx.HTTPError as e:
            logger.debug("OCR service health check failed: %s", e)
            return False
        return response.status_code == 200

    def extract_text(self, image: ProcessedImage) -> ExtractionResult:
        """
        Upload ``image`` and group returned detections into text.

        Timeouts propagate so the registry can report them.
        """
        logger.info("Sending receipt to OCR service at %s...", self.base_url)
        payload = encode_for_upload(image)

        start = time.perf_counter()
        try:
            response = self._client.post(
                f"{self.base_url}/ocr",
                files={"file": ("receipt.jpg", payload, "image/jpeg")},
                timeout=self.timeout,
            )
        except httpx.TimeoutException:
            raise
        except httpx.RequestError as e:
            logger.error("Failed to connect to OCR service: %s", e)
            return ExtractionResult.failure(
                f"Failed to connect to OCR service: {e}",
                provider=self.name,
                processing_time_ms=elapsed_ms(start),
                quality=image.quality,
            )

        processing_ms = elapsed_ms(start)
        logger.info("OCR service returned in %.2f seconds", processing_ms / 1000)
        if response.status_code != 200:
            # Response body may echo OCR text; keep it out of the logs.
            logger.error("OCR service error: %s", response.status_code)
            return ExtractionResult.failure(
                f"OCR service error: {response.status_code}",
                provider=self.name,
                processing_time_ms=processing_ms,
                quality=image.quality,
            )

        try:
            text, confidence = detections_to_text(response.json())
        except (ValueError, KeyError, TypeError) as e:
            logger.error("Malformed OCR service response: %s", e)
            return ExtractionResult.failure(
                f"Malformed OCR service response: {e}",
                provider=self.name,
                processing_time_ms=processing_ms,
                quality=image.quality,
            )

        return ExtractionResult.ok(
            text,
            provider=self.name,
            processing_time_ms=processing_ms,
            quality=image.quality,
            text_confidence=confidence,
            width=image.width,
            height=image.height,
        )

    def close(self) -> None:
        self._client.close()
