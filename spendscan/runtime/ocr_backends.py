"""Text recognition capabilities: OCR service, local Tesseract and PDF text layers."""

from __future__ import annotations

import mimetypes
import time
from collections.abc import Callable
from pathlib import Path
from typing import Any, Protocol

import httpx

from spendscan.domain.transaction import RecognizedDocument
from spendscan.receipt.ocr_helpers import detections_to_text
from spendscan.runtime.errors import OCRServiceUnavailable
from spendscan.runtime.logging import get_logger
from spendscan.runtime.settings import DEFAULT_OCR_URL, Settings

logger = get_logger(__name__)

ProgressCallback = Callable[[str, float], None]


class TextRecognizer(Protocol):
    """Recognizes text in an image file."""

    def recognize(
        self,
        image_path: Path,
        language: str,
        progress: ProgressCallback | None = None,
    ) -> RecognizedDocument: ...


def _report(progress: ProgressCallback | None, status: str, fraction: float) -> None:
    if progress is not None:
        progress(status, fraction)


def _content_type(image_path: Path) -> str:
    content_type, _ = mimetypes.guess_type(image_path.name)
    return content_type or "application/octet-stream"


class ServiceOcrRecognizer:
    """Recognizer backed by a PaddleOCR HTTP service (``POST <url>/ocr``)."""

    def __init__(self, ocr_url: str = DEFAULT_OCR_URL, timeout: float = 60.0) -> None:
        self.ocr_url = ocr_url.rstrip("/")
        self.timeout = timeout

    def recognize(
        self,
        image_path: Path,
        language: str,
        progress: ProgressCallback | None = None,
    ) -> RecognizedDocument:
        """
        Send an image to the OCR service and return its text.

        The service chooses its own recognition model; ``language`` is
        forwarded as a form field for services that support it.

        Raises:
            OCRServiceUnavailable: Connection failure or non-200 response
        """
        logger.info("Sending image to OCR service at %s...", self.ocr_url)
        _report(progress, "uploading", 0.0)

        try:
            start_time = time.time()
            response = httpx.post(
                f"{self.ocr_url}/ocr",
                files={"file": (image_path.name, image_path.read_bytes(), _content_type(image_path))},
                data={"lang": language},
                timeout=self.timeout,
            )
            logger.info("OCR service returned in %.2f seconds", time.time() - start_time)
        except httpx.RequestError as e:
            logger.error("Failed to connect to OCR service: %s", e)
            raise OCRServiceUnavailable(f"Failed to connect to OCR service: {e}") from e

        if response.status_code != 200:
            # Response body may echo receipt text; keep it out of non-debug logs.
            logger.error("OCR service error: %s", response.status_code)
            logger.debug("OCR service error body: %s", response.text)
            raise OCRServiceUnavailable(f"OCR service error: {response.status_code}")

        _report(progress, "recognizing", 0.5)
        text, confidence = detections_to_text(response.json())
        _report(progress, "done", 1.0)
        return RecognizedDocument(raw_text=text, confidence=confidence)


class TesseractRecognizer:
    """Recognizer using a local Tesseract install through pytesseract."""

    def __init__(self, tesseract_cmd: str | None = None) -> None:
        self.tesseract_cmd = tesseract_cmd

    def recognize(
        self,
        image_path: Path,
        language: str,
        progress: ProgressCallback | None = None,
    ) -> RecognizedDocument:
        import pytesseract
        from PIL import Image

        if self.tesseract_cmd:
            pytesseract.pytesseract.tesseract_cmd = self.tesseract_cmd

        _report(progress, "recognizing", 0.0)
        with Image.open(image_path) as image:
            data = pytesseract.image_to_data(image, lang=language, output_type=pytesseract.Output.DICT)
        _report(progress, "done", 1.0)

        text, confidence = tesseract_data_to_text(data)
        logger.debug("Tesseract recognized %d characters (confidence %.1f)", len(text), confidence)
        return RecognizedDocument(raw_text=text, confidence=confidence)


def tesseract_data_to_text(data: dict[str, list[Any]]) -> tuple[str, float]:
    """
    Join ``image_to_data`` words into lines.

    Words sharing (block, paragraph, line) numbers form one line. Confidence is
    the mean of non-negative word confidences (Tesseract reports -1 for
    non-word boxes).
    """
    lines: dict[tuple[int, int, int], list[str]] = {}
    confidences: list[float] = []

    for index, word in enumerate(data.get("text", [])):
        word = str(word).strip()
        if not word:
            continue
        key = (int(data["block_num"][index]), int(data["par_num"][index]), int(data["line_num"][index]))
        lines.setdefault(key, []).append(word)
        confidence = float(data["conf"][index])
        if confidence >= 0:
            confidences.append(confidence)

    text = "\n".join(" ".join(words) for _, words in sorted(lines.items()))
    confidence = sum(confidences) / len(confidences) if confidences else 0.0
    return text, round(confidence, 2)


def extract_pdf_text(pdf_bytes: bytes) -> str:
    """Return the text layer of every page, pages separated by newlines."""
    import fitz  # PyMuPDF

    with fitz.open(stream=pdf_bytes, filetype="pdf") as doc:
        pages = [page.get_text() for page in doc]
    logger.debug("Extracted text from %d PDF pages", len(pages))
    return "\n".join(pages)


def build_recognizer(settings: Settings) -> TextRecognizer:
    """Create the recognizer selected by ``settings.ocr_backend``."""
    if settings.ocr_backend == "tesseract":
        return TesseractRecognizer(tesseract_cmd=settings.tesseract_cmd)
    return ServiceOcrRecognizer(settings.ocr_url, timeout=settings.ocr_timeout)
