"""Document pipeline: recognize text in an image or PDF, then extract transactions."""

from __future__ import annotations

import os
import tempfile
from collections.abc import Callable
from pathlib import Path

from spendscan.domain.transaction import PDF_TEXT_CONFIDENCE, DocumentResult, DocumentType, RecognizedDocument
from spendscan.receipt.format_dispatcher import FormatDispatcher
from spendscan.receipt.ocr_helpers import image_suffix, preprocess_for_ocr
from spendscan.runtime.errors import OcrProcessingFailed, PdfProcessingFailed, UnsupportedDocumentType
from spendscan.runtime.logging import get_logger
from spendscan.runtime.ocr_backends import (
    ProgressCallback,
    ServiceOcrRecognizer,
    TextRecognizer,
    extract_pdf_text,
)

logger = get_logger(__name__)

DEFAULT_OCR_LANGUAGE = "eng"


class DocumentPipeline:
    """
    Runs one document through recognition and format dispatch.

    Collaborators are injected so tests can replace OCR, PDF extraction and
    preprocessing with fakes. Nothing is shared between calls except these
    collaborators, so one pipeline may serve concurrent callers.
    """

    def __init__(
        self,
        recognizer: TextRecognizer | None = None,
        pdf_extractor: Callable[[bytes], str] = extract_pdf_text,
        preprocessor: Callable[[bytes], bytes] = preprocess_for_ocr,
        dispatcher: FormatDispatcher | None = None,
        language: str = DEFAULT_OCR_LANGUAGE,
        progress: ProgressCallback | None = None,
    ) -> None:
        self.recognizer = recognizer if recognizer is not None else ServiceOcrRecognizer()
        self.pdf_extractor = pdf_extractor
        self.preprocessor = preprocessor
        self.dispatcher = dispatcher if dispatcher is not None else FormatDispatcher()
        self.language = language
        self.progress = progress

    def process(self, document_bytes: bytes, document_type: DocumentType | str) -> DocumentResult:
        """
        Extract transaction candidates from a document.

        Args:
            document_bytes: Raw file contents
            document_type: "image" or "pdf"

        Returns:
            DocumentResult; zero transactions is a normal outcome

        Raises:
            UnsupportedDocumentType: document_type is neither image nor pdf
            OcrProcessingFailed: Image text recognition failed
            PdfProcessingFailed: PDF text extraction failed
        """
        kind = _coerce_document_type(document_type)
        if kind is DocumentType.IMAGE:
            recognized = self.recognize_image(document_bytes)
        else:
            recognized = self.read_pdf(document_bytes)

        logger.debug("Recognized text:\n%s", recognized.raw_text)
        transactions = self.dispatcher.parse_transactions(recognized.raw_text)
        logger.info(
            "Extracted %d transaction(s) from %s (confidence %.1f)",
            len(transactions),
            kind.value,
            recognized.confidence,
        )
        return DocumentResult(
            extracted_text=recognized.raw_text,
            confidence=recognized.confidence,
            transactions=transactions,
        )

    def recognize_image(self, image_bytes: bytes) -> RecognizedDocument:
        """Preprocess into a per-call temp file and run OCR on it."""
        try:
            processed = self.preprocessor(image_bytes)
        except Exception as e:
            logger.warning("Image preprocessing failed, using original image: %s", e)
            processed = image_bytes

        fd, temp_name = tempfile.mkstemp(prefix="spendscan-", suffix=image_suffix(processed))
        temp_path = Path(temp_name)
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(processed)
            return self.recognizer.recognize(temp_path, self.language, progress=self.progress)
        except OcrProcessingFailed:
            raise
        except Exception as e:
            logger.error("OCR processing failed: %s", e)
            raise OcrProcessingFailed(str(e)) from e
        finally:
            _remove_temp_file(temp_path)

    def read_pdf(self, pdf_bytes: bytes) -> RecognizedDocument:
        try:
            text = self.pdf_extractor(pdf_bytes)
        except Exception as e:
            logger.error("PDF processing failed: %s", e)
            raise PdfProcessingFailed(str(e)) from e
        return RecognizedDocument(raw_text=text, confidence=PDF_TEXT_CONFIDENCE)


def _coerce_document_type(document_type: DocumentType | str) -> DocumentType:
    if isinstance(document_type, DocumentType):
        return document_type
    try:
        return DocumentType(str(document_type).strip().lower())
    except ValueError as e:
        raise UnsupportedDocumentType(str(document_type)) from e


def _remove_temp_file(path: Path) -> None:
    try:
        path.unlink(missing_ok=True)
    except OSError as e:
        # Best effort; the extraction result stands.
        logger.warning("Could not remove temporary file %s: %s", path, e)


def process_document(document_bytes: bytes, document_type: DocumentType | str) -> DocumentResult:
    """Process a document with the default OCR service and category table."""
    return DocumentPipeline().process(document_bytes, document_type)
