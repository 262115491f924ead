"""Exceptions raised while turning uploaded documents into transactions."""

from __future__ import annotations


class DocumentProcessingError(RuntimeError):
    """Base class for failures that abort processing of a single document."""


class UnsupportedDocumentType(DocumentProcessingError):
    """Raised when a document is neither an image nor a PDF."""

    def __init__(self, document_type: str) -> None:
        super().__init__(f"Unsupported document type: {document_type!r}")
        self.document_type = document_type


class OcrProcessingFailed(DocumentProcessingError):
    """Raised when text recognition on an image fails.

    The underlying failure is kept as ``__cause__`` and its message is
    repeated in ``detail``.
    """

    prefix = "OCR processing failed"

    def __init__(self, detail: str) -> None:
        super().__init__(f"{self.prefix}: {detail}")
        self.detail = detail


class OCRServiceUnavailable(OcrProcessingFailed):
    """Raised when the OCR service cannot be reached or returns an error."""


class PdfProcessingFailed(DocumentProcessingError):
    """Raised when the text layer of a PDF cannot be extracted."""

    prefix = "PDF processing failed"

    def __init__(self, detail: str) -> None:
        super().__init__(f"{self.prefix}: {detail}")
        self.detail = detail


class TransactionValidationError(ValueError):
    """Raised by a transaction store when a candidate fails validation."""

    def __init__(self, errors: list[str]) -> None:
        super().__init__("Validation failed: " + "; ".join(errors))
        self.errors = list(errors)
