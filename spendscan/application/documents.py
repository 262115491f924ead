"""Document scan workflow orchestration."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal

from spendscan.domain.transaction import DocumentResult, DocumentType
from spendscan.runtime.document_pipeline import DocumentPipeline
from spendscan.runtime.errors import (
    OcrProcessingFailed,
    PdfProcessingFailed,
    TransactionValidationError,
    UnsupportedDocumentType,
)
from spendscan.runtime.logging import get_logger
from spendscan.runtime.transaction_store import StoredTransaction, TransactionStore

logger = get_logger(__name__)

IMAGE_SUFFIXES = frozenset({".jpg", ".jpeg", ".png", ".gif", ".bmp", ".tif", ".tiff", ".webp", ".heic"})
PDF_MAGIC = b"%PDF"

ScanStatus = Literal[
    "file_not_found",
    "unsupported_type",
    "ocr_failed",
    "no_transactions",
    "extracted",
    "saved",
]


def detect_document_type(path: Path) -> str:
    """
    Guess the document type from suffix and magic bytes.

    Returns "pdf", "image", or the bare suffix (which the pipeline rejects).
    """
    suffix = path.suffix.lower()
    if suffix == ".pdf":
        return DocumentType.PDF.value
    if suffix in IMAGE_SUFFIXES:
        return DocumentType.IMAGE.value
    with open(path, "rb") as f:
        if f.read(len(PDF_MAGIC)) == PDF_MAGIC:
            return DocumentType.PDF.value
    return suffix.lstrip(".") or "unknown"


@dataclass(frozen=True)
class DocumentScanRequest:
    """Inputs for running the document scan workflow."""

    path: Path
    pipeline: DocumentPipeline
    document_type: str | None = None
    store: TransactionStore | None = None
    user_id: str | None = None


@dataclass(frozen=True)
class DocumentScanResult:
    """Outcome from the document scan workflow."""

    status: ScanStatus
    result: DocumentResult | None = None
    stored: list[StoredTransaction] = field(default_factory=list)
    validation_errors: list[str] = field(default_factory=list)
    error: str | None = None


def _save_all(
    result: DocumentResult, store: TransactionStore, user_id: str
) -> tuple[list[StoredTransaction], list[str]]:
    """Save each candidate, collecting per-transaction validation errors."""
    stored: list[StoredTransaction] = []
    errors: list[str] = []
    for index, transaction in enumerate(result.transactions):
        try:
            stored.append(store.save(transaction, user_id))
        except TransactionValidationError as e:
            logger.warning("Transaction %d not saved: %s", index, e)
            errors.append(f"Transaction {index}: {'; '.join(e.errors)}")
    return stored, errors


def run_document_scan(request: DocumentScanRequest) -> DocumentScanResult:
    """Run scan flow: detect type -> recognize -> extract -> optional save."""
    if not request.path.exists():
        return DocumentScanResult(
            status="file_not_found",
            error=f"Document not found: {request.path}",
        )

    document_type = request.document_type or detect_document_type(request.path)

    try:
        result = request.pipeline.process(request.path.read_bytes(), document_type)
    except UnsupportedDocumentType as exc:
        return DocumentScanResult(status="unsupported_type", error=str(exc))
    except (OcrProcessingFailed, PdfProcessingFailed) as exc:
        return DocumentScanResult(status="ocr_failed", error=str(exc))

    if not result.transactions:
        return DocumentScanResult(status="no_transactions", result=result)

    if request.store is None or not request.user_id:
        return DocumentScanResult(status="extracted", result=result)

    stored, errors = _save_all(result, request.store, request.user_id)
    return DocumentScanResult(
        status="saved",
        result=result,
        stored=stored,
        validation_errors=errors,
    )
