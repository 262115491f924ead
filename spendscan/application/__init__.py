"""Application workflows."""

from spendscan.application.documents import (
    DocumentScanRequest,
    DocumentScanResult,
    detect_document_type,
    run_document_scan,
)

__all__ = [
    "DocumentScanRequest",
    "DocumentScanResult",
    "detect_document_type",
    "run_document_scan",
]
