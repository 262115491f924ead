"""Runtime infrastructure for spendscan.

This package provides process/runtime services including:
- Logging setup via get_logger()
- Settings loading via load_settings()
- The document pipeline, OCR backends and transaction store (import the
  submodules directly: document_pipeline, ocr_backends, transaction_store)

Usage:
    from spendscan.runtime import get_logger, load_settings

    logger = get_logger(__name__)
    settings = load_settings()
    print(settings.ocr_url, settings.data_dir)
"""

from spendscan.runtime.errors import (
    DocumentProcessingError,
    OcrProcessingFailed,
    OCRServiceUnavailable,
    PdfProcessingFailed,
    TransactionValidationError,
    UnsupportedDocumentType,
)
from spendscan.runtime.logging import (
    DEFAULT_LOG_LEVEL,
    LOG_FORMAT,
    LOG_FORMAT_DEBUG,
    configure_logging,
    get_logger,
    set_log_level,
)
from spendscan.runtime.settings import Settings, load_settings

__all__ = [
    # Logging
    "get_logger",
    "configure_logging",
    "set_log_level",
    "DEFAULT_LOG_LEVEL",
    "LOG_FORMAT",
    "LOG_FORMAT_DEBUG",
    # Errors
    "DocumentProcessingError",
    "UnsupportedDocumentType",
    "OcrProcessingFailed",
    "OCRServiceUnavailable",
    "PdfProcessingFailed",
    "TransactionValidationError",
    # Settings
    "Settings",
    "load_settings",
]
