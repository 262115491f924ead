"""Core domain models for spendscan.

This module provides the data models used throughout the project:
- ExtractedTransaction, TransactionType: transaction candidates from documents
- RecognizedDocument, DocumentResult, DocumentType: pipeline input/output
- AmountCandidate, TotalKeywordGroup: amount extraction internals
- EXPENSE_CATEGORIES: the closed category taxonomy

Usage:
    from spendscan.domain import ExtractedTransaction, EXPENSE_CATEGORIES
"""

from spendscan.domain.categories import EXPENSE_CATEGORIES, MISCELLANEOUS, is_known_category
from spendscan.domain.transaction import (
    LIST_LINE_CONFIDENCE,
    MAX_DESCRIPTION_LENGTH,
    PDF_TEXT_CONFIDENCE,
    RECEIPT_CONFIDENCE,
    AmountCandidate,
    DocumentResult,
    DocumentType,
    ExtractedTransaction,
    RecognizedDocument,
    TotalKeywordGroup,
    TransactionType,
)

__all__ = [
    "AmountCandidate",
    "DocumentResult",
    "DocumentType",
    "EXPENSE_CATEGORIES",
    "ExtractedTransaction",
    "LIST_LINE_CONFIDENCE",
    "MAX_DESCRIPTION_LENGTH",
    "MISCELLANEOUS",
    "PDF_TEXT_CONFIDENCE",
    "RECEIPT_CONFIDENCE",
    "RecognizedDocument",
    "TotalKeywordGroup",
    "TransactionType",
    "is_known_category",
]
