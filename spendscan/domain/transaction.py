"""Data models for document scanning and extracted transactions."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any

RECEIPT_CONFIDENCE = 80
LIST_LINE_CONFIDENCE = 60
PDF_TEXT_CONFIDENCE = 90.0

MAX_DESCRIPTION_LENGTH = 100


class TransactionType(str, Enum):
    INCOME = "income"
    EXPENSE = "expense"


class DocumentType(str, Enum):
    IMAGE = "image"
    PDF = "pdf"


@dataclass(frozen=True)
class RecognizedDocument:
    """Text produced by an OCR or PDF text-layer capability."""

    raw_text: str
    confidence: float  # 0-100 recognition quality estimate


@dataclass(frozen=True)
class AmountCandidate:
    """A currency-like token found in receipt text, prior to total selection."""

    value: Decimal
    context: str  # lowercased line text up to and including the amount
    offset: int
    trailing_context: str = ""  # rest of the line, up to the next amount


@dataclass(frozen=True)
class TotalKeywordGroup:
    keywords: tuple[str, ...]
    priority: int


@dataclass
class ExtractedTransaction:
    """A transaction candidate awaiting human review.

    Callers own the instance once returned and may edit category,
    description or date before persisting it.
    """

    type: TransactionType
    category: str
    amount: Decimal
    date: date
    description: str
    confidence: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": TransactionType(self.type).value,
            "category": self.category,
            "amount": str(self.amount),
            "date": self.date.isoformat(),
            "description": self.description,
            "confidence": self.confidence,
        }


@dataclass
class DocumentResult:
    """Outcome of running one document through the extraction pipeline."""

    extracted_text: str
    confidence: float
    transactions: list[ExtractedTransaction] = field(default_factory=list)

    @property
    def transaction_count(self) -> int:
        return len(self.transactions)

    def to_dict(self) -> dict[str, Any]:
        return {
            "extractedText": self.extracted_text,
            "confidence": self.confidence,
            "transactions": [txn.to_dict() for txn in self.transactions],
            "transactionCount": self.transaction_count,
        }
