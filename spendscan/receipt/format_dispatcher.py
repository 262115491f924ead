"""Turn recognized document text into transaction candidates.

Two formats are tried in order:

1. Receipt format: one transaction for the whole document (the total).
2. Transaction-list format: one transaction per amount-bearing line, used
   only when the receipt format yields nothing.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from datetime import date
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from spendscan.domain.categories import MISCELLANEOUS
from spendscan.domain.transaction import (
    LIST_LINE_CONFIDENCE,
    MAX_DESCRIPTION_LENGTH,
    RECEIPT_CONFIDENCE,
    ExtractedTransaction,
    TransactionType,
)
from spendscan.runtime.logging import get_logger

from .amount_extractor import CENTS, extract_amounts, select_total
from .category_classifier import CategoryClassifier
from .date_extractor import extract_date, find_date, strip_dates
from .description import fallback_description, generate_description
from .merchant_resolver import UNKNOWN_MERCHANT, resolve_merchant
from .text_normalizer import normalize_text, split_lines

logger = get_logger(__name__)

LINE_AMOUNT_TOKEN = re.compile(r"(?P<symbol>[₹$€£¥])?\s*(?P<number>\d[\d,]*(?:\.\d+)?)")
DECIMAL_COMMA = re.compile(r"^\d+,\d{2}$")
NUMERIC_NOISE = re.compile(r"[\d.,₹$€£¥]+")
DESCRIPTION_EDGES = " -:#*@\t"


def parse_line_amount(line: str) -> Decimal | None:
    """
    Read the amount from one line of a transaction list.

    Prefers the last currency-prefixed or decimal token (amounts are usually
    right-aligned), falling back to the first bare number.
    """
    tokens = list(LINE_AMOUNT_TOKEN.finditer(line))
    if not tokens:
        return None

    priced = [
        t
        for t in tokens
        if t.group("symbol") or "." in t.group("number") or DECIMAL_COMMA.match(t.group("number"))
    ]
    token = priced[-1] if priced else tokens[0]
    number = token.group("number")
    number = number.replace(",", ".") if DECIMAL_COMMA.match(number) else number.replace(",", "")

    try:
        return Decimal(number).quantize(CENTS, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        return None


def line_description(line: str) -> str | None:
    """Text left on a line after numeric and currency tokens are removed."""
    description = NUMERIC_NOISE.sub(" ", line)
    description = re.sub(r"\s+", " ", description).strip(DESCRIPTION_EDGES).strip()
    return description if len(description) > 2 else None


class FormatDispatcher:
    """Receipt-first, list-second extraction over recognized text."""

    def __init__(
        self,
        classifier: CategoryClassifier | None = None,
        today: Callable[[], date] = date.today,
    ) -> None:
        self.classifier = classifier if classifier is not None else CategoryClassifier()
        self.today = today

    def parse_transactions(self, text: str) -> list[ExtractedTransaction]:
        """
        Extract transaction candidates from recognized text.

        Returns:
            At most one receipt transaction, else the list-format lines, else []
        """
        if not text or not text.strip():
            return []

        transactions = self.parse_receipt_format(text)
        if transactions:
            return transactions

        logger.debug("No receipt total found; trying transaction-list format")
        return self.parse_transaction_list(text)

    def parse_receipt_format(self, text: str) -> list[ExtractedTransaction]:
        # Amounts, date and the first merchant strategy read the raw text.
        total = select_total(extract_amounts(text), text)
        if total is None or total <= 0:
            return []

        cleaned = normalize_text(text)
        merchant = resolve_merchant(text, split_lines(cleaned))
        category = self.classifier.classify(merchant if merchant != UNKNOWN_MERCHANT else cleaned)
        description = generate_description(merchant, cleaned, category)
        receipt_date = extract_date(text, today=self.today())

        logger.debug("Receipt format: total=%s merchant=%r category=%s", total, merchant, category)
        return [
            ExtractedTransaction(
                type=TransactionType.EXPENSE,
                category=category,
                amount=total,
                date=receipt_date,
                description=description,
                confidence=RECEIPT_CONFIDENCE,
            )
        ]

    def parse_transaction_list(self, text: str) -> list[ExtractedTransaction]:
        transactions: list[ExtractedTransaction] = []
        for line in split_lines(text.replace("\r\n", "\n")):
            if not re.search(r"\d", line):
                continue

            line_date = find_date(line)
            remainder = strip_dates(line)
            amount = parse_line_amount(remainder)
            if amount is None or amount <= 0:
                continue

            description = line_description(remainder)
            if description is None:
                category = MISCELLANEOUS
                description = fallback_description(category)
            else:
                category = self.classifier.classify(description)

            transactions.append(
                ExtractedTransaction(
                    type=TransactionType.EXPENSE,
                    category=category,
                    amount=amount,
                    date=line_date or self.today(),
                    description=description[:MAX_DESCRIPTION_LENGTH].rstrip(),
                    confidence=LIST_LINE_CONFIDENCE,
                )
            )

        logger.debug("Transaction-list format produced %d candidates", len(transactions))
        return transactions


_default_dispatcher = FormatDispatcher()


def parse_transactions(text: str) -> list[ExtractedTransaction]:
    """Extract transaction candidates with the default category table."""
    return _default_dispatcher.parse_transactions(text)
