"""File-backed storage of reviewed transactions.

Directory structure:
    <root>/
    └── <user_id>/
        ├── 2024-03-14_walmart_supercenter_purchase_48_60.json
        └── 2024-03-14_walmart_supercenter_purchase_48_60_1.json   (collision)
"""

from __future__ import annotations

import json
import re
import uuid
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any, Protocol

from spendscan.domain.transaction import ExtractedTransaction, TransactionType
from spendscan.runtime.errors import TransactionValidationError
from spendscan.runtime.logging import get_logger

logger = get_logger(__name__)

MAX_CATEGORY_LENGTH = 50
MAX_STORED_DESCRIPTION_LENGTH = 500
MAX_STORED_AMOUNT = Decimal("999999999")
MAX_FUTURE_DAYS = 365

SOURCE_RECEIPT = "receipt"


@dataclass(frozen=True)
class StoredTransaction:
    """A persisted transaction and where it lives."""

    id: str
    user_id: str
    transaction: ExtractedTransaction
    source: str
    created_at: datetime
    path: Path

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "userId": self.user_id,
            **self.transaction.to_dict(),
            "source": self.source,
            "createdAt": self.created_at.isoformat(),
        }


class TransactionStore(Protocol):
    """Persists reviewed transaction candidates."""

    def save(self, transaction: ExtractedTransaction, user_id: str) -> StoredTransaction: ...


def validate_transaction(transaction: ExtractedTransaction, today: date | None = None) -> list[str]:
    """
    Check a transaction before it is stored.

    Returns:
        Human-readable problems; empty when the transaction is valid
    """
    errors: list[str] = []
    today = today if today is not None else date.today()

    if transaction.type not in (TransactionType.INCOME, TransactionType.EXPENSE):
        errors.append("Type must be either income or expense")

    category = (transaction.category or "").strip()
    if not category:
        errors.append("Category is required")
    elif len(category) > MAX_CATEGORY_LENGTH:
        errors.append(f"Category must be less than {MAX_CATEGORY_LENGTH} characters")

    amount = transaction.amount
    if not isinstance(amount, Decimal) or not amount.is_finite() or amount <= 0:
        errors.append("Amount must be a positive number")
    elif amount > MAX_STORED_AMOUNT:
        errors.append("Amount is too large")

    # datetime subclasses date but cannot be compared with one
    if not isinstance(transaction.date, date) or isinstance(transaction.date, datetime):
        errors.append("Valid date is required")
    elif transaction.date > today + timedelta(days=MAX_FUTURE_DAYS):
        errors.append("Date cannot be more than 1 year in the future")

    if len(transaction.description or "") > MAX_STORED_DESCRIPTION_LENGTH:
        errors.append(f"Description must be less than {MAX_STORED_DESCRIPTION_LENGTH} characters")

    return errors


def _slug(text: str, max_length: int = 30) -> str:
    slug = "_".join(filter(None, re.split(r"[^a-z0-9]+", text.lower())))
    return slug[:max_length].rstrip("_") or "unknown"


def generate_transaction_filename(transaction: ExtractedTransaction) -> str:
    """
    Generate the base filename for a stored transaction.

    Format: YYYY-MM-DD_description_amount.json (amount 48.60 becomes 48_60)
    """
    amount_str = f"{transaction.amount:.2f}".replace(".", "_")
    return f"{transaction.date.isoformat()}_{_slug(transaction.description)}_{amount_str}.json"


def _user_dir_name(user_id: str) -> str:
    name = re.sub(r"[^A-Za-z0-9_.-]", "_", user_id.strip())
    if not name.strip("._"):
        raise ValueError(f"Invalid user id: {user_id!r}")
    return name


def _transaction_from_dict(data: dict[str, Any]) -> ExtractedTransaction:
    return ExtractedTransaction(
        type=TransactionType(data["type"]),
        category=data["category"],
        amount=Decimal(data["amount"]),
        date=date.fromisoformat(data["date"]),
        description=data["description"],
        confidence=int(data.get("confidence", 0)),
    )


class JsonTransactionStore:
    """TransactionStore writing one JSON file per transaction."""

    def __init__(self, root: Path) -> None:
        self.root = Path(root)

    def user_dir(self, user_id: str) -> Path:
        return self.root / _user_dir_name(user_id)

    def save(self, transaction: ExtractedTransaction, user_id: str) -> StoredTransaction:
        """
        Validate and write a transaction for ``user_id``.

        Raises:
            TransactionValidationError: If validate_transaction() reports problems
        """
        errors = validate_transaction(transaction)
        if errors:
            raise TransactionValidationError(errors)

        directory = self.user_dir(user_id)
        directory.mkdir(parents=True, exist_ok=True)

        filename = generate_transaction_filename(transaction)
        filepath = directory / filename

        # Handle filename collisions by appending a counter
        counter = 1
        base_name = filename.rsplit(".", 1)[0]
        while filepath.exists():
            filepath = directory / f"{base_name}_{counter}.json"
            counter += 1

        stored = StoredTransaction(
            id=uuid.uuid4().hex,
            user_id=user_id,
            transaction=transaction,
            source=SOURCE_RECEIPT,
            created_at=datetime.now(timezone.utc),
            path=filepath,
        )
        filepath.write_text(json.dumps(stored.to_dict(), indent=2))
        logger.info("Saved transaction to %s", filepath)
        return stored

    def list(self, user_id: str) -> list[StoredTransaction]:
        """Return a user's stored transactions, oldest date first."""
        directory = self.user_dir(user_id)
        if not directory.exists():
            return []

        stored: list[StoredTransaction] = []
        for filepath in sorted(directory.glob("*.json")):
            try:
                data = json.loads(filepath.read_text())
                stored.append(
                    StoredTransaction(
                        id=data["id"],
                        user_id=data.get("userId", user_id),
                        transaction=_transaction_from_dict(data),
                        source=data.get("source", SOURCE_RECEIPT),
                        created_at=datetime.fromisoformat(data["createdAt"]),
                        path=filepath,
                    )
                )
            except (OSError, ValueError, KeyError, InvalidOperation) as e:
                logger.warning("Skipping unreadable transaction file %s: %s", filepath, e)

        stored.sort(key=lambda s: (s.transaction.date, s.created_at))
        return stored
