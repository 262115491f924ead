import json
from datetime import date, datetime, timedelta
from decimal import Decimal

import pytest

from spendscan.domain.transaction import ExtractedTransaction, TransactionType
from spendscan.runtime.errors import TransactionValidationError
from spendscan.runtime.transaction_store import (
    JsonTransactionStore,
    generate_transaction_filename,
    validate_transaction,
)

TODAY = date(2024, 6, 1)


def _txn(**overrides) -> ExtractedTransaction:
    values = {
        "type": TransactionType.EXPENSE,
        "category": "Shopping",
        "amount": Decimal("48.60"),
        "date": date(2024, 3, 14),
        "description": "Walmart Supercenter - purchase",
        "confidence": 80,
    }
    values.update(overrides)
    return ExtractedTransaction(**values)


def test_valid_transaction_has_no_errors() -> None:
    assert validate_transaction(_txn(), today=TODAY) == []


@pytest.mark.parametrize(
    ("overrides", "error"),
    [
        ({"type": "transfer"}, "Type must be either income or expense"),
        ({"category": "  "}, "Category is required"),
        ({"category": "x" * 51}, "Category must be less than 50 characters"),
        ({"amount": Decimal("0")}, "Amount must be a positive number"),
        ({"amount": Decimal("-3.00")}, "Amount must be a positive number"),
        ({"amount": Decimal("1000000000")}, "Amount is too large"),
        ({"date": TODAY + timedelta(days=366)}, "Date cannot be more than 1 year in the future"),
        ({"date": "2024-03-14"}, "Valid date is required"),
        ({"date": datetime(2024, 1, 1, 12)}, "Valid date is required"),
        ({"description": "d" * 501}, "Description must be less than 500 characters"),
    ],
)
def test_validation_errors(overrides: dict, error: str) -> None:
    assert validate_transaction(_txn(**overrides), today=TODAY) == [error]


def test_filename_uses_date_description_and_amount() -> None:
    assert generate_transaction_filename(_txn()) == "2024-03-14_walmart_supercenter_purchase_48_60.json"
    assert generate_transaction_filename(_txn(description="!!!")) == "2024-03-14_unknown_48_60.json"


def test_save_writes_json_under_user_directory(tmp_path) -> None:
    store = JsonTransactionStore(tmp_path)

    stored = store.save(_txn(), "alice")

    assert stored.path == tmp_path / "alice" / "2024-03-14_walmart_supercenter_purchase_48_60.json"
    data = json.loads(stored.path.read_text())
    assert data["amount"] == "48.60"
    assert data["source"] == "receipt"
    assert data["userId"] == "alice"
    assert data["id"] == stored.id


def test_save_handles_filename_collisions(tmp_path) -> None:
    store = JsonTransactionStore(tmp_path)

    first = store.save(_txn(), "alice")
    second = store.save(_txn(), "alice")

    assert first.path.name == "2024-03-14_walmart_supercenter_purchase_48_60.json"
    assert second.path.name == "2024-03-14_walmart_supercenter_purchase_48_60_1.json"
    assert first.id != second.id


def test_save_rejects_invalid_transaction(tmp_path) -> None:
    store = JsonTransactionStore(tmp_path)

    with pytest.raises(TransactionValidationError) as excinfo:
        store.save(_txn(amount=Decimal("0")), "alice")

    assert excinfo.value.errors == ["Amount must be a positive number"]
    assert not (tmp_path / "alice").exists()


def test_list_returns_transactions_by_date(tmp_path) -> None:
    store = JsonTransactionStore(tmp_path)
    store.save(_txn(date=date(2024, 5, 1), description="Later"), "alice")
    store.save(_txn(date=date(2024, 1, 2), description="Earlier"), "alice")
    store.save(_txn(), "bob")

    stored = store.list("alice")

    assert [s.transaction.description for s in stored] == ["Earlier", "Later"]
    assert stored[0].transaction.amount == Decimal("48.60")
    assert store.list("nobody") == []


def test_user_ids_cannot_escape_store_root(tmp_path) -> None:
    store = JsonTransactionStore(tmp_path)

    assert store.user_dir("../evil").parent == tmp_path
    with pytest.raises(ValueError):
        store.user_dir("..")


def test_save_rejects_reviewed_date_with_time_of_day(tmp_path) -> None:
    transaction = _txn()
    transaction.date = datetime(2024, 1, 1, 12)

    with pytest.raises(TransactionValidationError) as excinfo:
        JsonTransactionStore(tmp_path).save(transaction, "alice")

    assert excinfo.value.errors == ["Valid date is required"]
