from decimal import Decimal

import pytest

from spendscan.receipt.amount_extractor import (
    context_window,
    extract_amounts,
    keyword_priority,
    parse_amount_token,
    select_total,
)


def _values(text: str) -> list[Decimal]:
    return [candidate.value for candidate in extract_amounts(text)]


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("Paid $12.50 today", Decimal("12.50")),
        ("12.50$", Decimal("12.50")),
        ("Amount: 7.25", Decimal("7.25")),
        ("19.99 USD", Decimal("19.99")),
        ("3,40 dollars", Decimal("3.40")),
    ],
)
def test_extract_amounts_recognizes_currency_shapes(text: str, expected: Decimal) -> None:
    assert expected in _values(text)


def test_extract_amounts_ignores_out_of_bounds_values() -> None:
    assert _values("$0.00") == []
    assert _values("$50000.00") == []
    assert _values("$49999.99") == [Decimal("49999.99")]


def test_extract_amounts_ignores_bare_numbers() -> None:
    assert _values("Coffee 4.50\nTaxi 12.00") == []
    assert extract_amounts("") == []


def test_parse_amount_token_quantizes_to_cents() -> None:
    assert parse_amount_token("4,5") == Decimal("4.50")
    assert parse_amount_token("abc") is None


def test_context_window_stays_on_candidate_line() -> None:
    text = "Subtotal 10.00\nTotal 12.50"

    assert context_window(text, text.index("12.50")) == ("total 12.50", "")


def test_context_window_stops_at_neighbouring_amounts() -> None:
    text = "Subtotal $10.00 Total $12.50 Paid"

    assert context_window(text, text.index("$10.00")) == ("subtotal $10.00", "")
    assert context_window(text, text.index("$12.50")) == (" total $12.50", " paid")


@pytest.mark.parametrize(
    ("context", "priority"),
    [
        ("grand total $9.00", 10),
        ("amount due 5.00", 9),
        ("balance due", 9),
        ("subtotal $4.00", 8),
        ("sub total $4.00", 8),
        ("card payment $4.00", 7),
        ("net $4.00", 6),
        ("change $1.40", 0),
    ],
)
def test_keyword_priority(context: str, priority: int) -> None:
    assert keyword_priority(context) == priority


@pytest.mark.parametrize(
    "text",
    [
        "Subtotal $10.00\nTotal $12.50",
        "Total $12.50\nSubtotal $10.00",
        "Subtotal $10.00 Total $12.50",
        "Total $12.50 Subtotal $10.00",
        "Sub total $10.00 Grand Total $12.50",
    ],
)
def test_select_total_prefers_total_over_subtotal(text: str) -> None:
    assert select_total(extract_amounts(text), text) == Decimal("12.50")


def test_select_total_ignores_tendered_cash_and_change() -> None:
    text = "Total: $48.60\nCash $50.00\nChange $1.40"

    assert select_total(extract_amounts(text), text) == Decimal("48.60")


def test_select_total_keeps_first_on_priority_tie() -> None:
    text = "Total $5.00\nTotal $7.00"

    assert select_total(extract_amounts(text), text) == Decimal("5.00")


def test_select_total_falls_back_to_largest_amount() -> None:
    text = "$3.00 $9.99 $4.50"

    assert select_total(extract_amounts(text), text) == Decimal("9.99")


def test_select_total_without_candidates_is_none() -> None:
    assert select_total([]) is None


def test_select_total_uses_stored_context_without_raw_text() -> None:
    candidates = extract_amounts("Subtotal $10.00\nTotal $12.50")

    assert select_total(candidates) == Decimal("12.50")


def test_select_total_ignores_unlabelled_amount_after_subtotal() -> None:
    text = "Subtotal $10.00 Tax $0.80 Total $10.80"

    assert select_total(extract_amounts(text), text) == Decimal("10.80")


def test_select_total_reads_label_after_amount() -> None:
    text = "$9.50 subtotal\n$12.00 total\n$20.00 cash"

    assert select_total(extract_amounts(text), text) == Decimal("12.00")
