"""Find currency amounts in receipt text and pick the receipt total."""

from __future__ import annotations

import re
from collections.abc import Sequence
from decimal import Decimal, InvalidOperation
from functools import reduce

from spendscan.domain.transaction import AmountCandidate, TotalKeywordGroup

from .patterns import PatternMatcher, RegexPatternMatcher

# Amounts outside (0, 50000) are treated as OCR garbage.
MIN_AMOUNT = Decimal("0")
MAX_AMOUNT = Decimal("50000")
CENTS = Decimal("0.01")

# Characters inspected on each side of an amount when scoring it as a total.
CONTEXT_RADIUS = 50

# Separates the labels of several amounts sharing a line.
AMOUNT_TOKEN = re.compile(r"\d+[.,]\d{2}")

DEFAULT_AMOUNT_PATTERNS = RegexPatternMatcher(
    [
        r"\$\s?(\d+[.,]\d{2})\b",  # $12.50
        r"\b(\d+[.,]\d{2})\s?\$",  # 12.50$
        r"\btotal[:\s]*\$?\s?(\d+[.,]\d{2})\b",  # Total: $12.50
        r"\bamount[:\s]*\$?\s?(\d+[.,]\d{2})\b",  # Amount: 12.50
        r"\b(\d+[.,]\d{2})\s*(?:usd|dollars?)\b",  # 12.50 USD
    ],
    flags=re.IGNORECASE,
)

DEFAULT_TOTAL_KEYWORD_GROUPS: tuple[TotalKeywordGroup, ...] = (
    TotalKeywordGroup(("total", "grand total", "final total"), 10),
    TotalKeywordGroup(("amount due", "balance due"), 9),
    TotalKeywordGroup(("subtotal", "sub total"), 8),
    TotalKeywordGroup(("charge", "payment"), 7),
    TotalKeywordGroup(("sum", "net"), 6),
)


def parse_amount_token(token: str) -> Decimal | None:
    """Parse a ``12.50`` / ``12,50`` token, returning None when out of bounds."""
    try:
        value = Decimal(token.strip().replace(",", "."))
    except InvalidOperation:
        return None
    if not value.is_finite():
        return None
    if not MIN_AMOUNT < value < MAX_AMOUNT:
        return None
    return value.quantize(CENTS)


def context_window(text: str, offset: int, radius: int = CONTEXT_RADIUS) -> tuple[str, str]:
    """
    Return the lowercased ``(leading, trailing)`` text around the amount at ``offset``.

    ``leading`` runs from up to ``radius`` characters before the match, or from
    the previous amount on the line, through the amount itself. ``trailing``
    covers up to ``radius`` characters after it and is empty when another
    amount follows on the line. Neither leaves the line(s) of the match,
    so in "Subtotal $10.00 Total $12.50" the 10.00 only sees "subtotal" and a
    "Subtotal" line cannot lend its keyword to the line below.
    """
    # A "Total:" label may sit on the line above its amount; the window spans both.
    amount = AMOUNT_TOKEN.search(text, offset)
    end = amount.end() if amount is not None else offset
    line_start = text.rfind("\n", 0, offset) + 1
    line_end = text.find("\n", end)
    if line_end == -1:
        line_end = len(text)

    start = max(line_start, offset - radius)
    previous_amounts = list(AMOUNT_TOKEN.finditer(text, start, offset))
    if previous_amounts:
        start = previous_amounts[-1].end()
    leading = text[start:end]

    rest_of_line = text[end:line_end]
    trailing = "" if AMOUNT_TOKEN.search(rest_of_line) else rest_of_line[:radius]
    return leading.lower(), trailing.lower()


def extract_amounts(text: str, patterns: PatternMatcher = DEFAULT_AMOUNT_PATTERNS) -> list[AmountCandidate]:
    """Return every in-bounds amount found by ``patterns``, in pattern order."""
    if not text:
        return []

    candidates: list[AmountCandidate] = []
    for match in patterns.matches(text):
        value = parse_amount_token(match.value)
        if value is None:
            continue
        leading, trailing = context_window(text, match.offset)
        candidates.append(
            AmountCandidate(
                value=value,
                context=leading,
                offset=match.offset,
                trailing_context=trailing,
            )
        )
    return candidates


def _compile_groups(
    keyword_groups: Sequence[TotalKeywordGroup],
) -> tuple[re.Pattern[str], dict[str, int]]:
    """One whole-word alternation over every keyword, longest first.

    Longest-first means "sub total" is consumed as a subtotal before the
    bare "total" inside it can match.
    """
    priorities: dict[str, int] = {}
    for group in keyword_groups:
        for keyword in group.keywords:
            priorities[keyword.lower()] = max(group.priority, priorities.get(keyword.lower(), 0))
    alternation = "|".join(re.escape(kw) for kw in sorted(priorities, key=len, reverse=True))
    return re.compile(rf"\b(?:{alternation})\b"), priorities


def _priority_in(context: str, compiled: tuple[re.Pattern[str], dict[str, int]]) -> int:
    pattern, priorities = compiled
    return max((priorities[m.group(0)] for m in pattern.finditer(context)), default=0)


def _label_priority(leading: str, trailing: str, compiled: tuple[re.Pattern[str], dict[str, int]]) -> int:
    # The label closest before the amount wins; a label after it counts only when none precedes.
    pattern, priorities = compiled
    labels = [m.group(0) for m in pattern.finditer(leading)]
    if labels:
        return priorities[labels[-1]]
    following = pattern.search(trailing)
    return priorities[following.group(0)] if following is not None else 0


def keyword_priority(context: str, keyword_groups: Sequence[TotalKeywordGroup] = DEFAULT_TOTAL_KEYWORD_GROUPS) -> int:
    """Highest priority of any keyword group present in ``context`` (0 if none)."""
    return _priority_in(context.lower(), _compile_groups(keyword_groups))


def select_total(
    candidates: Sequence[AmountCandidate],
    raw_text: str | None = None,
    keyword_groups: Sequence[TotalKeywordGroup] = DEFAULT_TOTAL_KEYWORD_GROUPS,
) -> Decimal | None:
    """
    Pick the receipt total from amount candidates.

    Each candidate is scored by the keyword labelling it: the last keyword
    between the previous amount on its line and the amount itself, or else
    the first keyword after it when no other amount follows. The highest score wins, regardless of where
    the candidates sit in the text; ties keep the earliest candidate. Without
    any keyword match the largest amount is used. Returns None when there are
    no candidates.

    Args:
        candidates: Output of extract_amounts()
        raw_text: Text the candidates came from; when given, contexts are
            re-derived from it instead of using each candidate's stored context
        keyword_groups: Ranked total keywords
    """
    if not candidates:
        return None

    compiled = _compile_groups(keyword_groups)

    def priority_of(candidate: AmountCandidate) -> int:
        if raw_text is None:
            leading, trailing = candidate.context, candidate.trailing_context
        else:
            leading, trailing = context_window(raw_text, candidate.offset)
        return _label_priority(leading, trailing, compiled)

    def keep_best(
        best: tuple[AmountCandidate | None, int],
        candidate: AmountCandidate,
    ) -> tuple[AmountCandidate | None, int]:
        priority = priority_of(candidate)
        return (candidate, priority) if priority > best[1] else best

    best_candidate, _ = reduce(keep_best, candidates, (None, 0))
    if best_candidate is not None:
        return best_candidate.value

    return max(candidate.value for candidate in candidates)
