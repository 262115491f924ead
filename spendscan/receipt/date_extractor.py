"""Find the transaction date printed on a receipt."""

from __future__ import annotations

import re
from datetime import date

from .patterns import PatternMatch, PatternMatcher, RegexPatternMatcher

# Years before this are treated as garbled OCR rather than real receipt dates.
MIN_RECEIPT_YEAR = 2020

MONTHS = {
    "jan": 1,
    "feb": 2,
    "mar": 3,
    "apr": 4,
    "may": 5,
    "jun": 6,
    "jul": 7,
    "aug": 8,
    "sep": 9,
    "oct": 10,
    "nov": 11,
    "dec": 12,
}

# Pattern order is the resolution order.
NUMERIC_MONTH_FIRST = 0
YEAR_FIRST = 1
MONTH_NAME_FIRST = 2
DAY_FIRST_MONTH_NAME = 3

DEFAULT_DATE_PATTERNS = RegexPatternMatcher(
    [
        # MM/DD/YYYY or DD/MM/YYYY (also - and . separators, 2-digit years)
        r"\b(\d{1,2})[/.-](\d{1,2})[/.-](\d{4}|\d{2})\b",
        # YYYY/MM/DD
        r"\b(\d{4})[/.-](\d{1,2})[/.-](\d{1,2})\b",
        # Jan 15, 2024
        r"\b([A-Za-z]{3,9})\.?\s+(\d{1,2}),?\s+(\d{4})\b",
        # 15 Jan 2024
        r"\b(\d{1,2})\s+([A-Za-z]{3,9})\.?,?\s+(\d{4})\b",
    ]
)


def _expand_year(year: int) -> int:
    if year < 100:
        # Map 2-digit years to 2000s/1900s
        return 2000 + year if year <= 69 else 1900 + year
    return year


def _month_from_name(name: str) -> int | None:
    return MONTHS.get(name[:3].lower())


def _safe_date(year: int, month: int, day: int) -> date | None:
    try:
        return date(year, month, day)
    except ValueError:
        return None


def date_from_match(match: PatternMatch) -> date | None:
    """Build a date from a DEFAULT_DATE_PATTERNS match, or None if invalid."""
    groups = [g or "" for g in match.groups]
    if len(groups) != 3:
        return None

    if match.pattern_index == NUMERIC_MONTH_FIRST:
        first, second, year = int(groups[0]), int(groups[1]), _expand_year(int(groups[2]))
        # Month-first wins; day-first only when month-first is impossible.
        return _safe_date(year, first, second) or _safe_date(year, second, first)

    if match.pattern_index == YEAR_FIRST:
        return _safe_date(int(groups[0]), int(groups[1]), int(groups[2]))

    if match.pattern_index == MONTH_NAME_FIRST:
        month = _month_from_name(groups[0])
        if month is None:
            return None
        return _safe_date(int(groups[2]), month, int(groups[1]))

    if match.pattern_index == DAY_FIRST_MONTH_NAME:
        month = _month_from_name(groups[1])
        if month is None:
            return None
        return _safe_date(int(groups[2]), month, int(groups[0]))

    return None


def find_date(text: str, patterns: PatternMatcher = DEFAULT_DATE_PATTERNS) -> date | None:
    """Return the first plausible date in ``text`` (year >= 2020), or None."""
    if not text:
        return None

    for match in patterns.matches(text):
        parsed = date_from_match(match)
        if parsed is not None and parsed.year >= MIN_RECEIPT_YEAR:
            return parsed
    return None


def extract_date(text: str, today: date | None = None) -> date:
    """Return the receipt date, defaulting to ``today`` when none is found."""
    found = find_date(text)
    if found is not None:
        return found
    return today if today is not None else date.today()


def strip_dates(text: str, patterns: PatternMatcher = DEFAULT_DATE_PATTERNS) -> str:
    """Remove every date-shaped token from ``text``."""
    spans = sorted((m.offset, m.end) for m in patterns.matches(text) if date_from_match(m) is not None)
    if not spans:
        return text

    pieces: list[str] = []
    cursor = 0
    for start, end in spans:
        if start < cursor:
            continue
        pieces.append(text[cursor:start])
        cursor = end
    pieces.append(text[cursor:])
    return re.sub(r"\s+", " ", "".join(pieces)).strip()
