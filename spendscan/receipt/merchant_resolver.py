"""Merchant name extraction from receipt text."""

from __future__ import annotations

import re
from collections.abc import Callable, Sequence

from .patterns import PatternMatcher, RegexPatternMatcher, first_success

UNKNOWN_MERCHANT = "Unknown Merchant"

# Tried against the raw (unnormalized) OCR text, one line at a time.
BUSINESS_NAME_PATTERNS = RegexPatternMatcher(
    [
        # All caps business names
        re.compile(r"^[ \t]*([A-Z][A-Z &]{2,30})[ \t]*$", re.MULTILINE),
        # Business with corporate suffixes
        re.compile(r"^[ \t]*([A-Z][a-zA-Z &]{2,30}(?:LLC|Inc|Corp|Ltd))\.?[ \t]*$", re.MULTILINE),
        # Business types
        re.compile(
            r"^[ \t]*([A-Z][a-zA-Z &'.-]{2,30}(?:Restaurant|Cafe|Store|Shop|Market|Bar|Grill))[ \t]*$",
            re.MULTILINE | re.IGNORECASE,
        ),
        # General capitalized names
        re.compile(r"^[ \t]*([A-Z][a-zA-Z &'.-]{5,30})[ \t]*$", re.MULTILINE),
    ]
)

BOILERPLATE_NAME_TOKENS = (
    "RECEIPT",
    "THANK YOU",
    "CUSTOMER COPY",
    "CARD PAYMENT",
    "CASH PAYMENT",
    "TOTAL",
    "SUBTOTAL",
)

BUSINESS_KEYWORDS = (
    "llc",
    "inc",
    "corp",
    "ltd",
    "restaurant",
    "store",
    "shop",
    "market",
    "cafe",
    "bar",
    "grill",
    "hotel",
    "gas",
    "station",
)

HEADER_SKIP_PHRASES = (
    "receipt",
    "thank you",
    "customer",
    "copy",
    "store #",
    "reg #",
    "cashier",
    "card payment",
)

MERCHANT_LINE_CHARS = re.compile(r"^[A-Za-z0-9\s&'.-]+$")
MAX_DIGIT_RATIO = 0.4

LEADING_LOCATION_TAG = re.compile(r"^(?:STORE|LOCATION|REGISTER|REG)\b\s*#?\s*\d*\s*", re.IGNORECASE)
TRAILING_LOCATION_TAG = re.compile(r"\s*\b(?:STORE|LOCATION|REGISTER|REG)\b\s*#?\s*\d*$", re.IGNORECASE)
EDGE_SYMBOLS = re.compile(r"^[^\w\s]+|[^\w\s]+$")


def clean_merchant_name(name: object) -> str:
    """
    Tidy a merchant candidate for display.

    Drops store/register tags, edge punctuation and repeated spaces, then
    capitalizes each word. Returns UNKNOWN_MERCHANT when nothing useful is left.
    """
    if not isinstance(name, str) or not name.strip():
        return UNKNOWN_MERCHANT

    cleaned = name.strip()
    cleaned = LEADING_LOCATION_TAG.sub("", cleaned)
    cleaned = TRAILING_LOCATION_TAG.sub("", cleaned)
    cleaned = EDGE_SYMBOLS.sub("", cleaned)
    cleaned = re.sub(r"\s+", " ", cleaned).strip()
    cleaned = " ".join(word.capitalize() for word in cleaned.split(" "))

    return cleaned if len(cleaned) > 1 else UNKNOWN_MERCHANT


def _usable(candidate: str) -> str | None:
    cleaned = clean_merchant_name(candidate)
    return None if cleaned == UNKNOWN_MERCHANT else cleaned


def _is_boilerplate_name(candidate: str) -> bool:
    upper = candidate.upper()
    return any(token in upper for token in BOILERPLATE_NAME_TOKENS)


def merchant_from_business_patterns(
    raw_text: str,
    _lines: Sequence[str],
    patterns: PatternMatcher = BUSINESS_NAME_PATTERNS,
) -> str | None:
    """Strategy 1: business-name shaped lines in the original OCR text."""
    text = raw_text.replace("\r\n", "\n")
    for match in patterns.matches(text):
        candidate = match.value.strip()
        if len(candidate) < 3 or _is_boilerplate_name(candidate):
            continue
        cleaned = _usable(candidate)
        if cleaned is not None:
            return cleaned
    return None


def _digit_ratio(line: str) -> float:
    return sum(1 for c in line if c.isdigit()) / len(line) if line else 0.0


def _looks_like_merchant_line(line: str) -> bool:
    if not 3 <= len(line) <= 50:
        return False
    lower = line.lower()
    has_business_keyword = any(keyword in lower for keyword in BUSINESS_KEYWORDS)
    is_all_caps = line == line.upper()
    if not (has_business_keyword or is_all_caps):
        return False
    if _digit_ratio(line) > MAX_DIGIT_RATIO:
        return False
    if not MERCHANT_LINE_CHARS.match(line):
        return False
    return not any(phrase in lower for phrase in HEADER_SKIP_PHRASES)


def merchant_from_keyword_lines(_raw_text: str, lines: Sequence[str]) -> str | None:
    """Strategy 2: a header line with a business keyword or in all caps."""
    for line in lines[:8]:
        if _looks_like_merchant_line(line):
            cleaned = _usable(line)
            if cleaned is not None:
                return cleaned
    return None


def merchant_from_first_line(_raw_text: str, lines: Sequence[str]) -> str | None:
    """Strategy 3: the first reasonably sized, non-numeric line."""
    for line in lines[:5]:
        # "$12.00" and "0012" are numeric too; a name needs at least one letter.
        if 3 <= len(line) <= 40 and re.search(r"[A-Za-z]", line):
            cleaned = _usable(line)
            if cleaned is not None:
                return cleaned
    return None


MERCHANT_STRATEGIES: tuple[Callable[[str, Sequence[str]], str | None], ...] = (
    merchant_from_business_patterns,
    merchant_from_keyword_lines,
    merchant_from_first_line,
)


def resolve_merchant(
    raw_text: str,
    lines: Sequence[str],
    strategies: Sequence[Callable[[str, Sequence[str]], str | None]] = MERCHANT_STRATEGIES,
) -> str:
    """
    Extract the merchant name using ordered strategies.

    Strategy order:
    1. Business-name patterns against the raw OCR text
    2. Keyword or all-caps lines among the first 8 normalized lines
    3. First meaningful line among the first 5 normalized lines

    Args:
        raw_text: Original OCR text
        lines: Normalized, non-blank lines of the same text

    Returns:
        Cleaned merchant name, or UNKNOWN_MERCHANT
    """
    merchant = first_success(strategies, raw_text or "", list(lines))
    return merchant if merchant is not None else UNKNOWN_MERCHANT
