"""Human-readable transaction descriptions built from receipt text."""

from __future__ import annotations

import re
from collections.abc import Iterable

from spendscan.domain.categories import (
    BILLS_AND_UTILITIES,
    EDUCATION,
    ENTERTAINMENT,
    FOOD_AND_DINING,
    HEALTHCARE,
    HOME_AND_GARDEN,
    INSURANCE,
    MISCELLANEOUS,
    PERSONAL_CARE,
    SHOPPING,
    TAXES,
    TRANSPORTATION,
    TRAVEL,
)
from spendscan.domain.transaction import MAX_DESCRIPTION_LENGTH

from .merchant_resolver import UNKNOWN_MERCHANT

MAX_ITEMS = 5
MAX_LISTED_ITEMS = 3


def _item_pattern(words: str) -> re.Pattern[str]:
    return re.compile(rf"(?:^|\s)({words})(?=\s|$)", re.IGNORECASE | re.MULTILINE)


ITEM_PATTERNS: dict[str, tuple[re.Pattern[str], ...]] = {
    FOOD_AND_DINING: (
        _item_pattern(
            "pizza|burger|sandwich|coffee|tea|salad|soup|pasta|chicken|beef|fish|fries|"
            "drink|beer|wine|dessert|cake|ice cream"
        ),
        _item_pattern("breakfast|lunch|dinner|brunch|appetizer|entree|side|beverage"),
    ),
    TRANSPORTATION: (_item_pattern("gas|fuel|regular|premium|diesel|parking|toll|subway|bus|taxi|uber|lyft"),),
    SHOPPING: (_item_pattern("shirt|pants|shoes|dress|jacket|electronics|phone|laptop|book|magazine|gift"),),
    HEALTHCARE: (_item_pattern("prescription|medicine|consultation|checkup|vaccine|treatment|therapy"),),
    ENTERTAINMENT: (_item_pattern("movie|ticket|concert|show|game|subscription|streaming"),),
}

CATEGORY_CONTEXT: dict[str, str] = {
    FOOD_AND_DINING: "meal",
    TRANSPORTATION: "travel",
    SHOPPING: "purchase",
    ENTERTAINMENT: "entertainment",
    HEALTHCARE: "medical",
    BILLS_AND_UTILITIES: "bill payment",
    PERSONAL_CARE: "personal care",
    EDUCATION: "education",
    TRAVEL: "travel",
    HOME_AND_GARDEN: "home improvement",
    INSURANCE: "insurance",
    TAXES: "tax payment",
}

# An optional quantity prefix ("2 widget"), which is dropped from the item name.
GENERIC_ITEM_LINE = re.compile(r"^(?:\d+\s+)?[a-z][a-z0-9\s-]*$")
GENERIC_ITEM_EXCLUDE = re.compile(r"\b(total|subtotal|tax|amount|cash|card|receipt|thank|you|store|location)\b")


def _capitalize(text: str) -> str:
    return text[:1].upper() + text[1:]


def _category_items(text: str, category: str) -> list[str]:
    items: list[str] = []
    for pattern in ITEM_PATTERNS.get(category, ()):
        for match in pattern.finditer(text):
            item = _capitalize(match.group(1).strip().lower())
            if len(item) > 2 and item not in items:
                items.append(item)
    return items


def _generic_items(text: str, exclude: set[str]) -> list[str]:
    items: list[str] = []
    for raw_line in text.lower().split("\n"):
        line = raw_line.strip()
        if not 3 < len(line) < 30:
            continue
        if not GENERIC_ITEM_LINE.match(line) or GENERIC_ITEM_EXCLUDE.search(line):
            continue
        if line in exclude:
            continue
        item = re.sub(r"^\d+\s*", "", line)
        item = _capitalize(item)
        if len(item) > 2 and item not in items:
            items.append(item)
            if len(items) >= MAX_ITEMS:
                break
    return items


def extract_items(text: str, category: str, exclude: Iterable[str] = ()) -> list[str]:
    """
    Pull likely purchased items out of normalized receipt text.

    Category-specific keywords are tried first; when they find nothing, short
    plain-text lines that are not receipt boilerplate are used instead.

    Args:
        text: Normalized receipt text
        category: Category the receipt was classified into
        exclude: Lines to ignore in the generic pass (e.g., the merchant name)

    Returns:
        Up to 5 capitalized, de-duplicated item names
    """
    if not text:
        return []

    items = _category_items(text, category)
    if not items:
        items = _generic_items(text, {value.strip().lower() for value in exclude if value})
    return items[:MAX_ITEMS]


def describe_items(items: list[str]) -> str:
    if len(items) <= MAX_LISTED_ITEMS:
        return ", ".join(items)
    return f"{', '.join(items[:2])} and {len(items) - 2} other items"


def fallback_description(category: str) -> str:
    return f"{category or MISCELLANEOUS} expense"


def generate_description(merchant: str | None, text: str, category: str) -> str:
    """
    Build a short description such as ``"Joe's Diner - Pizza, Coffee"``.

    Never returns an empty string: when neither a merchant nor items are
    available the result is ``"<category> expense"``. The result is capitalized
    and at most 100 characters long.
    """
    description = merchant if merchant and merchant != UNKNOWN_MERCHANT else ""

    items = extract_items(text, category, exclude=(description,))
    if items:
        if description:
            description += " - "
        description += describe_items(items)
    elif description:
        description += f" - {CATEGORY_CONTEXT.get(category, 'expense')}"

    description = description.strip()
    if len(description) < 3:
        description = fallback_description(category)

    description = _capitalize(description)
    return description[:MAX_DESCRIPTION_LENGTH].rstrip()
