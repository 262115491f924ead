"""Keyword-table category classification for merchants and receipt text.

Lookup is first-match-wins in table declaration order, not best match:
text containing both "shop" and "restaurant" is Shopping because Shopping
is declared first. Reordering the table changes results.

To use a different table, load one from TOML:

    [[categories]]
    name = "Food & Dining"
    keywords = ["restaurant", "cafe"]
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from pathlib import Path
from types import MappingProxyType
from typing import Any

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
from spendscan.runtime.logging import get_logger

logger = get_logger(__name__)

CategoryKeywordTable = Mapping[str, tuple[str, ...]]


def freeze_keyword_table(
    table: Mapping[str, Iterable[str]] | Iterable[tuple[str, Iterable[str]]],
) -> CategoryKeywordTable:
    """Return an immutable, order-preserving copy with lowercased keywords."""
    items = table.items() if isinstance(table, Mapping) else table
    frozen: dict[str, tuple[str, ...]] = {}
    for name, keywords in items:
        cleaned = tuple(kw.strip().lower() for kw in keywords if kw and kw.strip())
        if cleaned:
            frozen[name] = cleaned
    return MappingProxyType(frozen)


DEFAULT_CATEGORY_KEYWORDS: CategoryKeywordTable = freeze_keyword_table(
    [
        (SHOPPING, ("shop", "store", "mall", "market", "purchase", "buy", "retail", "walmart", "target", "amazon")),
        (
            FOOD_AND_DINING,
            ("restaurant", "food", "cafe", "dinner", "lunch", "breakfast", "snack", "pizza", "burger", "coffee"),
        ),
        (ENTERTAINMENT, ("movie", "cinema", "concert", "entertainment", "show", "ticket", "netflix", "spotify")),
        (HEALTHCARE, ("hospital", "doctor", "medical", "pharmacy", "health", "clinic", "cvs", "walgreens")),
        (BILLS_AND_UTILITIES, ("bill", "utility", "electricity", "gas", "water", "internet", "phone", "cable")),
        (TRANSPORTATION, ("transport", "taxi", "bus", "train", "fuel", "gas station", "uber", "lyft", "exxon", "shell")),
        (PERSONAL_CARE, ("salon", "barber", "spa", "beauty", "cosmetics", "skincare")),
        (TRAVEL, ("hotel", "flight", "airline", "booking", "airbnb")),
        (HOME_AND_GARDEN, ("home depot", "lowes", "garden", "hardware")),
        (INSURANCE, ("insurance", "policy", "premium")),
        (EDUCATION, ("school", "university", "education", "tuition")),
        (TAXES, ("tax", "irs", "revenue")),
    ]
)


class CategoryClassifier:
    """Map free text to a category using an ordered keyword table.

    Keywords are lowercase substrings; the first category (in table order)
    with any keyword present wins. Text matching nothing, including the empty
    string, falls back to ``fallback``.
    """

    def __init__(
        self,
        keyword_table: CategoryKeywordTable = DEFAULT_CATEGORY_KEYWORDS,
        fallback: str = MISCELLANEOUS,
    ) -> None:
        if not isinstance(keyword_table, MappingProxyType):
            keyword_table = freeze_keyword_table(keyword_table)
        self.keyword_table = keyword_table
        self.fallback = fallback

    @property
    def categories(self) -> tuple[str, ...]:
        """Every category this classifier can return."""
        names = tuple(self.keyword_table)
        return names if self.fallback in names else names + (self.fallback,)

    def classify(self, text: str | None) -> str:
        lowered = (text or "").lower()
        if not lowered:
            return self.fallback

        for category, keywords in self.keyword_table.items():
            for keyword in keywords:
                if keyword in lowered:
                    logger.debug("Category %s matched keyword %r", category, keyword)
                    return category

        return self.fallback


_default_classifier = CategoryClassifier()


def classify_text(text: str | None) -> str:
    """Classify with the built-in table."""
    return _default_classifier.classify(text)


def _load_toml(config_path: Path) -> dict[str, Any]:
    try:
        import tomllib
    except ImportError:
        import tomli as tomllib  # type: ignore[no-redef]

    with open(config_path, "rb") as f:
        return tomllib.load(f)


def load_category_keyword_table(config_path: Path | str) -> CategoryKeywordTable:
    """
    Load an ordered category table from a TOML file.

    Each ``[[categories]]`` entry needs ``name`` and ``keywords``; file order is
    the lookup order. Entries without a name or keywords are skipped.

    Raises:
        FileNotFoundError: If the file does not exist
    """
    path = Path(config_path)
    if not path.exists():
        raise FileNotFoundError(f"Category rules not found: {path}")

    data = _load_toml(path)
    entries: list[tuple[str, tuple[str, ...]]] = []
    for entry in data.get("categories", []):
        if not isinstance(entry, Mapping):
            continue
        name = str(entry.get("name") or "").strip()
        raw_keywords = entry.get("keywords", [])
        if isinstance(raw_keywords, str):
            raw_keywords = [raw_keywords]
        keywords = tuple(str(kw) for kw in raw_keywords)
        if not name or not keywords:
            logger.warning("Skipping incomplete category rule in %s: %r", path, entry)
            continue
        entries.append((name, keywords))

    table = freeze_keyword_table(entries)
    logger.debug("Loaded %d category rules from %s", len(table), path)
    return table
