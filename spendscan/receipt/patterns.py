"""Pattern matching seam shared by the receipt extractors.

Extractors depend on the ``PatternMatcher`` protocol rather than on ``re``
directly, so pattern sets can be tested on their own and swapped per locale.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable, Iterator, Sequence
from dataclasses import dataclass
from typing import Protocol, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class PatternMatch:
    """One hit of a pattern against a text."""

    value: str  # first capture group, or the whole match when there is none
    offset: int  # start of the whole match in the searched text
    end: int
    groups: tuple[str | None, ...]
    pattern_index: int


class PatternMatcher(Protocol):
    """Finds ordered matches of a pattern set in a text."""

    def matches(self, text: str) -> Iterator[PatternMatch]: ...

    def first(self, text: str) -> PatternMatch | None: ...


class RegexPatternMatcher:
    """PatternMatcher backed by an ordered list of regular expressions.

    Matches are yielded pattern by pattern (declaration order), and in text
    order within a pattern.
    """

    def __init__(self, patterns: Iterable[str | re.Pattern[str]], flags: int = 0) -> None:
        self.patterns: tuple[re.Pattern[str], ...] = tuple(
            p if isinstance(p, re.Pattern) else re.compile(p, flags) for p in patterns
        )

    def matches(self, text: str) -> Iterator[PatternMatch]:
        for index, pattern in enumerate(self.patterns):
            for match in pattern.finditer(text):
                groups = match.groups()
                value = groups[0] if groups and groups[0] is not None else match.group(0)
                yield PatternMatch(
                    value=value,
                    offset=match.start(),
                    end=match.end(),
                    groups=groups,
                    pattern_index=index,
                )

    def first(self, text: str) -> PatternMatch | None:
        return next(self.matches(text), None)

    def __repr__(self) -> str:
        return f"RegexPatternMatcher({[p.pattern for p in self.patterns]!r})"


def first_success(strategies: Sequence[Callable[..., T | None]], *args: object) -> T | None:
    """Run strategies in order and return the first non-None result."""
    for strategy in strategies:
        result = strategy(*args)
        if result is not None:
            return result
    return None
