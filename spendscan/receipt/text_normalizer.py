"""Clean raw OCR text before any line-based heuristics run."""

import re

# Characters OCR engines commonly hallucinate from receipt borders and rules.
NOISE_CHARS = re.compile(r"[|{}\[\]\\]")

QUOTE_TRANSLATION = str.maketrans(
    {
        "‘": "'",
        "’": "'",
        "‚": "'",
        "′": "'",
        "“": '"',
        "”": '"',
        "„": '"',
        "″": '"',
        "–": "-",
        "—": "-",
        "‒": "-",
        "―": "-",
    }
)

# Misread fixes apply to whitespace-delimited tokens only; "0.50" and "I/O" are left alone.
STANDALONE_ZERO = re.compile(r"(?<!\S)0(?!\S)")
STANDALONE_ONE = re.compile(r"(?<!\S)[Il](?!\S)")

HORIZONTAL_SPACE = re.compile(r"[^\S\n]+")
SYMBOL_ONLY_LINE = re.compile(r"^[^\w\s]*$")
REPEATED_PUNCTUATION_LINE = re.compile(r"^[*_=\-+.]{3,}$")


def _keep_line(line: str) -> bool:
    if not line:
        return False
    if SYMBOL_ONLY_LINE.match(line):
        return False
    if REPEATED_PUNCTUATION_LINE.match(line):
        return False
    return True


def normalize_text(raw_text: object) -> str:
    """
    Return OCR text with artifacts removed, one meaningful line per row.

    Non-string or empty input yields an empty string. The function is
    idempotent: normalizing its own output returns the same text.
    """
    if not isinstance(raw_text, str) or not raw_text:
        return ""

    cleaned = raw_text.replace("\r\n", "\n").replace("\r", "\n")
    cleaned = NOISE_CHARS.sub("", cleaned)
    cleaned = cleaned.translate(QUOTE_TRANSLATION)

    cleaned = STANDALONE_ZERO.sub("O", cleaned)
    cleaned = STANDALONE_ONE.sub("1", cleaned)

    lines = (HORIZONTAL_SPACE.sub(" ", line).strip() for line in cleaned.split("\n"))
    return "\n".join(line for line in lines if _keep_line(line))


def split_lines(text: str) -> list[str]:
    """Split normalized text into its non-blank lines."""
    return [line.strip() for line in text.split("\n") if line.strip()]
