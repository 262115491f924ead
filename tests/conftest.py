"""Shared pytest fixtures for spendscan tests."""

from __future__ import annotations

from datetime import date
from pathlib import Path

import pytest

from spendscan.domain.transaction import RecognizedDocument

FIXED_TODAY = date(2024, 6, 1)


@pytest.fixture(autouse=True)
def _clear_spendscan_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep developer SPENDSCAN_* settings out of the tests."""
    for name in (
        "SPENDSCAN_OCR_BACKEND",
        "SPENDSCAN_OCR_URL",
        "SPENDSCAN_OCR_LANGUAGE",
        "SPENDSCAN_DATA_DIR",
        "SPENDSCAN_CATEGORY_RULES",
    ):
        monkeypatch.delenv(name, raising=False)


class FakeRecognizer:
    """Recognizer double that records what it was asked to read."""

    def __init__(self, text: str = "", confidence: float = 88.5, error: Exception | None = None) -> None:
        self.text = text
        self.confidence = confidence
        self.error = error
        self.seen_paths: list[Path] = []
        self.seen_bytes: list[bytes] = []
        self.seen_languages: list[str] = []

    def recognize(self, image_path: Path, language: str, progress=None) -> RecognizedDocument:
        self.seen_paths.append(image_path)
        self.seen_bytes.append(image_path.read_bytes())
        self.seen_languages.append(language)
        if self.error is not None:
            raise self.error
        return RecognizedDocument(raw_text=self.text, confidence=self.confidence)


@pytest.fixture
def fixed_today() -> date:
    return FIXED_TODAY
