"""Runtime settings for spendscan.

Settings come from an optional ``spendscan.toml`` file and are then
overridden by environment variables:

    SPENDSCAN_OCR_BACKEND     service | tesseract
    SPENDSCAN_OCR_URL         base URL of the OCR service
    SPENDSCAN_OCR_LANGUAGE    recognition language (default: eng)
    SPENDSCAN_DATA_DIR        root directory of the transaction store
    SPENDSCAN_CATEGORY_RULES  TOML file with an alternate category table
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

from spendscan.runtime.logging import get_logger

logger = get_logger(__name__)

DEFAULT_CONFIG_FILENAME = "spendscan.toml"
DEFAULT_OCR_URL = "http://localhost:8001"
OCR_BACKENDS = ("service", "tesseract")


def _default_data_dir() -> Path:
    return Path("~/.spendscan/transactions").expanduser()


@dataclass(frozen=True)
class Settings:
    """Resolved runtime configuration."""

    ocr_backend: str = "service"
    ocr_url: str = DEFAULT_OCR_URL
    ocr_language: str = "eng"
    ocr_timeout: float = 60.0
    tesseract_cmd: str | None = None
    data_dir: Path = field(default_factory=_default_data_dir)
    category_rules: Path | None = None

    def __post_init__(self) -> None:
        if self.ocr_backend not in OCR_BACKENDS:
            raise ValueError(f"Unknown OCR backend {self.ocr_backend!r}; expected one of {', '.join(OCR_BACKENDS)}")


def _load_toml(config_path: Path) -> dict[str, Any]:
    try:
        import tomllib
    except ImportError:
        import tomli as tomllib  # type: ignore[no-redef]

    with open(config_path, "rb") as f:
        return tomllib.load(f)


def _from_mapping(data: dict[str, Any]) -> dict[str, Any]:
    """Pick known keys from the ``[ocr]`` and ``[storage]`` tables."""
    values: dict[str, Any] = {}
    ocr = data.get("ocr", {})
    if "backend" in ocr:
        values["ocr_backend"] = str(ocr["backend"]).strip().lower()
    if "url" in ocr:
        values["ocr_url"] = str(ocr["url"]).strip()
    if "language" in ocr:
        values["ocr_language"] = str(ocr["language"]).strip()
    if "timeout" in ocr:
        values["ocr_timeout"] = float(ocr["timeout"])
    if "tesseract_cmd" in ocr:
        values["tesseract_cmd"] = str(ocr["tesseract_cmd"])

    storage = data.get("storage", {})
    if "data_dir" in storage:
        values["data_dir"] = Path(str(storage["data_dir"])).expanduser()

    categories = data.get("categories", {})
    if isinstance(categories, dict) and "rules" in categories:
        values["category_rules"] = Path(str(categories["rules"])).expanduser()
    return values


def _from_env(environ: Mapping[str, str]) -> dict[str, Any]:
    values: dict[str, Any] = {}
    if environ.get("SPENDSCAN_OCR_BACKEND"):
        values["ocr_backend"] = environ["SPENDSCAN_OCR_BACKEND"].strip().lower()
    if environ.get("SPENDSCAN_OCR_URL"):
        values["ocr_url"] = environ["SPENDSCAN_OCR_URL"].strip()
    if environ.get("SPENDSCAN_OCR_LANGUAGE"):
        values["ocr_language"] = environ["SPENDSCAN_OCR_LANGUAGE"].strip()
    if environ.get("SPENDSCAN_DATA_DIR"):
        values["data_dir"] = Path(environ["SPENDSCAN_DATA_DIR"]).expanduser()
    if environ.get("SPENDSCAN_CATEGORY_RULES"):
        values["category_rules"] = Path(environ["SPENDSCAN_CATEGORY_RULES"]).expanduser()
    return values


def load_settings(
    config_path: Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> Settings:
    """Build Settings from an optional TOML file plus environment overrides.

    Args:
        config_path: TOML file to read. If None, ``./spendscan.toml`` is used
                     when it exists.
        environ: Environment mapping, defaults to ``os.environ``.
    """
    settings = Settings()

    if config_path is None:
        candidate = Path.cwd() / DEFAULT_CONFIG_FILENAME
        config_path = candidate if candidate.exists() else None

    if config_path is not None:
        if config_path.exists():
            settings = replace(settings, **_from_mapping(_load_toml(config_path)))
            logger.debug("Loaded settings from %s", config_path)
        else:
            logger.warning("Config file not found: %s", config_path)

    overrides = _from_env(os.environ if environ is None else environ)
    if overrides:
        settings = replace(settings, **overrides)
    return settings
