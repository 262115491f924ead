"""Logging for spendscan.

Every module logs through ``get_logger(__name__)`` into the ``spendscan``
logger namespace, which writes to stderr and does not propagate, so the JSON
that the CLI prints on stdout stays machine-readable. Receipt text can hold
card digits and addresses; modules only log it at DEBUG.

Environment variables:
    SPENDSCAN_LOG_LEVEL: DEBUG, INFO, WARNING (or WARN) or ERROR. Default: INFO.
        DEBUG also adds line numbers to each record.
"""


import logging
import os
import sys

LOGGER_NAMESPACE = "spendscan"
DEFAULT_LOG_LEVEL = logging.INFO

LOG_FORMAT = "%(levelname)s [%(name)s] %(message)s"
LOG_FORMAT_DEBUG = "%(levelname)s [%(name)s:%(lineno)d] %(message)s"

LOG_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "WARN": logging.WARNING,
    "ERROR": logging.ERROR,
}

_logging_configured = False


def _level_from_env() -> int:
    return LOG_LEVELS.get(os.environ.get("SPENDSCAN_LOG_LEVEL", "").strip().upper(), DEFAULT_LOG_LEVEL)


def _formatter(level: int) -> logging.Formatter:
    return logging.Formatter(LOG_FORMAT_DEBUG if level == logging.DEBUG else LOG_FORMAT)


def configure_logging(level: int | None = None) -> None:
    """Attach the stderr handler to the spendscan namespace (once per process).

    Args:
        level: Log level to use. If None, reads SPENDSCAN_LOG_LEVEL or uses
               DEFAULT_LOG_LEVEL.
    """
    global _logging_configured

    if _logging_configured:
        return

    if level is None:
        level = _level_from_env()

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(_formatter(level))

    namespace_logger = logging.getLogger(LOGGER_NAMESPACE)
    namespace_logger.setLevel(level)
    namespace_logger.addHandler(handler)
    namespace_logger.propagate = False

    _logging_configured = True


def get_logger(name: str) -> logging.Logger:
    """Logger for a module, under the spendscan namespace.

    ``spendscan.receipt.amount_extractor`` is used as is; any other name is
    prefixed, so ``get_logger("scripts.backfill")`` logs as
    ``spendscan.scripts.backfill``.
    """
    configure_logging()

    if name == LOGGER_NAMESPACE or name.startswith(f"{LOGGER_NAMESPACE}."):
        return logging.getLogger(name)
    return logging.getLogger(f"{LOGGER_NAMESPACE}.{name}")


def set_log_level(level: int) -> None:
    """Change the spendscan log level at runtime, e.g. for a ``--verbose`` run."""
    namespace_logger = logging.getLogger(LOGGER_NAMESPACE)
    namespace_logger.setLevel(level)
    for handler in namespace_logger.handlers:
        handler.setFormatter(_formatter(level))
