"""Logging configuration for the ``household_ledger`` package.

Entry points (the CLI, a desktop shell embedding :class:`~household_ledger.api.Vault`)
call :func:`configure_logging` once. Library modules only ever call
``get_logger("household_ledger.<module>")``; they never attach handlers.

The level comes from the ``level`` argument, else ``LEDGER_LOG_LEVEL``, else
``INFO``. Until configuration runs, the package logger carries a single
``NullHandler`` so embedding hosts see nothing they did not ask for.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import IO

_PKG_LOGGER_NAME = "household_ledger"
_DEFAULT_FORMAT = "%(asctime)s %(threadName)s %(name)s %(levelname)s %(message)s"
_handler: logging.Handler | None = None


def resolve_level(level: int | str | None = None) -> int:
    """Translate ``level`` (or the environment) into a numeric logging level."""

    if level is None:
        level = os.getenv("LEDGER_LOG_LEVEL")
    if isinstance(level, int):
        return level
    if isinstance(level, str):
        name = level.strip().upper()
        if name.isdigit():
            return int(name)
        numeric = logging.getLevelName(name)
        if isinstance(numeric, int):
            return numeric
    return logging.INFO


def configure_logging(
    level: int | str | None = None,
    *,
    fmt: str | None = None,
    stream: IO[str] = sys.stderr,
) -> logging.Logger:
    """Attach one ``StreamHandler`` to the package logger; later calls are no-ops."""

    global _handler
    logger = logging.getLogger(_PKG_LOGGER_NAME)
    if _handler is not None:
        return logger

    for h in list(logger.handlers):
        if isinstance(h, logging.NullHandler):
            logger.removeHandler(h)

    numeric = resolve_level(level)
    handler = logging.StreamHandler(stream)
    handler.setLevel(numeric)
    handler.setFormatter(logging.Formatter(fmt or _DEFAULT_FORMAT))

    logger.setLevel(numeric)
    logger.addHandler(handler)
    # The host's root logger may have its own handlers; don't emit twice.
    logger.propagate = False
    _handler = handler
    return logger


def get_logger(name: str) -> logging.Logger:
    """Return ``name``'s logger, silencing the package until it is configured."""

    pkg_logger = logging.getLogger(_PKG_LOGGER_NAME)
    if _handler is None and not pkg_logger.handlers:
        pkg_logger.addHandler(logging.NullHandler())
    return logging.getLogger(name)


__all__ = ["configure_logging", "get_logger", "resolve_level"]
