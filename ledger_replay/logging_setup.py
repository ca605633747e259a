"""
logging_setup.py - Centralized logging configuration for ``ledger_replay``

Two public helpers:

- ``configure_logging(...)``: attach a single ``StreamHandler`` to the package
  logger (``"ledger_replay"``). Called once by the CLI at startup.
- ``get_logger(name)``: acquire a logger by name, making sure the package
  logger has at least a ``NullHandler`` when nothing configured it, so library
  use stays silent.

Library modules never attach their own handlers. They call
``get_logger("ledger_replay.<module>")`` and rely on the entry point.
"""

from __future__ import annotations

import logging
import sys
from typing import IO, Optional, Union

_PKG_LOGGER_NAME = "ledger_replay"
_CONFIGURED = False

DEFAULT_FORMAT = "%(asctime)s %(name)s %(levelname)s %(message)s"


def _parse_level(level: Union[int, str, None]) -> int:
    if isinstance(level, int):
        return level
    if isinstance(level, str):
        # Numeric strings or level names (INFO/DEBUG/etc.)
        level = level.strip().upper()
        if level.isdigit():
            return int(level)
        numeric = getattr(logging, level, None)
        if isinstance(numeric, int):
            return numeric
    return logging.WARNING


def configure_logging(
    level: Union[int, str, None] = None,
    *,
    fmt: Optional[str] = None,
    stream: Optional[IO[str]] = None,
) -> None:
    """
    Configure the package logger exactly once.

    Args:
        level: Logging level as int or level name. Defaults to WARNING.
        fmt: Optional format string (default: DEFAULT_FORMAT)
        stream: Output stream for the handler (default: sys.stderr at call time)
    """
    global _CONFIGURED
    if _CONFIGURED:
        return

    logger = logging.getLogger(_PKG_LOGGER_NAME)

    # Drop the NullHandler installed by get_logger() before configuration.
    for h in list(logger.handlers):
        if isinstance(h, logging.NullHandler):
            logger.removeHandler(h)

    numeric_level = _parse_level(level)
    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    handler.setLevel(numeric_level)
    handler.setFormatter(logging.Formatter(fmt or DEFAULT_FORMAT))

    logger.setLevel(numeric_level)
    logger.addHandler(handler)
    logger.propagate = False

    _CONFIGURED = True


def get_logger(name: str) -> logging.Logger:
    """
    Return a logger by name.

    Before configure_logging() runs, a NullHandler is attached to the package
    logger so that "No handler" warnings never appear in library contexts.
    """
    pkg_logger = logging.getLogger(_PKG_LOGGER_NAME)
    if not _CONFIGURED and not pkg_logger.handlers:
        pkg_logger.addHandler(logging.NullHandler())
    return logging.getLogger(name)
