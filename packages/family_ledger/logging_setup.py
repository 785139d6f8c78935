"""Centralized logging configuration for the ``family_ledger`` package.

Public helpers:

- ``configure_logging(...)``: attach a single ``StreamHandler`` to the package
  root logger (``"family_ledger"``). Called once by entrypoints (the Typer CLI
  and the ``serve`` command before uvicorn starts).
- ``get_logger(name)``: acquire a logger by name. Until configuration runs the
  package root logger carries a ``NullHandler`` so library use stays silent.
- ``resolve_level_name(...)``: the effective level as a lowercase name, which is
  the form uvicorn's ``log_level`` option expects.

Library modules never attach handlers of their own; they call
``get_logger("family_ledger.<module>")`` and rely on the entrypoint.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import IO

_PKG_LOGGER_NAME = "family_ledger"
_LEVEL_ENV = "FAMILY_LEDGER_LOG_LEVEL"
# Webhook requests run in Starlette's threadpool; the thread name tells
# concurrent messages apart in the log.
_DEFAULT_FMT = "%(asctime)s %(name)s %(levelname)s [%(threadName)s] %(message)s"

_CONFIGURED = False


def _parse_level(level: int | str | None) -> int:
    if level is None:
        level = os.getenv(_LEVEL_ENV)
    if isinstance(level, int):
        return level
    if isinstance(level, str) and level.strip():
        name = level.strip().upper()
        if name.isdigit():
            return int(name)
        numeric = getattr(logging, name, None)
        if isinstance(numeric, int):
            return numeric
    return logging.INFO


def resolve_level_name(level: int | str | None = None) -> str:
    """Return the effective level as a lowercase name (``"info"``, ``"debug"``...)."""

    return logging.getLevelName(_parse_level(level)).lower()


def configure_logging(
    level: int | str | None = None,
    *,
    fmt: str | None = None,
    stream: IO[str] = sys.stderr,
) -> None:
    """Configure the package root logger exactly once.

    Parameters
    ----------
    level:
        Logging level as ``int`` or level-name string. When ``None`` the
        ``FAMILY_LEDGER_LOG_LEVEL`` environment variable is consulted, falling
        back to ``logging.INFO``.
    fmt:
        Optional format string; defaults to a timestamped format that includes
        the thread name.
    stream:
        Output stream for the handler (``sys.stderr`` by default).
    """

    global _CONFIGURED
    if _CONFIGURED:
        return

    logger = logging.getLogger(_PKG_LOGGER_NAME)
    for h in list(logger.handlers):
        if isinstance(h, logging.NullHandler):
            logger.removeHandler(h)

    numeric_level = _parse_level(level)
    handler = logging.StreamHandler(stream)
    handler.setLevel(numeric_level)
    handler.setFormatter(logging.Formatter(fmt or _DEFAULT_FMT))

    logger.setLevel(numeric_level)
    logger.addHandler(handler)
    logger.propagate = False

    _CONFIGURED = True


def get_logger(name: str) -> logging.Logger:
    """Return a logger by name, keeping the package silent until configured."""

    pkg_logger = logging.getLogger(_PKG_LOGGER_NAME)
    if not _CONFIGURED and not pkg_logger.handlers:
        pkg_logger.addHandler(logging.NullHandler())
    return logging.getLogger(name)
