"""Logging setup for the CircuPlay server and CLI.

One level applies to the ``circuplay`` package (core and backend) and,
when serving, to uvicorn. Individual loggers can be raised or lowered
with ``CIRCUPLAY_LOG_LEVELS``, a comma-separated list of
``logger=LEVEL`` pairs, for example::

    CIRCUPLAY_LOG_LEVELS="circuplay.grid=DEBUG,uvicorn.access=WARNING"

uvicorn's access log records every state poll a client makes, once per
tick per browser tab, so it stays at WARNING unless the base level is
DEBUG or an override says otherwise.
"""

from __future__ import annotations

import logging
import os
from typing import Dict, Iterable

DEFAULT_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
DEFAULT_DATEFMT = "%Y-%m-%d %H:%M:%S"

LEVEL_ENV = "CIRCUPLAY_LOG_LEVEL"
OVERRIDES_ENV = "CIRCUPLAY_LOG_LEVELS"


def parse_level_overrides(raw: str | None) -> Dict[str, str]:
    """Parse ``logger=LEVEL`` pairs; malformed or unknown entries are skipped."""
    overrides: Dict[str, str] = {}
    for entry in (raw or "").split(","):
        if not entry.strip():
            continue
        name, sep, level = entry.partition("=")
        name, level = name.strip(), level.strip().upper()
        if not sep or not name or not isinstance(logging.getLevelName(level), int):
            logging.getLogger(__name__).warning(f"Ignoring log level override {entry.strip()!r}")
            continue
        overrides[name] = level
    return overrides


def configure_logging(
    *,
    level: str | None = None,
    format: str = DEFAULT_FORMAT,
    datefmt: str = DEFAULT_DATEFMT,
    include_uvicorn: bool = True,
    extra_loggers: Iterable[str] | None = None,
) -> logging.Logger:
    """Configure application logging.

    Args:
        level: Optional explicit log level. Falls back to ``CIRCUPLAY_LOG_LEVEL``
            or INFO when not provided.
        format: Log format string.
        datefmt: Date format string.
        include_uvicorn: Whether to align uvicorn loggers with the backend level.
        extra_loggers: Additional logger names to align with the configured level.

    Returns:
        The backend application logger (``circuplay.backend``).
    """
    resolved_level = (level or os.getenv(LEVEL_ENV) or "INFO").upper()
    logging.basicConfig(level=resolved_level, format=format, datefmt=datefmt)

    levels = {"circuplay": resolved_level}
    if include_uvicorn:
        levels["uvicorn"] = resolved_level
        levels["uvicorn.error"] = resolved_level
        levels["uvicorn.access"] = "DEBUG" if resolved_level == "DEBUG" else "WARNING"
    for logger_name in extra_loggers or ():
        levels[logger_name] = resolved_level
    levels.update(parse_level_overrides(os.getenv(OVERRIDES_ENV)))

    for logger_name, logger_level in levels.items():
        logging.getLogger(logger_name).setLevel(logger_level)

    app_logger = logging.getLogger("circuplay.backend")
    app_logger.debug(f"Logging configured at {resolved_level} ({len(levels)} loggers set)")
    return app_logger
