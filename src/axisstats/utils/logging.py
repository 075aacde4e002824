"""
Logging helpers for axisstats.

Library modules only ever do ``logger = get_logger(__name__)``. Output is
decided by the host application; on import the package logger gets a
NullHandler (install_null_handler()) so nothing leaks to stderr unasked.

Scripts and examples that want to see render progress call
configure_logging(), which attaches one stderr handler to the "axisstats"
logger and leaves the root logger alone. The level can come from the
AXISSTATS_LOG_LEVEL environment variable, e.g. ``AXISSTATS_LOG_LEVEL=DEBUG``
to trace render phases and per-axis accumulation.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import Optional, Union

LOGGER_NAME = "axisstats"
LOG_LEVEL_ENV = "AXISSTATS_LOG_LEVEL"

DEFAULT_FMT = "%(asctime)s [%(levelname)s] %(threadName)s %(name)s: %(message)s"
DEFAULT_DATEFMT = "%Y-%m-%d %H:%M:%S"


def resolve_level(level: Optional[Union[str, int]] = None) -> int:
    """
    Turn a level name, number or None into a logging level.

    None reads AXISSTATS_LOG_LEVEL; unknown names fall back to INFO.
    """
    if level is None:
        level = os.environ.get(LOG_LEVEL_ENV, "INFO")
    if isinstance(level, int):
        return level
    text = str(level).strip()
    if text.isdigit():
        return int(text)
    resolved = logging.getLevelName(text.upper())
    return resolved if isinstance(resolved, int) else logging.INFO


def _stderr_handler(logger: logging.Logger) -> Optional[logging.Handler]:
    for h in logger.handlers:
        if isinstance(h, logging.StreamHandler) and h.stream is sys.stderr:
            return h
    return None


def install_null_handler() -> None:
    """Give the package logger a NullHandler unless it already has handlers."""
    logger = logging.getLogger(LOGGER_NAME)
    if not logger.handlers:
        logger.addHandler(logging.NullHandler())


def configure_logging(
    level: Optional[Union[str, int]] = None,
    *,
    fmt: Optional[str] = None,
    datefmt: Optional[str] = None,
    force: bool = False,
) -> None:
    """
    Send axisstats logs to stderr. For scripts only; library code never calls this.

    Parameters
    ----------
    level:
        Level name or number. Defaults to AXISSTATS_LOG_LEVEL, else INFO.
    fmt, datefmt:
        Formatter settings, DEFAULT_FMT / DEFAULT_DATEFMT when omitted.
    force:
        Drop every handler on the "axisstats" logger first. Without it an
        existing stderr handler is reused (its level and format updated)
        instead of adding a second one.
    """
    numeric = resolve_level(level)
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(numeric)

    if force:
        for h in logger.handlers[:]:
            logger.removeHandler(h)
            h.close()

    handler = _stderr_handler(logger)
    if handler is None:
        handler = logging.StreamHandler(sys.stderr)
        logger.addHandler(handler)
    handler.setLevel(numeric)
    handler.setFormatter(logging.Formatter(fmt=fmt or DEFAULT_FMT, datefmt=datefmt or DEFAULT_DATEFMT))


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """The package logger for None, otherwise ``logging.getLogger(name)``."""
    return logging.getLogger(LOGGER_NAME if name is None else name)
