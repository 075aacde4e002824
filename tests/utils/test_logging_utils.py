"""Tests for configure_logging() / get_logger()."""

from __future__ import annotations

import logging
import sys

import pytest

from axisstats.utils.logging import (
    LOGGER_NAME,
    configure_logging,
    get_logger,
    install_null_handler,
    resolve_level,
)


@pytest.fixture
def clean_logger():
    logger = logging.getLogger(LOGGER_NAME)
    saved_handlers = logger.handlers[:]
    saved_level = logger.level
    yield logger
    for h in logger.handlers[:]:
        if h not in saved_handlers:
            h.close()
        logger.removeHandler(h)
    for h in saved_handlers:
        logger.addHandler(h)
    logger.setLevel(saved_level)


def _stderr_handlers(logger: logging.Logger) -> list[logging.Handler]:
    return [h for h in logger.handlers if isinstance(h, logging.StreamHandler) and h.stream is sys.stderr]


def test_get_logger_default_is_package_logger() -> None:
    assert get_logger() is logging.getLogger("axisstats")
    assert get_logger("axisstats.render").name == "axisstats.render"


def test_package_import_installs_null_handler() -> None:
    import axisstats  # noqa: F401

    assert any(isinstance(h, logging.NullHandler) for h in logging.getLogger("axisstats").handlers)


def test_configure_logging_sets_level_and_handler(clean_logger) -> None:
    configure_logging(level="DEBUG", force=True)
    assert clean_logger.level == logging.DEBUG
    assert len(_stderr_handlers(clean_logger)) == 1


def test_configure_logging_without_force_does_not_duplicate(clean_logger) -> None:
    configure_logging(level="INFO", force=True)
    configure_logging(level="INFO")
    assert len(_stderr_handlers(clean_logger)) == 1


def test_configure_logging_reads_env(clean_logger, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("AXISSTATS_LOG_LEVEL", "WARNING")
    configure_logging(force=True)
    assert clean_logger.level == logging.WARNING


def test_configure_logging_never_touches_root(clean_logger) -> None:
    root_handlers = logging.getLogger().handlers[:]
    configure_logging(level="INFO", force=True)
    assert logging.getLogger().handlers == root_handlers


@pytest.mark.parametrize(
    "level, expected",
    [
        ("debug", logging.DEBUG),
        (" WARNING ", logging.WARNING),
        (logging.ERROR, logging.ERROR),
        ("15", 15),
        ("nonsense", logging.INFO),
    ],
)
def test_resolve_level(level, expected) -> None:
    assert resolve_level(level) == expected


def test_resolve_level_none_reads_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("AXISSTATS_LOG_LEVEL", "ERROR")
    assert resolve_level() == logging.ERROR
    monkeypatch.delenv("AXISSTATS_LOG_LEVEL")
    assert resolve_level() == logging.INFO


def test_reconfigure_updates_existing_handler(clean_logger) -> None:
    configure_logging(level="INFO", force=True)
    (handler,) = _stderr_handlers(clean_logger)
    configure_logging(level="DEBUG", fmt="%(message)s")
    assert _stderr_handlers(clean_logger) == [handler]
    assert handler.level == logging.DEBUG
    assert handler.formatter._fmt == "%(message)s"


def test_install_null_handler_is_idempotent(clean_logger) -> None:
    for h in clean_logger.handlers[:]:
        clean_logger.removeHandler(h)
    install_null_handler()
    install_null_handler()
    assert len(clean_logger.handlers) == 1
    assert isinstance(clean_logger.handlers[0], logging.NullHandler)


def test_install_null_handler_leaves_configured_logger_alone(clean_logger) -> None:
    configure_logging(level="INFO", force=True)
    install_null_handler()
    assert not any(isinstance(h, logging.NullHandler) for h in clean_logger.handlers)
