import logging

import pytest
import structlog

from txlog.config import get_settings
from txlog.observability import logging as txlog_logging
from txlog.observability.logging import configure_logging

_LOGGER_NAMES = ("", "uvicorn", "uvicorn.error", "uvicorn.access")


@pytest.fixture
def fresh_logging(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(txlog_logging, "_CONFIGURED", False)
    saved = {}
    for name in _LOGGER_NAMES:
        logger = logging.getLogger(name)
        saved[name] = (list(logger.handlers), logger.level, logger.propagate)

    yield

    for name, (handlers, level, propagate) in saved.items():
        logger = logging.getLogger(name)
        logger.handlers = handlers
        logger.setLevel(level)
        logger.propagate = propagate
    structlog.reset_defaults()


def test_levels_come_from_settings(monkeypatch: pytest.MonkeyPatch, fresh_logging) -> None:
    monkeypatch.setenv("TXLOG_LOG_LEVEL", "WARNING")
    monkeypatch.setenv("TXLOG_JSON_LOGS", "false")
    get_settings.cache_clear()

    configure_logging()

    root = logging.getLogger()
    assert root.level == logging.WARNING
    assert len(root.handlers) == 1
    assert isinstance(root.handlers[0].formatter, structlog.stdlib.ProcessorFormatter)
    access = logging.getLogger("uvicorn.access")
    assert access.handlers == root.handlers
    assert access.propagate is False
    assert access.level == logging.WARNING


def test_explicit_arguments_win_over_settings(monkeypatch: pytest.MonkeyPatch, fresh_logging) -> None:
    monkeypatch.setenv("TXLOG_LOG_LEVEL", "WARNING")
    get_settings.cache_clear()

    configure_logging("debug", json_logs=True)

    assert logging.getLogger().level == logging.DEBUG


def test_unknown_level_name_falls_back_to_info(fresh_logging) -> None:
    configure_logging("chatty")
    assert logging.getLogger().level == logging.INFO


def test_second_call_is_a_no_op(fresh_logging) -> None:
    configure_logging(logging.ERROR)
    handlers = list(logging.getLogger().handlers)

    configure_logging(logging.DEBUG)

    assert logging.getLogger().level == logging.ERROR
    assert logging.getLogger().handlers == handlers


def test_install_leaves_application_logging_alone(recording_logger, create_app) -> None:
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level

    create_app(recording_logger)

    assert root.handlers == handlers
    assert root.level == level
    assert txlog_logging._CONFIGURED is False
