from __future__ import annotations

import logging
import sys
from typing import Any

import structlog

from txlog.config import get_settings

DEFAULT_LOGGER_NAME = "txlog.transaction"

_CONFIGURED = False
_default_logger: Any | None = None


def configure_logging(level: int | str | None = None, json_logs: bool | None = None) -> None:
    """Configure structlog + stdlib logging.

    Installs a stdout handler on the root logger, so call it once from the
    application's startup. Arguments left as ``None`` come from the
    ``TXLOG_LOG_LEVEL`` and ``TXLOG_JSON_LOGS`` settings.

    Safe to call multiple times (no-op after first call).
    """

    global _CONFIGURED
    if _CONFIGURED:
        return

    settings = get_settings()
    if level is None:
        level = settings.log_level
    if json_logs is None:
        json_logs = settings.json_logs

    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    pre_chain: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    structlog.configure(
        processors=[
            *pre_chain,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    renderer: Any = structlog.processors.JSONRenderer() if json_logs else structlog.dev.ConsoleRenderer()
    formatter = structlog.stdlib.ProcessorFormatter(
        processor=renderer,
        foreign_pre_chain=pre_chain,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(level)

    # Keep uvicorn's own loggers consistent with our handler.
    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        logger = logging.getLogger(name)
        logger.handlers = [handler]
        logger.propagate = False
        logger.setLevel(level)

    _CONFIGURED = True


def set_default_logger(logger: Any | None) -> None:
    """Override the process-wide logger; ``None`` restores the built-in one."""

    global _default_logger
    _default_logger = logger


def get_default_logger() -> Any:
    """Logger used by configurations that don't carry their own."""

    if _default_logger is not None:
        return _default_logger
    return structlog.get_logger(DEFAULT_LOGGER_NAME)
