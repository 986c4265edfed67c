from __future__ import annotations

from typing import Any

from txlog.config import TransactionLogConfiguration
from txlog.exceptions import ArgumentRequiredError
from txlog.models.log_record import LogRecord
from txlog.models.transaction import TransactionContext
from txlog.observability.logging import get_default_logger
from txlog.observability.record_builder import build_log_record, emit_log_record


class TransactionLogger:
    """Builds and emits the log record for a finished transaction."""

    def __init__(self, configuration: TransactionLogConfiguration | None = None) -> None:
        self.configuration = configuration or TransactionLogConfiguration()

    @property
    def logger(self) -> Any:
        if self.configuration.logger is not None:
            return self.configuration.logger
        return get_default_logger()

    def log_data(self, context: TransactionContext | None, exception: BaseException | None = None) -> LogRecord:
        if context is None:
            raise ArgumentRequiredError("context")

        record = build_log_record(context, exception, self.configuration)
        emit_log_record(record, self.logger)
        return record
