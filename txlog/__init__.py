"""HTTP transaction logging: one structured log event per request/response pair."""

from txlog.config import TransactionLogConfiguration, get_settings
from txlog.exceptions import ApiException, ArgumentRequiredError
from txlog.middleware import TransactionLoggingMiddleware, get_transaction, install_transaction_logging
from txlog.models.log_record import LogRecord, LogSeverity
from txlog.models.transaction import TransactionContext, TransactionRequest, TransactionResponse
from txlog.observability.logging import configure_logging
from txlog.observability.transaction_logger import TransactionLogger
from txlog.pipelines.hooks import Pipelines
from txlog.pipelines.interceptors import add_log_pipelines, disable_logging

__all__ = [
    "ApiException",
    "ArgumentRequiredError",
    "LogRecord",
    "LogSeverity",
    "Pipelines",
    "TransactionContext",
    "TransactionLogConfiguration",
    "TransactionLogger",
    "TransactionLoggingMiddleware",
    "TransactionRequest",
    "TransactionResponse",
    "add_log_pipelines",
    "configure_logging",
    "disable_logging",
    "get_settings",
    "get_transaction",
    "install_transaction_logging",
]
