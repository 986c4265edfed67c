from __future__ import annotations

import uuid
from time import perf_counter

from txlog.exceptions import ArgumentRequiredError
from txlog.models.transaction import (
    ACCOUNT_ID_HEADER,
    ACCOUNT_ID_ITEM,
    DISABLE_LOGGING_ITEM,
    ELAPSED_TIME_HEADER,
    REQUEST_KEY_HEADER,
    REQUEST_KEY_ITEM,
    STOPWATCH_ITEM,
    TransactionContext,
    TransactionResponse,
    set_header,
)
from txlog.observability.transaction_logger import TransactionLogger
from txlog.pipelines.exception_translator import SerializationOptions, handle_exceptions
from txlog.pipelines.hooks import Pipelines


class Stopwatch:
    def __init__(self) -> None:
        self._started = perf_counter()
        self._stopped: float | None = None

    @classmethod
    def start_new(cls) -> "Stopwatch":
        return cls()

    def stop(self) -> None:
        if self._stopped is None:
            self._stopped = perf_counter()

    @property
    def elapsed_milliseconds(self) -> int:
        end = self._stopped if self._stopped is not None else perf_counter()
        return int((end - self._started) * 1000)


def write_stopwatch_and_request_key(context: TransactionContext | None) -> TransactionResponse | None:
    """Before-request hook: assign the correlation key and start timing."""

    if context is None:
        return None

    request_key = context.request.first_header(REQUEST_KEY_HEADER) if context.request is not None else None
    context.items[REQUEST_KEY_ITEM] = request_key or str(uuid.uuid4())
    context.items[STOPWATCH_ITEM] = Stopwatch.start_new()
    return None


def read_stopwatch_and_request_key(context: TransactionContext | None) -> TransactionResponse | None:
    """Stamp elapsed time, correlation key and account id onto the response."""

    if context is None:
        return None

    response = context.response if context.response is not None else TransactionResponse()
    if response.headers is None:
        response.headers = {}

    stopwatch = context.items.get(STOPWATCH_ITEM)
    if stopwatch is not None:
        stopwatch.stop()
        set_header(response.headers, ELAPSED_TIME_HEADER, str(stopwatch.elapsed_milliseconds))

    request_key = context.items.get(REQUEST_KEY_ITEM)
    if request_key is not None:
        set_header(response.headers, REQUEST_KEY_HEADER, str(request_key))

    account_id = context.items.get(ACCOUNT_ID_ITEM)
    if account_id is not None:
        set_header(response.headers, ACCOUNT_ID_HEADER, str(account_id))

    context.response = response
    return None


def disable_logging(context: TransactionContext | None) -> None:
    """Skip the success-path log record for this transaction; errors are still logged."""

    if context is not None:
        context.items[DISABLE_LOGGING_ITEM] = True


def is_logging_disabled(context: TransactionContext) -> bool:
    return bool(context.items.get(DISABLE_LOGGING_ITEM))


def handle_successful_request(context: TransactionContext, logger: TransactionLogger) -> None:
    if is_logging_disabled(context):
        return
    logger.log_data(context)


def add_stopwatch_and_request_key_pipelines(pipelines: Pipelines) -> None:
    pipelines.before_request.add_item_to_start_of_pipeline(write_stopwatch_and_request_key)
    pipelines.after_request.add_item_to_start_of_pipeline(read_stopwatch_and_request_key)
    pipelines.on_error.add_item_to_start_of_pipeline(lambda context, exception: read_stopwatch_and_request_key(context))


def add_handler_exceptions_pipelines(
    pipelines: Pipelines, logger: TransactionLogger, serialization: SerializationOptions | None = None
) -> None:
    pipelines.on_error.add_item_to_end_of_pipeline(
        lambda context, exception: handle_exceptions(context, exception, serialization, logger)
    )


def add_handler_successful_requests_pipelines(pipelines: Pipelines, logger: TransactionLogger) -> None:
    pipelines.after_request.add_item_to_end_of_pipeline(lambda context: handle_successful_request(context, logger))


def add_log_pipelines(
    pipelines: Pipelines | None,
    logger: TransactionLogger | None = None,
    serialization: SerializationOptions | None = None,
) -> TransactionLogger:
    """Register timing, correlation and logging hooks on ``pipelines``.

    Returns the logger the hooks were bound to.
    """

    if pipelines is None:
        raise ArgumentRequiredError("pipelines")

    logger = logger or TransactionLogger()
    add_stopwatch_and_request_key_pipelines(pipelines)
    add_handler_exceptions_pipelines(pipelines, logger, serialization)
    add_handler_successful_requests_pipelines(pipelines, logger)
    return logger
