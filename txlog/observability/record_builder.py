from __future__ import annotations

import traceback
from typing import Any, Callable, Mapping, TypeVar

import structlog

from txlog.config import TransactionLogConfiguration
from txlog.exceptions import ArgumentRequiredError
from txlog.extraction import fields
from txlog.extraction.body_codec import materialize_response
from txlog.models.log_record import LogRecord, LogSeverity
from txlog.models.transaction import (
    ADDITIONAL_INFO_ITEM,
    CONTROLLER_ITEM,
    OPERATION_ITEM,
    TransactionContext,
)
from txlog.observability.logging import get_default_logger

DEFAULT_INFORMATION_TITLE = "HTTP {Method} {Path} from {Ip} responded {StatusCode} in {ElapsedMilliseconds} ms"
DEFAULT_ERROR_TITLE = "HTTP {Method} {Path} from {Ip} responded {StatusCode} in {ElapsedMilliseconds} ms"

MAX_ERROR_MESSAGE_LENGTH = 256
MAX_STACK_TRACE_LENGTH = 768

# structlog reserves "event" for the message itself.
_RESERVED_KEYS = frozenset({"event", "message_template"})

T = TypeVar("T")

_log = structlog.get_logger(__name__)


def _safe(name: str, extractor: Callable[[], T], default: T) -> T:
    try:
        return extractor()
    except Exception:
        _log.debug("field_extraction_failed", field=name, exc_info=True)
        return default


def _truncate(value: str | None, limit: int) -> str | None:
    if value is None:
        return None
    return value[:limit]


def _stack_trace(exception: BaseException) -> str:
    return "".join(traceback.format_exception(type(exception), exception, exception.__traceback__))


def select_severity(status_code: int, exception: BaseException | None) -> LogSeverity:
    if exception is not None or status_code >= 500:
        return LogSeverity.ERROR
    return LogSeverity.INFORMATION


def select_template(severity: LogSeverity, configuration: TransactionLogConfiguration) -> str:
    if severity is LogSeverity.ERROR:
        return configuration.error_title or DEFAULT_ERROR_TITLE
    return configuration.information_title or DEFAULT_INFORMATION_TITLE


def build_log_record(
    context: TransactionContext | None,
    exception: BaseException | None = None,
    configuration: TransactionLogConfiguration | None = None,
) -> LogRecord:
    """Collect every loggable field of a transaction into one ``LogRecord``."""

    if context is None:
        raise ArgumentRequiredError("context")

    configuration = configuration or TransactionLogConfiguration()
    blacklist = configuration.blacklist

    status_code = fields.get_status_code(context, exception)
    # Materialize the response once; content and length share the bytes.
    raw_content = _safe("ResponseContent", lambda: materialize_response(context.response), b"")
    error_message = str(exception) if exception is not None else None
    stack_trace = _stack_trace(exception) if exception is not None else None

    properties: dict[str, Any] = {
        "Method": _safe("Method", lambda: fields.get_method(context), None),
        "Path": _safe("Path", lambda: fields.get_path(context), None),
        "Host": _safe("Host", lambda: fields.get_host(context), None),
        "Port": _safe("Port", lambda: fields.get_port(context), None),
        "UrlBase": _safe("UrlBase", lambda: fields.get_url_base(context), None),
        "Query": _safe("Query", lambda: fields.get_query(context), None),
        "QueryString": _safe("QueryString", lambda: fields.get_query_string(context), None),
        "RequestHeaders": _safe("RequestHeaders", lambda: fields.get_request_headers(context), None),
        "RequestBody": _safe("RequestBody", lambda: fields.get_request_body(context, blacklist), None),
        "Ip": _safe("Ip", lambda: fields.get_ip(context), fields.UNKNOWN_IP),
        "IsSuccessful": fields.is_successful(status_code),
        "StatusCode": status_code,
        "StatusDescription": fields.get_status_description(status_code),
        "StatusCodeFamily": fields.get_status_code_family(context, exception),
        "ProtocolVersion": _safe("ProtocolVersion", lambda: fields.get_protocol_version(context), None),
        "ErrorException": _truncate(stack_trace, MAX_STACK_TRACE_LENGTH),
        "ErrorMessage": _truncate(error_message, MAX_ERROR_MESSAGE_LENGTH),
        "ResponseContent": _safe(
            "ResponseContent", lambda: fields.get_response_content(context, blacklist, raw=raw_content), None
        ),
        "ContentType": _safe("ContentType", lambda: fields.get_content_type(context), None),
        "ContentLength": _safe("ContentLength", lambda: fields.get_response_length(context, raw=raw_content), 0),
        "ResponseHeaders": _safe("ResponseHeaders", lambda: fields.get_response_headers(context), None),
        "ElapsedMilliseconds": _safe(
            "ElapsedMilliseconds", lambda: fields.get_elapsed_milliseconds(context), fields.ELAPSED_DEFAULT
        ),
        "RequestKey": _safe("RequestKey", lambda: fields.get_request_key(context), None),
        "AccountId": _safe("AccountId", lambda: fields.get_account_id(context), None),
        "Version": configuration.version,
    }

    items = context.items or {}
    for key in (CONTROLLER_ITEM, OPERATION_ITEM):
        if items.get(key) is not None:
            properties[key] = items[key]

    additional = items.get(ADDITIONAL_INFO_ITEM)
    if isinstance(additional, Mapping):
        for key, value in additional.items():
            if isinstance(key, str) and key not in properties and key not in _RESERVED_KEYS:
                properties[key] = value

    severity = select_severity(status_code, exception)
    return LogRecord(severity=severity, template=select_template(severity, configuration), properties=properties)


def emit_log_record(record: LogRecord, logger: Any | None = None) -> None:
    """Hand the record to the backend in a single call."""

    logger = logger if logger is not None else get_default_logger()
    log_method = getattr(logger, record.severity.method_name)
    log_method(record.message, message_template=record.template, **record.properties)
