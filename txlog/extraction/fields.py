"""Per-field accessors over a ``TransactionContext``.

Every accessor tolerates a missing context, request or response and falls
back to the documented default instead of raising.
"""

from __future__ import annotations

from http import HTTPStatus
from typing import Iterable
from urllib.parse import parse_qs, urlsplit

from txlog.extraction.body_codec import (
    decode_request_body,
    decode_response_content,
    materialize_response,
)
from txlog.extraction.redaction import JsonValue
from txlog.models.transaction import (
    ACCOUNT_ID_HEADER,
    ELAPSED_TIME_HEADER,
    FORWARDED_FOR_HEADER,
    REQUEST_KEY_HEADER,
    TransactionContext,
    find_header,
)

ELAPSED_DEFAULT = -1
UNKNOWN_IP = "??"
ERROR_STATUS_CODE = 500
_DEFAULT_PORTS = {"http": 80, "https": 443, "ws": 80, "wss": 443}


def get_status_code(context: TransactionContext | None, exception: BaseException | None = None) -> int:
    if exception is not None:
        return ERROR_STATUS_CODE
    if context is None or context.response is None:
        return 0
    return int(context.response.status_code or 0)


def get_status_code_family(context: TransactionContext | None, exception: BaseException | None = None) -> str:
    return f"{str(get_status_code(context, exception))[0]}XX"


def get_status_description(status_code: int) -> str | None:
    try:
        return HTTPStatus(status_code).phrase
    except ValueError:
        return None


def is_successful(status_code: int) -> bool:
    return status_code < 400


def get_ip(context: TransactionContext | None) -> str:
    if context is None or context.request is None:
        return UNKNOWN_IP
    forwarded = context.request.first_header(FORWARDED_FOR_HEADER)
    # "client, proxy1, proxy2": the originating client comes first.
    client = forwarded.split(",")[0].strip() if forwarded else ""
    if client:
        return client
    return context.request.user_host_address or UNKNOWN_IP


def get_method(context: TransactionContext | None) -> str | None:
    if context is None or context.request is None:
        return None
    return context.request.method


def _split_url(context: TransactionContext | None):
    if context is None or context.request is None or not context.request.url:
        return None
    return urlsplit(context.request.url)


def get_path(context: TransactionContext | None) -> str | None:
    parts = _split_url(context)
    if parts is None:
        return None
    return parts.path or "/"


def get_host(context: TransactionContext | None) -> str | None:
    parts = _split_url(context)
    return parts.hostname if parts is not None else None


def get_port(context: TransactionContext | None) -> int | None:
    parts = _split_url(context)
    if parts is None:
        return None
    try:
        port = parts.port
    except ValueError:
        return None
    return port if port is not None else _DEFAULT_PORTS.get(parts.scheme)


def get_url_base(context: TransactionContext | None) -> str | None:
    parts = _split_url(context)
    if parts is None or not parts.netloc:
        return None
    return f"{parts.scheme}://{parts.netloc}"


def get_query_string(context: TransactionContext | None) -> str | None:
    parts = _split_url(context)
    return parts.query if parts is not None else None


def get_query(context: TransactionContext | None) -> dict[str, str] | None:
    if context is None or context.request is None:
        return None
    query = get_query_string(context)
    if not query:
        return {}
    return {key: ",".join(values) for key, values in parse_qs(query, keep_blank_values=True).items()}


def get_protocol_version(context: TransactionContext | None) -> str | None:
    if context is None or context.request is None:
        return None
    return context.request.protocol_version


def get_request_headers(context: TransactionContext | None) -> dict[str, str] | None:
    if context is None or context.request is None:
        return None
    headers = context.request.headers or {}
    return {name: ",".join(v for v in values if v is not None) if values else "" for name, values in headers.items()}


def get_response_headers(context: TransactionContext | None) -> dict[str, str] | None:
    if context is None or context.response is None or context.response.headers is None:
        return None
    return dict(context.response.headers)


def _response_header(context: TransactionContext | None, name: str) -> str | None:
    if context is None or context.response is None:
        return None
    return find_header(context.response.headers, name)


def get_elapsed_milliseconds(context: TransactionContext | None) -> int:
    value = _response_header(context, ELAPSED_TIME_HEADER)
    if value is None:
        return ELAPSED_DEFAULT
    text = str(value).strip()
    # Plain integers only; int() would also take "1_000" or non-ASCII digits.
    digits = text[1:] if text[:1] in ("+", "-") else text
    if not (digits.isascii() and digits.isdigit()):
        return ELAPSED_DEFAULT
    return int(text)


def get_request_key(context: TransactionContext | None) -> str | None:
    return _response_header(context, REQUEST_KEY_HEADER)


def get_account_id(context: TransactionContext | None) -> str | None:
    return _response_header(context, ACCOUNT_ID_HEADER)


def get_content_type(context: TransactionContext | None) -> str | None:
    if context is None or context.response is None:
        return None
    return context.response.content_type


def get_response_length(context: TransactionContext | None, raw: bytes | None = None) -> int:
    if context is None or context.response is None:
        return 0
    if raw is None:
        raw = materialize_response(context.response)
    return len(raw)


def get_request_body(context: TransactionContext | None, blacklist: Iterable[str] | None = None) -> JsonValue:
    if context is None:
        return None
    return decode_request_body(context.request, blacklist)


def get_response_content(
    context: TransactionContext | None, blacklist: Iterable[str] | None = None, raw: bytes | None = None
) -> JsonValue:
    if context is None:
        return None
    return decode_response_content(context.response, blacklist, raw=raw)
