from __future__ import annotations

import json
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel

from txlog.exceptions import ApiException
from txlog.models.transaction import TransactionContext, TransactionResponse

if TYPE_CHECKING:
    from txlog.observability.transaction_logger import TransactionLogger

JSON_CONTENT_TYPE = "application/json"


@dataclass(frozen=True)
class SerializationOptions:
    camel_case: bool = True
    exclude_none: bool = False
    indent: int | None = None


def _camelize(name: str) -> str:
    head, *rest = name.split("_")
    if not rest:
        return name[:1].lower() + name[1:]
    return head.lower() + "".join(part[:1].upper() + part[1:] for part in rest)


def _prepare(value: Any, options: SerializationOptions) -> Any:
    if isinstance(value, BaseModel):
        value = value.model_dump(mode="json", by_alias=True, exclude_none=options.exclude_none)
    if isinstance(value, dict):
        return {
            (_camelize(key) if options.camel_case and isinstance(key, str) else key): _prepare(item, options)
            for key, item in value.items()
            if not (options.exclude_none and item is None)
        }
    if isinstance(value, (list, tuple)):
        return [_prepare(item, options) for item in value]
    return value


def serialize_content(content: Any, options: SerializationOptions | None = None) -> str:
    options = options or SerializationOptions()
    return json.dumps(_prepare(content, options), indent=options.indent, default=str)


def handle_exceptions(
    context: TransactionContext | None,
    exception: BaseException,
    serialization: SerializationOptions | None,
    logger: "TransactionLogger",
) -> TransactionResponse | None:
    """On-error hook: turn an ``ApiException`` into its HTTP response.

    Handled API errors are logged as ordinary transactions. Anything else is
    logged with the exception and ``None`` is returned so the host falls back
    to its own failure handling.
    """

    if context is None:
        return None

    if isinstance(exception, ApiException):
        api_response = exception.to_api_response()
        body = b"" if api_response.content is None else serialize_content(api_response.content, serialization).encode()

        existing = context.response.headers if context.response is not None else None
        response = TransactionResponse.from_bytes(body, status_code=api_response.status_code, headers=existing)
        response.content_type = JSON_CONTENT_TYPE
        context.response = response

        logger.log_data(context)
        return response

    logger.log_data(context, exception)
    return None
