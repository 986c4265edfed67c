from __future__ import annotations

import io
from typing import Any, Callable

from fastapi import FastAPI, Request
from starlette.datastructures import URL, Headers

from txlog.config import TransactionLogConfiguration, get_settings
from txlog.extraction.body_codec import materialize_response
from txlog.models.transaction import TransactionContext, TransactionRequest, TransactionResponse
from txlog.observability.transaction_logger import TransactionLogger
from txlog.pipelines.exception_translator import SerializationOptions
from txlog.pipelines.hooks import Pipelines
from txlog.pipelines.interceptors import add_log_pipelines

TRANSACTION_STATE_KEY = "transaction"

# Headers that can't be folded into a single comma-joined value.
_PASSTHROUGH_HEADERS = {"set-cookie"}


async def _read_body(receive: Callable[..., Any]) -> bytes:
    chunks: list[bytes] = []
    while True:
        message = await receive()
        if message.get("type") != "http.request":
            break
        chunks.append(message.get("body", b""))
        if not message.get("more_body", False):
            break
    return b"".join(chunks)


def _build_request(scope: dict[str, Any], body: bytes) -> TransactionRequest:
    headers = Headers(scope=scope)
    client = scope.get("client")
    return TransactionRequest(
        method=scope.get("method", "GET"),
        url=str(URL(scope=scope)),
        headers={name: headers.getlist(name) for name in dict.fromkeys(headers.keys())},
        body=io.BytesIO(body),
        user_host_address=client[0] if client else None,
        protocol_version=scope.get("http_version"),
    )


def _build_response(message: dict[str, Any], body: bytes) -> tuple[TransactionResponse, list[tuple[bytes, bytes]]]:
    raw = Headers(raw=message.get("headers", []))
    passthrough = [(k, v) for k, v in raw.raw if k.decode("latin-1") in _PASSTHROUGH_HEADERS]
    headers = {
        name: ", ".join(raw.getlist(name))
        for name in dict.fromkeys(raw.keys())
        if name not in _PASSTHROUGH_HEADERS
    }
    response = TransactionResponse.from_bytes(body, status_code=int(message.get("status", 500)), headers=headers)
    return response, passthrough


async def _send_response(
    response: TransactionResponse,
    send: Callable[..., Any],
    method: str,
    passthrough: list[tuple[bytes, bytes]],
) -> None:
    body = materialize_response(response)
    content_length: str | None = None
    headers: list[tuple[bytes, bytes]] = []
    for name, value in (response.headers or {}).items():
        if name.lower() == "content-length":
            content_length = str(value)
            continue
        headers.append((name.lower().encode("latin-1"), str(value).encode("latin-1")))

    status = response.status_code
    if method != "HEAD":
        content_length = str(len(body)) if status >= 200 and status not in (204, 304) else None
    if content_length is not None:
        headers.append((b"content-length", content_length.encode("latin-1")))
    headers.extend(passthrough)

    await send({"type": "http.response.start", "status": status, "headers": headers})
    await send({"type": "http.response.body", "body": b"" if method == "HEAD" else body, "more_body": False})


class TransactionLoggingMiddleware:
    """Runs the transaction pipelines around an ASGI application.

    The request body is buffered and replayed to the application, and the
    application's response is held back until the after-request hooks have
    stamped it. Every response, `StreamingResponse` and server-sent events
    included, is kept in memory and reaches the client only once the
    application has finished, so long-lived or unbounded streams should be
    served from routes mounted outside this middleware.
    """

    def __init__(self, app: Callable[..., Any], pipelines: Pipelines) -> None:
        self.app = app
        self.pipelines = pipelines

    async def __call__(self, scope: dict[str, Any], receive: Callable[..., Any], send: Callable[..., Any]) -> None:
        if scope.get("type") != "http":
            await self.app(scope, receive, send)
            return

        body = await _read_body(receive)
        context = TransactionContext(request=_build_request(scope, body))
        scope.setdefault("state", {})[TRANSACTION_STATE_KEY] = context

        replayed = False

        async def receive_wrapper() -> dict[str, Any]:
            nonlocal replayed
            if not replayed:
                replayed = True
                return {"type": "http.request", "body": body, "more_body": False}
            return await receive()

        start_message: dict[str, Any] | None = None
        chunks: list[bytes] = []

        async def send_wrapper(message: dict[str, Any]) -> None:
            nonlocal start_message
            if message.get("type") == "http.response.start":
                start_message = message
            elif message.get("type") == "http.response.body":
                chunks.append(message.get("body", b""))
            else:
                await send(message)

        passthrough: list[tuple[bytes, bytes]] = []
        try:
            short_circuit = self.pipelines.before_request.invoke(context)
            if short_circuit is not None:
                context.response = short_circuit
            else:
                await self.app(scope, receive_wrapper, send_wrapper)
                if start_message is None:
                    raise RuntimeError("application completed without starting a response")
                context.response, passthrough = _build_response(start_message, b"".join(chunks))
        except Exception as exc:
            replacement = self.pipelines.on_error.invoke(context, exc)
            if replacement is None:
                raise
            context.response = replacement
        except BaseException as exc:
            # Aborted (e.g. cancelled) requests are logged but never answered.
            self.pipelines.on_error.invoke(context, exc)
            raise
        else:
            self.pipelines.after_request.invoke(context)

        await _send_response(context.response, send, scope.get("method", "GET"), passthrough)


def get_transaction(request: Request) -> TransactionContext | None:
    """FastAPI dependency returning the current transaction context."""

    return request.scope.get("state", {}).get(TRANSACTION_STATE_KEY)


def install_transaction_logging(
    app: FastAPI,
    configuration: TransactionLogConfiguration | None = None,
    serialization: SerializationOptions | None = None,
    pipelines: Pipelines | None = None,
) -> TransactionLogger:
    """Wire the transaction pipelines into a FastAPI application.

    Logging output is left to the application; call
    `txlog.observability.logging.configure_logging` at startup to install
    the structlog renderers.
    """

    configuration = configuration or TransactionLogConfiguration.from_settings(get_settings())
    pipelines = pipelines or Pipelines()
    logger = add_log_pipelines(pipelines, TransactionLogger(configuration), serialization)
    app.add_middleware(TransactionLoggingMiddleware, pipelines=pipelines)
    return logger
