from __future__ import annotations

import io
from collections.abc import AsyncIterator, Callable
from typing import Any

import pytest
from fastapi import Depends, FastAPI
from fastapi.responses import JSONResponse, StreamingResponse
from httpx import ASGITransport, AsyncClient

from txlog.config import TransactionLogConfiguration, get_settings
from txlog.exceptions import NotFoundException
from txlog.middleware import get_transaction, install_transaction_logging
from txlog.models.transaction import TransactionContext, TransactionRequest, TransactionResponse
from txlog.observability.logging import set_default_logger
from txlog.pipelines.hooks import Pipelines
from txlog.pipelines.interceptors import disable_logging


class RecordingLogger:
    """Stands in for a structlog logger and keeps every call."""

    def __init__(self) -> None:
        self.records: list[tuple[str, str, dict[str, Any]]] = []

    def info(self, event: str, **kw: Any) -> None:
        self.records.append(("info", event, kw))

    def error(self, event: str, **kw: Any) -> None:
        self.records.append(("error", event, kw))


def build_context(
    method: str = "GET",
    url: str = "http://localhost.com",
    request_body: str | None = None,
    request_headers: dict[str, list[str] | None] | None = None,
    status_code: int = 200,
    response_content: str | None = None,
    response_headers: dict[str, str] | None = None,
    origin_ip: str | None = "127.0.0.1",
    protocol_version: str = "1.1",
) -> TransactionContext:
    request = TransactionRequest(
        method=method,
        url=url,
        headers=request_headers if request_headers is not None else {},
        body=io.BytesIO(request_body.encode("utf-8")) if request_body is not None else None,
        user_host_address=origin_ip,
        protocol_version=protocol_version,
    )
    response = TransactionResponse.from_bytes(
        (response_content or "").encode("utf-8"), status_code=status_code, headers=response_headers
    )
    return TransactionContext(request=request, response=response)


@pytest.fixture(autouse=True)
def test_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "TXLOG_BLACKLIST",
        "TXLOG_INFORMATION_TITLE",
        "TXLOG_ERROR_TITLE",
        "TXLOG_VERSION",
        "TXLOG_LOG_LEVEL",
        "TXLOG_JSON_LOGS",
    ):
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    set_default_logger(None)

    yield

    set_default_logger(None)
    get_settings.cache_clear()


@pytest.fixture
def recording_logger() -> RecordingLogger:
    return RecordingLogger()


@pytest.fixture
def make_context() -> Callable[..., TransactionContext]:
    return build_context


def create_test_app(logger: RecordingLogger, pipelines: Pipelines | None = None) -> FastAPI:
    app = FastAPI()
    install_transaction_logging(
        app,
        configuration=TransactionLogConfiguration(blacklist=("password",), version="1.2.3", logger=logger),
        pipelines=pipelines,
    )

    @app.post("/echo")
    async def echo(payload: dict) -> dict:
        return payload

    @app.get("/accounts/{account_id}")
    async def account(account_id: str, transaction: TransactionContext = Depends(get_transaction)) -> dict:
        transaction.items["AccountId"] = account_id
        transaction.items["Controller"] = "Accounts"
        transaction.items["Operation"] = "GetAccount"
        transaction.items["AdditionalInfo"] = {"Tenant": "acme"}
        return {"id": account_id}

    @app.get("/quiet")
    async def quiet(transaction: TransactionContext = Depends(get_transaction)) -> dict:
        disable_logging(transaction)
        return {"ok": True}

    @app.get("/quiet-error")
    async def quiet_error(transaction: TransactionContext = Depends(get_transaction)) -> dict:
        disable_logging(transaction)
        raise RuntimeError("quiet but broken")

    @app.get("/missing")
    async def missing() -> dict:
        raise NotFoundException({"error_message": "nothing here"})

    @app.get("/boom")
    async def boom() -> dict:
        raise RuntimeError("boom")

    @app.get("/unavailable")
    async def unavailable() -> JSONResponse:
        return JSONResponse({"status": "down"}, status_code=503)

    @app.get("/stream")
    async def stream() -> StreamingResponse:
        async def chunks() -> AsyncIterator[bytes]:
            yield b"hello "
            yield b"world"

        return StreamingResponse(chunks(), media_type="text/plain")

    return app


@pytest.fixture
def create_app() -> Callable[..., FastAPI]:
    return create_test_app


@pytest.fixture
async def api_client(recording_logger: RecordingLogger) -> AsyncIterator[AsyncClient]:
    transport = ASGITransport(app=create_test_app(recording_logger), raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
