from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, BinaryIO, Callable, Mapping, MutableMapping

# Keys read and written in TransactionContext.items.
STOPWATCH_ITEM = "Stopwatch"
REQUEST_KEY_ITEM = "RequestKey"
ACCOUNT_ID_ITEM = "AccountId"
DISABLE_LOGGING_ITEM = "DisableLogging"
CONTROLLER_ITEM = "Controller"
OPERATION_ITEM = "Operation"
ADDITIONAL_INFO_ITEM = "AdditionalInfo"

# Headers read from requests and stamped onto responses.
REQUEST_KEY_HEADER = "RequestKey"
ACCOUNT_ID_HEADER = "AccountId"
ELAPSED_TIME_HEADER = "X-Internal-Time"
FORWARDED_FOR_HEADER = "X-Forwarded-For"
CONTENT_TYPE_HEADER = "Content-Type"

ContentsWriter = Callable[[BinaryIO], Any]


def find_header(headers: Mapping[str, Any] | None, name: str) -> Any | None:
    """Case-insensitive header lookup; exact-case matches win."""

    if not headers:
        return None
    if name in headers:
        return headers[name]
    lowered = name.lower()
    for key, value in headers.items():
        if key.lower() == lowered:
            return value
    return None


def set_header(headers: MutableMapping[str, str], name: str, value: str) -> None:
    """Set ``name``, replacing any existing header that differs only in case."""

    for key in [k for k in headers if k.lower() == name.lower() and k != name]:
        del headers[key]
    headers[name] = value


@dataclass
class TransactionRequest:
    method: str = "GET"
    url: str = "http://localhost/"
    headers: dict[str, list[str] | None] | None = field(default_factory=dict)
    body: BinaryIO | None = None
    user_host_address: str | None = None
    protocol_version: str | None = None

    def header_values(self, name: str) -> list[str]:
        values = find_header(self.headers, name)
        return [v for v in values if v is not None] if values else []

    def first_header(self, name: str) -> str | None:
        values = self.header_values(name)
        return values[0] if values else None

    @property
    def content_type(self) -> str:
        return ";".join(self.header_values(CONTENT_TYPE_HEADER))


@dataclass
class TransactionResponse:
    status_code: int = 200
    headers: dict[str, str] | None = field(default_factory=dict)
    contents: ContentsWriter | None = None

    @property
    def content_type(self) -> str | None:
        return find_header(self.headers, CONTENT_TYPE_HEADER)

    @content_type.setter
    def content_type(self, value: str) -> None:
        if self.headers is None:
            self.headers = {}
        set_header(self.headers, CONTENT_TYPE_HEADER, value)

    @classmethod
    def from_bytes(
        cls, body: bytes, status_code: int = 200, headers: dict[str, str] | None = None
    ) -> "TransactionResponse":
        return cls(status_code=status_code, headers=dict(headers or {}), contents=lambda stream: stream.write(body))


@dataclass
class TransactionContext:
    """Per-request bundle owned by the host for the lifetime of one transaction."""

    request: TransactionRequest | None = None
    response: TransactionResponse | None = None
    items: dict[str, Any] = field(default_factory=dict)
