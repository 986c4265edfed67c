from __future__ import annotations

from dataclasses import dataclass
from typing import Any


class ArgumentRequiredError(ValueError):
    """Raised when a required argument (usually the transaction context) is missing."""

    def __init__(self, name: str) -> None:
        super().__init__(f"{name} is required")
        self.name = name


@dataclass(frozen=True)
class ApiResponse:
    status_code: int
    content: Any | None = None


class ApiException(Exception):
    """Application error that maps directly onto an HTTP response.

    ``content`` is serialized as the JSON response body; ``None`` means an
    empty body.
    """

    status_code: int = 500

    def __init__(self, content: Any | None = None, status_code: int | None = None, message: str | None = None) -> None:
        super().__init__(message or f"API error ({status_code or self.status_code})")
        if status_code is not None:
            self.status_code = status_code
        self.content = content

    def to_api_response(self) -> ApiResponse:
        return ApiResponse(status_code=self.status_code, content=self.content)


class BadRequestException(ApiException):
    status_code = 400


class UnauthorizedException(ApiException):
    status_code = 401


class NotFoundException(ApiException):
    status_code = 404
