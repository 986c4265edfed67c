from __future__ import annotations

from functools import lru_cache
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", env_prefix="TXLOG_")

    blacklist: list[str] = Field(default_factory=list)
    information_title: str | None = None
    error_title: str | None = None
    version: str | None = None
    log_level: str = "INFO"
    json_logs: bool = True


class TransactionLogConfiguration(BaseModel):
    """Read-only configuration shared by every transaction.

    ``logger`` may be any structlog-style logger (``info``/``error`` methods);
    when absent the process-wide default from ``txlog.observability.logging``
    is used at emit time.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    blacklist: tuple[str, ...] = ()
    information_title: str | None = None
    error_title: str | None = None
    version: str | None = None
    logger: Any | None = None

    @classmethod
    def from_settings(cls, settings: Settings, logger: Any | None = None) -> "TransactionLogConfiguration":
        return cls(
            blacklist=tuple(settings.blacklist),
            information_title=settings.information_title,
            error_title=settings.error_title,
            version=settings.version,
            logger=logger,
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
