"""Application configuration model using pydantic-settings."""

from __future__ import annotations

import re
from pathlib import Path

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_IDENTIFIER_PATTERN = r"[A-Za-z_][A-Za-z0-9_]*"


class Config(BaseSettings):
    """Application configuration loaded from environment variables and .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    database_path: str = "data/restaurant.db"
    log_level: str = "INFO"
    log_json: bool = False

    # Bulk pacing
    micro_batch_size: int = 5
    item_delay_ms: int = 50
    batch_delay_ms: int = 100

    # Extra attempts per item for transient remote errors (0 = no retry)
    item_retry_attempts: int = 0
    retry_min_wait_seconds: float = 1.0
    retry_max_wait_seconds: float = 5.0

    resource_table: str = "products"
    availability_flag: str = "is_available"

    # Hosted PostgREST / Supabase REST endpoint, e.g. https://<ref>.supabase.co/rest/v1
    postgrest_url: str | None = None
    postgrest_api_key: str | None = None
    request_timeout_seconds: int = 30

    api_prefix: str = "/functions/v1"
    cors_allow_origins: str = "*"

    @field_validator("database_path")
    @classmethod
    def validate_database_path(cls, value: str) -> str:
        """Ensure parent directory exists, creating it if necessary."""
        parent = Path(value).parent
        parent.mkdir(parents=True, exist_ok=True)
        return value

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        """Log level must be a valid Python logging level."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper_value = value.upper()
        if upper_value not in valid_levels:
            msg = f"log_level must be one of {', '.join(sorted(valid_levels))}"
            raise ValueError(msg)
        return upper_value

    @field_validator("micro_batch_size")
    @classmethod
    def validate_micro_batch_size(cls, value: int) -> int:
        """Micro-batch size must be between 1 and 100."""
        if value < 1 or value > 100:
            msg = "micro_batch_size must be between 1 and 100"
            raise ValueError(msg)
        return value

    @field_validator("item_delay_ms", "batch_delay_ms")
    @classmethod
    def validate_delay(cls, value: int) -> int:
        """Pacing delays must be between 0 and 10000 milliseconds."""
        if value < 0 or value > 10_000:
            msg = "delays must be between 0 and 10000 milliseconds"
            raise ValueError(msg)
        return value

    @field_validator("item_retry_attempts")
    @classmethod
    def validate_item_retry_attempts(cls, value: int) -> int:
        """Item retry attempts must be between 0 and 5."""
        if value < 0 or value > 5:
            msg = "item_retry_attempts must be between 0 and 5"
            raise ValueError(msg)
        return value

    @field_validator("resource_table", "availability_flag")
    @classmethod
    def validate_identifier(cls, value: str) -> str:
        """Table and column names must be plain SQL identifiers."""
        if not re.fullmatch(_IDENTIFIER_PATTERN, value):
            msg = f"{value!r} is not a valid identifier"
            raise ValueError(msg)
        return value

    @field_validator("postgrest_url")
    @classmethod
    def validate_postgrest_url(cls, value: str | None) -> str | None:
        """PostgREST URL must be http(s); trailing slashes are dropped."""
        if value is None or not value.strip():
            return None
        if not re.match(r"^https?://", value):
            msg = "postgrest_url must start with http:// or https://"
            raise ValueError(msg)
        return value.rstrip("/")

    @field_validator("api_prefix")
    @classmethod
    def validate_api_prefix(cls, value: str) -> str:
        """Normalize the prefix to a leading slash and no trailing slash."""
        stripped = value.strip().strip("/")
        return f"/{stripped}" if stripped else ""

    @model_validator(mode="after")
    def validate_retry_waits(self) -> Config:
        """Retry wait bounds must be non-negative and ordered."""
        if self.retry_min_wait_seconds < 0 or self.retry_max_wait_seconds < 0:
            msg = "retry wait bounds must be non-negative"
            raise ValueError(msg)
        if self.retry_min_wait_seconds > self.retry_max_wait_seconds:
            msg = "retry_min_wait_seconds must not exceed retry_max_wait_seconds"
            raise ValueError(msg)
        return self

    @property
    def uses_postgrest(self) -> bool:
        """True when a hosted PostgREST endpoint is configured."""
        return self.postgrest_url is not None

    @property
    def cors_origins(self) -> list[str]:
        """Comma-separated CORS origins as a list."""
        return [origin.strip() for origin in self.cors_allow_origins.split(",") if origin.strip()]
