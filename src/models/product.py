"""Menu product model."""

from __future__ import annotations

import re
from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _utc_now() -> datetime:
    """Return current UTC datetime."""
    return datetime.now(UTC)


class Product(BaseModel):
    """A menu product; is_available is the flag bulk activate/deactivate toggles."""

    model_config = ConfigDict(validate_assignment=True, extra="forbid")

    id: str | None = None
    name: str
    description: str | None = None
    price: float = Field(default=0.0, ge=0)
    category: str | None = None
    is_available: bool = True
    created_at: datetime = Field(default_factory=_utc_now)
    updated_at: datetime = Field(default_factory=_utc_now)

    @field_validator("name")
    @classmethod
    def validate_name(cls, value: str) -> str:
        """Strip whitespace and collapse inner spaces."""
        stripped = value.strip()
        if not stripped:
            msg = "Name must not be empty"
            raise ValueError(msg)
        if len(stripped) > 200:
            msg = "Name must not exceed 200 characters"
            raise ValueError(msg)
        return re.sub(r"\s+", " ", stripped)

    @field_validator("description")
    @classmethod
    def validate_description(cls, value: str | None) -> str | None:
        """Blank descriptions are stored as None."""
        if value is None or not value.strip():
            return None
        if len(value) > 2000:
            msg = "Description must not exceed 2000 characters"
            raise ValueError(msg)
        return value.strip()

    @field_validator("category")
    @classmethod
    def validate_category(cls, value: str | None) -> str | None:
        if value is None or not value.strip():
            return None
        return value.strip()
