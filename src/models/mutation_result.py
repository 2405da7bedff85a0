"""Typed result of a single remote row mutation."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class MutationResult(BaseModel):
    """What a Remote Resource Client reports for one insert/update/delete.

    A mutation either succeeds (error is None) with the number of rows it
    touched, or fails with an error message. retryable marks failures that
    are worth another attempt (connection drops, timeouts, 429/5xx).
    """

    model_config = ConfigDict(frozen=True)

    affected_rows: int = Field(default=0, ge=0)
    rows: list[dict[str, Any]] = Field(default_factory=list)
    error: str | None = None
    retryable: bool = False

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def from_rows(cls, rows: list[dict[str, Any]]) -> MutationResult:
        return cls(affected_rows=len(rows), rows=rows)

    @classmethod
    def failure(cls, error: str, retryable: bool = False) -> MutationResult:
        return cls(error=error, retryable=retryable)
