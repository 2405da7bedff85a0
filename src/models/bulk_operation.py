"""Bulk operation request, per-item result and batch summary models."""

from __future__ import annotations

from enum import StrEnum

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

MAX_BATCH_ITEMS = 100


class BulkOperation(StrEnum):
    """Mutation applied to every id of a bulk request."""

    DELETE = "delete"
    ACTIVATE = "activate"
    DEACTIVATE = "deactivate"


class BatchRequest(BaseModel):
    """A single bulk request: one operation over an ordered list of ids."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    operation: BulkOperation
    target_ids: list[str] = Field(
        validation_alias=AliasChoices("targetIds", "productIds", "target_ids"),
    )

    @field_validator("target_ids")
    @classmethod
    def validate_target_ids(cls, value: list[str]) -> list[str]:
        """Ids must be 1..100 non-blank, unique strings, kept exactly as sent."""
        if not value:
            msg = "targetIds must contain at least one id"
            raise ValueError(msg)
        if len(value) > MAX_BATCH_ITEMS:
            msg = f"Cannot process more than {MAX_BATCH_ITEMS} items at once"
            raise ValueError(msg)

        if any(not item_id.strip() for item_id in value):
            msg = "targetIds must not contain blank ids"
            raise ValueError(msg)
        padded = [item_id for item_id in value if item_id != item_id.strip()]
        if padded:
            msg = f"targetIds must not have surrounding whitespace: {padded[0]!r}"
            raise ValueError(msg)

        seen: set[str] = set()
        duplicates: list[str] = []
        for item_id in value:
            if item_id in seen and item_id not in duplicates:
                duplicates.append(item_id)
            seen.add(item_id)
        if duplicates:
            msg = f"targetIds must be unique, duplicated: {', '.join(duplicates[:5])}"
            raise ValueError(msg)
        return value


class ItemResult(BaseModel):
    """Outcome of the mutation applied to one id."""

    model_config = ConfigDict(
        strict=True,
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    id: str
    succeeded: bool
    affected_rows: int = Field(default=0, ge=0, le=1)
    error: str | None = None

    @model_validator(mode="after")
    def validate_outcome(self) -> ItemResult:
        """Failed items carry an error and never count affected rows."""
        if not self.succeeded:
            if not self.error:
                msg = "failed item results must carry an error message"
                raise ValueError(msg)
            if self.affected_rows:
                msg = "failed item results cannot report affected rows"
                raise ValueError(msg)
        return self

    @classmethod
    def success(cls, item_id: str, affected_rows: int) -> ItemResult:
        return cls(id=item_id, succeeded=True, affected_rows=affected_rows)

    @classmethod
    def failure(cls, item_id: str, error: str) -> ItemResult:
        return cls(id=item_id, succeeded=False, affected_rows=0, error=error or "Unknown error")


class BatchSummary(BaseModel):
    """Aggregated outcome of one bulk request.

    per_item_results holds exactly one entry per requested id, in request
    order. total_affected counts rows actually changed, which may be lower
    than the number of succeeded items (ids that matched nothing).
    """

    model_config = ConfigDict(frozen=True)

    operation: BulkOperation
    total_requested: int = Field(ge=1, le=MAX_BATCH_ITEMS)
    total_affected: int = Field(ge=0)
    micro_batch_count: int = Field(ge=1)
    batch_size: int = Field(ge=1)
    per_item_results: list[ItemResult]
    cancelled: bool = False
    duration_seconds: float = 0.0

    @model_validator(mode="after")
    def validate_counts(self) -> BatchSummary:
        """Counts must agree with the per-item results."""
        if len(self.per_item_results) != self.total_requested:
            msg = "per_item_results must hold one entry per requested id"
            raise ValueError(msg)
        if self.total_affected > self.total_requested:
            msg = "total_affected cannot exceed total_requested"
            raise ValueError(msg)
        return self

    @property
    def succeeded_count(self) -> int:
        return sum(1 for result in self.per_item_results if result.succeeded)

    @property
    def failed_count(self) -> int:
        return self.total_requested - self.succeeded_count

    @property
    def failed_ids(self) -> list[str]:
        """Ids to resubmit; failed items are never retried automatically."""
        return [result.id for result in self.per_item_results if not result.succeeded]
