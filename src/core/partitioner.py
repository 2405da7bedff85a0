"""Micro-batch partitioning of bulk request ids."""

from __future__ import annotations

from src.core.validators import InvalidBatchRequestError
from src.models.bulk_operation import MAX_BATCH_ITEMS

MICRO_BATCH_SIZE = 5


def validate_target_ids(ids: list[str], max_items: int = MAX_BATCH_ITEMS) -> None:
    """Enforce the 1..max_items hard cap on a bulk request."""
    if not ids:
        msg = "No items selected"
        raise InvalidBatchRequestError(msg)
    if len(ids) > max_items:
        msg = f"Cannot process more than {max_items} items at once"
        raise InvalidBatchRequestError(msg)


def partition_ids(ids: list[str], batch_size: int = MICRO_BATCH_SIZE) -> list[list[str]]:
    """Split ids into consecutive micro-batches of batch_size.

    The last batch holds the remainder. Concatenating the batches gives
    back ids unchanged.
    """
    if batch_size < 1:
        msg = "batch_size must be at least 1"
        raise ValueError(msg)
    validate_target_ids(ids)
    return [ids[start : start + batch_size] for start in range(0, len(ids), batch_size)]
