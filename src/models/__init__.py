"""Pydantic data models for the Restaurant Bulk Operations service."""

from src.models.bulk_operation import (
    MAX_BATCH_ITEMS,
    BatchRequest,
    BatchSummary,
    BulkOperation,
    ItemResult,
)
from src.models.config import Config
from src.models.mutation_result import MutationResult
from src.models.product import Product

__all__ = [
    "MAX_BATCH_ITEMS",
    "BatchRequest",
    "BatchSummary",
    "BulkOperation",
    "Config",
    "ItemResult",
    "MutationResult",
    "Product",
]
