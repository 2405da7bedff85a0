"""Bulk result aggregation."""

from __future__ import annotations

import time
from dataclasses import dataclass, field

import structlog

from src.models.bulk_operation import BatchSummary, BulkOperation, ItemResult

logger = structlog.get_logger(__name__)


@dataclass
class ResultAggregator:
    """Accumulate per-item results of one bulk request in request order."""

    operation: BulkOperation
    total_requested: int
    batch_size: int
    micro_batch_count: int
    results: list[ItemResult] = field(default_factory=list)
    total_affected: int = 0
    start_time: float = field(default_factory=time.monotonic)

    def record(self, result: ItemResult) -> None:
        """Record one item outcome. Only succeeded items count affected rows."""
        self.results.append(result)
        if result.succeeded:
            self.total_affected += result.affected_rows

    @property
    def processed(self) -> int:
        return len(self.results)

    @property
    def failed(self) -> int:
        return sum(1 for result in self.results if not result.succeeded)

    @property
    def elapsed_seconds(self) -> float:
        return time.monotonic() - self.start_time

    def log_progress(self, every_n: int = 10) -> None:
        """Log progress every N items."""
        if self.processed % every_n == 0 or self.processed == self.total_requested:
            logger.info(
                "bulk_progress",
                processed=self.processed,
                total=self.total_requested,
                affected=self.total_affected,
                failed=self.failed,
                elapsed=f"{self.elapsed_seconds:.2f}s",
            )

    def summary(self, cancelled: bool = False) -> BatchSummary:
        return BatchSummary(
            operation=self.operation,
            total_requested=self.total_requested,
            total_affected=self.total_affected,
            micro_batch_count=self.micro_batch_count,
            batch_size=self.batch_size,
            per_item_results=list(self.results),
            cancelled=cancelled,
            duration_seconds=round(self.elapsed_seconds, 3),
        )


def format_batch_summary(summary: BatchSummary) -> str:
    """Format a bulk summary as a human-readable string."""
    lines = [
        f"[SUMMARY] Operation: {summary.operation.value}",
        f"  Requested: {summary.total_requested}",
        f"  Affected rows: {summary.total_affected}",
        f"  Succeeded: {summary.succeeded_count}",
        f"  Failed: {summary.failed_count}",
        f"  Micro-batches: {summary.micro_batch_count} (size {summary.batch_size})",
    ]
    if summary.cancelled:
        lines.append("  Cancelled before completion")

    failures = [result for result in summary.per_item_results if not result.succeeded]
    if failures:
        lines.append(f"  Errors ({len(failures)}):")
        for result in failures[:10]:
            lines.append(f"    - {result.id}: {result.error}")
        if len(failures) > 10:
            lines.append(f"    ... and {len(failures) - 10} more")

    return "\n".join(lines)
