"""Sequential bulk batch processor."""

from __future__ import annotations

import uuid
from contextlib import contextmanager
from typing import TYPE_CHECKING

import structlog

from src.core.partitioner import MICRO_BATCH_SIZE, partition_ids
from src.core.result_aggregation import ResultAggregator
from src.core.throttle import Throttle
from src.models.bulk_operation import ItemResult
from src.services.client_factory import build_resource_client
from src.services.item_executor import ItemExecutor

if TYPE_CHECKING:
    import threading
    from collections.abc import Iterator

    from src.models.bulk_operation import BatchRequest, BatchSummary
    from src.models.config import Config
    from src.services.protocols import RemoteResourceClientProtocol

logger = structlog.get_logger(__name__)

CANCELLED_ERROR = "cancelled"


class BulkBatchProcessor:
    """Run a bulk request item by item, micro-batch by micro-batch.

    Validate -> Partition -> (ExecuteItem -> Throttle)* -> Aggregate.
    Items run strictly one after another. Per-item failures are recorded in
    the summary and never abort the batch; only validation errors raised
    before the first mutation do. There is no cross-item transaction.
    """

    def __init__(
        self,
        executor: ItemExecutor,
        throttle: Throttle | None = None,
        batch_size: int = MICRO_BATCH_SIZE,
    ) -> None:
        self.executor = executor
        self.throttle = throttle or Throttle()
        self.batch_size = batch_size

    @classmethod
    def from_config(
        cls, client: RemoteResourceClientProtocol, config: Config
    ) -> BulkBatchProcessor:
        return cls(
            ItemExecutor.from_config(client, config),
            throttle=Throttle.from_config(config),
            batch_size=config.micro_batch_size,
        )

    def run(
        self,
        request: BatchRequest,
        cancel_event: threading.Event | None = None,
    ) -> BatchSummary:
        """Process every id of the request and return the summary.

        When cancel_event is set mid-run, the remaining ids are recorded as
        failed with error "cancelled" and no further pauses happen.
        """
        ids = list(request.target_ids)
        batches = partition_ids(ids, self.batch_size)
        aggregator = ResultAggregator(
            operation=request.operation,
            total_requested=len(ids),
            batch_size=self.batch_size,
            micro_batch_count=len(batches),
        )

        with structlog.contextvars.bound_contextvars(
            batch_id=uuid.uuid4().hex[:12],
            operation=request.operation.value,
        ):
            logger.info(
                "bulk_operation_started",
                total=len(ids),
                micro_batches=len(batches),
                batch_size=self.batch_size,
                preview=ids[:10],
            )

            cancelled = False
            for batch_index, batch in enumerate(batches):
                for position, item_id in enumerate(batch):
                    if not cancelled and cancel_event is not None and cancel_event.is_set():
                        cancelled = True
                        logger.warning("bulk_operation_cancelled", processed=aggregator.processed)
                    if cancelled:
                        aggregator.record(ItemResult.failure(item_id, CANCELLED_ERROR))
                        continue

                    aggregator.record(self.executor.execute(item_id, request.operation))
                    aggregator.log_progress(every_n=10)
                    if position < len(batch) - 1:
                        self.throttle.pause_item()

                if not cancelled and batch_index < len(batches) - 1:
                    self.throttle.pause_batch()

            summary = aggregator.summary(cancelled=cancelled)
            logger.info(
                "bulk_operation_completed",
                affected=summary.total_affected,
                failed=summary.failed_count,
                failed_ids=summary.failed_ids[:10],
                cancelled=cancelled,
                duration_seconds=summary.duration_seconds,
            )
        return summary


@contextmanager
def open_batch_processor(
    config: Config,
    access_token: str | None = None,
) -> Iterator[BulkBatchProcessor]:
    """Build the configured client and a processor around it; close the client on exit."""
    client = build_resource_client(config, access_token=access_token)
    try:
        yield BulkBatchProcessor.from_config(client, config)
    finally:
        client.close()
