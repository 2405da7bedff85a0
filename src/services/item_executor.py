"""Apply one bulk operation to one id, isolating failures."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from src.models.bulk_operation import BulkOperation, ItemResult
from src.utils.retry import TransientResourceError, build_retrying

if TYPE_CHECKING:
    from src.models.config import Config
    from src.models.mutation_result import MutationResult
    from src.services.protocols import RemoteResourceClientProtocol

logger = structlog.get_logger(__name__)


class ItemExecutor:
    """Per-item executor for bulk operations.

    Never raises for a remote failure: errors returned by the client and
    exceptions it raises both become a failed ItemResult.
    """

    def __init__(
        self,
        client: RemoteResourceClientProtocol,
        flag_name: str = "is_available",
        retry_attempts: int = 0,
        retry_min_wait: float = 1.0,
        retry_max_wait: float = 5.0,
    ) -> None:
        self.client = client
        self.flag_name = flag_name
        self._retrying = build_retrying(
            max_attempts=retry_attempts + 1,
            min_wait=retry_min_wait,
            max_wait=retry_max_wait,
        )

    @classmethod
    def from_config(cls, client: RemoteResourceClientProtocol, config: Config) -> ItemExecutor:
        return cls(
            client,
            flag_name=config.availability_flag,
            retry_attempts=config.item_retry_attempts,
            retry_min_wait=config.retry_min_wait_seconds,
            retry_max_wait=config.retry_max_wait_seconds,
        )

    def _apply(self, item_id: str, operation: BulkOperation) -> MutationResult:
        if operation is BulkOperation.DELETE:
            result = self.client.delete(item_id)
        elif operation is BulkOperation.ACTIVATE:
            result = self.client.set_flag(item_id, self.flag_name, True)
        elif operation is BulkOperation.DEACTIVATE:
            result = self.client.set_flag(item_id, self.flag_name, False)
        else:
            msg = f"Unsupported operation: {operation}"
            raise ValueError(msg)

        if result.error and result.retryable:
            raise TransientResourceError(result.error)
        return result

    def execute(self, item_id: str, operation: BulkOperation) -> ItemResult:
        """Run the mutation for one id and report its outcome."""
        try:
            result = self._retrying(self._apply, item_id, operation)
        except Exception as exc:
            logger.error(
                "bulk_item_failed",
                id=item_id,
                operation=operation.value,
                error=str(exc),
                error_type=type(exc).__name__,
            )
            return ItemResult.failure(item_id, str(exc))

        if result.error:
            logger.error(
                "bulk_item_failed",
                id=item_id,
                operation=operation.value,
                error=result.error,
            )
            return ItemResult.failure(item_id, result.error)

        affected = result.affected_rows
        if affected > 1:
            # A by-id mutation touches at most one row
            logger.warning("bulk_item_affected_multiple_rows", id=item_id, affected=affected)
            affected = 1
        if affected == 0:
            logger.info("bulk_item_not_found", id=item_id, operation=operation.value)
        return ItemResult.success(item_id, affected)
