"""Contract tests for the bulk item executor and batch processor.

Remote clients are mocked with MagicMock returning real MutationResult
objects, except where the SQLite adapter runs against a temporary database.
"""

from __future__ import annotations

import threading
from unittest.mock import MagicMock

import pytest
from structlog.testing import capture_logs

from src.core.throttle import Throttle
from src.core.validators import InvalidBatchRequestError
from src.models.bulk_operation import BatchRequest, BulkOperation
from src.models.config import Config
from src.models.mutation_result import MutationResult
from src.repositories.product_repository import ProductRepository
from src.services.batch_processor import CANCELLED_ERROR, BulkBatchProcessor
from src.services.item_executor import ItemExecutor
from src.services.sqlite_resource_client import SQLiteResourceClient


def _row(item_id: str) -> MutationResult:
    return MutationResult.from_rows([{"id": item_id}])


def _request(operation: str, ids: list[str]) -> BatchRequest:
    return BatchRequest.model_validate({"operation": operation, "targetIds": ids})


# ---------------------------------------------------------------------------
# ItemExecutor
# ---------------------------------------------------------------------------


class TestItemExecutor:
    def test_activate_sets_flag_true(self) -> None:
        client = MagicMock()
        client.set_flag.return_value = _row("a")

        result = ItemExecutor(client).execute("a", BulkOperation.ACTIVATE)

        assert result.succeeded is True
        assert result.affected_rows == 1
        client.set_flag.assert_called_once_with("a", "is_available", True)

    def test_deactivate_sets_flag_false(self) -> None:
        client = MagicMock()
        client.set_flag.return_value = _row("a")
        ItemExecutor(client, flag_name="visible").execute("a", BulkOperation.DEACTIVATE)
        client.set_flag.assert_called_once_with("a", "visible", False)

    def test_delete_calls_delete(self) -> None:
        client = MagicMock()
        client.delete.return_value = _row("a")
        result = ItemExecutor(client).execute("a", BulkOperation.DELETE)
        assert result.affected_rows == 1
        client.delete.assert_called_once_with("a")
        client.set_flag.assert_not_called()

    def test_not_found_is_success_with_zero_rows(self) -> None:
        client = MagicMock()
        client.delete.return_value = MutationResult()
        result = ItemExecutor(client).execute("x", BulkOperation.DELETE)
        assert result.succeeded is True
        assert result.affected_rows == 0
        assert result.error is None

    def test_error_result_becomes_failure(self) -> None:
        client = MagicMock()
        client.set_flag.return_value = MutationResult.failure("permission denied")
        result = ItemExecutor(client).execute("a", BulkOperation.ACTIVATE)
        assert result.succeeded is False
        assert result.error == "permission denied"
        assert result.affected_rows == 0

    def test_raised_exception_becomes_failure(self) -> None:
        client = MagicMock()
        client.delete.side_effect = RuntimeError("socket closed")
        result = ItemExecutor(client).execute("a", BulkOperation.DELETE)
        assert result.succeeded is False
        assert result.error == "socket closed"

    def test_multiple_rows_clamped_to_one(self) -> None:
        client = MagicMock()
        client.delete.return_value = MutationResult.from_rows([{"id": "a"}, {"id": "a"}])
        assert ItemExecutor(client).execute("a", BulkOperation.DELETE).affected_rows == 1

    def test_no_retry_by_default(self) -> None:
        client = MagicMock()
        client.delete.return_value = MutationResult.failure("HTTP 503: busy", retryable=True)
        result = ItemExecutor(client, retry_min_wait=0, retry_max_wait=0).execute(
            "a", BulkOperation.DELETE
        )
        assert result.succeeded is False
        assert result.error == "HTTP 503: busy"
        assert client.delete.call_count == 1

    def test_transient_failure_retried_when_enabled(self) -> None:
        client = MagicMock()
        client.delete.side_effect = [
            MutationResult.failure("HTTP 503: busy", retryable=True),
            _row("a"),
        ]
        executor = ItemExecutor(client, retry_attempts=2, retry_min_wait=0, retry_max_wait=0)

        result = executor.execute("a", BulkOperation.DELETE)

        assert result.succeeded is True
        assert client.delete.call_count == 2

    def test_permanent_failure_not_retried(self) -> None:
        client = MagicMock()
        client.delete.return_value = MutationResult.failure("HTTP 400: bad id")
        executor = ItemExecutor(client, retry_attempts=3, retry_min_wait=0, retry_max_wait=0)
        executor.execute("a", BulkOperation.DELETE)
        assert client.delete.call_count == 1

    def test_retries_exhausted_report_last_error(self) -> None:
        client = MagicMock()
        client.delete.return_value = MutationResult.failure("HTTP 429: slow down", retryable=True)
        executor = ItemExecutor(client, retry_attempts=2, retry_min_wait=0, retry_max_wait=0)

        result = executor.execute("a", BulkOperation.DELETE)

        assert result.error == "HTTP 429: slow down"
        assert client.delete.call_count == 3

    def test_from_config(self, test_config: Config) -> None:
        config = test_config.model_copy(
            update={"availability_flag": "is_active", "item_retry_attempts": 1}
        )
        client = MagicMock()
        client.set_flag.side_effect = [
            MutationResult.failure("timeout", retryable=True),
            _row("a"),
        ]

        result = ItemExecutor.from_config(client, config).execute("a", BulkOperation.ACTIVATE)

        assert result.succeeded is True
        client.set_flag.assert_called_with("a", "is_active", True)


# ---------------------------------------------------------------------------
# BulkBatchProcessor
# ---------------------------------------------------------------------------


class TestBulkBatchProcessor:
    def test_failure_is_isolated_and_order_kept(self) -> None:
        client = MagicMock()
        client.set_flag.side_effect = [
            _row("a"),
            MutationResult.failure("row locked"),
            _row("c"),
        ]
        processor = BulkBatchProcessor(ItemExecutor(client), throttle=Throttle.disabled())

        summary = processor.run(_request("activate", ["a", "b", "c"]))

        assert summary.total_affected == 2
        assert [r.id for r in summary.per_item_results] == ["a", "b", "c"]
        assert [r.succeeded for r in summary.per_item_results] == [True, False, True]
        assert summary.per_item_results[1].error == "row locked"
        assert summary.micro_batch_count == 1
        assert summary.batch_size == 5
        assert summary.failed_ids == ["b"]

    def test_completion_log_lists_failed_ids(self) -> None:
        client = MagicMock()
        client.delete.side_effect = [
            _row("a"),
            MutationResult.failure("row locked"),
            MutationResult.failure("row locked"),
        ]
        processor = BulkBatchProcessor(ItemExecutor(client), throttle=Throttle.disabled())

        with capture_logs() as logs:
            processor.run(_request("delete", ["a", "b", "c"]))

        completed = [entry for entry in logs if entry["event"] == "bulk_operation_completed"]
        assert completed[0]["failed_ids"] == ["b", "c"]
        assert completed[0]["failed"] == 2

    def test_missing_id_reports_zero_affected(self) -> None:
        client = MagicMock()
        client.delete.return_value = MutationResult()
        processor = BulkBatchProcessor(ItemExecutor(client), throttle=Throttle.disabled())

        summary = processor.run(_request("delete", ["x"]))

        assert summary.total_affected == 0
        assert summary.per_item_results[0].succeeded is True
        assert summary.per_item_results[0].affected_rows == 0

    def test_items_run_sequentially_in_request_order(self) -> None:
        client = MagicMock()
        client.delete.side_effect = lambda item_id: _row(item_id)
        ids = [f"p{i}" for i in range(12)]
        processor = BulkBatchProcessor(ItemExecutor(client), throttle=Throttle.disabled())

        processor.run(_request("delete", ids))

        assert [c.args[0] for c in client.delete.call_args_list] == ids

    def test_pauses_between_items_and_batches(
        self, recording_throttle: Throttle, sleep_calls: list[float]
    ) -> None:
        client = MagicMock()
        client.delete.side_effect = lambda item_id: _row(item_id)
        processor = BulkBatchProcessor(ItemExecutor(client), throttle=recording_throttle)

        summary = processor.run(_request("delete", [f"p{i}" for i in range(12)]))

        # batches of 5, 5, 2: 4 + 4 + 1 item pauses and 2 batch pauses
        assert summary.micro_batch_count == 3
        assert sleep_calls.count(0.05) == 9
        assert sleep_calls.count(0.1) == 2
        assert len(sleep_calls) == 11

    def test_single_item_never_pauses(
        self, recording_throttle: Throttle, sleep_calls: list[float]
    ) -> None:
        client = MagicMock()
        client.delete.return_value = _row("a")
        BulkBatchProcessor(ItemExecutor(client), throttle=recording_throttle).run(
            _request("delete", ["a"])
        )
        assert sleep_calls == []

    def test_full_hundred_items(self) -> None:
        client = MagicMock()
        client.set_flag.side_effect = lambda item_id, _flag, _value: _row(item_id)
        ids = [f"p{i:03d}" for i in range(100)]
        processor = BulkBatchProcessor(ItemExecutor(client), throttle=Throttle.disabled())

        summary = processor.run(_request("deactivate", ids))

        assert summary.total_requested == 100
        assert summary.total_affected == 100
        assert summary.micro_batch_count == 20

    @pytest.mark.parametrize("ids", [[], [f"p{i}" for i in range(101)]])
    def test_invalid_size_rejected_before_any_mutation(self, ids: list[str]) -> None:
        client = MagicMock()
        processor = BulkBatchProcessor(ItemExecutor(client), throttle=Throttle.disabled())
        request = BatchRequest.model_construct(operation=BulkOperation.DELETE, target_ids=ids)

        with pytest.raises(InvalidBatchRequestError):
            processor.run(request)

        client.delete.assert_not_called()

    def test_cancelled_before_start(self) -> None:
        client = MagicMock()
        cancel = threading.Event()
        cancel.set()
        processor = BulkBatchProcessor(ItemExecutor(client), throttle=Throttle.disabled())

        summary = processor.run(_request("delete", ["a", "b"]), cancel_event=cancel)

        assert summary.cancelled is True
        assert summary.total_affected == 0
        assert [r.error for r in summary.per_item_results] == [CANCELLED_ERROR] * 2
        client.delete.assert_not_called()

    def test_cancelled_mid_run(self) -> None:
        cancel = threading.Event()
        client = MagicMock()

        def delete(item_id: str) -> MutationResult:
            if item_id == "b":
                cancel.set()
            return _row(item_id)

        client.delete.side_effect = delete
        processor = BulkBatchProcessor(ItemExecutor(client), throttle=Throttle.disabled())

        summary = processor.run(_request("delete", ["a", "b", "c", "d"]), cancel_event=cancel)

        assert summary.cancelled is True
        assert summary.total_affected == 2
        assert summary.failed_ids == ["c", "d"]
        assert client.delete.call_count == 2

    def test_from_config_uses_batch_size(self, test_config: Config) -> None:
        config = test_config.model_copy(update={"micro_batch_size": 3})
        client = MagicMock()
        client.delete.side_effect = lambda item_id: _row(item_id)

        summary = BulkBatchProcessor.from_config(client, config).run(
            _request("delete", ["a", "b", "c", "d"])
        )

        assert summary.batch_size == 3
        assert summary.micro_batch_count == 2

    def test_against_sqlite(
        self,
        sqlite_client: SQLiteResourceClient,
        product_repo: ProductRepository,
        menu_ids: list[str],
    ) -> None:
        processor = BulkBatchProcessor(ItemExecutor(sqlite_client), throttle=Throttle.disabled())

        summary = processor.run(_request("deactivate", ["p-burger", "p-fries", "missing"]))

        assert summary.total_affected == 2
        assert all(r.succeeded for r in summary.per_item_results)
        assert product_repo.get_product_by_id("p-burger")["is_available"] is False
        assert product_repo.get_product_by_id("p-salad")["is_available"] is True

    def test_reactivate_is_idempotent(
        self,
        sqlite_client: SQLiteResourceClient,
        product_repo: ProductRepository,
        menu_ids: list[str],
    ) -> None:
        processor = BulkBatchProcessor(ItemExecutor(sqlite_client), throttle=Throttle.disabled())

        first = processor.run(_request("activate", ["p-soda"]))
        second = processor.run(_request("activate", ["p-soda"]))

        assert first.total_affected == second.total_affected == 1
        assert product_repo.get_product_by_id("p-soda")["is_available"] is True

    def test_delete_against_sqlite(
        self,
        sqlite_client: SQLiteResourceClient,
        product_repo: ProductRepository,
        menu_ids: list[str],
    ) -> None:
        processor = BulkBatchProcessor(ItemExecutor(sqlite_client), throttle=Throttle.disabled())

        summary = processor.run(_request("delete", menu_ids))

        assert summary.total_affected == 4
        assert product_repo.get_product_count() == 0
