"""HTTP-level handling of bulk product operation requests."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import structlog

from src.core.validators import InvalidBatchRequestError, parse_batch_request

if TYPE_CHECKING:
    from collections.abc import Callable
    from contextlib import AbstractContextManager

    from src.models.bulk_operation import BatchSummary
    from src.services.batch_processor import BulkBatchProcessor

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class HandlerResponse:
    """Status code and JSON body; body is None for an empty response."""

    status_code: int
    body: dict[str, Any] | None


def error_body(message: str, details: list[dict[str, str]] | None = None) -> dict[str, Any]:
    body: dict[str, Any] = {"success": False, "error": message or "Unknown error occurred"}
    if details:
        body["details"] = details
    return body


def success_body(summary: BatchSummary) -> dict[str, Any]:
    return {
        "success": True,
        "operation": summary.operation.value,
        "affectedRows": summary.total_affected,
        "totalBatches": summary.micro_batch_count,
        "batchSize": summary.batch_size,
        "data": [result.model_dump(by_alias=True) for result in summary.per_item_results],
    }


def handle_bulk_request(
    method: str,
    payload: Any,
    open_processor: Callable[[], AbstractContextManager[BulkBatchProcessor]],
) -> HandlerResponse:
    """Validate, run and report one bulk request.

    OPTIONS answers the CORS preflight with an empty 200. Any other non-POST
    method and every validation failure give 400 before a mutation happens.
    The processor is opened only for a valid POST, inside the error
    boundary. Once processing starts the response is 200 even when items
    failed; an unexpected error, including one raised while building the
    client, is logged and reported as 400.
    """
    method = method.upper()
    if method == "OPTIONS":
        return HandlerResponse(200, None)

    try:
        if method != "POST":
            msg = "Only POST method is allowed"
            raise InvalidBatchRequestError(msg)
        request = parse_batch_request(payload)
        with open_processor() as processor:
            summary = processor.run(request)
    except InvalidBatchRequestError as exc:
        logger.warning("bulk_request_rejected", method=method, error=exc.message)
        return HandlerResponse(400, error_body(exc.message, exc.details))
    except Exception as exc:
        logger.exception("bulk_request_failed", method=method, error=str(exc))
        return HandlerResponse(400, error_body(str(exc)))

    return HandlerResponse(200, success_body(summary))
