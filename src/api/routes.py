"""HTTP routes for bulk product operations."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Depends, Request
from fastapi.responses import JSONResponse, Response

from src.api.bulk_handler import handle_bulk_request
from src.api.deps import ProcessorFactory, get_processor_factory

router = APIRouter()

BULK_OPERATIONS_PATH = "/bulk-product-operations"


@router.api_route(
    BULK_OPERATIONS_PATH,
    methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
)
def bulk_product_operations(
    request: Request,
    payload: Any = Body(default=None),
    open_processor: ProcessorFactory = Depends(get_processor_factory),
) -> Response:
    """Delete, activate or deactivate up to 100 products in one call.

    Items are processed in micro-batches of 5 with short pauses in between.
    The call succeeds as a whole even when some items fail; per-item
    outcomes are listed in data, in request order.
    """
    result = handle_bulk_request(request.method, payload, open_processor)
    if result.body is None:
        return Response(status_code=result.status_code)
    return JSONResponse(status_code=result.status_code, content=result.body)
