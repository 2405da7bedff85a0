"""Request-scoped dependencies for the HTTP app."""

from __future__ import annotations

import functools
from collections.abc import Callable
from contextlib import AbstractContextManager

from fastapi import Request

from src.models.config import Config
from src.services.batch_processor import BulkBatchProcessor, open_batch_processor

ProcessorFactory = Callable[[], AbstractContextManager[BulkBatchProcessor]]


def get_config(request: Request) -> Config:
    """Configuration attached to the app at creation time."""
    return request.app.state.config


def _bearer_token(authorization: str | None) -> str | None:
    if authorization and authorization.lower().startswith("bearer "):
        token = authorization[len("bearer ") :].strip()
        return token or None
    return None


def get_processor_factory(request: Request) -> ProcessorFactory:
    """Dependency returning an opener for this request's batch processor.

    Nothing is connected here. The handler opens the processor inside its
    error boundary, so a misconfigured client is reported like any other
    failure, and the client is closed when the request's batch ends.
    """
    return functools.partial(
        open_batch_processor,
        get_config(request),
        access_token=_bearer_token(request.headers.get("authorization")),
    )
