"""Retry policies for remote resource calls, built on tenacity."""

from __future__ import annotations

import functools
from typing import TYPE_CHECKING, Any, ParamSpec, TypeVar

import requests
from tenacity import (
    RetryCallState,
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from src.utils.logger import get_logger

if TYPE_CHECKING:
    from collections.abc import Callable

P = ParamSpec("P")
T = TypeVar("T")

logger = get_logger(__name__)


class TransientResourceError(Exception):
    """A remote call failed in a way that may succeed on another attempt."""


# Network drops, timeouts, and typed 429/5xx results re-raised as
# TransientResourceError. Anything else fails on the first attempt.
TRANSIENT_ERRORS: tuple[type[BaseException], ...] = (
    ConnectionError,
    TimeoutError,
    requests.ConnectionError,
    requests.Timeout,
    TransientResourceError,
)


def _before_sleep(retry_state: RetryCallState) -> None:
    outcome = retry_state.outcome
    logger.warning(
        "retrying_operation",
        attempt=retry_state.attempt_number,
        function=getattr(retry_state.fn, "__name__", "unknown"),
        error=str(outcome.exception()) if outcome else "unknown",
    )


def _policy(max_attempts: int, min_wait: float, max_wait: float) -> dict[str, Any]:
    return {
        "stop": stop_after_attempt(max(1, max_attempts)),
        "wait": wait_exponential(multiplier=min_wait, min=min_wait, max=max_wait),
        "retry": retry_if_exception_type(TRANSIENT_ERRORS),
        "before_sleep": _before_sleep,
        "reraise": True,
    }


def build_retrying(
    max_attempts: int = 1,
    min_wait: float = 1.0,
    max_wait: float = 5.0,
) -> Retrying:
    """Build a reusable retry policy to call as ``policy(fn, *args)``.

    max_attempts counts the first call, so 1 means no retry. Waits double
    from min_wait up to max_wait and the last exception is re-raised.
    """
    return Retrying(**_policy(max_attempts, min_wait, max_wait))


def retry_with_logging(
    max_attempts: int = 3,
    min_wait: float = 1.0,
    max_wait: float = 5.0,
) -> Callable[[Callable[P, T]], Callable[P, T]]:
    """Decorator form of build_retrying for idempotent calls such as reads."""

    def decorator(func: Callable[P, T]) -> Callable[P, T]:
        @functools.wraps(func)
        def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            return build_retrying(max_attempts, min_wait, max_wait)(func, *args, **kwargs)

        return wrapper

    return decorator
