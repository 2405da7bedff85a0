"""Bulk request validation pure functions."""

from __future__ import annotations

from typing import Any

from pydantic import ValidationError

from src.models.bulk_operation import BatchRequest


class InvalidBatchRequestError(Exception):
    """Raised when a bulk request is rejected before any mutation happens."""

    def __init__(self, message: str, details: list[dict[str, str]] | None = None) -> None:
        self.message = message
        self.details = details or []
        super().__init__(message)


def _format_location(loc: tuple[int | str, ...]) -> str:
    return ".".join(str(part) for part in loc)


def _clean_message(msg: str) -> str:
    # pydantic prefixes messages raised from validators
    if msg.startswith("Value error, "):
        return msg[len("Value error, ") :]
    return msg


def describe_validation_error(exc: ValidationError) -> list[dict[str, str]]:
    """Flatten a pydantic ValidationError into JSON-safe field/message pairs."""
    return [
        {"field": _format_location(error.get("loc", ())), "message": _clean_message(error["msg"])}
        for error in exc.errors(include_url=False)
    ]


def parse_batch_request(payload: Any) -> BatchRequest:
    """Validate a raw JSON payload into a BatchRequest.

    Raises InvalidBatchRequestError for a non-object body, missing fields,
    an unknown operation, or an id list that is empty, longer than 100,
    or holds blank or duplicate ids.
    """
    if not isinstance(payload, dict):
        msg = "Invalid request: operation and targetIds are required"
        raise InvalidBatchRequestError(msg)

    try:
        return BatchRequest.model_validate(payload)
    except ValidationError as exc:
        details = describe_validation_error(exc)
        if any(detail["message"] == "Field required" for detail in details):
            message = "Invalid request: operation and targetIds are required"
        elif any(detail["field"] == "operation" for detail in details):
            message = "Invalid operation: expected one of delete, activate, deactivate"
        else:
            message = details[0]["message"] if details else "Invalid request"
        raise InvalidBatchRequestError(message, details) from exc
