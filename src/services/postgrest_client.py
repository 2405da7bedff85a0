"""Remote Resource Client for a hosted PostgREST (Supabase REST) table."""

from __future__ import annotations

from typing import Any

import requests
import structlog

from src.models.mutation_result import MutationResult
from src.utils.retry import TransientResourceError, retry_with_logging

logger = structlog.get_logger(__name__)

# Status codes worth another attempt
_RETRYABLE_STATUS = {408, 425, 429, 500, 502, 503, 504}


class PostgrestResourceClient:
    """CRUD over one PostgREST table keyed by an id column.

    Mutations ask for the touched rows back (Prefer: return=representation)
    and count them, so a no-op update of an existing row reports 1.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str,
        table: str = "products",
        id_column: str = "id",
        access_token: str | None = None,
        timeout: int = 30,
        session: requests.Session | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.table = table
        self.id_column = id_column
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update(
            {
                "apikey": api_key,
                "Authorization": f"Bearer {access_token or api_key}",
                "Content-Type": "application/json",
                "Accept": "application/json",
                "Prefer": "return=representation",
            }
        )

    @property
    def table_url(self) -> str:
        return f"{self.base_url}/{self.table}"

    def _id_filter(self, item_id: str) -> dict[str, str]:
        return {self.id_column: f"eq.{item_id}"}

    @staticmethod
    def _error_message(response: requests.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict):
            message = body.get("message") or body.get("error") or body.get("hint")
            if message:
                return f"HTTP {response.status_code}: {message}"
        return f"HTTP {response.status_code}: {response.text[:200] or response.reason}"

    def _mutate(
        self,
        method: str,
        item_id: str | None = None,
        payload: dict[str, Any] | None = None,
    ) -> MutationResult:
        params = self._id_filter(item_id) if item_id is not None else None
        try:
            response = self.session.request(
                method,
                self.table_url,
                params=params,
                json=payload,
                timeout=self.timeout,
            )
        except (requests.ConnectionError, requests.Timeout) as exc:
            logger.warning("postgrest_request_failed", method=method, id=item_id, error=str(exc))
            return MutationResult.failure(str(exc), retryable=True)
        except requests.RequestException as exc:
            logger.error("postgrest_request_failed", method=method, id=item_id, error=str(exc))
            return MutationResult.failure(str(exc))

        if not response.ok:
            message = self._error_message(response)
            logger.warning(
                "postgrest_mutation_rejected",
                method=method,
                id=item_id,
                status=response.status_code,
                error=message,
            )
            return MutationResult.failure(
                message, retryable=response.status_code in _RETRYABLE_STATUS
            )

        if not response.content:
            return MutationResult()
        try:
            rows = response.json()
        except ValueError as exc:
            logger.error(
                "postgrest_invalid_response",
                method=method,
                id=item_id,
                status=response.status_code,
                error=str(exc),
            )
            return MutationResult.failure(f"Invalid response body: {exc}")
        if isinstance(rows, dict):
            rows = [rows]
        if not isinstance(rows, list):
            return MutationResult.failure(f"Invalid response body: expected rows, got {rows!r}")
        return MutationResult.from_rows(rows)

    def insert(self, values: dict[str, Any]) -> MutationResult:
        return self._mutate("POST", payload=values)

    @retry_with_logging(max_attempts=3)
    def select_by_id(self, item_id: str) -> dict[str, Any] | None:
        """Get a row by id. Transient failures are retried; reads are safe to repeat."""
        response = self.session.get(
            self.table_url,
            params={**self._id_filter(item_id), "limit": "1"},
            timeout=self.timeout,
        )
        if response.status_code in _RETRYABLE_STATUS:
            raise TransientResourceError(self._error_message(response))
        response.raise_for_status()
        rows = response.json()
        return rows[0] if rows else None

    def update(self, item_id: str, values: dict[str, Any]) -> MutationResult:
        if not values:
            return MutationResult.failure("No values to update")
        return self._mutate("PATCH", item_id, values)

    def delete(self, item_id: str) -> MutationResult:
        return self._mutate("DELETE", item_id)

    def set_flag(self, item_id: str, flag_name: str, value: bool) -> MutationResult:
        return self._mutate("PATCH", item_id, {flag_name: value})

    def close(self) -> None:
        self.session.close()
