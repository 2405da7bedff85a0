"""Service protocols defining interfaces for dependency injection."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from src.models.mutation_result import MutationResult


class RemoteResourceClientProtocol(Protocol):
    """CRUD access to one named collection of rows keyed by opaque ids.

    Mutations report failures as MutationResult.error instead of raising.
    Each call is atomic for its row; nothing spans several calls.
    """

    def insert(self, values: dict[str, Any]) -> MutationResult: ...

    def select_by_id(self, item_id: str) -> dict[str, Any] | None: ...

    def update(self, item_id: str, values: dict[str, Any]) -> MutationResult: ...

    def delete(self, item_id: str) -> MutationResult: ...

    def set_flag(self, item_id: str, flag_name: str, value: bool) -> MutationResult: ...

    def close(self) -> None: ...
