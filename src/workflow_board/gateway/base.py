"""Contract of the remote, authoritative store."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

BOARDS_TABLE = "boards"
TASKS_TABLE = "tasks"

BOARD_COLUMNS: tuple[str, ...] = ("id", "name", "owner_id", "created_at")
TASK_COLUMNS: tuple[str, ...] = ("id", "board_id", "owner_id", "title", "status", "created_at")

TABLE_COLUMNS: dict[str, tuple[str, ...]] = {
    BOARDS_TABLE: BOARD_COLUMNS,
    TASKS_TABLE: TASK_COLUMNS,
}

Row = dict[str, Any]


@dataclass(frozen=True)
class OrderBy:
    """Single-column ordering."""

    column: str
    descending: bool = False


class PersistenceGateway(Protocol):
    """
    Async CRUD over the store, one table per entity kind.

    Every method may suspend. None of them retries. Transport and auth
    failures raise RemoteUnavailable; refused writes raise RemoteRejected.
    The store is expected to enforce row ownership on its own.
    """

    async def list(
        self,
        table: str,
        filters: dict[str, Any],
        order_by: OrderBy | None = None,
    ) -> list[Row]: ...

    async def insert(self, table: str, row: Row) -> Row:
        """Insert and return the row with ``id`` and ``created_at`` filled in."""
        ...

    async def update(self, table: str, row_id: str, patch: Row) -> Row:
        """Patch one row by id and return it. A missing row raises RemoteRejected."""
        ...

    async def delete(self, table: str, filters: dict[str, Any]) -> int:
        """Delete matching rows and return how many went. Zero matches is fine."""
        ...

    async def aclose(self) -> None: ...


@runtime_checkable
class SupportsAccessToken(Protocol):
    """Gateways that authenticate requests with the signed-in user's token."""

    def set_access_token(self, token: str | None) -> None: ...
