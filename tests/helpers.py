"""Shared test helpers: an in-memory store with injectable failures."""

from __future__ import annotations

import asyncio
import itertools
from datetime import UTC, datetime, timedelta
from typing import Any

from workflow_board.exceptions import RemoteRejected
from workflow_board.gateway.base import OrderBy

OWNER_ID = "u-alice"
OTHER_OWNER_ID = "u-bob"


def iso(offset_seconds: int) -> str:
    """Fixed timestamp ``offset_seconds`` after 2025-01-01T00:00:00Z."""
    moment = datetime(2025, 1, 1, tzinfo=UTC) + timedelta(seconds=offset_seconds)
    return moment.isoformat().replace("+00:00", "Z")


def board_row(board_id: str, name: str, offset: int, owner_id: str = OWNER_ID) -> dict[str, Any]:
    return {"id": board_id, "name": name, "owner_id": owner_id, "created_at": iso(offset)}


def task_row(
    task_id: str,
    board_id: str,
    title: str,
    status: str,
    offset: int,
    owner_id: str = OWNER_ID,
) -> dict[str, Any]:
    return {
        "id": task_id,
        "board_id": board_id,
        "owner_id": owner_id,
        "title": title,
        "status": status,
        "created_at": iso(offset),
    }


class FakeGateway:
    """
    In-memory PersistenceGateway.

    ``fail_next`` queues an exception for the next call of a method on a
    table; ``hold`` makes the next such call wait until the returned event
    is set, so tests can look at the state while a write is in flight.
    ``strip_next`` drops columns from the row the next insert or update
    returns, while the stored row stays complete.
    """

    def __init__(self) -> None:
        self.tables: dict[str, list[dict[str, Any]]] = {"boards": [], "tasks": []}
        self.calls: list[tuple[str, str]] = []
        self.access_token: str | None = None
        self.closed = False
        self._failures: dict[tuple[str, str], list[Exception]] = {}
        self._gates: dict[tuple[str, str], asyncio.Event] = {}
        self._stripped: dict[tuple[str, str], tuple[str, ...]] = {}
        self._ids = itertools.count(1)
        self._ticks = itertools.count(1)

    def seed(self, table: str, *rows: dict[str, Any]) -> None:
        self.tables[table].extend(dict(row) for row in rows)

    def fail_next(self, method: str, table: str, error: Exception) -> None:
        self._failures.setdefault((method, table), []).append(error)

    def hold(self, method: str, table: str) -> asyncio.Event:
        gate = asyncio.Event()
        self._gates[(method, table)] = gate
        return gate

    def strip_next(self, method: str, table: str, *columns: str) -> None:
        self._stripped[(method, table)] = columns

    def _echo(self, method: str, table: str, row: dict[str, Any]) -> dict[str, Any]:
        dropped = self._stripped.pop((method, table), ())
        return {column: value for column, value in row.items() if column not in dropped}

    def calls_to(self, method: str, table: str | None = None) -> int:
        return sum(1 for m, t in self.calls if m == method and (table is None or t == table))

    def set_access_token(self, token: str | None) -> None:
        self.access_token = token

    async def _enter(self, method: str, table: str) -> None:
        self.calls.append((method, table))
        gate = self._gates.pop((method, table), None)
        if gate is not None:
            await gate.wait()
        queued = self._failures.get((method, table))
        if queued:
            raise queued.pop(0)

    @staticmethod
    def _matches(row: dict[str, Any], filters: dict[str, Any]) -> bool:
        return all(row.get(column) == value for column, value in filters.items())

    async def list(
        self,
        table: str,
        filters: dict[str, Any],
        order_by: OrderBy | None = None,
    ) -> list[dict[str, Any]]:
        await self._enter("list", table)
        rows = [dict(row) for row in self.tables[table] if self._matches(row, filters)]
        if order_by is not None:
            rows.sort(
                key=lambda row: (row[order_by.column], row["id"]),
                reverse=order_by.descending,
            )
        return rows

    async def insert(self, table: str, row: dict[str, Any]) -> dict[str, Any]:
        await self._enter("insert", table)
        prefix = "b" if table == "boards" else "t"
        record = {
            "id": f"{prefix}-{next(self._ids)}",
            "created_at": iso(1000 + next(self._ticks)),
            **row,
        }
        self.tables[table].append(record)
        return self._echo("insert", table, record)

    async def update(self, table: str, row_id: str, patch: dict[str, Any]) -> dict[str, Any]:
        await self._enter("update", table)
        for row in self.tables[table]:
            if row["id"] == row_id:
                row.update(patch)
                return self._echo("update", table, row)
        raise RemoteRejected(f"No {table} row with id {row_id}", {"status_code": 404})

    async def delete(self, table: str, filters: dict[str, Any]) -> int:
        await self._enter("delete", table)
        kept = [row for row in self.tables[table] if not self._matches(row, filters)]
        removed = len(self.tables[table]) - len(kept)
        self.tables[table] = kept
        return removed

    async def aclose(self) -> None:
        self.closed = True
