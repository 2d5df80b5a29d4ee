"""Local store backed by SQLite via aiosqlite."""

from __future__ import annotations

import sqlite3
import uuid
from datetime import UTC, datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any

import aiosqlite

from workflow_board.exceptions import RemoteRejected, RemoteUnavailable
from workflow_board.gateway.base import TABLE_COLUMNS
from workflow_board.logging import get_logger

if TYPE_CHECKING:
    from workflow_board.gateway.base import OrderBy, Row

_SCHEMA = """
CREATE TABLE IF NOT EXISTS boards (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL CHECK (length(trim(name)) > 0),
    owner_id TEXT NOT NULL,
    created_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS tasks (
    id TEXT PRIMARY KEY,
    board_id TEXT NOT NULL,
    owner_id TEXT NOT NULL,
    title TEXT NOT NULL CHECK (length(trim(title)) > 0),
    status TEXT NOT NULL,
    created_at TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_boards_owner ON boards(owner_id, created_at);
CREATE INDEX IF NOT EXISTS idx_tasks_board ON tasks(board_id, created_at);
"""


def _now_iso() -> str:
    """Return current UTC time as ISO 8601 string with Z suffix."""
    return datetime.now(UTC).isoformat(timespec="microseconds").replace("+00:00", "Z")


class SqliteGateway:
    """
    Gateway over a local SQLite file with the boards/tasks record shape.

    Assigns ``id`` (uuid4) and ``created_at`` on insert the way the remote
    store does. Declares no foreign keys, so deleting a board never removes
    its tasks implicitly.
    """

    def __init__(self, db_path: str) -> None:
        self._db_path = db_path
        self._db: aiosqlite.Connection | None = None
        self._logger = get_logger(__name__)

    async def connect(self) -> SqliteGateway:
        if self._db is None:
            if self._db_path != ":memory:":
                Path(self._db_path).parent.mkdir(parents=True, exist_ok=True)
            self._db = await aiosqlite.connect(self._db_path)
            self._db.row_factory = aiosqlite.Row
            await self._db.executescript(_SCHEMA)
            await self._db.commit()
        return self

    async def __aenter__(self) -> SqliteGateway:
        return await self.connect()

    async def __aexit__(self, *_exc: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._db is not None:
            await self._db.close()
            self._db = None

    def _conn(self) -> aiosqlite.Connection:
        if self._db is None:
            raise RemoteUnavailable("Store is not connected", {"db_path": self._db_path})
        return self._db

    @staticmethod
    def _check_columns(table: str, columns: Any) -> tuple[str, ...]:
        known = TABLE_COLUMNS.get(table)
        if known is None:
            raise RemoteRejected(f"Unknown table: {table}", {"table": table})
        unknown = [column for column in columns if column not in known]
        if unknown:
            raise RemoteRejected(
                f"Unknown column(s) for {table}: {unknown}",
                {"table": table, "columns": unknown},
            )
        return known

    @staticmethod
    def _where(filters: dict[str, Any]) -> tuple[str, tuple[Any, ...]]:
        if not filters:
            return "", ()
        clause = " AND ".join(f"{column} = ?" for column in filters)
        return f" WHERE {clause}", tuple(filters.values())

    async def list(
        self,
        table: str,
        filters: dict[str, Any],
        order_by: OrderBy | None = None,
    ) -> list[Row]:
        columns = self._check_columns(table, filters)
        where, params = self._where(filters)
        sql = f"SELECT {', '.join(columns)} FROM {table}{where}"  # noqa: S608
        if order_by is not None:
            self._check_columns(table, [order_by.column])
            direction = "DESC" if order_by.descending else "ASC"
            # id keeps equal timestamps in a stable order
            sql += f" ORDER BY {order_by.column} {direction}, id {direction}"
        rows = await self._run(table, "list", sql, params)
        return [dict(row) for row in rows]

    async def insert(self, table: str, row: Row) -> Row:
        columns = self._check_columns(table, row)
        record = {"id": str(uuid.uuid4()), "created_at": _now_iso(), **row}
        missing = [column for column in columns if column not in record]
        if missing:
            raise RemoteRejected(
                f"Missing column(s) for {table}: {missing}",
                {"table": table, "columns": missing},
            )
        values = tuple(record[column] for column in columns)
        placeholders = ", ".join("?" for _ in columns)
        sql = f"INSERT INTO {table} ({', '.join(columns)}) VALUES ({placeholders})"  # noqa: S608
        await self._run(table, "insert", sql, values, commit=True)
        return {column: record[column] for column in columns}

    async def update(self, table: str, row_id: str, patch: Row) -> Row:
        columns = self._check_columns(table, patch)
        if "id" in patch or not patch:
            raise RemoteRejected(
                f"Invalid patch for {table}",
                {"table": table, "columns": list(patch)},
            )
        assignments = ", ".join(f"{column} = ?" for column in patch)
        sql = f"UPDATE {table} SET {assignments} WHERE id = ?"  # noqa: S608
        await self._run(table, "update", sql, (*patch.values(), row_id), commit=True)
        select = f"SELECT {', '.join(columns)} FROM {table} WHERE id = ?"  # noqa: S608
        rows = await self._run(table, "update", select, (row_id,))
        if not rows:
            raise RemoteRejected(
                f"No {table} row with id {row_id} to update",
                {"table": table, "id": row_id},
            )
        return dict(rows[0])

    async def delete(self, table: str, filters: dict[str, Any]) -> int:
        self._check_columns(table, filters)
        where, params = self._where(filters)
        sql = f"DELETE FROM {table}{where}"  # noqa: S608
        db = self._conn()
        try:
            cursor = await db.execute(sql, params)
            await db.commit()
        except sqlite3.Error as exc:
            raise self._translate(exc, table, "delete") from exc
        return cursor.rowcount

    async def _run(
        self,
        table: str,
        operation: str,
        sql: str,
        params: tuple[Any, ...],
        *,
        commit: bool = False,
    ) -> list[aiosqlite.Row]:
        db = self._conn()
        try:
            cursor = await db.execute(sql, params)
            rows = list(await cursor.fetchall())
            if commit:
                await db.commit()
        except sqlite3.Error as exc:
            raise self._translate(exc, table, operation) from exc
        return rows

    def _translate(
        self, exc: sqlite3.Error, table: str, operation: str
    ) -> RemoteRejected | RemoteUnavailable:
        details = {"table": table, "operation": operation, "error": str(exc)}
        self._logger.warning("Store operation failed", extra=details)
        if isinstance(exc, sqlite3.IntegrityError):
            return RemoteRejected(f"Store rejected {operation} on {table}", details)
        return RemoteUnavailable(f"Store {operation} on {table} failed", details)
