"""Board persistence: listing, creation and cascading deletion."""

from __future__ import annotations

from typing import TYPE_CHECKING

from workflow_board.exceptions import CascadeIncomplete, InvalidInput, RemoteError
from workflow_board.gateway.base import BOARDS_TABLE, TASKS_TABLE, OrderBy
from workflow_board.logging import get_logger
from workflow_board.models import Board

if TYPE_CHECKING:
    from workflow_board.gateway.base import PersistenceGateway


class BoardRepository:
    """
    Owns Board rows in the store.

    Has no in-memory state of its own; callers keep the visible list.
    """

    def __init__(self, gateway: PersistenceGateway) -> None:
        self._gateway = gateway
        self._logger = get_logger(__name__)

    async def list_owned(self, owner_id: str) -> list[Board]:
        """Boards of ``owner_id``, newest first."""
        rows = await self._gateway.list(
            BOARDS_TABLE,
            {"owner_id": owner_id},
            OrderBy("created_at", descending=True),
        )
        boards = [Board.from_row(row) for row in rows]
        return sorted(boards, key=Board.sort_key, reverse=True)

    async def get(self, board_id: str) -> Board | None:
        rows = await self._gateway.list(BOARDS_TABLE, {"id": board_id})
        if not rows:
            return None
        return Board.from_row(rows[0])

    async def create(self, owner_id: str, name: str) -> Board:
        """
        Insert a board named ``name`` (trimmed).

        Raises:
            InvalidInput: If the name is empty or whitespace only. Nothing is sent.
        """
        cleaned = name.strip()
        if not cleaned:
            raise InvalidInput("Board name must not be empty", {"field": "name"})
        row = await self._gateway.insert(BOARDS_TABLE, {"name": cleaned, "owner_id": owner_id})
        board = Board.from_row(row)
        self._logger.info("Board created", extra={"board_id": board.id, "owner_id": owner_id})
        return board

    async def remove(self, board_id: str) -> None:
        """
        Delete a board's tasks, then the board itself.

        The store is not trusted to cascade, so the task rows go first. If
        that step fails the board row is left alone.

        Raises:
            CascadeIncomplete: The task-deletion step failed; the board is intact.
            RemoteRejected, RemoteUnavailable: The board-deletion step failed
                after its tasks were already deleted.
        """
        try:
            removed_tasks = await self._gateway.delete(TASKS_TABLE, {"board_id": board_id})
        except RemoteError as exc:
            self._logger.warning(
                "Task deletion failed, board kept",
                extra={"board_id": board_id, "error_code": exc.error},
            )
            raise CascadeIncomplete(board_id, exc) from exc

        await self._gateway.delete(BOARDS_TABLE, {"id": board_id})
        self._logger.info(
            "Board deleted",
            extra={"board_id": board_id, "tasks_deleted": removed_tasks},
        )
