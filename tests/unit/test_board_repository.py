"""Unit tests for BoardRepository."""

from __future__ import annotations

from unittest.mock import AsyncMock, call

import pytest

from tests.helpers import OWNER_ID, board_row
from workflow_board.exceptions import (
    CascadeIncomplete,
    InvalidInput,
    RemoteRejected,
    RemoteUnavailable,
    UnreadableRow,
)
from workflow_board.gateway.base import OrderBy
from workflow_board.repositories.boards import BoardRepository


@pytest.mark.unit
class TestListOwned:
    async def test_filters_by_owner_newest_first(self) -> None:
        gateway = AsyncMock()
        gateway.list = AsyncMock(
            return_value=[board_row("b-2", "Second", 20), board_row("b-1", "First", 10)]
        )
        repo = BoardRepository(gateway)

        boards = await repo.list_owned(OWNER_ID)

        assert [b.id for b in boards] == ["b-2", "b-1"]
        gateway.list.assert_awaited_once_with(
            "boards", {"owner_id": OWNER_ID}, OrderBy("created_at", descending=True)
        )

    async def test_equal_timestamps_break_ties_on_id(self) -> None:
        gateway = AsyncMock()
        gateway.list = AsyncMock(
            return_value=[
                board_row("b-a", "A", 10),
                board_row("b-c", "C", 20),
                board_row("b-b", "B", 10),
            ]
        )

        boards = await BoardRepository(gateway).list_owned(OWNER_ID)

        assert [b.id for b in boards] == ["b-c", "b-b", "b-a"]

    async def test_unreadable_row_is_remote_error(self) -> None:
        row = board_row("b-1", "Launch", 1)
        del row["created_at"]
        gateway = AsyncMock()
        gateway.list = AsyncMock(return_value=[row])

        with pytest.raises(UnreadableRow) as exc_info:
            await BoardRepository(gateway).list_owned(OWNER_ID)

        assert isinstance(exc_info.value, RemoteUnavailable)
        assert exc_info.value.details["id"] == "b-1"

    async def test_unavailable_propagates(self) -> None:
        gateway = AsyncMock()
        gateway.list = AsyncMock(side_effect=RemoteUnavailable("offline"))

        with pytest.raises(RemoteUnavailable):
            await BoardRepository(gateway).list_owned(OWNER_ID)


@pytest.mark.unit
class TestGet:
    async def test_returns_board(self) -> None:
        gateway = AsyncMock()
        gateway.list = AsyncMock(return_value=[board_row("b-1", "Launch", 1)])

        board = await BoardRepository(gateway).get("b-1")

        assert board is not None
        assert board.name == "Launch"
        gateway.list.assert_awaited_once_with("boards", {"id": "b-1"})

    async def test_missing_returns_none(self) -> None:
        gateway = AsyncMock()
        gateway.list = AsyncMock(return_value=[])

        assert await BoardRepository(gateway).get("b-404") is None


@pytest.mark.unit
class TestCreate:
    async def test_inserts_trimmed_name(self) -> None:
        gateway = AsyncMock()
        gateway.insert = AsyncMock(return_value=board_row("b-1", "Launch", 1))

        board = await BoardRepository(gateway).create(OWNER_ID, "  Launch ")

        assert board.id == "b-1"
        assert board.owner_id == OWNER_ID
        gateway.insert.assert_awaited_once_with(
            "boards", {"name": "Launch", "owner_id": OWNER_ID}
        )

    @pytest.mark.parametrize("name", ["", "   ", "\t\n"])
    async def test_blank_name_rejected_without_remote_call(self, name: str) -> None:
        gateway = AsyncMock()

        with pytest.raises(InvalidInput) as exc_info:
            await BoardRepository(gateway).create(OWNER_ID, name)

        assert exc_info.value.details == {"field": "name"}
        gateway.insert.assert_not_awaited()


@pytest.mark.unit
class TestRemove:
    async def test_deletes_tasks_then_board(self) -> None:
        gateway = AsyncMock()
        gateway.delete = AsyncMock(side_effect=[3, 1])

        await BoardRepository(gateway).remove("b-1")

        assert gateway.delete.await_args_list == [
            call("tasks", {"board_id": "b-1"}),
            call("boards", {"id": "b-1"}),
        ]

    async def test_task_step_failure_skips_board_step(self) -> None:
        gateway = AsyncMock()
        cause = RemoteUnavailable("offline")
        gateway.delete = AsyncMock(side_effect=cause)

        with pytest.raises(CascadeIncomplete) as exc_info:
            await BoardRepository(gateway).remove("b-1")

        assert exc_info.value.board_id == "b-1"
        assert exc_info.value.__cause__ is cause
        assert exc_info.value.details["cause"] == "REMOTE_UNAVAILABLE"
        gateway.delete.assert_awaited_once_with("tasks", {"board_id": "b-1"})

    async def test_board_step_failure_is_remote_error(self) -> None:
        gateway = AsyncMock()
        gateway.delete = AsyncMock(side_effect=[2, RemoteRejected("constraint")])

        with pytest.raises(RemoteRejected):
            await BoardRepository(gateway).remove("b-1")

        assert gateway.delete.await_count == 2

    async def test_board_without_tasks_is_fine(self) -> None:
        gateway = AsyncMock()
        gateway.delete = AsyncMock(side_effect=[0, 1])

        await BoardRepository(gateway).remove("b-1")

        assert gateway.delete.await_count == 2
