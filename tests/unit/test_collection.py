"""Unit tests for EntityCollection ordering and restoration."""

from __future__ import annotations

import pytest

from tests.helpers import board_row, task_row
from workflow_board.collection import EntityCollection
from workflow_board.models import Board, Task


def _tasks(*offsets: int) -> list[Task]:
    return [
        Task.model_validate(task_row(f"t-{offset}", "b-1", f"Task {offset}", "todo", offset))
        for offset in offsets
    ]


@pytest.mark.unit
class TestRestore:
    @pytest.mark.parametrize("position", [0, 1, 2, 3])
    def test_removed_task_returns_to_same_position(self, position: int) -> None:
        tasks = _tasks(1, 2, 3, 4)
        collection = EntityCollection(tasks, sort_key=Task.sort_key)

        removed = collection.discard(tasks[position].id)
        assert removed is not None
        collection.restore(removed)

        assert collection.snapshot() == tuple(tasks)

    def test_descending_board_returns_to_same_position(self) -> None:
        boards = [Board.model_validate(board_row(f"b-{n}", f"B{n}", n)) for n in (3, 2, 1)]
        collection = EntityCollection(boards, sort_key=Board.sort_key, descending=True)

        removed = collection.discard("b-2")
        assert removed is not None
        collection.restore(removed)

        assert [b.id for b in collection] == ["b-3", "b-2", "b-1"]

    def test_restore_is_noop_when_present(self) -> None:
        tasks = _tasks(1, 2)
        collection = EntityCollection(tasks, sort_key=Task.sort_key)

        collection.restore(tasks[0])

        assert len(collection) == 2


@pytest.mark.unit
class TestMutations:
    def test_replace_keeps_position(self) -> None:
        tasks = _tasks(1, 2, 3)
        collection = EntityCollection(tasks, sort_key=Task.sort_key)

        moved = tasks[1].with_status("done")
        assert collection.replace(moved) is True

        assert [t.id for t in collection] == ["t-1", "t-2", "t-3"]
        assert collection.get("t-2") == moved

    def test_replace_unknown_returns_false(self) -> None:
        collection = EntityCollection(_tasks(1), sort_key=Task.sort_key)
        (stranger,) = _tasks(9)
        assert collection.replace(stranger) is False

    def test_prepend_and_append(self) -> None:
        first, second, third = _tasks(1, 2, 3)
        collection = EntityCollection([second], sort_key=Task.sort_key)
        collection.prepend(first)
        collection.append(third)
        assert [t.id for t in collection] == ["t-1", "t-2", "t-3"]

    def test_discard_unknown_returns_none(self) -> None:
        collection = EntityCollection(_tasks(1), sort_key=Task.sort_key)
        assert collection.discard("t-404") is None
        assert "t-1" in collection
