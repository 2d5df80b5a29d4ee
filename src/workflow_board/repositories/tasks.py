"""Task persistence scoped to a board."""

from __future__ import annotations

from typing import TYPE_CHECKING

from workflow_board.exceptions import InvalidInput
from workflow_board.gateway.base import TASKS_TABLE, OrderBy
from workflow_board.logging import get_logger
from workflow_board.models import Task

if TYPE_CHECKING:
    from workflow_board.gateway.base import PersistenceGateway
    from workflow_board.workflow import Direction, WorkflowDefinition


class TaskRepository:
    """Owns Task rows in the store and knows which stage a move lands on."""

    def __init__(self, gateway: PersistenceGateway, workflow: WorkflowDefinition) -> None:
        self._gateway = gateway
        self._workflow = workflow
        self._logger = get_logger(__name__)

    @property
    def workflow(self) -> WorkflowDefinition:
        return self._workflow

    async def list_for_board(self, board_id: str) -> list[Task]:
        """Tasks of a board, oldest first."""
        rows = await self._gateway.list(
            TASKS_TABLE,
            {"board_id": board_id},
            OrderBy("created_at"),
        )
        tasks = [Task.from_row(row) for row in rows]
        # sorted() is stable, and the id tie-break does not depend on the store
        return sorted(tasks, key=Task.sort_key)

    async def create(
        self,
        owner_id: str,
        board_id: str,
        title: str,
        initial_stage: str | None = None,
    ) -> Task:
        """
        Insert a task in ``initial_stage`` (the first stage when omitted).

        Raises:
            InvalidInput: If the title is empty or whitespace only.
            UnknownStage: If ``initial_stage`` is not part of the workflow.
        """
        cleaned = title.strip()
        if not cleaned:
            raise InvalidInput("Task title must not be empty", {"field": "title"})
        stage = self._workflow.first if initial_stage is None else initial_stage
        self._workflow.index_of(stage)

        row = await self._gateway.insert(
            TASKS_TABLE,
            {"board_id": board_id, "owner_id": owner_id, "title": cleaned, "status": stage},
        )
        task = Task.from_row(row)
        self._logger.info(
            "Task created",
            extra={"task_id": task.id, "board_id": board_id, "status": stage},
        )
        return task

    def next_stage(self, task: Task, direction: Direction | str) -> str | None:
        """Stage a move would land on, or None when the task is already at that end."""
        target = self._workflow.adjacent(task.status, direction)
        if target == task.status:
            return None
        return target

    async def update_stage(self, task_id: str, stage: str) -> Task:
        self._workflow.index_of(stage)
        row = await self._gateway.update(TASKS_TABLE, task_id, {"status": stage})
        return Task.from_row(row)

    async def remove(self, task_id: str) -> int:
        return await self._gateway.delete(TASKS_TABLE, {"id": task_id})
