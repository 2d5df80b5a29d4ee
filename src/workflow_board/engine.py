"""
WorkflowBoard, the in-memory board/task view handed to the rendering layer.

Keeps the visible lists for the signed-in identity consistent with the
store. Task moves and task deletions are optimistic; board creation, task
creation and board deletion only change the visible lists once the store
has confirmed them.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, TypeVar

from workflow_board.collection import EntityCollection
from workflow_board.coordinator import OptimisticMutationCoordinator
from workflow_board.exceptions import (
    BoardBeingDeleted,
    CascadeIncomplete,
    NotAuthenticated,
    RemoteError,
)
from workflow_board.gateway.base import SupportsAccessToken
from workflow_board.logging import get_logger
from workflow_board.models import Board, Task
from workflow_board.repositories import BoardRepository, TaskRepository
from workflow_board.workflow import Direction, WorkflowDefinition

if TYPE_CHECKING:
    from collections.abc import Awaitable

    from workflow_board.gateway.base import PersistenceGateway
    from workflow_board.models import Session
    from workflow_board.session import SessionBoundary, Subscription

T = TypeVar("T")


def _board_collection(items: list[Board] | None = None) -> EntityCollection[Board]:
    return EntityCollection(items or (), sort_key=Board.sort_key, descending=True)


def _task_collection(items: list[Task] | None = None) -> EntityCollection[Task]:
    return EntityCollection(items or (), sort_key=Task.sort_key)


class WorkflowBoard:
    """
    Boards and tasks of the current session, plus every user action on them.

    Usage::

        async with WorkflowBoard(gateway, sessions) as board:
            await board.refresh_boards()
            launch = await board.create_board("Launch")
            await board.open_board(launch.id)
            task = await board.create_task(launch.id, "Write spec")
            await board.move_task(task, Direction.FORWARD)

    Any session change drops every cached board and task. Results of calls
    that were in flight across the change are discarded instead of applied.
    """

    def __init__(
        self,
        gateway: PersistenceGateway,
        session_boundary: SessionBoundary,
        workflow: WorkflowDefinition | None = None,
        coordinator: OptimisticMutationCoordinator | None = None,
    ) -> None:
        self._gateway = gateway
        self._sessions = session_boundary
        self._workflow = workflow if workflow is not None else WorkflowDefinition.default()
        if coordinator is None:
            coordinator = OptimisticMutationCoordinator()
        self._coordinator = coordinator
        self._board_repo = BoardRepository(gateway)
        self._task_repo = TaskRepository(gateway, self._workflow)
        self._subscription: Subscription | None = None
        self._generation = 0
        self._boards = _board_collection()
        self._tasks: dict[str, EntityCollection[Task]] = {}
        self._deleting: set[str] = set()
        self._logger = get_logger(__name__)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Subscribe to session changes. Calling it twice is harmless."""
        if self._subscription is not None and self._subscription.active:
            return
        self._subscription = self._sessions.on_session_change(self._on_session_change)
        self._forward_token(self._sessions.get_current_session())
        self._logger.debug("Session subscription started")

    def stop(self) -> None:
        """Release the session subscription and drop all cached state."""
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None
        self.invalidate()

    async def __aenter__(self) -> WorkflowBoard:
        self.start()
        return self

    async def __aexit__(self, *_exc: object) -> None:
        self.stop()

    @property
    def started(self) -> bool:
        return self._subscription is not None and self._subscription.active

    def invalidate(self) -> None:
        """Forget every board and task. In-flight results from before this call are ignored."""
        self._generation += 1
        self._boards = _board_collection()
        self._tasks = {}
        self._deleting = set()
        self._logger.info("Board state invalidated", extra={"generation": self._generation})

    def _on_session_change(self, session: Session | None) -> None:
        self.invalidate()
        self._forward_token(session)

    def _forward_token(self, session: Session | None) -> None:
        if isinstance(self._gateway, SupportsAccessToken):
            self._gateway.set_access_token(session.access_token if session else None)

    async def sign_out(self) -> None:
        await self._sessions.sign_out()
        # The boundary fires the change event; this covers an engine that was never started.
        self.invalidate()

    # ------------------------------------------------------------------
    # Read surface
    # ------------------------------------------------------------------

    @property
    def workflow(self) -> WorkflowDefinition:
        return self._workflow

    @property
    def coordinator(self) -> OptimisticMutationCoordinator:
        return self._coordinator

    @property
    def gateway(self) -> PersistenceGateway:
        return self._gateway

    @property
    def boards(self) -> tuple[Board, ...]:
        """Visible boards, newest first."""
        return self._boards.snapshot()

    def board(self, board_id: str) -> Board | None:
        return self._boards.get(board_id)

    def tasks(self, board_id: str) -> tuple[Task, ...]:
        """Visible tasks of a board, oldest first. Empty until the board is opened."""
        collection = self._tasks.get(board_id)
        return collection.snapshot() if collection is not None else ()

    def tasks_by_stage(self, board_id: str) -> dict[str, tuple[Task, ...]]:
        """One entry per stage in workflow order, each in creation order."""
        columns: dict[str, list[Task]] = {stage_id: [] for stage_id in self._workflow.stage_ids}
        for task in self.tasks(board_id):
            if task.status in columns:
                columns[task.status].append(task)
        return {stage_id: tuple(tasks) for stage_id, tasks in columns.items()}

    def stage_counts(self, board_id: str) -> dict[str, int]:
        return {stage_id: len(tasks) for stage_id, tasks in self.tasks_by_stage(board_id).items()}

    def is_deleting(self, board_id: str) -> bool:
        """True while a board deletion is waiting on the store."""
        return board_id in self._deleting

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    async def refresh_boards(self) -> tuple[Board, ...]:
        """Replace the visible board list with the store's."""
        session = self._require_session()
        generation = self._generation
        boards = await self._reported(
            "list_boards",
            session.owner_id,
            self._board_repo.list_owned(session.owner_id),
        )
        if generation != self._generation:
            return self.boards
        self._boards.reset(boards)
        self._logger.debug("Boards loaded", extra={"count": len(boards)})
        return self.boards

    async def open_board(self, board_id: str) -> Board | None:
        """
        Load a board and its tasks.

        Returns None when the store does not show the board to this session;
        any tasks cached for it are dropped.
        """
        self._require_session()
        generation = self._generation
        board = await self._reported("open_board", board_id, self._board_repo.get(board_id))
        if board is None:
            if generation == self._generation:
                self._tasks.pop(board_id, None)
            return None

        tasks = await self._reported(
            "list_tasks",
            board_id,
            self._task_repo.list_for_board(board_id),
        )
        if generation != self._generation:
            return board
        self._tasks[board_id] = _task_collection(tasks)
        return board

    # ------------------------------------------------------------------
    # Boards
    # ------------------------------------------------------------------

    async def create_board(self, name: str) -> Board:
        """
        Create a board and put it at the top of the list.

        Raises:
            InvalidInput: Blank name. Nothing is sent or changed.
            NotAuthenticated: No active session.
            RemoteRejected, RemoteUnavailable: The store refused or was unreachable.
        """
        session = self._require_session()
        generation = self._generation
        board = await self._reported(
            "create_board",
            session.owner_id,
            self._board_repo.create(session.owner_id, name),
        )
        if generation == self._generation:
            self._boards.prepend(board)
        return board

    async def delete_board(self, board_id: str) -> None:
        """
        Delete a board and all of its tasks. Not optimistic.

        The board stays listed until both the task deletion and the board
        deletion are confirmed.

        Raises:
            CascadeIncomplete: Task deletion failed; board and tasks are untouched.
            RemoteRejected, RemoteUnavailable: The board row could not be deleted
                after its tasks were; the board stays listed without tasks.
        """
        self._require_session()
        generation = self._generation
        self._deleting.add(board_id)
        try:
            await self._board_repo.remove(board_id)
        except CascadeIncomplete as exc:
            self._coordinator.report_failure("delete_board", board_id, exc)
            raise
        except RemoteError as exc:
            if generation == self._generation and board_id in self._tasks:
                self._tasks[board_id].clear()
            self._coordinator.report_failure("delete_board", board_id, exc)
            raise
        finally:
            self._deleting.discard(board_id)

        if generation == self._generation:
            self._boards.discard(board_id)
            self._tasks.pop(board_id, None)

    # ------------------------------------------------------------------
    # Tasks
    # ------------------------------------------------------------------

    async def create_task(
        self,
        board_id: str,
        title: str,
        initial_stage: str | None = None,
    ) -> Task:
        """
        Create a task and append it to the board's visible list.

        Raises:
            InvalidInput: Blank title. Nothing is sent or changed.
            BoardBeingDeleted: The board is being deleted. Nothing is sent.
            UnknownStage: ``initial_stage`` is not part of the workflow.
            RemoteRejected, RemoteUnavailable: The store refused or was unreachable.
        """
        session = self._require_session()
        self._require_not_deleting(board_id)
        generation = self._generation
        task = await self._reported(
            "create_task",
            board_id,
            self._task_repo.create(session.owner_id, board_id, title, initial_stage),
        )
        collection = self._tasks.get(board_id)
        if generation == self._generation and collection is not None:
            collection.append(task)
        return task

    async def delete_task(self, task: Task | str) -> None:
        """Remove a task from view at once, then from the store; restored if the store fails."""
        self._require_session()
        task_id = task if isinstance(task, str) else task.id
        collection = self._collection_holding(task_id)
        if collection is None:
            await self._reported("delete_task", task_id, self._task_repo.remove(task_id))
            return
        await self._coordinator.remove(
            collection,
            task_id,
            lambda: self._task_repo.remove(task_id),
            operation="delete_task",
        )

    async def move_task(self, task: Task, direction: Direction | str) -> Task:
        """
        Move a task one stage forward or backward.

        At either end of the workflow this returns the task unchanged without
        contacting the store. Otherwise the new stage shows immediately and
        is reverted if the store refuses it.

        Raises:
            UnknownStage: The task's status is not part of the workflow.
            BoardBeingDeleted: The task's board is being deleted.
            RemoteRejected, RemoteUnavailable: After the status was restored.
        """
        self._require_session()
        direction = Direction.parse(direction)
        collection = self._collection_holding(task.id)
        current = collection.get(task.id) if collection is not None else None
        if current is None:
            current = task
        self._require_not_deleting(current.board_id)

        target = self._task_repo.next_stage(current, direction)
        if target is None:
            self._logger.debug(
                "Move is a no-op at the workflow boundary",
                extra={"task_id": task.id, "status": current.status, "direction": direction.value},
            )
            return current

        if collection is None:
            return await self._reported(
                "move_task",
                task.id,
                self._task_repo.update_stage(task.id, target),
            )
        return await self._coordinator.replace(
            collection,
            task.id,
            lambda visible: visible.with_status(target),
            lambda: self._task_repo.update_stage(task.id, target),
            operation="move_task",
        )

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _require_session(self) -> Session:
        session = self._sessions.get_current_session()
        if session is None:
            raise NotAuthenticated("Sign in to use boards")
        return session

    def _require_not_deleting(self, board_id: str) -> None:
        if board_id in self._deleting:
            raise BoardBeingDeleted(
                f"Board {board_id} is being deleted",
                {"board_id": board_id},
            )

    def _collection_holding(self, task_id: str) -> EntityCollection[Task] | None:
        for collection in self._tasks.values():
            if task_id in collection:
                return collection
        return None

    async def _reported(self, operation: str, entity_id: str, call: Awaitable[T]) -> T:
        """Await a non-optimistic store call, reporting remote failures before re-raising."""
        try:
            return await call
        except RemoteError as exc:
            self._coordinator.report_failure(operation, entity_id, exc)
            raise

    def __repr__(self) -> str:
        return (
            f"WorkflowBoard(boards={len(self._boards)}, open_boards={len(self._tasks)}, "
            f"generation={self._generation})"
        )
