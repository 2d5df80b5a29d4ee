"""Workflow Board: client-side state engine for kanban boards."""

from workflow_board.coordinator import MutationFailure, OptimisticMutationCoordinator
from workflow_board.engine import WorkflowBoard
from workflow_board.exceptions import (
    BoardBeingDeleted,
    CascadeIncomplete,
    InvalidInput,
    NotAuthenticated,
    RemoteError,
    RemoteRejected,
    RemoteUnavailable,
    UnknownStage,
    UnreadableRow,
    WorkflowBoardError,
)
from workflow_board.factory import create_workflow_board
from workflow_board.models import Board, Session, Task
from workflow_board.session import LocalSessionBoundary, SessionBoundary, Subscription
from workflow_board.workflow import Direction, Stage, WorkflowDefinition

__version__ = "0.1.0"

__all__ = [
    "Board",
    "BoardBeingDeleted",
    "CascadeIncomplete",
    "Direction",
    "InvalidInput",
    "LocalSessionBoundary",
    "MutationFailure",
    "NotAuthenticated",
    "OptimisticMutationCoordinator",
    "RemoteError",
    "RemoteRejected",
    "RemoteUnavailable",
    "Session",
    "SessionBoundary",
    "Stage",
    "Subscription",
    "Task",
    "UnknownStage",
    "UnreadableRow",
    "WorkflowBoard",
    "WorkflowBoardError",
    "WorkflowDefinition",
    "create_workflow_board",
]
