"""Typed failures surfaced by the workflow board engine."""

from __future__ import annotations

from typing import Any


class WorkflowBoardError(Exception):
    """
    Base error with a machine-readable code.

    Every failure the engine surfaces carries an ``error`` code, a human
    readable ``message`` and a ``details`` dict for structured logging.
    """

    code = "WORKFLOW_BOARD_ERROR"

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.error = self.code
        self.message = message
        self.details: dict[str, Any] = details if details is not None else {}

    def __repr__(self) -> str:
        return f"{type(self).__name__}(error={self.error!r}, message={self.message!r})"


class InvalidInput(WorkflowBoardError):
    """Raised for a blank board name or task title. Nothing is sent or mutated."""

    code = "INVALID_INPUT"


class UnknownStage(WorkflowBoardError):
    """Raised when a stage id is not part of the workflow."""

    code = "UNKNOWN_STAGE"


class NotAuthenticated(WorkflowBoardError):
    """Raised when a write is attempted without an active session."""

    code = "NOT_AUTHENTICATED"


class BoardBeingDeleted(WorkflowBoardError):
    """Raised for a task write against a board whose deletion is still running."""

    code = "BOARD_BEING_DELETED"


class RemoteError(WorkflowBoardError):
    """Base for failures reported by the persistence gateway."""

    code = "REMOTE_ERROR"

    @property
    def status_code(self) -> int | None:
        value = self.details.get("status_code")
        return value if isinstance(value, int) else None


class RemoteRejected(RemoteError):
    """The store refused the write (constraint violation, bad request, missing row)."""

    code = "REMOTE_REJECTED"


class RemoteUnavailable(RemoteError):
    """The store could not be reached or refused the credentials."""

    code = "REMOTE_UNAVAILABLE"


class UnreadableRow(RemoteUnavailable):
    """
    The store answered, but a row it returned does not parse.

    For a write this means the store applied it; only the echoed row is lost.
    """


class CascadeIncomplete(WorkflowBoardError):
    """
    Board deletion stopped at the task-deletion step.

    The board row was never touched, so the board still fully exists.
    The underlying remote error is chained as ``__cause__``.
    """

    code = "CASCADE_INCOMPLETE"

    def __init__(self, board_id: str, cause: RemoteError) -> None:
        super().__init__(
            f"Could not delete the tasks of board {board_id}; the board was kept",
            {"board_id": board_id, "cause": cause.error},
        )
        self.board_id = board_id
