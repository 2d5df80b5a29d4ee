"""Optimistic local mutations with per-entity rollback."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, TypeVar

from workflow_board.exceptions import RemoteError, UnreadableRow, WorkflowBoardError
from workflow_board.logging import get_logger
from workflow_board.session import Subscription

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from workflow_board.collection import EntityCollection

E = TypeVar("E")


@dataclass(frozen=True)
class MutationFailure:
    """One failed remote call, as reported to failure listeners."""

    operation: str
    entity_id: str
    error: WorkflowBoardError
    rolled_back: bool = False

    @property
    def code(self) -> str:
        return self.error.error


class OptimisticMutationCoordinator:
    """
    Applies a local change first and confirms it with the store afterwards.

    Protocol for every call:

    1. snapshot the single affected entity,
    2. change the collection synchronously (before the first suspension),
    3. await the remote write,
    4. on success, adopt the store's value if it differs from the guess,
    5. on a remote error, put the snapshot back, notify listeners and re-raise.

    An ``UnreadableRow`` is reported without a rollback: the store applied
    the write. Anything that is not a ``RemoteError`` propagates untouched.

    Rollback is scoped to that one entity. A rollback only happens while the
    entity still holds this call's optimistic value; if a later mutation has
    replaced it, the later one wins and the snapshot is dropped.
    """

    def __init__(self) -> None:
        self._listeners: list[Callable[[MutationFailure], None]] = []
        self._logger = get_logger(__name__)

    def add_failure_listener(self, listener: Callable[[MutationFailure], None]) -> Subscription:
        self._listeners.append(listener)

        def _release() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return Subscription(_release)

    def report_failure(
        self,
        operation: str,
        entity_id: str,
        error: WorkflowBoardError,
        *,
        rolled_back: bool = False,
    ) -> MutationFailure:
        """Log the failure and hand it to every listener."""
        failure = MutationFailure(operation, entity_id, error, rolled_back)
        self._logger.warning(
            "Remote write failed",
            extra={
                "operation": operation,
                "entity_id": entity_id,
                "error_code": error.error,
                "rolled_back": rolled_back,
            },
        )
        for listener in tuple(self._listeners):
            try:
                listener(failure)
            except Exception:
                self._logger.exception(
                    "Failure listener raised",
                    extra={"operation": operation, "entity_id": entity_id},
                )
        return failure

    async def replace(
        self,
        collection: EntityCollection[E],
        entity_id: str,
        change: Callable[[E], E],
        remote: Callable[[], Awaitable[E | None]],
        *,
        operation: str,
    ) -> E:
        """
        Replace one entity optimistically.

        Returns the value left in the collection: the store's version when
        it answered with one, else the optimistic value.

        Raises:
            LookupError: If ``entity_id`` is not in the collection.
            UnreadableRow: The store applied the write; the optimistic value is kept.
            RemoteRejected, RemoteUnavailable: After the rollback.
        """
        before = collection.get(entity_id)
        if before is None:
            msg = f"{entity_id} is not in the collection"
            raise LookupError(msg)

        optimistic = change(before)
        collection.replace(optimistic)

        try:
            confirmed = await remote()
        except UnreadableRow as exc:
            self.report_failure(operation, entity_id, exc)
            raise
        except RemoteError as exc:
            rolled_back = collection.get(entity_id) is optimistic
            if rolled_back:
                collection.replace(before)
            self.report_failure(operation, entity_id, exc, rolled_back=rolled_back)
            raise

        if confirmed is None or confirmed == optimistic:
            return optimistic
        if collection.get(entity_id) is optimistic:
            self._logger.debug(
                "Adopting store value",
                extra={"operation": operation, "entity_id": entity_id},
            )
            collection.replace(confirmed)
        return confirmed

    async def remove(
        self,
        collection: EntityCollection[E],
        entity_id: str,
        remote: Callable[[], Awaitable[Any]],
        *,
        operation: str,
    ) -> E:
        """
        Remove one entity optimistically and return it.

        On failure the entity goes back to its display position.

        Raises:
            LookupError: If ``entity_id`` is not in the collection.
            RemoteRejected, RemoteUnavailable: After the rollback.
        """
        removed = collection.discard(entity_id)
        if removed is None:
            msg = f"{entity_id} is not in the collection"
            raise LookupError(msg)

        try:
            await remote()
        except RemoteError as exc:
            collection.restore(removed)
            self.report_failure(operation, entity_id, exc, rolled_back=True)
            raise
        return removed
