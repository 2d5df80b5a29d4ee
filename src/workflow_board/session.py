"""Session boundary: who is signed in, and notifications when that changes."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

from workflow_board.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Callable

    from workflow_board.models import Session


class Subscription:
    """Handle returned by a subscribe call. ``unsubscribe`` is idempotent."""

    def __init__(self, release: Callable[[], None]) -> None:
        self._release: Callable[[], None] | None = release

    @property
    def active(self) -> bool:
        return self._release is not None

    def unsubscribe(self) -> None:
        release, self._release = self._release, None
        if release is not None:
            release()

    def __enter__(self) -> Subscription:
        return self

    def __exit__(self, *_exc: object) -> None:
        self.unsubscribe()


class SessionBoundary(Protocol):
    """The authentication provider as seen by the engine."""

    def get_current_session(self) -> Session | None: ...

    def on_session_change(self, listener: Callable[[Session | None], None]) -> Subscription:
        """Call ``listener`` with the new session (or None) on every sign-in, sign-out or expiry."""
        ...

    async def sign_out(self) -> None: ...


class LocalSessionBoundary:
    """
    In-process session holder.

    Stands in for the hosted auth provider when wiring the engine locally
    and in tests. Listeners run synchronously, in subscription order.
    """

    def __init__(self, session: Session | None = None) -> None:
        self._session = session
        self._listeners: list[Callable[[Session | None], None]] = []
        self._logger = get_logger(__name__)

    def get_current_session(self) -> Session | None:
        return self._session

    def on_session_change(self, listener: Callable[[Session | None], None]) -> Subscription:
        self._listeners.append(listener)

        def _release() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return Subscription(_release)

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def sign_in(self, session: Session) -> None:
        self._set(session, "signed_in")

    def refresh(self, session: Session) -> None:
        """Swap in a renewed token for the same or a different identity."""
        self._set(session, "token_refreshed")

    def expire(self) -> None:
        self._set(None, "token_expired")

    async def sign_out(self) -> None:
        self._set(None, "signed_out")

    def _set(self, session: Session | None, event: str) -> None:
        self._session = session
        self._logger.info(
            "Session changed",
            extra={"event": event, "owner_id": session.owner_id if session else None},
        )
        for listener in tuple(self._listeners):
            listener(session)
