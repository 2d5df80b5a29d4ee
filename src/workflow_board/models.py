"""Board, Task and Session records."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Self

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from workflow_board.exceptions import UnreadableRow


class _Record(BaseModel):
    """Immutable store row. Unknown columns coming back from the store are ignored."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: str
    owner_id: str
    created_at: datetime

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> Self:
        """
        Parse a row returned by the store.

        Raises:
            UnreadableRow: If the row is missing columns or holds bad values.
        """
        try:
            return cls.model_validate(row)
        except ValidationError as exc:
            raise UnreadableRow(
                f"Store returned an unreadable {cls.__name__.lower()} row",
                {"record": cls.__name__, "id": row.get("id"), "errors": exc.error_count()},
            ) from exc

    def to_row(self) -> dict[str, Any]:
        return self.model_dump(mode="json")


class Board(_Record):
    """A named board owned by the identity that created it."""

    name: str = Field(min_length=1)

    def sort_key(self) -> tuple[datetime, str]:
        return (self.created_at, self.id)


class Task(_Record):
    """
    A card on a board.

    ``status`` is a stage id of the workflow and the only field that changes
    after creation. ``board_id`` never changes.
    """

    board_id: str
    title: str = Field(min_length=1)
    status: str

    def sort_key(self) -> tuple[datetime, str]:
        return (self.created_at, self.id)

    def with_status(self, status: str) -> Task:
        return self.model_copy(update={"status": status})


class Session(BaseModel):
    """Identity every write is scoped to."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    owner_id: str = Field(min_length=1)
    access_token: str | None = None
    email: str | None = None
