"""Ordered stage sequence that every task moves through."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from workflow_board.exceptions import UnknownStage

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator


class Direction(str, Enum):
    """Which neighbour a task moves to."""

    FORWARD = "forward"
    BACKWARD = "backward"

    @classmethod
    def parse(cls, value: str | Direction) -> Direction:
        """Accept ``forward``/``backward`` as well as the ``next``/``prev`` aliases."""
        if isinstance(value, Direction):
            return value
        aliases = {
            "forward": cls.FORWARD,
            "next": cls.FORWARD,
            "backward": cls.BACKWARD,
            "back": cls.BACKWARD,
            "prev": cls.BACKWARD,
            "previous": cls.BACKWARD,
        }
        try:
            return aliases[value.strip().lower()]
        except KeyError:
            msg = f"Unknown direction: {value!r}"
            raise ValueError(msg) from None


@dataclass(frozen=True)
class Stage:
    """A single workflow column. ``label`` is display text only."""

    id: str
    label: str


DEFAULT_STAGES: tuple[Stage, ...] = (
    Stage("backlog", "Backlog"),
    Stage("todo", "To Do"),
    Stage("review", "Review"),
    Stage("done", "Done"),
)


class WorkflowDefinition:
    """
    Ordered sequence of N >= 2 distinct stages, index 0..N-1.

    Moves saturate at both ends: stepping backward from the first stage or
    forward from the last one returns the same stage, which callers treat
    as "nothing to do".
    """

    def __init__(self, stages: Iterable[Stage | str]) -> None:
        resolved = tuple(s if isinstance(s, Stage) else Stage(s, s) for s in stages)
        ids = [stage.id for stage in resolved]
        if len(ids) < 2:
            msg = "A workflow needs at least two stages"
            raise ValueError(msg)
        if len(set(ids)) != len(ids):
            msg = f"Workflow stage ids must be distinct: {ids}"
            raise ValueError(msg)
        if any(not stage_id for stage_id in ids):
            msg = "Workflow stage ids must be non-empty"
            raise ValueError(msg)
        self._stages = resolved
        self._index = {stage_id: i for i, stage_id in enumerate(ids)}

    @classmethod
    def default(cls) -> WorkflowDefinition:
        """Backlog, To Do, Review, Done."""
        return cls(DEFAULT_STAGES)

    @property
    def stages(self) -> tuple[Stage, ...]:
        return self._stages

    @property
    def stage_ids(self) -> tuple[str, ...]:
        return tuple(stage.id for stage in self._stages)

    @property
    def first(self) -> str:
        return self._stages[0].id

    @property
    def last(self) -> str:
        return self._stages[-1].id

    def index_of(self, stage: str) -> int:
        """Position of ``stage``; raises UnknownStage when it is not part of the workflow."""
        try:
            return self._index[stage]
        except KeyError:
            raise UnknownStage(
                f"Stage {stage!r} is not part of the workflow",
                {"stage": stage, "stages": list(self.stage_ids)},
            ) from None

    def label(self, stage: str) -> str:
        return self._stages[self.index_of(stage)].label

    def adjacent(self, stage: str, direction: Direction | str) -> str:
        """Neighbouring stage id, or ``stage`` itself when the move would leave the sequence."""
        current = self.index_of(stage)
        step = 1 if Direction.parse(direction) is Direction.FORWARD else -1
        target = current + step
        if target < 0 or target >= len(self._stages):
            return stage
        return self._stages[target].id

    def __contains__(self, stage: object) -> bool:
        return stage in self._index

    def __len__(self) -> int:
        return len(self._stages)

    def __iter__(self) -> Iterator[Stage]:
        return iter(self._stages)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, WorkflowDefinition):
            return NotImplemented
        return self._stages == other._stages

    def __hash__(self) -> int:
        return hash(self._stages)

    def __repr__(self) -> str:
        return f"WorkflowDefinition({list(self.stage_ids)!r})"
