"""Shared fixtures."""

from __future__ import annotations

from collections.abc import AsyncIterator

import pytest

from tests.helpers import OWNER_ID, FakeGateway
from workflow_board.config import clear_settings_cache
from workflow_board.coordinator import MutationFailure
from workflow_board.engine import WorkflowBoard
from workflow_board.models import Session
from workflow_board.session import LocalSessionBoundary
from workflow_board.workflow import WorkflowDefinition


@pytest.fixture(autouse=True)
def _clear_config_cache() -> None:
    """Clear config cache between tests."""
    clear_settings_cache()


@pytest.fixture()
def workflow() -> WorkflowDefinition:
    return WorkflowDefinition(["backlog", "todo", "review", "done"])


@pytest.fixture()
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture()
def sessions() -> LocalSessionBoundary:
    return LocalSessionBoundary(Session(owner_id=OWNER_ID, access_token="token-alice"))


@pytest.fixture()
async def engine(
    gateway: FakeGateway,
    sessions: LocalSessionBoundary,
    workflow: WorkflowDefinition,
) -> AsyncIterator[WorkflowBoard]:
    async with WorkflowBoard(gateway, sessions, workflow) as board:
        yield board


@pytest.fixture()
def failures(engine: WorkflowBoard) -> list[MutationFailure]:
    """Every failure the engine reports, in order."""
    seen: list[MutationFailure] = []
    engine.coordinator.add_failure_listener(seen.append)
    return seen
