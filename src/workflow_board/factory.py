"""Builds a WorkflowBoard from settings."""

from __future__ import annotations

from typing import TYPE_CHECKING

from workflow_board.config import get_settings
from workflow_board.engine import WorkflowBoard
from workflow_board.gateway.rest import RestGateway
from workflow_board.logging import setup_logging

if TYPE_CHECKING:
    import httpx

    from workflow_board.config import Settings
    from workflow_board.session import SessionBoundary


def create_gateway(
    settings: Settings,
    transport: httpx.AsyncBaseTransport | None = None,
) -> RestGateway:
    """REST gateway for the configured store."""
    return RestGateway(
        base_url=settings.store.base_url,
        api_key=settings.store.api_key,
        rest_path=settings.store.rest_path,
        timeout_seconds=settings.store.timeout_seconds,
        transport=transport,
    )


def create_workflow_board(
    session_boundary: SessionBoundary,
    settings: Settings | None = None,
    *,
    configure_logging: bool = False,
    transport: httpx.AsyncBaseTransport | None = None,
) -> WorkflowBoard:
    """
    Wire gateway, workflow and session into a WorkflowBoard.

    Every call builds its own gateway; nothing is shared between boards.

    Args:
        session_boundary: Source of the signed-in identity.
        settings: Loaded settings. Defaults to ``get_settings()``.
        configure_logging: Also install the JSON log handlers from settings.
        transport: Optional httpx transport, e.g. for tests.
    """
    if settings is None:
        settings = get_settings()
    if configure_logging:
        setup_logging(
            settings.logging.level,
            directory=settings.logging.directory,
            retention_days=settings.logging.retention_days,
        )
    return WorkflowBoard(
        gateway=create_gateway(settings, transport),
        session_boundary=session_boundary,
        workflow=settings.workflow.to_definition(),
    )
