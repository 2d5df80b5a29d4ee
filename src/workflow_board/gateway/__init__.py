"""Persistence gateways: the remote store contract and its implementations."""

from workflow_board.gateway.base import (
    BOARDS_TABLE,
    TASKS_TABLE,
    OrderBy,
    PersistenceGateway,
)
from workflow_board.gateway.rest import RestGateway
from workflow_board.gateway.sqlite import SqliteGateway

__all__ = [
    "BOARDS_TABLE",
    "TASKS_TABLE",
    "OrderBy",
    "PersistenceGateway",
    "RestGateway",
    "SqliteGateway",
]
