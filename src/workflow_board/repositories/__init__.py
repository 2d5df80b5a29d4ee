"""Entity repositories built on a PersistenceGateway."""

from workflow_board.repositories.boards import BoardRepository
from workflow_board.repositories.tasks import TaskRepository

__all__ = ["BoardRepository", "TaskRepository"]
