"""Data models."""

from taskboard.models.database import Base, get_db, get_db_session, init_db
from taskboard.models.task import Task, TaskStatus
from taskboard.models.team import Team, User

__all__ = [
    "Base",
    "Task",
    "TaskStatus",
    "Team",
    "User",
    "get_db",
    "get_db_session",
    "init_db",
]
