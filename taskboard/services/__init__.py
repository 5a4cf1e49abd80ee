"""Business logic services."""

from taskboard.services.auth_service import AuthService
from taskboard.services.board import Board
from taskboard.services.session import SessionContext, SessionInfo
from taskboard.services.task_service import TaskService
from taskboard.services.team_service import RosterEntry, TeamService

__all__ = [
    "AuthService",
    "Board",
    "RosterEntry",
    "SessionContext",
    "SessionInfo",
    "TaskService",
    "TeamService",
]
