"""API routes."""

from taskboard.api.routes.commands import router as commands_router
from taskboard.api.routes.session import router as session_router
from taskboard.api.routes.tasks import router as tasks_router
from taskboard.api.routes.team import router as team_router

__all__ = ["commands_router", "session_router", "tasks_router", "team_router"]
