"""Resolve command intents against the task and team backends."""

import enum
import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any, Protocol

from sqlalchemy.orm import Session

from taskboard.commands.grammar import AddTask, Help, Intent, Invalid, Search
from taskboard.exceptions import ResolutionError, SearchError, TaskboardError
from taskboard.services.session import SessionContext, SessionInfo
from taskboard.services.task_service import TaskService
from taskboard.services.team_service import TeamService

logger = logging.getLogger(__name__)


class ResolutionKind(str, enum.Enum):
    """Outcome of resolving an intent."""

    TASK_CREATED = "task-created"
    SEARCHED = "searched"
    HELP_SHOWN = "help-shown"
    ERROR = "error"


@dataclass(frozen=True)
class Resolution:
    """Result of carrying out an intent."""

    kind: ResolutionKind
    task: Any = None
    results: list[Any] = field(default_factory=list)
    message: str | None = None

    @classmethod
    def task_created(cls, task: Any) -> "Resolution":
        return cls(kind=ResolutionKind.TASK_CREATED, task=task)

    @classmethod
    def searched(cls, results: Sequence[Any]) -> "Resolution":
        return cls(kind=ResolutionKind.SEARCHED, results=list(results))

    @classmethod
    def help_shown(cls) -> "Resolution":
        return cls(kind=ResolutionKind.HELP_SHOWN)

    @classmethod
    def error(cls, message: str) -> "Resolution":
        return cls(kind=ResolutionKind.ERROR, message=message)

    @property
    def is_error(self) -> bool:
        return self.kind == ResolutionKind.ERROR


class CommandCollaborators(Protocol):
    """Backends the resolver calls."""

    async def search_tasks(self, query: str) -> Sequence[Any]: ...

    async def lookup_user_by_name(self, name: str) -> Any | None: ...

    async def create_task(self, title: str, description: str, owner_user_id: int | None) -> Any: ...

    async def get_active_session(self) -> SessionInfo | None: ...


class ServiceCollaborators:
    """CommandCollaborators backed by the SQLAlchemy services."""

    def __init__(self, db: Session, session_context: SessionContext, search_limit: int = 50):
        self.session_context = session_context
        self.task_service = TaskService(db, session_context)
        self.team_service = TeamService(db, session_context)
        self.search_limit = search_limit

    async def search_tasks(self, query: str) -> list[Any]:
        return self.task_service.search_tasks(query, limit=self.search_limit)

    async def lookup_user_by_name(self, name: str) -> Any | None:
        return self.team_service.get_user_by_name(name)

    async def create_task(self, title: str, description: str, owner_user_id: int | None) -> Any:
        return self.task_service.create_task(title, description, owner_user_id)

    async def get_active_session(self) -> SessionInfo | None:
        return self.session_context.get_active_session()


async def _add_task(intent: AddTask, collaborators: CommandCollaborators) -> Any:
    """Look up the assignee (if any), then create the task.

    Raises:
        ResolutionError: If the assignee is unknown or there is no session
    """
    if intent.assignee_username:
        user = await collaborators.lookup_user_by_name(intent.assignee_username)
        if user is None:
            raise ResolutionError(f"User @{intent.assignee_username} not found")
        owner_id = user.id
    else:
        session = await collaborators.get_active_session()
        if session is None:
            raise ResolutionError("Not authenticated")
        owner_id = session.current_user_id

    return await collaborators.create_task(intent.title, "", owner_id)


async def resolve(intent: Intent, collaborators: CommandCollaborators) -> Resolution:
    """Carry out an intent.

    Calls are strictly sequential: at most one user lookup followed by at
    most one task creation, with no retries. Collaborator failures become
    error resolutions carrying the collaborator's message.
    """
    if isinstance(intent, Help):
        return Resolution.help_shown()

    if isinstance(intent, Invalid):
        return Resolution.error(intent.reason)

    if isinstance(intent, Search):
        if not intent.query.strip():
            return Resolution.searched([])
        try:
            results = await collaborators.search_tasks(intent.query)
        except SearchError as e:
            logger.warning(f"Search for '{intent.query}' failed: {e}")
            return Resolution.error("Search failed")
        except TaskboardError as e:
            return Resolution.error(str(e))
        return Resolution.searched(results)

    if isinstance(intent, AddTask):
        try:
            task = await _add_task(intent, collaborators)
        except TaskboardError as e:
            logger.info(f"Add task failed: {e}")
            return Resolution.error(str(e))
        logger.info(f"Created task via command bar: {intent.title[:50]}")
        return Resolution.task_created(task)

    return Resolution.error("Unknown action")
