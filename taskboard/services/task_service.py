"""Task service with business logic for board task management."""

import logging
from datetime import UTC, datetime

from sqlalchemy import or_, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from taskboard.exceptions import AuthError, NotFoundError, SearchError, TaskValidationError
from taskboard.models.task import Task, TaskStatus
from taskboard.models.team import User
from taskboard.services.board import Board
from taskboard.services.session import SessionContext, SessionInfo

logger = logging.getLogger(__name__)

MAX_TITLE_LENGTH = 255
MAX_DESCRIPTION_LENGTH = 1000
VALID_STATUSES = [s.value for s in TaskStatus]


def coerce_status(status: TaskStatus | str) -> TaskStatus:
    """Convert a status value to TaskStatus.

    Raises:
        TaskValidationError: If the value is not one of the four columns
    """
    if isinstance(status, TaskStatus):
        return status
    try:
        return TaskStatus(status)
    except ValueError:
        raise TaskValidationError(
            f"Invalid task status. Must be one of: {', '.join(VALID_STATUSES)}"
        ) from None


def validate_task_data(title: str, description: str | None, status: TaskStatus | str | None) -> None:
    """Validate task fields before they are written.

    Raises:
        TaskValidationError: On the first rule that fails
    """
    if not title or not isinstance(title, str) or not title.strip():
        raise TaskValidationError("Task title is required and cannot be empty")

    if len(title.strip()) > MAX_TITLE_LENGTH:
        raise TaskValidationError(f"Task title cannot exceed {MAX_TITLE_LENGTH} characters")

    if description and not isinstance(description, str):
        raise TaskValidationError("Task description must be a string")

    if description and len(description) > MAX_DESCRIPTION_LENGTH:
        raise TaskValidationError(
            f"Task description cannot exceed {MAX_DESCRIPTION_LENGTH} characters"
        )

    if status is not None:
        coerce_status(status)


class TaskService:
    """Service for task operations scoped to the active team."""

    def __init__(self, db: Session, session_context: SessionContext):
        self.db = db
        self.session_context = session_context

    def _require_session(self) -> SessionInfo:
        session = self.session_context.get_active_session()
        if session is None:
            raise AuthError("Not authenticated")
        return session

    def _team_query(self):
        session = self._require_session()
        return (
            self.db.query(Task)
            .options(joinedload(Task.user))
            .filter(Task.team_id == session.team_id)
        )

    def get_task(self, task_id: int) -> Task | None:
        """Get a task of the current team by ID."""
        return self._team_query().filter(Task.id == task_id).first()

    def _get_task_or_raise(self, task_id: int) -> Task:
        task = self.get_task(task_id)
        if task is None:
            raise NotFoundError(f"Task #{task_id} not found")
        return task

    def get_user_tasks(self, user_id: int) -> list[Task]:
        """Get all tasks owned by a member, in board order."""
        return (
            self._team_query()
            .filter(Task.user_id == user_id)
            .order_by(Task.position.asc(), Task.created_at.desc(), Task.id.desc())
            .all()
        )

    def get_current_user_tasks(self) -> list[Task]:
        """Get tasks of the active member."""
        session = self._require_session()
        if session.current_user_id is None:
            return []
        return self.get_user_tasks(session.current_user_id)

    def get_team_tasks(self) -> list[Task]:
        """Get every task of the team, newest first."""
        return self._team_query().order_by(Task.created_at.desc(), Task.id.desc()).all()

    def create_task(
        self,
        title: str,
        description: str | None = "",
        user_id: int | None = None,
        status: TaskStatus | str = TaskStatus.NEW,
    ) -> Task:
        """Create a task at the top of its column.

        Args:
            title: Task title (1-255 characters after trimming)
            description: Optional description (at most 1000 characters)
            user_id: Owner; defaults to the active member
            status: Initial column

        Returns:
            Created task

        Raises:
            AuthError: If no session is active
            TaskValidationError: If a field is invalid or no owner can be determined
            NotFoundError: If the owner is not a member of the team
        """
        session = self._require_session()

        target_user_id = user_id or session.current_user_id
        if not target_user_id:
            raise TaskValidationError("No user selected and no current user available")

        validate_task_data(title, description, status)
        status = coerce_status(status)

        owner = (
            self.db.query(User)
            .filter(User.id == target_user_id, User.team_id == session.team_id)
            .first()
        )
        if owner is None:
            raise NotFoundError(f"User #{target_user_id} not found in team")

        # Shift the column down to make room at the top
        self.db.execute(
            update(Task)
            .where(Task.user_id == target_user_id, Task.status == status)
            .values(position=Task.position + 1)
        )

        task = Task(
            title=title.strip(),
            description=(description or "").strip(),
            status=status,
            position=0,
            user_id=target_user_id,
            team_id=session.team_id,
        )
        self.db.add(task)
        self.db.commit()
        self.db.refresh(task)

        logger.info(f"Created task #{task.id} for user #{target_user_id}: {task.title[:50]}")
        return task

    def update_task(self, task_id: int, **updates) -> Task:
        """Update title, description and/or status of a task.

        Unknown keys and None values are ignored. A status change moves
        the task to the top of the target column.

        Raises:
            TaskValidationError: If nothing valid is supplied or a value is invalid
            NotFoundError: If the task does not exist in the team
        """
        allowed = {"title", "description", "status"}
        clean = {k: v for k, v in updates.items() if k in allowed and v is not None}
        if not clean:
            raise TaskValidationError("No valid updates provided")

        task = self._get_task_or_raise(task_id)

        if "title" in clean:
            validate_task_data(str(clean["title"]), None, None)
            task.title = str(clean["title"]).strip()
        if "description" in clean:
            validate_task_data(task.title, str(clean["description"]), None)
            task.description = str(clean["description"]).strip()
        if "status" in clean:
            new_status = coerce_status(clean["status"])
            if new_status != task.status:
                return self.move_task(task_id, new_status, 0)

        task.updated_at = datetime.now(UTC).replace(tzinfo=None)
        self.db.commit()
        self.db.refresh(task)
        return task

    def update_task_status(self, task_id: int, status: TaskStatus | str) -> Task:
        """Move a task to another column."""
        return self.update_task(task_id, status=coerce_status(status))

    def delete_task(self, task_id: int) -> None:
        """Delete a task and close the gap it leaves in its column."""
        task = self._get_task_or_raise(task_id)
        user_id, status, position = task.user_id, task.status, task.position
        self.db.delete(task)
        self.db.execute(
            update(Task)
            .where(Task.user_id == user_id, Task.status == status, Task.position > position)
            .values(position=Task.position - 1)
        )
        self.db.commit()
        logger.info(f"Deleted task #{task_id}")

    def search_tasks(
        self,
        query: str,
        *,
        user_id: int | None = None,
        status: TaskStatus | str | None = None,
        limit: int = 50,
    ) -> list[Task]:
        """Search the team's tasks by title and description.

        Returns:
            Matching tasks, most recently updated first. A blank query
            returns an empty list without touching the database.

        Raises:
            AuthError: If no session is active
            SearchError: If the database query fails
        """
        if not query or not isinstance(query, str) or not query.strip():
            return []

        search_pattern = f"%{query.strip()}%"
        try:
            db_query = self._team_query()
            if user_id is not None:
                db_query = db_query.filter(Task.user_id == user_id)
            if status is not None and status in VALID_STATUSES:
                db_query = db_query.filter(Task.status == coerce_status(status))
            return (
                db_query.filter(
                    or_(
                        Task.title.ilike(search_pattern),
                        Task.description.ilike(search_pattern),
                    )
                )
                .order_by(Task.updated_at.desc(), Task.id.desc())
                .limit(limit)
                .all()
            )
        except SQLAlchemyError as e:
            logger.warning(f"Task search failed: {e}")
            raise SearchError("Search failed") from e

    def get_tasks_by_status(self, status: TaskStatus | str, user_id: int | None = None) -> list[Task]:
        """Get tasks in one column, optionally for one member."""
        status = coerce_status(status)
        db_query = self._team_query().filter(Task.status == status)
        if user_id is not None:
            db_query = db_query.filter(Task.user_id == user_id)
        return db_query.order_by(Task.position.asc(), Task.created_at.desc()).all()

    def get_board(self, user_id: int) -> Board:
        """Get a member's tasks grouped into ordered columns."""
        return Board.from_tasks(self.get_user_tasks(user_id))

    def move_task(self, task_id: int, status: TaskStatus | str, index: int = 0) -> Task:
        """Drag-and-drop a task to ``index`` in the ``status`` column of its owner's board.

        Raises:
            TaskValidationError: If the status is invalid
            NotFoundError: If the task does not exist in the team
        """
        status = coerce_status(status)
        task = self._get_task_or_raise(task_id)

        board = self.get_board(task.user_id)
        board.move(task_id, status, index)

        task.updated_at = datetime.now(UTC).replace(tzinfo=None)
        self.db.commit()
        self.db.refresh(task)

        logger.info(f"Moved task #{task_id} to {status.value} at position {task.position}")
        return task
