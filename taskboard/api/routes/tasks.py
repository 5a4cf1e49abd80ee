"""Task API routes."""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from taskboard.api.dependencies import get_db_session, get_session_context
from taskboard.api.schemas import (
    BoardResponse,
    TaskCreate,
    TaskListResponse,
    TaskMove,
    TaskResponse,
    TaskStatusUpdate,
    TaskUpdate,
)
from taskboard.models import Task, TaskStatus
from taskboard.services.session import SessionContext
from taskboard.services.task_service import TaskService

router = APIRouter(prefix="/tasks", tags=["tasks"])


def get_task_service(
    db: Session = Depends(get_db_session),
    session_context: SessionContext = Depends(get_session_context),
) -> TaskService:
    """Dependency to get task service."""
    return TaskService(db, session_context)


@router.get("", response_model=TaskListResponse)
def list_tasks(
    service: Annotated[TaskService, Depends(get_task_service)],
    search: str | None = Query(default=None, description="Search in title and description"),
    user_id: int | None = Query(default=None, description="Only tasks owned by this member"),
    status: TaskStatus | None = None,
    limit: int = Query(default=50, ge=1, le=100),
) -> TaskListResponse:
    """List the team's tasks, or search them when ``search`` is given."""
    if search is not None:
        tasks = service.search_tasks(search, user_id=user_id, status=status, limit=limit)
    elif status is not None:
        tasks = service.get_tasks_by_status(status, user_id=user_id)
    elif user_id is not None:
        tasks = service.get_user_tasks(user_id)
    else:
        tasks = service.get_team_tasks()

    tasks = tasks[:limit]
    return TaskListResponse(tasks=[task_to_response(t) for t in tasks], total=len(tasks))


@router.get("/board/{user_id}", response_model=BoardResponse)
def get_board(
    user_id: int,
    service: Annotated[TaskService, Depends(get_task_service)],
) -> BoardResponse:
    """Get a member's tasks grouped by column."""
    board = service.get_board(user_id)
    return BoardResponse(
        user_id=user_id,
        columns={
            status: [task_to_response(t) for t in column]
            for status, column in board.columns.items()
        },
    )


@router.get("/{task_id}", response_model=TaskResponse)
def get_task(
    task_id: int,
    service: Annotated[TaskService, Depends(get_task_service)],
) -> TaskResponse:
    """Get a specific task by ID."""
    task = service.get_task(task_id)
    if not task:
        raise HTTPException(status_code=404, detail="Task not found")
    return task_to_response(task)


@router.post("", response_model=TaskResponse, status_code=201)
def create_task(
    task_data: TaskCreate,
    service: Annotated[TaskService, Depends(get_task_service)],
) -> TaskResponse:
    """Create a new task."""
    task = service.create_task(
        title=task_data.title,
        description=task_data.description,
        user_id=task_data.user_id,
        status=task_data.status,
    )
    return task_to_response(task)


@router.put("/{task_id}", response_model=TaskResponse)
def update_task(
    task_id: int,
    task_data: TaskUpdate,
    service: Annotated[TaskService, Depends(get_task_service)],
) -> TaskResponse:
    """Update an existing task."""
    task = service.update_task(
        task_id,
        title=task_data.title,
        description=task_data.description,
        status=task_data.status,
    )
    return task_to_response(task)


@router.patch("/{task_id}/status", response_model=TaskResponse)
def update_task_status(
    task_id: int,
    data: TaskStatusUpdate,
    service: Annotated[TaskService, Depends(get_task_service)],
) -> TaskResponse:
    """Move a task to the top of another column."""
    return task_to_response(service.update_task_status(task_id, data.status))


@router.post("/{task_id}/move", response_model=TaskResponse)
def move_task(
    task_id: int,
    data: TaskMove,
    service: Annotated[TaskService, Depends(get_task_service)],
) -> TaskResponse:
    """Drop a task at a position in a column."""
    return task_to_response(service.move_task(task_id, data.status, data.index))


@router.delete("/{task_id}", status_code=204)
def delete_task(
    task_id: int,
    service: Annotated[TaskService, Depends(get_task_service)],
) -> None:
    """Delete a task."""
    service.delete_task(task_id)


def task_to_response(task: Task) -> TaskResponse:
    """Convert Task model to response schema."""
    return TaskResponse(
        id=task.id,
        title=task.title,
        description=task.description or "",
        status=task.status,
        position=task.position,
        user_id=task.user_id,
        user_name=task.owner_name,
        team_id=task.team_id,
        created_at=task.created_at,
        updated_at=task.updated_at,
    )
