"""Pydantic schemas for API request/response models."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from taskboard.commands.grammar import AddTask, Intent, IntentKind, Invalid, Search
from taskboard.commands.resolver import ResolutionKind
from taskboard.models.task import TaskStatus


# Task Schemas
class TaskCreate(BaseModel):
    """Schema for creating a new task."""

    title: str = Field(..., min_length=1, max_length=255)
    description: str = Field(default="", max_length=1000)
    user_id: int | None = Field(default=None, description="Owner; defaults to the active member")
    status: TaskStatus = TaskStatus.NEW


class TaskUpdate(BaseModel):
    """Schema for updating a task."""

    title: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = Field(default=None, max_length=1000)
    status: TaskStatus | None = None


class TaskStatusUpdate(BaseModel):
    """Schema for moving a task to another column."""

    status: TaskStatus


class TaskMove(BaseModel):
    """Schema for a drag-and-drop move."""

    status: TaskStatus
    index: int = Field(default=0, ge=0)


class TaskResponse(BaseModel):
    """Schema for task response."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    description: str
    status: TaskStatus
    position: int
    user_id: int
    user_name: str | None = None
    team_id: int
    created_at: datetime
    updated_at: datetime


class TaskListResponse(BaseModel):
    """Schema for list of tasks response."""

    tasks: list[TaskResponse]
    total: int


class BoardResponse(BaseModel):
    """A member's board, one ordered list per column."""

    user_id: int
    columns: dict[TaskStatus, list[TaskResponse]]


# Team Schemas
class MemberCreate(BaseModel):
    """Schema for adding a team member."""

    name: str = Field(..., min_length=1, max_length=100)


class MemberResponse(BaseModel):
    """Schema for a team member."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    created_at: datetime


class MemberListResponse(BaseModel):
    """Schema for the team roster."""

    members: list[MemberResponse]
    total: int


# Session Schemas
class LoginRequest(BaseModel):
    """Team credentials."""

    team_name: str = Field(..., min_length=1, max_length=100)
    password: str = Field(..., min_length=1)


class SwitchUserRequest(BaseModel):
    """Member whose board becomes active."""

    name: str = Field(..., min_length=1)


class SessionResponse(BaseModel):
    """Active session details."""

    authenticated: bool
    team_id: int | None = None
    team_name: str | None = None
    current_user_id: int | None = None
    current_user_name: str | None = None
    login_time: str | None = None


# Command Schemas
class CommandRequest(BaseModel):
    """Raw command bar input."""

    input: str = Field(default="", max_length=2000)


class IntentResponse(BaseModel):
    """Classified command bar input."""

    kind: IntentKind
    query: str | None = None
    title: str | None = None
    assignee_username: str | None = None
    reason: str | None = None
    description: str

    @classmethod
    def from_intent(cls, intent: Intent, description: str) -> "IntentResponse":
        return cls(
            kind=intent.kind,
            query=intent.query if isinstance(intent, Search) else None,
            title=intent.title if isinstance(intent, (AddTask, Invalid)) else None,
            assignee_username=(
                intent.assignee_username if isinstance(intent, (AddTask, Invalid)) else None
            ),
            reason=intent.reason if isinstance(intent, Invalid) else None,
            description=description,
        )


class SuggestionResponse(BaseModel):
    """Completion candidates for partial input."""

    suggestions: list[str]


class ResolutionResponse(BaseModel):
    """Outcome of submitting command bar input."""

    kind: ResolutionKind
    intent: IntentResponse
    task: TaskResponse | None = None
    results: list[TaskResponse] = Field(default_factory=list)
    message: str | None = None
    help_text: str | None = None


# Health Schemas
class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str
    database: str
