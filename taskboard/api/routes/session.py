"""Session API routes: log in, log out, switch the active member."""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from taskboard.api.dependencies import get_db_session, get_session_context
from taskboard.api.schemas import LoginRequest, SessionResponse, SwitchUserRequest
from taskboard.services.auth_service import AuthService
from taskboard.services.session import SessionContext, SessionInfo
from taskboard.services.team_service import TeamService

router = APIRouter(prefix="/session", tags=["session"])


def _to_response(session: SessionInfo | None) -> SessionResponse:
    if session is None:
        return SessionResponse(authenticated=False)
    return SessionResponse(
        authenticated=True,
        team_id=session.team_id,
        team_name=session.team_name,
        current_user_id=session.current_user_id,
        current_user_name=session.current_user_name,
        login_time=session.login_time,
    )


@router.get("", response_model=SessionResponse)
def get_session(
    session_context: Annotated[SessionContext, Depends(get_session_context)],
) -> SessionResponse:
    """Get the active session."""
    return _to_response(session_context.get_active_session())


@router.post("/register", response_model=SessionResponse, status_code=201)
def register(
    data: LoginRequest,
    db: Annotated[Session, Depends(get_db_session)],
    session_context: Annotated[SessionContext, Depends(get_session_context)],
) -> SessionResponse:
    """Register a new team and log in to it."""
    return _to_response(AuthService(db, session_context).register_team(data.team_name, data.password))


@router.post("/login", response_model=SessionResponse)
def login(
    data: LoginRequest,
    db: Annotated[Session, Depends(get_db_session)],
    session_context: Annotated[SessionContext, Depends(get_session_context)],
) -> SessionResponse:
    """Log in with team credentials."""
    return _to_response(AuthService(db, session_context).login_team(data.team_name, data.password))


@router.post("/logout", response_model=SessionResponse)
def logout(
    session_context: Annotated[SessionContext, Depends(get_session_context)],
) -> SessionResponse:
    """End the session."""
    session_context.clear()
    return _to_response(None)


@router.post("/switch", response_model=SessionResponse)
def switch_user(
    data: SwitchUserRequest,
    db: Annotated[Session, Depends(get_db_session)],
    session_context: Annotated[SessionContext, Depends(get_session_context)],
) -> SessionResponse:
    """Make another member's board the active one."""
    return _to_response(TeamService(db, session_context).switch_to_member(data.name))
