"""Team roster API routes."""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from taskboard.api.dependencies import get_db_session, get_session_context
from taskboard.api.schemas import MemberCreate, MemberListResponse, MemberResponse
from taskboard.services.session import SessionContext
from taskboard.services.team_service import TeamService

router = APIRouter(prefix="/team", tags=["team"])


def get_team_service(
    db: Session = Depends(get_db_session),
    session_context: SessionContext = Depends(get_session_context),
) -> TeamService:
    """Dependency to get team service."""
    return TeamService(db, session_context)


@router.get("/members", response_model=MemberListResponse)
def list_members(
    service: Annotated[TeamService, Depends(get_team_service)],
    search: str | None = None,
) -> MemberListResponse:
    """List members in join order, or search them by name."""
    members = service.search_team_members(search) if search else service.get_current_team_members()
    return MemberListResponse(
        members=[MemberResponse.model_validate(m) for m in members],
        total=len(members),
    )


@router.post("/members", response_model=MemberResponse, status_code=201)
def add_member(
    data: MemberCreate,
    service: Annotated[TeamService, Depends(get_team_service)],
) -> MemberResponse:
    """Add a member to the team."""
    return MemberResponse.model_validate(service.add_team_member(data.name))


@router.delete("/members/{user_id}", status_code=204)
def remove_member(
    user_id: int,
    service: Annotated[TeamService, Depends(get_team_service)],
) -> None:
    """Remove a member together with their tasks."""
    service.remove_team_member(user_id)
