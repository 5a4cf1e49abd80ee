"""Command bar API routes."""

import asyncio
from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from taskboard.api.dependencies import get_db_session, get_session_context
from taskboard.api.routes.tasks import task_to_response
from taskboard.api.schemas import CommandRequest, IntentResponse, ResolutionResponse, SuggestionResponse
from taskboard.commands.grammar import classify, format_intent, get_help_text
from taskboard.commands.resolver import ResolutionKind, ServiceCollaborators, resolve
from taskboard.commands.suggestions import get_suggestions
from taskboard.services.session import SessionContext
from taskboard.services.team_service import TeamService
from taskboard.utils.config import get_config

router = APIRouter(prefix="/commands", tags=["commands"])


def _roster(db: Session, session_context: SessionContext) -> list:
    if not session_context.is_authenticated():
        return []
    return TeamService(db, session_context).get_roster()


@router.post("/classify", response_model=IntentResponse)
def classify_command(data: CommandRequest) -> IntentResponse:
    """Classify command bar input without acting on it."""
    intent = classify(data.input)
    return IntentResponse.from_intent(intent, format_intent(intent))


@router.post("/suggest", response_model=SuggestionResponse)
def suggest_command(
    data: CommandRequest,
    db: Annotated[Session, Depends(get_db_session)],
    session_context: Annotated[SessionContext, Depends(get_session_context)],
) -> SuggestionResponse:
    """Complete partially typed commands against the team roster."""
    roster = _roster(db, session_context)
    limit = get_config().commands.suggestion_limit
    return SuggestionResponse(suggestions=get_suggestions(data.input, roster, limit))


@router.post("/resolve", response_model=ResolutionResponse)
def resolve_command(
    data: CommandRequest,
    db: Annotated[Session, Depends(get_db_session)],
    session_context: Annotated[SessionContext, Depends(get_session_context)],
) -> ResolutionResponse:
    """Classify input and carry it out.

    Sync so that FastAPI runs it in the threadpool; the resolver gets its
    own event loop there.
    """
    intent = classify(data.input)
    collaborators = ServiceCollaborators(
        db, session_context, search_limit=get_config().commands.search_limit
    )
    resolution = asyncio.run(resolve(intent, collaborators))

    return ResolutionResponse(
        kind=resolution.kind,
        intent=IntentResponse.from_intent(intent, format_intent(intent)),
        task=task_to_response(resolution.task) if resolution.task is not None else None,
        results=[task_to_response(t) for t in resolution.results],
        message=resolution.message,
        help_text=get_help_text() if resolution.kind == ResolutionKind.HELP_SHOWN else None,
    )
