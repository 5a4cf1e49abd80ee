"""Main FastAPI application."""

import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.orm import Session

from taskboard import __version__
from taskboard.api.dependencies import get_db_session
from taskboard.api.routes import commands_router, session_router, tasks_router, team_router
from taskboard.api.schemas import HealthResponse
from taskboard.exceptions import AuthError, NotFoundError, SearchError, TaskValidationError
from taskboard.models import init_db

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    # Startup
    init_db()
    yield


def register_exception_handlers(app: FastAPI) -> None:
    """Map service exceptions to HTTP status codes."""

    @app.exception_handler(AuthError)
    async def auth_error_handler(request: Request, exc: AuthError) -> JSONResponse:
        return JSONResponse(status_code=401, content={"detail": str(exc)})

    @app.exception_handler(NotFoundError)
    async def not_found_handler(request: Request, exc: NotFoundError) -> JSONResponse:
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(TaskValidationError)
    async def validation_error_handler(request: Request, exc: TaskValidationError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    @app.exception_handler(SearchError)
    async def search_error_handler(request: Request, exc: SearchError) -> JSONResponse:
        logger.warning(f"Search failed for {request.url.path}: {exc}")
        return JSONResponse(status_code=503, content={"detail": str(exc)})


def include_routers(app: FastAPI) -> None:
    app.include_router(tasks_router, prefix="/api")
    app.include_router(team_router, prefix="/api")
    app.include_router(session_router, prefix="/api")
    app.include_router(commands_router, prefix="/api")


def create_app(with_lifespan: bool = True) -> FastAPI:
    """Build the API application."""
    app = FastAPI(
        title="Task Board API",
        description="Team task boards with a command bar for searching and quick-adding tasks.",
        version=__version__,
        lifespan=lifespan if with_lifespan else None,
    )
    include_routers(app)
    register_exception_handlers(app)

    @app.get("/health", response_model=HealthResponse, tags=["health"])
    def health_check() -> HealthResponse:
        """Basic health check endpoint.

        Returns 200 OK if the service is running.
        Does not check dependencies.
        """
        return HealthResponse(
            status="healthy",
            version=__version__,
            database="unknown",
        )

    @app.get("/health/ready", response_model=HealthResponse, tags=["health"])
    def readiness_check(db: Session = Depends(get_db_session)) -> HealthResponse:
        """Readiness check endpoint.

        Returns 200 if the database answers, 503 otherwise.
        """
        try:
            db.execute(text("SELECT 1"))
        except Exception as e:
            raise HTTPException(
                status_code=503,
                detail=f"Database connection failed: {str(e)}"
            )

        return HealthResponse(
            status="ready",
            version=__version__,
            database="connected",
        )

    return app


app = create_app()
