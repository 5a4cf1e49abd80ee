"""FastAPI dependency injection helpers."""

from collections.abc import Generator

from sqlalchemy.orm import Session

from taskboard.models.database import get_db
from taskboard.services.session import SessionContext

# Process-wide session; the API serves one logged-in team at a time
_session_context: SessionContext | None = None


def get_db_session() -> Generator[Session, None, None]:
    """Get database session for dependency injection.

    Yields:
        SQLAlchemy database session
    """
    yield from get_db()


def get_session_context() -> SessionContext:
    """Get the API's session context."""
    global _session_context
    if _session_context is None:
        _session_context = SessionContext()
    return _session_context


def reset_session_context() -> None:
    """Forget the API session (useful for testing)."""
    global _session_context
    _session_context = None
