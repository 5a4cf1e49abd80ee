"""Database engine and session helpers.

The engine is built once from ``config.database`` and shared by the CLI,
the API and the terminal board. SQLite connections get foreign keys turned
on so that removing a member or team cascades to their tasks.
"""

from collections.abc import Generator
from contextlib import contextmanager

from sqlalchemy import Engine, create_engine, event
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from taskboard.utils.config import get_config

Base = declarative_base()

_engine: Engine | None = None
_SessionLocal: sessionmaker | None = None


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def make_engine(url: str, echo: bool = False, **kwargs) -> Engine:
    """Create an engine for ``url``, enforcing foreign keys on SQLite.

    Extra keyword arguments go to ``create_engine`` (tests pass a pool class).
    """
    if url.startswith("sqlite"):
        kwargs.setdefault("connect_args", {"check_same_thread": False})
        engine = create_engine(url, echo=echo, **kwargs)
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
        return engine
    return create_engine(url, echo=echo, **kwargs)


def get_engine() -> Engine:
    """Get or create the configured engine."""
    global _engine
    if _engine is None:
        config = get_config()
        _engine = make_engine(config.database.url, echo=config.database.echo)
    return _engine


def get_session_factory() -> sessionmaker:
    """Get or create the session factory bound to the configured engine."""
    global _SessionLocal
    if _SessionLocal is None:
        _SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=get_engine())
    return _SessionLocal


def init_db() -> None:
    """Create the team, user and task tables if they are missing."""
    from taskboard.models import task, team  # noqa: F401

    Base.metadata.create_all(bind=get_engine())


def get_db() -> Generator[Session, None, None]:
    """Yield a session that is closed afterwards (FastAPI dependency)."""
    db = get_session_factory()()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def get_db_session() -> Generator[Session, None, None]:
    """Session scope for one CLI command: commit on success, roll back on error."""
    db = get_session_factory()()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def reset_engine() -> None:
    """Forget the engine and session factory (useful for testing)."""
    global _engine, _SessionLocal
    _engine = None
    _SessionLocal = None
