"""Pytest configuration and fixtures."""

from contextlib import contextmanager
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from taskboard.models.database import Base, make_engine, reset_engine
from taskboard.services.auth_service import AuthService
from taskboard.services.session import SessionContext
from taskboard.services.team_service import TeamService
from taskboard.utils.config import Config, reset_config, set_config


@pytest.fixture(scope="function")
def test_config(tmp_path):
    """Create a test configuration."""
    config = Config(
        database={"url": "sqlite:///:memory:", "echo": False},
        session={"path": str(tmp_path / "session.json")},
    )
    return config


@pytest.fixture(scope="function")
def test_db_engine():
    """Create an in-memory SQLite engine for testing.

    Uses StaticPool to ensure the same connection is used throughout,
    which is required for in-memory SQLite databases.
    """
    # Import models to ensure they're registered with Base
    from taskboard.models import task, team  # noqa: F401

    engine = make_engine("sqlite:///:memory:", poolclass=StaticPool)
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def test_db_connection(test_db_engine):
    """A connection whose outer transaction is rolled back after the test."""
    connection = test_db_engine.connect()
    transaction = connection.begin()
    yield connection
    transaction.rollback()
    connection.close()


@pytest.fixture(scope="function")
def test_session_factory(test_db_connection):
    return sessionmaker(autocommit=False, autoflush=False, bind=test_db_connection)


@pytest.fixture(scope="function")
def test_db_session(test_session_factory):
    """Create a database session for testing."""
    session = test_session_factory()
    yield session
    session.close()


@pytest.fixture
def session_context():
    """A logged-out session context that is not backed by a file."""
    return SessionContext()


@pytest.fixture
def team(test_db_session, session_context):
    """Register team 'acme' and log in to it."""
    return AuthService(test_db_session, session_context).register_team("acme", "secret")


@pytest.fixture
def members(test_db_session, session_context, team):
    """Add john, joanna and bob (in that order); john becomes the active member."""
    service = TeamService(test_db_session, session_context)
    return [service.add_team_member(name) for name in ("john", "joanna", "bob")]


@pytest.fixture
def cli_db(test_db_session, test_config):
    """Point the CLI at the test session and configuration."""

    @contextmanager
    def _session():
        yield test_db_session

    with patch("taskboard.cli.get_db_session", _session), \
         patch("taskboard.cli.init_db"), \
         patch("taskboard.cli.load_config", return_value=test_config):
        yield test_db_session

    reset_config()


@pytest.fixture(scope="function")
def client(test_session_factory, test_config, session_context):
    """Create a test client with dependency overrides."""
    from taskboard.api.dependencies import get_db_session, get_session_context, reset_session_context
    from taskboard.api.main import create_app

    # Reset global state
    reset_config()
    reset_engine()
    set_config(test_config)

    app = create_app(with_lifespan=False)

    # Override get_db_session dependency to use the test connection
    def override_get_db_session():
        session = test_session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db_session] = override_get_db_session
    app.dependency_overrides[get_session_context] = lambda: session_context

    with TestClient(app) as test_client:
        yield test_client

    reset_config()
    reset_engine()
    reset_session_context()


@pytest.fixture
def sample_task_data():
    """Sample task data for testing."""
    return {
        "title": "Fix the header bug",
        "description": "Header overlaps the menu on small screens",
    }
