"""Tests for team registration and login."""

import pytest

from taskboard.exceptions import AuthError, TaskValidationError
from taskboard.models.team import Team
from taskboard.services.auth_service import AuthService, hash_password, verify_password
from taskboard.services.session import SessionContext
from taskboard.services.team_service import TeamService


@pytest.fixture
def auth(test_db_session, session_context):
    return AuthService(test_db_session, session_context)


class TestPasswords:
    """Tests for password hashing."""

    def test_hash_is_hex_sha256(self):
        digest = hash_password("secret")
        assert len(digest) == 64
        assert digest == hash_password("secret")
        assert digest != hash_password("Secret")

    def test_verify(self):
        assert verify_password("secret", hash_password("secret"))
        assert not verify_password("wrong", hash_password("secret"))


class TestRegister:
    """Tests for registering teams."""

    def test_register_logs_in_without_member(self, auth, session_context, test_db_session):
        session = auth.register_team("acme", "secret")

        assert session.team_name == "acme"
        assert session.current_user_id is None
        assert session_context.session == session
        stored = test_db_session.query(Team).filter_by(name="acme").one()
        assert stored.password_hash == hash_password("secret")

    def test_blank_name(self, auth):
        with pytest.raises(TaskValidationError, match="Team name is required"):
            auth.register_team("  ", "secret")

    def test_blank_password(self, auth):
        with pytest.raises(TaskValidationError, match="Team password is required"):
            auth.register_team("acme", "")

    def test_duplicate_name(self, auth):
        auth.register_team("acme", "secret")
        with pytest.raises(TaskValidationError, match="Team name already exists"):
            auth.register_team("acme", "other")


class TestLogin:
    """Tests for logging in and out."""

    def test_login_selects_first_member(self, test_db_session, members):
        context = SessionContext()

        session = AuthService(test_db_session, context).login_team("acme", "secret")

        assert session.current_user_name == "john"
        assert context.is_authenticated()

    def test_login_empty_team(self, auth, test_db_session):
        auth.register_team("acme", "secret")
        context = SessionContext()

        session = AuthService(test_db_session, context).login_team("acme", "secret")

        assert session.current_user_id is None

    def test_unknown_team(self, auth):
        with pytest.raises(AuthError, match="Team not found"):
            auth.login_team("nobody", "secret")

    def test_wrong_password(self, auth, session_context):
        auth.register_team("acme", "secret")
        session_context.clear()

        with pytest.raises(AuthError, match="Invalid team password"):
            auth.login_team("acme", "nope")
        assert not auth.is_authenticated()

    def test_logout(self, auth):
        auth.register_team("acme", "secret")
        auth.logout()
        assert not auth.is_authenticated()

    def test_member_added_after_login_is_usable(self, auth, test_db_session, session_context):
        auth.register_team("acme", "secret")
        TeamService(test_db_session, session_context).add_team_member("zoe")
        assert session_context.session.current_user_name == "zoe"
