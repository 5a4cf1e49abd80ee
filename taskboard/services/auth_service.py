"""Team registration and login."""

import hashlib
import logging

from sqlalchemy.orm import Session

from taskboard.exceptions import AuthError, TaskValidationError
from taskboard.models.team import Team, User
from taskboard.services.session import SessionContext, SessionInfo

logger = logging.getLogger(__name__)


def hash_password(password: str) -> str:
    """Hex SHA-256 digest of a team password."""
    return hashlib.sha256(password.encode("utf-8")).hexdigest()


def verify_password(password: str, password_hash: str) -> bool:
    return hash_password(password) == password_hash


class AuthService:
    """Service for team authentication; writes results into the session context."""

    def __init__(self, db: Session, session_context: SessionContext):
        self.db = db
        self.session_context = session_context

    def register_team(self, name: str, password: str) -> SessionInfo:
        """Create a team and log in to it with no active member.

        Raises:
            TaskValidationError: If the name is blank, taken, or the password is empty
        """
        name = (name or "").strip()
        if not name:
            raise TaskValidationError("Team name is required")
        if not password:
            raise TaskValidationError("Team password is required")

        if self.db.query(Team).filter(Team.name == name).first() is not None:
            raise TaskValidationError("Team name already exists")

        team = Team(name=name, password_hash=hash_password(password))
        self.db.add(team)
        self.db.commit()
        self.db.refresh(team)

        logger.info(f"Registered team '{name}' (#{team.id})")

        session = SessionInfo(team_id=team.id, team_name=team.name)
        self.session_context.set(session)
        return session

    def login_team(self, name: str, password: str) -> SessionInfo:
        """Log in to a team, selecting its first member if there is one.

        Raises:
            AuthError: If the team does not exist or the password is wrong
        """
        team = self.db.query(Team).filter(Team.name == (name or "").strip()).first()
        if team is None:
            raise AuthError("Team not found")

        if not verify_password(password, team.password_hash):
            logger.warning(f"Rejected login for team '{team.name}'")
            raise AuthError("Invalid team password")

        first_user = (
            self.db.query(User)
            .filter(User.team_id == team.id)
            .order_by(User.created_at.asc(), User.id.asc())
            .first()
        )

        session = SessionInfo(
            team_id=team.id,
            team_name=team.name,
            current_user_id=first_user.id if first_user else None,
            current_user_name=first_user.name if first_user else None,
        )
        self.session_context.set(session)

        logger.info(f"Team '{team.name}' logged in (user={session.current_user_name})")
        return session

    def logout(self) -> None:
        self.session_context.clear()

    def is_authenticated(self) -> bool:
        return self.session_context.is_authenticated()
