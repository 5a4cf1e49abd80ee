"""Team roster service."""

import logging
import re
from dataclasses import dataclass

from sqlalchemy import func
from sqlalchemy.orm import Session

from taskboard.exceptions import AuthError, NotFoundError, TaskValidationError
from taskboard.models.team import Team, User
from taskboard.services.session import SessionContext, SessionInfo

logger = logging.getLogger(__name__)

MEMBER_NAME_PATTERN = re.compile(r"^[A-Za-z0-9_]+$")


@dataclass(frozen=True)
class RosterEntry:
    """A team member as seen by the command bar."""

    id: int
    name: str


class TeamService:
    """Service for reading and changing a team's member roster."""

    def __init__(self, db: Session, session_context: SessionContext):
        self.db = db
        self.session_context = session_context

    def _require_session(self) -> SessionInfo:
        session = self.session_context.get_active_session()
        if session is None:
            raise AuthError("Not authenticated")
        return session

    def get_team_details(self, team_id: int) -> Team:
        """Get a team by ID.

        Raises:
            NotFoundError: If no such team exists
        """
        team = self.db.query(Team).filter(Team.id == team_id).first()
        if team is None:
            raise NotFoundError(f"Team #{team_id} not found")
        return team

    def get_team_members(self, team_id: int) -> list[User]:
        """Get members of a team in join order."""
        return (
            self.db.query(User)
            .filter(User.team_id == team_id)
            .order_by(User.created_at.asc(), User.id.asc())
            .all()
        )

    def get_current_team_members(self) -> list[User]:
        """Get members of the active team in join order."""
        return self.get_team_members(self._require_session().team_id)

    def get_roster(self) -> list[RosterEntry]:
        """Get the active team's roster for suggestion matching."""
        return [RosterEntry(id=m.id, name=m.name) for m in self.get_current_team_members()]

    def get_user_by_name(self, name: str) -> User | None:
        """Find a member of the active team by case-insensitive exact name."""
        session = self._require_session()
        if not name:
            return None
        return (
            self.db.query(User)
            .filter(User.team_id == session.team_id, func.lower(User.name) == name.lower())
            .order_by(User.id.asc())
            .first()
        )

    def search_team_members(self, query: str) -> list[User]:
        """Find members whose name contains ``query``, ordered by name."""
        session = self._require_session()
        return (
            self.db.query(User)
            .filter(User.team_id == session.team_id, User.name.ilike(f"%{query}%"))
            .order_by(User.name.asc())
            .all()
        )

    def add_team_member(self, name: str) -> User:
        """Add a member to the active team.

        Raises:
            AuthError: If no session is active
            TaskValidationError: If the name is malformed or already taken
        """
        session = self._require_session()
        name = (name or "").strip()

        if not MEMBER_NAME_PATTERN.match(name):
            raise TaskValidationError(
                "Username can only contain letters, numbers, and underscores"
            )

        if self.get_user_by_name(name) is not None:
            raise TaskValidationError("User with this name already exists in the team")

        user = User(name=name, team_id=session.team_id)
        self.db.add(user)
        self.db.commit()
        self.db.refresh(user)

        logger.info(f"Added member '{name}' to team #{session.team_id}")

        # The first member becomes active automatically
        if session.current_user_id is None:
            self.session_context.switch_user(user.id, user.name)

        return user

    def remove_team_member(self, user_id: int) -> User:
        """Remove a member and all of their tasks.

        Raises:
            NotFoundError: If the user is not in the active team
        """
        session = self._require_session()
        user = (
            self.db.query(User)
            .filter(User.id == user_id, User.team_id == session.team_id)
            .first()
        )
        if user is None:
            raise NotFoundError("User not found or access denied")

        self.db.delete(user)
        self.db.commit()
        logger.info(f"Removed member '{user.name}' from team #{session.team_id}")

        if session.current_user_id == user_id:
            remaining = self.get_team_members(session.team_id)
            first = remaining[0] if remaining else None
            self.session_context.switch_user(
                first.id if first else None, first.name if first else None
            )

        return user

    def switch_to_member(self, name: str) -> SessionInfo:
        """Make the named member's board the active one.

        Raises:
            NotFoundError: If no member has that name
        """
        member = self.get_user_by_name(name)
        if member is None:
            raise NotFoundError(f"User @{name} not found")
        return self.session_context.switch_user(member.id, member.name)
