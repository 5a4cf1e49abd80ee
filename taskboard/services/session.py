"""Explicit session context for the active team and member.

Holds who is logged in and which member's board is active. Changes are
pushed to subscribers as they happen instead of being re-read on a timer.
"""

import json
import logging
from collections.abc import Callable
from dataclasses import asdict, dataclass, field, replace
from datetime import UTC, datetime
from pathlib import Path

from taskboard.exceptions import AuthError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionInfo:
    """Snapshot of the authenticated team and the active member."""

    team_id: int
    team_name: str
    current_user_id: int | None = None
    current_user_name: str | None = None
    login_time: str = field(default_factory=lambda: datetime.now(UTC).isoformat())


SessionListener = Callable[[SessionInfo | None], None]


class SessionContext:
    """Mutable holder for the current SessionInfo with change notification."""

    def __init__(self, session: SessionInfo | None = None, path: str | Path | None = None):
        self._session = session
        self._listeners: list[SessionListener] = []
        self.path = Path(path).expanduser() if path else None

    @property
    def session(self) -> SessionInfo | None:
        """The active session, or None when logged out."""
        return self._session

    def get_active_session(self) -> SessionInfo | None:
        return self._session

    def is_authenticated(self) -> bool:
        return self._session is not None

    def set(self, session: SessionInfo | None) -> None:
        """Replace the session and notify subscribers."""
        self._session = session
        if session:
            logger.info(f"Session set for team '{session.team_name}' (user={session.current_user_name})")
        else:
            logger.info("Session cleared")
        self._persist()
        self._notify()

    def switch_user(self, user_id: int | None, user_name: str | None) -> SessionInfo:
        """Make another member of the same team the active one.

        Raises:
            AuthError: If there is no active session
        """
        if self._session is None:
            raise AuthError("Not authenticated")
        updated = replace(self._session, current_user_id=user_id, current_user_name=user_name)
        self.set(updated)
        return updated

    def clear(self) -> None:
        self.set(None)

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        """Register a change listener.

        Returns:
            A callable that removes the listener again.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self._session)
            except Exception as e:
                logger.warning(f"Session listener failed: {e}")

    # --- File persistence (CLI) ---

    @classmethod
    def load(cls, path: str | Path) -> "SessionContext":
        """Create a context from a session file, logged out if absent or unreadable."""
        file_path = Path(path).expanduser()
        session = None
        if file_path.exists():
            try:
                data = json.loads(file_path.read_text())
                session = SessionInfo(**data)
            except (json.JSONDecodeError, TypeError) as e:
                logger.warning(f"Ignoring unreadable session file {file_path}: {e}")
        return cls(session=session, path=file_path)

    def _persist(self) -> None:
        if self.path is None:
            return
        if self._session is None:
            self.path.unlink(missing_ok=True)
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(asdict(self._session)))
