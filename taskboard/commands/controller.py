"""Interactive state machine for the command bar.

Binds keystrokes to classification, suggestions and resolution and keeps
the state a UI needs to render the input box and its dropdown. This is the
only place where resolution errors turn into displayed text.
"""

import enum
import logging
from collections.abc import Callable, Sequence
from typing import Any

from taskboard.commands.grammar import Help, Intent, IntentKind, Search, classify, get_help_text, is_command
from taskboard.commands.resolver import CommandCollaborators, Resolution, ResolutionKind, resolve
from taskboard.commands.suggestions import DEFAULT_LIMIT, get_suggestions
from taskboard.exceptions import StaleResponseError

logger = logging.getLogger(__name__)


class ControllerState(str, enum.Enum):
    """States of the command bar."""

    IDLE = "idle"
    TYPING = "typing"
    SUGGESTING = "suggesting"
    SEARCHING = "searching"
    HELP_SHOWN = "help_shown"
    ERROR_SHOWN = "error_shown"


def _owner_name(task: Any) -> str | None:
    """Name of the member owning a search result."""
    if isinstance(task, dict):
        owner = task.get("user") or task.get("users") or {}
        return owner.get("name") if isinstance(owner, dict) else None
    user = getattr(task, "user", None)
    return getattr(user, "name", None)


def _member_name(member: Any) -> str | None:
    if isinstance(member, dict):
        return member.get("name")
    return getattr(member, "name", None)


class InputController:
    """Owns the command bar's input text and transient display state.

    Every asynchronous request is tagged with a generation number. Newer
    input bumps the generation, and a response that arrives for an older
    generation is dropped without touching state.
    """

    def __init__(
        self,
        collaborators: CommandCollaborators,
        roster_provider: Callable[[], Sequence[Any]],
        *,
        on_user_select: Callable[[Any], None] | None = None,
        on_focus_release: Callable[[], None] | None = None,
        on_focus_request: Callable[[], None] | None = None,
        suggestion_limit: int = DEFAULT_LIMIT,
    ):
        self.collaborators = collaborators
        self.roster_provider = roster_provider
        self.on_user_select = on_user_select
        self.on_focus_release = on_focus_release
        self.on_focus_request = on_focus_request
        self.suggestion_limit = suggestion_limit

        self.text = ""
        self.state = ControllerState.IDLE
        self.current_intent_kind: IntentKind | None = None
        self.is_open = False
        self.suggestions: list[str] = []
        self.results: list[Any] = []
        self.error_message: str | None = None
        self.loading = False
        self.show_help = False

        self._generation = 0

    # --- Render helpers ---

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def help_text(self) -> str | None:
        return get_help_text() if self.show_help else None

    @property
    def show_no_results(self) -> bool:
        """Whether the dropdown should say nothing matched."""
        return (
            self.is_open
            and not self.loading
            and not self.show_help
            and not self.suggestions
            and not self.results
            and bool(self.text.strip())
        )

    # --- Internal ---

    def _next_generation(self) -> int:
        self._generation += 1
        return self._generation

    def _ensure_current(self, generation: int) -> None:
        if generation != self._generation:
            raise StaleResponseError(generation, self._generation)

    def _reset(self, clear_text: bool = True) -> None:
        if clear_text:
            self.text = ""
        self.state = ControllerState.IDLE
        self.current_intent_kind = None
        self.is_open = False
        self.suggestions = []
        self.results = []
        self.error_message = None
        self.loading = False
        self.show_help = False

    def _roster(self) -> Sequence[Any]:
        return self.roster_provider() or []

    async def _resolve(self, intent: Intent, generation: int) -> Resolution | None:
        """Resolve an intent, returning None if the response went stale."""
        try:
            resolution = await resolve(intent, self.collaborators)
        except Exception as e:
            logger.exception("Command resolution failed")
            resolution = Resolution.error(str(e) or "Something went wrong")

        try:
            self._ensure_current(generation)
        except StaleResponseError as e:
            logger.debug(f"Discarding response: {e}")
            return None
        return resolution

    async def _run_search(self, query: str, generation: int) -> Resolution | None:
        self.state = ControllerState.SEARCHING
        self.loading = True
        self.error_message = None

        resolution = await self._resolve(Search(query=query.strip()), generation)
        if resolution is None:
            return None

        self.loading = False
        if resolution.is_error:
            self.error_message = resolution.message
            self.state = ControllerState.ERROR_SHOWN
            return resolution

        self.results = resolution.results
        if self.results:
            self.is_open = True
        return resolution

    # --- Events ---

    async def on_input_change(self, text: str) -> None:
        """Handle an edit of the input text."""
        self.text = text
        generation = self._next_generation()

        if not text.strip():
            self._reset()
            return

        self.show_help = False
        self.error_message = None

        if is_command(text):
            self.current_intent_kind = classify(text).kind
            self.suggestions = get_suggestions(text, self._roster(), self.suggestion_limit)
            self.results = []
            self.loading = False
            if self.suggestions:
                self.is_open = True
            self.state = ControllerState.SUGGESTING
        else:
            self.current_intent_kind = IntentKind.SEARCH
            self.suggestions = []
            await self._run_search(text, generation)

    async def on_enter(self) -> Resolution | None:
        """Submit the current input.

        Returns:
            The resolution applied, or None when the input was blank or the
            response was superseded before it arrived.
        """
        if not self.text.strip():
            return None

        generation = self._next_generation()
        intent = classify(self.text, self._roster())
        self.current_intent_kind = intent.kind

        if isinstance(intent, Help):
            self.show_help = True
            self.is_open = True
            self.results = []
            self.suggestions = []
            self.error_message = None
            self.state = ControllerState.HELP_SHOWN
            return Resolution.help_shown()

        if isinstance(intent, Search):
            self.suggestions = []
            return await self._run_search(intent.query, generation)

        self.loading = True
        self.error_message = None
        resolution = await self._resolve(intent, generation)
        if resolution is None:
            return None

        self.loading = False
        if resolution.kind == ResolutionKind.TASK_CREATED:
            self._reset()
        else:
            self.error_message = resolution.message
            self.state = ControllerState.ERROR_SHOWN
        return resolution

    def on_escape(self) -> None:
        """Clear everything and release focus."""
        self._next_generation()
        self._reset()
        if self.on_focus_release:
            self.on_focus_release()

    def on_focus(self) -> None:
        """Reopen the dropdown when focus returns to non-empty input."""
        if self.text.strip():
            self.is_open = True

    def on_click_outside(self) -> None:
        """Close the dropdown when focus leaves the command bar.

        The text is kept and in-flight requests still land, so a task created
        while focus was elsewhere clears the input as usual. Suggestions and
        results stay cached for :meth:`on_focus` to reopen.
        """
        self.is_open = False
        self.show_help = False
        if not self.loading:
            self.error_message = None
            self.state = ControllerState.IDLE

    def select_suggestion(self, suggestion: str) -> None:
        """Put a suggestion into the input without submitting it."""
        self.text = suggestion
        self.suggestions = []
        self.is_open = False
        self.state = ControllerState.TYPING
        self.current_intent_kind = classify(suggestion).kind
        if self.on_focus_request:
            self.on_focus_request()

    def select_result(self, task: Any) -> bool:
        """Switch to the board of a search result's owner.

        Returns:
            True if the owner was found in the roster and selected.
        """
        owner = _owner_name(task)
        if owner is None or self.on_user_select is None:
            return False

        member = next((m for m in self._roster() if _member_name(m) == owner), None)
        if member is None:
            return False

        self.on_user_select(member)
        self._next_generation()
        self._reset()
        return True
