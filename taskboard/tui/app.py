"""Main TUI application: the command bar above the active member's board."""

from typing import Any, Optional

from rich.markup import escape
from rich.text import Text
from sqlalchemy.orm import Session
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.widgets import Footer, Header, Input, OptionList, Static
from textual.widgets.option_list import Option

from taskboard.commands.controller import ControllerState, InputController
from taskboard.commands.grammar import classify, format_intent
from taskboard.commands.resolver import ResolutionKind, ServiceCollaborators
from taskboard.exceptions import TaskboardError
from taskboard.models.database import get_session_factory
from taskboard.models.task import TaskStatus
from taskboard.services.session import SessionContext, SessionInfo
from taskboard.services.task_service import TaskService
from taskboard.services.team_service import TeamService
from taskboard.tui.widgets import BoardColumn
from taskboard.utils.config import Config, get_config

NO_RESULTS_TEXT = "No results found\nTry using commands like :add @user - task or :help"


class TaskBoardApp(App):
    """Board for one team member, driven from a command bar."""

    CSS = """
    Screen {
        layout: vertical;
    }

    #command-area {
        height: auto;
        max-height: 50%;
    }

    #dropdown {
        height: auto;
        max-height: 12;
        border: solid $primary;
    }

    #command-message {
        height: auto;
        padding: 0 1;
    }

    #board {
        width: 1fr;
        height: 1fr;
        layout: horizontal;
    }

    #member-bar {
        width: 1fr;
        height: 1;
        padding: 0 1;
    }
    """

    BINDINGS = [
        Binding("escape", "escape", "Clear", priority=True),
        Binding("slash", "focus_command", "Command"),
        Binding("down", "focus_dropdown", show=False),
        Binding("ctrl+right", "next_member", "Next member"),
        Binding("ctrl+left", "prev_member", "Prev member"),
        Binding("q", "quit", "Quit"),
    ]

    TITLE = "Task Board"

    def __init__(
        self,
        session_context: SessionContext,
        config: Optional[Config] = None,
        db: Optional[Session] = None,
    ):
        """Initialize the application."""
        super().__init__()
        self.session_context = session_context
        config = config or get_config()
        self.db = db or get_session_factory()()
        self._owns_db = db is None
        self._unsubscribe = None

        self.controller = InputController(
            ServiceCollaborators(
                self.db,
                session_context,
                search_limit=config.commands.search_limit,
            ),
            self._roster,
            on_user_select=self._select_member,
            on_focus_release=self._release_focus,
            on_focus_request=self.action_focus_command,
            suggestion_limit=config.commands.suggestion_limit,
        )
        self.columns: list[BoardColumn] = []

    def compose(self) -> ComposeResult:
        """Create child widgets for the app."""
        yield Header()

        with Vertical(id="command-area"):
            yield Input(placeholder="Type to search or :help for commands", id="command-input")
            dropdown = OptionList(id="dropdown")
            dropdown.display = False
            yield dropdown
            message = Static("", id="command-message")
            message.display = False
            yield message

        with Horizontal(id="board"):
            self.columns = [BoardColumn(status, id=f"column-{status.value}") for status in TaskStatus]
            yield from self.columns

        yield Static("", id="member-bar")
        yield Footer()

    def on_mount(self) -> None:
        """Subscribe to session changes and load the board."""
        self._unsubscribe = self.session_context.subscribe(self._on_session_change)
        self.refresh_board()
        self.action_focus_command()

    def on_unmount(self) -> None:
        if self._unsubscribe:
            self._unsubscribe()
        if self._owns_db:
            self.db.close()

    # --- Data ---

    def _roster(self) -> list[Any]:
        if not self.session_context.is_authenticated():
            return []
        return TeamService(self.db, self.session_context).get_roster()

    def _on_session_change(self, session: Optional[SessionInfo]) -> None:
        self.refresh_board()

    def refresh_board(self) -> None:
        """Reload the active member's board from the database."""
        session = self.session_context.session
        member_bar = self.query_one("#member-bar", Static)

        if session is None or session.current_user_id is None:
            for column in self.columns:
                column.set_tasks([])
            team = session.team_name if session else "-"
            member_bar.update(f"Team [bold]{escape(team)}[/bold] · no member selected")
            return

        try:
            self.db.expire_all()
            board = TaskService(self.db, self.session_context).get_board(session.current_user_id)
        except TaskboardError as e:
            self.notify(f"Error loading board: {escape(str(e))}", severity="error")
            return

        for column in self.columns:
            column.set_tasks([{"id": t.id, "title": t.title} for t in board.column(column.status)])

        member_bar.update(
            f"Team [bold]{escape(session.team_name)}[/bold] · board of [cyan]@{escape(session.current_user_name)}[/cyan]"
        )

    # --- Controller callbacks ---

    def _select_member(self, member: Any) -> None:
        try:
            TeamService(self.db, self.session_context).switch_to_member(member.name)
        except TaskboardError as e:
            self.notify(escape(str(e)), severity="error")

    def _release_focus(self) -> None:
        if self.columns:
            self.columns[0].table.focus()

    # --- Command bar ---

    def render_command_bar(self) -> None:
        """Sync the input, dropdown and message line with the controller."""
        controller = self.controller
        command_input = self.query_one("#command-input", Input)
        dropdown = self.query_one("#dropdown", OptionList)
        message = self.query_one("#command-message", Static)

        if command_input.value != controller.text:
            command_input.value = controller.text

        dropdown.clear_options()
        if controller.suggestions:
            dropdown.add_options(
                [Option(Text(s), id=f"suggestion-{i}") for i, s in enumerate(controller.suggestions)]
            )
        elif controller.results:
            dropdown.add_options(
                [
                    Option(
                        Text.assemble(task.title, (f"  @{task.owner_name} · {task.status.label}", "dim")),
                        id=f"result-{i}",
                    )
                    for i, task in enumerate(controller.results)
                ]
            )
        dropdown.display = controller.is_open and dropdown.option_count > 0

        if controller.loading:
            text = "[dim]Searching...[/dim]"
        elif controller.error_message:
            text = f"[red]{escape(controller.error_message)}[/red]"
        elif controller.help_text:
            text = controller.help_text
        elif controller.show_no_results:
            text = f"[dim]{NO_RESULTS_TEXT}[/dim]"
        elif controller.state == ControllerState.SUGGESTING:
            text = f"[dim]{escape(format_intent(classify(controller.text)))}[/dim]"
        else:
            text = ""
        message.update(text)
        message.display = bool(text)

    async def _apply_change(self, value: str) -> None:
        await self.controller.on_input_change(value)
        self.render_command_bar()

    async def _apply_submit(self) -> None:
        resolution = await self.controller.on_enter()
        self.render_command_bar()
        if resolution is None:
            return

        if resolution.kind == ResolutionKind.TASK_CREATED:
            task = resolution.task
            self.notify(f"Created: {escape(task.title)} (@{escape(task.owner_name or '-')})", severity="information")
            self.refresh_board()

    def on_input_changed(self, event: Input.Changed) -> None:
        # Programmatic updates from render_command_bar echo back here
        if event.value == self.controller.text:
            return
        self.run_worker(self._apply_change(event.value), exclusive=True, group="command-bar")

    def on_input_submitted(self, event: Input.Submitted) -> None:
        self.run_worker(self._apply_submit(), exclusive=True, group="command-bar")

    def on_option_list_option_selected(self, event: OptionList.OptionSelected) -> None:
        option_id = event.option.id or ""
        kind, _, index = option_id.partition("-")
        if kind == "suggestion":
            self.controller.select_suggestion(self.controller.suggestions[int(index)])
        elif kind == "result":
            task = self.controller.results[int(index)]
            if not self.controller.select_result(task):
                self.notify(f"@{escape(task.owner_name or '-')} is not on this team", severity="warning")
        self.render_command_bar()

    def on_descendant_focus(self, event) -> None:
        if self.focused is self.query_one("#command-input", Input):
            self.controller.on_focus()
            self.render_command_bar()

    def on_descendant_blur(self, event) -> None:
        self.call_after_refresh(self._check_focus_left)

    def _check_focus_left(self) -> None:
        command_widgets = {
            self.query_one("#command-input", Input),
            self.query_one("#dropdown", OptionList),
        }
        if self.focused not in command_widgets and self.controller.is_open:
            self.controller.on_click_outside()
            self.render_command_bar()

    def on_board_column_move_requested(self, event: BoardColumn.MoveRequested) -> None:
        try:
            TaskService(self.db, self.session_context).move_task(event.task_id, event.status, event.index)
        except TaskboardError as e:
            self.notify(f"Error moving task: {escape(str(e))}", severity="error")
            return
        self.refresh_board()

    # --- Actions ---

    def action_escape(self) -> None:
        """Clear the command bar and release focus."""
        self.controller.on_escape()
        self.render_command_bar()

    def action_focus_command(self) -> None:
        self.query_one("#command-input", Input).focus()

    def action_focus_dropdown(self) -> None:
        dropdown = self.query_one("#dropdown", OptionList)
        if dropdown.display:
            dropdown.focus()

    def _cycle_member(self, step: int) -> None:
        roster = self._roster()
        session = self.session_context.session
        if not roster or session is None:
            return
        ids = [member.id for member in roster]
        current = ids.index(session.current_user_id) if session.current_user_id in ids else -1
        self._select_member(roster[(current + step) % len(roster)])

    def action_next_member(self) -> None:
        self._cycle_member(1)

    def action_prev_member(self) -> None:
        self._cycle_member(-1)

    def action_quit(self) -> None:
        """Quit the application."""
        self.exit()
