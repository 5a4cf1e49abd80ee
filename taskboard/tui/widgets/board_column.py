"""Board column widget listing one status column of a member's board."""

from typing import Optional

from rich.text import Text
from textual.binding import Binding
from textual.message import Message
from textual.reactive import reactive
from textual.widgets import DataTable, Static

from taskboard.models.task import TaskStatus


class BoardColumn(Static):
    """Widget displaying the tasks of one status column in board order."""

    DEFAULT_CSS = """
    BoardColumn {
        width: 1fr;
        height: 1fr;
        border: solid $accent;
    }

    BoardColumn > DataTable {
        width: 1fr;
        height: 1fr;
    }
    """

    BINDINGS = [
        Binding("shift+right", "move_across(1)", "Next column"),
        Binding("shift+left", "move_across(-1)", "Prev column"),
        Binding("shift+up", "move_within(-1)", "Up"),
        Binding("shift+down", "move_within(1)", "Down"),
    ]

    task_count = reactive(0)

    class MoveRequested(Message):
        """Sent when the user asks to move the selected task."""

        def __init__(self, task_id: int, status: TaskStatus, index: int) -> None:
            super().__init__()
            self.task_id = task_id
            self.status = status
            self.index = index

    def __init__(self, status: TaskStatus, name: Optional[str] = None, id: Optional[str] = None):
        """Initialize the column."""
        super().__init__(name=name, id=id)
        self.status = status
        self.table = DataTable(cursor_type="row")
        self.tasks: list[dict] = []

    def compose(self):
        """Compose the widget."""
        yield self.table

    def on_mount(self) -> None:
        """Set up the table when mounted."""
        self._ensure_columns()
        self.border_title = f"{self.status.label.title()} ({self.task_count})"

    def _ensure_columns(self) -> None:
        if not self.table.columns:
            self.table.add_columns("#", "Title")

    def set_tasks(self, tasks: list[dict]) -> None:
        """Replace the column's rows with ``tasks`` (already in board order)."""
        self._ensure_columns()
        self.tasks = tasks
        self.table.clear()
        for task_data in tasks:
            title = task_data["title"][:40] if task_data["title"] else "(no title)"
            self.table.add_row(str(task_data["id"]), Text(title), key=str(task_data["id"]))

        self.task_count = len(tasks)
        self.border_title = f"{self.status.label.title()} ({self.task_count})"

    def get_selected_task(self) -> Optional[dict]:
        """Get the task under the cursor."""
        if not self.tasks:
            return None
        row = self.table.cursor_row
        if row is None or not 0 <= row < len(self.tasks):
            return None
        return self.tasks[row]

    def action_move_across(self, step: int) -> None:
        """Move the selected task to the top of the neighbouring column."""
        task_data = self.get_selected_task()
        if not task_data:
            return
        statuses = list(TaskStatus)
        target = statuses.index(self.status) + step
        if not 0 <= target < len(statuses):
            return
        self.post_message(self.MoveRequested(task_data["id"], statuses[target], 0))

    def action_move_within(self, step: int) -> None:
        """Move the selected task up or down inside this column."""
        task_data = self.get_selected_task()
        if not task_data:
            return
        index = self.table.cursor_row + step
        if not 0 <= index < len(self.tasks):
            return
        self.post_message(self.MoveRequested(task_data["id"], self.status, index))
