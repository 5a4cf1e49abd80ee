"""Ordered per-column board structure used for drag-and-drop moves."""

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Protocol

from taskboard.exceptions import NotFoundError
from taskboard.models.task import TaskStatus


class BoardItem(Protocol):
    id: int
    status: TaskStatus
    position: int


def _empty_columns() -> dict[TaskStatus, list]:
    return {status: [] for status in TaskStatus}


@dataclass
class Board:
    """A member's tasks as one ordered list per status column.

    Moves are expressed as remove-then-insert-at-index so the same
    operation covers reordering within a column and moving across columns.
    """

    columns: dict[TaskStatus, list[BoardItem]] = field(default_factory=_empty_columns)

    @classmethod
    def from_tasks(cls, tasks: Iterable[BoardItem]) -> "Board":
        """Build a board from tasks, ordering each column by position."""
        board = cls()
        for task in tasks:
            board.columns[task.status].append(task)
        for column in board.columns.values():
            column.sort(key=lambda t: t.position)
        return board

    def column(self, status: TaskStatus) -> list[BoardItem]:
        return self.columns[status]

    def locate(self, task_id: int) -> tuple[TaskStatus, int]:
        """Find which column and index hold a task.

        Raises:
            NotFoundError: If the task is not on this board
        """
        for status, column in self.columns.items():
            for index, task in enumerate(column):
                if task.id == task_id:
                    return status, index
        raise NotFoundError(f"Task #{task_id} is not on this board")

    def move(self, task_id: int, to_status: TaskStatus, index: int) -> list[TaskStatus]:
        """Move a task to ``index`` within ``to_status``.

        The index is clamped to the target column's bounds. Status and
        position of every task in the affected columns are rewritten so
        positions stay dense from zero.

        Returns:
            The columns whose contents changed, source first.
        """
        from_status, from_index = self.locate(task_id)
        task = self.columns[from_status].pop(from_index)

        target = self.columns[to_status]
        index = max(0, min(index, len(target)))
        target.insert(index, task)

        affected = [from_status] if from_status == to_status else [from_status, to_status]
        for status in affected:
            for position, item in enumerate(self.columns[status]):
                item.status = status
                item.position = position
        return affected

    def counts(self) -> dict[TaskStatus, int]:
        return {status: len(column) for status, column in self.columns.items()}
