"""TUI widgets for the board."""

from taskboard.tui.widgets.board_column import BoardColumn

__all__ = [
    "BoardColumn",
]
