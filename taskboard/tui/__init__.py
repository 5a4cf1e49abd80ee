"""Terminal board with the command bar."""
