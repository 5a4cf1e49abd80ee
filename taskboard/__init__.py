"""Team task board with a command-driven search and quick-add bar."""

__version__ = "0.1.0"
