"""Custom exceptions for the task board application."""


class TaskboardError(Exception):
    """Base class for task board errors."""

    pass


class AuthError(TaskboardError):
    """Raised when no session is active or team credentials are rejected."""

    pass


class TaskValidationError(TaskboardError, ValueError):
    """Raised when task or member input fails validation."""

    pass


class NotFoundError(TaskboardError, LookupError):
    """Raised when a task, user or team does not exist in the current team."""

    pass


class SearchError(TaskboardError):
    """Raised when the task search backend fails."""

    pass


class GrammarError(TaskboardError, ValueError):
    """Raised when command input cannot be turned into a valid intent."""

    pass


class ResolutionError(TaskboardError):
    """Raised when an intent cannot be carried out against the backends."""

    pass


class StaleResponseError(TaskboardError):
    """Raised for an async result superseded by newer input."""

    def __init__(self, generation: int, current: int):
        super().__init__(f"Response for generation {generation} is stale (current {current})")
        self.generation = generation
        self.current = current
