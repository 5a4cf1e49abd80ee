"""Grammar for the command bar.

Supports:
- :add @{user} - {title}: Create a task on a team member's board
- :add {title}: Create a task on your own board
- :search {query}: Search tasks
- :help: Show available commands
- {text}: Search tasks (implicit)

Anything else that starts with ``:`` is an unknown command. Classification
is pure: the same text always yields an equal Intent.
"""

import enum
import re
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any, ClassVar, Union

from taskboard.exceptions import GrammarError

COMMAND_SIGIL = ":"
MAX_TITLE_LENGTH = 255

UNKNOWN_COMMAND_MESSAGE = "Unknown command. Type :help for available commands."
TITLE_LENGTH_MESSAGE = "Task title must be between 1 and 255 characters"
USERNAME_MESSAGE = "Username can only contain letters, numbers, and underscores"

USERNAME_PATTERN = re.compile(r"^[A-Za-z0-9_]+$")


class IntentKind(str, enum.Enum):
    """Which case of Intent is active."""

    SEARCH = "search"
    ADD_TASK = "add_task"
    HELP = "help"
    INVALID = "invalid"


@dataclass(frozen=True)
class Search:
    """Search tasks for ``query``."""

    query: str
    kind: ClassVar[IntentKind] = IntentKind.SEARCH


@dataclass(frozen=True)
class AddTask:
    """Create a task, assigned to ``assignee_username`` or to the caller when None."""

    title: str
    assignee_username: str | None = None
    kind: ClassVar[IntentKind] = IntentKind.ADD_TASK


@dataclass(frozen=True)
class Help:
    """Show the command reference."""

    kind: ClassVar[IntentKind] = IntentKind.HELP


@dataclass(frozen=True)
class Invalid:
    """Input that must not be acted on.

    Fields parsed before validation failed are kept for display.
    """

    reason: str
    title: str | None = None
    assignee_username: str | None = None
    kind: ClassVar[IntentKind] = IntentKind.INVALID


Intent = Union[Search, AddTask, Help, Invalid]


class CommandGrammar:
    """Regular expressions for the command bar."""

    ADD_TO_USER_PATTERN = re.compile(r"^:add\s+@(\S+?)\s*-\s*(.+)$", re.IGNORECASE | re.DOTALL)
    ADD_PATTERN = re.compile(r"^:add\s+(.+)$", re.IGNORECASE | re.DOTALL)
    SEARCH_PATTERN = re.compile(r"^:search\s+(.+)$", re.IGNORECASE | re.DOTALL)
    HELP_PATTERN = re.compile(r"^:help$", re.IGNORECASE)


def is_command(input_text: str) -> bool:
    """Check whether input is command-prefixed."""
    return input_text.strip().startswith(COMMAND_SIGIL)


def is_valid_username(username: str) -> bool:
    return bool(username) and USERNAME_PATTERN.match(username) is not None


def is_valid_task_title(title: str | None) -> bool:
    return bool(title) and 0 < len(title.strip()) <= MAX_TITLE_LENGTH


def parse_command(input_text: str) -> Intent:
    """Match input against the command syntax without validating fields.

    Examples:
        >>> parse_command(":add @john - Fix the header bug")
        AddTask(title='Fix the header bug', assignee_username='john')

        >>> parse_command(":add Update documentation")
        AddTask(title='Update documentation', assignee_username=None)

        >>> parse_command("  bug fix  ")
        Search(query='bug fix')

        >>> parse_command(":deploy")
        Invalid(reason='Unknown command. Type :help for available commands.', title=None, assignee_username=None)
    """
    text = input_text.strip()

    match = CommandGrammar.ADD_TO_USER_PATTERN.match(text)
    if match:
        return AddTask(title=match.group(2).strip(), assignee_username=match.group(1))

    match = CommandGrammar.ADD_PATTERN.match(text)
    if match:
        return AddTask(title=match.group(1).strip())

    match = CommandGrammar.SEARCH_PATTERN.match(text)
    if match:
        return Search(query=match.group(1).strip())

    if CommandGrammar.HELP_PATTERN.match(text):
        return Help()

    if text.startswith(COMMAND_SIGIL):
        return Invalid(reason=UNKNOWN_COMMAND_MESSAGE)

    # Default: implicit search
    return Search(query=text)


def check_add_task(intent: AddTask) -> None:
    """Check an AddTask against the field rules, title first.

    Raises:
        GrammarError: With the message of the first rule that fails
    """
    if not is_valid_task_title(intent.title):
        raise GrammarError(TITLE_LENGTH_MESSAGE)

    if intent.assignee_username is not None and not is_valid_username(intent.assignee_username):
        raise GrammarError(USERNAME_MESSAGE)


def validate_intent(intent: Intent) -> Intent:
    """Apply field rules to an AddTask; other intents pass through."""
    if not isinstance(intent, AddTask):
        return intent

    try:
        check_add_task(intent)
    except GrammarError as e:
        return Invalid(
            reason=str(e),
            title=intent.title,
            assignee_username=intent.assignee_username,
        )

    return intent


def classify(input_text: str, roster: Sequence[Any] | None = None) -> Intent:
    """Parse and validate command bar input.

    Args:
        input_text: Raw text from the input box
        roster: Team roster; accepted for a uniform call surface, not consulted

    Returns:
        The authoritative Intent for the input
    """
    return validate_intent(parse_command(input_text))


def get_help_text() -> str:
    """Get the command reference shown for :help."""
    return """Available commands:

:add @username - task title
  Create a new task and assign it to a team member
  Example: :add @john - Fix the header bug

:add task title
  Create a new task for yourself
  Example: :add Update documentation

:search query
  Search for tasks containing the query
  Example: :search bug fix

:help
  Show this help message

You can also just type to search without using :search"""


def format_intent(intent: Intent) -> str:
    """Describe what submitting the intent would do."""
    if isinstance(intent, AddTask):
        if intent.assignee_username:
            return f'Add task "{intent.title}" to @{intent.assignee_username}'
        return f'Add task "{intent.title}" to yourself'
    if isinstance(intent, Search):
        return f'Search for "{intent.query}"'
    if isinstance(intent, Help):
        return "Show help"
    if isinstance(intent, Invalid):
        if intent.reason == UNKNOWN_COMMAND_MESSAGE:
            return "Unknown command"
        return f"Invalid command: {intent.reason}"
    return "Unknown action"
