"""Completion suggestions for partially typed commands."""

from collections.abc import Iterator, Sequence
from itertools import islice
from typing import Any

DEFAULT_LIMIT = 5

ADD_TO_USER_TEMPLATE = ":add @username - task title"
ADD_TEMPLATE = ":add task title"
SEARCH_TEMPLATE = ":search query"
HELP_TEMPLATE = ":help"

ADD_USER_PREFIX = ":add @"


def _member_name(member: Any) -> str:
    """Read a roster entry's name from an object or a mapping."""
    if isinstance(member, dict):
        return member.get("name") or ""
    return getattr(member, "name", "") or ""


def _candidates(text: str, roster: Sequence[Any]) -> Iterator[str]:
    trimmed = text.strip().lower()

    if trimmed == ":":
        yield from (ADD_TO_USER_TEMPLATE, ADD_TEMPLATE, SEARCH_TEMPLATE, HELP_TEMPLATE)
    elif trimmed.startswith(ADD_USER_PREFIX):
        partial = trimmed[len(ADD_USER_PREFIX):]
        for member in roster:
            name = _member_name(member)
            if name and name.lower().startswith(partial):
                yield f":add @{name} - "
    elif trimmed.startswith(":add") and "@" not in trimmed:
        yield from (ADD_TEMPLATE, ADD_TO_USER_TEMPLATE)
    elif trimmed.startswith(":s"):
        yield SEARCH_TEMPLATE
    elif trimmed.startswith(":h"):
        yield HELP_TEMPLATE


def suggest(text: str, roster: Sequence[Any] = (), limit: int = DEFAULT_LIMIT) -> Iterator[str]:
    """Lazily produce completion candidates for command input.

    Rules are checked in order and the first one that applies wins, so the
    ``:add @`` member completion is tried before the plain ``:add`` templates.
    Member matches keep roster order and are case-insensitive on the prefix.
    Each call returns a fresh iterator yielding at most ``limit`` strings.

    Args:
        text: Current input text
        roster: Team members (objects or mappings with a ``name``)
        limit: Maximum number of candidates

    Examples:
        >>> list(suggest(":add @jo", [{"name": "john"}, {"name": "joanna"}, {"name": "bob"}]))
        [':add @john - ', ':add @joanna - ']
    """
    return islice(_candidates(text, roster), limit)


def get_suggestions(text: str, roster: Sequence[Any] = (), limit: int = DEFAULT_LIMIT) -> list[str]:
    """List form of :func:`suggest`."""
    return list(suggest(text, roster, limit))
