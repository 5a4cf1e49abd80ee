"""Command bar: classify, suggest, resolve and drive the input box."""

from taskboard.commands.controller import ControllerState, InputController
from taskboard.commands.grammar import (
    AddTask,
    Help,
    Intent,
    IntentKind,
    Invalid,
    Search,
    classify,
    format_intent,
    get_help_text,
    is_command,
)
from taskboard.commands.resolver import (
    CommandCollaborators,
    Resolution,
    ResolutionKind,
    ServiceCollaborators,
    resolve,
)
from taskboard.commands.suggestions import get_suggestions, suggest

__all__ = [
    "AddTask",
    "CommandCollaborators",
    "ControllerState",
    "Help",
    "InputController",
    "Intent",
    "IntentKind",
    "Invalid",
    "Resolution",
    "ResolutionKind",
    "Search",
    "ServiceCollaborators",
    "classify",
    "format_intent",
    "get_help_text",
    "get_suggestions",
    "is_command",
    "resolve",
    "suggest",
]
