"""Tests for the command bar state machine."""

import asyncio
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from taskboard.commands.controller import ControllerState, InputController
from taskboard.commands.grammar import IntentKind
from taskboard.commands.resolver import ResolutionKind
from taskboard.commands.suggestions import ADD_TEMPLATE, ADD_TO_USER_TEMPLATE
from taskboard.exceptions import SearchError
from taskboard.services.session import SessionInfo

ROSTER = [SimpleNamespace(id=1, name="john"), SimpleNamespace(id=2, name="joanna"), SimpleNamespace(id=3, name="bob")]


def make_task(task_id, title, owner="john"):
    return SimpleNamespace(id=task_id, title=title, user=SimpleNamespace(name=owner))


@pytest.fixture
def collaborators():
    mock = MagicMock()
    mock.search_tasks = AsyncMock(return_value=[])
    mock.lookup_user_by_name = AsyncMock(return_value=None)
    mock.create_task = AsyncMock(return_value=make_task(10, "created"))
    mock.get_active_session = AsyncMock(
        return_value=SessionInfo(team_id=1, team_name="acme", current_user_id=1, current_user_name="john")
    )
    return mock


@pytest.fixture
def callbacks():
    return SimpleNamespace(
        on_user_select=MagicMock(),
        on_focus_release=MagicMock(),
        on_focus_request=MagicMock(),
    )


@pytest.fixture
def controller(collaborators, callbacks):
    return InputController(
        collaborators,
        lambda: ROSTER,
        on_user_select=callbacks.on_user_select,
        on_focus_release=callbacks.on_focus_release,
        on_focus_request=callbacks.on_focus_request,
    )


def run(coro):
    return asyncio.run(coro)


def assert_idle(controller):
    assert controller.state == ControllerState.IDLE
    assert controller.text == ""
    assert controller.current_intent_kind is None
    assert controller.is_open is False
    assert controller.suggestions == []
    assert controller.results == []
    assert controller.error_message is None
    assert controller.loading is False
    assert controller.show_help is False


class TestInputChange:
    """Tests for live input handling."""

    def test_initial_state(self, controller):
        assert_idle(controller)

    def test_command_input_suggests(self, controller, collaborators):
        run(controller.on_input_change(":add @jo"))

        assert controller.state == ControllerState.SUGGESTING
        assert controller.suggestions == [":add @john - ", ":add @joanna - "]
        assert controller.is_open
        collaborators.search_tasks.assert_not_called()

    def test_command_input_clears_results(self, controller, collaborators):
        collaborators.search_tasks.return_value = [make_task(1, "bug")]
        run(controller.on_input_change("bug"))
        assert controller.results

        run(controller.on_input_change(":add"))

        assert controller.results == []
        assert controller.suggestions == [ADD_TEMPLATE, ADD_TO_USER_TEMPLATE]

    def test_command_without_suggestions_stays_closed(self, controller):
        run(controller.on_input_change(":deploy"))
        assert controller.state == ControllerState.SUGGESTING
        assert controller.current_intent_kind == IntentKind.INVALID
        assert controller.is_open is False

    def test_plain_input_searches(self, controller, collaborators):
        tasks = [make_task(1, "Fix header")]
        collaborators.search_tasks.return_value = tasks

        run(controller.on_input_change("  header "))

        assert controller.state == ControllerState.SEARCHING
        assert controller.current_intent_kind == IntentKind.SEARCH
        assert controller.results == tasks
        assert controller.is_open
        assert controller.loading is False
        collaborators.search_tasks.assert_awaited_once_with("header")

    def test_no_results_when_idle_keeps_dropdown_closed(self, controller):
        run(controller.on_input_change("nothing"))
        assert controller.results == []
        assert controller.is_open is False
        assert controller.show_no_results is False

    def test_no_results_after_open_dropdown(self, controller, collaborators):
        collaborators.search_tasks.return_value = [make_task(1, "bug")]
        run(controller.on_input_change("bug"))
        collaborators.search_tasks.return_value = []

        run(controller.on_input_change("bugzilla"))

        assert controller.is_open
        assert controller.results == []
        assert controller.show_no_results

    def test_empty_input_returns_to_idle(self, controller):
        run(controller.on_input_change(":add"))
        run(controller.on_input_change("   "))
        assert controller.state == ControllerState.IDLE
        assert controller.suggestions == []

    def test_search_failure_shows_error(self, controller, collaborators):
        collaborators.search_tasks.side_effect = SearchError("boom")

        run(controller.on_input_change("bug"))

        assert controller.state == ControllerState.ERROR_SHOWN
        assert controller.error_message == "Search failed"
        assert controller.loading is False

    def test_typing_clears_error(self, controller):
        run(controller.on_input_change(":nope"))
        run(controller.on_enter())
        assert controller.error_message

        run(controller.on_input_change(":nope2"))

        assert controller.error_message is None


class TestEnter:
    """Tests for submitting input."""

    def test_help(self, controller, collaborators):
        run(controller.on_input_change(":HELP"))

        resolution = run(controller.on_enter())

        assert resolution.kind == ResolutionKind.HELP_SHOWN
        assert controller.state == ControllerState.HELP_SHOWN
        assert controller.show_help
        assert ":search query" in controller.help_text
        collaborators.search_tasks.assert_not_called()

    def test_add_task_success_resets(self, controller, collaborators):
        run(controller.on_input_change(":add Write docs"))

        resolution = run(controller.on_enter())

        assert resolution.kind == ResolutionKind.TASK_CREATED
        collaborators.create_task.assert_awaited_once_with("Write docs", "", 1)
        assert_idle(controller)

    def test_unknown_user_keeps_input(self, controller, collaborators):
        run(controller.on_input_change(":add @ghost - Something"))

        resolution = run(controller.on_enter())

        assert resolution.message == "User @ghost not found"
        assert controller.state == ControllerState.ERROR_SHOWN
        assert controller.error_message == "User @ghost not found"
        assert controller.text == ":add @ghost - Something"
        collaborators.create_task.assert_not_called()

    def test_invalid_keeps_input(self, controller):
        run(controller.on_input_change(":add @bad!name - title"))

        run(controller.on_enter())

        assert controller.state == ControllerState.ERROR_SHOWN
        assert controller.error_message == "Username can only contain letters, numbers, and underscores"
        assert controller.text == ":add @bad!name - title"

    def test_explicit_search(self, controller, collaborators):
        collaborators.search_tasks.return_value = [make_task(1, "bug")]
        run(controller.on_input_change(":search bug"))

        resolution = run(controller.on_enter())

        assert resolution.kind == ResolutionKind.SEARCHED
        assert controller.state == ControllerState.SEARCHING
        assert len(controller.results) == 1
        collaborators.search_tasks.assert_awaited_once_with("bug")

    def test_blank_enter_does_nothing(self, controller, collaborators):
        assert run(controller.on_enter()) is None
        assert_idle(controller)

    def test_collaborator_crash_is_shown(self, controller, collaborators):
        collaborators.create_task.side_effect = RuntimeError("connection reset")
        run(controller.on_input_change(":add Something"))

        resolution = run(controller.on_enter())

        assert resolution.is_error
        assert controller.error_message == "connection reset"
        assert controller.state == ControllerState.ERROR_SHOWN


class TestEscape:
    """Escape always returns to an empty idle bar."""

    @pytest.mark.parametrize("text", [":add @jo", "header", ":help", ":nope", ":add Write docs"])
    def test_escape_after_change(self, controller, callbacks, text):
        run(controller.on_input_change(text))
        controller.on_escape()
        assert_idle(controller)
        callbacks.on_focus_release.assert_called_once()

    @pytest.mark.parametrize("text", [":help", ":nope", "header", ":add @ghost - x"])
    def test_escape_after_enter(self, controller, text):
        run(controller.on_input_change(text))
        run(controller.on_enter())
        controller.on_escape()
        assert_idle(controller)

    def test_escape_after_selecting_suggestion(self, controller):
        controller.select_suggestion(":add task title")
        assert controller.state == ControllerState.TYPING
        controller.on_escape()
        assert_idle(controller)

    def test_escape_when_idle(self, controller):
        controller.on_escape()
        assert_idle(controller)


class TestStaleResponses:
    """Responses for superseded input are dropped."""

    def test_slow_search_superseded_by_newer_input(self, controller, collaborators):
        async def scenario():
            release = asyncio.Event()
            old = [make_task(1, "old")]
            new = [make_task(2, "new")]

            async def search(query):
                if query == "old":
                    await release.wait()
                    return old
                return new

            collaborators.search_tasks.side_effect = search

            slow = asyncio.create_task(controller.on_input_change("old"))
            await asyncio.sleep(0)
            await controller.on_input_change("new")
            release.set()
            await slow
            return new

        new = run(scenario())

        assert controller.text == "new"
        assert controller.results == new

    def test_escape_discards_in_flight_create(self, controller, collaborators):
        async def scenario():
            release = asyncio.Event()

            async def create(title, description, owner):
                await release.wait()
                return make_task(10, title)

            collaborators.create_task.side_effect = create
            await controller.on_input_change(":add @ghost2 - x")
            collaborators.lookup_user_by_name.return_value = SimpleNamespace(id=2, name="ghost2")

            pending = asyncio.create_task(controller.on_enter())
            await asyncio.sleep(0)
            controller.on_escape()
            release.set()
            return await pending

        result = run(scenario())

        assert result is None
        assert_idle(controller)

    def test_click_outside_keeps_in_flight_create(self, controller, collaborators):
        """A task created while focus was elsewhere still clears the input."""
        async def scenario():
            release = asyncio.Event()

            async def create(title, description, owner):
                await release.wait()
                return make_task(10, title)

            collaborators.create_task.side_effect = create
            await controller.on_input_change(":add write docs")

            pending = asyncio.create_task(controller.on_enter())
            await asyncio.sleep(0)
            await asyncio.sleep(0)
            controller.on_click_outside()
            assert controller.loading
            release.set()
            return await pending

        result = run(scenario())

        assert result.kind == ResolutionKind.TASK_CREATED
        assert collaborators.create_task.await_count == 1
        assert_idle(controller)

    def test_click_outside_after_error_is_idle(self, controller):
        run(controller.on_input_change(":nope"))
        run(controller.on_enter())
        assert controller.state == ControllerState.ERROR_SHOWN

        controller.on_click_outside()

        assert controller.state == ControllerState.IDLE
        assert controller.error_message is None
        assert controller.text == ":nope"

    def test_generation_increases(self, controller):
        start = controller.generation
        run(controller.on_input_change("a"))
        controller.on_escape()
        assert controller.generation == start + 2


class TestSelection:
    """Tests for choosing dropdown entries."""

    def test_select_suggestion(self, controller, callbacks, collaborators):
        run(controller.on_input_change(":add @jo"))

        controller.select_suggestion(":add @joanna - ")

        assert controller.text == ":add @joanna - "
        assert controller.suggestions == []
        assert controller.is_open is False
        assert controller.state == ControllerState.TYPING
        callbacks.on_focus_request.assert_called_once()
        collaborators.create_task.assert_not_called()

    def test_select_result_switches_user(self, controller, callbacks, collaborators):
        task = make_task(5, "Review", owner="joanna")
        collaborators.search_tasks.return_value = [task]
        run(controller.on_input_change("review"))

        assert controller.select_result(task) is True

        callbacks.on_user_select.assert_called_once_with(ROSTER[1])
        assert_idle(controller)

    def test_select_result_from_mapping(self, controller, callbacks):
        task = {"id": 5, "title": "Review", "user": {"name": "bob"}}
        assert controller.select_result(task) is True
        callbacks.on_user_select.assert_called_once_with(ROSTER[2])

    def test_select_result_unknown_owner_is_noop(self, controller, callbacks, collaborators):
        task = make_task(5, "Review", owner="stranger")
        collaborators.search_tasks.return_value = [task]
        run(controller.on_input_change("review"))

        assert controller.select_result(task) is False

        callbacks.on_user_select.assert_not_called()
        assert controller.results == [task]

    def test_click_outside_closes_dropdown(self, controller, collaborators):
        collaborators.search_tasks.return_value = [make_task(1, "bug")]
        run(controller.on_input_change("bug"))

        controller.on_click_outside()

        assert controller.state == ControllerState.IDLE
        assert controller.is_open is False
        assert controller.text == "bug"

    def test_focus_reopens_dropdown(self, controller, collaborators):
        collaborators.search_tasks.return_value = [make_task(1, "bug")]
        run(controller.on_input_change("bug"))
        controller.on_click_outside()

        controller.on_focus()

        assert controller.is_open

    def test_focus_on_empty_input_stays_closed(self, controller):
        controller.on_focus()
        assert controller.is_open is False
