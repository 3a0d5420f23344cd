"""Tests for pattonote.navigation module."""

import asyncio

import pytest

from pattonote.back_signal import HistoryMarker
from pattonote.errors import NotFoundError, ValidationError, WorkspaceIOError
from pattonote.navigation import HistoryEntry, NavigationState, Navigator, ViewHistory
from pattonote.views import SortBy, View
from pattonote.workspace import FileEntry

from conftest import FakeWorkspace


def summary(navigator):
    """Observable navigation state, for before/after comparisons."""
    state = navigator.state
    return (
        state.current_view,
        [(e.view, e.context) for e in state.history],
        state.current_note,
        state.note_content,
        state.rendered_content,
        state.is_editing,
    )


class TestViewHistory:
    def test_starts_at_root(self):
        history = ViewHistory()
        assert history.views() == [View.FILE_LIST]
        assert len(history) == 1

    def test_push_pop_is_lifo(self):
        history = ViewHistory()
        history.push(HistoryEntry(View.TASKS))
        history.push(HistoryEntry(View.NOTE_VIEW))
        assert history.pop().view == View.NOTE_VIEW
        assert history.pop().view == View.TASKS
        assert history.views() == [View.FILE_LIST]

    def test_root_cannot_be_popped(self):
        history = ViewHistory()
        with pytest.raises(IndexError):
            history.pop()

    def test_merge_context_keeps_existing_keys(self):
        history = ViewHistory()
        history.merge_context(0, {"note": "a.pn", "scroll": 12})
        history.merge_context(0, {"note": "b.pn"})
        assert history[0].context == {"note": "b.pn", "scroll": 12}

    def test_merge_context_into_empty_entry(self):
        history = ViewHistory()
        history.merge_context(0, {})
        assert history[0].context == {}

    def test_copy_is_independent(self):
        history = ViewHistory()
        history.merge_context(0, {"note": "a.pn"})
        clone = history.copy()
        clone.push(HistoryEntry(View.TASKS))
        clone[0].context["note"] = "changed"
        assert len(history) == 1
        assert history[0].context == {"note": "a.pn"}

    def test_reset(self):
        history = ViewHistory()
        history.push(HistoryEntry(View.TASKS, {"x": 1}))
        history.reset()
        assert history.views() == [View.FILE_LIST]
        assert history.root.context is None


class TestNavigationState:
    def test_apply_updates_fields(self):
        state = NavigationState()
        state.apply({"current_note": "a.pn", "is_editing": True})
        assert state.current_note == "a.pn"
        assert state.is_editing is True

    def test_apply_rejects_unknown_fields(self):
        state = NavigationState()
        with pytest.raises(KeyError):
            state.apply({"current_note": "a.pn", "bogus": 1})
        assert state.current_note is None

    def test_apply_rejects_navigation_fields(self):
        state = NavigationState()
        with pytest.raises(KeyError):
            state.apply({"current_view": View.TASKS})
        assert state.current_view == View.FILE_LIST

    def test_snapshot_does_not_share_history(self):
        state = NavigationState()
        snapshot = state.snapshot()
        snapshot.history.push(HistoryEntry(View.TASKS))
        assert len(state.history) == 1


class TestInitialize:
    def test_single_root_entry(self, navigator, platform):
        assert navigator.depth == 1
        assert navigator.current_view == View.FILE_LIST
        assert platform.markers == (HistoryMarker(View.FILE_LIST, 0),)

    def test_reinitialize_drops_history(self, navigator, platform):
        navigator.state.history.push(HistoryEntry(View.TASKS))
        navigator.initialize()
        assert navigator.depth == 1
        assert len(platform) == 1


class TestNavigateTo:
    @pytest.mark.asyncio
    async def test_pushes_entry_and_marker(self, navigator, platform):
        await navigator.navigate_to(View.TASKS)
        assert navigator.current_view == View.TASKS
        assert navigator.depth == 2
        assert platform.markers[-1] == HistoryMarker(View.TASKS, 1)

    @pytest.mark.asyncio
    async def test_same_view_is_noop(self, navigator, platform):
        await navigator.navigate_to(View.TASKS)
        await navigator.navigate_to(View.TASKS)
        assert navigator.depth == 2
        assert len(platform) == 2

    @pytest.mark.asyncio
    async def test_root_view_is_noop_at_root(self, navigator):
        await navigator.navigate_to(View.FILE_LIST)
        assert navigator.depth == 1

    @pytest.mark.asyncio
    async def test_listeners_see_new_state(self, navigator):
        seen = []
        navigator.subscribe(lambda state: seen.append(state.current_view))
        await navigator.navigate_to(View.GIT_CONFIG)
        assert seen == [View.GIT_CONFIG]

    @pytest.mark.asyncio
    async def test_unsubscribe(self, navigator):
        seen = []
        listener = lambda state: seen.append(state.current_view)
        navigator.subscribe(listener)
        navigator.unsubscribe(listener)
        await navigator.navigate_to(View.GIT_CONFIG)
        assert seen == []


class TestOpenContextual:
    @pytest.mark.asyncio
    async def test_open_note_sets_payload(self, navigator, platform):
        await navigator.open_note("a.pn")
        state = navigator.state
        assert navigator.current_view == View.NOTE_VIEW
        assert navigator.depth == 2
        assert state.current_note == "a.pn"
        assert state.note_content == "A"
        assert state.rendered_content == "<A>"
        assert state.is_editing is False
        assert platform.markers[-1] == HistoryMarker(View.NOTE_VIEW, 1)

    @pytest.mark.asyncio
    async def test_view_without_save_context_leaves_entry_alone(self, navigator):
        await navigator.navigate_to(View.TASKS)
        await navigator.open_note("a.pn")
        assert navigator.history[1].view == View.TASKS
        assert navigator.history[1].context is None
        assert navigator.history[2].context is None

    @pytest.mark.asyncio
    async def test_note_context_saved_on_previous_entry(self, navigator):
        await navigator.open_note("a.pn")
        await navigator.open_note("b.pn")
        assert navigator.history[1].context == {
            "note": "a.pn",
            "content": "A",
            "rendered": "<A>",
        }
        assert navigator.history[2].context is None

    @pytest.mark.asyncio
    async def test_merge_preserves_earlier_fields(self, navigator):
        await navigator.open_note("a.pn")
        navigator.state.history.merge_context(1, {"scroll": 40})
        await navigator.open_note("b.pn")
        context = navigator.history[1].context
        assert context["scroll"] == 40
        assert context["note"] == "a.pn"

    @pytest.mark.asyncio
    async def test_bad_payload_changes_nothing(self, navigator):
        await navigator.open_note("a.pn")
        before = summary(navigator)
        with pytest.raises(KeyError):
            await navigator.open_contextual(View.TASKS, {"not_a_field": 1})
        assert summary(navigator) == before

    @pytest.mark.asyncio
    async def test_fetch_failure_changes_nothing(self, navigator, platform):
        await navigator.open_note("a.pn")
        before = summary(navigator)
        markers = platform.markers
        with pytest.raises(NotFoundError):
            await navigator.open_note("missing.pn")
        assert summary(navigator) == before
        assert platform.markers == markers


class TestGoBack:
    @pytest.mark.asyncio
    async def test_at_root_returns_false_without_mutation(self, navigator, platform):
        before = summary(navigator)
        assert await navigator.go_back() is False
        assert summary(navigator) == before
        assert platform.markers == (HistoryMarker(View.FILE_LIST, 0),)

    @pytest.mark.asyncio
    async def test_at_root_does_not_publish(self, navigator):
        seen = []
        navigator.subscribe(seen.append)
        await navigator.go_back()
        assert seen == []

    @pytest.mark.asyncio
    async def test_restores_previous_note(self, navigator):
        await navigator.open_note("a.pn")
        await navigator.open_note("b.pn")
        assert await navigator.go_back() is True
        state = navigator.state
        assert navigator.current_view == View.NOTE_VIEW
        assert state.current_note == "a.pn"
        assert state.note_content == "A"
        assert state.rendered_content == "<A>"
        assert state.is_editing is False

    @pytest.mark.asyncio
    async def test_leaving_note_clears_it(self, navigator):
        await navigator.open_note("a.pn")
        await navigator.go_back()
        state = navigator.state
        assert navigator.current_view == View.FILE_LIST
        assert state.current_note is None
        assert state.note_content == ""
        assert state.rendered_content == ""

    @pytest.mark.parametrize(
        "steps",
        [
            [("navigate", View.TASKS)],
            [("open", "a.pn"), ("open", "b.pn")],
            [("navigate", View.TASKS), ("open", "a.pn"), ("open", "b.pn"), ("navigate", View.GIT_CONFIG)],
            [("open", "a.pn"), ("navigate", View.TASKS), ("open", "c.pn"), ("open", "a.pn")],
        ],
    )
    @pytest.mark.asyncio
    async def test_forward_then_back_is_identity(self, navigator, steps):
        def shown():
            state = navigator.state
            if state.current_view not in (View.NOTE_VIEW, View.NOTE_EDIT):
                return (state.current_view,)
            return (state.current_view, state.current_note, state.note_content, state.rendered_content)

        before = summary(navigator)
        trail = []
        for kind, target in steps:
            trail.append(shown())
            if kind == "navigate":
                await navigator.navigate_to(target)
            else:
                await navigator.open_note(target)
        for expected in reversed(trail):
            assert await navigator.go_back() is True
            assert shown() == expected
        assert summary(navigator) == before
        assert await navigator.go_back() is False

    @pytest.mark.asyncio
    async def test_note_survives_detour_through_tasks(self, navigator):
        await navigator.open_note("a.pn")
        await navigator.navigate_to(View.TASKS)
        await navigator.open_note("c.pn")
        await navigator.go_back()
        assert navigator.current_view == View.TASKS
        assert navigator.state.current_note is None

        await navigator.go_back()
        state = navigator.state
        assert navigator.current_view == View.NOTE_VIEW
        assert state.current_note == "a.pn"
        assert state.note_content == "A"
        assert state.rendered_content == "<A>"
        assert state.is_editing is False

    @pytest.mark.asyncio
    async def test_edit_after_detour_saves_restored_note(self, navigator, fake_workspace):
        await navigator.open_note("a.pn")
        await navigator.navigate_to(View.TASKS)
        await navigator.open_note("c.pn")
        await navigator.go_back()
        await navigator.go_back()

        assert await navigator.toggle_edit() is True
        navigator.set_note_content("A2")
        assert await navigator.toggle_edit() is True
        assert fake_workspace.persisted == [("a.pn", "A2")]
        assert navigator.state.rendered_content == "<A2>"

    @pytest.mark.asyncio
    async def test_navigate_to_saves_note_context(self, navigator):
        await navigator.open_note("b.pn")
        await navigator.navigate_to(View.GIT_CONFIG)
        assert navigator.history[-2].context == {"note": "b.pn", "content": "B", "rendered": "<B>"}

    @pytest.mark.asyncio
    async def test_hook_order_leave_pop_enter(self, fake_workspace, platform, hooks):
        calls = []

        def on_leave(state, actions):
            calls.append(("leave", state.current_view, len(state.history)))
            return {}

        def on_enter(context, state):
            calls.append(("enter", state.current_view, len(state.history)))
            return {}

        hooks.register(View.TASKS, on_leave=on_leave)
        hooks.register(View.FILE_LIST, on_enter=on_enter)
        nav = Navigator(fake_workspace, platform, hooks=hooks)
        nav.initialize()
        await nav.navigate_to(View.TASKS)
        await nav.go_back()
        # Enter sees the popped stack but current_view not yet switched
        assert calls == [("leave", View.TASKS, 2), ("enter", View.TASKS, 1)]
        assert nav.current_view == View.FILE_LIST


class TestToggleEdit:
    @pytest.mark.asyncio
    async def test_enters_edit_mode(self, navigator, platform):
        await navigator.open_note("a.pn")
        assert await navigator.toggle_edit() is True
        assert navigator.current_view == View.NOTE_EDIT
        assert navigator.depth == 3
        assert navigator.state.is_editing is True
        assert navigator.history[2].context is None
        assert platform.markers[-1] == HistoryMarker(View.NOTE_EDIT, 2)

    @pytest.mark.asyncio
    async def test_outside_note_views_does_nothing(self, navigator):
        assert await navigator.toggle_edit() is False
        assert navigator.depth == 1

    @pytest.mark.asyncio
    async def test_back_from_edit_persists_latest_content_once(self, navigator, fake_workspace):
        await navigator.open_note("a.pn")
        await navigator.toggle_edit()
        navigator.set_note_content("A1")
        navigator.set_note_content("A2")
        assert await navigator.go_back() is True
        assert fake_workspace.persisted == [("a.pn", "A2")]
        assert navigator.current_view == View.NOTE_VIEW
        assert navigator.state.is_editing is False
        assert navigator.state.rendered_content == "<A2>"

    @pytest.mark.asyncio
    async def test_toggle_from_edit_goes_back(self, navigator, fake_workspace):
        await navigator.open_note("a.pn")
        await navigator.toggle_edit()
        assert await navigator.toggle_edit() is True
        assert navigator.current_view == View.NOTE_VIEW
        assert navigator.depth == 2
        assert fake_workspace.persisted == [("a.pn", "A")]

    @pytest.mark.asyncio
    async def test_persist_failure_still_completes_transition(self, navigator, fake_workspace, notifications):
        fake_workspace.fail_persist = True
        await navigator.open_note("a.pn")
        await navigator.toggle_edit()
        assert await navigator.go_back() is True
        assert navigator.current_view == View.NOTE_VIEW
        assert navigator.depth == 2
        assert navigator.state.is_editing is False
        assert navigator.state.rendered_content == "<A>"
        assert len(notifications) == 1
        assert "disk full" in notifications[0]

    @pytest.mark.asyncio
    async def test_leave_hook_error_is_reported(self, fake_workspace, platform, hooks, notifications):
        async def failing_leave(state, actions):
            raise WorkspaceIOError("boom")

        hooks.register(View.TASKS, on_leave=failing_leave)
        nav = Navigator(fake_workspace, platform, hooks=hooks, notify=notifications.append)
        nav.initialize()
        await nav.navigate_to(View.TASKS)
        assert await nav.go_back() is True
        assert nav.current_view == View.FILE_LIST
        assert "boom" in notifications[0]

    @pytest.mark.asyncio
    async def test_concurrent_backs_are_serialized(self, navigator, fake_workspace):
        fake_workspace.persist_delay = 0.05
        await navigator.open_note("a.pn")
        await navigator.toggle_edit()

        results = await asyncio.gather(navigator.go_back(), navigator.go_back())

        assert results == [True, True]
        assert navigator.depth == 1
        assert navigator.current_view == View.FILE_LIST
        assert fake_workspace.persisted == [("a.pn", "A")]
        assert navigator.history[0].context is None

    @pytest.mark.asyncio
    async def test_scenario(self, navigator, fake_workspace):
        assert navigator.depth == 1

        await navigator.open_note("a.pn")
        assert (navigator.depth, navigator.current_view) == (2, View.NOTE_VIEW)
        assert navigator.state.note_content == "A"

        await navigator.toggle_edit()
        assert (navigator.depth, navigator.current_view) == (3, View.NOTE_EDIT)

        assert await navigator.go_back() is True
        assert fake_workspace.persisted == [("a.pn", "A")]
        assert (navigator.depth, navigator.current_view) == (2, View.NOTE_VIEW)
        assert navigator.state.note_content == "A"

        assert await navigator.go_back() is True
        assert (navigator.depth, navigator.current_view) == (1, View.FILE_LIST)

        assert await navigator.go_back() is False


class TestClose:
    @pytest.mark.asyncio
    async def test_resets_from_any_depth(self, navigator, platform):
        await navigator.navigate_to(View.TASKS)
        await navigator.open_note("a.pn")
        await navigator.open_note("b.pn")
        await navigator.toggle_edit()
        await navigator.close()
        assert navigator.depth == 1
        assert navigator.current_view == View.FILE_LIST
        assert navigator.history[0].context is None
        assert navigator.state.current_note is None
        assert navigator.state.is_editing is False
        assert platform.markers == (HistoryMarker(View.FILE_LIST, 0),)

    @pytest.mark.asyncio
    async def test_at_root(self, navigator):
        await navigator.close()
        assert navigator.depth == 1


class TestStoreActions:
    @pytest.mark.asyncio
    async def test_save_note(self, navigator, fake_workspace):
        await navigator.open_note("a.pn")
        await navigator.toggle_edit()
        navigator.set_note_content("new")
        assert await navigator.save_note() == "<new>"
        assert navigator.state.rendered_content == "<new>"
        assert fake_workspace.persisted == [("a.pn", "new")]
        assert navigator.current_view == View.NOTE_EDIT

    @pytest.mark.asyncio
    async def test_save_note_failure_propagates(self, navigator, fake_workspace):
        fake_workspace.fail_persist = True
        await navigator.open_note("a.pn")
        with pytest.raises(WorkspaceIOError):
            await navigator.save_note()

    @pytest.mark.asyncio
    async def test_reload_note(self, navigator, fake_workspace):
        await navigator.open_note("a.pn")
        fake_workspace.notes["a.pn"] = "changed"
        await navigator.reload_note()
        assert navigator.state.note_content == "changed"
        assert navigator.state.rendered_content == "<changed>"
        assert navigator.depth == 2

    @pytest.mark.asyncio
    async def test_load_files(self, navigator, fake_workspace):
        entry = FileEntry("a.pn", "a", 1.0, 1.0, 0, 1)
        fake_workspace.files = [entry]
        await navigator.load_files()
        assert navigator.state.files == [entry]
        assert navigator.state.is_loading_files is False

    @pytest.mark.asyncio
    async def test_load_files_failure_is_reported(self, navigator, fake_workspace, notifications):
        async def failing(sort_by):
            raise WorkspaceIOError("unreadable")

        entry = FileEntry("a.pn", "a", 1.0, 1.0, 0, 1)
        navigator.state.files = [entry]
        fake_workspace.list_files = failing
        await navigator.load_files()
        assert navigator.state.files == [entry]
        assert navigator.state.is_loading_files is False
        assert "unreadable" in notifications[0]

    @pytest.mark.asyncio
    async def test_set_sort_by(self, navigator):
        await navigator.set_sort_by(SortBy.ALPHABETICAL)
        assert navigator.state.sort_by == SortBy.ALPHABETICAL

    @pytest.mark.asyncio
    async def test_load_tasks(self, navigator, fake_workspace):
        fake_workspace.tasks = object()
        await navigator.load_tasks()
        assert navigator.state.tasks is fake_workspace.tasks
        assert navigator.state.is_loading_tasks is False

    @pytest.mark.asyncio
    async def test_set_workspace_resets_history(self, navigator, platform):
        await navigator.open_note("a.pn")
        other = FakeWorkspace({"z.pn": "Z"})
        other.files = [FileEntry("z.pn", "z", 1.0, 1.0, 0, 1)]
        await navigator.set_workspace(other)
        assert navigator.workspace is other
        assert navigator.depth == 1
        assert navigator.state.current_note is None
        assert navigator.state.files == other.files
        assert platform.markers == (HistoryMarker(View.FILE_LIST, 0),)

    @pytest.mark.asyncio
    async def test_no_workspace(self, platform, hooks):
        nav = Navigator(None, platform, hooks=hooks)
        nav.initialize()
        await nav.load_files()
        assert nav.state.files == []
        with pytest.raises(ValidationError):
            await nav.open_note("a.pn")
