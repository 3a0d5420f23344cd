"""Navigation state management for view transitions.

The navigator owns the current view and a history stack of entries. Forward
navigation pushes exactly one entry and a back transition pops exactly one,
so the stack always replays in LIFO order. View-specific behaviour lives in
the hook registry: the navigator asks the view being left for context to
save or cleanup to run, and the view being returned to for context to
restore.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import TYPE_CHECKING, Any, Callable, Iterator

from .errors import ValidationError, WorkspaceError
from .hooks import Context, HookRegistry, StateUpdates, registry as default_registry
from .views import ROOT_VIEW, SortBy, View
from .workspace import FileEntry, NoteSource

if TYPE_CHECKING:
    from .back_signal import PlatformHistory
    from .tasks import TaskAggregation

logger = logging.getLogger(__name__)

Listener = Callable[["NavigationState"], None]
Notifier = Callable[[str], None]


@dataclass
class HistoryEntry:
    """One step of navigation history.

    ``context`` is only ever written by the entry's own view save_context hook.
    """

    view: View
    context: Context | None = None


class ViewHistory:
    """Stack of history entries addressed by index, index 0 being the root."""

    def __init__(self, root: View = ROOT_VIEW) -> None:
        self._entries: list[HistoryEntry] = [HistoryEntry(root)]

    def push(self, entry: HistoryEntry) -> None:
        """Push an entry onto the stack."""
        self._entries.append(entry)

    def pop(self) -> HistoryEntry:
        """Pop and return the most recent entry. The root is never popped."""
        if len(self._entries) == 1:
            raise IndexError("Cannot pop the root history entry")
        return self._entries.pop()

    def merge_context(self, index: int, context: Context) -> None:
        """Merge saved context into an entry.

        Keys already saved on the entry and absent from ``context`` are kept.
        """
        entry = self._entries[index]
        merged = dict(entry.context or {})
        merged.update(context)
        entry.context = merged

    def reset(self, root: View = ROOT_VIEW) -> None:
        """Drop everything but a fresh root entry."""
        self._entries = [HistoryEntry(root)]

    def copy(self) -> "ViewHistory":
        clone = ViewHistory.__new__(ViewHistory)
        clone._entries = [
            HistoryEntry(e.view, dict(e.context) if e.context is not None else None)
            for e in self._entries
        ]
        return clone

    @property
    def last(self) -> HistoryEntry:
        return self._entries[-1]

    @property
    def root(self) -> HistoryEntry:
        return self._entries[0]

    def entries(self) -> tuple[HistoryEntry, ...]:
        return tuple(self._entries)

    def views(self) -> list[View]:
        return [entry.view for entry in self._entries]

    def __getitem__(self, index: int) -> HistoryEntry:
        return self._entries[index]

    def __iter__(self) -> Iterator[HistoryEntry]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)


@dataclass
class NavigationState:
    """Everything the view layer renders from."""

    current_view: View = ROOT_VIEW
    history: ViewHistory = field(default_factory=ViewHistory)
    workspace_path: Path | None = None

    # Current note
    current_note: str | None = None
    note_content: str = ""
    rendered_content: str = ""
    is_editing: bool = False

    # Files
    files: list[FileEntry] = field(default_factory=list)
    sort_by: SortBy = SortBy.LAST_MODIFIED
    is_loading_files: bool = False

    # Tasks
    tasks: TaskAggregation | None = None
    is_loading_tasks: bool = False

    def snapshot(self) -> "NavigationState":
        """Copy of the state that hooks may read freely."""
        return replace(self, history=self.history.copy(), files=list(self.files))

    def apply(self, updates: StateUpdates) -> None:
        """Apply field updates, all or nothing."""
        unknown = set(updates) - _UPDATABLE_FIELDS
        if unknown:
            raise KeyError(f"Unknown or read-only state fields: {sorted(unknown)}")
        for name, value in updates.items():
            setattr(self, name, value)


# The navigator alone moves current_view and history
_UPDATABLE_FIELDS = {f.name for f in fields(NavigationState)} - {"current_view", "history"}

_CLEARED_NOTE: StateUpdates = {
    "current_note": None,
    "note_content": "",
    "rendered_content": "",
    "is_editing": False,
}


class LeaveActions:
    """Persist operations handed to on_leave hooks.

    Failures are reported as notifications and yield None, so a failed save
    never stops a back transition.
    """

    def __init__(self, navigator: "Navigator") -> None:
        self._navigator = navigator

    async def persist_editable_content(self, path: str | None, content: str) -> str | None:
        workspace = self._navigator.workspace
        try:
            if workspace is None:
                raise ValidationError("No workspace configured")
            return await workspace.persist_editable_content(path, content)
        except WorkspaceError as e:
            self._navigator.report(f"Save failed: {e}")
            return None


class Navigator:
    """View navigation state machine.

    Every transition runs under one lock: a call made while another
    transition is suspended (e.g. a back press while the previous back is
    saving) waits for it to finish.
    """

    def __init__(
        self,
        workspace: NoteSource | None,
        platform: PlatformHistory,
        hooks: HookRegistry | None = None,
        notify: Notifier | None = None,
    ) -> None:
        self.workspace = workspace
        self.platform = platform
        self.hooks = hooks if hooks is not None else default_registry
        self.notify = notify
        self.state = NavigationState(
            workspace_path=workspace.root if workspace is not None else None,
        )
        self._lock = asyncio.Lock()
        self._listeners: list[Listener] = []
        self._leave_actions = LeaveActions(self)

    # --- read-only views -------------------------------------------------

    @property
    def current_view(self) -> View:
        return self.state.current_view

    @property
    def depth(self) -> int:
        return len(self.state.history)

    @property
    def history(self) -> tuple[HistoryEntry, ...]:
        return self.state.history.entries()

    @property
    def is_busy(self) -> bool:
        """True while a transition is in flight."""
        return self._lock.locked()

    # --- listeners -------------------------------------------------------

    def subscribe(self, listener: Listener) -> None:
        """Call listener with the state after every change."""
        self._listeners.append(listener)

    def unsubscribe(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _publish(self) -> None:
        for listener in list(self._listeners):
            listener(self.state)

    def report(self, message: str) -> None:
        """Surface a non-fatal failure to the user."""
        logger.warning(message)
        if self.notify is not None:
            self.notify(message)

    # --- transitions -----------------------------------------------------

    def initialize(self) -> None:
        """Reset history to the root and mark it as the platform's root."""
        self.state.history.reset(ROOT_VIEW)
        self.state.current_view = ROOT_VIEW
        self.platform.replace_marker(ROOT_VIEW, 0)
        logger.debug("Navigation initialized at %s", ROOT_VIEW.value)
        self._publish()

    def _push(self, view: View) -> None:
        self.state.history.push(HistoryEntry(view))
        self.state.current_view = view
        self.platform.push_marker(view, len(self.state.history) - 1)
        logger.debug("Navigated to %s (depth %d)", view.value, len(self.state.history))

    def _save_context(self) -> None:
        history = self.state.history
        context = self.hooks.call_save_context(self.state.current_view, self.state.snapshot())
        if context is not None:
            history.merge_context(len(history) - 1, context)

    async def navigate_to(self, view: View) -> None:
        """Push a plain entry for view. Navigating to the current view does nothing."""
        async with self._lock:
            if view == self.state.current_view:
                return
            self._save_context()
            self._push(view)
        self._publish()

    def _open_contextual(self, view: View, payload: StateUpdates) -> None:
        # Reject a bad payload before anything moves
        self.state.snapshot().apply(payload)

        self._save_context()
        self._push(view)
        self.state.apply(payload)

    async def open_contextual(self, view: View, payload: StateUpdates | None = None) -> None:
        """Save the current view's context on its entry, then push view."""
        async with self._lock:
            self._open_contextual(view, payload or {})
        self._publish()

    async def open_note(self, path: str) -> None:
        """Load a note and show it.

        If loading fails nothing changes and the error propagates.
        """
        async with self._lock:
            if self.workspace is None:
                raise ValidationError("No workspace configured")
            note = await self.workspace.fetch_note_for_display(path)
            self._open_contextual(
                View.NOTE_VIEW,
                {
                    "current_note": note.path,
                    "note_content": note.raw_content,
                    "rendered_content": note.rendered,
                    "is_editing": False,
                },
            )
        self._publish()

    async def _go_back(self) -> bool:
        history = self.state.history
        if len(history) <= 1:
            return False

        leaving = self.state.current_view
        try:
            updates = await self.hooks.call_on_leave(
                leaving, self.state.snapshot(), self._leave_actions
            )
        except WorkspaceError as e:
            self.report(f"Leaving {leaving.value} failed: {e}")
            updates = {}
        self.state.apply(updates)

        history.pop()
        previous = history.last
        context = dict(previous.context) if previous.context is not None else None
        updates = self.hooks.call_on_enter(previous.view, context, self.state.snapshot())
        self.state.apply(updates)
        self.state.current_view = previous.view
        logger.debug("Back from %s to %s (depth %d)", leaving.value, previous.view.value, len(history))
        return True

    async def go_back(self) -> bool:
        """Return to the previous view.

        Returns False, changing nothing, when already at the root; the caller
        decides whether that means leaving the application.
        """
        async with self._lock:
            navigated = await self._go_back()
        if navigated:
            self._publish()
        return navigated

    async def toggle_edit(self) -> bool:
        """Enter edit mode from the note view, or leave it with a back transition."""
        async with self._lock:
            view = self.state.current_view
            if view == View.NOTE_EDIT:
                navigated = await self._go_back()
            elif view == View.NOTE_VIEW:
                self._push(View.NOTE_EDIT)
                self.state.is_editing = True
                navigated = True
            else:
                navigated = False
        if navigated:
            self._publish()
        return navigated

    async def close(self) -> None:
        """Drop all history and saved context and return to the root."""
        async with self._lock:
            self.state.history.reset(ROOT_VIEW)
            self.state.current_view = ROOT_VIEW
            self.state.apply(_CLEARED_NOTE)
            self.platform.replace_marker(ROOT_VIEW, 0)
            logger.debug("Navigation closed")
        self._publish()

    # --- store actions ---------------------------------------------------

    def set_note_content(self, content: str) -> None:
        """Update the editor buffer without saving."""
        self.state.note_content = content

    async def save_note(self) -> str:
        """Persist the current note now. Errors propagate to the caller."""
        async with self._lock:
            if self.workspace is None:
                raise ValidationError("No workspace configured")
            rendered = await self.workspace.persist_editable_content(
                self.state.current_note, self.state.note_content
            )
            self.state.rendered_content = rendered
        self._publish()
        return rendered

    async def reload_note(self) -> None:
        """Re-read the current note from disk, e.g. after an external edit."""
        async with self._lock:
            path = self.state.current_note
            if self.workspace is None or path is None:
                return
            try:
                note = await self.workspace.fetch_note_for_display(path)
            except WorkspaceError as e:
                self.report(f"Failed to reload {path}: {e}")
                return
            self.state.apply(
                {"note_content": note.raw_content, "rendered_content": note.rendered}
            )
        self._publish()

    async def load_files(self) -> None:
        """Reload the file list. Failures are reported, not raised."""
        if self.workspace is None:
            return
        self.state.is_loading_files = True
        self._publish()
        try:
            self.state.files = await self.workspace.list_files(self.state.sort_by)
        except WorkspaceError as e:
            self.report(f"Failed to load files: {e}")
        finally:
            self.state.is_loading_files = False
        self._publish()

    async def set_sort_by(self, sort_by: SortBy) -> None:
        self.state.sort_by = sort_by
        await self.load_files()

    async def load_tasks(self) -> None:
        """Reload tasks. Failures are reported, not raised."""
        if self.workspace is None:
            return
        self.state.is_loading_tasks = True
        self._publish()
        try:
            self.state.tasks = await self.workspace.list_tasks()
        except WorkspaceError as e:
            self.report(f"Failed to load tasks: {e}")
        finally:
            self.state.is_loading_tasks = False
        self._publish()

    async def set_workspace(self, workspace: NoteSource) -> None:
        """Switch to another workspace, discarding history from the old one."""
        async with self._lock:
            self.workspace = workspace
            self.state.workspace_path = workspace.root
            self.state.history.reset(ROOT_VIEW)
            self.state.current_view = ROOT_VIEW
            self.state.apply({**_CLEARED_NOTE, "files": [], "tasks": None})
            self.platform.replace_marker(ROOT_VIEW, 0)
            logger.info("Workspace set to %s", workspace.root)
        await self.load_files()
