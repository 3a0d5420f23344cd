"""Main Textual application for pattonote."""

import logging
from pathlib import Path

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.widgets import ContentSwitcher, Footer, Header, Input

from .actions import FileActionsMixin, NavigationActionsMixin
from .back_signal import BackSignalAdapter, MarkerHistory
from .config import Config
from .navigation import NavigationState, Navigator
from .note_hooks import register_note_hooks
from .views import View
from .watcher import WorkspaceWatcher
from .widgets import FileList, NoteEditor, NoteView, SettingsPanel, TaskPanel
from .workspace import Workspace

logger = logging.getLogger(__name__)


class PattoApp(NavigationActionsMixin, FileActionsMixin, App):
    """pattonote - patto note browser TUI."""

    TITLE = "pattonote"
    SUB_TITLE = "Patto Note Browser"

    CSS = """
    #views {
        width: 100%;
        height: 1fr;
    }

    #views > * {
        border: solid $accent;
    }

    #views > *:focus-within {
        border: solid cyan;
    }

    #note_edit:focus-within {
        border: solid yellow;
    }
    """

    BINDINGS = [
        Binding("q", "quit", "Quit"),
        Binding("escape", "go_back", "Back"),
        Binding("e", "toggle_edit", "Edit"),
        Binding("c", "close_note", "Close"),
        Binding("t", "show_tasks", "Tasks"),
        Binding("g", "show_settings", "Settings"),
        Binding("s", "cycle_sort", "Sort"),
        Binding("r", "refresh", "Refresh"),
        Binding("n", "new_note", "New"),
        Binding("R", "rename_note", "Rename", show=False),
        Binding("d", "delete_note", "Delete", show=False),
        Binding("o", "open_external", "Editor", show=False),
        Binding("ctrl+s", "save_note", "Save"),
        Binding("?", "help", "Help"),
    ]

    def __init__(self, config: Config) -> None:
        super().__init__()
        self.config = config
        self.workspace = Workspace(config.workspace) if config.workspace else None
        self.platform_history = MarkerHistory()
        register_note_hooks()
        self.navigator = Navigator(
            self.workspace,
            self.platform_history,
            notify=lambda message: self.notify(message, severity="error"),
        )
        self.navigator.state.sort_by = config.sort_by
        self.back_signal = BackSignalAdapter(
            self.navigator,
            self.platform_history,
            on_exit=self.exit,
            on_root=lambda: self.notify("Press escape again to exit", timeout=3),
        )
        self._watcher: WorkspaceWatcher | None = None
        self._shown_view: View | None = None
        self._pending_delete: str | None = None

    def compose(self) -> ComposeResult:
        yield Header()
        with ContentSwitcher(id="views", initial=View.FILE_LIST.value):
            yield FileList(id=View.FILE_LIST.value)
            yield NoteView(id=View.NOTE_VIEW.value)
            yield NoteEditor(id=View.NOTE_EDIT.value)
            yield TaskPanel(id=View.TASKS.value)
            yield SettingsPanel(id=View.GIT_CONFIG.value)
        yield Footer()

    async def on_mount(self) -> None:
        """Initialize navigation and load the workspace."""
        self.navigator.subscribe(self._render_state)
        self.navigator.initialize()
        self.run_worker(self.back_signal.run(), name="back-signal", group="back-signal")

        if self.workspace is None:
            self.notify("Choose a workspace directory")
            await self.navigator.navigate_to(View.GIT_CONFIG)
            return

        self.sub_title = str(self.workspace.root)
        self._start_watcher()
        self._navigate(self.navigator.load_files(), "Failed to load files")

    async def on_unmount(self) -> None:
        """Clean up when app closes."""
        self.navigator.unsubscribe(self._render_state)
        self._stop_watcher()

    def _render_state(self, state: NavigationState) -> None:
        """Bring the widgets in line with navigator state."""
        view = state.current_view
        self.query_one("#views", ContentSwitcher).current = view.value
        self.query_one(FileList).update_files(state.files, state.sort_by, state.is_loading_files)

        if view == View.NOTE_VIEW:
            self.query_one(NoteView).show_note(state.current_note, state.rendered_content)
        elif view == View.NOTE_EDIT:
            editor = self.query_one(NoteEditor)
            # While editing the TextArea leads and note_content trails it
            if view != self._shown_view or state.current_note != editor.note:
                editor.load(state.current_note, state.note_content)
        elif view == View.TASKS:
            self.query_one(TaskPanel).update_tasks(state.tasks, state.is_loading_tasks)
        elif view == View.GIT_CONFIG:
            self.query_one(SettingsPanel).show(state.workspace_path, state.sort_by.label)

        if state.workspace_path is not None:
            self.sub_title = str(state.workspace_path)

        if view != self._shown_view:
            self._shown_view = view
            self._focus_view(view)

    def _focus_view(self, view: View) -> None:
        if view == View.FILE_LIST:
            self.query_one(FileList).list_view.focus()
        elif view == View.NOTE_VIEW:
            self.query_one(NoteView).scroll_view.focus()
        elif view == View.NOTE_EDIT:
            self.query_one(NoteEditor).text_area.focus()
        elif view == View.TASKS:
            self.query_one(TaskPanel).list_view.focus()
        elif view == View.GIT_CONFIG:
            self.query_one("#workspace-input", Input).focus()

    def _start_watcher(self) -> None:
        self._stop_watcher()
        if self.workspace is None or not self.config.watcher.enabled:
            return
        self._watcher = WorkspaceWatcher(
            self.workspace.root,
            self._on_notes_changed,
            debounce_seconds=self.config.watcher.debounce_seconds,
        )
        self._watcher.start()

    def _stop_watcher(self) -> None:
        if self._watcher is not None:
            self._watcher.stop()
            self._watcher = None

    def _on_notes_changed(self, paths: list[Path]) -> None:
        """Handle note changes on disk (called from watcher thread)."""
        self.call_from_thread(self._handle_notes_changed, paths)

    def _handle_notes_changed(self, paths: list[Path]) -> None:
        if self.workspace is None:
            return
        for path in paths:
            self.workspace.invalidate(path)
        logger.debug("Reloading after %d changed notes", len(paths))
        self._navigate(self._reload_after_change(paths))

    async def _reload_after_change(self, paths: list[Path]) -> None:
        await self.navigator.load_files()
        view = self.navigator.current_view
        if view == View.TASKS:
            await self.navigator.load_tasks()
        elif view == View.NOTE_VIEW:
            current = self.navigator.state.current_note
            if current is not None:
                current_path = self.workspace.resolve(current)
                if any(Path(p).resolve() == current_path for p in paths):
                    await self.navigator.reload_note()


def run_app(config: Config) -> None:
    """Run the pattonote application."""
    app = PattoApp(config)
    app.run()
