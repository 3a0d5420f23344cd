"""Navigation action handlers for PattoApp."""

from __future__ import annotations

import logging
from typing import Awaitable

from ..errors import NotFoundError, WorkspaceError
from ..views import View
from ..widgets import FileList, NoteView, SettingsPanel, TaskPanel
from ..workspace import Workspace

logger = logging.getLogger(__name__)


class NavigationActionsMixin:
    """Mixin providing view navigation (back, edit, close, tasks, settings, links)."""

    def _navigate(self, transition: Awaitable, failure: str = "Navigation failed") -> None:
        """Run a navigator transition in a worker, reporting workspace errors."""

        async def run() -> None:
            try:
                await transition
            except WorkspaceError as e:
                logger.warning("%s: %s", failure, e)
                self.notify(f"{failure}: {e}", severity="error")

        self.run_worker(run(), group="navigation")

    def action_go_back(self) -> None:
        """Go back one view; at the root, press twice to exit."""
        self.back_signal.request_back()

    def action_toggle_edit(self) -> None:
        if self.navigator.current_view not in (View.NOTE_VIEW, View.NOTE_EDIT):
            return
        self._navigate(self.navigator.toggle_edit())

    def action_close_note(self) -> None:
        """Return to the file list, saving an open edit first."""
        if self.navigator.current_view == View.FILE_LIST:
            return
        self._navigate(self._close_note(), "Close failed")

    async def _close_note(self) -> None:
        # close() discards history without running leave hooks
        if self.navigator.state.is_editing:
            await self.navigator.save_note()
        await self.navigator.close()

    def action_show_tasks(self) -> None:
        if self.navigator.workspace is None:
            self.notify("Choose a workspace first", severity="warning")
            return
        self._navigate(self._show_tasks())

    async def _show_tasks(self) -> None:
        await self.navigator.navigate_to(View.TASKS)
        await self.navigator.load_tasks()

    def action_show_settings(self) -> None:
        self._navigate(self.navigator.navigate_to(View.GIT_CONFIG))

    def on_file_list_file_selected(self, event: FileList.FileSelected) -> None:
        self._navigate(self.navigator.open_note(event.path), "Could not open note")

    def on_note_view_note_link_clicked(self, event: NoteView.NoteLinkClicked) -> None:
        self._navigate(self._follow_link(event.target, event.anchor), "Could not open link")

    async def _follow_link(self, target: str, anchor: str | None) -> None:
        try:
            await self.navigator.open_note(target)
        except NotFoundError:
            self.notify(f"Link target not found: {target}", severity="warning")
            return
        if anchor:
            logger.debug("Opened %s at anchor %s", target, anchor)

    def on_note_view_external_link_clicked(self, event: NoteView.ExternalLinkClicked) -> None:
        self.open_url(event.href)

    def on_task_panel_task_selected(self, event: TaskPanel.TaskSelected) -> None:
        self._navigate(self.navigator.open_note(event.task.file_path), "Could not open note")

    def on_settings_panel_workspace_submitted(self, event: SettingsPanel.WorkspaceSubmitted) -> None:
        self._navigate(self._change_workspace(event.path), "Could not open workspace")

    async def _change_workspace(self, path) -> None:
        self.workspace = Workspace(path)
        await self.navigator.set_workspace(self.workspace)
        self.config.workspace = path
        self.config.save()
        self._start_watcher()
        self.notify(f"Workspace: {path}")

    def action_help(self) -> None:
        """Show help information."""
        self.notify(
            "esc=Back, e=Edit, c=Close, t=Tasks, g=Settings, s=Sort, r=Refresh, "
            "n=New, R=Rename, d=Delete, o=External editor, ctrl+s=Save, q=Quit",
            timeout=5,
        )
