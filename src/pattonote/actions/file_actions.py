"""Note file action handlers for PattoApp."""

from __future__ import annotations

import logging
import subprocess

from ..errors import WorkspaceError
from ..views import View
from ..widgets import FileList, NameModal, NoteEditor

logger = logging.getLogger(__name__)


class FileActionsMixin:
    """Mixin providing note file actions (new, rename, delete, save, sort, refresh)."""

    def _selected_entry(self):
        if self.navigator.current_view != View.FILE_LIST:
            return None
        entry = self.query_one(FileList).get_selected_file()
        if entry is None:
            self.notify("No note selected", severity="warning")
        return entry

    def action_new_note(self) -> None:
        """Ask for a name, then create the note and open it for editing."""
        if self.workspace is None:
            self.notify("Choose a workspace first", severity="warning")
            return
        self.push_screen(NameModal("New note"), self._on_new_note_dismissed)

    def _on_new_note_dismissed(self, name: str | None) -> None:
        if name is None:
            return
        self._navigate(self._create_note(name), "Could not create note")

    async def _create_note(self, name: str) -> None:
        entry = await self.workspace.create_note(name)
        self.notify(f"Created {entry.path}")
        await self.navigator.load_files()
        await self.navigator.open_note(entry.path)
        await self.navigator.toggle_edit()

    def action_rename_note(self) -> None:
        """Show the rename modal for the selected note."""
        entry = self._selected_entry()
        if entry is None:
            return
        self.push_screen(
            NameModal(f"Rename {entry.path}", entry.name),
            lambda name: self._on_rename_dismissed(entry.path, name),
        )

    def _on_rename_dismissed(self, path: str, name: str | None) -> None:
        if name is None:
            return
        self._navigate(self._rename_note(path, name), "Could not rename note")

    async def _rename_note(self, path: str, name: str) -> None:
        entry = await self.workspace.rename_note(path, name)
        self.notify(f"Renamed to {entry.path}")
        await self.navigator.load_files()

    def action_delete_note(self) -> None:
        """Delete the selected note after a second press."""
        entry = self._selected_entry()
        if entry is None:
            return

        if getattr(self, "_pending_delete", None) == entry.path:
            self._pending_delete = None
            self._navigate(self._delete_note(entry.path), "Error deleting note")
        else:
            self._pending_delete = entry.path
            self.notify(
                f"Press d again to delete {entry.path}",
                severity="warning",
                timeout=3,
            )

    async def _delete_note(self, path: str) -> None:
        await self.workspace.delete_note(path)
        self.notify(f"Deleted {path}")
        await self.navigator.load_files()

    def action_cycle_sort(self) -> None:
        if self.navigator.current_view != View.FILE_LIST:
            return
        sort_by = self.navigator.state.sort_by.next()
        self.config.sort_by = sort_by
        self.config.save()
        self._navigate(self.navigator.set_sort_by(sort_by))

    def action_refresh(self) -> None:
        """Reload the file list, and tasks when they are on screen."""
        self._navigate(self._refresh())

    async def _refresh(self) -> None:
        await self.navigator.load_files()
        if self.navigator.current_view == View.TASKS:
            await self.navigator.load_tasks()

    def action_save_note(self) -> None:
        if self.navigator.current_view != View.NOTE_EDIT:
            return
        self._navigate(self._save_note(), "Save failed")

    async def _save_note(self) -> None:
        editor = self.query_one(NoteEditor)
        try:
            await self.navigator.save_note()
        except WorkspaceError:
            editor.set_status("Save failed")
            raise
        editor.set_status("Saved")

    def on_note_editor_content_changed(self, event: NoteEditor.ContentChanged) -> None:
        self.navigator.set_note_content(event.content)

    def on_note_editor_auto_save_requested(self, event: NoteEditor.AutoSaveRequested) -> None:
        self.action_save_note()

    async def action_open_external(self) -> None:
        """Open the current note in the configured editor."""
        path = self.navigator.state.current_note
        if path is None or self.workspace is None:
            self.notify("No note open", severity="warning")
            return
        if self.navigator.current_view == View.NOTE_EDIT:
            self.notify("Leave edit mode first", severity="warning")
            return

        full_path = self.workspace.resolve(path)
        editor = self.config.editor
        with self.suspend():
            try:
                subprocess.run([editor, str(full_path)], check=False)
            except FileNotFoundError:
                self.notify(f"Editor '{editor}' not found", severity="error")
            except OSError as e:
                self.notify(f"Error opening editor: {e}", severity="error")

        self.workspace.invalidate(full_path)
        await self.navigator.reload_note()
