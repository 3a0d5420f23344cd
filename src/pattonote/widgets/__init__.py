"""pattonote widgets."""

from .file_list import FileList
from .name_modal import NameModal
from .note_editor import NoteEditor
from .note_view import NoteView
from .settings_panel import SettingsPanel
from .task_panel import TaskPanel

__all__ = [
    "FileList",
    "NameModal",
    "NoteEditor",
    "NoteView",
    "SettingsPanel",
    "TaskPanel",
]
