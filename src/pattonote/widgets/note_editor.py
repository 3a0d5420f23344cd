"""Plain text editor for patto notes."""

from textual.app import ComposeResult
from textual.containers import Vertical
from textual.message import Message
from textual.timer import Timer
from textual.widgets import Static, TextArea

from .note_view import note_title

# Seconds of typing inactivity before an auto-save
AUTO_SAVE_DELAY = 1.0


class NoteEditor(Vertical):
    """Widget for editing the current note."""

    class ContentChanged(Message):
        """Message emitted when the buffer changes."""

        def __init__(self, content: str) -> None:
            super().__init__()
            self.content = content

    class AutoSaveRequested(Message):
        """Message emitted once typing has paused."""

    DEFAULT_CSS = """
    NoteEditor {
        width: 1fr;
        height: 1fr;
    }

    NoteEditor > #editor-header {
        background: $primary-background;
        color: $warning;
        text-style: bold;
        padding: 0 1;
        height: 1;
    }

    NoteEditor > TextArea {
        height: 1fr;
    }

    NoteEditor > #editor-footer {
        color: $text-muted;
        padding: 0 1;
        height: 1;
    }
    """

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._note: str | None = None
        self._loaded_text: str | None = None
        self._save_timer: Timer | None = None

    def compose(self) -> ComposeResult:
        yield Static("EDIT", id="editor-header")
        yield TextArea(id="editor-text", tab_behavior="indent")
        yield Static("", id="editor-footer")

    @property
    def text_area(self) -> TextArea:
        return self.query_one("#editor-text", TextArea)

    @property
    def note(self) -> str | None:
        """Path of the note in the buffer."""
        return self._note

    def load(self, path: str | None, content: str) -> None:
        """Load a note into the editor unless it is already there."""
        text_area = self.text_area
        if path == self._note and text_area.text == content:
            return
        self._cancel_auto_save()
        self._note = path
        self.query_one("#editor-header", Static).update(f"EDIT - {note_title(path)}")
        self._loaded_text = content
        text_area.load_text(content)
        self.set_status("")

    def set_status(self, status: str) -> None:
        self.query_one("#editor-footer", Static).update(status)

    def _cancel_auto_save(self) -> None:
        if self._save_timer is not None:
            self._save_timer.stop()
            self._save_timer = None

    def _request_auto_save(self) -> None:
        self._save_timer = None
        self.post_message(self.AutoSaveRequested())

    def on_text_area_changed(self, event: TextArea.Changed) -> None:
        event.stop()
        # Loading a note is not an edit
        if event.text_area.text == self._loaded_text:
            return
        self._loaded_text = None
        self.post_message(self.ContentChanged(event.text_area.text))
        self._cancel_auto_save()
        self._save_timer = self.set_timer(AUTO_SAVE_DELAY, self._request_auto_save)
        self.set_status("Editing...")

    def on_unmount(self) -> None:
        self._cancel_auto_save()
