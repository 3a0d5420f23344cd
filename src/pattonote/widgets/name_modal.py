"""Modal for naming a new or renamed note."""

from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Vertical
from textual.screen import ModalScreen
from textual.widgets import Input, Label, Static

from ..patto import normalize_note_name


class NameModal(ModalScreen[str | None]):
    """Ask for a note name. Dismisses with the normalized name or None."""

    BINDINGS = [
        Binding("escape", "cancel", "Cancel", show=False),
    ]

    CSS = """
    NameModal {
        align: center middle;
    }

    #name-container {
        width: 60;
        height: auto;
        background: $surface;
        border: solid $primary;
        padding: 1 2;
    }

    #name-title {
        text-align: center;
        text-style: bold;
        margin-bottom: 1;
    }

    #name-error {
        color: $error;
        height: auto;
    }
    """

    def __init__(self, title: str, initial: str = "") -> None:
        super().__init__()
        self.title_text = title
        self.initial = initial

    def compose(self) -> ComposeResult:
        with Vertical(id="name-container"):
            yield Label(self.title_text, id="name-title")
            yield Input(value=self.initial, placeholder="note name", id="name-input")
            yield Static("", id="name-error")

    def on_mount(self) -> None:
        self.query_one("#name-input", Input).focus()

    def on_input_submitted(self, event: Input.Submitted) -> None:
        event.stop()
        name = event.value.strip()
        if not name or name.startswith(".") or "/" in name or "\\" in name:
            self.query_one("#name-error", Static).update("Enter a plain file name")
            return
        self.dismiss(normalize_note_name(name))

    def action_cancel(self) -> None:
        self.dismiss(None)
