"""Settings panel for choosing the workspace."""

from pathlib import Path

from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.message import Message
from textual.widgets import Button, Input, Label, Static


class SettingsPanel(Vertical):
    """Widget for workspace settings."""

    class WorkspaceSubmitted(Message):
        """Message emitted when a workspace path is applied."""

        def __init__(self, path: Path) -> None:
            super().__init__()
            self.path = path

    DEFAULT_CSS = """
    SettingsPanel {
        width: 1fr;
        height: 1fr;
        padding: 0 1;
    }

    SettingsPanel > #settings-header {
        background: $primary-background;
        color: $accent;
        text-style: bold;
        padding: 0 1;
        height: 1;
        margin-bottom: 1;
    }

    SettingsPanel .settings-label {
        color: $text-muted;
        margin-top: 1;
    }

    SettingsPanel .input-row {
        height: 3;
    }

    SettingsPanel .input-row Input {
        width: 1fr;
    }

    SettingsPanel #settings-status {
        margin-top: 1;
    }
    """

    def compose(self) -> ComposeResult:
        yield Static("SETTINGS", id="settings-header")
        yield Label("Workspace directory", classes="settings-label")
        with Horizontal(classes="input-row"):
            yield Input(placeholder="~/notes", id="workspace-input")
            yield Button("Apply", id="workspace-apply", variant="primary")
        yield Label("", id="sort-label", classes="settings-label")
        yield Static("", id="settings-status")

    def show(self, workspace: Path | None, sort_label: str) -> None:
        """Fill the form from current settings."""
        workspace_input = self.query_one("#workspace-input", Input)
        if not workspace_input.has_focus:
            workspace_input.value = str(workspace) if workspace else ""
        self.query_one("#sort-label", Label).update(f"File list order: {sort_label} (press s on the list to change)")

    def set_status(self, status: str) -> None:
        self.query_one("#settings-status", Static).update(status)

    def _submit(self) -> None:
        value = self.query_one("#workspace-input", Input).value.strip()
        if not value:
            self.set_status("Enter a directory")
            return
        path = Path(value).expanduser()
        if not path.is_dir():
            self.set_status(f"Not a directory: {path}")
            return
        self.set_status("")
        self.post_message(self.WorkspaceSubmitted(path))

    def on_input_submitted(self, event: Input.Submitted) -> None:
        event.stop()
        self._submit()

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "workspace-apply":
            event.stop()
            self._submit()
