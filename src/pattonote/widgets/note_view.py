"""Rendered note widget."""

from textual.app import ComposeResult
from textual.containers import Vertical, VerticalScroll
from textual.message import Message
from textual.widgets import Markdown, Static

from ..patto import is_note_link, note_link_target


def note_title(path: str | None) -> str:
    """Display name of a note path."""
    if not path:
        return "Note"
    return path.removesuffix(".pn")


class NoteView(Vertical):
    """Widget displaying a rendered note."""

    class NoteLinkClicked(Message):
        """Message emitted when a link to another note is clicked."""

        def __init__(self, target: str, anchor: str | None) -> None:
            super().__init__()
            self.target = target
            self.anchor = anchor

    class ExternalLinkClicked(Message):
        """Message emitted when a web link is clicked."""

        def __init__(self, href: str) -> None:
            super().__init__()
            self.href = href

    DEFAULT_CSS = """
    NoteView {
        width: 1fr;
        height: 1fr;
    }

    NoteView > #note-header {
        background: $primary-background;
        color: $success;
        text-style: bold;
        padding: 0 1;
        height: 1;
    }

    NoteView > VerticalScroll {
        height: 1fr;
    }

    NoteView Markdown {
        padding: 0 1;
    }
    """

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._note: str | None = None
        self._rendered: str | None = None

    def compose(self) -> ComposeResult:
        yield Static("NOTE", id="note-header")
        with VerticalScroll(id="note-scroll"):
            yield Markdown(id="note-content", open_links=False)

    @property
    def scroll_view(self) -> VerticalScroll:
        return self.query_one("#note-scroll", VerticalScroll)

    @property
    def markdown_widget(self) -> Markdown:
        return self.query_one("#note-content", Markdown)

    def show_note(self, path: str | None, rendered: str) -> None:
        """Display a rendered note, unless it is already on screen."""
        if path == self._note and rendered == self._rendered:
            return
        scroll_home = path != self._note
        self._note = path
        self._rendered = rendered

        self.query_one("#note-header", Static).update(f"NOTE - {note_title(path)}")
        self.markdown_widget.update(rendered)
        if scroll_home:
            self.scroll_view.scroll_home(animate=False)

    def on_markdown_link_clicked(self, event: Markdown.LinkClicked) -> None:
        """Route link clicks to the app."""
        href = event.href
        event.prevent_default()
        event.stop()

        if is_note_link(href):
            target, anchor = note_link_target(href)
            if target:
                self.post_message(self.NoteLinkClicked(target, anchor))
        elif "://" in href:
            self.post_message(self.ExternalLinkClicked(href))
