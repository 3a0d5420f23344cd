"""File list widget for the notes in the workspace."""

from datetime import datetime

from rich.text import Text
from textual.app import ComposeResult
from textual.containers import Vertical
from textual.message import Message
from textual.widgets import Label, ListItem, ListView, Static

from ..views import SortBy
from ..workspace import FileEntry


def format_date(timestamp: float) -> str:
    """Short date, with the year only when it is not the current one."""
    if not timestamp:
        return ""
    date = datetime.fromtimestamp(timestamp)
    if date.year != datetime.now().year:
        return f"{date:%b} {date.day}, {date.year}"
    return f"{date:%b} {date.day}"


class FileItem(ListItem):
    """A list item representing a note file."""

    def __init__(self, entry: FileEntry, show_backlinks: bool = False) -> None:
        super().__init__()
        self.entry = entry
        self.show_backlinks = show_backlinks

    def compose(self) -> ComposeResult:
        label = Text(self.entry.name)
        meta = format_date(self.entry.modified_time)
        if self.show_backlinks and self.entry.backlink_count > 0:
            meta = f"{self.entry.backlink_count} links  {meta}"
        if meta:
            label.append(f"  {meta}", style="dim")
        yield Label(label)


class FileList(Vertical):
    """Widget displaying the workspace notes."""

    DEFAULT_CSS = """
    FileList {
        width: 1fr;
        height: 1fr;
    }

    FileList > #file-header {
        background: $primary-background;
        color: $accent;
        text-style: bold;
        padding: 0 1;
        height: 1;
    }

    FileList > #file-list-view {
        height: 1fr;
    }

    FileList ListItem {
        padding: 0 1;
    }

    FileList ListItem.--highlight {
        background: $accent;
    }
    """

    class FileSelected(Message):
        """Message emitted when a note is chosen."""

        def __init__(self, path: str) -> None:
            super().__init__()
            self.path = path

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._files: list[FileEntry] = []
        self._sort_by: SortBy = SortBy.LAST_MODIFIED
        self._loading = False

    def compose(self) -> ComposeResult:
        yield Static("NOTES", id="file-header")
        yield ListView(id="file-list-view")

    @property
    def list_view(self) -> ListView:
        return self.query_one("#file-list-view", ListView)

    def update_files(
        self,
        files: list[FileEntry],
        sort_by: SortBy,
        loading: bool = False,
    ) -> None:
        """Show files, skipping the rebuild when nothing changed."""
        if files is self._files and sort_by == self._sort_by and loading == self._loading:
            return
        self._files = files
        self._sort_by = sort_by
        self._loading = loading

        header = self.query_one("#file-header", Static)
        status = " - loading..." if loading else f" ({len(files)})"
        header.update(f"NOTES{status}  [sort: {sort_by.label}]")

        list_view = self.list_view
        list_view.clear()
        show_backlinks = sort_by == SortBy.MOST_LINKED
        list_view.extend(FileItem(entry, show_backlinks) for entry in files)
        if files:
            list_view.index = 0

    def get_selected_file(self) -> FileEntry | None:
        """Get the highlighted note entry."""
        item = self.list_view.highlighted_child
        if isinstance(item, FileItem):
            return item.entry
        return None

    def on_list_view_selected(self, event: ListView.Selected) -> None:
        if isinstance(event.item, FileItem):
            event.stop()
            self.post_message(self.FileSelected(event.item.entry.path))
