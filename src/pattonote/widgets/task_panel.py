"""Task panel widget showing tasks grouped by deadline."""

from rich.text import Text
from textual.app import ComposeResult
from textual.containers import Vertical
from textual.message import Message
from textual.widgets import Label, ListItem, ListView, Static

from ..tasks import TaskAggregation, TaskItem

_SECTION_STYLES = {
    "Overdue": "bold red",
    "Today": "bold yellow",
    "This Week": "bold cyan",
    "Later": "bold blue",
    "No Deadline": "bold",
}


class SectionItem(ListItem):
    """Non-selectable section heading."""

    def __init__(self, title: str, count: int) -> None:
        super().__init__(disabled=True)
        self.heading = title
        self.count = count

    def compose(self) -> ComposeResult:
        text = Text(self.heading, style=_SECTION_STYLES.get(self.heading, "bold"))
        text.append(f" ({self.count})", style="dim")
        yield Label(text)


class TaskListItem(ListItem):
    """A list item representing a task."""

    def __init__(self, task: TaskItem) -> None:
        super().__init__()
        self.task = task

    def compose(self) -> ComposeResult:
        text = Text(f"  {self.task.content}")
        text.append(f"  {self.task.file_name}", style="dim")
        if self.task.due_date:
            text.append(f"  {self.task.due_date}", style="italic")
        yield Label(text)


class TaskPanel(Vertical):
    """Widget listing open tasks from every note."""

    DEFAULT_CSS = """
    TaskPanel {
        width: 1fr;
        height: 1fr;
    }

    TaskPanel > #task-header {
        background: $primary-background;
        color: $accent;
        text-style: bold;
        padding: 0 1;
        height: 1;
    }

    TaskPanel > #task-list-view {
        height: 1fr;
    }

    TaskPanel > #task-empty {
        padding: 1 2;
        color: $text-muted;
    }
    """

    class TaskSelected(Message):
        """Message emitted when a task is chosen."""

        def __init__(self, task: TaskItem) -> None:
            super().__init__()
            self.task = task

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._tasks: TaskAggregation | None = None
        self._loading = False

    def compose(self) -> ComposeResult:
        yield Static("TASKS", id="task-header")
        yield Static("", id="task-empty")
        yield ListView(id="task-list-view")

    @property
    def list_view(self) -> ListView:
        return self.query_one("#task-list-view", ListView)

    def update_tasks(self, tasks: TaskAggregation | None, loading: bool = False) -> None:
        """Show task buckets, skipping the rebuild when nothing changed."""
        if tasks is self._tasks and loading == self._loading:
            return
        self._tasks = tasks
        self._loading = loading

        header = self.query_one("#task-header", Static)
        empty = self.query_one("#task-empty", Static)
        list_view = self.list_view
        list_view.clear()

        if loading:
            header.update("TASKS - loading...")
            empty.update("")
            return
        if tasks is None:
            header.update("TASKS")
            empty.update("No workspace selected")
            return

        header.update(f"TASKS ({tasks.total} open, {len(tasks.done)} done)")
        empty.update("No tasks found" if tasks.is_empty else "")
        for title, items in tasks.sections():
            if not items:
                continue
            list_view.append(SectionItem(title, len(items)))
            list_view.extend(TaskListItem(task) for task in items)

    def on_list_view_selected(self, event: ListView.Selected) -> None:
        if isinstance(event.item, TaskListItem):
            event.stop()
            self.post_message(self.TaskSelected(event.item.task))
