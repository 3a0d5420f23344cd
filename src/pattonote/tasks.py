"""Gather tasks from all notes and group them by deadline."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from pathlib import Path

from .errors import WorkspaceError
from .patto import parse_line
from .scanner import find_note_files, read_note_text

logger = logging.getLogger(__name__)

# Open tasks due within this many days land in "this week"
WEEK_DAYS = 7


@dataclass
class TaskItem:
    """A single task line."""

    file_path: str
    file_name: str
    line_number: int
    content: str
    status: str
    due_date: str | None = None
    due: datetime | None = None


@dataclass
class TaskAggregation:
    """Tasks bucketed by deadline."""

    overdue: list[TaskItem] = field(default_factory=list)
    today: list[TaskItem] = field(default_factory=list)
    this_week: list[TaskItem] = field(default_factory=list)
    later: list[TaskItem] = field(default_factory=list)
    no_deadline: list[TaskItem] = field(default_factory=list)
    done: list[TaskItem] = field(default_factory=list)

    @property
    def total(self) -> int:
        """Number of open tasks."""
        return (
            len(self.overdue)
            + len(self.today)
            + len(self.this_week)
            + len(self.later)
            + len(self.no_deadline)
        )

    @property
    def is_empty(self) -> bool:
        return self.total == 0

    def sections(self) -> list[tuple[str, list[TaskItem]]]:
        """Open task buckets in display order."""
        return [
            ("Overdue", self.overdue),
            ("Today", self.today),
            ("This Week", self.this_week),
            ("Later", self.later),
            ("No Deadline", self.no_deadline),
        ]


def extract_tasks(content: str, file_path: str) -> list[TaskItem]:
    """Extract task lines from note content."""
    file_name = Path(file_path).stem
    tasks = []
    for line_number, raw in enumerate(content.splitlines(), start=1):
        line = parse_line(raw)
        if line.task is None:
            continue
        tasks.append(
            TaskItem(
                file_path=file_path,
                file_name=file_name,
                line_number=line_number,
                content=line.text,
                status=line.task.status,
                due_date=line.task.due,
                due=line.task.deadline,
            )
        )
    return tasks


def categorize_tasks(tasks: list[TaskItem], today: date) -> TaskAggregation:
    """Bucket tasks relative to today."""
    aggregation = TaskAggregation()
    week_end = today + timedelta(days=WEEK_DAYS)

    for task in tasks:
        if task.status == "done":
            aggregation.done.append(task)
        elif task.due is None:
            aggregation.no_deadline.append(task)
        elif task.due.date() < today:
            aggregation.overdue.append(task)
        elif task.due.date() == today:
            aggregation.today.append(task)
        elif task.due.date() <= week_end:
            aggregation.this_week.append(task)
        else:
            aggregation.later.append(task)

    for bucket in (aggregation.overdue, aggregation.today, aggregation.this_week, aggregation.later):
        bucket.sort(key=lambda t: t.due)

    return aggregation


def aggregate_tasks(root: Path, today: date | None = None) -> TaskAggregation:
    """Collect tasks from every note in the workspace."""
    if today is None:
        today = date.today()

    tasks: list[TaskItem] = []
    for path in find_note_files(root):
        try:
            content = read_note_text(path)
        except WorkspaceError as e:
            logger.warning("Skipping %s: %s", path, e)
            continue
        tasks.extend(extract_tasks(content, path.relative_to(root).as_posix()))

    return categorize_tasks(tasks, today)
