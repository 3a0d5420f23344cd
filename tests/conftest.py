"""Shared fixtures for pattonote tests."""

import asyncio
from pathlib import Path

import pytest

from pattonote.back_signal import MarkerHistory
from pattonote.errors import NotFoundError, WorkspaceIOError
from pattonote.hooks import HookRegistry
from pattonote.navigation import Navigator
from pattonote.note_hooks import register_note_hooks
from pattonote.workspace import FileEntry, RenderedNote


class FakeWorkspace:
    """In-memory note source that records persist calls."""

    def __init__(self, notes: dict[str, str] | None = None) -> None:
        self.root = Path("/fake")
        self.notes = dict(notes or {})
        self.persisted: list[tuple[str, str]] = []
        self.fail_persist = False
        self.persist_delay = 0.0
        self.files: list[FileEntry] = []
        self.tasks = None

    async def fetch_note_for_display(self, path: str) -> RenderedNote:
        if path not in self.notes:
            raise NotFoundError(f"File not found: {path}")
        content = self.notes[path]
        return RenderedNote(path, Path(path).stem, content, f"<{content}>")

    async def persist_editable_content(self, path: str, content: str) -> str:
        if self.persist_delay:
            await asyncio.sleep(self.persist_delay)
        if self.fail_persist:
            raise WorkspaceIOError("disk full")
        self.persisted.append((path, content))
        self.notes[path] = content
        return f"<{content}>"

    async def list_files(self, sort_by) -> list[FileEntry]:
        return list(self.files)

    async def list_tasks(self):
        return self.tasks


@pytest.fixture
def hooks():
    """A fresh hook registry with the note hooks installed."""
    registry = HookRegistry()
    register_note_hooks(registry)
    return registry


@pytest.fixture
def fake_workspace():
    return FakeWorkspace({"a.pn": "A", "b.pn": "B", "c.pn": "C"})


@pytest.fixture
def platform():
    return MarkerHistory()


@pytest.fixture
def notifications():
    return []


@pytest.fixture
def navigator(fake_workspace, platform, hooks, notifications):
    """An initialized navigator over the fake workspace."""
    nav = Navigator(fake_workspace, platform, hooks=hooks, notify=notifications.append)
    nav.initialize()
    return nav


@pytest.fixture
def sample_notes(tmp_path):
    """Create sample patto notes in a temp workspace."""
    notes = tmp_path / "notes"
    notes.mkdir()

    (notes / "alpha.pn").write_text("Alpha note\n\tsee [beta]\n\tand [gamma#intro]\n")
    (notes / "beta.pn").write_text(
        "Beta note\n"
        "\tship it {@task status=todo due=2024-01-10}\n"
        "\treview !2024-01-15\n"
        "\twrite docs *2024-01-30\n"
        "\told thing -2024-01-01\n"
        "\tsomeday {@task status=todo}\n"
        "\tback to [alpha]\n"
    )
    (notes / "gamma.pn").write_text("Gamma #intro\n\tlinks [alpha] and [alpha] again\n")

    sub = notes / "sub"
    sub.mkdir()
    (sub / "deep.pn").write_text("Deep note [alpha]\n")

    (notes / "readme.md").write_text("# Not a note\n")
    hidden = notes / ".git"
    hidden.mkdir()
    (hidden / "stale.pn").write_text("hidden\n")

    return notes
