"""Note files, rendering and persistence for a patto workspace."""

from __future__ import annotations

import asyncio
import logging
import os
from collections import OrderedDict
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Protocol

from .errors import NotFoundError, ValidationError, WorkspaceIOError
from .patto import NOTE_EXTENSION, normalize_note_name, patto_to_markdown
from .scanner import count_backlinks, find_note_files, read_note_text
from .tasks import TaskAggregation, aggregate_tasks
from .views import SortBy

logger = logging.getLogger(__name__)


@dataclass
class FileEntry:
    """A note file with metadata for the file list."""

    path: str
    name: str
    modified_time: float
    created_time: float
    backlink_count: int
    size_bytes: int


@dataclass
class RenderedNote:
    """A note's raw content together with its rendered form."""

    path: str
    name: str
    raw_content: str
    rendered: str


class NoteSource(Protocol):
    """Operations the navigator needs from a workspace."""

    root: Path

    async def fetch_note_for_display(self, path: str) -> RenderedNote: ...
    async def persist_editable_content(self, path: str, content: str) -> str: ...
    async def list_files(self, sort_by: SortBy) -> list[FileEntry]: ...
    async def list_tasks(self) -> Any: ...


class NoteCache:
    """LRU cache for rendered notes with mtime-based invalidation."""

    def __init__(self, max_size: int = 20) -> None:
        self._cache: OrderedDict[str, tuple[float, str, str]] = OrderedDict()
        self._max_size = max_size

    def get(self, path: Path) -> tuple[str, str] | None:
        """Get cached (raw, rendered) if valid, or None if not cached/stale."""
        key = str(path)
        if key not in self._cache:
            return None

        cached_mtime, raw, rendered = self._cache[key]
        try:
            if path.stat().st_mtime != cached_mtime:
                del self._cache[key]
                return None
        except OSError:
            del self._cache[key]
            return None

        self._cache.move_to_end(key)
        return raw, rendered

    def put(self, path: Path, mtime: float, raw: str, rendered: str) -> None:
        """Cache a note."""
        key = str(path)
        if len(self._cache) >= self._max_size and key not in self._cache:
            self._cache.popitem(last=False)
        self._cache[key] = (mtime, raw, rendered)
        self._cache.move_to_end(key)

    def invalidate(self, path: Path) -> None:
        """Invalidate the cache entry for a specific file."""
        self._cache.pop(str(path), None)

    def __len__(self) -> int:
        return len(self._cache)


def _created_time(stat: os.stat_result) -> float:
    return getattr(stat, "st_birthtime", stat.st_ctime)


def _sort_entries(entries: list[FileEntry], sort_by: SortBy) -> None:
    if sort_by == SortBy.LAST_MODIFIED:
        entries.sort(key=lambda e: e.modified_time, reverse=True)
    elif sort_by == SortBy.LAST_CREATED:
        entries.sort(key=lambda e: e.created_time, reverse=True)
    elif sort_by == SortBy.MOST_LINKED:
        entries.sort(key=lambda e: e.backlink_count, reverse=True)
    else:
        entries.sort(key=lambda e: e.name.lower())


class Workspace:
    """A directory of patto notes.

    Blocking file I/O lives in the ``*_sync`` methods; the async methods run
    them in a worker thread so the event loop stays responsive.
    """

    def __init__(self, root: Path) -> None:
        self.root = Path(root).expanduser()
        self._cache = NoteCache()

    def resolve(self, path: str) -> Path:
        """Resolve a workspace-relative note path, rejecting escapes."""
        if not isinstance(path, str) or not path.strip():
            raise ValidationError("No note path given")
        full_path = (self.root / path).resolve()
        if not full_path.is_relative_to(self.root.resolve()):
            raise ValidationError(f"Path escapes workspace: {path}")
        return full_path

    def relative(self, full_path: Path) -> str:
        return full_path.relative_to(self.root.resolve()).as_posix()

    def invalidate(self, path: Path) -> None:
        """Drop cached content for a changed file."""
        self._cache.invalidate(Path(path).resolve())

    def render_content(self, content: str) -> str:
        """Render note content without touching the disk."""
        return patto_to_markdown(content)

    def list_files_sync(self, sort_by: SortBy = SortBy.LAST_MODIFIED) -> list[FileEntry]:
        """List all notes with metadata, sorted."""
        root = self.root.resolve() if self.root.exists() else self.root
        paths = find_note_files(root)
        backlinks = count_backlinks(root, paths)

        entries = []
        for path in paths:
            try:
                stat = path.stat()
            except OSError as e:
                raise WorkspaceIOError(f"Failed to stat {path.name}: {e}") from e
            relative = path.relative_to(root).as_posix()
            entries.append(
                FileEntry(
                    path=relative,
                    name=path.stem,
                    modified_time=stat.st_mtime,
                    created_time=_created_time(stat),
                    backlink_count=backlinks.get(relative, 0),
                    size_bytes=stat.st_size,
                )
            )

        _sort_entries(entries, sort_by)
        return entries

    def fetch_note_sync(self, path: str) -> RenderedNote:
        """Read and render a note."""
        full_path = self.resolve(path)
        if not full_path.is_file():
            raise NotFoundError(f"File not found: {path}")

        cached = self._cache.get(full_path)
        if cached is not None:
            raw, rendered = cached
        else:
            try:
                mtime = full_path.stat().st_mtime
            except OSError as e:
                raise WorkspaceIOError(f"Failed to read {path}: {e}") from e
            raw = read_note_text(full_path)
            rendered = self.render_content(raw)
            self._cache.put(full_path, mtime, raw, rendered)

        return RenderedNote(
            path=self.relative(full_path),
            name=full_path.stem,
            raw_content=raw,
            rendered=rendered,
        )

    def write_note_sync(self, path: str, content: str) -> str:
        """Write a note and return its freshly rendered content."""
        if not isinstance(content, str):
            raise ValidationError(f"Note content must be text, got {type(content).__name__}")
        full_path = self.resolve(path)
        if full_path.suffix != NOTE_EXTENSION:
            raise ValidationError(f"Not a note file: {path}")

        try:
            full_path.parent.mkdir(parents=True, exist_ok=True)
            temp_path = full_path.with_suffix(".pn.tmp")
            temp_path.write_text(content, encoding="utf-8")
            os.replace(temp_path, full_path)
            mtime = full_path.stat().st_mtime
        except OSError as e:
            raise WorkspaceIOError(f"Failed to write {path}: {e}") from e

        rendered = self.render_content(content)
        self._cache.put(full_path, mtime, content, rendered)
        logger.debug("Saved %s (%d bytes)", path, len(content))
        return rendered

    def create_note_sync(self, name: str) -> FileEntry:
        """Create an empty note."""
        file_name = normalize_note_name(name)
        full_path = self.resolve(file_name)
        if full_path.exists():
            raise ValidationError(f"File already exists: {file_name}")

        try:
            full_path.parent.mkdir(parents=True, exist_ok=True)
            full_path.write_text("", encoding="utf-8")
        except OSError as e:
            raise WorkspaceIOError(f"Failed to create file: {e}") from e
        return self._entry(full_path)

    def rename_note_sync(self, path: str, new_name: str) -> FileEntry:
        """Rename a note, keeping it in the same directory."""
        old_path = self.resolve(path)
        if not old_path.is_file():
            raise NotFoundError(f"File not found: {path}")

        file_name = normalize_note_name(Path(new_name).name)
        if not file_name:
            raise ValidationError("No new name given")
        new_path = old_path.parent / file_name
        if new_path.exists():
            raise ValidationError(f"File already exists: {file_name}")

        try:
            old_path.rename(new_path)
        except OSError as e:
            raise WorkspaceIOError(f"Failed to rename: {e}") from e
        self._cache.invalidate(old_path)
        return self._entry(new_path)

    def delete_note_sync(self, path: str) -> None:
        """Delete a note."""
        full_path = self.resolve(path)
        if not full_path.is_file():
            raise NotFoundError(f"File not found: {path}")
        try:
            full_path.unlink()
        except OSError as e:
            raise WorkspaceIOError(f"Failed to delete file: {e}") from e
        self._cache.invalidate(full_path)

    def _entry(self, full_path: Path) -> FileEntry:
        stat = full_path.stat()
        return FileEntry(
            path=self.relative(full_path),
            name=full_path.stem,
            modified_time=stat.st_mtime,
            created_time=_created_time(stat),
            backlink_count=0,
            size_bytes=stat.st_size,
        )

    async def fetch_note_for_display(self, path: str) -> RenderedNote:
        return await asyncio.to_thread(self.fetch_note_sync, path)

    async def persist_editable_content(self, path: str, content: str) -> str:
        return await asyncio.to_thread(self.write_note_sync, path, content)

    async def list_files(self, sort_by: SortBy = SortBy.LAST_MODIFIED) -> list[FileEntry]:
        return await asyncio.to_thread(self.list_files_sync, sort_by)

    async def list_tasks(self) -> TaskAggregation:
        return await asyncio.to_thread(aggregate_tasks, self.root)

    async def create_note(self, name: str) -> FileEntry:
        return await asyncio.to_thread(self.create_note_sync, name)

    async def rename_note(self, path: str, new_name: str) -> FileEntry:
        return await asyncio.to_thread(self.rename_note_sync, path, new_name)

    async def delete_note(self, path: str) -> None:
        await asyncio.to_thread(self.delete_note_sync, path)
