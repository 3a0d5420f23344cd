"""File system watcher for auto-refresh of the note list."""

import logging
import threading
from pathlib import Path
from typing import Callable

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from .patto import NOTE_EXTENSION

logger = logging.getLogger(__name__)


class NoteEventHandler(FileSystemEventHandler):
    """Handler for note file changes with debouncing."""

    def __init__(
        self,
        root: Path,
        on_change: Callable[[list[Path]], None],
        debounce_seconds: float = 0.5,
    ):
        super().__init__()
        self.root = root
        self.on_change = on_change
        self.debounce_seconds = debounce_seconds
        self._pending_paths: set[str] = set()
        self._lock = threading.Lock()
        self._timer: threading.Timer | None = None

    def _is_note(self, path: str) -> bool:
        """Check if the path is a visible note file."""
        if not path.endswith(NOTE_EXTENSION):
            return False
        try:
            parts = Path(path).relative_to(self.root).parts
        except ValueError:
            parts = Path(path).parts
        return not any(part.startswith(".") for part in parts)

    def _schedule_update(self, path: str) -> None:
        """Schedule a debounced update for the given path."""
        logger.debug("Note change detected: %s", path)
        with self._lock:
            self._pending_paths.add(path)

            if self._timer:
                self._timer.cancel()

            self._timer = threading.Timer(
                self.debounce_seconds,
                self._process_pending,
            )
            self._timer.daemon = True
            self._timer.start()

    def _process_pending(self) -> None:
        """Report all pending changes at once."""
        with self._lock:
            paths = sorted(self._pending_paths)
            self._pending_paths.clear()
            self._timer = None

        if not paths:
            return

        logger.info("Processing %d note change(s)", len(paths))
        self.on_change([Path(p) for p in paths])

    def cancel(self) -> None:
        """Cancel a pending debounce timer."""
        with self._lock:
            if self._timer:
                self._timer.cancel()
                self._timer = None
            self._pending_paths.clear()

    def on_created(self, event: FileSystemEvent) -> None:
        if not event.is_directory and self._is_note(event.src_path):
            self._schedule_update(event.src_path)

    def on_modified(self, event: FileSystemEvent) -> None:
        if not event.is_directory and self._is_note(event.src_path):
            self._schedule_update(event.src_path)

    def on_deleted(self, event: FileSystemEvent) -> None:
        if not event.is_directory and self._is_note(event.src_path):
            self._schedule_update(event.src_path)

    def on_moved(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            if self._is_note(event.src_path):
                self._schedule_update(event.src_path)
            dest_path = getattr(event, "dest_path", "")
            if dest_path and self._is_note(dest_path):
                self._schedule_update(dest_path)


class WorkspaceWatcher:
    """Watches a workspace directory for note changes."""

    def __init__(
        self,
        root: Path,
        on_change: Callable[[list[Path]], None],
        debounce_seconds: float = 0.5,
    ):
        self.root = root
        self.on_change = on_change
        self.debounce_seconds = debounce_seconds
        self._observer: Observer | None = None
        self._handler: NoteEventHandler | None = None

    @property
    def is_running(self) -> bool:
        return self._observer is not None

    def start(self) -> None:
        """Start watching the workspace."""
        if self._observer is not None:
            return
        if not self.root.is_dir():
            logger.warning("Not watching missing workspace: %s", self.root)
            return

        self._handler = NoteEventHandler(
            self.root,
            self.on_change,
            self.debounce_seconds,
        )

        self._observer = Observer()
        self._observer.schedule(
            self._handler,
            str(self.root),
            recursive=True,
        )
        self._observer.daemon = True
        self._observer.start()
        logger.info("Workspace watcher started: %s", self.root)

    def stop(self) -> None:
        """Stop watching."""
        if self._handler is not None:
            self._handler.cancel()
        if self._observer is not None:
            self._observer.stop()
            self._observer.join(timeout=1.0)
            self._observer = None
            self._handler = None

    def __enter__(self) -> "WorkspaceWatcher":
        self.start()
        return self

    def __exit__(self, *args) -> None:
        self.stop()
