"""Workspace scanning for patto notes."""

from collections import defaultdict
from pathlib import Path

from .errors import NotFoundError, WorkspaceIOError
from .patto import NOTE_EXTENSION, extract_links, normalize_note_name


def is_hidden(path: Path, root: Path) -> bool:
    """Check if any component of path below root starts with a dot."""
    try:
        parts = path.relative_to(root).parts
    except ValueError:
        parts = path.parts
    return any(part.startswith(".") for part in parts)


def find_note_files(root: Path) -> list[Path]:
    """Recursively find all .pn files below root, skipping hidden entries."""
    if not root.is_dir():
        return []

    files = []
    try:
        for path in root.rglob(f"*{NOTE_EXTENSION}"):
            if path.is_file() and not is_hidden(path, root):
                files.append(path)
    except PermissionError:
        pass

    return sorted(files)


def read_note_text(path: Path) -> str:
    """Read a note, translating OS failures into workspace errors."""
    try:
        return path.read_text(encoding="utf-8")
    except FileNotFoundError as e:
        raise NotFoundError(f"File not found: {path.name}") from e
    except (OSError, UnicodeDecodeError) as e:
        raise WorkspaceIOError(f"Failed to read {path.name}: {e}") from e


def count_backlinks(root: Path, files: list[Path]) -> dict[str, int]:
    """Count, per note path relative to root, the other notes linking to it."""
    sources: dict[str, set[str]] = defaultdict(set)

    for path in files:
        source = path.relative_to(root).as_posix()
        try:
            content = read_note_text(path)
        except (NotFoundError, WorkspaceIOError):
            continue
        for link in extract_links(content):
            if link.is_external or not link.target:
                continue
            target = normalize_note_name(link.target)
            if target != source:
                sources[target].add(source)

    return {target: len(names) for target, names in sources.items()}
