"""Configuration loading and defaults for pattonote."""

import logging
import tomllib
from dataclasses import dataclass, field
from pathlib import Path

from .views import SortBy

logger = logging.getLogger(__name__)

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


def get_config_dir() -> Path:
    """Get the pattonote config directory (XDG-style)."""
    return Path.home() / ".config" / "pattonote"


def get_config_path() -> Path:
    """Get the config file path."""
    return get_config_dir() / "config.toml"


def get_default_data_dir() -> Path:
    """Get the default data directory for logs."""
    return Path.home() / ".local" / "share" / "pattonote"


@dataclass
class WatcherConfig:
    """Workspace file watching configuration."""

    enabled: bool = True
    debounce_seconds: float = 0.5


@dataclass
class Config:
    """Application configuration."""

    workspace: Path | None = None
    sort_by: SortBy = SortBy.LAST_MODIFIED
    editor: str = "vim"
    data_directory: Path = field(default_factory=get_default_data_dir)
    log_level: str = "INFO"
    watcher: WatcherConfig = field(default_factory=WatcherConfig)

    def get_log_path(self) -> Path:
        """Get the log file path based on configured data directory."""
        return self.data_directory / "pattonote.log"

    @classmethod
    def load(cls) -> "Config":
        """Load configuration from file or create defaults."""
        config_path = get_config_path()

        config_dir = get_config_dir()
        config_dir.mkdir(parents=True, exist_ok=True)

        if not config_path.exists():
            default_config = cls(data_directory=get_default_data_dir())
            default_config.data_directory.mkdir(parents=True, exist_ok=True)
            default_config.save()
            return default_config

        with open(config_path, "rb") as f:
            data = tomllib.load(f)

        # Empty string means no workspace chosen yet
        workspace_str = data.get("workspace", "")
        workspace = Path(workspace_str).expanduser() if workspace_str else None

        sort_value = data.get("sort_by", SortBy.LAST_MODIFIED.value)
        try:
            sort_by = SortBy(sort_value)
        except ValueError:
            logger.warning("Unknown sort_by %r in config, using default", sort_value)
            sort_by = SortBy.LAST_MODIFIED

        editor = data.get("editor", "vim")

        data_dir = data.get("data_directory", str(get_default_data_dir()))
        data_directory = Path(data_dir).expanduser()

        log_level = str(data.get("log_level", "INFO")).upper()
        if log_level not in LOG_LEVELS:
            log_level = "INFO"

        watcher_data = data.get("watcher", {})
        watcher = WatcherConfig(
            enabled=watcher_data.get("enabled", True),
            debounce_seconds=float(watcher_data.get("debounce_seconds", 0.5)),
        )

        config = cls(
            workspace=workspace,
            sort_by=sort_by,
            editor=editor,
            data_directory=data_directory,
            log_level=log_level,
            watcher=watcher,
        )

        config.data_directory.mkdir(parents=True, exist_ok=True)

        return config

    def save(self) -> None:
        """Save configuration to file."""
        config_path = get_config_path()
        config_path.parent.mkdir(parents=True, exist_ok=True)

        workspace = str(self.workspace) if self.workspace else ""

        # Build TOML content manually (tomllib is read-only)
        lines = [
            '# pattonote Configuration',
            '',
            '# Directory holding your .pn notes (empty = choose in settings)',
            f'workspace = "{workspace}"',
            '',
            '# File list order: lastModified, lastCreated, mostLinked, alphabetical',
            f'sort_by = "{self.sort_by.value}"',
            '',
            '# External editor for the o key',
            f'editor = "{self.editor}"',
            '',
            '# Directory for log files',
            '# Default: ~/.local/share/pattonote',
            f'data_directory = "{self.data_directory}"',
            '',
            '# DEBUG, INFO, WARNING or ERROR',
            f'log_level = "{self.log_level}"',
            '',
            '# Reload the file list when notes change on disk',
            '[watcher]',
            f'enabled = {str(self.watcher.enabled).lower()}',
            f'debounce_seconds = {self.watcher.debounce_seconds}',
        ]

        config_path.write_text("\n".join(lines) + "\n")
