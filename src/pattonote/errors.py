"""Errors raised by workspace collaborators."""


class WorkspaceError(Exception):
    """Base class for failures in note, file and task operations."""


class NotFoundError(WorkspaceError):
    """A referenced note or file does not exist."""


class WorkspaceIOError(WorkspaceError, OSError):
    """Reading or writing workspace files failed."""


class ValidationError(WorkspaceError):
    """A save payload or file name was rejected."""
