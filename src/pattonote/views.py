"""View and sort-order identifiers."""

from enum import Enum


class View(Enum):
    """Logical screens of the application."""

    FILE_LIST = "file_list"
    NOTE_VIEW = "note_view"
    NOTE_EDIT = "note_edit"
    TASKS = "tasks"
    GIT_CONFIG = "git_config"


# The view every history stack starts from
ROOT_VIEW = View.FILE_LIST


class SortBy(Enum):
    """File list sort orders."""

    LAST_MODIFIED = "lastModified"
    LAST_CREATED = "lastCreated"
    MOST_LINKED = "mostLinked"
    ALPHABETICAL = "alphabetical"

    @property
    def label(self) -> str:
        return _SORT_LABELS[self]

    def next(self) -> "SortBy":
        """Return the following sort order, wrapping around."""
        members = list(SortBy)
        return members[(members.index(self) + 1) % len(members)]


_SORT_LABELS = {
    SortBy.LAST_MODIFIED: "Modified",
    SortBy.LAST_CREATED: "Created",
    SortBy.MOST_LINKED: "Links",
    SortBy.ALPHABETICAL: "A-Z",
}
