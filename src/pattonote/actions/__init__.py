"""Action handler mixins for PattoApp."""

from .file_actions import FileActionsMixin
from .navigation_actions import NavigationActionsMixin

__all__ = [
    "FileActionsMixin",
    "NavigationActionsMixin",
]
