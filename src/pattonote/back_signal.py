"""Back-signal handling between the host platform and the navigator.

The platform (the terminal app here) delivers "back requested" signals.
Each one is answered with ``Navigator.go_back()``. When that reports it did
not navigate, the adapter re-arms so that the next signal at the root is
taken as a request to exit.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Protocol

from .views import ROOT_VIEW, View

if TYPE_CHECKING:
    from .navigation import NavigationState, Navigator

logger = logging.getLogger(__name__)


class PlatformHistory(Protocol):
    """History primitives of the host platform."""

    def push_marker(self, view: View, index: int) -> None: ...
    def replace_marker(self, view: View, index: int) -> None: ...
    def pop_marker(self) -> "HistoryMarker | None": ...


@dataclass(frozen=True)
class HistoryMarker:
    """A platform history position."""

    view: View
    index: int


class MarkerHistory:
    """In-memory platform history for hosts without one of their own."""

    def __init__(self) -> None:
        self._markers: list[HistoryMarker] = []

    def push_marker(self, view: View, index: int) -> None:
        self._markers.append(HistoryMarker(view, index))

    def replace_marker(self, view: View, index: int) -> None:
        """Make the marker at index the current position, dropping later ones."""
        del self._markers[index:]
        self._markers.append(HistoryMarker(view, index))

    def pop_marker(self) -> HistoryMarker | None:
        if not self._markers:
            return None
        return self._markers.pop()

    @property
    def markers(self) -> tuple[HistoryMarker, ...]:
        return tuple(self._markers)

    def __len__(self) -> int:
        return len(self._markers)


class BackSignalAdapter:
    """Single consumer of back requests, translating them into navigation."""

    def __init__(
        self,
        navigator: Navigator,
        platform: PlatformHistory,
        on_exit: Callable[[], None],
        on_root: Callable[[], None] | None = None,
    ) -> None:
        self.navigator = navigator
        self.platform = platform
        self.on_exit = on_exit
        self.on_root = on_root
        self._queue: asyncio.Queue[None] = asyncio.Queue()
        self._exit_armed = False
        navigator.subscribe(self._on_navigation)

    @property
    def exit_armed(self) -> bool:
        """True when the next back signal at the root exits."""
        return self._exit_armed

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    def request_back(self) -> None:
        """Queue one back signal."""
        self._queue.put_nowait(None)

    async def join(self) -> None:
        """Wait until every queued back signal has been handled."""
        await self._queue.join()

    async def run(self) -> None:
        """Handle queued back signals one at a time, forever."""
        while True:
            await self._queue.get()
            try:
                await self.handle_back()
            except Exception:
                # Later signals are still handled
                logger.exception("Back navigation failed")
            finally:
                self._queue.task_done()

    async def handle_back(self) -> bool:
        """Handle one back signal. Returns whether navigation happened."""
        self.platform.pop_marker()
        navigated = await self.navigator.go_back()
        if navigated:
            self._exit_armed = False
            return True

        if self._exit_armed:
            logger.info("Back requested at root again, exiting")
            self.on_exit()
            return False

        # Re-arm in the same step as the False result
        self.platform.push_marker(ROOT_VIEW, 0)
        self._exit_armed = True
        if self.on_root is not None:
            self.on_root()
        return False

    def _on_navigation(self, state: NavigationState) -> None:
        if len(state.history) > 1:
            self._exit_armed = False
