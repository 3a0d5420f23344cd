"""View transition hooks registry.

Each view can register lifecycle hooks that run when the navigator moves
into or out of it:

- ``save_context(state)`` returns the context to store on the view's own
  history entry before a contextual navigation pushes a new view.
- ``on_leave(state, actions)`` returns state updates when the view is left
  by a back transition. It may be a coroutine function.
- ``on_enter(context, state)`` returns state updates when a back transition
  returns to the view, with the context saved on its history entry.

Hooks receive a snapshot of the navigation state and never mutate it.
"""

from __future__ import annotations

import inspect
from dataclasses import dataclass, replace
from typing import Any, Awaitable, Callable

from .views import View

StateUpdates = dict[str, Any]
Context = dict[str, Any]

SaveContextHook = Callable[[Any], Context]
OnLeaveHook = Callable[[Any, Any], "StateUpdates | Awaitable[StateUpdates]"]
OnEnterHook = Callable[["Context | None", Any], StateUpdates]


@dataclass(frozen=True)
class ViewHooks:
    """Optional lifecycle hooks for a single view."""

    save_context: SaveContextHook | None = None
    on_leave: OnLeaveHook | None = None
    on_enter: OnEnterHook | None = None


class HookRegistry:
    """Table mapping a view to its lifecycle hooks."""

    def __init__(self) -> None:
        self._hooks: dict[View, ViewHooks] = {}

    def register(
        self,
        view: View,
        save_context: SaveContextHook | None = None,
        on_leave: OnLeaveHook | None = None,
        on_enter: OnEnterHook | None = None,
    ) -> None:
        """Merge hooks into those already registered for a view.

        Hooks passed as None keep whatever was registered before.
        """
        current = self._hooks.get(view, ViewHooks())
        changes = {
            name: hook
            for name, hook in (
                ("save_context", save_context),
                ("on_leave", on_leave),
                ("on_enter", on_enter),
            )
            if hook is not None
        }
        self._hooks[view] = replace(current, **changes)

    def get(self, view: View) -> ViewHooks:
        """Get hooks for a view, or an empty hook set."""
        return self._hooks.get(view, ViewHooks())

    def call_save_context(self, view: View, state: Any) -> Context | None:
        """Call the save_context hook if registered.

        Returns None when the view has nothing to save, which callers must
        keep apart from an empty saved context.
        """
        hooks = self.get(view)
        if hooks.save_context is None:
            return None
        return hooks.save_context(state)

    async def call_on_leave(self, view: View, state: Any, actions: Any) -> StateUpdates:
        """Call the on_leave hook if registered, awaiting it when needed."""
        hooks = self.get(view)
        if hooks.on_leave is None:
            return {}
        result = hooks.on_leave(state, actions)
        if inspect.isawaitable(result):
            result = await result
        return result or {}

    def call_on_enter(self, view: View, context: Context | None, state: Any) -> StateUpdates:
        """Call the on_enter hook if registered."""
        hooks = self.get(view)
        if hooks.on_enter is None:
            return {}
        return hooks.on_enter(context, state) or {}

    def clear(self) -> None:
        """Forget every registered hook."""
        self._hooks.clear()

    def __contains__(self, view: object) -> bool:
        return view in self._hooks


# Process-wide registry used by the application
registry = HookRegistry()


def register_view_hooks(
    view: View,
    save_context: SaveContextHook | None = None,
    on_leave: OnLeaveHook | None = None,
    on_enter: OnEnterHook | None = None,
) -> None:
    """Register hooks for a view on the process-wide registry."""
    registry.register(view, save_context=save_context, on_leave=on_leave, on_enter=on_enter)


def get_view_hooks(view: View) -> ViewHooks:
    """Get hooks for a view from the process-wide registry."""
    return registry.get(view)
