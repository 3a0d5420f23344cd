"""Lifecycle hooks for NOTE_VIEW and NOTE_EDIT."""

from __future__ import annotations

from typing import Any

from .hooks import Context, HookRegistry, StateUpdates, registry as default_registry
from .views import View


def save_note_context(state: Any) -> Context:
    """Capture the note on screen so a later back can restore it."""
    return {
        "note": state.current_note,
        "content": state.note_content,
        "rendered": state.rendered_content,
    }


def clear_note(state: Any, actions: Any) -> StateUpdates:
    """Drop the displayed note when leaving the note view."""
    return {
        "current_note": None,
        "note_content": "",
        "rendered_content": "",
        "is_editing": False,
    }


def restore_note(context: Context | None, state: Any) -> StateUpdates:
    """Restore a previously saved note context, if the entry has one."""
    if context and context.get("note"):
        return {
            "current_note": context["note"],
            "note_content": context.get("content") or "",
            "rendered_content": context.get("rendered") or "",
            "is_editing": False,
        }
    return {}


async def save_before_leaving_edit(state: Any, actions: Any) -> StateUpdates:
    """Persist the editor buffer, then leave edit mode."""
    updates: StateUpdates = {"is_editing": False}
    if state.is_editing:
        rendered = await actions.persist_editable_content(
            state.current_note, state.note_content
        )
        if rendered is not None:
            updates["rendered_content"] = rendered
    return updates


def register_note_hooks(registry: HookRegistry = default_registry) -> None:
    """Install the note view and note edit hooks."""
    registry.register(
        View.NOTE_VIEW,
        save_context=save_note_context,
        on_leave=clear_note,
        on_enter=restore_note,
    )
    # Edit mode is entered through Navigator.toggle_edit, so no on_enter
    registry.register(View.NOTE_EDIT, on_leave=save_before_leaving_edit)
