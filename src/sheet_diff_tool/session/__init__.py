"""Editing session: undo history, auto-save and file watching."""

from sheet_diff_tool.session.edit_store import (
    EditState,
    StoreEvent,
    UndoableEditStore,
)

__all__ = [
    "EditState",
    "StoreEvent",
    "UndoableEditStore",
]
