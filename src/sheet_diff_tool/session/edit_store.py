"""
In-memory editing session for a single table file.

Every mutation replaces the current TableModel with a new immutable one,
so the undo and redo stacks hold whole-table snapshots that share their
unchanged rows with each other.
"""

import logging
from collections import deque
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Optional, Sequence, Union

from sheet_diff_tool.core.errors import SheetIOError
from sheet_diff_tool.core.sheet_model import TableModel
from sheet_diff_tool.core.snapshot import CsvSnapshotProvider

logger = logging.getLogger(__name__)


class EditState(Enum):
    """Whether the table differs from what was last loaded or saved."""
    CLEAN = "clean"
    DIRTY = "dirty"


class StoreEvent(Enum):
    """Notifications sent to store listeners."""
    LOADED = "loaded"
    CHANGED = "changed"
    SAVED = "saved"
    SAVE_FAILED = "save_failed"
    EXTERNAL_CHANGE_IGNORED = "external_change_ignored"
    CLEARED = "cleared"


# Listener signature: (event, store) -> None
StoreListener = Callable[[StoreEvent, "UndoableEditStore"], None]


class UndoableEditStore:
    """
    Editable table with bounded undo/redo history and save status.

    Invalid edit arguments raise before anything changes, so a failed
    edit never leaves a half-applied state or a spurious history entry.
    """

    MAX_UNDO = 100

    def __init__(
        self,
        provider: Optional[CsvSnapshotProvider] = None,
        max_undo: Optional[int] = None,
        error_sink: Optional[Callable[[str], None]] = None,
    ):
        self._provider = provider or CsvSnapshotProvider()
        self._max_undo = max_undo if max_undo is not None else self.MAX_UNDO
        self.error_sink = error_sink

        self._table = TableModel.empty()
        self._baseline = self._table
        self._file_path: Optional[Path] = None
        self._state = EditState.CLEAN
        self._undo: deque[TableModel] = deque(maxlen=self._max_undo)
        self._redo: deque[TableModel] = deque(maxlen=self._max_undo)
        self._version = 0
        self._saving = False
        self._last_saved_at: Optional[datetime] = None
        self._listeners: list[StoreListener] = []

    # === Properties ===

    @property
    def table(self) -> TableModel:
        return self._table

    @property
    def baseline(self) -> TableModel:
        """Table as it was last loaded or saved."""
        return self._baseline

    @property
    def file_path(self) -> Optional[Path]:
        return self._file_path

    @property
    def state(self) -> EditState:
        return self._state

    @property
    def is_dirty(self) -> bool:
        return self._state == EditState.DIRTY

    @property
    def is_saving(self) -> bool:
        return self._saving

    @property
    def last_saved_at(self) -> Optional[datetime]:
        return self._last_saved_at

    @property
    def version(self) -> int:
        """Counter bumped by every edit, undo and redo."""
        return self._version

    @property
    def can_undo(self) -> bool:
        return bool(self._undo)

    @property
    def can_redo(self) -> bool:
        return bool(self._redo)

    @property
    def undo_depth(self) -> int:
        return len(self._undo)

    @property
    def redo_depth(self) -> int:
        return len(self._redo)

    # === Listeners ===

    def add_listener(self, listener: StoreListener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def remove_listener(self, listener: StoreListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _notify(self, event: StoreEvent) -> None:
        for listener in list(self._listeners):
            try:
                listener(event, self)
            except Exception:
                logger.exception("Store listener failed on %s", event.value)

    def _report(self, message: str) -> None:
        if self.error_sink is not None:
            self.error_sink(message)

    # === Loading ===

    def load_file(self, identifier: Union[str, Path]) -> None:
        """
        Load a table file and reset history.

        Raises:
            SheetIOError: If loading fails; the store is left untouched
        """
        table = self._provider.load_table(identifier)
        self._reset(table, self._provider.resolve_path(identifier))
        logger.info("Loaded %s", self._file_path)
        self._notify(StoreEvent.LOADED)

    def load_table(self, table: TableModel, path: Optional[Path] = None) -> None:
        """Start a session on an in-memory table."""
        self._reset(table, Path(path) if path is not None else None)
        self._notify(StoreEvent.LOADED)

    def clear_file(self) -> None:
        self._reset(TableModel.empty(), None)
        self._last_saved_at = None
        self._notify(StoreEvent.CLEARED)

    def _reset(self, table: TableModel, path: Optional[Path]) -> None:
        self._table = table
        self._baseline = table
        self._file_path = path
        self._state = EditState.CLEAN
        self._undo.clear()
        self._redo.clear()
        self._version += 1

    # === Edits ===

    def update_cell(self, row: int, column: str, value: Any) -> None:
        self._apply(self._table.with_cell(row, column, value))

    def add_row(self, index: Optional[int] = None, values: Optional[dict] = None) -> None:
        self._apply(self._table.with_row_inserted(index, values))

    def remove_row(self, index: int) -> None:
        self._apply(self._table.without_row(index))

    def move_row(self, from_index: int, to_index: int) -> None:
        self._apply(self._table.with_row_moved(from_index, to_index))

    def add_column(self, column: str, index: Optional[int] = None) -> None:
        self._apply(self._table.with_column_inserted(column, index))

    def remove_column(self, column: str) -> None:
        self._apply(self._table.without_column(column))

    def move_column(self, column: str, to_index: int) -> None:
        self._apply(self._table.with_column_moved(column, to_index))

    def reorder_columns(self, order: Sequence[str]) -> None:
        self._apply(self._table.with_columns_reordered(order))

    def _apply(self, table: TableModel) -> None:
        self._undo.append(self._table)
        self._redo.clear()
        self._swap(table)

    def _swap(self, table: TableModel) -> None:
        self._table = table
        self._state = EditState.DIRTY
        self._version += 1
        self._notify(StoreEvent.CHANGED)

    # === History ===

    def undo(self) -> bool:
        """Restore the previous table. Returns False if there is none."""
        if not self._undo:
            return False
        self._redo.append(self._table)
        self._swap(self._undo.pop())
        return True

    def redo(self) -> bool:
        """Re-apply an undone edit. Returns False if there is none."""
        if not self._redo:
            return False
        self._undo.append(self._table)
        self._swap(self._redo.pop())
        return True

    # === Saving ===

    def save(self) -> int:
        """
        Write the current table to the open file.

        Returns:
            Bytes written, or 0 if there is no file or a save is in flight

        Raises:
            SheetIOError: If the write fails; the store stays DIRTY
        """
        if self._file_path is None or self._saving:
            return 0

        self._saving = True
        table = self._table
        version = self._version
        try:
            written = self._provider.write_table(self._file_path, table)
        except SheetIOError as e:
            logger.error("Save failed: %s", e)
            self._report(f"Failed to save {self._file_path.name}: {e.reason}")
            self._notify(StoreEvent.SAVE_FAILED)
            raise
        finally:
            self._saving = False

        self._baseline = table
        self._last_saved_at = datetime.now()
        # Edits made while writing keep the store dirty
        if self._version == version:
            self._state = EditState.CLEAN
        logger.info("Saved %s (%d bytes)", self._file_path, written)
        self._notify(StoreEvent.SAVED)
        return written

    # === External changes ===

    def handle_external_change(self, path: Union[str, Path]) -> bool:
        """
        React to the open file changing on disk.

        Reloads only when the path is the open file and there are no
        unsaved edits. Reloading identical content keeps the history.

        Returns:
            True if the store now matches the file on disk

        Raises:
            SheetIOError: If reloading fails; the store is left untouched
        """
        if self._file_path is None or not _same_file(Path(path), self._file_path):
            return False
        if self.is_dirty:
            logger.info("Ignoring external change to %s: unsaved edits", path)
            self._notify(StoreEvent.EXTERNAL_CHANGE_IGNORED)
            return False

        table = self._provider.load_table(self._file_path)
        if table == self._table:
            return True
        self._reset(table, self._file_path)
        logger.info("Reloaded %s after external change", self._file_path)
        self._notify(StoreEvent.LOADED)
        return True


def _same_file(a: Path, b: Path) -> bool:
    try:
        return a.resolve() == b.resolve()
    except OSError:
        return a == b
