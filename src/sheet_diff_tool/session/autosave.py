"""
Debounced auto-save for an edit store.
"""

import logging
from pathlib import Path
from typing import Callable, Optional

from PySide6.QtCore import QObject, QTimer, Signal

from sheet_diff_tool.core.errors import RevisionError, SheetIOError
from sheet_diff_tool.session.edit_store import StoreEvent, UndoableEditStore
from sheet_diff_tool.utils.commit_message import generate_commit_message

logger = logging.getLogger(__name__)

# Commit hook signature: (path, message) -> None
CommitHook = Callable[[Path, str], None]


class AutoSaver(QObject):
    """
    Saves the store a short while after the last edit.

    Each edit restarts a single-shot timer. A failed save is reported and
    retried on the next timer cycle; edits are never rolled back.
    """

    saved = Signal(int)  # Bytes written
    save_failed = Signal(str)  # Error message

    AUTO_SAVE_DELAY_MS = 2000

    def __init__(
        self,
        store: UndoableEditStore,
        commit_hook: Optional[CommitHook] = None,
        delay_ms: Optional[int] = None,
        parent: Optional[QObject] = None,
    ):
        super().__init__(parent)
        self._store = store
        self.commit_hook = commit_hook

        self._timer = QTimer(self)
        self._timer.setSingleShot(True)
        self._timer.setInterval(delay_ms if delay_ms is not None else self.AUTO_SAVE_DELAY_MS)
        self._timer.timeout.connect(self._on_timeout)

        self._store.add_listener(self._on_store_event)

    @property
    def delay_ms(self) -> int:
        return self._timer.interval()

    @property
    def is_pending(self) -> bool:
        return self._timer.isActive()

    def _on_store_event(self, event: StoreEvent, store: UndoableEditStore) -> None:
        if event == StoreEvent.CHANGED:
            self.schedule()
        elif event in (StoreEvent.LOADED, StoreEvent.CLEARED):
            self._timer.stop()

    def schedule(self) -> None:
        """Restart the debounce timer if there is something to save."""
        if self._store.is_dirty and self._store.file_path is not None:
            self._timer.start()

    def _on_timeout(self) -> None:
        if not self._store.is_dirty or self._store.file_path is None:
            return
        if self._store.is_saving:
            self._timer.start()
            return
        self.flush()

    def flush(self) -> int:
        """
        Save immediately.

        Returns:
            Bytes written, or 0 if nothing was saved
        """
        self._timer.stop()
        path = self._store.file_path
        if path is None or not self._store.is_dirty:
            return 0

        before = self._store.baseline
        try:
            written = self._store.save()
        except SheetIOError as e:
            logger.warning("Auto-save failed, will retry: %s", e)
            self.save_failed.emit(str(e))
            self._timer.start()
            return 0

        self.saved.emit(written)
        if self.commit_hook is not None:
            message = generate_commit_message(path, before, self._store.baseline)
            try:
                self.commit_hook(path, message)
            except RevisionError as e:
                logger.warning("Auto-commit failed: %s", e)
                if self._store.error_sink is not None:
                    self._store.error_sink(f"Auto-commit failed: {e}")
        return written

    def stop(self) -> None:
        """Cancel any pending save and detach from the store."""
        self._timer.stop()
        self._store.remove_listener(self._on_store_event)
