"""
Reload the open table when its file changes on disk.
"""

import logging
from pathlib import Path
from typing import Optional, Union

from PySide6.QtCore import QFileSystemWatcher, QObject, Signal

from sheet_diff_tool.core.errors import SheetIOError
from sheet_diff_tool.session.edit_store import UndoableEditStore

logger = logging.getLogger(__name__)


class SheetFileWatcher(QObject):
    """
    Forwards file-change notifications to an edit store.

    Editors and git often replace a file instead of writing it in place,
    which drops it from QFileSystemWatcher, so the path is re-added on
    every notification while it exists.
    """

    reloaded = Signal(str)
    ignored = Signal(str)

    def __init__(self, store: UndoableEditStore, parent: Optional[QObject] = None):
        super().__init__(parent)
        self._store = store
        self._path: Optional[Path] = None
        self._watcher = QFileSystemWatcher(self)
        self._watcher.fileChanged.connect(self._on_file_changed)

    @property
    def path(self) -> Optional[Path]:
        return self._path

    def watch(self, path: Union[str, Path]) -> None:
        self.unwatch()
        self._path = Path(path)
        if not self._watcher.addPath(str(self._path)):
            logger.warning("Could not watch %s", self._path)

    def unwatch(self) -> None:
        files = self._watcher.files()
        if files:
            self._watcher.removePaths(files)
        self._path = None

    def _on_file_changed(self, path: str) -> None:
        if self._path is not None and self._path.exists():
            if str(self._path) not in self._watcher.files():
                self._watcher.addPath(str(self._path))

        try:
            reloaded = self._store.handle_external_change(path)
        except SheetIOError as e:
            logger.warning("Could not reload %s: %s", path, e)
            reloaded = False

        if reloaded:
            self.reloaded.emit(path)
        else:
            self.ignored.emit(path)
