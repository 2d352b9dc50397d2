"""
Tests for external file change handling.
"""

import pytest

from sheet_diff_tool.core.snapshot import CsvSnapshotProvider
from sheet_diff_tool.session.edit_store import UndoableEditStore
from sheet_diff_tool.session.file_watcher import SheetFileWatcher


@pytest.fixture
def data_file(tmp_path):
    path = tmp_path / "data.csv"
    path.write_text("id,val\n1,10\n")
    return path


@pytest.fixture
def store(data_file):
    store = UndoableEditStore(CsvSnapshotProvider(data_file.parent))
    store.load_file(data_file.name)
    return store


class TestSheetFileWatcher:
    def test_watch_and_unwatch(self, qapp, store, data_file):
        watcher = SheetFileWatcher(store)
        watcher.watch(data_file)
        assert watcher.path == data_file
        watcher.unwatch()
        assert watcher.path is None

    def test_change_reloads_clean_store(self, qapp, store, data_file):
        watcher = SheetFileWatcher(store)
        watcher.watch(data_file)
        reloaded = []
        watcher.reloaded.connect(reloaded.append)

        data_file.write_text("id,val\n1,12\n")
        watcher._on_file_changed(str(data_file))

        assert reloaded == [str(data_file)]
        assert store.table.value(0, "val") == "12"

    def test_change_ignored_when_dirty(self, qapp, store, data_file):
        watcher = SheetFileWatcher(store)
        watcher.watch(data_file)
        ignored = []
        watcher.ignored.connect(ignored.append)

        store.update_cell(0, "val", "mine")
        data_file.write_text("id,val\n1,12\n")
        watcher._on_file_changed(str(data_file))

        assert ignored == [str(data_file)]
        assert store.table.value(0, "val") == "mine"

    def test_deleted_file_is_ignored(self, qapp, store, data_file):
        watcher = SheetFileWatcher(store)
        watcher.watch(data_file)
        ignored = []
        watcher.ignored.connect(ignored.append)

        data_file.unlink()
        watcher._on_file_changed(str(data_file))

        assert ignored == [str(data_file)]
        assert store.table.value(0, "val") == "10"
