"""
Tests for debounced auto-save.
"""

from pathlib import Path
from unittest.mock import MagicMock

import pytest

from sheet_diff_tool.core.errors import RevisionError, SheetIOError
from sheet_diff_tool.core.sheet_model import TableModel
from sheet_diff_tool.core.snapshot import CsvSnapshotProvider
from sheet_diff_tool.session.autosave import AutoSaver
from sheet_diff_tool.session.edit_store import UndoableEditStore


@pytest.fixture
def file_store(tmp_path):
    (tmp_path / "data.csv").write_text("id,val\n1,10\n")
    store = UndoableEditStore(CsvSnapshotProvider(tmp_path))
    store.load_file("data.csv")
    return store


class TestAutoSaver:
    def test_default_delay(self, qapp, file_store):
        saver = AutoSaver(file_store)
        assert saver.delay_ms == AutoSaver.AUTO_SAVE_DELAY_MS == 2000
        saver.stop()

    def test_edit_schedules_save(self, qapp, file_store):
        saver = AutoSaver(file_store, delay_ms=60_000)
        assert not saver.is_pending
        file_store.update_cell(0, "val", "11")
        assert saver.is_pending
        saver.stop()
        assert not saver.is_pending

    def test_timeout_saves_and_commits(self, qapp, file_store, tmp_path):
        commit_hook = MagicMock()
        saver = AutoSaver(file_store, commit_hook=commit_hook, delay_ms=60_000)
        saved = []
        saver.saved.connect(saved.append)

        file_store.update_cell(0, "val", "11")
        saver._on_timeout()

        assert (tmp_path / "data.csv").read_text() == "id,val\n1,11\n"
        assert not file_store.is_dirty
        assert saved == [len("id,val\n1,11\n")]
        commit_hook.assert_called_once_with(
            tmp_path / "data.csv", "data.csv: edit 1 cell(s)"
        )
        saver.stop()

    def test_timeout_when_clean_does_nothing(self, qapp, file_store):
        commit_hook = MagicMock()
        saver = AutoSaver(file_store, commit_hook=commit_hook)
        saver._on_timeout()
        commit_hook.assert_not_called()
        saver.stop()

    def test_timeout_while_saving_reschedules(self, qapp):
        store = MagicMock()
        store.is_dirty = True
        store.is_saving = True
        store.file_path = Path("data.csv")
        saver = AutoSaver(store, delay_ms=60_000)

        saver._on_timeout()

        store.save.assert_not_called()
        assert saver.is_pending
        saver.stop()

    def test_failure_is_reported_and_retried(self, qapp):
        provider = MagicMock()
        provider.write_table.side_effect = SheetIOError("data.csv", "disk full")
        store = UndoableEditStore(provider)
        store.load_table(TableModel.from_rows([["a"], ["1"]]), Path("data.csv"))
        saver = AutoSaver(store, delay_ms=60_000)
        failures = []
        saver.save_failed.connect(failures.append)

        store.update_cell(0, "a", "2")
        assert saver.flush() == 0

        assert failures == ["data.csv: disk full"]
        assert store.is_dirty
        assert store.table.value(0, "a") == "2"
        assert saver.is_pending
        saver.stop()

    def test_unencodable_value_does_not_stall_saving(self, qapp, tmp_path):
        (tmp_path / "data.csv").write_text("a\n1\n", encoding="latin-1")
        store = UndoableEditStore(CsvSnapshotProvider(tmp_path, encoding="latin-1"))
        store.load_file("data.csv")
        saver = AutoSaver(store, delay_ms=60_000)
        failures = []
        saver.save_failed.connect(failures.append)

        store.update_cell(0, "a", "€")
        assert saver.flush() == 0
        assert len(failures) == 1
        assert not store.is_saving
        assert saver.is_pending

        store.update_cell(0, "a", "2")
        assert saver.flush() > 0
        assert not store.is_dirty
        saver.stop()

    def test_commit_failure_is_not_raised(self, qapp, file_store):
        errors = []
        file_store.error_sink = errors.append
        commit_hook = MagicMock(side_effect=RevisionError("nothing to commit"))
        saver = AutoSaver(file_store, commit_hook=commit_hook, delay_ms=60_000)

        file_store.update_cell(0, "val", "11")
        assert saver.flush() > 0
        assert errors == ["Auto-commit failed: nothing to commit"]
        saver.stop()

    def test_load_cancels_pending_save(self, qapp, file_store):
        saver = AutoSaver(file_store, delay_ms=60_000)
        file_store.update_cell(0, "val", "11")
        file_store.load_file("data.csv")
        assert not saver.is_pending
        saver.stop()
