"""
Tests for diff classification.
"""

from sheet_diff_tool.core.aligner import align
from sheet_diff_tool.core.classifier import classify, compare_tables
from sheet_diff_tool.core.sheet_model import NO_CHANGES, ModifiedCell, TableModel


def make_table(*rows):
    return TableModel.from_rows(rows)


class TestClassify:
    def test_identical_tables_have_no_changes(self):
        table = make_table(["id", "name"], ["1", "Alice"], ["2", "Bob"])
        diff = classify(*align(table, table), table, table)
        assert diff.is_empty
        assert diff.summary == NO_CHANGES

    def test_added_row(self):
        left = make_table(["id", "name"], ["1", "Alice"])
        right = make_table(["id", "name"], ["1", "Alice"], ["2", "Bob"])
        diff = classify(*align(left, right), left, right)
        assert diff.added_rows == [1]
        assert diff.removed_rows == []
        assert diff.modified_cells == []
        assert diff.added_columns == []
        assert diff.removed_columns == []
        assert diff.summary == "1 row(s) added"

    def test_modified_cell(self):
        left = make_table(["id", "val"], ["1", "10"], ["2", "20"])
        right = make_table(["id", "val"], ["1", "10"], ["2", "99"])
        diff = classify(*align(left, right), left, right)
        assert diff.modified_cells == [ModifiedCell(row=1, col="val", old_value="20", new_value="99")]
        assert diff.summary == "1 cell(s) modified"

    def test_positions_share_one_counter(self):
        """Removed and added rows are numbered along the same diff rows."""
        left = make_table(["id", "v"], ["1", "a"], ["2", "b"], ["3", "c"])
        right = make_table(["id", "v"], ["1", "a"], ["3", "c"], ["4", "d"])
        diff = classify(*align(left, right), left, right)
        assert diff.removed_rows == [1]
        assert diff.added_rows == [3]
        assert diff.summary == "1 row(s) added, 1 row(s) removed"

    def test_added_column_is_not_a_cell_change(self):
        left = make_table(["id", "name"], ["1", "Alice"])
        right = make_table(["id", "name", "age"], ["1", "Alice", "30"])
        diff = classify(*align(left, right), left, right)
        assert diff.added_columns == ["age"]
        assert diff.modified_cells == []
        assert diff.summary == "1 column(s) added"

    def test_removed_column(self):
        left = make_table(["id", "name", "age"], ["1", "Alice", "30"])
        right = make_table(["id", "name"], ["1", "Alice"])
        diff = classify(*align(left, right), left, right)
        assert diff.removed_columns == ["age"]
        assert diff.summary == "1 column(s) removed"

    def test_disjoint_columns(self):
        left = make_table(["a"], ["x"])
        right = make_table(["b"], ["x"])
        diff = classify(*align(left, right), left, right)
        assert diff.added_columns == ["b"]
        assert diff.removed_columns == ["a"]
        assert diff.added_rows == []
        assert diff.removed_rows == []
        assert diff.modified_cells == []

    def test_from_empty_table(self):
        right = make_table(["a"], ["1"], ["2"])
        diff = classify(*align(TableModel.empty(), right), TableModel.empty(), right)
        assert diff.added_rows == [0, 1]
        assert diff.added_columns == ["a"]


class TestCompareTables:
    def test_returns_alignments_and_summary(self):
        left = make_table(["id", "name"], ["1", "Alice"])
        right = make_table(["id", "name"], ["1", "Alice"], ["2", "Bob"])
        result = compare_tables(left, right)
        assert result.summary == "1 row(s) added"
        assert result.row_alignment.inserted() == [1]
        assert not result.column_alignment.has_changes
        assert result.structured_diff.to_dict()["addedRows"] == [1]
