"""
Tests for diff rendering and highlight lookup.
"""

from sheet_diff_tool.core.classifier import compare_tables
from sheet_diff_tool.core.render import DiffHighlighter, render_diff_rows, render_diff_text
from sheet_diff_tool.core.sheet_model import DiffStatus, TableModel
from sheet_diff_tool.utils.colors import DiffColors, ansi_foreground


def make_table(*rows):
    return TableModel.from_rows(rows)


LEFT = make_table(["id", "val"], ["1", "10"], ["2", "20"], ["3", "30"])
RIGHT = make_table(["id", "val"], ["1", "10"], ["2", "99"], ["4", "40"])


class TestRenderDiffRows:
    def test_markers(self):
        rows = render_diff_rows(LEFT, RIGHT, compare_tables(LEFT, RIGHT))
        assert rows == [
            ["@@", "id", "val"],
            ["", "1", "10"],
            ["->", "2", "20->99"],
            ["---", "3", "30"],
            ["+++", "4", "40"],
        ]

    def test_schema_row_for_column_changes(self):
        left = make_table(["id", "old"], ["1", "x"])
        right = make_table(["id", "new"], ["1", "y"])
        rows = render_diff_rows(left, right, compare_tables(left, right))
        assert rows[0] == ["!", "", "---", "+++"]
        assert rows[1] == ["@@", "id", "old", "new"]
        assert rows[2] == ["", "1", "x", "y"]

    def test_text_is_padded(self):
        text = render_diff_text(LEFT, RIGHT, compare_tables(LEFT, RIGHT))
        lines = text.splitlines()
        assert lines[0] == "@@  | id | val"
        assert lines[2] == "->  | 2  | 20->99"


class TestDiffHighlighter:
    def test_statuses(self):
        highlighter = DiffHighlighter(compare_tables(LEFT, RIGHT))
        assert highlighter.row_status(0) == DiffStatus.UNCHANGED
        assert highlighter.row_status(1) == DiffStatus.MODIFIED
        assert highlighter.row_status(2) == DiffStatus.REMOVED
        assert highlighter.row_status(3) == DiffStatus.ADDED
        assert highlighter.cell_status(1, "val") == DiffStatus.MODIFIED
        assert highlighter.cell_status(1, "id") == DiffStatus.UNCHANGED
        assert highlighter.cell_status(3, "id") == DiffStatus.ADDED

    def test_column_status(self):
        left = make_table(["id", "old"], ["1", "x"])
        right = make_table(["id", "new"], ["1", "y"])
        highlighter = DiffHighlighter(compare_tables(left, right))
        assert highlighter.column_status("new") == DiffStatus.ADDED
        assert highlighter.column_status("old") == DiffStatus.REMOVED
        assert highlighter.cell_status(0, "new") == DiffStatus.ADDED

    def test_cell_background(self):
        highlighter = DiffHighlighter(compare_tables(LEFT, RIGHT))
        assert highlighter.cell_background(1, "val") == DiffColors.MODIFIED_BG
        assert highlighter.cell_background(3, "id", dark_mode=True) == DiffColors.ADDED_BG_DARK
        assert highlighter.cell_background(0, "val") is None


class TestColoredText:
    def test_changed_rows_use_accent_colors(self):
        plain = render_diff_text(LEFT, RIGHT, compare_tables(LEFT, RIGHT)).splitlines()
        colored = render_diff_text(LEFT, RIGHT, compare_tables(LEFT, RIGHT), color=True).splitlines()
        assert colored[0] == plain[0]
        assert colored[1] == plain[1]
        assert colored[2] == ansi_foreground(DiffColors.MODIFIED_ACCENT, plain[2])
        assert colored[3] == ansi_foreground(DiffColors.REMOVED_ACCENT, plain[3])
        assert colored[4] == ansi_foreground(DiffColors.ADDED_ACCENT, plain[4])
