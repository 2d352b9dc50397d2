"""
Tests for reading and writing table files.
"""

import pytest

from sheet_diff_tool.core.errors import SheetIOError
from sheet_diff_tool.core.sheet_model import TableModel
from sheet_diff_tool.core.snapshot import (
    CsvSnapshotProvider,
    table_from_text,
    table_to_text,
    unique_headers,
)


class TestTableText:
    def test_parse(self):
        table = table_from_text("id,name\n1,Alice\n2,Bob\n")
        assert table.columns == ("id", "name")
        assert table.rows == (("1", "Alice"), ("2", "Bob"))

    def test_empty_text(self):
        assert table_from_text("") == TableModel.empty()
        assert table_from_text("\n\n") == TableModel.empty()

    def test_ragged_rows_and_blank_lines(self):
        table = table_from_text("a,b\n1\n\n2,3,4\n")
        assert table.rows == (("1", ""), ("2", "3"))

    def test_quoted_values(self):
        table = table_from_text('name,note\n"Smith, J","said ""hi"""\n')
        assert table.rows == (("Smith, J", 'said "hi"'),)
        assert table_to_text(table) == 'name,note\n"Smith, J","said ""hi"""\n'

    def test_duplicate_headers_made_unique(self):
        table = table_from_text("a,a,b,a\n1,2,3,4\n")
        assert table.columns == ("a", "a_2", "b", "a_3")

    def test_unique_headers_avoids_existing_names(self):
        assert unique_headers(["a", "a_2", "a"]) == ["a", "a_2", "a_3"]

    def test_tab_delimiter(self):
        table = table_from_text("a\tb\n1\t2\n", delimiter="\t")
        assert table.rows == (("1", "2"),)
        assert table_to_text(table, "\t") == "a\tb\n1\t2\n"

    def test_empty_table_to_text(self):
        assert table_to_text(TableModel.empty()) == ""

    def test_rows_without_columns_are_not_written(self):
        table = TableModel(columns=(), rows=((), ()))
        assert table.row_count == 2
        assert table_to_text(table) == ""
        assert table_from_text(table_to_text(table)) == TableModel.empty()


class TestCsvSnapshotProvider:
    def test_write_then_load(self, tmp_path):
        provider = CsvSnapshotProvider(tmp_path)
        table = TableModel.from_rows([["id", "name"], ["1", "Alice"]])

        written = provider.write_table("data/people.csv", table)

        path = tmp_path / "data" / "people.csv"
        assert written == path.stat().st_size
        assert path.read_text() == "id,name\n1,Alice\n"
        assert provider.load_table("data/people.csv") == table

    def test_tsv_uses_tabs(self, tmp_path):
        provider = CsvSnapshotProvider(tmp_path)
        provider.write_table("t.tsv", TableModel.from_rows([["a", "b"], ["1", "2"]]))
        assert (tmp_path / "t.tsv").read_text() == "a\tb\n1\t2\n"

    def test_byte_order_mark_is_stripped(self, tmp_path):
        (tmp_path / "bom.csv").write_bytes("\ufeffid\n1\n".encode("utf-8"))
        table = CsvSnapshotProvider(tmp_path).load_table("bom.csv")
        assert table.columns == ("id",)

    def test_absolute_identifier(self, tmp_path):
        path = tmp_path / "abs.csv"
        path.write_text("a\n1\n")
        table = CsvSnapshotProvider(tmp_path / "elsewhere").load_table(path)
        assert table.rows == (("1",),)

    def test_missing_file(self, tmp_path):
        with pytest.raises(SheetIOError) as exc_info:
            CsvSnapshotProvider(tmp_path).load_table("missing.csv")
        assert exc_info.value.identifier == "missing.csv"
        assert exc_info.value.reason == "file not found"

    def test_invalid_encoding(self, tmp_path):
        (tmp_path / "bad.csv").write_bytes(b"a\n\xff\xfe\xfa\n")
        with pytest.raises(SheetIOError):
            CsvSnapshotProvider(tmp_path).load_table("bad.csv")

    def test_write_failure(self, tmp_path):
        (tmp_path / "blocker").write_text("not a directory")
        provider = CsvSnapshotProvider(tmp_path)
        with pytest.raises(SheetIOError):
            provider.write_table("blocker/t.csv", TableModel.from_rows([["a"]]))

    def test_unencodable_value(self, tmp_path):
        (tmp_path / "t.csv").write_text("a\nold\n", encoding="latin-1")
        provider = CsvSnapshotProvider(tmp_path, encoding="latin-1")
        with pytest.raises(SheetIOError):
            provider.write_table("t.csv", TableModel.from_rows([["a"], ["\u20ac\u4e2d"]]))
        assert (tmp_path / "t.csv").read_text(encoding="latin-1") == "a\nold\n"
        assert [p.name for p in tmp_path.iterdir()] == ["t.csv"]

    def test_list_tables(self, tmp_path):
        (tmp_path / "b.csv").write_text("a\n")
        (tmp_path / "A.tsv").write_text("a\n")
        (tmp_path / "notes.txt").write_text("x")
        (tmp_path / "sub").mkdir()
        (tmp_path / "sub" / "c.CSV").write_text("a\n")
        (tmp_path / ".git").mkdir()
        (tmp_path / ".git" / "hidden.csv").write_text("a\n")

        tables = CsvSnapshotProvider(tmp_path).list_tables()

        assert [t.name for t in tables] == ["A.tsv", "b.csv", "c.CSV"]
        assert tables[2].path == "sub/c.CSV"
        assert tables[0].size_bytes == 2
