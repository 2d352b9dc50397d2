"""
Loading and writing table snapshots as delimited text.

Quoting and delimiter rules are left to the standard csv module; this
module only turns its rows into rectangular TableModels and back.
"""

import csv
import io
import logging
import os
import tempfile
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Union

from sheet_diff_tool.core.errors import SheetIOError
from sheet_diff_tool.core.sheet_model import TableModel

logger = logging.getLogger(__name__)

# Delimiter by file extension
DELIMITERS = {
    ".csv": ",",
    ".tsv": "\t",
}


def delimiter_for(path: Union[str, Path]) -> str:
    """Get the delimiter for a file, defaulting to comma."""
    return DELIMITERS.get(Path(path).suffix.lower(), ",")


def unique_headers(header: list[str]) -> list[str]:
    """Make header names unique by suffixing repeats: name, name_2, ..."""
    seen: set[str] = set()
    result = []
    for name in header:
        candidate = name
        counter = 2
        while candidate in seen:
            candidate = f"{name}_{counter}"
            counter += 1
        seen.add(candidate)
        result.append(candidate)
    return result


def table_from_text(text: str, delimiter: str = ",") -> TableModel:
    """
    Parse delimited text into a TableModel.

    The first non-blank row is the header. Blank lines are skipped and
    ragged rows are padded or truncated to the header width.
    """
    reader = csv.reader(io.StringIO(text), delimiter=delimiter)
    rows = [row for row in reader if row]
    if not rows:
        return TableModel.empty()
    return TableModel(columns=tuple(unique_headers(rows[0])), rows=tuple(rows[1:]))


def table_to_text(table: TableModel, delimiter: str = ",") -> str:
    """
    Serialize a TableModel as delimited text with a header row.

    A table without columns serializes to an empty string even when it
    has rows: a row with no cells is a blank line, and blank lines are
    skipped when reading, so such rows cannot survive a round trip.
    """
    if not table.columns:
        return ""
    buffer = io.StringIO()
    writer = csv.writer(buffer, delimiter=delimiter, lineterminator="\n")
    writer.writerow(table.columns)
    writer.writerows(table.rows)
    return buffer.getvalue()


@dataclass
class TableInfo:
    """Summary information about a table file."""
    name: str
    path: str  # Relative to the provider root
    size_bytes: int
    modified: datetime


class CsvSnapshotProvider:
    """
    Reads and writes table files under a root directory.

    Identifiers are paths relative to the root (absolute paths are used
    as-is). Writes go through a temporary file so a failed write never
    leaves a half-written table behind.
    """

    TABLE_EXTENSIONS = frozenset({".csv", ".tsv"})

    def __init__(self, root: Optional[Path] = None, encoding: str = "utf-8"):
        self._root = Path(root) if root is not None else Path.cwd()
        self._encoding = encoding

    @property
    def root(self) -> Path:
        return self._root

    def resolve_path(self, identifier: Union[str, Path]) -> Path:
        path = Path(identifier)
        return path if path.is_absolute() else self._root / path

    def load_table(self, identifier: Union[str, Path]) -> TableModel:
        """
        Load a table file.

        Raises:
            SheetIOError: If the file is missing, unreadable or not text
        """
        path = self.resolve_path(identifier)
        try:
            # utf-8-sig also strips a byte order mark
            text = path.read_bytes().decode(
                "utf-8-sig" if self._encoding.lower() == "utf-8" else self._encoding
            )
            table = table_from_text(text, delimiter_for(path))
        except FileNotFoundError:
            raise SheetIOError(str(identifier), "file not found") from None
        except (OSError, UnicodeDecodeError, csv.Error) as e:
            raise SheetIOError(str(identifier), str(e)) from e

        logger.debug(
            "Loaded %s: %d columns, %d rows", path, table.column_count, table.row_count
        )
        return table

    def write_table(self, identifier: Union[str, Path], table: TableModel) -> int:
        """
        Write a table file.

        Returns:
            Number of bytes written

        Raises:
            SheetIOError: If the table cannot be encoded or the file
                could not be written
        """
        path = self.resolve_path(identifier)
        try:
            data = table_to_text(table, delimiter_for(path)).encode(self._encoding)
            path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{path.name}.", suffix=".tmp", dir=str(path.parent)
            )
            try:
                with os.fdopen(fd, "wb") as f:
                    f.write(data)
                os.replace(tmp_name, path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except (OSError, UnicodeError) as e:
            raise SheetIOError(str(identifier), str(e)) from e

        logger.debug("Wrote %s (%d bytes)", path, len(data))
        return len(data)

    def list_tables(self) -> list[TableInfo]:
        """List table files under the root recursively, skipping .git."""
        tables = []
        for dirpath, dirnames, filenames in os.walk(self._root):
            dirnames[:] = [d for d in dirnames if d != ".git"]
            for filename in filenames:
                path = Path(dirpath) / filename
                if path.suffix.lower() not in self.TABLE_EXTENSIONS:
                    continue
                try:
                    stat = path.stat()
                except OSError:
                    continue
                tables.append(TableInfo(
                    name=filename,
                    path=path.relative_to(self._root).as_posix(),
                    size_bytes=stat.st_size,
                    modified=datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc),
                ))
        tables.sort(key=lambda t: t.name.lower())
        return tables
