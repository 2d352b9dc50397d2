"""
Table data models for representing sheet snapshots, diffs and merges.
"""

from collections.abc import Iterable, Iterator, Mapping, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from sheet_diff_tool.core.errors import DuplicateColumnError

NO_CHANGES = "No changes detected"


def _cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    return str(value)


def _normalize_row(row: Iterable[Any], width: int) -> tuple[str, ...]:
    values = [_cell(v) for v in row][:width]
    if len(values) < width:
        values.extend([""] * (width - len(values)))
    return tuple(values)


@dataclass(frozen=True)
class TableModel:
    """
    Immutable rectangular snapshot of a table.

    Rows are stored as tuples of string values aligned with ``columns``.
    Short rows are padded with empty strings and surplus values are dropped,
    so every row always has exactly one value per column.
    """
    columns: tuple[str, ...] = ()
    rows: tuple[tuple[str, ...], ...] = ()

    def __post_init__(self) -> None:
        columns = tuple(_cell(c) for c in self.columns)
        width = len(columns)
        rows = tuple(_normalize_row(row, width) for row in self.rows)
        object.__setattr__(self, "columns", columns)
        object.__setattr__(self, "rows", rows)
        object.__setattr__(self, "_index", _build_index(columns))

    @classmethod
    def _trusted(
        cls, columns: tuple[str, ...], rows: tuple[tuple[str, ...], ...]
    ) -> "TableModel":
        """Build from already-normalized data without copying every row."""
        table = cls.__new__(cls)
        object.__setattr__(table, "columns", columns)
        object.__setattr__(table, "rows", rows)
        object.__setattr__(table, "_index", _build_index(columns))
        return table

    @classmethod
    def empty(cls) -> "TableModel":
        return cls()

    @classmethod
    def from_rows(cls, rows: Iterable[Sequence[Any]]) -> "TableModel":
        """Build a table from a list of rows whose first row is the header."""
        rows = list(rows)
        if not rows:
            return cls()
        return cls(columns=tuple(rows[0]), rows=tuple(rows[1:]))

    @classmethod
    def from_records(
        cls, columns: Sequence[str], records: Iterable[Mapping[str, Any]]
    ) -> "TableModel":
        """Build a table from column identifiers and row mappings."""
        columns = tuple(columns)
        return cls(
            columns=columns,
            rows=tuple(tuple(record.get(c, "") for c in columns) for record in records),
        )

    # === Read access ===

    @property
    def row_count(self) -> int:
        return len(self.rows)

    @property
    def column_count(self) -> int:
        return len(self.columns)

    def has_column(self, column: str) -> bool:
        return column in self._index

    def column_index(self, column: str) -> int:
        """Get the position of a column. Raises KeyError if unknown."""
        try:
            return self._index[column]
        except KeyError:
            raise KeyError(f"Unknown column: {column!r}") from None

    def value(self, row: int, column: str) -> str:
        """Get a single cell value."""
        return self.rows[row][self.column_index(column)]

    def row_dict(self, row: int) -> dict[str, str]:
        """Get a row as a column -> value mapping."""
        return dict(zip(self.columns, self.rows[row]))

    def iter_records(self) -> Iterator[dict[str, str]]:
        for row in self.rows:
            yield dict(zip(self.columns, row))

    def to_rows(self) -> list[list[str]]:
        """Header row followed by data rows, as plain lists."""
        if not self.columns and not self.rows:
            return []
        return [list(self.columns)] + [list(row) for row in self.rows]

    # === Copy-on-write edits ===

    def with_cell(self, row: int, column: str, value: Any) -> "TableModel":
        self._check_row(row)
        col = self.column_index(column)
        updated = list(self.rows[row])
        updated[col] = _cell(value)
        rows = self.rows[:row] + (tuple(updated),) + self.rows[row + 1:]
        return TableModel._trusted(self.columns, rows)

    def with_row_inserted(
        self,
        index: Optional[int] = None,
        values: Optional[Mapping[str, Any]] = None,
    ) -> "TableModel":
        """Insert a row (empty unless ``values`` given); appends by default."""
        if index is None:
            index = len(self.rows)
        if not 0 <= index <= len(self.rows):
            raise IndexError(f"Row index out of range: {index}")
        values = values or {}
        for key in values:
            self.column_index(key)
        new_row = tuple(_cell(values.get(c, "")) for c in self.columns)
        rows = self.rows[:index] + (new_row,) + self.rows[index:]
        return TableModel._trusted(self.columns, rows)

    def without_row(self, index: int) -> "TableModel":
        self._check_row(index)
        return TableModel._trusted(self.columns, self.rows[:index] + self.rows[index + 1:])

    def with_row_moved(self, from_index: int, to_index: int) -> "TableModel":
        self._check_row(from_index)
        self._check_row(to_index)
        rows = list(self.rows)
        rows.insert(to_index, rows.pop(from_index))
        return TableModel._trusted(self.columns, tuple(rows))

    def with_column_inserted(self, column: str, index: Optional[int] = None) -> "TableModel":
        """Insert a column filled with empty strings; appends by default."""
        column = _cell(column)
        if column in self._index:
            raise DuplicateColumnError(column)
        if index is None:
            index = len(self.columns)
        if not 0 <= index <= len(self.columns):
            raise IndexError(f"Column index out of range: {index}")
        columns = self.columns[:index] + (column,) + self.columns[index:]
        rows = tuple(row[:index] + ("",) + row[index:] for row in self.rows)
        return TableModel._trusted(columns, rows)

    def without_column(self, column: str) -> "TableModel":
        col = self.column_index(column)
        columns = self.columns[:col] + self.columns[col + 1:]
        rows = tuple(row[:col] + row[col + 1:] for row in self.rows)
        return TableModel._trusted(columns, rows)

    def with_column_moved(self, column: str, to_index: int) -> "TableModel":
        self.column_index(column)
        if not 0 <= to_index < len(self.columns):
            raise IndexError(f"Column index out of range: {to_index}")
        order = [c for c in self.columns if c != column]
        order.insert(to_index, column)
        return self.with_columns_reordered(order)

    def with_columns_reordered(self, order: Sequence[str]) -> "TableModel":
        """Reorder columns; ``order`` must be a permutation of the columns."""
        order = tuple(order)
        if len(order) != len(self.columns) or set(order) != set(self.columns):
            raise ValueError("Column order must be a permutation of the existing columns")
        positions = [self._index[c] for c in order]
        rows = tuple(tuple(row[p] for p in positions) for row in self.rows)
        return TableModel._trusted(order, rows)

    def _check_row(self, index: int) -> None:
        if not 0 <= index < len(self.rows):
            raise IndexError(f"Row index out of range: {index}")

    def __repr__(self) -> str:
        return f"TableModel(columns={list(self.columns)!r}, rows={len(self.rows)})"


def _build_index(columns: tuple[str, ...]) -> dict[str, int]:
    index: dict[str, int] = {}
    for i, column in enumerate(columns):
        if column in index:
            raise DuplicateColumnError(column)
        index[column] = i
    return index


# === Alignment models ===

class AlignOp(Enum):
    """Kind of an alignment entry."""
    MATCHED = "matched"
    INSERTED = "inserted"
    DELETED = "deleted"


@dataclass(frozen=True)
class AlignmentEntry:
    """One step of an alignment between a left and a right sequence."""
    op: AlignOp
    left: Optional[int] = None  # Index on the left side (MATCHED, DELETED)
    right: Optional[int] = None  # Index on the right side (MATCHED, INSERTED)

    @classmethod
    def matched(cls, left: int, right: int) -> "AlignmentEntry":
        return cls(AlignOp.MATCHED, left, right)

    @classmethod
    def inserted(cls, right: int) -> "AlignmentEntry":
        return cls(AlignOp.INSERTED, None, right)

    @classmethod
    def deleted(cls, left: int) -> "AlignmentEntry":
        return cls(AlignOp.DELETED, left, None)


@dataclass(frozen=True)
class Alignment:
    """Ordered correspondence between the rows (or columns) of two tables."""
    entries: tuple[AlignmentEntry, ...] = ()

    def __iter__(self) -> Iterator[AlignmentEntry]:
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)

    def matched_pairs(self) -> list[tuple[int, int]]:
        return [(e.left, e.right) for e in self.entries if e.op is AlignOp.MATCHED]

    def left_to_right(self) -> dict[int, int]:
        return {e.left: e.right for e in self.entries if e.op is AlignOp.MATCHED}

    def inserted(self) -> list[int]:
        return [e.right for e in self.entries if e.op is AlignOp.INSERTED]

    def deleted(self) -> list[int]:
        return [e.left for e in self.entries if e.op is AlignOp.DELETED]

    @property
    def has_changes(self) -> bool:
        return any(e.op is not AlignOp.MATCHED for e in self.entries)


ColumnAlignment = Alignment
RowAlignment = Alignment


# === Diff models ===

class DiffStatus(Enum):
    """Status of a row or cell in diff comparison."""
    UNCHANGED = "unchanged"
    ADDED = "added"
    REMOVED = "removed"
    MODIFIED = "modified"


@dataclass
class ModifiedCell:
    """A single cell that changed between two versions."""
    row: int  # Diff-row position
    col: str  # Right-side column identifier
    old_value: str
    new_value: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "row": self.row,
            "col": self.col,
            "oldValue": self.old_value,
            "newValue": self.new_value,
        }


@dataclass
class StructuredDiff:
    """
    Differences between two table snapshots.

    Row numbers are diff-row positions: one counter advanced for every
    matched, inserted or deleted row while walking the row alignment.
    """
    added_rows: list[int] = field(default_factory=list)
    removed_rows: list[int] = field(default_factory=list)
    modified_cells: list[ModifiedCell] = field(default_factory=list)
    added_columns: list[str] = field(default_factory=list)
    removed_columns: list[str] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (
            self.added_rows
            or self.removed_rows
            or self.modified_cells
            or self.added_columns
            or self.removed_columns
        )

    @property
    def summary(self) -> str:
        parts = []
        for count, label in (
            (len(self.added_rows), "row(s) added"),
            (len(self.removed_rows), "row(s) removed"),
            (len(self.modified_cells), "cell(s) modified"),
            (len(self.added_columns), "column(s) added"),
            (len(self.removed_columns), "column(s) removed"),
        ):
            if count:
                parts.append(f"{count} {label}")
        return ", ".join(parts) if parts else NO_CHANGES

    def to_dict(self) -> dict[str, Any]:
        return {
            "addedRows": list(self.added_rows),
            "removedRows": list(self.removed_rows),
            "modifiedCells": [c.to_dict() for c in self.modified_cells],
            "addedColumns": list(self.added_columns),
            "removedColumns": list(self.removed_columns),
        }


@dataclass
class DiffResult:
    """Result of comparing two tables."""
    structured_diff: StructuredDiff
    column_alignment: ColumnAlignment
    row_alignment: RowAlignment

    @property
    def summary(self) -> str:
        return self.structured_diff.summary


# === Merge models ===

class ConflictResolution(Enum):
    """How a merge conflict was resolved."""
    UNRESOLVED = "unresolved"
    USE_OURS = "ours"
    USE_THEIRS = "theirs"
    USE_MANUAL = "manual"


@dataclass
class ConflictCell:
    """A cell both sides changed to different values."""
    position: int  # Row index in the merged table
    column: str
    base_value: str
    ours_value: str
    theirs_value: str
    resolution: ConflictResolution = ConflictResolution.UNRESOLVED
    resolved_value: Optional[str] = None

    @property
    def is_resolved(self) -> bool:
        return self.resolution != ConflictResolution.UNRESOLVED

    @property
    def value(self) -> str:
        """Value the merged table holds for this cell."""
        if self.resolved_value is not None:
            return self.resolved_value
        return self.ours_value

    def to_dict(self) -> dict[str, Any]:
        return {
            "position": self.position,
            "column": self.column,
            "baseValue": self.base_value,
            "oursValue": self.ours_value,
            "theirsValue": self.theirs_value,
            "resolution": self.resolution.value,
            "resolvedValue": self.resolved_value,
        }


class RowConflictKind(Enum):
    """Which side deleted a row the other side modified."""
    DELETED_BY_OURS = "deleted_by_ours"
    DELETED_BY_THEIRS = "deleted_by_theirs"


class RowResolution(Enum):
    UNRESOLVED = "unresolved"
    KEEP = "keep"
    DISCARD = "discard"


@dataclass
class RowConflict:
    """
    A base row deleted on one side and modified on the other.

    For DELETED_BY_OURS the row is absent from the merged table and
    ``insert_at`` is where KEEP reinstates it. For DELETED_BY_THEIRS the
    row is present at ``position`` and DISCARD removes it.
    """
    kind: RowConflictKind
    base_index: int
    values: dict[str, str]  # Surviving side's row on the merged columns
    position: Optional[int] = None
    insert_at: Optional[int] = None
    resolution: RowResolution = RowResolution.UNRESOLVED

    @property
    def is_resolved(self) -> bool:
        return self.resolution != RowResolution.UNRESOLVED

    @property
    def keeps_row(self) -> bool:
        """Whether the row ends up in the finalized table."""
        if self.resolution == RowResolution.KEEP:
            return True
        if self.resolution == RowResolution.DISCARD:
            return False
        # Unresolved rows follow ours
        return self.kind == RowConflictKind.DELETED_BY_THEIRS

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind.value,
            "baseIndex": self.base_index,
            "position": self.position,
            "insertAt": self.insert_at,
            "values": dict(self.values),
            "resolution": self.resolution.value,
        }


@dataclass
class MergeResult:
    """Result of a 3-way merge."""
    merged_table: TableModel
    conflicts: list[ConflictCell] = field(default_factory=list)
    row_conflicts: list[RowConflict] = field(default_factory=list)

    @property
    def conflict_count(self) -> int:
        return len(self.conflicts)

    @property
    def has_conflicts(self) -> bool:
        return self.unresolved_count > 0

    @property
    def unresolved_count(self) -> int:
        return sum(1 for c in self.conflicts if not c.is_resolved) + sum(
            1 for r in self.row_conflicts if not r.is_resolved
        )

    @property
    def resolved_count(self) -> int:
        return sum(1 for c in self.conflicts if c.is_resolved) + sum(
            1 for r in self.row_conflicts if r.is_resolved
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "mergedTable": self.merged_table.to_rows(),
            "conflicts": [c.to_dict() for c in self.conflicts],
            "conflictCount": self.conflict_count,
            "rowConflicts": [r.to_dict() for r in self.row_conflicts],
        }
