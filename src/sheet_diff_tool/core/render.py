"""
Presentation helpers derived from a DiffResult.

``render_diff_rows`` lays a diff out as a single table in the familiar
"highlighter" format: a ``!`` schema row when columns were added or
removed, an ``@@`` header row, then one row per diff-row position with a
leading marker column:

    +++   row added          ---   row removed
    ->    row modified, changed cells shown as ``old->new``
"""

from typing import Optional

from sheet_diff_tool.core.sheet_model import (
    AlignOp,
    DiffResult,
    DiffStatus,
    TableModel,
)
from sheet_diff_tool.utils.colors import DiffColors, ansi_foreground

ADDED_MARKER = "+++"
REMOVED_MARKER = "---"
MODIFIED_MARKER = "->"
HEADER_MARKER = "@@"
SCHEMA_MARKER = "!"

MARKER_STATUS = {
    ADDED_MARKER: DiffStatus.ADDED,
    REMOVED_MARKER: DiffStatus.REMOVED,
    MODIFIED_MARKER: DiffStatus.MODIFIED,
}


class DiffHighlighter:
    """
    Status lookup for a rendered diff grid.

    Rows are diff-row positions, columns are right-side identifiers
    (left-side identifiers for removed columns).
    """

    def __init__(self, result: DiffResult):
        diff = result.structured_diff
        self._added_rows = set(diff.added_rows)
        self._removed_rows = set(diff.removed_rows)
        self._added_columns = set(diff.added_columns)
        self._removed_columns = set(diff.removed_columns)
        self._modified = {(c.row, c.col) for c in diff.modified_cells}
        self._modified_rows = {c.row for c in diff.modified_cells}

    def row_status(self, row: int) -> DiffStatus:
        if row in self._added_rows:
            return DiffStatus.ADDED
        if row in self._removed_rows:
            return DiffStatus.REMOVED
        if row in self._modified_rows:
            return DiffStatus.MODIFIED
        return DiffStatus.UNCHANGED

    def column_status(self, column: str) -> DiffStatus:
        if column in self._added_columns:
            return DiffStatus.ADDED
        if column in self._removed_columns:
            return DiffStatus.REMOVED
        return DiffStatus.UNCHANGED

    def cell_status(self, row: int, column: str) -> DiffStatus:
        # Whole-row status wins over column and cell status
        if row in self._added_rows:
            return DiffStatus.ADDED
        if row in self._removed_rows:
            return DiffStatus.REMOVED
        if (row, column) in self._modified:
            return DiffStatus.MODIFIED
        return self.column_status(column)

    def cell_background(self, row: int, column: str, dark_mode: bool = False) -> Optional[str]:
        """Background color for a cell, or None for an unchanged cell."""
        return DiffColors.get_background(self.cell_status(row, column), dark_mode)


def render_diff_rows(
    left: TableModel,
    right: TableModel,
    result: DiffResult,
) -> list[list[str]]:
    """Lay out a diff as rows of strings, marker column first."""
    # (left index, right index) per displayed column
    layout: list[tuple[Optional[int], Optional[int]]] = []
    schema: list[str] = []
    header: list[str] = []
    for entry in result.column_alignment:
        layout.append((entry.left, entry.right))
        if entry.op is AlignOp.DELETED:
            schema.append(REMOVED_MARKER)
            header.append(left.columns[entry.left])
        else:
            schema.append(ADDED_MARKER if entry.op is AlignOp.INSERTED else "")
            header.append(right.columns[entry.right])

    rows: list[list[str]] = []
    if any(schema):
        rows.append([SCHEMA_MARKER] + schema)
    rows.append([HEADER_MARKER] + header)

    for entry in result.row_alignment:
        if entry.op is AlignOp.INSERTED:
            values = right.rows[entry.right]
            rows.append([ADDED_MARKER] + [
                values[r] if r is not None else "" for _, r in layout
            ])
        elif entry.op is AlignOp.DELETED:
            values = left.rows[entry.left]
            rows.append([REMOVED_MARKER] + [
                values[l] if l is not None else "" for l, _ in layout
            ])
        else:
            old, new = left.rows[entry.left], right.rows[entry.right]
            cells = []
            changed = False
            for l, r in layout:
                if l is not None and r is not None and old[l] != new[r]:
                    cells.append(f"{old[l]}{MODIFIED_MARKER}{new[r]}")
                    changed = True
                elif r is not None:
                    cells.append(new[r])
                else:
                    cells.append(old[l])
            rows.append([MODIFIED_MARKER if changed else ""] + cells)

    return rows


def render_diff_text(
    left: TableModel,
    right: TableModel,
    result: DiffResult,
    separator: str = " | ",
    color: bool = False,
) -> str:
    """
    Render a diff as a padded plain-text table.

    With ``color`` set, added, removed and modified rows are wrapped in
    terminal color escapes using the status accent colors.
    """
    rows = render_diff_rows(left, right, result)
    width = max(len(row) for row in rows)
    widths = [
        max((len(row[i]) for row in rows if i < len(row)), default=0)
        for i in range(width)
    ]
    lines = []
    for row in rows:
        line = separator.join(cell.ljust(widths[i]) for i, cell in enumerate(row)).rstrip()
        status = MARKER_STATUS.get(row[0])
        if color and status is not None:
            line = ansi_foreground(DiffColors.get_accent(status), line)
        lines.append(line)
    return "\n".join(lines)
