"""
Commit messages describing the edits made to a table file.
"""

from pathlib import Path
from typing import Union

from sheet_diff_tool.core.sheet_model import TableModel


def generate_commit_message(
    file_path: Union[str, Path],
    old: TableModel,
    new: TableModel,
) -> str:
    """
    Describe the difference between two versions of a table.

    Example: ``"items.csv: add column(s): price; add 2 row(s)"``.
    Cells are only counted when rows and columns were neither added nor
    removed, so the count is a plain position-by-position comparison.
    Falls back to ``"Update items.csv"`` when nothing is detected.
    """
    file_name = Path(file_path).name
    parts = []

    old_columns = set(old.columns)
    new_columns = set(new.columns)
    added = [c for c in new.columns if c not in old_columns]
    removed = [c for c in old.columns if c not in new_columns]

    if added:
        parts.append(f"add column(s): {', '.join(added)}")
    if removed:
        parts.append(f"remove column(s): {', '.join(removed)}")

    row_diff = new.row_count - old.row_count
    if row_diff > 0:
        parts.append(f"add {row_diff} row(s)")
    elif row_diff < 0:
        parts.append(f"remove {-row_diff} row(s)")

    if row_diff == 0 and not added and not removed:
        edits = sum(
            1
            for i in range(new.row_count)
            for column in new.columns
            if old.value(i, column) != new.value(i, column)
        )
        if edits:
            parts.append(f"edit {edits} cell(s)")

    if not parts:
        return f"Update {file_name}"
    return f"{file_name}: {'; '.join(parts)}"
