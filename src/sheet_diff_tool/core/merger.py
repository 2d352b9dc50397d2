"""
Three-way merge of table snapshots.

The merged table starts as a copy of OURS, so the presence and order of
rows and columns follow OURS. Cell values are reconciled for every base
row and base column that both sides still have:

    base == ours == theirs          keep
    only theirs changed             take theirs
    only ours changed               keep ours
    both changed to the same value  keep
    both changed differently        conflict, ours stays until resolved

A base row deleted on one side but modified on the other becomes a
RowConflict that needs an explicit keep/discard decision. Rows that one
side deleted and the other left untouched simply follow OURS.
"""

import logging
from collections.abc import Collection

from sheet_diff_tool.core.aligner import DP_CELL_LIMIT, align
from sheet_diff_tool.core.sheet_model import (
    AlignOp,
    ConflictCell,
    MergeResult,
    RowAlignment,
    RowConflict,
    RowConflictKind,
    TableModel,
)

logger = logging.getLogger(__name__)


def merge(
    base: TableModel,
    ours: TableModel,
    theirs: TableModel,
    dp_cell_limit: int = DP_CELL_LIMIT,
) -> MergeResult:
    """
    Perform a 3-way merge.

    Args:
        base: Common ancestor
        ours: Our version (working copy)
        theirs: Their version

    Returns:
        MergeResult with the merged table and the conflicts found
    """
    ours_columns, ours_rows = align(base, ours, dp_cell_limit)
    theirs_columns, theirs_rows = align(base, theirs, dp_cell_limit)

    ours_shared = {base.columns[b] for b, _ in ours_columns.matched_pairs()}
    theirs_shared = {base.columns[b] for b, _ in theirs_columns.matched_pairs()}
    common = [c for c in base.columns if c in ours_shared and c in theirs_shared]

    base_to_ours = ours_rows.left_to_right()
    base_to_theirs = theirs_rows.left_to_right()
    deleted_by_ours_at = _deletion_points(ours_rows)

    working = [list(row) for row in ours.rows]
    conflicts: list[ConflictCell] = []
    row_conflicts: list[RowConflict] = []

    for b in range(base.row_count):
        o = base_to_ours.get(b)
        t = base_to_theirs.get(b)

        if o is not None and t is not None:
            for column in common:
                base_val = base.value(b, column)
                ours_val = ours.value(o, column)
                theirs_val = theirs.value(t, column)

                ours_changed = ours_val != base_val
                theirs_changed = theirs_val != base_val

                if theirs_changed and not ours_changed:
                    working[o][ours.column_index(column)] = theirs_val
                elif ours_changed and theirs_changed and ours_val != theirs_val:
                    conflicts.append(ConflictCell(
                        position=o,
                        column=column,
                        base_value=base_val,
                        ours_value=ours_val,
                        theirs_value=theirs_val,
                    ))

        elif o is None and t is not None:
            # Ours deleted - conflict only if theirs modified
            if _row_modified(base, b, theirs, t, theirs_shared):
                row_conflicts.append(RowConflict(
                    kind=RowConflictKind.DELETED_BY_OURS,
                    base_index=b,
                    values=_project_row(ours.columns, theirs, t, base, b),
                    insert_at=deleted_by_ours_at[b],
                ))

        elif t is None and o is not None:
            # Theirs deleted - conflict only if ours modified
            if _row_modified(base, b, ours, o, ours_shared):
                row_conflicts.append(RowConflict(
                    kind=RowConflictKind.DELETED_BY_THEIRS,
                    base_index=b,
                    values=ours.row_dict(o),
                    position=o,
                ))

    merged = TableModel(columns=ours.columns, rows=tuple(tuple(r) for r in working))
    logger.debug(
        "Merged %d base rows: %d cell conflict(s), %d row conflict(s)",
        base.row_count, len(conflicts), len(row_conflicts),
    )
    return MergeResult(
        merged_table=merged,
        conflicts=conflicts,
        row_conflicts=row_conflicts,
    )


def _deletion_points(alignment: RowAlignment) -> dict[int, int]:
    """Map each deleted left row to the right-side index it was removed before."""
    points: dict[int, int] = {}
    emitted = 0
    for entry in alignment:
        if entry.op is AlignOp.DELETED:
            points[entry.left] = emitted
        else:
            emitted += 1
    return points


def _row_modified(
    base: TableModel,
    base_row: int,
    other: TableModel,
    other_row: int,
    shared: Collection[str],
) -> bool:
    return any(
        base.value(base_row, c) != other.value(other_row, c) for c in shared
    )


def _project_row(
    columns: tuple[str, ...],
    source: TableModel,
    source_row: int,
    base: TableModel,
    base_row: int,
) -> dict[str, str]:
    """Lay a row of ``source`` out on ``columns``, falling back to base."""
    values = {}
    for column in columns:
        if source.has_column(column):
            values[column] = source.value(source_row, column)
        elif base.has_column(column):
            values[column] = base.value(base_row, column)
        else:
            values[column] = ""
    return values
