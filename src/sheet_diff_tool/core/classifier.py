"""
Classification of an alignment into a structured diff.
"""

import logging

from sheet_diff_tool.core.aligner import DP_CELL_LIMIT, align
from sheet_diff_tool.core.sheet_model import (
    AlignOp,
    ColumnAlignment,
    DiffResult,
    ModifiedCell,
    RowAlignment,
    StructuredDiff,
    TableModel,
)

logger = logging.getLogger(__name__)


def classify(
    column_alignment: ColumnAlignment,
    row_alignment: RowAlignment,
    left: TableModel,
    right: TableModel,
) -> StructuredDiff:
    """
    Turn column and row alignments into a StructuredDiff.

    Rows are numbered in a single pass over the row alignment, so added,
    removed and modified rows share one diff-row numbering.
    """
    diff = StructuredDiff()

    shared: list[tuple[int, int, str]] = []
    for entry in column_alignment:
        if entry.op is AlignOp.MATCHED:
            shared.append((entry.left, entry.right, right.columns[entry.right]))
        elif entry.op is AlignOp.INSERTED:
            diff.added_columns.append(right.columns[entry.right])
        else:
            diff.removed_columns.append(left.columns[entry.left])

    for position, entry in enumerate(row_alignment):
        if entry.op is AlignOp.INSERTED:
            diff.added_rows.append(position)
        elif entry.op is AlignOp.DELETED:
            diff.removed_rows.append(position)
        else:
            left_row = left.rows[entry.left]
            right_row = right.rows[entry.right]
            for left_col, right_col, column in shared:
                old_value = left_row[left_col]
                new_value = right_row[right_col]
                if old_value != new_value:
                    diff.modified_cells.append(ModifiedCell(
                        row=position,
                        col=column,
                        old_value=old_value,
                        new_value=new_value,
                    ))

    return diff


def compare_tables(
    left: TableModel,
    right: TableModel,
    dp_cell_limit: int = DP_CELL_LIMIT,
) -> DiffResult:
    """Align and classify two tables in one call."""
    column_alignment, row_alignment = align(left, right, dp_cell_limit)
    structured = classify(column_alignment, row_alignment, left, right)
    logger.debug(
        "Compared %dx%d with %dx%d: %s",
        left.row_count, left.column_count,
        right.row_count, right.column_count,
        structured.summary,
    )
    return DiffResult(
        structured_diff=structured,
        column_alignment=column_alignment,
        row_alignment=row_alignment,
    )
