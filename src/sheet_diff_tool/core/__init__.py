"""Core logic for diff and merge operations."""

from sheet_diff_tool.core.sheet_model import (
    AlignOp,
    Alignment,
    AlignmentEntry,
    ColumnAlignment,
    ConflictCell,
    ConflictResolution,
    DiffResult,
    DiffStatus,
    MergeResult,
    ModifiedCell,
    RowAlignment,
    RowConflict,
    RowConflictKind,
    RowResolution,
    StructuredDiff,
    TableModel,
)
from sheet_diff_tool.core.errors import (
    ConflictNotFoundError,
    DuplicateColumnError,
    RevisionError,
    SheetError,
    SheetIOError,
)
from sheet_diff_tool.core.aligner import align, align_columns, align_rows
from sheet_diff_tool.core.classifier import classify, compare_tables
from sheet_diff_tool.core.merger import merge
from sheet_diff_tool.core.resolution import ConflictResolutionSession, resolve_all
from sheet_diff_tool.core.snapshot import (
    CsvSnapshotProvider,
    table_from_text,
    table_to_text,
)

__all__ = [
    "AlignOp",
    "Alignment",
    "AlignmentEntry",
    "ColumnAlignment",
    "ConflictCell",
    "ConflictResolution",
    "DiffResult",
    "DiffStatus",
    "MergeResult",
    "ModifiedCell",
    "RowAlignment",
    "RowConflict",
    "RowConflictKind",
    "RowResolution",
    "StructuredDiff",
    "TableModel",
    "ConflictNotFoundError",
    "DuplicateColumnError",
    "RevisionError",
    "SheetError",
    "SheetIOError",
    "align",
    "align_columns",
    "align_rows",
    "classify",
    "compare_tables",
    "merge",
    "ConflictResolutionSession",
    "resolve_all",
    "CsvSnapshotProvider",
    "table_from_text",
    "table_to_text",
]
