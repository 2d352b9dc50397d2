"""
sheet-merge-tool: Diff and merge tool for CSV/TSV tables.
"""

__version__ = "0.1.0"

from sheet_diff_tool.core.sheet_model import (
    DiffStatus,
    MergeResult,
    StructuredDiff,
    TableModel,
)

__all__ = [
    "DiffStatus",
    "MergeResult",
    "StructuredDiff",
    "TableModel",
]
