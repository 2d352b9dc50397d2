"""Utility functions and constants."""

from sheet_diff_tool.utils.colors import DiffColors, ansi_foreground
from sheet_diff_tool.utils.column_types import (
    ColumnType,
    infer_column_types,
    infer_value_type,
)
from sheet_diff_tool.utils.commit_message import generate_commit_message

__all__ = [
    "DiffColors",
    "ansi_foreground",
    "ColumnType",
    "infer_column_types",
    "infer_value_type",
    "generate_commit_message",
]
