"""
Column type inference for display.

Cells are always stored as text; the inferred type only decides how a
column is presented (alignment, editor) and never changes a value.
"""

import re
from enum import Enum
from typing import Optional

from sheet_diff_tool.core.sheet_model import TableModel

# Number of leading rows sampled per column
SAMPLE_SIZE = 100

_ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}")
_SLASH_DATE = re.compile(r"^\d+/\d+/\d+$")

_TRUE_WORDS = {"true", "yes"}
_FALSE_WORDS = {"false", "no"}


class ColumnType(Enum):
    TEXT = "text"
    NUMBER = "number"
    BOOLEAN = "boolean"
    DATE = "date"


def infer_value_type(raw: str) -> Optional[ColumnType]:
    """Type of a single cell, or None for a blank cell."""
    value = raw.strip()
    if not value:
        return None
    try:
        float(value)
    except ValueError:
        pass
    else:
        if value.lower() not in ("nan", "inf", "-inf", "+inf", "infinity"):
            return ColumnType.NUMBER
    if value.lower() in _TRUE_WORDS or value.lower() in _FALSE_WORDS:
        return ColumnType.BOOLEAN
    if looks_like_date(value):
        return ColumnType.DATE
    return ColumnType.TEXT


def looks_like_date(value: str) -> bool:
    """YYYY-MM-DD (optionally followed by a time) or MM/DD/YYYY."""
    value = value.strip()
    if not 8 <= len(value) <= 25:
        return False
    return bool(_ISO_DATE.match(value) or _SLASH_DATE.match(value))


def infer_column_types(table: TableModel, sample_size: int = SAMPLE_SIZE) -> dict[str, ColumnType]:
    """
    Infer a type per column from the first rows of a table.

    A type wins when more than half of the non-blank sampled cells have it;
    otherwise, and for all-blank columns, the column is TEXT.
    """
    sample = table.rows[:sample_size]
    types = {}
    for col, column in enumerate(table.columns):
        counts: dict[ColumnType, int] = {}
        non_blank = 0
        for row in sample:
            kind = infer_value_type(row[col])
            if kind is None:
                continue
            non_blank += 1
            counts[kind] = counts.get(kind, 0) + 1

        threshold = non_blank // 2
        types[column] = ColumnType.TEXT
        for kind in (ColumnType.NUMBER, ColumnType.BOOLEAN, ColumnType.DATE):
            if counts.get(kind, 0) > threshold and non_blank:
                types[column] = kind
                break
    return types
