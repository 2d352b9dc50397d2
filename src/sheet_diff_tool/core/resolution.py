"""
Interactive resolution of merge conflicts.
"""

import logging
from typing import Optional

from sheet_diff_tool.core.errors import ConflictNotFoundError
from sheet_diff_tool.core.sheet_model import (
    ConflictCell,
    ConflictResolution,
    MergeResult,
    RowConflict,
    RowConflictKind,
    RowResolution,
    TableModel,
)
from sheet_diff_tool.core.snapshot import table_to_text

logger = logging.getLogger(__name__)


class ConflictResolutionSession:
    """
    Mutable wrapper around a MergeResult.

    Cell resolutions are written into a working copy of the merged table
    immediately. Row resolutions are applied when the session is finalized,
    so conflict positions stay valid while the user works through them.
    Nothing is persisted until the caller commits the finalized table.
    """

    def __init__(self, merge_result: MergeResult):
        self._result = merge_result
        self._columns = merge_result.merged_table.columns
        self._rows = [list(row) for row in merge_result.merged_table.rows]
        self._cells: dict[tuple[int, str], ConflictCell] = {
            (c.position, c.column): c for c in merge_result.conflicts
        }

    @property
    def merge_result(self) -> MergeResult:
        return self._result

    @property
    def conflicts(self) -> list[ConflictCell]:
        return self._result.conflicts

    @property
    def row_conflicts(self) -> list[RowConflict]:
        return self._result.row_conflicts

    @property
    def unresolved_count(self) -> int:
        return self._result.unresolved_count

    @property
    def resolved_count(self) -> int:
        return self._result.resolved_count

    @property
    def fully_resolved(self) -> bool:
        return self._result.unresolved_count == 0

    def get_conflict(self, position: int, column: str) -> ConflictCell:
        try:
            return self._cells[(position, column)]
        except KeyError:
            raise ConflictNotFoundError(
                f"No conflict at row {position}, column {column!r}"
            ) from None

    def cell_value(self, position: int, column: str) -> str:
        """Current working value of a merged cell."""
        return self._rows[position][self._columns.index(column)]

    # === Cell resolutions ===

    def accept_ours(self, position: int, column: str) -> None:
        conflict = self.get_conflict(position, column)
        self._resolve(conflict, ConflictResolution.USE_OURS, conflict.ours_value)

    def accept_theirs(self, position: int, column: str) -> None:
        conflict = self.get_conflict(position, column)
        self._resolve(conflict, ConflictResolution.USE_THEIRS, conflict.theirs_value)

    def set_manual(self, position: int, column: str, value: str) -> None:
        """Resolve with an arbitrary value, even one matching neither side."""
        conflict = self.get_conflict(position, column)
        self._resolve(conflict, ConflictResolution.USE_MANUAL, value)

    def _resolve(
        self,
        conflict: ConflictCell,
        resolution: ConflictResolution,
        value: str,
    ) -> None:
        conflict.resolution = resolution
        conflict.resolved_value = value
        self._rows[conflict.position][self._columns.index(conflict.column)] = value
        logger.debug(
            "Resolved row %d column %r with %s",
            conflict.position, conflict.column, resolution.value,
        )

    # === Row resolutions ===

    def keep_row(self, index: int) -> None:
        """Keep the surviving side's version of a conflicted row."""
        self._get_row_conflict(index).resolution = RowResolution.KEEP

    def discard_row(self, index: int) -> None:
        """Accept the deletion of a conflicted row."""
        self._get_row_conflict(index).resolution = RowResolution.DISCARD

    def _get_row_conflict(self, index: int) -> RowConflict:
        if not 0 <= index < len(self._result.row_conflicts):
            raise ConflictNotFoundError(f"No row conflict #{index}")
        return self._result.row_conflicts[index]

    # === Bulk resolutions ===

    def accept_all_ours(self) -> None:
        for conflict in self._result.conflicts:
            self._resolve(conflict, ConflictResolution.USE_OURS, conflict.ours_value)
        for row_conflict in self._result.row_conflicts:
            row_conflict.resolution = (
                RowResolution.DISCARD
                if row_conflict.kind == RowConflictKind.DELETED_BY_OURS
                else RowResolution.KEEP
            )

    def accept_all_theirs(self) -> None:
        for conflict in self._result.conflicts:
            self._resolve(conflict, ConflictResolution.USE_THEIRS, conflict.theirs_value)
        for row_conflict in self._result.row_conflicts:
            row_conflict.resolution = (
                RowResolution.KEEP
                if row_conflict.kind == RowConflictKind.DELETED_BY_OURS
                else RowResolution.DISCARD
            )

    # === Output ===

    def finalize(self) -> tuple[TableModel, bool]:
        """
        Build the resolved table.

        Returns:
            Tuple of (table, fully_resolved). Unresolved cells keep the
            OURS value and unresolved rows follow OURS.
        """
        reinstated: dict[int, list[RowConflict]] = {}
        dropped: set[int] = set()
        for row_conflict in self._result.row_conflicts:
            if row_conflict.kind == RowConflictKind.DELETED_BY_OURS:
                if row_conflict.keeps_row:
                    reinstated.setdefault(row_conflict.insert_at, []).append(row_conflict)
            elif not row_conflict.keeps_row:
                dropped.add(row_conflict.position)

        rows: list[tuple[str, ...]] = []
        for position in range(len(self._rows) + 1):
            for row_conflict in reinstated.get(position, ()):
                rows.append(tuple(row_conflict.values.get(c, "") for c in self._columns))
            if position < len(self._rows) and position not in dropped:
                rows.append(tuple(self._rows[position]))

        fully_resolved = self.fully_resolved
        logger.info(
            "Finalized merge: %d row(s), %d unresolved conflict(s)",
            len(rows), self.unresolved_count,
        )
        return TableModel(columns=self._columns, rows=tuple(rows)), fully_resolved

    def resolved_text(self, delimiter: str = ",") -> str:
        """Finalized table serialized as delimited text, ready to commit."""
        table, _ = self.finalize()
        return table_to_text(table, delimiter)

    def __repr__(self) -> str:
        return (
            f"ConflictResolutionSession(conflicts={len(self._result.conflicts)}, "
            f"rows={len(self._result.row_conflicts)}, unresolved={self.unresolved_count})"
        )


def resolve_all(merge_result: MergeResult, side: Optional[str]) -> ConflictResolutionSession:
    """Open a session and optionally accept one side for every conflict."""
    session = ConflictResolutionSession(merge_result)
    if side == "ours":
        session.accept_all_ours()
    elif side == "theirs":
        session.accept_all_theirs()
    elif side is not None:
        raise ValueError(f"Unknown side: {side!r}")
    return session
