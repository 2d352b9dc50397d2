"""
Row and column alignment between two tables.

Columns are aligned by identifier, rows by the content of the columns both
tables share. Both passes use an order-preserving longest common
subsequence, so the result can be read as an edit script.

Tie-breaking is deterministic and does not depend on which search runs:
among the shortest edit scripts, a match is taken first and a deletion is
preferred over an insertion. Each match is then moved to the earliest
free element with the same key on both sides, so duplicate rows are
paired strictly left to right.
"""

from collections.abc import Callable, Hashable, Sequence
from typing import Optional

from sheet_diff_tool.core.sheet_model import (
    AlignOp,
    Alignment,
    AlignmentEntry,
    ColumnAlignment,
    RowAlignment,
    TableModel,
)

# Largest n*m handled by the quadratic LCS table; bigger inputs use Myers.
DP_CELL_LIMIT = 1_000_000

# Fraction of shared cells that must agree for an edited row to be paired.
SIMILARITY_RATIO = 0.5

# (op, left index, right index)
Step = tuple[AlignOp, Optional[int], Optional[int]]
MatchFn = Callable[[int, int], bool]


def align(
    left: TableModel,
    right: TableModel,
    dp_cell_limit: int = DP_CELL_LIMIT,
) -> tuple[ColumnAlignment, RowAlignment]:
    """
    Align the columns and rows of two tables.

    Args:
        left: Old version
        right: New version
        dp_cell_limit: Largest sequence product aligned with the
            dynamic-programming LCS before switching to Myers

    Returns:
        Tuple of (column alignment, row alignment)
    """
    column_alignment = align_columns(left, right, dp_cell_limit)
    shared = [
        left.columns[e.left]
        for e in column_alignment
        if e.op is AlignOp.MATCHED
    ]
    row_alignment = align_rows(left, right, shared, dp_cell_limit)
    return column_alignment, row_alignment


def align_columns(
    left: TableModel,
    right: TableModel,
    dp_cell_limit: int = DP_CELL_LIMIT,
) -> ColumnAlignment:
    """Align columns by identifier equality."""
    steps = diff_sequences(left.columns, right.columns, dp_cell_limit)
    return _to_alignment(steps)


def align_rows(
    left: TableModel,
    right: TableModel,
    shared_columns: Sequence[str],
    dp_cell_limit: int = DP_CELL_LIMIT,
) -> RowAlignment:
    """
    Align rows by the values of the shared columns.

    Without shared columns rows are compared as whole-row text instead.
    Rows left over between two exact matches are paired when they are
    similar enough, which turns an edited row into a match with modified
    cells rather than a deletion plus an insertion.
    """
    if shared_columns:
        left_pos = [left.column_index(c) for c in shared_columns]
        right_pos = [right.column_index(c) for c in shared_columns]
        left_keys = [tuple(row[p] for p in left_pos) for row in left.rows]
        right_keys = [tuple(row[p] for p in right_pos) for row in right.rows]
    else:
        left_keys = list(left.rows)
        right_keys = list(right.rows)

    steps = diff_sequences(left_keys, right_keys, dp_cell_limit)

    if shared_columns:
        width = len(shared_columns)
        needed = width * SIMILARITY_RATIO

        def similar(i: int, j: int) -> bool:
            a, b = left_keys[i], right_keys[j]
            same = sum(1 for k in range(width) if a[k] == b[k])
            return same > 0 and same >= needed

        steps = _pair_gaps(steps, similar, dp_cell_limit)

    return _to_alignment(steps)


def diff_sequences(
    a: Sequence[Hashable],
    b: Sequence[Hashable],
    dp_cell_limit: int = DP_CELL_LIMIT,
) -> list[Step]:
    """
    Compute an order-preserving alignment of two sequences by equality.

    Elements are interned to integers first so comparisons are cheap, and
    the common prefix and suffix are matched without any search. The
    dynamic-programming and Myers searches produce the same steps.
    """
    ids: dict[Hashable, int] = {}
    a_ids = [ids.setdefault(x, len(ids)) for x in a]
    b_ids = [ids.setdefault(x, len(ids)) for x in b]

    n, m = len(a_ids), len(b_ids)
    prefix = 0
    while prefix < n and prefix < m and a_ids[prefix] == b_ids[prefix]:
        prefix += 1
    suffix = 0
    while (
        suffix < n - prefix
        and suffix < m - prefix
        and a_ids[n - 1 - suffix] == b_ids[m - 1 - suffix]
    ):
        suffix += 1

    mid_a = a_ids[prefix:n - suffix]
    mid_b = b_ids[prefix:m - suffix]

    steps: list[Step] = [(AlignOp.MATCHED, i, i) for i in range(prefix)]
    if len(mid_a) * len(mid_b) <= dp_cell_limit:
        middle = _lcs_steps(len(mid_a), len(mid_b), lambda i, j: mid_a[i] == mid_b[j])
    else:
        middle = _myers_steps(mid_a, mid_b)
    steps.extend(_shift(middle, prefix, prefix))
    steps.extend(
        (AlignOp.MATCHED, n - suffix + k, m - suffix + k) for k in range(suffix)
    )
    return _leftmost_matches(steps, a_ids, b_ids)


def _lcs_steps(n: int, m: int, match: MatchFn) -> list[Step]:
    """
    Forward-walking LCS over an arbitrary match predicate.

    ``lengths[i][j]`` holds the LCS length of the suffixes starting at
    ``i`` and ``j``, so walking from the front takes the earliest match.
    """
    if n == 0 or m == 0:
        return [(AlignOp.DELETED, i, None) for i in range(n)] + [
            (AlignOp.INSERTED, None, j) for j in range(m)
        ]

    lengths = [[0] * (m + 1) for _ in range(n + 1)]
    for i in range(n - 1, -1, -1):
        row = lengths[i]
        below = lengths[i + 1]
        for j in range(m - 1, -1, -1):
            if match(i, j):
                row[j] = below[j + 1] + 1
            else:
                row[j] = below[j] if below[j] >= row[j + 1] else row[j + 1]

    steps: list[Step] = []
    i = j = 0
    while i < n and j < m:
        if match(i, j):
            steps.append((AlignOp.MATCHED, i, j))
            i += 1
            j += 1
        elif lengths[i + 1][j] >= lengths[i][j + 1]:
            steps.append((AlignOp.DELETED, i, None))
            i += 1
        else:
            steps.append((AlignOp.INSERTED, None, j))
            j += 1
    steps.extend((AlignOp.DELETED, k, None) for k in range(i, n))
    steps.extend((AlignOp.INSERTED, None, k) for k in range(j, m))
    return steps


def _myers_steps(a: Sequence[int], b: Sequence[int]) -> list[Step]:
    """
    Myers' O(ND) search for large inputs.

    The search runs backwards from the end of both sequences and keeps,
    for every edit count ``d``, the lowest ``x`` on each diagonal from
    which the end is reachable with ``d`` edits. That answers "is this
    move still on a shortest path" in constant time, so the forward walk
    can apply the same tie-break as the dynamic-programming path.
    """
    n, m = len(a), len(b)
    frontiers = _myers_frontiers(a, b)
    remaining = len(frontiers) - 1

    def on_shortest_path(d: int, x: int, y: int) -> bool:
        if d < 0:
            return False
        lowest = frontiers[d].get(x - y)
        return lowest is not None and x >= lowest

    steps: list[Step] = []
    i = j = 0
    while i < n and j < m:
        if a[i] == b[j]:
            steps.append((AlignOp.MATCHED, i, j))
            i += 1
            j += 1
        elif on_shortest_path(remaining - 1, i + 1, j):
            steps.append((AlignOp.DELETED, i, None))
            i += 1
            remaining -= 1
        else:
            steps.append((AlignOp.INSERTED, None, j))
            j += 1
            remaining -= 1
    steps.extend((AlignOp.DELETED, k, None) for k in range(i, n))
    steps.extend((AlignOp.INSERTED, None, k) for k in range(j, m))
    return steps


def _myers_frontiers(a: Sequence[int], b: Sequence[int]) -> list[dict[int, int]]:
    """Backward Myers frontiers, one per edit count, until (0, 0) is reached."""
    n, m = len(a), len(b)
    end_diagonal = n - m
    frontiers: list[dict[int, int]] = []
    previous: dict[int, int] = {}

    for d in range(n + m + 1):
        current: dict[int, int] = {}
        for k in range(end_diagonal - d, end_diagonal + d + 1, 2):
            if d == 0:
                x = n
            else:
                x = None
                # Undo a deletion: step back along x from diagonal k + 1
                above = previous.get(k + 1)
                if above is not None and above >= 1:
                    x = above - 1
                # Undo an insertion: step back along y from diagonal k - 1
                below = previous.get(k - 1)
                if below is not None and below - k >= 0 and (x is None or below < x):
                    x = below
                if x is None:
                    continue
            y = x - k
            while x > 0 and y > 0 and a[x - 1] == b[y - 1]:
                x -= 1
                y -= 1
            current[k] = x
        frontiers.append(current)
        if current.get(0) == 0:
            break
        previous = current

    return frontiers


def _leftmost_matches(
    steps: list[Step],
    a: Sequence[int],
    b: Sequence[int],
) -> list[Step]:
    """
    Move every match to the earliest free element with the same key.

    The matched key sequence is kept; each key is re-embedded as early as
    possible on both sides, and the unmatched elements between two
    matches are emitted as deletions followed by insertions.
    """
    result: list[Step] = []
    next_i = next_j = 0
    for op, i, j in steps:
        if op is not AlignOp.MATCHED:
            continue
        new_i = next_i
        while a[new_i] != a[i]:
            new_i += 1
        new_j = next_j
        while b[new_j] != b[j]:
            new_j += 1
        result.extend((AlignOp.DELETED, k, None) for k in range(next_i, new_i))
        result.extend((AlignOp.INSERTED, None, k) for k in range(next_j, new_j))
        result.append((AlignOp.MATCHED, new_i, new_j))
        next_i, next_j = new_i + 1, new_j + 1
    result.extend((AlignOp.DELETED, k, None) for k in range(next_i, len(a)))
    result.extend((AlignOp.INSERTED, None, k) for k in range(next_j, len(b)))
    return result


def _pair_gaps(steps: list[Step], match: MatchFn, dp_cell_limit: int) -> list[Step]:
    """Re-align each run of unmatched steps with a looser predicate."""
    result: list[Step] = []
    gap: list[Step] = []

    def flush() -> None:
        deleted = [s[1] for s in gap if s[0] is AlignOp.DELETED]
        inserted = [s[2] for s in gap if s[0] is AlignOp.INSERTED]
        if deleted and inserted and len(deleted) * len(inserted) <= dp_cell_limit:
            local = _lcs_steps(
                len(deleted),
                len(inserted),
                lambda i, j: match(deleted[i], inserted[j]),
            )
            for op, i, j in local:
                result.append((
                    op,
                    deleted[i] if i is not None else None,
                    inserted[j] if j is not None else None,
                ))
        else:
            result.extend(gap)
        gap.clear()

    for step in steps:
        if step[0] is AlignOp.MATCHED:
            if gap:
                flush()
            result.append(step)
        else:
            gap.append(step)
    if gap:
        flush()
    return result


def _shift(steps: list[Step], left_offset: int, right_offset: int) -> list[Step]:
    return [
        (
            op,
            i + left_offset if i is not None else None,
            j + right_offset if j is not None else None,
        )
        for op, i, j in steps
    ]


def _to_alignment(steps: list[Step]) -> Alignment:
    return Alignment(tuple(AlignmentEntry(op, i, j) for op, i, j in steps))
