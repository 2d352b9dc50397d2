"""
Entry point for sheet-diff-tool.

Usage:
    sheet-diff FILE                                  # Describe a table
    sheet-diff --diff LEFT RIGHT [--json] [--color]  # Compare two tables
    sheet-diff FILE --revisions FROM TO [--json]     # Compare two git revisions
    sheet-diff --merge BASE OURS THEIRS -o OUT       # 3-way merge
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Optional

from sheet_diff_tool import __version__

logger = logging.getLogger(__name__)

TABLE_EXTENSIONS = {".csv", ".tsv"}


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="sheet-diff",
        description="Diff and merge tool for CSV/TSV tables",
    )

    parser.add_argument(
        "file",
        nargs="?",
        type=Path,
        help="Table file to describe (or whose revisions to compare)",
    )

    parser.add_argument(
        "--diff", "-d",
        nargs=2,
        type=Path,
        metavar=("LEFT", "RIGHT"),
        help="Compare two files",
    )

    parser.add_argument(
        "--revisions", "-r",
        nargs=2,
        metavar=("FROM", "TO"),
        help="Compare two git revisions of FILE",
    )

    parser.add_argument(
        "--merge", "-m",
        nargs=3,
        type=Path,
        metavar=("BASE", "OURS", "THEIRS"),
        help="3-way merge",
    )

    parser.add_argument(
        "--output", "-o",
        type=Path,
        help="Output file for merge result",
    )

    parser.add_argument(
        "--accept",
        choices=("ours", "theirs"),
        help="Resolve every merge conflict in favour of one side",
    )

    parser.add_argument(
        "--json",
        action="store_true",
        help="Print machine-readable output",
    )

    parser.add_argument(
        "--color",
        action="store_true",
        help="Color added, removed and modified rows in diff output",
    )

    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=("DEBUG", "INFO", "WARNING", "ERROR"),
        help="Logging level (default: WARNING)",
    )

    parser.add_argument(
        "--version", "-v",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    return parser.parse_args(argv)


def validate_files(paths: list[Path]) -> bool:
    """Validate that all files exist and look like tables."""
    for path in paths:
        if not path.exists():
            print(f"Error: File not found: {path}", file=sys.stderr)
            return False
        if path.suffix.lower() not in TABLE_EXTENSIONS:
            print(f"Warning: Unknown file type: {path.suffix}", file=sys.stderr)
    return True


def run_view(path: Path) -> int:
    from sheet_diff_tool.core.snapshot import CsvSnapshotProvider
    from sheet_diff_tool.utils.column_types import infer_column_types

    table = CsvSnapshotProvider().load_table(path)
    types = infer_column_types(table)
    print(f"{path.name}: {table.row_count} row(s), {table.column_count} column(s)")
    for column in table.columns:
        print(f"  {column} ({types[column].value})")
    return 0


def _print_diff(left, right, as_json: bool, color: bool = False) -> None:
    from sheet_diff_tool.core.classifier import compare_tables
    from sheet_diff_tool.core.render import render_diff_text

    result = compare_tables(left, right)
    if as_json:
        payload = result.structured_diff.to_dict()
        payload["summary"] = result.summary
        print(json.dumps(payload, indent=2))
        return
    if not result.structured_diff.is_empty:
        print(render_diff_text(left, right, result, color=color))
        print()
    print(result.summary)


def run_diff(left_path: Path, right_path: Path, as_json: bool, color: bool = False) -> int:
    from sheet_diff_tool.core.snapshot import CsvSnapshotProvider

    provider = CsvSnapshotProvider()
    left = provider.load_table(left_path)
    right = provider.load_table(right_path)
    _print_diff(left, right, as_json, color)
    return 0


def run_revisions(
    path: Path, from_rev: str, to_rev: str, as_json: bool, color: bool = False
) -> int:
    from sheet_diff_tool.utils.vcs import GitRevisionProvider

    vcs = GitRevisionProvider.detect(path.resolve().parent)
    if vcs is None:
        print(f"Error: {path} is not inside a git repository", file=sys.stderr)
        return 1
    left = vcs.load_table_at(from_rev, path.resolve())
    right = vcs.load_table_at(to_rev, path.resolve())
    _print_diff(left, right, as_json, color)
    return 0


def run_merge(
    base_path: Path,
    ours_path: Path,
    theirs_path: Path,
    output: Path,
    accept: Optional[str],
    as_json: bool,
) -> int:
    from sheet_diff_tool.core.merger import merge
    from sheet_diff_tool.core.resolution import resolve_all
    from sheet_diff_tool.core.snapshot import CsvSnapshotProvider

    provider = CsvSnapshotProvider()
    result = merge(
        provider.load_table(base_path),
        provider.load_table(ours_path),
        provider.load_table(theirs_path),
    )
    session = resolve_all(result, accept)
    table, fully_resolved = session.finalize()
    provider.write_table(output, table)

    if as_json:
        print(json.dumps(result.to_dict(), indent=2))
    else:
        for conflict in result.conflicts:
            print(
                f"Conflict at row {conflict.position}, column {conflict.column!r}: "
                f"base={conflict.base_value!r} ours={conflict.ours_value!r} "
                f"theirs={conflict.theirs_value!r} [{conflict.resolution.value}]"
            )
        for row_conflict in result.row_conflicts:
            print(
                f"Row conflict on base row {row_conflict.base_index}: "
                f"{row_conflict.kind.value} [{row_conflict.resolution.value}]"
            )
        print(
            f"Wrote {output} with {result.conflict_count} cell conflict(s), "
            f"{len(result.row_conflicts)} row conflict(s), "
            f"{session.unresolved_count} unresolved"
        )

    return 0 if fully_resolved else 1


def main(argv: Optional[list[str]] = None) -> int:
    args = parse_args(argv)

    from sheet_diff_tool.core.errors import SheetError
    from sheet_diff_tool.utils.log_handler import setup_logging

    setup_logging(getattr(logging, args.log_level))

    try:
        if args.merge:
            if not args.output:
                print("Error: --output is required for merge mode", file=sys.stderr)
                return 1
            if not validate_files(args.merge):
                return 1
            return run_merge(*args.merge, args.output, args.accept, args.json)

        if args.diff:
            if not validate_files(args.diff):
                return 1
            return run_diff(*args.diff, args.json, args.color)

        if args.file and args.revisions:
            return run_revisions(args.file, *args.revisions, args.json, args.color)

        if args.file:
            if not validate_files([args.file]):
                return 1
            return run_view(args.file)
    except SheetError as e:
        logger.debug("Command failed", exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print("Error: nothing to do (see --help)", file=sys.stderr)
    return 2


if __name__ == "__main__":
    sys.exit(main())
