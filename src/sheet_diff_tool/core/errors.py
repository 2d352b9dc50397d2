"""
Exception types raised by the sheet diff tool.
"""


class SheetError(Exception):
    """Base class for all sheet diff tool errors."""


class DuplicateColumnError(SheetError, ValueError):
    """A table declares the same column identifier twice."""

    def __init__(self, column: str):
        super().__init__(f"Duplicate column: {column!r}")
        self.column = column


class SheetIOError(SheetError):
    """Loading or writing a table snapshot failed."""

    def __init__(self, identifier: str, reason: str):
        super().__init__(f"{identifier}: {reason}")
        self.identifier = identifier
        self.reason = reason


class RevisionError(SheetError):
    """A version control command failed."""


class ConflictNotFoundError(SheetError, KeyError):
    """No conflict is recorded for the requested cell or row."""

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else "conflict not found"
