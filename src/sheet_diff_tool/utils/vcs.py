"""
Git access for table revisions.

Everything goes through the ``git`` executable, so the repository is
whatever the user's git sees (including GIT_DIR / GIT_WORK_TREE set by
difftool and mergetool invocations).
"""

import logging
import os
import subprocess
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Union

from sheet_diff_tool.core.errors import RevisionError, SheetIOError
from sheet_diff_tool.core.sheet_model import TableModel
from sheet_diff_tool.core.snapshot import delimiter_for, table_from_text

logger = logging.getLogger(__name__)

_FIELD_SEP = "\x1f"
_LOG_FORMAT = "%H%x1f%h%x1f%an%x1f%at%x1f%s"


@dataclass
class Revision:
    """A commit that touched the repository (or a single file)."""
    hash: str
    short_hash: str
    author: str
    timestamp: datetime
    message: str

    def to_dict(self) -> dict:
        return {
            "hash": self.hash,
            "shortHash": self.short_hash,
            "author": self.author,
            "timestamp": self.timestamp.isoformat(),
            "message": self.message,
        }


@dataclass
class RepoStatus:
    """Working tree status."""
    branch: str
    modified: list[str] = field(default_factory=list)
    staged: list[str] = field(default_factory=list)
    untracked: list[str] = field(default_factory=list)

    @property
    def clean(self) -> bool:
        return not (self.modified or self.staged or self.untracked)


def detect_git_workspace(start: Optional[Path] = None) -> Optional[Path]:
    """
    Find the work tree containing ``start`` (or the current directory).

    GIT_WORK_TREE and GIT_DIR are honoured first, then
    ``git rev-parse --show-toplevel`` is asked.
    """
    git_work_tree = os.environ.get("GIT_WORK_TREE")
    if git_work_tree and Path(git_work_tree).is_dir():
        return Path(git_work_tree)

    git_dir = os.environ.get("GIT_DIR")
    if git_dir:
        git_path = Path(git_dir)
        if git_path.name == ".git" and git_path.parent.is_dir():
            return git_path.parent

    cwd = Path(start) if start is not None else Path.cwd()
    if cwd.is_file():
        cwd = cwd.parent
    try:
        result = subprocess.run(
            ["git", "rev-parse", "--show-toplevel"],
            cwd=str(cwd),
            capture_output=True,
            text=True,
            timeout=5,
        )
    except (subprocess.TimeoutExpired, FileNotFoundError, OSError):
        return None
    if result.returncode == 0 and result.stdout.strip():
        path = Path(result.stdout.strip())
        if path.is_dir():
            return path
    return None


class GitRevisionProvider:
    """Reads and records table revisions in a git repository."""

    GIT_TIMEOUT = 30  # seconds per git invocation

    def __init__(self, repo_root: Union[str, Path]):
        self._root = Path(repo_root)

    @classmethod
    def detect(cls, start: Optional[Path] = None) -> Optional["GitRevisionProvider"]:
        """Create a provider for the repository containing ``start``, if any."""
        root = detect_git_workspace(start)
        return cls(root) if root is not None else None

    @property
    def root(self) -> Path:
        return self._root

    def _run_git(
        self, *args: str, check: bool = True
    ) -> subprocess.CompletedProcess:
        cmd = ["git", *args]
        try:
            result = subprocess.run(
                cmd,
                cwd=str(self._root),
                capture_output=True,
                timeout=self.GIT_TIMEOUT,
            )
        except FileNotFoundError:
            raise RevisionError("git executable not found") from None
        except subprocess.TimeoutExpired:
            raise RevisionError(
                f"git {args[0]} timed out after {self.GIT_TIMEOUT}s"
            ) from None
        except OSError as e:
            raise RevisionError(f"git {args[0]} failed: {e}") from e

        if check and result.returncode != 0:
            stderr = result.stderr.decode("utf-8", errors="replace").strip()
            raise RevisionError(f"git {args[0]} failed: {stderr or result.returncode}")
        return result

    def _git_text(self, *args: str) -> str:
        return self._run_git(*args).stdout.decode("utf-8", errors="replace")

    def _relative(self, path: Union[str, Path]) -> str:
        path = Path(path)
        if path.is_absolute():
            try:
                path = path.resolve().relative_to(self._root.resolve())
            except ValueError:
                raise RevisionError(f"{path} is outside the repository") from None
        return path.as_posix()

    def _has_head(self) -> bool:
        return self._run_git("rev-parse", "--verify", "-q", "HEAD", check=False).returncode == 0

    # === Reading ===

    def resolve_revision_content(self, revision: str, path: Union[str, Path]) -> str:
        """
        Get the text of a file at a revision.

        Raises:
            RevisionError: If the revision or the file at that revision
                does not exist, or the content is not UTF-8
        """
        data = self._run_git("show", f"{revision}:{self._relative(path)}").stdout
        try:
            return data.decode("utf-8-sig")
        except UnicodeDecodeError:
            raise RevisionError(f"{path} at {revision} is not valid UTF-8") from None

    def load_table_at(self, revision: str, path: Union[str, Path]) -> TableModel:
        text = self.resolve_revision_content(revision, path)
        return table_from_text(text, delimiter_for(path))

    def list_revisions(
        self,
        path: Optional[Union[str, Path]] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[Revision]:
        """Newest-first commit history, optionally only commits touching ``path``."""
        if not self._has_head():
            return []
        args = ["log", f"--format={_LOG_FORMAT}", f"--max-count={limit}", f"--skip={offset}"]
        if path is not None:
            args += ["--", self._relative(path)]

        revisions = []
        for line in self._git_text(*args).splitlines():
            parts = line.split(_FIELD_SEP)
            if len(parts) != 5:
                continue
            full, short, author, stamp, message = parts
            revisions.append(Revision(
                hash=full,
                short_hash=short,
                author=author,
                timestamp=datetime.fromtimestamp(int(stamp), tz=timezone.utc),
                message=message,
            ))
        return revisions

    def current_status(self) -> RepoStatus:
        branch = self._git_text("branch", "--show-current").strip() or "HEAD"
        status = RepoStatus(branch=branch)

        output = self._git_text("status", "--porcelain=v1", "-z", "--untracked-files=all")
        entries = output.split("\0")
        i = 0
        while i < len(entries):
            entry = entries[i]
            i += 1
            if len(entry) < 4:
                continue
            x, y, file_path = entry[0], entry[1], entry[3:]
            if x in "RC":
                i += 1  # Skip the rename source
            if x == "?" and y == "?":
                status.untracked.append(file_path)
                continue
            if x not in " ?":
                status.staged.append(file_path)
            if y in "MDR":
                status.modified.append(file_path)
        return status

    # === Writing ===

    def commit(self, message: str, files: list[Union[str, Path]]) -> Revision:
        """
        Stage ``files`` (removing deleted ones from the index) and commit.

        Any merge in progress is concluded by this commit.
        """
        for file_path in files:
            relative = self._relative(file_path)
            if (self._root / relative).exists():
                self._run_git("add", "--", relative)
            else:
                self._run_git("rm", "--cached", "--ignore-unmatch", "-q", "--", relative)

        self._run_git("commit", "-q", "-m", message)
        revision = self.list_revisions(limit=1)[0]
        logger.info("Committed %s: %s", revision.short_hash, message)
        return revision

    def commit_resolved(
        self,
        path: Union[str, Path],
        resolved_text: str,
        message: Optional[str] = None,
    ) -> Revision:
        """Write a resolved merge result and commit it."""
        relative = self._relative(path)
        target = self._root / relative
        try:
            with open(target, "w", encoding="utf-8", newline="") as f:
                f.write(resolved_text)
        except OSError as e:
            raise SheetIOError(relative, str(e)) from e
        return self.commit(
            message or f"Resolve merge conflicts in {Path(relative).name}",
            [relative],
        )
