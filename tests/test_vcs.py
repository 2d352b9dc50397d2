"""
Tests for git revision access. Skipped when git is not installed.
"""

import json
import shutil
import subprocess

import pytest

from sheet_diff_tool.core.errors import RevisionError
from sheet_diff_tool.utils.vcs import GitRevisionProvider, RepoStatus

pytestmark = pytest.mark.skipif(shutil.which("git") is None, reason="git not installed")


def git(repo, *args):
    subprocess.run(["git", *args], cwd=repo, check=True, capture_output=True)


@pytest.fixture
def repo(tmp_path):
    git(tmp_path, "init", "-q")
    git(tmp_path, "config", "user.name", "Test User")
    git(tmp_path, "config", "user.email", "test@example.com")
    git(tmp_path, "config", "commit.gpgsign", "false")
    return tmp_path


@pytest.fixture
def history(repo):
    """Repository with two commits of data.csv."""
    provider = GitRevisionProvider(repo)
    (repo / "data.csv").write_text("id,val\n1,10\n")
    first = provider.commit("Add data", ["data.csv"])
    (repo / "data.csv").write_text("id,val\n1,10\n2,20\n")
    second = provider.commit("Add row", ["data.csv"])
    return provider, first, second


class TestGitRevisionProvider:
    def test_empty_repository_has_no_revisions(self, repo):
        assert GitRevisionProvider(repo).list_revisions() == []

    def test_list_revisions_newest_first(self, history):
        provider, first, second = history
        revisions = provider.list_revisions("data.csv")
        assert [r.hash for r in revisions] == [second.hash, first.hash]
        assert revisions[0].message == "Add row"
        assert revisions[0].author == "Test User"
        assert second.short_hash and second.hash.startswith(second.short_hash)

    def test_list_revisions_paging(self, history):
        provider, first, _ = history
        revisions = provider.list_revisions(limit=1, offset=1)
        assert [r.hash for r in revisions] == [first.hash]

    def test_resolve_revision_content(self, history):
        provider, first, second = history
        assert provider.resolve_revision_content(first.hash, "data.csv") == "id,val\n1,10\n"
        table = provider.load_table_at(second.hash, "data.csv")
        assert table.rows == (("1", "10"), ("2", "20"))

    def test_absolute_path(self, history, repo):
        provider, first, _ = history
        table = provider.load_table_at(first.hash, repo / "data.csv")
        assert table.row_count == 1

    def test_unknown_revision(self, history):
        provider, _, _ = history
        with pytest.raises(RevisionError):
            provider.resolve_revision_content("no-such-rev", "data.csv")

    def test_missing_file_at_revision(self, history):
        provider, first, _ = history
        with pytest.raises(RevisionError):
            provider.resolve_revision_content(first.hash, "missing.csv")

    def test_status(self, history, repo):
        provider, _, _ = history
        assert provider.current_status().clean

        (repo / "data.csv").write_text("id,val\n")
        (repo / "new.csv").write_text("a\n")
        status = provider.current_status()
        assert isinstance(status, RepoStatus)
        assert status.branch
        assert status.modified == ["data.csv"]
        assert status.untracked == ["new.csv"]
        assert not status.clean

    def test_commit_resolved(self, history, repo):
        provider, _, second = history
        revision = provider.commit_resolved("data.csv", "id,val\n1,50\n")
        assert revision.message == "Resolve merge conflicts in data.csv"
        assert provider.resolve_revision_content(revision.hash, "data.csv") == "id,val\n1,50\n"
        assert provider.list_revisions()[1].hash == second.hash

    def test_path_outside_repository(self, history, tmp_path_factory):
        provider, first, _ = history
        outside = tmp_path_factory.mktemp("outside") / "x.csv"
        with pytest.raises(RevisionError):
            provider.resolve_revision_content(first.hash, outside)

    def test_detect(self, history, repo):
        (repo / "sub").mkdir()
        provider = GitRevisionProvider.detect(repo / "sub")
        assert provider is not None
        assert provider.root.resolve() == repo.resolve()

    def test_cli_revisions(self, history, repo, capsys):
        from sheet_diff_tool.__main__ import main

        _, first, second = history
        args = [str(repo / "data.csv"), "--revisions", first.hash, second.hash, "--json"]
        assert main(args) == 0
        payload = json.loads(capsys.readouterr().out)
        assert payload["addedRows"] == [1]
