"""Tests for git history access."""

from __future__ import annotations

import subprocess
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING
from unittest.mock import MagicMock, patch

import pytest

from gitpaper.config.models import RepoInfo
from gitpaper.exceptions import GitError
from gitpaper.vcs.git import GitRepository, Identity, parse_log_output

if TYPE_CHECKING:
    from pathlib import Path

RS = "\x1e"
FS = "\x1f"


def _record(subject: str, sha: str, name: str, email: str, date: str, body: str = "") -> str:
    return RS + FS.join([subject, sha, name, email, date, body])


def _fake_git(outputs: dict[str, str]):
    """Build a subprocess.run replacement keyed by git subcommand."""

    def run(cmd, **kwargs):
        subcommand = cmd[2] if cmd[1] == "--no-pager" else cmd[1]
        if subcommand not in outputs:
            raise subprocess.CalledProcessError(128, cmd, stderr=f"fatal: {subcommand}")
        return MagicMock(stdout=outputs[subcommand], returncode=0)

    return run


class TestParseLogOutput:
    """Tests for parse_log_output()."""

    def test_parse_records(self):
        """Each record becomes a RawCommit, newest first."""
        output = _record(
            "feat: add x", "abc", "Jane", "jane@x.com", "2024-05-01T12:00:00+02:00", "Body\n"
        ) + _record("fix: y", "def", "Bob", "bob@x.com", "2024-04-30T08:00:00+00:00")

        commits = parse_log_output(output)

        assert [c.sha for c in commits] == ["abc", "def"]
        assert commits[0].message == "feat: add x"
        assert commits[0].body == "Body"
        assert commits[0].author == Identity(name="Jane", email="jane@x.com")
        assert commits[0].date == datetime(2024, 5, 1, 12, tzinfo=timezone(timedelta(hours=2)))
        assert commits[0].co_authors == ()

    def test_subject_with_pipes(self):
        """Subjects may contain characters used by other log formats."""
        output = _record("fix: a | b", "abc", "Jane", "j@x.com", "2024-05-01T12:00:00+00:00")

        assert parse_log_output(output)[0].message == "fix: a | b"

    def test_body_keeps_trailers(self):
        """Co-author trailers stay in the body for the parser."""
        body = "Details\n\nCo-authored-by: Bob <bob@x.com>\n"
        output = _record("feat: x", "abc", "Jane", "j@x.com", "2024-05-01T12:00:00+00:00", body)

        assert "Co-authored-by: Bob <bob@x.com>" in parse_log_output(output)[0].body

    def test_empty_output(self):
        """No commits in range."""
        assert parse_log_output("") == []


class TestGitRepository:
    """Tests for GitRepository."""

    def test_not_a_repository(self, tmp_path: Path):
        """Raise GitError outside a repository."""
        with patch("subprocess.run", side_effect=_fake_git({})):
            with pytest.raises(GitError, match="Not a git repository"):
                GitRepository(tmp_path)

    def test_git_missing(self, tmp_path: Path):
        """Raise GitError when git is not installed."""
        with patch("subprocess.run", side_effect=FileNotFoundError("git")):
            with pytest.raises(GitError):
                GitRepository(tmp_path)

    def test_get_commits_uses_range(self, tmp_path: Path):
        """get_commits asks git for from..to."""
        log = _record("feat: x", "abc", "Jane", "j@x.com", "2024-05-01T12:00:00+00:00")
        with patch("subprocess.run", side_effect=_fake_git({"rev-parse": ".git", "log": log})) as run:
            repo = GitRepository(tmp_path)
            commits = repo.get_commits("v1.0.0", "main")

        assert [c.sha for c in commits] == ["abc"]
        assert run.call_args[0][0][-1] == "v1.0.0..main"

    def test_get_commits_without_from(self, tmp_path: Path):
        """Without a lower bound the whole history of to_ref is read."""
        with patch("subprocess.run", side_effect=_fake_git({"rev-parse": ".git", "log": ""})) as run:
            GitRepository(tmp_path).get_commits(None, "HEAD")

        assert run.call_args[0][0][-1] == "HEAD"

    def test_latest_tag(self, tmp_path: Path):
        """The latest reachable tag is returned."""
        outputs = {"rev-parse": ".git", "describe": "v1.2.0\n"}
        with patch("subprocess.run", side_effect=_fake_git(outputs)):
            assert GitRepository(tmp_path).get_latest_tag("main") == "v1.2.0"

    def test_latest_tag_none(self, tmp_path: Path):
        """No tags yields None instead of an error."""
        with patch("subprocess.run", side_effect=_fake_git({"rev-parse": ".git"})):
            assert GitRepository(tmp_path).get_latest_tag() is None

    def test_first_commit(self, tmp_path: Path):
        """The root commit is returned."""
        outputs = {"rev-parse": ".git", "rev-list": "root1\nroot2\n"}
        with patch("subprocess.run", side_effect=_fake_git(outputs)):
            assert GitRepository(tmp_path).get_first_commit() == "root2"

    def test_first_commit_of_ref(self, tmp_path: Path):
        """The root commit is looked up from the given reference."""
        outputs = {"rev-parse": ".git", "rev-list": "root1\n"}
        with patch("subprocess.run", side_effect=_fake_git(outputs)) as run:
            assert GitRepository(tmp_path).get_first_commit("v2.0.0") == "root1"

        assert run.call_args[0][0] == ["git", "rev-list", "--max-parents=0", "v2.0.0"]

    def test_command_failure_carries_stderr(self, tmp_path: Path):
        """Failing commands raise GitError with git's stderr."""
        with patch("subprocess.run", side_effect=_fake_git({"rev-parse": ".git"})):
            repo = GitRepository(tmp_path)
            with pytest.raises(GitError) as exc_info:
                repo.get_commits("v1", "main")

        assert exc_info.value.stderr == "fatal: log"
        assert str(exc_info.value).startswith("git log failed")

    @pytest.mark.parametrize(
        "url",
        [
            "https://github.com/octo/widgets.git",
            "https://github.com/octo/widgets",
            "git@github.com:octo/widgets.git",
            "ssh://git@github.com/octo/widgets.git",
        ],
    )
    def test_repo_info_from_remote(self, tmp_path: Path, url: str):
        """GitHub remotes are recognized in common URL forms."""
        outputs = {"rev-parse": ".git", "remote": f"{url}\n"}
        with patch("subprocess.run", side_effect=_fake_git(outputs)):
            info = GitRepository(tmp_path).get_repo_info()

        assert info == RepoInfo(owner="octo", repo="widgets")

    def test_repo_info_non_github(self, tmp_path: Path):
        """Other hosts yield None."""
        outputs = {"rev-parse": ".git", "remote": "https://gitlab.com/octo/widgets.git\n"}
        with patch("subprocess.run", side_effect=_fake_git(outputs)):
            assert GitRepository(tmp_path).get_repo_info() is None
