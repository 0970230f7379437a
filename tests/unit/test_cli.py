"""Tests for the command line interface."""

from __future__ import annotations

from typing import TYPE_CHECKING
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from gitpaper import __version__
from gitpaper.cli.app import main
from gitpaper.config.models import RepoInfo
from gitpaper.exceptions import GitError
from gitpaper.vcs.git import Identity

if TYPE_CHECKING:
    from pathlib import Path

MODULE = "gitpaper.cli.commands.generate"


class FakeRepository:
    """Stands in for GitRepository with canned history."""

    commits: list = []
    tags: dict[str, str] = {"main": "v1.0.0", "v1.0.0": "v1.0.0", "v1.0.0^": "v0.9.0"}
    requested: list[tuple[str | None, str]] = []

    def __init__(self, path) -> None:
        self.path = path

    def get_current_branch(self) -> str:
        return "main"

    def get_latest_tag(self, ref: str | None = None) -> str | None:
        return self.tags.get(ref)

    def get_first_commit(self, ref: str = "HEAD") -> str:
        return f"root-of-{ref}"

    def get_commits(self, from_ref, to_ref):
        FakeRepository.requested.append((from_ref, to_ref))
        return list(self.commits)

    def get_repo_info(self) -> RepoInfo | None:
        return RepoInfo(owner="octo", repo="widgets")


@pytest.fixture
def project(tmp_path: Path, make, monkeypatch) -> Path:
    """Project directory with resolution disabled and canned history."""
    (tmp_path / "gitpaper.toml").write_text("[github]\nresolve_usernames = false\n")
    monkeypatch.delenv("GITHUB_TOKEN", raising=False)
    FakeRepository.requested = []
    FakeRepository.commits = [
        make("abc1234567", "feat(api): add search endpoint"),
        make("def1234567", "fix: handle timeout", author=Identity("Bob", "bob@example.com")),
        make("0001234567", "Merge branch 'main'"),
    ]
    return tmp_path


def _invoke(*args: str):
    runner = CliRunner()
    with patch(f"{MODULE}.GitRepository", FakeRepository):
        return runner.invoke(main, list(args))


class TestGenerate:
    """Tests for the gitpaper command."""

    def test_prints_changelog(self, project: Path):
        """The changelog is printed to stdout."""
        result = _invoke("--path", str(project))

        assert result.exit_code == 0, result.output
        assert "### 🚀 Enhancements" in result.output
        assert "- **api:** Add search endpoint" in result.output
        assert "https://github.com/octo/widgets/commit/abc1234567" in result.output
        assert "### 🩹 Fixes" in result.output
        assert "Merge branch" not in result.output
        assert "- Bob" in result.output

    def test_default_range_from_previous_tag(self, project: Path):
        """Without --from, the latest tag before --to is used."""
        _invoke("--path", str(project))

        assert FakeRepository.requested == [("v1.0.0", "main")]

    def test_to_tag_uses_tag_before_it(self, project: Path):
        """When --to is itself a tag, the range starts at the previous tag."""
        _invoke("--path", str(project), "--to", "v1.0.0")

        assert FakeRepository.requested == [("v0.9.0", "v1.0.0")]

    def test_falls_back_to_first_commit(self, project: Path):
        """Without any tag the range starts at the root commit."""
        _invoke("--path", str(project), "--to", "feature")

        assert FakeRepository.requested == [("root-of-feature", "feature")]

    def test_no_contributors(self, project: Path):
        """--no-contributors hides the contributors section."""
        result = _invoke("--path", str(project), "--no-contributors")

        assert result.exit_code == 0
        assert "Contributors" not in result.output

    def test_no_emoji(self, project: Path):
        """--no-emoji strips emoji from titles."""
        result = _invoke("--path", str(project), "--no-emoji")

        assert "### Enhancements" in result.output

    def test_output_file(self, project: Path):
        """--output writes the changelog to a file."""
        target = project / "CHANGELOG.md"
        result = _invoke("--path", str(project), "--output", str(target))

        assert result.exit_code == 0
        assert target.read_text(encoding="utf-8").startswith("### 🚀 Enhancements\n")

    def test_release_requires_token(self, project: Path):
        """--release without GITHUB_TOKEN fails."""
        result = _invoke("--path", str(project), "--release")

        assert result.exit_code == 1
        assert "GITHUB_TOKEN" in result.output

    def test_release_published(self, project: Path, monkeypatch):
        """--release publishes the rendered notes."""
        monkeypatch.setenv("GITHUB_TOKEN", "t0ken")
        with patch(f"{MODULE}.publish_release", return_value="https://example/rel") as publish:
            result = _invoke("--path", str(project), "--release", "--draft", "--release-name", "One")

        assert result.exit_code == 0, result.output
        publish.assert_called_once()
        kwargs = publish.call_args.kwargs
        assert publish.call_args.args[0] == RepoInfo(owner="octo", repo="widgets")
        assert kwargs["tag"] == "main"
        assert kwargs["token"] == "t0ken"
        assert kwargs["name"] == "One"
        assert kwargs["draft"] is True
        assert "Add search endpoint" in kwargs["body"]

    def test_git_error_exits(self, project: Path):
        """Git failures are reported with exit code 1."""

        def broken(path):
            raise GitError("Not a git repository: x")

        with patch(f"{MODULE}.GitRepository", side_effect=broken):
            result = CliRunner().invoke(main, ["--path", str(project)])

        assert result.exit_code == 1
        assert "Not a git repository" in result.output

    def test_invalid_config_exits(self, project: Path):
        """Configuration errors are reported with exit code 1."""
        (project / "gitpaper.toml").write_text("emoji = 'lots'\n")

        result = _invoke("--path", str(project))

        assert result.exit_code == 1
        assert "Error loading config" in result.output

    def test_invalid_breaking_pattern_exits(self, project: Path):
        """A malformed breaking pattern is reported as a configuration error."""
        (project / "gitpaper.toml").write_text('[commits]\nbreaking_pattern = "breaking("\n')

        result = _invoke("--path", str(project))

        assert result.exit_code == 1
        assert "Error loading config" in result.output
        assert isinstance(result.exception, SystemExit)

    def test_empty_range(self, project: Path):
        """A range with no conventional commits is not an error."""
        FakeRepository.commits = []

        result = _invoke("--path", str(project))

        assert result.exit_code == 0
        assert "No changelog entries" in result.output

    def test_version(self):
        """--version prints the version."""
        result = CliRunner().invoke(main, ["--version"])

        assert result.exit_code == 0
        assert __version__ in result.output
