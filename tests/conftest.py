"""Shared fixtures for gitpaper tests."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

import pytest

from gitpaper.vcs.git import Identity, RawCommit

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path

AUTHOR = Identity(name="Jane Doe", email="jane@example.com")
COMMIT_DATE = datetime(2024, 5, 1, 12, 0, 0)


def make_commit(
    sha: str,
    message: str,
    body: str = "",
    author: Identity = AUTHOR,
    co_authors: tuple[Identity, ...] = (),
) -> RawCommit:
    return RawCommit(
        sha=sha,
        message=message,
        body=body,
        date=COMMIT_DATE,
        author=author,
        co_authors=co_authors,
    )


@pytest.fixture
def make() -> Callable[..., RawCommit]:
    """Factory for commits with sensible defaults."""
    return make_commit


@pytest.fixture
def feat_commit() -> RawCommit:
    return make_commit("feat1234567", "feat: add user authentication")


@pytest.fixture
def fix_commit() -> RawCommit:
    return make_commit("fix12345678", "fix(core): handle empty config")


@pytest.fixture
def breaking_commit() -> RawCommit:
    return make_commit("break123456", "feat!: drop v1 support")


@pytest.fixture
def sample_commits() -> list[RawCommit]:
    """A realistic history, newest first."""
    bob = Identity(name="Bob", email="bob@example.com")
    return [
        make_commit("a1", "feat(api): add search endpoint"),
        make_commit("a2", "fix: handle timeout", author=bob),
        make_commit("a3", "Merge pull request #4 from feature/search"),
        make_commit("a4", "docs: update readme"),
        make_commit(
            "a5",
            "chore(deps): bump httpx",
            author=Identity(name="deps-bot[bot]", email="bot@users.noreply.github.com"),
        ),
        make_commit(
            "a6",
            "feat: new config format",
            body="BREAKING CHANGE: old keys removed\n\nCo-authored-by: Bob <bob@example.com>",
        ),
        make_commit("a7", "Initial commit"),
    ]


@pytest.fixture
def temp_project_with_pyproject(tmp_path: Path) -> Path:
    """A project directory with a [tool.gitpaper] section."""
    (tmp_path / "pyproject.toml").write_text(
        """\
[project]
name = "test-project"
version = "1.0.0"

[tool.gitpaper]
contributors = false
repo = "octo/widgets"

[tool.gitpaper.types]
fix = "Fixes"
feat = "Features"
chore = false

[tool.gitpaper.exclusion]
exclude_contributors = ["ci@example.com"]
"""
    )
    return tmp_path
