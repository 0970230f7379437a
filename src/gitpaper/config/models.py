"""Configuration models.

All configuration is expressed as pydantic models so values coming
from TOML files and from the command line are validated the same way.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Section order in the rendered changelog follows this table
DEFAULT_TYPES: dict[str, str | bool] = {
    "feat": "🚀 Enhancements",
    "perf": "🔥 Performance",
    "fix": "🩹 Fixes",
    "refactor": "💅 Refactors",
    "docs": "📖 Documentation",
    "build": "📦 Build",
    "types": "🌊 Types",
    "chore": "🏡 Chores",
    "examples": "🏀 Examples",
    "test": "✅ Tests",
    "style": "🎨 Styles",
    "ci": "🤖 CI",
}

DEFAULT_BREAKING_PATTERN = r"breaking change:"
DEFAULT_SKIP_PATTERNS = ["[skip changelog]", "[changelog skip]"]


class _StrictModel(BaseModel):
    model_config = ConfigDict(extra="forbid")


class RepoInfo(_StrictModel):
    """A GitHub repository coordinate."""

    owner: str
    repo: str

    @classmethod
    def parse(cls, value: str) -> RepoInfo:
        """Parse an ``owner/repo`` string."""
        owner, sep, repo = value.strip().partition("/")
        if not sep or not owner or not repo or "/" in repo:
            raise ValueError(f"Expected 'owner/repo', got {value!r}")
        return cls(owner=owner, repo=repo)

    @property
    def url(self) -> str:
        return f"https://github.com/{self.owner}/{self.repo}"

    def __str__(self) -> str:
        return f"{self.owner}/{self.repo}"


class CommitsConfig(_StrictModel):
    """How commit messages are interpreted."""

    breaking_pattern: str = DEFAULT_BREAKING_PATTERN
    skip_patterns: list[str] = Field(default_factory=lambda: list(DEFAULT_SKIP_PATTERNS))

    @field_validator("breaking_pattern")
    @classmethod
    def _check_breaking_pattern(cls, value: str) -> str:
        try:
            re.compile(value)
        except re.error as e:
            raise ValueError(f"invalid regular expression: {e}") from e
        return value


class ExclusionConfig(_StrictModel):
    """Which contributors are left out of the changelog.

    ``exclude_contributors`` is either a list of names/emails (exact
    match) or a predicate receiving an identity and returning True to
    exclude it.
    """

    exclude_bots: bool = True
    exclude_contributors: list[str] | Callable[..., bool] = Field(default_factory=list)


class GitHubConfig(_StrictModel):
    """GitHub API settings."""

    api_url: str = "https://api.github.com"
    token_env: str = "GITHUB_TOKEN"
    resolve_usernames: bool = True
    max_concurrency: int = Field(default=8, ge=1)
    cache_ttl_hours: float = Field(default=24.0, ge=0)
    cache_path: Path | None = None

    @property
    def effective_cache_path(self) -> Path:
        if self.cache_path is not None:
            return self.cache_path
        return Path.home() / ".cache" / "gitpaper" / "identities.json"


class GitpaperConfig(_StrictModel):
    """Root configuration."""

    types: dict[str, str | bool] = Field(default_factory=lambda: dict(DEFAULT_TYPES))
    contributors: bool = True
    emoji: bool = True
    repo: RepoInfo | None = None

    commits: CommitsConfig = Field(default_factory=CommitsConfig)
    exclusion: ExclusionConfig = Field(default_factory=ExclusionConfig)
    github: GitHubConfig = Field(default_factory=GitHubConfig)

    @field_validator("repo", mode="before")
    @classmethod
    def _parse_repo_string(cls, value: Any) -> Any:
        if isinstance(value, str):
            return RepoInfo.parse(value)
        return value

    @property
    def enabled_types(self) -> list[str]:
        return [commit_type for commit_type, title in self.types.items() if title]
