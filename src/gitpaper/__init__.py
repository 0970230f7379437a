"""gitpaper: changelogs from conventional commits."""

from __future__ import annotations

__version__ = "0.1.0"

from gitpaper.core import (  # noqa: E402
    ChangelogResult,
    ParsedCommit,
    Section,
    aggregate_changelog,
    build_changelog,
    parse_commit,
    parse_commits,
)
from gitpaper.vcs import Identity, RawCommit, ResolvedIdentity  # noqa: E402

__all__ = [
    "ChangelogResult",
    "Identity",
    "ParsedCommit",
    "RawCommit",
    "ResolvedIdentity",
    "Section",
    "__version__",
    "aggregate_changelog",
    "build_changelog",
    "parse_commit",
    "parse_commits",
]
