"""Core business logic for gitpaper.

This module contains the fundamental building blocks:
- Conventional commit parsing
- Contributor exclusion and deduplication
- Changelog aggregation into ordered sections
"""

from __future__ import annotations

from gitpaper.core.changelog import (
    ChangelogResult,
    IdentityResolver,
    Section,
    aggregate_changelog,
    build_changelog,
)
from gitpaper.core.commits import (
    ParsedCommit,
    filter_skip_commits,
    group_commits_by_type,
    parse_commit,
    parse_commits,
)
from gitpaper.core.contributors import is_included, merge_identities

__all__ = [
    # Changelog
    "ChangelogResult",
    "IdentityResolver",
    # Commits
    "ParsedCommit",
    "Section",
    "aggregate_changelog",
    "build_changelog",
    "filter_skip_commits",
    "group_commits_by_type",
    # Contributors
    "is_included",
    "merge_identities",
    "parse_commit",
    "parse_commits",
]
