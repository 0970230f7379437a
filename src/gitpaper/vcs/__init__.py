"""Version control access."""

from __future__ import annotations

from gitpaper.vcs.git import GitRepository, Identity, RawCommit, ResolvedIdentity

__all__ = [
    "GitRepository",
    "Identity",
    "RawCommit",
    "ResolvedIdentity",
]
