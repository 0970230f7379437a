"""GitHub integration."""

from __future__ import annotations

from gitpaper.github.client import GitHubIdentityResolver, IdentityCache, publish_release

__all__ = [
    "GitHubIdentityResolver",
    "IdentityCache",
    "publish_release",
]
