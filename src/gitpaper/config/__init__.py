"""Configuration management for gitpaper."""

from __future__ import annotations

from gitpaper.config.loader import load_config
from gitpaper.config.models import (
    DEFAULT_TYPES,
    CommitsConfig,
    ExclusionConfig,
    GitHubConfig,
    GitpaperConfig,
    RepoInfo,
)

__all__ = [
    "DEFAULT_TYPES",
    "CommitsConfig",
    "ExclusionConfig",
    "GitHubConfig",
    "GitpaperConfig",
    "RepoInfo",
    "load_config",
]
