"""Exception hierarchy for gitpaper.

All errors raised by gitpaper derive from :class:`GitpaperError` so the
CLI can report them uniformly. Conditions that are *not* errors (an
unparseable commit, an identity the resolver cannot find, an empty
changelog) never raise.
"""

from __future__ import annotations


class GitpaperError(Exception):
    """Base class for all gitpaper errors."""


# =============================================================================
# Configuration
# =============================================================================


class ConfigError(GitpaperError):
    """Configuration could not be loaded or is invalid."""


class ConfigNotFoundError(ConfigError):
    """A configuration file that was required does not exist."""


class ConfigValidationError(ConfigError):
    """Configuration values failed validation."""


class ExclusionPolicyError(ConfigError):
    """A contributor exclusion predicate raised while being evaluated."""


# =============================================================================
# Version control
# =============================================================================


class GitError(GitpaperError):
    """A git command failed."""

    def __init__(self, message: str, stderr: str | None = None) -> None:
        super().__init__(message)
        self.stderr = stderr

    def __str__(self) -> str:
        message = super().__str__()
        if self.stderr:
            return f"{message}: {self.stderr.strip()}"
        return message


# =============================================================================
# GitHub
# =============================================================================


class GitHubError(GitpaperError):
    """Communication with the GitHub API failed."""


class ResolverError(GitHubError):
    """Looking up a contributor's GitHub identity failed."""


class ReleaseError(GitHubError):
    """Publishing a GitHub release failed."""
