"""Git history access.

This module reads commit history by calling the ``git`` binary as a
subprocess and turns ``git log`` output into :class:`RawCommit` records.
It also defines the identity types shared by the rest of the package.
"""

from __future__ import annotations

import logging
import re
import subprocess
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

from gitpaper.config.models import RepoInfo
from gitpaper.exceptions import GitError

logger = logging.getLogger(__name__)

# ASCII record / unit separators never appear in commit metadata
_RECORD_SEP = "\x1e"
_FIELD_SEP = "\x1f"
_LOG_FORMAT = _FIELD_SEP.join(["%s", "%H", "%an", "%ae", "%aI", "%b"])

_GITHUB_REMOTE_RE = re.compile(
    r"github\.com[:/](?P<owner>[^/\s]+)/(?P<repo>[^/\s]+?)(?:\.git)?/?$",
    re.IGNORECASE,
)


@dataclass(frozen=True)
class Identity:
    """A commit author or co-author as recorded by git."""

    name: str
    email: str

    @property
    def key(self) -> str:
        """Deduplication key: normalized email, or normalized name without one."""
        email = self.email.strip().casefold()
        if email:
            return email
        return self.name.strip().casefold()


@dataclass(frozen=True)
class ResolvedIdentity(Identity):
    """An identity enriched with the account name of a hosting service."""

    username: str = ""


@dataclass(frozen=True)
class RawCommit:
    """A single commit as read from history.

    ``message`` is the subject line, ``body`` everything after it.
    """

    sha: str
    message: str
    body: str
    date: datetime
    author: Identity
    co_authors: tuple[Identity, ...] = field(default_factory=tuple)


class GitRepository:
    """Read-only access to a local git repository."""

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)
        try:
            self._run("rev-parse", "--git-dir")
        except GitError as e:
            raise GitError(f"Not a git repository: {self.path}", stderr=e.stderr) from e

    def _run(self, *args: str) -> str:
        cmd = ["git", *args]
        logger.debug("Running %s", " ".join(cmd))
        try:
            result = subprocess.run(
                cmd,
                cwd=self.path,
                capture_output=True,
                text=True,
                check=True,
            )
        except FileNotFoundError as e:
            raise GitError("git executable not found") from e
        except subprocess.CalledProcessError as e:
            subcommand = next((arg for arg in args if not arg.startswith("-")), args[0])
            raise GitError(
                f"git {subcommand} failed with exit code {e.returncode}",
                stderr=e.stderr,
            ) from e
        return result.stdout

    def get_current_branch(self) -> str:
        return self._run("rev-parse", "--abbrev-ref", "HEAD").strip()

    def get_latest_tag(self, ref: str | None = None) -> str | None:
        """Return the most recent tag reachable from ``ref``, or None."""
        args = ["describe", "--tags", "--abbrev=0"]
        if ref:
            args.append(ref)
        try:
            output = self._run(*args).strip()
        except GitError:
            return None
        return output.splitlines()[-1] if output else None

    def get_first_commit(self, ref: str = "HEAD") -> str:
        """Return the root commit reachable from ``ref``."""
        output = self._run("rev-list", "--max-parents=0", ref).strip()
        return output.splitlines()[-1]

    def get_commits(self, from_ref: str | None, to_ref: str = "HEAD") -> list[RawCommit]:
        """Get commits between two references, newest first.

        Args:
            from_ref: Exclusive lower bound, or None for the full history of ``to_ref``
            to_ref: Inclusive upper bound

        Returns:
            Commits as they appear in ``git log``
        """
        rev_range = f"{from_ref}..{to_ref}" if from_ref else to_ref
        output = self._run(
            "--no-pager",
            "log",
            f"--pretty=format:{_RECORD_SEP}{_LOG_FORMAT}",
            rev_range,
        )
        return parse_log_output(output)

    def get_remote_url(self, remote: str = "origin") -> str | None:
        try:
            return self._run("remote", "get-url", remote).strip() or None
        except GitError:
            return None

    def get_repo_info(self, remote: str = "origin") -> RepoInfo | None:
        """Derive the GitHub owner/repository from a remote URL."""
        url = self.get_remote_url(remote)
        if url is None:
            return None
        match = _GITHUB_REMOTE_RE.search(url)
        if not match:
            logger.debug("Remote %s is not a GitHub URL: %s", remote, url)
            return None
        return RepoInfo(owner=match.group("owner"), repo=match.group("repo"))


def parse_log_output(output: str) -> list[RawCommit]:
    """Parse ``git log`` output produced with the module's pretty format."""
    commits = []
    for record in output.split(_RECORD_SEP):
        if not record.strip():
            continue
        fields = record.split(_FIELD_SEP, 5)
        if len(fields) != 6:
            logger.debug("Skipping malformed log record: %r", record[:80])
            continue
        subject, sha, author_name, author_email, date, body = fields
        commits.append(
            RawCommit(
                sha=sha,
                message=subject,
                body=body.strip("\n"),
                date=datetime.fromisoformat(date),
                author=Identity(name=author_name, email=author_email),
            )
        )
    return commits
