"""Conventional commit parsing.

This module classifies raw commits according to the Conventional
Commits specification (https://www.conventionalcommits.org/).

Subject format::

    [emoji ]<type>[(scope)][!]: [emoji ...]<description>

Examples::

    feat: add user authentication
    fix(api): handle null response
    :sparkles: feat(ui)!: redesign settings page

The subject is matched by a small scanner rather than one regular
expression so each part of the grammar can be exercised on its own.
Commits whose subject does not match are not an error: they are simply
left out of the changelog (merge commits, "Initial commit", ...).
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import TYPE_CHECKING

from gitpaper.config.models import DEFAULT_BREAKING_PATTERN
from gitpaper.vcs.git import Identity, RawCommit

if TYPE_CHECKING:
    from collections.abc import Iterable

    from gitpaper.config.models import CommitsConfig

_SHORTCODE_RE = re.compile(r":[a-z_]+:", re.IGNORECASE)
_EMOJI_RANGES = (
    (0x1F300, 0x1F64F),
    (0x1F680, 0x1F6FF),
    (0x2600, 0x2B55),
)
_VARIATION_SELECTOR = "\ufe0f"

_CO_AUTHOR_RE = re.compile(
    r"^co-authored-by:[ \t]*(?P<name>\S[^<\n]*?)[ \t]*<(?P<email>[^<>\s]+)>[ \t]*$",
    re.IGNORECASE | re.MULTILINE,
)
_CHANGELOG_BLOCK_RE = re.compile(r"::: changelog\s*(.*?):::", re.IGNORECASE | re.DOTALL)


# =============================================================================
# Subject scanning
# =============================================================================


def _match_emoji(text: str, pos: int) -> int | None:
    """Return the end index of an emoji token starting at ``pos``, or None."""
    if pos >= len(text):
        return None

    shortcode = _SHORTCODE_RE.match(text, pos)
    if shortcode:
        return shortcode.end()

    code = ord(text[pos])
    if not any(low <= code <= high for low, high in _EMOJI_RANGES):
        return None
    end = pos + 1
    if text.startswith(_VARIATION_SELECTOR, end):
        end += 1
    return end


def _skip_whitespace(text: str, pos: int) -> int:
    while pos < len(text) and text[pos].isspace():
        pos += 1
    return pos


def strip_leading_emoji(text: str) -> str:
    """Remove any run of leading emoji tokens (and the spaces after them)."""
    pos = 0
    while (end := _match_emoji(text, pos)) is not None:
        pos = _skip_whitespace(text, end)
    return text[pos:]


@dataclass(frozen=True)
class _Subject:
    commit_type: str
    scope: str | None
    breaking: bool
    description: str


def _scan_subject(line: str) -> _Subject | None:
    pos = 0

    # Optional emoji before the type
    end = _match_emoji(line, pos)
    if end is not None:
        pos = end
    pos = _skip_whitespace(line, pos)

    # Type: a run of ASCII letters
    start = pos
    while pos < len(line) and line[pos].isascii() and line[pos].isalpha():
        pos += 1
    if pos == start:
        return None
    commit_type = line[start:pos].lower()

    # Optional scope: "(" one or more non-")" characters ")"
    scope = None
    if line.startswith("(", pos):
        close = line.find(")", pos + 1)
        if close <= pos + 1:
            return None
        scope = line[pos + 1 : close]
        pos = close + 1

    breaking = line.startswith("!", pos)
    if breaking:
        pos += 1

    if not line.startswith(": ", pos):
        return None
    rest = line[pos + 2 :].lstrip()

    # An all-emoji description is kept rather than discarded
    description = strip_leading_emoji(rest).strip() or rest.strip()
    if not description:
        return None

    return _Subject(
        commit_type=commit_type,
        scope=scope,
        breaking=breaking,
        description=description,
    )


# =============================================================================
# Body scanning
# =============================================================================


def extract_co_authors(body: str) -> tuple[Identity, ...]:
    """Return the ``Co-authored-by`` trailers of a commit body, in order."""
    body = body.replace("\r\n", "\n")
    return tuple(
        Identity(name=match.group("name").strip(), email=match.group("email").strip())
        for match in _CO_AUTHOR_RE.finditer(body)
    )


def extract_changelog_body(body: str) -> str | None:
    """Return the text of a ``::: changelog ... :::`` block, or None."""
    match = _CHANGELOG_BLOCK_RE.search(body)
    if not match:
        return None
    return match.group(1).strip() or None


# =============================================================================
# Parsed commits
# =============================================================================


@dataclass(frozen=True)
class ParsedCommit(RawCommit):
    """A raw commit classified as a conventional commit."""

    commit_type: str = ""
    description: str = ""
    scope: str | None = None
    is_breaking: bool = False
    changelog_body: str | None = None

    @property
    def authors(self) -> tuple[Identity, ...]:
        return (self.author, *self.co_authors)

    @classmethod
    def from_commit(
        cls,
        commit: RawCommit,
        breaking_pattern: str = DEFAULT_BREAKING_PATTERN,
    ) -> ParsedCommit | None:
        """Classify a raw commit.

        Args:
            commit: Commit as read from history
            breaking_pattern: Case-insensitive regex marking a breaking change in the body

        Returns:
            The parsed commit, or None if the subject is not a conventional commit
        """
        lines = commit.message.splitlines()
        if not lines:
            return None

        subject = _scan_subject(lines[0])
        if subject is None:
            return None

        # A full message passed as the subject still carries its body
        body = commit.body or "\n".join(lines[1:]).strip("\n")
        breaking_in_body = re.search(breaking_pattern, body, re.IGNORECASE) is not None

        return cls(
            sha=commit.sha,
            message=commit.message,
            body=body,
            date=commit.date,
            author=commit.author,
            co_authors=(*commit.co_authors, *extract_co_authors(body)),
            commit_type=subject.commit_type,
            description=subject.description,
            scope=subject.scope,
            is_breaking=subject.breaking or breaking_in_body,
            changelog_body=extract_changelog_body(body),
        )


def parse_commit(
    commit: RawCommit,
    breaking_pattern: str = DEFAULT_BREAKING_PATTERN,
) -> ParsedCommit | None:
    return ParsedCommit.from_commit(commit, breaking_pattern)


def parse_commits(
    commits: Iterable[RawCommit],
    config: CommitsConfig,
) -> list[ParsedCommit]:
    """Parse commits, dropping those that are not conventional.

    Input order is preserved.
    """
    parsed = (ParsedCommit.from_commit(commit, config.breaking_pattern) for commit in commits)
    return [pc for pc in parsed if pc is not None]


def filter_skip_commits(
    commits: Iterable[RawCommit],
    patterns: Iterable[str],
) -> list[RawCommit]:
    """Remove commits carrying a skip marker such as ``[skip changelog]``.

    Markers are matched case-insensitively in both subject and body.
    """
    markers = [pattern.lower() for pattern in patterns]
    if not markers:
        return list(commits)

    def _has_marker(commit: RawCommit) -> bool:
        text = f"{commit.message}\n{commit.body}".lower()
        return any(marker in text for marker in markers)

    return [commit for commit in commits if not _has_marker(commit)]


def group_commits_by_type(commits: Iterable[ParsedCommit]) -> dict[str, list[ParsedCommit]]:
    """Group commits by type, keeping first-seen type order and commit order."""
    groups: dict[str, list[ParsedCommit]] = {}
    for pc in commits:
        groups.setdefault(pc.commit_type, []).append(pc)
    return groups

