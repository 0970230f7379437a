"""Changelog aggregation.

This module turns parsed commits into the structure handed to the
renderer: an ordered list of sections plus a deduplicated contributor
roster.

Aggregation steps:

1. Drop commits whose primary author is excluded by the contributor policy
2. Remove co-authors that are the commit's own author
3. Group commits into sections following the configured type order
4. Optionally resolve author identities through an external resolver
5. Build the contributor roster from the listed commits

Resolution is the only asynchronous step. Every distinct email is looked
up concurrently; a lookup that fails or finds nothing leaves the git
identity untouched.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Protocol

from gitpaper.core.contributors import is_included, merge_identities
from gitpaper.vcs.git import Identity, ResolvedIdentity

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping, Sequence

    from gitpaper.config.models import ExclusionConfig
    from gitpaper.core.commits import ParsedCommit

logger = logging.getLogger(__name__)


class IdentityResolver(Protocol):
    """Looks up the hosting-service account behind an email address."""

    async def resolve(self, email: str) -> ResolvedIdentity | None: ...


@dataclass(frozen=True)
class Section:
    """Commits of one type, in history order."""

    type: str
    title: str
    commits: tuple[ParsedCommit, ...]


@dataclass(frozen=True)
class ChangelogResult:
    """Everything the renderer needs.

    ``contributors`` is None when the roster is disabled.
    """

    sections: tuple[Section, ...] = ()
    contributors: tuple[Identity, ...] | None = None

    @property
    def is_empty(self) -> bool:
        return not self.sections


def _without_self_co_author(commit: ParsedCommit) -> ParsedCommit:
    seen = {commit.author.key}
    co_authors = []
    for co_author in commit.co_authors:
        if co_author.key in seen:
            continue
        seen.add(co_author.key)
        co_authors.append(co_author)

    if len(co_authors) == len(commit.co_authors):
        return commit
    return replace(commit, co_authors=tuple(co_authors))


def build_sections(
    commits: Sequence[ParsedCommit],
    types: Mapping[str, str | bool],
) -> list[Section]:
    """Group commits by type in configured order.

    Disabled types (mapped to a falsy value) and types without commits
    produce no section. A type mapped to True is titled by its own name.
    """
    sections = []
    for commit_type, title in types.items():
        if not title:
            continue
        members = tuple(pc for pc in commits if pc.commit_type == commit_type)
        if not members:
            continue
        sections.append(
            Section(
                type=commit_type,
                title=commit_type if title is True else str(title),
                commits=members,
            )
        )
    return sections


# =============================================================================
# Identity resolution
# =============================================================================


def _email_key(identity: Identity) -> str:
    return identity.email.strip().casefold()


async def resolve_identities(
    identities: Iterable[Identity],
    resolver: IdentityResolver,
    max_concurrency: int | None = None,
) -> dict[str, ResolvedIdentity]:
    """Resolve every distinct email concurrently.

    Args:
        identities: Identities to look up; those without an email are skipped
        resolver: Lookup collaborator
        max_concurrency: Upper bound on simultaneous lookups (unbounded if None)

    Returns:
        Successful lookups keyed by case-folded email
    """
    emails: dict[str, str] = {}
    for identity in identities:
        key = _email_key(identity)
        if key:
            emails.setdefault(key, identity.email.strip())

    semaphore = asyncio.Semaphore(max_concurrency) if max_concurrency else None

    async def _resolve_one(email: str) -> ResolvedIdentity | None:
        try:
            if semaphore is None:
                return await resolver.resolve(email)
            async with semaphore:
                return await resolver.resolve(email)
        except Exception as e:
            logger.warning("Could not resolve contributor %s: %s", email, e)
            return None

    results = await asyncio.gather(*(_resolve_one(email) for email in emails.values()))

    resolved = {
        key: result for key, result in zip(emails, results, strict=True) if result and result.username
    }
    logger.debug("Resolved %d of %d contributor emails", len(resolved), len(emails))
    return resolved


def apply_resolution(identity: Identity, resolved: Mapping[str, ResolvedIdentity]) -> Identity:
    """Return the resolved form of an identity, or the identity itself."""
    match = resolved.get(_email_key(identity))
    if match is None:
        return identity
    return ResolvedIdentity(
        name=match.name or identity.name,
        email=identity.email,
        username=match.username,
    )


def _resolve_commit(commit: ParsedCommit, resolved: Mapping[str, ResolvedIdentity]) -> ParsedCommit:
    return replace(
        commit,
        author=apply_resolution(commit.author, resolved),
        co_authors=tuple(apply_resolution(ca, resolved) for ca in commit.co_authors),
    )


# =============================================================================
# Aggregation
# =============================================================================


async def aggregate_changelog(
    parsed: Iterable[ParsedCommit],
    types: Mapping[str, str | bool],
    policy: ExclusionConfig,
    resolver: IdentityResolver | None = None,
    *,
    contributors: bool = True,
    max_concurrency: int | None = None,
) -> ChangelogResult:
    """Aggregate parsed commits into changelog sections.

    Args:
        parsed: Parsed commits, newest first
        types: Ordered mapping of commit type to section title (or False to disable)
        policy: Contributor exclusion policy
        resolver: Optional identity resolver
        contributors: Whether to build the contributor roster
        max_concurrency: Bound on simultaneous resolver calls

    Returns:
        The aggregated changelog

    Raises:
        ExclusionPolicyError: If a custom exclusion predicate raises
    """
    included = [_without_self_co_author(pc) for pc in parsed if is_included(pc.author, policy)]
    sections = build_sections(included, types)
    listed = [pc for section in sections for pc in section.commits]
    logger.debug("%d commits in %d sections", len(listed), len(sections))

    resolved: dict[str, ResolvedIdentity] = {}
    if resolver is not None and listed:
        resolved = await resolve_identities(
            (identity for pc in listed for identity in pc.authors),
            resolver,
            max_concurrency,
        )
        sections = [
            replace(section, commits=tuple(_resolve_commit(pc, resolved) for pc in section.commits))
            for section in sections
        ]

    roster = None
    if contributors:
        # Policy is evaluated on the git identity, not the resolved one
        candidates = (
            apply_resolution(identity, resolved)
            for pc in listed
            for identity in pc.authors
            if is_included(identity, policy)
        )
        roster = tuple(merge_identities(candidates))

    return ChangelogResult(sections=tuple(sections), contributors=roster)


def build_changelog(
    parsed: Iterable[ParsedCommit],
    types: Mapping[str, str | bool],
    policy: ExclusionConfig,
    resolver: IdentityResolver | None = None,
    *,
    contributors: bool = True,
    max_concurrency: int | None = None,
) -> ChangelogResult:
    """Synchronous wrapper around :func:`aggregate_changelog`."""
    return asyncio.run(
        aggregate_changelog(
            parsed,
            types,
            policy,
            resolver,
            contributors=contributors,
            max_concurrency=max_concurrency,
        )
    )
