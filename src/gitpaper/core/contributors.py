"""Contributor exclusion and identity deduplication.

Exclusion rules are evaluated in a fixed order and the first match wins:

1. Bots: names ending in ``[bot]`` when ``exclude_bots`` is set
2. A custom predicate, when ``exclude_contributors`` is callable
3. A custom list of names/emails, when ``exclude_contributors`` is a list

Two identities are the same contributor when their deduplication keys
(normalized email, or normalized name without an email) are equal.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from gitpaper.exceptions import ExclusionPolicyError
from gitpaper.vcs.git import Identity, ResolvedIdentity

if TYPE_CHECKING:
    from collections.abc import Iterable

    from gitpaper.config.models import ExclusionConfig

logger = logging.getLogger(__name__)

BOT_SUFFIX = "[bot]"


def identity_key(identity: Identity) -> str:
    return identity.key


def is_bot(identity: Identity) -> bool:
    return identity.name.strip().casefold().endswith(BOT_SUFFIX)


def is_included(identity: Identity, config: ExclusionConfig) -> bool:
    """Decide whether a contributor appears in the changelog.

    Raises:
        ExclusionPolicyError: If the configured predicate raises
    """
    if config.exclude_bots and is_bot(identity):
        return False

    excluded = config.exclude_contributors
    if callable(excluded):
        try:
            return not excluded(identity)
        except Exception as e:
            raise ExclusionPolicyError(
                f"exclude_contributors predicate failed for {identity.name} <{identity.email}>: {e}"
            ) from e

    if identity.name in excluded or identity.email in excluded:
        return False
    return True


def merge_identity(existing: Identity, incoming: Identity) -> Identity:
    """Merge two identities that share a key.

    The first-seen email is kept; a resolved display name and username
    win over a raw git name.
    """
    if isinstance(existing, ResolvedIdentity) or not isinstance(incoming, ResolvedIdentity):
        return existing
    return ResolvedIdentity(
        name=incoming.name or existing.name,
        email=existing.email,
        username=incoming.username,
    )


def merge_identities(identities: Iterable[Identity]) -> list[Identity]:
    """Deduplicate identities, keeping first-seen order."""
    merged: dict[str, Identity] = {}
    for identity in identities:
        key = identity.key
        if not key:
            logger.debug("Ignoring identity without name or email")
            continue
        if key in merged:
            merged[key] = merge_identity(merged[key], identity)
        else:
            merged[key] = identity
    return list(merged.values())
