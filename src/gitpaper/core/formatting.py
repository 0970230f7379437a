"""Pure formatting helpers for changelog templates.

These are handed to the template environment explicitly by the
renderer instead of being registered globally.
"""

from __future__ import annotations

import re

from gitpaper.vcs.git import Identity, ResolvedIdentity

_LINE_BREAK_RE = re.compile(r"\r?\n")


def short_sha(sha: str, length: int = 5) -> str:
    return sha[:length]


def split_lines(text: str) -> list[str]:
    return _LINE_BREAK_RE.split(text)


def upper_first(text: str) -> str:
    return text[:1].upper() + text[1:]


def mention(identity: Identity) -> str:
    """Render ``@username`` for resolved identities, the git name otherwise."""
    if isinstance(identity, ResolvedIdentity) and identity.username:
        return f"@{identity.username}"
    return identity.name
