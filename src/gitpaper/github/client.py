"""GitHub API access.

Two collaborators live here:

- :class:`GitHubIdentityResolver` maps a commit email to a GitHub
  account by searching for commits authored with that email. Hits are
  remembered in an on-disk :class:`IdentityCache`.
- :func:`publish_release` creates a GitHub release from rendered notes.
"""

from __future__ import annotations

import json
import logging
import os
import time
from datetime import timedelta
from pathlib import Path
from typing import Any

import httpx

from gitpaper import __version__
from gitpaper.config.models import RepoInfo
from gitpaper.exceptions import ReleaseError, ResolverError
from gitpaper.vcs.git import ResolvedIdentity

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.github.com"
DEFAULT_CACHE_TTL = timedelta(days=1)
USER_AGENT = f"gitpaper/{__version__}"


def _headers(token: str | None) -> dict[str, str]:
    headers = {
        "Accept": "application/vnd.github+json",
        "User-Agent": USER_AGENT,
        "X-GitHub-Api-Version": "2022-11-28",
    }
    if token:
        headers["Authorization"] = f"Bearer {token}"
    return headers


# =============================================================================
# Identity cache
# =============================================================================


class IdentityCache:
    """JSON file cache of resolved identities keyed by normalized email.

    Only successful lookups are stored. Entries older than ``ttl`` are
    ignored on read.
    """

    def __init__(self, path: Path, ttl: timedelta = DEFAULT_CACHE_TTL) -> None:
        self.path = path
        self.ttl = ttl
        self._entries: dict[str, dict[str, Any]] | None = None
        self._dirty = False

    def _load(self) -> dict[str, dict[str, Any]]:
        if self._entries is None:
            try:
                data = json.loads(self.path.read_text(encoding="utf-8"))
            except FileNotFoundError:
                data = {}
            except (OSError, ValueError) as e:
                logger.warning("Ignoring unreadable identity cache %s: %s", self.path, e)
                data = {}
            self._entries = data if isinstance(data, dict) else {}
        return self._entries

    def get(self, email: str, now: float | None = None) -> ResolvedIdentity | None:
        entry = self._load().get(email.strip().casefold())
        if not entry or not entry.get("username"):
            return None
        age = (now or time.time()) - entry.get("stored_at", 0)
        if age > self.ttl.total_seconds():
            return None
        return ResolvedIdentity(name=entry.get("name", ""), email=email, username=entry["username"])

    def set(self, identity: ResolvedIdentity, now: float | None = None) -> None:
        self._load()[identity.email.strip().casefold()] = {
            "name": identity.name,
            "username": identity.username,
            "stored_at": now or time.time(),
        }
        self._dirty = True

    def save(self) -> None:
        if not self._dirty or self._entries is None:
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp_path.write_text(json.dumps(self._entries, indent=2, sort_keys=True), encoding="utf-8")
        os.replace(tmp_path, self.path)
        self._dirty = False


# =============================================================================
# Identity resolver
# =============================================================================


class GitHubIdentityResolver:
    """Resolve commit emails to GitHub accounts.

    Use as an async context manager so the HTTP client is closed and the
    cache is written back::

        async with GitHubIdentityResolver(token) as resolver:
            identity = await resolver.resolve("octocat@github.com")
    """

    def __init__(
        self,
        token: str | None = None,
        *,
        api_url: str = DEFAULT_API_URL,
        cache: IdentityCache | None = None,
        client: httpx.AsyncClient | None = None,
        timeout: float = 10.0,
    ) -> None:
        self.cache = cache
        self._headers = _headers(token)
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(base_url=api_url, timeout=timeout)

    async def __aenter__(self) -> GitHubIdentityResolver:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
        if self.cache is not None:
            self.cache.save()

    async def resolve(self, email: str) -> ResolvedIdentity | None:
        """Look up the GitHub account that authored commits as ``email``.

        Raises:
            ResolverError: If the API request fails
        """
        if self.cache is not None:
            cached = self.cache.get(email)
            if cached is not None:
                return cached

        try:
            response = await self._client.get(
                "/search/commits",
                params={"q": f"author-email:{email}", "sort": "author-date", "per_page": 1},
                headers=self._headers,
            )
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPError as e:
            raise ResolverError(f"GitHub lookup for {email} failed: {e}") from e
        except ValueError as e:
            raise ResolverError(f"GitHub returned invalid JSON for {email}") from e

        items = data.get("items") or []
        author = items[0].get("author") if items else None
        if not author or not author.get("login"):
            logger.debug("No GitHub account found for %s", email)
            return None

        identity = ResolvedIdentity(
            name=author.get("name") or "",
            email=email,
            username=author["login"],
        )
        if self.cache is not None:
            self.cache.set(identity)
        return identity


# =============================================================================
# Releases
# =============================================================================


def publish_release(
    repo: RepoInfo,
    *,
    tag: str,
    body: str,
    token: str,
    name: str | None = None,
    draft: bool = False,
    prerelease: bool = False,
    api_url: str = DEFAULT_API_URL,
    client: httpx.Client | None = None,
) -> str:
    """Create a GitHub release.

    Args:
        repo: Target repository
        tag: Tag the release points at
        body: Release notes (Markdown)
        token: GitHub token with ``contents:write`` permission
        name: Release title (defaults to the tag)
        draft: Create as draft
        prerelease: Mark as pre-release
        api_url: GitHub API base URL
        client: HTTP client to use instead of a one-off request

    Returns:
        URL of the created release

    Raises:
        ReleaseError: If GitHub rejects the release or cannot be reached
    """
    url = f"{api_url.rstrip('/')}/repos/{repo.owner}/{repo.repo}/releases"
    payload = {
        "tag_name": tag,
        "name": name or tag,
        "body": body,
        "draft": draft,
        "prerelease": prerelease,
    }
    logger.debug("Creating release %s in %s", tag, repo)

    try:
        if client is None:
            response = httpx.post(url, json=payload, headers=_headers(token), timeout=30.0)
        else:
            response = client.post(url, json=payload, headers=_headers(token))
        response.raise_for_status()
    except httpx.HTTPStatusError as e:
        raise ReleaseError(
            f"GitHub rejected the release (HTTP {e.response.status_code}): {e.response.text}"
        ) from e
    except httpx.HTTPError as e:
        raise ReleaseError(f"Could not reach GitHub: {e}") from e

    return response.json().get("html_url", "")
