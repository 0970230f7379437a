"""Implementation of the changelog generation command.

Reads history for a reference range, aggregates it into a changelog,
then prints it, writes it to a file, or publishes it as a GitHub release.
"""

from __future__ import annotations

import asyncio
import os
from datetime import timedelta
from pathlib import Path
from typing import TYPE_CHECKING

from gitpaper.config import load_config
from gitpaper.core.changelog import aggregate_changelog
from gitpaper.core.commits import filter_skip_commits, parse_commits
from gitpaper.exceptions import GitpaperError
from gitpaper.github.client import GitHubIdentityResolver, IdentityCache, publish_release
from gitpaper.render import render_changelog
from gitpaper.vcs import GitRepository

if TYPE_CHECKING:
    from rich.console import Console

    from gitpaper.config.models import GitpaperConfig
    from gitpaper.core.changelog import ChangelogResult
    from gitpaper.core.commits import ParsedCommit


def run_generate(
    path: str | None,
    from_ref: str | None,
    to_ref: str | None,
    contributors: bool | None,
    emoji: bool | None,
    resolve: bool | None,
    output: str | None,
    release: bool,
    release_name: str | None,
    draft: bool,
    prerelease: bool,
    console: Console,
    err_console: Console,
) -> None:
    """Run the generate command.

    Args:
        path: Optional path to project directory
        from_ref: Start of the range (exclusive); defaults to the previous tag
        to_ref: End of the range (inclusive); defaults to the current branch
        contributors: Override the contributors setting
        emoji: Override the emoji setting
        resolve: Override GitHub username resolution
        output: Write the changelog to this file instead of stdout
        release: Publish the changelog as a GitHub release
        release_name: Title of the release
        draft: Create the release as draft
        prerelease: Mark the release as pre-release
        console: Console for standard output
        err_console: Console for error output
    """
    project_path = Path(path) if path else Path.cwd()

    # Load configuration
    try:
        config = load_config(project_path, overrides={"contributors": contributors, "emoji": emoji})
    except GitpaperError as e:
        err_console.print(f"[red]Error loading config:[/] {e}")
        raise SystemExit(1) from e

    token = os.environ.get(config.github.token_env)
    if release and not token:
        err_console.print(f"[red]Error:[/] {config.github.token_env} environment variable is not set")
        raise SystemExit(1)

    # Read history
    try:
        repo = GitRepository(project_path)
        to_ref = to_ref or repo.get_current_branch()
        from_ref = from_ref or _previous_tag(repo, to_ref) or repo.get_first_commit(to_ref)
        commits = repo.get_commits(from_ref, to_ref)
        repo_info = config.repo or repo.get_repo_info()
    except GitpaperError as e:
        err_console.print(f"[red]Error:[/] {e}")
        raise SystemExit(1) from e

    commits = filter_skip_commits(commits, config.commits.skip_patterns)
    parsed = parse_commits(commits, config.commits)
    should_resolve = config.github.resolve_usernames if resolve is None else resolve

    try:
        result = asyncio.run(_aggregate(parsed, config, token, resolve=should_resolve))
    except GitpaperError as e:
        err_console.print(f"[red]Error:[/] {e}")
        raise SystemExit(1) from e

    if result.is_empty:
        err_console.print(f"[yellow]No changelog entries between {from_ref} and {to_ref}.[/]")

    changelog = render_changelog(result, repo=repo_info, emoji=config.emoji)

    if output:
        Path(output).write_text(changelog, encoding="utf-8")
        err_console.print(f"[green]✓[/] Wrote changelog to [cyan]{output}[/]")
    elif not release:
        console.print(changelog, markup=False, highlight=False, emoji=False, soft_wrap=True, end="")

    if release:
        if repo_info is None:
            err_console.print(
                "[red]Error:[/] Could not determine the GitHub repository.\n"
                "Set [cyan]repo = \"owner/name\"[/] in the gitpaper configuration."
            )
            raise SystemExit(1)
        try:
            url = publish_release(
                repo_info,
                tag=to_ref,
                body=changelog,
                token=token,
                name=release_name,
                draft=draft,
                prerelease=prerelease,
                api_url=config.github.api_url,
            )
        except GitpaperError as e:
            err_console.print(f"[red]Error publishing release:[/] {e}")
            raise SystemExit(1) from e
        console.print(f"[green]✓[/] Published release [cyan]{to_ref}[/] {url}")


def _previous_tag(repo: GitRepository, to_ref: str) -> str | None:
    """Latest tag before ``to_ref``, skipping ``to_ref`` itself when it is a tag."""
    tag = repo.get_latest_tag(to_ref)
    if tag is not None and tag == to_ref:
        tag = repo.get_latest_tag(f"{to_ref}^")
    return tag


async def _aggregate(
    parsed: list[ParsedCommit],
    config: GitpaperConfig,
    token: str | None,
    *,
    resolve: bool,
) -> ChangelogResult:
    if not resolve:
        return await aggregate_changelog(
            parsed,
            config.types,
            config.exclusion,
            contributors=config.contributors,
        )

    cache = None
    if config.github.cache_ttl_hours > 0:
        cache = IdentityCache(
            config.github.effective_cache_path,
            ttl=timedelta(hours=config.github.cache_ttl_hours),
        )

    async with GitHubIdentityResolver(token, api_url=config.github.api_url, cache=cache) as resolver:
        return await aggregate_changelog(
            parsed,
            config.types,
            config.exclusion,
            resolver,
            contributors=config.contributors,
            max_concurrency=config.github.max_concurrency,
        )
