"""Command line entry point."""

from __future__ import annotations

import logging

import click
from rich.console import Console
from rich.logging import RichHandler

from gitpaper import __version__
from gitpaper.cli.commands.generate import run_generate


def configure_logging(console: Console, verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False, rich_tracebacks=True)],
        force=True,
    )


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(__version__, "-v", "--version", prog_name="gitpaper")
@click.option("--from", "from_ref", metavar="REF", help="Start of the range (defaults to the previous tag).")
@click.option("--to", "to_ref", metavar="REF", help="End of the range (defaults to the current branch).")
@click.option("--contributors/--no-contributors", default=None, help="Show the contributors section.")
@click.option("--emoji/--no-emoji", default=None, help="Use emoji in section titles.")
@click.option("--resolve/--no-resolve", default=None, help="Resolve GitHub usernames of contributors.")
@click.option("-o", "--output", type=click.Path(dir_okay=False), help="Write the changelog to a file.")
@click.option("--release", is_flag=True, help="Publish the changelog as a GitHub release.")
@click.option("--release-name", metavar="NAME", help="Release name.")
@click.option("--draft", is_flag=True, help="Mark the release as draft.")
@click.option("--prerelease", is_flag=True, help="Mark the release as pre-release.")
@click.option(
    "--path",
    type=click.Path(exists=True, file_okay=False),
    help="Project directory (defaults to the current directory).",
)
@click.option("--verbose", is_flag=True, help="Enable debug logging.")
def main(
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
    path: str | None,
    verbose: bool,
) -> None:
    """Generate a changelog from git commits."""
    console = Console()
    err_console = Console(stderr=True)
    configure_logging(err_console, verbose)

    run_generate(
        path=path,
        from_ref=from_ref,
        to_ref=to_ref,
        contributors=contributors,
        emoji=emoji,
        resolve=resolve,
        output=output,
        release=release,
        release_name=release_name,
        draft=draft,
        prerelease=prerelease,
        console=console,
        err_console=err_console,
    )
