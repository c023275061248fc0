"""Command-line interface for semrel."""

from __future__ import annotations

import logging

import click
from rich.console import Console
from rich.logging import RichHandler

from semrel import __version__
from semrel.cli.commands.lint import run_lint
from semrel.cli.commands.release import run_check, run_release


def _configure_logging(verbose: bool) -> None:
    root = logging.getLogger("semrel")
    root.handlers.clear()
    handler = RichHandler(console=Console(stderr=True), show_path=False, show_time=verbose)
    handler.setFormatter(logging.Formatter("%(message)s"))
    root.addHandler(handler)
    root.setLevel(logging.DEBUG if verbose else logging.WARNING)
    root.propagate = False


@click.group()
@click.option("--verbose", is_flag=True, help="Enable verbose (debug) output.")
@click.version_option(version=__version__, prog_name="semrel")
def cli(verbose: bool) -> None:
    """Conventional-commit release engine."""
    _configure_logging(verbose)


@cli.command()
@click.option("--path", type=click.Path(exists=True, file_okay=False), help="Project directory.")
@click.option("--branch", help="Branch to evaluate (defaults to the current branch).")
def check(path: str | None, branch: str | None) -> None:
    """Show the next version and release notes without tagging."""
    run_check(path, branch, Console(), Console(stderr=True))


@cli.command()
@click.option("--path", type=click.Path(exists=True, file_okay=False), help="Project directory.")
@click.option("--branch", help="Branch to release (defaults to the current branch).")
@click.option("--execute", is_flag=True, help="Create the tag instead of a dry run.")
@click.option(
    "--changelog/--no-changelog",
    "write_changelog",
    default=True,
    help="Prepend release notes to the changelog file.",
)
def release(path: str | None, branch: str | None, execute: bool, write_changelog: bool) -> None:
    """Compute the next release and create its tag."""
    run_release(path, branch, execute, write_changelog, Console(), Console(stderr=True))


@cli.command()
@click.argument("messages", nargs=-1)
@click.option(
    "--file",
    type=click.Path(exists=True, dir_okay=False),
    help="Read one commit message from a file (for commit-msg hooks).",
)
def lint(messages: tuple[str, ...], file: str | None) -> None:
    """Validate commit messages against the conventional commit rules."""
    run_lint(messages, file, Console(), Console(stderr=True))


def main() -> None:
    cli()
