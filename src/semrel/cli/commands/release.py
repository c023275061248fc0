"""Implementation of the 'check' and 'release' commands.

``check`` computes the next release without touching anything.
``release`` additionally creates the local tag (with ``--execute``) and
prepends the rendered notes to the changelog file.
"""

from __future__ import annotations

import asyncio
from datetime import UTC, datetime
from pathlib import Path
from typing import TYPE_CHECKING

from rich.markdown import Markdown
from rich.panel import Panel
from rich.table import Table

from semrel.config import load_config
from semrel.core.changelog import render_markdown, update_changelog_file
from semrel.core.release import ReleaseContext, ReleaseOrchestrator, ReleaseState
from semrel.exceptions import (
    ChangelogError,
    SemrelError,
    TagConflictError,
    TagRepositoryError,
)
from semrel.vcs import GitRepository, GitTagRepository

if TYPE_CHECKING:
    from rich.console import Console

    from semrel.config.models import SemrelConfig
    from semrel.core.commits import RejectedCommit
    from semrel.core.release import OrchestrationResult


def run_release(
    path: str | None,
    branch: str | None,
    execute: bool,
    write_changelog: bool,
    console: Console,
    err_console: Console,
) -> None:
    """Run the release command.

    Args:
        path: Optional path to project directory
        branch: Branch to release (defaults to the checked-out branch)
        execute: Create the tag; otherwise only show what would happen
        write_changelog: Prepend release notes to the changelog file
        console: Console for standard output
        err_console: Console for error output
    """
    project_path = Path(path) if path else Path.cwd()

    try:
        config = load_config(project_path)
        repo = GitRepository(project_path)
        branch_name = branch or repo.get_current_branch()
        result = asyncio.run(_orchestrate(repo, config, branch_name, dry_run=not execute))
    except TagConflictError as e:
        err_console.print(f"[red]Tag conflict:[/] {e}")
        raise SystemExit(2) from e
    except TagRepositoryError as e:
        err_console.print(f"[red]Tag repository error:[/] {e}")
        if e.outcome_unknown:
            err_console.print("[yellow]The tag may exist. Re-run with the same inputs to retry.[/]")
        else:
            err_console.print("[dim]No tag was created.[/]")
        raise SystemExit(1) from e
    except SemrelError as e:
        err_console.print(f"[red]Error:[/] {e}")
        raise SystemExit(1) from e

    _print_rejected(result.rejected, console)
    _print_decision(result, branch_name, console)

    if result.state == ReleaseState.NO_RELEASE:
        return

    release_date = datetime.now(UTC).date()
    notes = render_markdown(
        result.decision.changelog,
        release_date=release_date,
        include_sha=config.changelog.include_sha,
    )
    console.print(Panel(Markdown(notes), title="[cyan]Release notes[/]", border_style="cyan"))

    if not execute:
        console.print("\n[dim]Run with [cyan]--execute[/] to create the tag.[/]")
        return

    if result.tag_created:
        console.print(f"  [green]✓[/] Created tag [green]{result.tag_name}[/]")
    else:
        console.print(
            f"  [yellow]•[/] Tag [cyan]{result.tag_name}[/] already exists at this revision"
        )

    if not (write_changelog and config.changelog.enabled):
        return

    try:
        written = update_changelog_file(
            repo.path / config.changelog.path, notes, result.decision.next_version
        )
    except ChangelogError as e:
        err_console.print(f"[red]Error updating changelog:[/] {e}")
        err_console.print(
            f"[yellow]Tag {result.tag_name} is in place. Re-run with [cyan]--execute[/] "
            "to write the release notes.[/]"
        )
        raise SystemExit(1) from e

    if written:
        console.print(f"  [green]✓[/] Updated {config.changelog.path}")
    else:
        console.print(f"  [yellow]•[/] {config.changelog.path} already has these notes")


def run_check(
    path: str | None,
    branch: str | None,
    console: Console,
    err_console: Console,
) -> None:
    """Run the check command (a release dry run)."""
    run_release(path, branch, False, False, console, err_console)


async def _orchestrate(
    repo: GitRepository,
    config: SemrelConfig,
    branch_name: str,
    *,
    dry_run: bool,
) -> OrchestrationResult:
    orchestrator = ReleaseOrchestrator(GitTagRepository(repo), config)
    policy = config.policy_for(branch_name)

    head = repo.get_head_sha() if repo.has_commits() else None
    previous = await orchestrator.resolve_previous_version(policy, head)
    previous_tag = policy.tag_name(previous) if previous is not None else None
    commits = repo.get_commits_since_tag(previous_tag)

    context = ReleaseContext(
        branch_name=branch_name,
        commits=commits,
        previous_version=previous,
        target_revision=head,
    )
    return await orchestrator.run(context, dry_run=dry_run)


def _print_rejected(rejected: tuple[RejectedCommit, ...], console: Console) -> None:
    if not rejected:
        return

    table = Table(title=f"[yellow]{len(rejected)} rejected commit(s)[/]", title_justify="left")
    table.add_column("Commit", style="dim")
    table.add_column("Reason", style="red")
    table.add_column("Header")
    for rejection in rejected:
        table.add_row(rejection.sha[:7], str(rejection.reason), rejection.header)
    console.print(table)


def _print_decision(result: OrchestrationResult, branch_name: str, console: Console) -> None:
    decision = result.decision
    previous = decision.previous_version or "none"

    if result.state == ReleaseState.NO_RELEASE:
        console.print(
            f"[yellow]No releasable changes on [cyan]{branch_name}[/] since {previous}.[/]"
        )
        return

    dry_run = result.state == ReleaseState.PENDING_TAG
    mode_str = "[yellow]DRY-RUN[/]" if dry_run else "[green]RELEASE[/]"
    console.print(
        f"\n{mode_str} - [cyan]{previous}[/] → [green]{decision.next_version}[/] "
        f"({decision.bump_kind} bump on [cyan]{branch_name}[/], tag [cyan]{result.tag_name}[/])\n"
    )
