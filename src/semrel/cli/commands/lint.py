"""Implementation of the 'lint' command.

Validates commit messages against the conventional commit rules. Messages
come from the command line, from a file (as passed to a ``commit-msg``
hook), or from stdin.
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import TYPE_CHECKING

from semrel.config import SemrelConfig, load_config
from semrel.core.commits import RejectedCommit, validate_commit_message
from semrel.exceptions import ConfigNotFoundError, SemrelError

if TYPE_CHECKING:
    from rich.console import Console


def _strip_comments(text: str) -> str:
    # git drops '#' lines from commit messages before storing them
    return "\n".join(line for line in text.splitlines() if not line.startswith("#")).strip()


def run_lint(
    messages: tuple[str, ...],
    file: str | None,
    console: Console,
    err_console: Console,
) -> None:
    """Run the lint command.

    Args:
        messages: Commit messages given as arguments
        file: Path to a file holding one commit message
        console: Console for standard output
        err_console: Console for error output
    """
    try:
        config = load_config()
    except ConfigNotFoundError:
        config = SemrelConfig()
    except SemrelError as e:
        err_console.print(f"[red]Error loading config:[/] {e}")
        raise SystemExit(1) from e

    if file:
        to_check = [_strip_comments(Path(file).read_text())]
    elif messages:
        to_check = list(messages)
    else:
        to_check = [_strip_comments(sys.stdin.read())]

    failures = 0
    for message in to_check:
        result = validate_commit_message(message, config.commits)
        header = message.split("\n", 1)[0]
        if isinstance(result, RejectedCommit):
            failures += 1
            err_console.print(f"[red]✗[/] {header}")
            err_console.print(f"  [red]{result.reason}[/]: {result.detail}")
        else:
            console.print(f"[green]✓[/] {header}")

    if failures:
        raise SystemExit(1)
