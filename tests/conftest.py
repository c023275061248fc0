"""Shared fixtures for semrel tests."""

from __future__ import annotations

import logging
import shutil
import subprocess
from collections.abc import Callable
from datetime import UTC, datetime
from pathlib import Path

import pytest

from semrel.vcs.git import Commit

PYPROJECT = """\
[project]
name = "test-project"
version = "1.0.0"

[tool.semrel]
default_branch = "main"

[[tool.semrel.branches]]
name = "main"
is_release = true

[[tool.semrel.branches]]
name = "develop"
is_release = false
prerelease_tag = "beta"
"""


def make_commit(message: str, sha: str = "abc1234def") -> Commit:
    return Commit(
        sha=sha,
        message=message,
        author_name="Test",
        author_email="test@test.com",
        date=datetime(2026, 1, 1, tzinfo=UTC),
    )


@pytest.fixture
def feat_commit() -> Commit:
    return make_commit("feat(auth): add user authentication", sha="feat1234567")


@pytest.fixture
def fix_commit() -> Commit:
    return make_commit("fix(core): correct cache key", sha="fix4567890a")


@pytest.fixture
def breaking_commit() -> Commit:
    return make_commit(
        "feat(api)!: remove legacy handler\n\nBREAKING CHANGE: the v1 handler is gone",
        sha="brk7890abcd",
    )


@pytest.fixture
def sample_commits(
    feat_commit: Commit, fix_commit: Commit, breaking_commit: Commit
) -> list[Commit]:
    """A realistic batch, oldest first, with one malformed entry."""
    return [
        make_commit("chore(deps): bump pydantic", sha="c01"),
        feat_commit,
        make_commit("docs: describe branch policies", sha="c02"),
        fix_commit,
        make_commit("Updated the readme file", sha="c03"),
        breaking_commit,
    ]


def _git(path: Path, *args: str) -> str:
    result = subprocess.run(
        ["git", *args],
        cwd=path,
        capture_output=True,
        text=True,
        check=True,
    )
    return result.stdout.strip()


@pytest.fixture
def git_commit() -> Callable[[Path, str], str]:
    """Return a helper that creates an empty commit and returns its SHA."""

    def _commit(path: Path, message: str) -> str:
        _git(path, "commit", "--allow-empty", "-q", "-m", message)
        return _git(path, "rev-parse", "HEAD")

    return _commit


@pytest.fixture
def temp_git_repo(tmp_path: Path) -> Path:
    """An initialised git repository on branch ``main`` with no commits."""
    if shutil.which("git") is None:
        pytest.skip("git not installed")
    _git(tmp_path, "init", "-q")
    _git(tmp_path, "symbolic-ref", "HEAD", "refs/heads/main")
    _git(tmp_path, "config", "user.name", "Test")
    _git(tmp_path, "config", "user.email", "test@test.com")
    _git(tmp_path, "config", "commit.gpgsign", "false")
    _git(tmp_path, "config", "tag.gpgsign", "false")
    return tmp_path


@pytest.fixture
def temp_git_repo_with_pyproject(temp_git_repo: Path) -> Path:
    (temp_git_repo / "pyproject.toml").write_text(PYPROJECT)
    return temp_git_repo


@pytest.fixture
def git() -> Callable[..., str]:
    return _git


@pytest.fixture(autouse=True)
def _reset_semrel_logger():
    """The CLI detaches the ``semrel`` logger from root; undo that between tests."""
    yield
    logger = logging.getLogger("semrel")
    logger.handlers.clear()
    logger.setLevel(logging.NOTSET)
    logger.propagate = True
