"""Tests for reading commit history from git."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest

from semrel.exceptions import GitError
from semrel.vcs.git import Commit, GitRepository


class TestGitRepository:
    def test_not_a_repository(self, tmp_path: Path):
        with pytest.raises(GitError, match="Not a git repository"):
            GitRepository(tmp_path)

    def test_empty_history(self, temp_git_repo: Path):
        repo = GitRepository(temp_git_repo)

        assert not repo.has_commits()
        assert repo.get_commits_since_tag(None) == []

    def test_current_branch(self, temp_git_repo: Path, git_commit: Callable[[Path, str], str]):
        git_commit(temp_git_repo, "chore: init")

        assert GitRepository(temp_git_repo).get_current_branch() == "main"

    def test_commits_oldest_first(
        self, temp_git_repo: Path, git_commit: Callable[[Path, str], str]
    ):
        first = git_commit(temp_git_repo, "feat: first")
        second = git_commit(temp_git_repo, "fix: second")
        repo = GitRepository(temp_git_repo)

        commits = repo.get_commits_since_tag(None)

        assert [c.sha for c in commits] == [first, second]
        assert [c.header for c in commits] == ["feat: first", "fix: second"]
        assert repo.get_head_sha() == second
        assert commits[0].author_email == "test@test.com"
        assert commits[0].date is not None

    def test_commits_since_tag(
        self,
        temp_git_repo: Path,
        git_commit: Callable[[Path, str], str],
        git: Callable[..., str],
    ):
        git_commit(temp_git_repo, "feat: first")
        git(temp_git_repo, "tag", "v1.0.0")
        later = git_commit(temp_git_repo, "fix: later")

        commits = GitRepository(temp_git_repo).get_commits_since_tag("v1.0.0")

        assert [c.sha for c in commits] == [later]

    def test_multiline_message_preserved(
        self, temp_git_repo: Path, git_commit: Callable[[Path, str], str]
    ):
        message = "feat(api)!: drop v1\n\nThe old routes are gone.\n\nBREAKING CHANGE: use /v2"
        git_commit(temp_git_repo, message)

        (commit,) = GitRepository(temp_git_repo).get_commits_since_tag(None)

        assert commit.message == message
        assert commit.header == "feat(api)!: drop v1"


class TestCommit:
    def test_short_sha_and_header(self):
        commit = Commit("0123456789abcdef", "fix: a\n\nbody")

        assert commit.short_sha == "0123456"
        assert commit.header == "fix: a"
