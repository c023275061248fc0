"""Git access: commit history and local tags.

:class:`GitRepository` reads commit history synchronously through the
``git`` executable. :class:`GitTagRepository` implements the
:class:`~semrel.vcs.tags.TagRepository` protocol on top of local refs; git
refuses to create a ref that already exists, which gives the atomic
create-if-absent behaviour the orchestrator relies on.

Nothing here pushes to a remote.
"""

from __future__ import annotations

import asyncio
import logging
import subprocess
from dataclasses import dataclass
from datetime import datetime
from fnmatch import fnmatchcase
from pathlib import Path

from semrel.exceptions import GitError, TagRepositoryError
from semrel.vcs.tags import Tag, TagCreation

logger = logging.getLogger(__name__)

# ASCII unit and record separators keep arbitrary commit bodies parseable.
_FIELD_SEP = "\x1f"
_RECORD_SEP = "\x1e"
_LOG_FORMAT = "%x1f".join(["%H", "%an", "%ae", "%aI", "%B"]) + "%x1e"


@dataclass(frozen=True)
class Commit:
    """A raw commit as read from history."""

    sha: str
    message: str
    author_name: str = ""
    author_email: str = ""
    date: datetime | None = None

    @property
    def short_sha(self) -> str:
        return self.sha[:7]

    @property
    def header(self) -> str:
        return self.message.split("\n", 1)[0]


class GitRepository:
    """Thin wrapper around the git executable for one working tree."""

    def __init__(self, path: Path) -> None:
        self.path = path
        result = self._run(["rev-parse", "--show-toplevel"], check=False)
        if result.returncode != 0:
            raise GitError(f"Not a git repository: {path}", stderr=result.stderr)
        self.path = Path(result.stdout.strip())

    def _run(self, args: list[str], check: bool = True) -> subprocess.CompletedProcess[str]:
        cmd = ["git", *args]
        logger.debug("Running %s", " ".join(cmd))
        try:
            result = subprocess.run(
                cmd,
                cwd=self.path,
                capture_output=True,
                text=True,
                encoding="utf-8",
                errors="replace",
            )
        except FileNotFoundError as e:
            raise GitError("git executable not found") from e
        if check and result.returncode != 0:
            raise GitError(f"git {args[0]} failed", stderr=result.stderr)
        return result

    def has_commits(self) -> bool:
        return self._run(["rev-parse", "--verify", "--quiet", "HEAD"], check=False).returncode == 0

    def get_current_branch(self) -> str:
        return self._run(["rev-parse", "--abbrev-ref", "HEAD"]).stdout.strip()

    def get_head_sha(self) -> str:
        return self._run(["rev-parse", "HEAD"]).stdout.strip()

    def get_commits_since_tag(self, tag: str | None) -> list[Commit]:
        """Return commits after ``tag`` up to HEAD, oldest first.

        Args:
            tag: Tag to start after, or None for the full history
        """
        if not self.has_commits():
            return []

        rev_range = f"{tag}..HEAD" if tag else "HEAD"
        output = self._run(["log", "--reverse", f"--format={_LOG_FORMAT}", rev_range]).stdout

        commits = []
        for record in output.split(_RECORD_SEP):
            record = record.strip("\n")
            if not record:
                continue
            sha, author_name, author_email, date, message = record.split(_FIELD_SEP, 4)
            commits.append(
                Commit(
                    sha=sha,
                    message=message.strip("\n"),
                    author_name=author_name,
                    author_email=author_email,
                    date=datetime.fromisoformat(date),
                )
            )
        return commits


class GitTagRepository:
    """:class:`~semrel.vcs.tags.TagRepository` backed by local git tags.

    Tags are created as lightweight tags; the target of an existing tag is
    always compared as the peeled commit SHA.
    """

    def __init__(self, repo: GitRepository) -> None:
        self.repo = repo

    async def _git(self, *args: str) -> tuple[int, str, str]:
        logger.debug("Running git %s", " ".join(args))
        try:
            process = await asyncio.create_subprocess_exec(
                "git",
                *args,
                cwd=self.repo.path,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except FileNotFoundError as e:
            raise GitError("git executable not found") from e
        try:
            stdout, stderr = await process.communicate()
        except asyncio.CancelledError:
            if process.returncode is None:
                process.kill()
            await process.wait()
            raise
        return (
            process.returncode or 0,
            stdout.decode("utf-8", errors="replace"),
            stderr.decode("utf-8", errors="replace"),
        )

    async def _resolve_commit(self, ref: str) -> str | None:
        code, stdout, _ = await self._git("rev-parse", "--verify", "--quiet", f"{ref}^{{commit}}")
        return stdout.strip() if code == 0 else None

    async def find_tags_matching(self, pattern: str) -> list[Tag]:
        code, stdout, stderr = await self._git(
            "for-each-ref",
            "--format=%(refname:strip=2)%09%(objectname)%09%(*objectname)",
            "refs/tags/",
        )
        if code != 0:
            raise GitError("git for-each-ref failed", stderr=stderr)

        tags = []
        for line in stdout.splitlines():
            name, objectname, peeled = (line.split("\t") + ["", ""])[:3]
            if name and fnmatchcase(name, pattern):
                tags.append(Tag(name=name, target=peeled or objectname))
        return tags

    async def create_tag_if_absent(self, name: str, target: str) -> TagCreation:
        commit = await self._resolve_commit(target)
        if commit is None:
            raise TagRepositoryError(
                f"Cannot resolve revision '{target}'; no tag was created",
                outcome_unknown=False,
            )

        code, _, stderr = await self._git("tag", name, commit)
        if code == 0:
            logger.info("Created tag %s at %s", name, commit)
            return TagCreation(created=True)

        existing = await self._resolve_commit(f"refs/tags/{name}")
        if existing is None:
            raise GitError(f"git tag {name} failed", stderr=stderr)
        return TagCreation(created=False, existing_target=existing)
