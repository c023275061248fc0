"""Conventional commit parsing.

Commit messages must follow::

    <type>[(<scope>)][!]: <subject>

    [body]

    [footers]

Types and scopes are closed enumerations. A message that breaks any rule is
not dropped: it becomes a :class:`RejectedCommit` carrying a reason code so
that callers can report it. Parsing is pure and preserves input order.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from typing import TYPE_CHECKING, NamedTuple

if TYPE_CHECKING:
    from semrel.config.models import CommitsConfig
    from semrel.vcs.git import Commit

logger = logging.getLogger(__name__)


class CommitType(StrEnum):
    FEAT = "feat"
    FIX = "fix"
    DOCS = "docs"
    STYLE = "style"
    REFACTOR = "refactor"
    TEST = "test"
    CHORE = "chore"
    PERF = "perf"
    BUILD = "build"
    CI = "ci"
    REVERT = "revert"
    RELEASE = "release"


class CommitScope(StrEnum):
    API = "api"
    UI = "ui"
    CORE = "core"
    AUTH = "auth"
    DB = "db"
    CONFIG = "config"
    DEPS = "deps"
    CI = "ci"
    DOCS = "docs"
    TEST = "test"
    SECURITY = "security"
    PERFORMANCE = "performance"
    WORKFLOW = "workflow"
    ACTION = "action"
    TEMPLATE = "template"


class RejectReason(StrEnum):
    INVALID_FORMAT = "invalid-format"
    UNKNOWN_TYPE = "unknown-type"
    UNKNOWN_SCOPE = "unknown-scope"
    EMPTY_SUBJECT = "empty-subject"
    HEADER_TOO_LONG = "header-too-long"
    NOT_LOWER_CASE = "not-lower-case"
    TRAILING_PERIOD = "trailing-period"
    MISSING_BLANK_LINE = "missing-blank-line"
    BODY_LINE_TOO_LONG = "body-line-too-long"
    FOOTER_LINE_TOO_LONG = "footer-line-too-long"


DEFAULT_ALLOWED_TYPES = frozenset(CommitType)
DEFAULT_ALLOWED_SCOPES = frozenset(CommitScope)

BREAKING_TOKENS = ("BREAKING CHANGE", "BREAKING-CHANGE")

# The subject is optional here so that "feat:" is reported as an empty
# subject rather than as a malformed header.
HEADER_PATTERN = re.compile(
    r"^(?P<type>[^\s()!:]+)"
    r"(?:\((?P<scope>[^()]*)\))?"
    r"(?P<breaking>!)?"
    r":(?: (?P<subject>.*))?$"
)

FOOTER_PATTERN = re.compile(
    r"^(?P<token>BREAKING[ -]CHANGE|[A-Za-z][A-Za-z0-9-]*)(?:: | #)(?P<value>.*)$"
)
BREAKING_PATTERN = re.compile(r"^BREAKING[ -]CHANGE: ")


@dataclass(frozen=True)
class CommitRecord:
    """A commit that passed every grammar rule."""

    sha: str
    commit_type: CommitType
    subject: str
    scope: CommitScope | None = None
    body: str | None = None
    footers: dict[str, tuple[str, ...]] = field(default_factory=dict, hash=False)
    is_breaking: bool = False
    date: datetime | None = None

    @property
    def short_sha(self) -> str:
        return self.sha[:7]

    @property
    def breaking_descriptions(self) -> list[str]:
        """Values of every ``BREAKING CHANGE`` footer, in order."""
        return [value for token in BREAKING_TOKENS for value in self.footers.get(token, ())]


@dataclass(frozen=True)
class RejectedCommit:
    """A commit quarantined because its message is malformed."""

    sha: str
    message: str
    reason: RejectReason
    detail: str = ""

    @property
    def header(self) -> str:
        return self.message.split("\n", 1)[0]


class ParseResult(NamedTuple):
    records: list[CommitRecord]
    rejected: list[RejectedCommit]


class _Rejection(Exception):
    def __init__(self, reason: RejectReason, detail: str) -> None:
        self.reason = reason
        self.detail = detail
        super().__init__(detail)


def _split_paragraphs(lines: Sequence[str]) -> list[list[str]]:
    paragraphs: list[list[str]] = []
    current: list[str] = []
    for line in lines:
        if line.strip():
            current.append(line)
        elif current:
            paragraphs.append(current)
            current = []
    if current:
        paragraphs.append(current)
    return paragraphs


def _footer_start(paragraphs: Sequence[list[str]]) -> int:
    """Index of the first footer paragraph, or ``len(paragraphs)`` if none.

    Every trailing paragraph that opens with a trailer is a footer block. A
    paragraph opening with a breaking-change note starts the footers even
    when prose follows it; that prose continues the note.
    """
    start = len(paragraphs)
    while start > 0 and FOOTER_PATTERN.match(paragraphs[start - 1][0]):
        start -= 1
    for index, paragraph in enumerate(paragraphs[:start]):
        if BREAKING_PATTERN.match(paragraph[0]):
            return index
    return start


def _parse_footers(lines: Sequence[str]) -> dict[str, list[str]]:
    footers: dict[str, list[str]] = {}
    last_token: str | None = None
    for line in lines:
        match = FOOTER_PATTERN.match(line)
        if match:
            last_token = match.group("token")
            footers.setdefault(last_token, []).append(match.group("value").strip())
        elif last_token is not None:
            # Continuation of a multi-line footer value
            values = footers[last_token]
            values[-1] = f"{values[-1]}\n{line.strip()}"
    return footers


def _check_header(header: str, config: CommitsConfig) -> re.Match[str]:
    match = HEADER_PATTERN.match(header)
    if not match:
        raise _Rejection(
            RejectReason.INVALID_FORMAT,
            "header must match 'type(scope)!: subject'",
        )

    commit_type = match.group("type")
    if commit_type not in DEFAULT_ALLOWED_TYPES:
        raise _Rejection(
            RejectReason.UNKNOWN_TYPE,
            f"type '{commit_type}' is not one of: {', '.join(CommitType)}",
        )

    scope = match.group("scope")
    if scope is not None and scope not in DEFAULT_ALLOWED_SCOPES:
        raise _Rejection(
            RejectReason.UNKNOWN_SCOPE,
            f"scope '{scope}' is not one of: {', '.join(CommitScope)}",
        )

    subject = (match.group("subject") or "").strip()
    if not subject:
        raise _Rejection(RejectReason.EMPTY_SUBJECT, "subject may not be empty")
    if len(header) > config.header_max_length:
        raise _Rejection(
            RejectReason.HEADER_TOO_LONG,
            f"header is {len(header)} characters, limit is {config.header_max_length}",
        )
    if subject != subject.lower():
        raise _Rejection(RejectReason.NOT_LOWER_CASE, "subject must be lower-case")
    if subject.endswith("."):
        raise _Rejection(RejectReason.TRAILING_PERIOD, "subject may not end with a period")
    return match


def _check_line_lengths(
    lines: Iterable[str], limit: int, reason: RejectReason, what: str
) -> None:
    for line in lines:
        if len(line) > limit:
            raise _Rejection(reason, f"{what} line is {len(line)} characters, limit is {limit}")


def _parse(commit: Commit, config: CommitsConfig) -> CommitRecord:
    lines = commit.message.replace("\r\n", "\n").rstrip().split("\n")
    header = lines[0].rstrip()
    match = _check_header(header, config)

    rest = lines[1:]
    if rest and rest[0].strip():
        raise _Rejection(
            RejectReason.MISSING_BLANK_LINE,
            "body must be separated from the header by a blank line",
        )

    paragraphs = _split_paragraphs(rest)
    footer_start = _footer_start(paragraphs)
    footer_lines = [line for paragraph in paragraphs[footer_start:] for line in paragraph]
    body_lines = [line for paragraph in paragraphs[:footer_start] for line in (*paragraph, "")][:-1]

    _check_line_lengths(
        body_lines, config.body_max_line_length, RejectReason.BODY_LINE_TOO_LONG, "body"
    )
    _check_line_lengths(
        footer_lines, config.footer_max_line_length, RejectReason.FOOTER_LINE_TOO_LONG, "footer"
    )

    footers = {token: tuple(values) for token, values in _parse_footers(footer_lines).items()}
    scope = match.group("scope")

    return CommitRecord(
        sha=commit.sha,
        commit_type=CommitType(match.group("type")),
        subject=match.group("subject").strip(),
        scope=CommitScope(scope) if scope is not None else None,
        body="\n".join(body_lines) or None,
        footers=footers,
        is_breaking=bool(match.group("breaking")) or any(t in footers for t in BREAKING_TOKENS),
        date=commit.date,
    )


def parse_commit(
    commit: Commit,
    config: CommitsConfig | None = None,
) -> CommitRecord | RejectedCommit:
    """Parse one commit into a record, or reject it with a reason.

    Args:
        commit: Raw commit from history
        config: Commit rules (defaults apply when omitted)

    Returns:
        A :class:`CommitRecord` or a :class:`RejectedCommit`
    """
    if config is None:
        from semrel.config.models import CommitsConfig

        config = CommitsConfig()

    try:
        return _parse(commit, config)
    except _Rejection as rejection:
        return RejectedCommit(
            sha=commit.sha,
            message=commit.message,
            reason=rejection.reason,
            detail=rejection.detail,
        )


def parse_commits(
    commits: Iterable[Commit],
    config: CommitsConfig | None = None,
) -> ParseResult:
    """Parse commits, keeping valid and rejected entries apart.

    Input order is preserved in both lists, and every input commit appears
    in exactly one of them.

    Args:
        commits: Raw commits in the caller's order
        config: Commit rules (defaults apply when omitted)

    Returns:
        ``(records, rejected)``
    """
    records: list[CommitRecord] = []
    rejected: list[RejectedCommit] = []

    for commit in commits:
        parsed = parse_commit(commit, config)
        if isinstance(parsed, RejectedCommit):
            logger.debug("Rejected %s (%s): %s", commit.sha[:7], parsed.reason, parsed.header)
            rejected.append(parsed)
        else:
            records.append(parsed)

    logger.debug("Parsed %d commit(s), rejected %d", len(records), len(rejected))
    return ParseResult(records, rejected)


def validate_commit_message(
    message: str,
    config: CommitsConfig | None = None,
) -> CommitRecord | RejectedCommit:
    """Validate a bare commit message (e.g. from a commit-msg hook)."""
    from semrel.vcs.git import Commit

    return parse_commit(Commit(sha="", message=message), config)


def filter_skip_release_commits(
    commits: Sequence[Commit],
    patterns: Sequence[str],
) -> list[Commit]:
    """Drop commits whose message contains a skip-release marker.

    Markers are matched case-insensitively anywhere in the message.
    """
    if not patterns:
        return list(commits)

    lowered = [p.lower() for p in patterns]
    kept = []
    for commit in commits:
        message = commit.message.lower()
        if any(p in message for p in lowered):
            logger.debug("Skipping %s: skip-release marker", commit.sha[:7])
            continue
        kept.append(commit)
    return kept


def group_commits_by_type(
    records: Iterable[CommitRecord],
) -> dict[CommitType, list[CommitRecord]]:
    """Group records by type, preserving commit order within each group."""
    grouped: dict[CommitType, list[CommitRecord]] = {}
    for record in records:
        grouped.setdefault(record.commit_type, []).append(record)
    return grouped


def get_breaking_changes(records: Iterable[CommitRecord]) -> list[CommitRecord]:
    return [record for record in records if record.is_breaking]
