"""Core business logic for semrel.

This module contains the fundamental building blocks:
- Semantic version parsing, ordering and bumping
- Conventional commit parsing
- Next-version calculation
- Changelog assembly
- Release orchestration
"""

from __future__ import annotations

from semrel.core.calculator import ReleaseDecision, calculate_bump, next_version
from semrel.core.changelog import (
    Changelog,
    ChangelogEntry,
    ChangelogSection,
    SectionKind,
    build_changelog,
    render_markdown,
)
from semrel.core.commits import (
    CommitRecord,
    CommitScope,
    CommitType,
    ParseResult,
    RejectedCommit,
    RejectReason,
    filter_skip_release_commits,
    get_breaking_changes,
    group_commits_by_type,
    parse_commit,
    parse_commits,
    validate_commit_message,
)
from semrel.core.release import (
    OrchestrationResult,
    ReleaseContext,
    ReleaseOrchestrator,
    ReleaseState,
)
from semrel.core.version import BumpType, PreRelease, Version, parse_version

__all__ = [
    "BumpType",
    "Changelog",
    "ChangelogEntry",
    "ChangelogSection",
    "CommitRecord",
    "CommitScope",
    "CommitType",
    "OrchestrationResult",
    "ParseResult",
    "PreRelease",
    "RejectReason",
    "RejectedCommit",
    "ReleaseContext",
    "ReleaseDecision",
    "ReleaseOrchestrator",
    "ReleaseState",
    "SectionKind",
    "Version",
    "build_changelog",
    "calculate_bump",
    "filter_skip_release_commits",
    "get_breaking_changes",
    "group_commits_by_type",
    "next_version",
    "parse_commit",
    "parse_commits",
    "parse_version",
    "render_markdown",
    "validate_commit_message",
]
