"""Changelog assembly and rendering.

:func:`build_changelog` groups commit records into a structured
:class:`Changelog`; it produces data, not text, so callers can render it in
any format. :func:`render_markdown` is the built-in Markdown renderer.

Sections always appear in the same order:

1. Breaking Changes
2. Features
3. Fixes
4. Performance Improvements
5. Other Changes

A breaking commit is listed under Breaking Changes *and* in its natural
section. Entries keep original commit order and empty sections are omitted.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date
from enum import StrEnum
from typing import TYPE_CHECKING

from semrel.core.commits import CommitRecord, CommitScope, CommitType
from semrel.exceptions import ChangelogError

if TYPE_CHECKING:
    from pathlib import Path

    from semrel.core.version import Version


class SectionKind(StrEnum):
    BREAKING = "breaking"
    FEATURES = "features"
    FIXES = "fixes"
    PERFORMANCE = "performance"
    OTHER = "other"

    @property
    def heading(self) -> str:
        return SECTION_TITLES[self]


SECTION_TITLES = {
    SectionKind.BREAKING: "Breaking Changes",
    SectionKind.FEATURES: "Features",
    SectionKind.FIXES: "Fixes",
    SectionKind.PERFORMANCE: "Performance Improvements",
    SectionKind.OTHER: "Other Changes",
}

SECTION_ORDER = list(SectionKind)

# Emoji headers used by the Markdown renderer
SECTION_LABELS = {
    SectionKind.BREAKING: "### ⚠️ Breaking Changes",
    SectionKind.FEATURES: "### ✨ Features",
    SectionKind.FIXES: "### 🐛 Fixes",
    SectionKind.PERFORMANCE: "### ⚡ Performance Improvements",
    SectionKind.OTHER: "### 📝 Other Changes",
}

_NATURAL_SECTION = {
    CommitType.FEAT: SectionKind.FEATURES,
    CommitType.FIX: SectionKind.FIXES,
    CommitType.PERF: SectionKind.PERFORMANCE,
}


@dataclass(frozen=True)
class ChangelogEntry:
    """One line of the changelog, pointing back at its commit."""

    subject: str
    commit_type: CommitType
    sha: str
    scope: CommitScope | None = None
    breaking_description: str | None = None

    @classmethod
    def from_record(cls, record: CommitRecord) -> ChangelogEntry:
        descriptions = record.breaking_descriptions
        return cls(
            subject=record.subject,
            commit_type=record.commit_type,
            sha=record.sha,
            scope=record.scope,
            breaking_description="\n".join(descriptions) if descriptions else None,
        )

    @property
    def short_sha(self) -> str:
        return self.sha[:7]


@dataclass(frozen=True)
class ChangelogSection:
    kind: SectionKind
    entries: tuple[ChangelogEntry, ...]

    @property
    def title(self) -> str:
        return self.kind.heading


@dataclass(frozen=True)
class Changelog:
    """Structured changelog for one version."""

    version: Version
    sections: tuple[ChangelogSection, ...]

    def section(self, kind: SectionKind) -> ChangelogSection | None:
        for section in self.sections:
            if section.kind == kind:
                return section
        return None

    @property
    def is_empty(self) -> bool:
        return not self.sections


def natural_section(commit_type: CommitType) -> SectionKind:
    """Return the non-breaking section a commit type belongs to."""
    return _NATURAL_SECTION.get(commit_type, SectionKind.OTHER)


def build_changelog(records: Iterable[CommitRecord], version: Version) -> Changelog:
    """Group commit records into changelog sections.

    Args:
        records: Valid commit records, oldest first
        version: Version the changelog describes

    Returns:
        Changelog with non-empty sections in fixed order
    """
    grouped: dict[SectionKind, list[ChangelogEntry]] = {kind: [] for kind in SECTION_ORDER}

    for record in records:
        entry = ChangelogEntry.from_record(record)
        if record.is_breaking:
            grouped[SectionKind.BREAKING].append(entry)
        grouped[natural_section(record.commit_type)].append(entry)

    sections = tuple(
        ChangelogSection(kind=kind, entries=tuple(grouped[kind]))
        for kind in SECTION_ORDER
        if grouped[kind]
    )
    return Changelog(version=version, sections=sections)


def format_entry(
    entry: ChangelogEntry,
    kind: SectionKind,
    *,
    include_scope: bool = True,
    include_sha: bool = False,
) -> str:
    """Format one changelog entry as a Markdown list item."""
    parts = ["-"]
    if kind == SectionKind.OTHER:
        parts.append(f"{entry.commit_type}:")
    if include_scope and entry.scope:
        parts.append(f"**{entry.scope}:**")
    parts.append(entry.subject)
    if include_sha and entry.sha:
        parts.append(f"({entry.short_sha})")

    line = " ".join(parts)
    if kind == SectionKind.BREAKING and entry.breaking_description:
        details = entry.breaking_description.replace("\n", "\n  ")
        line += f"\n  {details}"
    return line


def render_markdown(
    changelog: Changelog,
    *,
    release_date: date | None = None,
    include_sha: bool = True,
) -> str:
    """Render a changelog as Markdown.

    Args:
        changelog: Structured changelog
        release_date: Date shown in the heading (omitted when None)
        include_sha: Append the short commit SHA to each entry

    Returns:
        Markdown text ending with a newline
    """
    heading = f"## [{changelog.version}]"
    if release_date is not None:
        heading += f" - {release_date.isoformat()}"

    lines = [heading, ""]
    for section in changelog.sections:
        lines.append(SECTION_LABELS[section.kind])
        lines.append("")
        for entry in section.entries:
            lines.append(format_entry(entry, section.kind, include_sha=include_sha))
        lines.append("")

    return "\n".join(lines)


def prepend_to_changelog(existing: str, new_content: str, header: str = "# Changelog") -> str:
    """Insert a rendered release above previous releases.

    The top-level ``# Changelog`` heading stays first.
    """
    if not existing.strip():
        return f"{header}\n\n{new_content}"

    if existing.startswith(header):
        rest = existing[len(header) :].lstrip("\n")
        return f"{header}\n\n{new_content}\n{rest}"
    return f"{new_content}\n{existing}"


def update_changelog_file(path: Path, notes: str, version: Version) -> bool:
    """Prepend rendered release notes to the changelog file at ``path``.

    Nothing is written when the file already has an entry for ``version``,
    so a retried release never duplicates its notes.

    Returns:
        True if the file was written

    Raises:
        ChangelogError: If the file cannot be read or written
    """
    try:
        existing = path.read_text(encoding="utf-8") if path.exists() else ""
        if f"## [{version}]" in existing:
            return False
        path.write_text(prepend_to_changelog(existing, notes), encoding="utf-8")
    except OSError as e:
        raise ChangelogError(f"Could not update {path}: {e}") from e
    return True
