"""Exception hierarchy for semrel.

All exceptions raised by semrel derive from :class:`SemrelError` so callers
can catch everything from the release engine with a single ``except``.

Malformed commit messages are *not* exceptions: they are reported as
:class:`~semrel.core.commits.RejectedCommit` records.
"""

from __future__ import annotations


class SemrelError(Exception):
    """Base exception for all semrel errors."""


# =============================================================================
# Configuration
# =============================================================================


class ConfigError(SemrelError):
    """Base class for configuration problems."""


class ConfigNotFoundError(ConfigError):
    """No pyproject.toml could be located."""


class ConfigValidationError(ConfigError):
    """Configuration values failed validation."""


class BranchPolicyError(ConfigError):
    """No branch policy matches the branch being released."""

    def __init__(self, branch_name: str, known: list[str] | None = None) -> None:
        self.branch_name = branch_name
        self.known = known or []
        message = f"No branch policy configured for branch '{branch_name}'"
        if self.known:
            message += f" (configured: {', '.join(self.known)})"
        super().__init__(message)


# =============================================================================
# Versions and changelog
# =============================================================================


class VersionError(SemrelError):
    """Base class for version handling problems."""


class InvalidVersionError(VersionError):
    """A string is not a valid semantic version."""


class ChangelogError(SemrelError):
    """Changelog could not be produced or written."""


# =============================================================================
# Version control
# =============================================================================


class GitError(SemrelError):
    """A git command failed."""

    def __init__(self, message: str, stderr: str | None = None) -> None:
        self.stderr = stderr
        if stderr:
            message = f"{message}: {stderr.strip()}"
        super().__init__(message)


class TagError(SemrelError):
    """Base class for tag creation problems."""


class TagConflictError(TagError):
    """A tag already exists but points at a different revision.

    Tags are immutable: semrel never moves or overwrites them.
    """

    def __init__(self, tag_name: str, expected: str, actual: str) -> None:
        self.tag_name = tag_name
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Tag '{tag_name}' already exists at {actual}, expected {expected}. "
            "Refusing to overwrite an existing tag."
        )


class TagRepositoryError(TagError):
    """The tag repository could not complete a request.

    ``outcome_unknown`` tells the caller whether the tag may have been
    written. ``False`` means the failure happened before any tag was
    requested, so nothing was created. ``True`` means the create call itself
    failed and the tag may or may not exist; re-running with the same inputs
    is safe because tag creation is idempotent.
    """

    def __init__(self, message: str, *, outcome_unknown: bool) -> None:
        self.outcome_unknown = outcome_unknown
        super().__init__(message)
