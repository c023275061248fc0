"""Semantic version parsing, ordering and bumping.

Versions follow Semantic Versioning 2.0.0::

    MAJOR.MINOR.PATCH[-PRERELEASE][+BUILD]

:class:`Version` is an immutable value type with a total ordering. Build
metadata never influences release precedence; it only breaks ties between
otherwise equal versions so that ordering agrees with equality.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import StrEnum
from functools import total_ordering

from semrel.exceptions import InvalidVersionError

_NUMERIC = r"0|[1-9]\d*"
_IDENTIFIER = r"(?:0|[1-9]\d*|\d*[A-Za-z-][0-9A-Za-z-]*)"

VERSION_PATTERN = re.compile(
    rf"^(?P<major>{_NUMERIC})\.(?P<minor>{_NUMERIC})\.(?P<patch>{_NUMERIC})"
    rf"(?:-(?P<prerelease>{_IDENTIFIER}(?:\.{_IDENTIFIER})*))?"
    r"(?:\+(?P<build>[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?$"
)
PRERELEASE_PATTERN = re.compile(rf"{_IDENTIFIER}(?:\.{_IDENTIFIER})*")


class BumpType(StrEnum):
    """Magnitude of a version change, ordered from weakest to strongest."""

    NONE = "none"
    PATCH = "patch"
    MINOR = "minor"
    MAJOR = "major"

    @property
    def rank(self) -> int:
        return _BUMP_ORDER.index(self)

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, BumpType):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other: object) -> bool:
        if not isinstance(other, BumpType):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other: object) -> bool:
        if not isinstance(other, BumpType):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other: object) -> bool:
        if not isinstance(other, BumpType):
            return NotImplemented
        return self.rank >= other.rank


_BUMP_ORDER = [BumpType.NONE, BumpType.PATCH, BumpType.MINOR, BumpType.MAJOR]


@total_ordering
@dataclass(frozen=True)
class PreRelease:
    """Dot-separated pre-release identifiers, e.g. ``beta.3``.

    Numeric identifiers are stored as ``int`` and compare numerically;
    numeric identifiers always sort before alphanumeric ones, and a shorter
    identifier list sorts before a longer one sharing the same prefix.
    """

    identifiers: tuple[str | int, ...]

    @classmethod
    def parse(cls, text: str) -> PreRelease:
        parts = text.split(".")
        if not text or any(not p for p in parts):
            raise InvalidVersionError(f"Invalid pre-release identifier: '{text}'")
        return cls(tuple(int(p) if p.isdigit() else p for p in parts))

    @classmethod
    def from_label(cls, label: str, number: int) -> PreRelease:
        """Build the ``<label>.<number>`` form used for pre-release branches."""
        return cls((*cls.parse(label).identifiers, number))

    @property
    def label(self) -> str:
        """Identifiers before the trailing counter (``beta`` for ``beta.3``)."""
        if self.number is None:
            return str(self)
        return ".".join(str(i) for i in self.identifiers[:-1])

    @property
    def number(self) -> int | None:
        """Trailing numeric counter, if any."""
        last = self.identifiers[-1]
        if isinstance(last, int) and len(self.identifiers) > 1:
            return last
        return None

    def __str__(self) -> str:
        return ".".join(str(i) for i in self.identifiers)

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, PreRelease):
            return NotImplemented
        for mine, theirs in zip(self.identifiers, other.identifiers, strict=False):
            if mine == theirs:
                continue
            if isinstance(mine, int) and isinstance(theirs, int):
                return mine < theirs
            if isinstance(mine, int):
                return True
            if isinstance(theirs, int):
                return False
            return mine < theirs
        return len(self.identifiers) < len(other.identifiers)


@total_ordering
@dataclass(frozen=True)
class Version:
    """An immutable semantic version."""

    major: int
    minor: int
    patch: int
    prerelease: PreRelease | None = None
    build: str | None = field(default=None)

    def __post_init__(self) -> None:
        if min(self.major, self.minor, self.patch) < 0:
            raise InvalidVersionError(
                f"Version components must be non-negative: {self.major}.{self.minor}.{self.patch}"
            )

    @classmethod
    def parse(cls, text: str, prefix: str = "") -> Version:
        """Parse a version string, optionally stripping a tag prefix.

        Args:
            text: Version string such as ``1.2.3`` or ``v1.2.3-beta.1``
            prefix: Tag prefix to strip before parsing (e.g. ``"v"``)

        Returns:
            Parsed version

        Raises:
            InvalidVersionError: If the string is not a semantic version
        """
        raw = text.strip()
        if prefix:
            if not raw.startswith(prefix):
                raise InvalidVersionError(f"'{text}' does not start with prefix '{prefix}'")
            raw = raw[len(prefix) :]

        match = VERSION_PATTERN.match(raw)
        if not match:
            raise InvalidVersionError(f"Invalid semantic version: '{text}'")

        prerelease = match.group("prerelease")
        return cls(
            major=int(match.group("major")),
            minor=int(match.group("minor")),
            patch=int(match.group("patch")),
            prerelease=PreRelease.parse(prerelease) if prerelease else None,
            build=match.group("build"),
        )

    @property
    def is_prerelease(self) -> bool:
        return self.prerelease is not None

    @property
    def core(self) -> Version:
        """The ``major.minor.patch`` part without pre-release or build."""
        return Version(self.major, self.minor, self.patch)

    def bump(self, bump_type: BumpType) -> Version:
        """Return the next version for ``bump_type``.

        Pre-release and build metadata are dropped. When ``self`` is a
        pre-release whose core already carries the requested bump (e.g.
        ``2.1.0-beta.2`` bumped by minor), the core itself is the result.
        """
        if bump_type == BumpType.NONE:
            return self

        if self.is_prerelease:
            if bump_type == BumpType.PATCH:
                return self.core
            if bump_type == BumpType.MINOR and self.patch == 0:
                return self.core
            if bump_type == BumpType.MAJOR and self.minor == 0 and self.patch == 0:
                return self.core

        if bump_type == BumpType.MAJOR:
            return Version(self.major + 1, 0, 0)
        if bump_type == BumpType.MINOR:
            return Version(self.major, self.minor + 1, 0)
        return Version(self.major, self.minor, self.patch + 1)

    def with_prerelease(self, prerelease: PreRelease | str) -> Version:
        if isinstance(prerelease, str):
            prerelease = PreRelease.parse(prerelease)
        return Version(self.major, self.minor, self.patch, prerelease=prerelease)

    def _precedence_key(self) -> tuple[int, int, int]:
        return (self.major, self.minor, self.patch)

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        if self._precedence_key() != other._precedence_key():
            return self._precedence_key() < other._precedence_key()
        if self.prerelease != other.prerelease:
            # A pre-release always precedes the release it leads up to.
            if self.prerelease is None:
                return False
            if other.prerelease is None:
                return True
            return self.prerelease < other.prerelease
        return (self.build or "") < (other.build or "")

    def __str__(self) -> str:
        text = f"{self.major}.{self.minor}.{self.patch}"
        if self.prerelease is not None:
            text += f"-{self.prerelease}"
        if self.build:
            text += f"+{self.build}"
        return text


def parse_version(text: str, prefix: str = "") -> Version:
    """Parse a version string. Convenience wrapper for :meth:`Version.parse`."""
    return Version.parse(text, prefix=prefix)
