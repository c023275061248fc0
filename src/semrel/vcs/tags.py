"""Tag repository boundary.

The release orchestrator never touches tags directly. It talks to a
:class:`TagRepository`, whose only mutating operation is the idempotent
:meth:`~TagRepository.create_tag_if_absent`. All safety against concurrent
or retried runs lives in that contract; the orchestrator holds no locks.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from fnmatch import fnmatchcase
from typing import Protocol, runtime_checkable


@dataclass(frozen=True)
class Tag:
    """A tag name and the revision it points at."""

    name: str
    target: str


@dataclass(frozen=True)
class TagCreation:
    """Outcome of :meth:`TagRepository.create_tag_if_absent`.

    Attributes:
        created: True if this call created the tag
        existing_target: Revision of the pre-existing tag when ``created`` is False
    """

    created: bool
    existing_target: str | None = None


@runtime_checkable
class TagRepository(Protocol):
    """Storage for release tags.

    Both methods may be slow (network or subprocess bound) and are awaited.
    An implementation that fails before writing anything may raise
    :class:`~semrel.exceptions.TagRepositoryError` with
    ``outcome_unknown=False``; any other error from
    :meth:`create_tag_if_absent` is treated as an unknown outcome.
    """

    async def find_tags_matching(self, pattern: str) -> list[Tag]:
        """Return tags whose name matches the glob ``pattern``."""
        ...

    async def create_tag_if_absent(self, name: str, target: str) -> TagCreation:
        """Create ``name`` at ``target`` unless a tag of that name exists.

        Must be atomic: of several concurrent calls for the same name,
        exactly one reports ``created=True``.
        """
        ...


class InMemoryTagRepository:
    """Tag repository kept in a dict. Used for dry runs and tests."""

    def __init__(self, tags: dict[str, str] | None = None) -> None:
        self._tags: dict[str, str] = dict(tags or {})
        self._lock = asyncio.Lock()

    @property
    def tags(self) -> dict[str, str]:
        return dict(self._tags)

    async def find_tags_matching(self, pattern: str) -> list[Tag]:
        return [
            Tag(name=name, target=target)
            for name, target in sorted(self._tags.items())
            if fnmatchcase(name, pattern)
        ]

    async def create_tag_if_absent(self, name: str, target: str) -> TagCreation:
        async with self._lock:
            existing = self._tags.get(name)
            if existing is not None:
                return TagCreation(created=False, existing_target=existing)
            self._tags[name] = target
            return TagCreation(created=True)
