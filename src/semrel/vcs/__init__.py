"""Version control integration."""

from __future__ import annotations

from semrel.vcs.git import Commit, GitRepository, GitTagRepository
from semrel.vcs.tags import InMemoryTagRepository, Tag, TagCreation, TagRepository

__all__ = [
    "Commit",
    "GitRepository",
    "GitTagRepository",
    "InMemoryTagRepository",
    "Tag",
    "TagCreation",
    "TagRepository",
]
