"""semrel: conventional-commit release engine.

Parses commit history, computes the next semantic version, builds a grouped
changelog and creates the release tag idempotently.
"""

from __future__ import annotations

__version__ = "0.1.0"
