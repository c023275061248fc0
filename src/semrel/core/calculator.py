"""Next-version calculation.

The bump is decided across the whole batch of commit records; the strongest
kind wins:

- any breaking change  -> MAJOR
- any ``feat``         -> MINOR
- any ``fix``, ``perf`` or ``refactor`` -> PATCH
- anything else        -> NONE (no release)

On a ``0.x.y`` version a MAJOR bump is applied as MINOR when
``zero_major_bumps_minor`` is enabled (the default), following the usual
pre-1.0 convention that breaking changes only move the minor number.

Pre-release branches append ``<tag>.<N>``. The counter ``N`` is derived
from existing tags only, never from local state, so a restarted run always
computes the same number.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING

from semrel.core.changelog import Changelog, build_changelog
from semrel.core.commits import CommitRecord, CommitType
from semrel.core.version import BumpType, PreRelease, Version
from semrel.exceptions import InvalidVersionError

if TYPE_CHECKING:
    from semrel.config.models import BranchPolicy
    from semrel.vcs.tags import Tag

logger = logging.getLogger(__name__)

TYPES_MINOR = frozenset({CommitType.FEAT})
TYPES_PATCH = frozenset({CommitType.FIX, CommitType.PERF, CommitType.REFACTOR})


@dataclass(frozen=True)
class ReleaseDecision:
    """Outcome of version calculation for one run.

    When ``should_release`` is False, ``next_version`` is the previous
    version unchanged and no tag may be created. With no previous release
    (``previous_version`` is None) there is nothing to keep, so
    ``next_version`` holds the configured initial version instead; it is
    informational only.

    On a first release ``next_version`` is the initial version whatever
    the bump; ``bump_kind`` still reports the strongest change in the batch.
    """

    should_release: bool
    next_version: Version
    bump_kind: BumpType
    changelog: Changelog
    previous_version: Version | None = None


def bump_for_record(record: CommitRecord) -> BumpType:
    if record.is_breaking:
        return BumpType.MAJOR
    if record.commit_type in TYPES_MINOR:
        return BumpType.MINOR
    if record.commit_type in TYPES_PATCH:
        return BumpType.PATCH
    return BumpType.NONE


def calculate_bump(records: Iterable[CommitRecord]) -> BumpType:
    """Return the strongest bump implied by any record in the batch."""
    bump = BumpType.NONE
    for record in records:
        bump = max(bump, bump_for_record(record))
        if bump == BumpType.MAJOR:
            break
    return bump


def effective_bump(
    previous: Version,
    bump: BumpType,
    *,
    zero_major_bumps_minor: bool = True,
) -> BumpType:
    """Apply the pre-1.0 policy: MAJOR on ``0.x.y`` becomes MINOR."""
    if bump == BumpType.MAJOR and previous.major == 0 and zero_major_bumps_minor:
        logger.debug("Pre-1.0 version %s: applying major bump as minor", previous)
        return BumpType.MINOR
    return bump


def next_prerelease_number(
    core: Version,
    label: str,
    existing_tags: Iterable[Tag],
    prefix: str,
    target_revision: str | None = None,
) -> int:
    """Return the counter for ``<core>-<label>.<N>``.

    ``N`` is one past the highest matching pre-release tag. If a matching
    tag already points at ``target_revision``, its number is reused so that
    re-running a release for the same revision yields the same tag.
    """
    highest = 0
    for tag in existing_tags:
        try:
            version = Version.parse(tag.name, prefix=prefix)
        except InvalidVersionError:
            continue
        prerelease = version.prerelease
        if version.core != core or prerelease is None or prerelease.number is None:
            continue
        if prerelease.label != label:
            continue
        if target_revision is not None and tag.target == target_revision:
            return prerelease.number
        highest = max(highest, prerelease.number)
    return highest + 1


def next_version(
    previous: Version | None,
    records: Sequence[CommitRecord],
    policy: BranchPolicy,
    *,
    existing_tags: Iterable[Tag] = (),
    target_revision: str | None = None,
    initial_version: Version | None = None,
    zero_major_bumps_minor: bool = True,
) -> ReleaseDecision:
    """Compute the release decision for a batch of commits.

    Args:
        previous: Last released version, or None for a first release
        records: Valid commit records since ``previous``, oldest first
        policy: Branch policy of the branch being released
        existing_tags: Tags used to derive the pre-release counter
        target_revision: Revision the release will be tagged at
        initial_version: Version of a first release (defaults to 0.1.0)
        zero_major_bumps_minor: Apply the pre-1.0 major-as-minor rule

    Returns:
        The release decision, including the changelog
    """
    bump = calculate_bump(records)
    start = previous if previous is not None else (initial_version or Version(0, 1, 0))

    if bump == BumpType.NONE:
        logger.info("No releasable changes in %d commit(s)", len(records))
        return ReleaseDecision(
            should_release=False,
            next_version=start,
            bump_kind=BumpType.NONE,
            changelog=build_changelog(records, start),
            previous_version=previous,
        )

    if previous is None:
        # First release: the configured initial version, whatever the bump
        candidate = start.core
    else:
        bump = effective_bump(previous, bump, zero_major_bumps_minor=zero_major_bumps_minor)
        candidate = previous.bump(bump)

    if not policy.is_release:
        label = policy.prerelease_tag or ""
        number = next_prerelease_number(
            candidate,
            label,
            existing_tags,
            policy.version_prefix or "",
            target_revision,
        )
        candidate = candidate.with_prerelease(PreRelease.from_label(label, number))

    logger.info("Next version: %s (%s bump from %s)", candidate, bump, previous or "nothing")
    return ReleaseDecision(
        should_release=True,
        next_version=candidate,
        bump_kind=bump,
        changelog=build_changelog(records, candidate),
        previous_version=previous,
    )
