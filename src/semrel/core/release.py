"""Release orchestration.

One run moves through these states::

    evaluating -> no_release
    evaluating -> pending_tag -> tagged
    evaluating -> pending_tag -> conflict

The only side effect is a single call to
:meth:`~semrel.vcs.tags.TagRepository.create_tag_if_absent`. Because that
call is idempotent, a run can be cancelled or retried at any point and
concurrent runs for the same revision converge on the same tag. The
orchestrator keeps no state between runs and takes no locks.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING

from semrel.core.calculator import ReleaseDecision, next_version
from semrel.core.commits import RejectedCommit, filter_skip_release_commits, parse_commits
from semrel.core.version import Version
from semrel.exceptions import InvalidVersionError, TagConflictError, TagRepositoryError

if TYPE_CHECKING:
    from semrel.config.models import BranchPolicy, SemrelConfig
    from semrel.vcs.git import Commit
    from semrel.vcs.tags import Tag, TagRepository

logger = logging.getLogger(__name__)


class ReleaseState(StrEnum):
    EVALUATING = "evaluating"
    NO_RELEASE = "no_release"
    PENDING_TAG = "pending_tag"
    TAGGED = "tagged"
    CONFLICT = "conflict"


@dataclass(frozen=True)
class ReleaseContext:
    """Inputs for one orchestration run.

    Attributes:
        branch_name: Branch being released
        commits: Commits since the previous release, oldest first
        previous_version: Last released version; resolved from tags when None
        existing_tags: Known tags; queried from the repository when None
        target_revision: Revision to tag; defaults to the newest commit
    """

    branch_name: str
    commits: Sequence[Commit] = ()
    previous_version: Version | None = None
    existing_tags: Sequence[Tag] | None = None
    target_revision: str | None = None


@dataclass(frozen=True)
class OrchestrationResult:
    decision: ReleaseDecision
    state: ReleaseState
    tag_created: bool = False
    tag_name: str | None = None
    target_revision: str | None = None
    rejected: tuple[RejectedCommit, ...] = field(default_factory=tuple)


def latest_release_version(
    tags: Sequence[Tag],
    prefix: str,
    exclude_target: str | None = None,
) -> Version | None:
    """Return the highest non-pre-release version among ``tags``.

    Tags pointing at ``exclude_target`` are ignored: they belong to the
    release being (re)computed, not to its predecessor.
    """
    versions = []
    for tag in tags:
        if exclude_target is not None and tag.target == exclude_target:
            continue
        try:
            version = Version.parse(tag.name, prefix=prefix)
        except InvalidVersionError:
            continue
        if not version.is_prerelease:
            versions.append(version)
    return max(versions, default=None)


class ReleaseOrchestrator:
    """Computes a release and tags it through a :class:`TagRepository`."""

    def __init__(self, tags: TagRepository, config: SemrelConfig) -> None:
        self.tags = tags
        self.config = config

    async def _find_tags(self, pattern: str) -> list[Tag]:
        try:
            return await self.tags.find_tags_matching(pattern)
        except TagRepositoryError:
            raise
        except Exception as e:
            raise TagRepositoryError(
                f"Could not list tags matching '{pattern}': {e}",
                outcome_unknown=False,
            ) from e

    async def resolve_previous_version(
        self,
        policy: BranchPolicy,
        target_revision: str | None = None,
    ) -> Version | None:
        """Find the last release version from the repository's tags."""
        prefix = policy.version_prefix or ""
        tags = await self._find_tags(f"{prefix}*")
        return latest_release_version(tags, prefix, exclude_target=target_revision)

    async def run(self, context: ReleaseContext, *, dry_run: bool = False) -> OrchestrationResult:
        """Evaluate the commits and tag the release if one is due.

        Args:
            context: Inputs for this run
            dry_run: Stop at ``pending_tag`` without creating the tag

        Returns:
            The outcome, including every rejected commit

        Raises:
            BranchPolicyError: If no policy matches the branch
            TagConflictError: If the tag exists at another revision
            TagRepositoryError: If the repository fails; see ``outcome_unknown``
        """
        policy = self.config.policy_for(context.branch_name)
        prefix = policy.version_prefix or ""
        logger.debug(
            "[%s] branch %s (policy %s)", ReleaseState.EVALUATING, context.branch_name, policy.name
        )

        commits = filter_skip_release_commits(
            context.commits, self.config.commits.skip_release_patterns
        )
        records, rejected = parse_commits(commits, self.config.commits)
        for rejection in rejected:
            logger.warning(
                "Rejected commit %s (%s): %s",
                rejection.sha[:7] or "<no sha>",
                rejection.reason,
                rejection.header,
            )

        target = context.target_revision
        if target is None and context.commits:
            target = context.commits[-1].sha

        previous = context.previous_version
        if previous is None:
            previous = await self.resolve_previous_version(policy, target)

        existing_tags: Sequence[Tag] = ()
        if not policy.is_release and records:
            if context.existing_tags is not None:
                existing_tags = context.existing_tags
            else:
                existing_tags = await self._find_tags(f"{prefix}*-{policy.prerelease_tag}.*")

        decision = next_version(
            previous,
            records,
            policy,
            existing_tags=existing_tags,
            target_revision=target,
            initial_version=Version.parse(self.config.version.initial_version),
            zero_major_bumps_minor=self.config.version.zero_major_bumps_minor,
        )

        if not decision.should_release or target is None:
            logger.info("[%s] nothing to release", ReleaseState.NO_RELEASE)
            return OrchestrationResult(
                decision=decision,
                state=ReleaseState.NO_RELEASE,
                rejected=tuple(rejected),
            )

        tag_name = policy.tag_name(decision.next_version)
        logger.info("[%s] %s at %s", ReleaseState.PENDING_TAG, tag_name, target[:7])

        if dry_run:
            return OrchestrationResult(
                decision=decision,
                state=ReleaseState.PENDING_TAG,
                tag_name=tag_name,
                target_revision=target,
                rejected=tuple(rejected),
            )

        try:
            creation = await self.tags.create_tag_if_absent(tag_name, target)
        except TagRepositoryError:
            raise
        except Exception as e:
            raise TagRepositoryError(
                f"Creating tag {tag_name} failed; it may or may not exist: {e}",
                outcome_unknown=True,
            ) from e

        if not creation.created and creation.existing_target != target:
            logger.error(
                "[%s] %s exists at %s, expected %s",
                ReleaseState.CONFLICT,
                tag_name,
                creation.existing_target,
                target,
            )
            raise TagConflictError(tag_name, expected=target, actual=creation.existing_target or "")

        if creation.created:
            logger.info("[%s] created %s", ReleaseState.TAGGED, tag_name)
        else:
            logger.info("[%s] %s already exists at %s", ReleaseState.TAGGED, tag_name, target[:7])

        return OrchestrationResult(
            decision=decision,
            state=ReleaseState.TAGGED,
            tag_created=creation.created,
            tag_name=tag_name,
            target_revision=target,
            rejected=tuple(rejected),
        )
