"""Configuration models for semrel.

Configuration lives in ``[tool.semrel]`` inside ``pyproject.toml``. Every
field has a default, so an empty section (or none at all) yields a working
configuration with a ``main`` release branch and a ``develop`` beta branch.
"""

from __future__ import annotations

from fnmatch import fnmatchcase
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from semrel.core.version import PRERELEASE_PATTERN, Version
from semrel.exceptions import BranchPolicyError, InvalidVersionError


class CommitsConfig(BaseModel):
    """Commit message rules."""

    model_config = ConfigDict(extra="forbid")

    header_max_length: int = Field(default=100, gt=0)
    body_max_line_length: int = Field(default=120, gt=0)
    footer_max_line_length: int = Field(default=120, gt=0)
    skip_release_patterns: list[str] = Field(
        default_factory=lambda: ["[skip release]", "[release skip]", "[no release]"]
    )


class VersionConfig(BaseModel):
    """Version and tag settings."""

    model_config = ConfigDict(extra="forbid")

    tag_prefix: str = "v"
    initial_version: str = "0.1.0"
    # Conventional pre-1.0 rule: a breaking change on 0.x.y bumps minor.
    zero_major_bumps_minor: bool = True

    @field_validator("initial_version")
    @classmethod
    def _check_initial_version(cls, value: str) -> str:
        try:
            Version.parse(value)
        except InvalidVersionError as e:
            raise ValueError(str(e)) from e
        return value


class ChangelogConfig(BaseModel):
    """Changelog output settings."""

    model_config = ConfigDict(extra="forbid")

    enabled: bool = True
    path: Path = Path("CHANGELOG.md")
    include_sha: bool = True


class BranchPolicy(BaseModel):
    """Release behaviour for one branch (or a glob of branches).

    Release branches produce clean ``MAJOR.MINOR.PATCH`` versions;
    pre-release branches append ``<prerelease_tag>.<N>``.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    name: str = Field(min_length=1)
    is_release: bool = True
    prerelease_tag: str | None = None
    version_prefix: str | None = None

    @model_validator(mode="after")
    def _check_prerelease_tag(self) -> BranchPolicy:
        if not self.is_release and not self.prerelease_tag:
            raise ValueError(f"Pre-release branch '{self.name}' requires a prerelease_tag")
        if self.is_release and self.prerelease_tag:
            raise ValueError(f"Release branch '{self.name}' must not set a prerelease_tag")
        if self.prerelease_tag and not PRERELEASE_PATTERN.fullmatch(self.prerelease_tag):
            raise ValueError(f"Invalid prerelease_tag '{self.prerelease_tag}'")
        return self

    def matches(self, branch_name: str) -> bool:
        return fnmatchcase(branch_name, self.name)

    def tag_name(self, version: Version) -> str:
        return f"{self.version_prefix or ''}{version}"


def _default_branches() -> list[BranchPolicy]:
    return [
        BranchPolicy(name="main", is_release=True),
        BranchPolicy(name="develop", is_release=False, prerelease_tag="beta"),
    ]


class SemrelConfig(BaseModel):
    """Root configuration model."""

    model_config = ConfigDict(extra="forbid")

    default_branch: str = "main"
    commits: CommitsConfig = Field(default_factory=CommitsConfig)
    version: VersionConfig = Field(default_factory=VersionConfig)
    changelog: ChangelogConfig = Field(default_factory=ChangelogConfig)
    branches: list[BranchPolicy] = Field(default_factory=_default_branches)

    @model_validator(mode="after")
    def _fill_branch_prefixes(self) -> SemrelConfig:
        self.branches = [
            branch
            if branch.version_prefix is not None
            else branch.model_copy(update={"version_prefix": self.version.tag_prefix})
            for branch in self.branches
        ]
        return self

    @property
    def effective_tag_prefix(self) -> str:
        return self.version.tag_prefix

    def policy_for(self, branch_name: str) -> BranchPolicy:
        """Return the first branch policy matching ``branch_name``.

        Exact names win over glob patterns.

        Raises:
            BranchPolicyError: If no policy matches
        """
        for branch in self.branches:
            if branch.name == branch_name:
                return branch
        for branch in self.branches:
            if branch.matches(branch_name):
                return branch
        raise BranchPolicyError(branch_name, [b.name for b in self.branches])
