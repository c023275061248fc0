"""Tests for configuration loading and validation."""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from semrel.config.loader import (
    extract_semrel_config,
    find_pyproject_toml,
    load_config,
    load_pyproject_toml,
)
from semrel.config.models import (
    BranchPolicy,
    ChangelogConfig,
    CommitsConfig,
    SemrelConfig,
    VersionConfig,
)
from semrel.core.version import Version
from semrel.exceptions import BranchPolicyError, ConfigNotFoundError, ConfigValidationError


class TestSemrelConfig:
    """Tests for SemrelConfig model."""

    def test_default_config(self):
        """Default configuration has sensible values."""
        config = SemrelConfig()

        assert config.default_branch == "main"
        assert config.effective_tag_prefix == "v"
        assert config.changelog.path == Path("CHANGELOG.md")
        assert [b.name for b in config.branches] == ["main", "develop"]

    def test_nested_defaults(self):
        """Nested configurations have defaults."""
        config = SemrelConfig()

        assert config.commits.header_max_length == 100
        assert config.commits.body_max_line_length == 120
        assert config.version.initial_version == "0.1.0"
        assert config.version.zero_major_bumps_minor is True

    def test_branch_prefix_follows_tag_prefix(self):
        config = SemrelConfig(version=VersionConfig(tag_prefix="release-"))

        assert config.effective_tag_prefix == "release-"
        assert all(b.version_prefix == "release-" for b in config.branches)

    def test_explicit_branch_prefix_kept(self):
        config = SemrelConfig(
            branches=[
                BranchPolicy(name="main"),
                BranchPolicy(
                    name="develop", is_release=False, prerelease_tag="dev", version_prefix="dev-v"
                ),
            ]
        )

        assert config.policy_for("main").version_prefix == "v"
        assert config.policy_for("develop").version_prefix == "dev-v"

    def test_unknown_key_rejected(self):
        with pytest.raises(ValidationError):
            SemrelConfig.model_validate({"allow_dirty": True})


class TestBranchPolicy:
    """Tests for BranchPolicy model and lookup."""

    def test_prerelease_branch_requires_tag(self):
        with pytest.raises(ValidationError, match="requires a prerelease_tag"):
            BranchPolicy(name="develop", is_release=False)

    def test_release_branch_rejects_tag(self):
        with pytest.raises(ValidationError, match="must not set"):
            BranchPolicy(name="main", prerelease_tag="beta")

    @pytest.mark.parametrize("tag", ["beta_1", "rc 1", "beta..1", "01", "beta.", "béta"])
    def test_prerelease_tag_must_be_semver_identifiers(self, tag: str):
        with pytest.raises(ValidationError, match="Invalid prerelease_tag"):
            BranchPolicy(name="develop", is_release=False, prerelease_tag=tag)

    @pytest.mark.parametrize("tag", ["beta", "rc", "alpha.preview", "next-1"])
    def test_valid_prerelease_tags(self, tag: str):
        policy = BranchPolicy(name="develop", is_release=False, prerelease_tag=tag)

        assert policy.prerelease_tag == tag

    def test_tag_name(self):
        policy = BranchPolicy(name="develop", is_release=False, prerelease_tag="beta")

        assert policy.tag_name(Version.parse("2.1.0-beta.3")) == "2.1.0-beta.3"
        assert SemrelConfig().policy_for("develop").tag_name(Version(1, 0, 0)) == "v1.0.0"

    def test_policy_lookup_exact_before_glob(self):
        config = SemrelConfig(
            branches=[
                BranchPolicy(name="release/*", is_release=False, prerelease_tag="rc"),
                BranchPolicy(name="release/stable"),
            ]
        )

        assert config.policy_for("release/stable").is_release
        assert config.policy_for("release/2.x").prerelease_tag == "rc"

    def test_unknown_branch(self):
        with pytest.raises(BranchPolicyError) as exc_info:
            SemrelConfig().policy_for("feature/login")

        assert exc_info.value.branch_name == "feature/login"
        assert exc_info.value.known == ["main", "develop"]


class TestCommitsConfig:
    """Tests for CommitsConfig model."""

    def test_default_skip_patterns(self):
        """Default skip release patterns are configured."""
        config = CommitsConfig()

        assert "[skip release]" in config.skip_release_patterns
        assert "[release skip]" in config.skip_release_patterns
        assert "[no release]" in config.skip_release_patterns

    def test_custom_skip_patterns(self):
        config = CommitsConfig(skip_release_patterns=["[skip ci]", "[wip]"])

        assert config.skip_release_patterns == ["[skip ci]", "[wip]"]

    def test_limits_must_be_positive(self):
        with pytest.raises(ValidationError):
            CommitsConfig(header_max_length=0)


class TestChangelogConfig:
    def test_defaults(self):
        config = ChangelogConfig()

        assert config.enabled is True
        assert config.include_sha is True


class TestVersionConfig:
    def test_defaults(self):
        config = VersionConfig()

        assert config.initial_version == "0.1.0"
        assert config.tag_prefix == "v"

    def test_invalid_initial_version(self):
        with pytest.raises(ValidationError):
            VersionConfig(initial_version="one")


class TestLoadPyprojectToml:
    """Tests for load_pyproject_toml()."""

    def test_load_valid_toml(self, temp_git_repo_with_pyproject: Path):
        data = load_pyproject_toml(temp_git_repo_with_pyproject / "pyproject.toml")

        assert data["project"]["name"] == "test-project"

    def test_load_nonexistent_raises(self, tmp_path: Path):
        with pytest.raises(ConfigNotFoundError):
            load_pyproject_toml(tmp_path / "nonexistent.toml")

    def test_invalid_toml_raises(self, tmp_path: Path):
        path = tmp_path / "pyproject.toml"
        path.write_text("[tool.semrel\n")

        with pytest.raises(ConfigValidationError, match="Invalid TOML"):
            load_pyproject_toml(path)


class TestFindPyprojectToml:
    """Tests for find_pyproject_toml()."""

    def test_find_in_current_dir(self, temp_git_repo_with_pyproject: Path):
        found = find_pyproject_toml(temp_git_repo_with_pyproject)
        assert found.name == "pyproject.toml"

    def test_find_in_parent_dir(self, temp_git_repo_with_pyproject: Path):
        """Find pyproject.toml in a parent directory."""
        subdir = temp_git_repo_with_pyproject / "src" / "package"
        subdir.mkdir(parents=True)

        found = find_pyproject_toml(subdir)
        assert found == (temp_git_repo_with_pyproject / "pyproject.toml").resolve()

    def test_not_found_raises(self, tmp_path: Path):
        with pytest.raises(ConfigNotFoundError):
            find_pyproject_toml(tmp_path)


class TestExtractSemrelConfig:
    def test_extract_existing_config(self):
        pyproject = {"tool": {"semrel": {"default_branch": "trunk"}}}

        assert extract_semrel_config(pyproject) == {"default_branch": "trunk"}

    def test_extract_missing_config(self):
        assert extract_semrel_config({"project": {"name": "test"}}) == {}


class TestLoadConfig:
    """Tests for load_config()."""

    def test_load_with_config(self, temp_git_repo_with_pyproject: Path):
        config = load_config(temp_git_repo_with_pyproject)

        assert isinstance(config, SemrelConfig)
        assert config.policy_for("develop").prerelease_tag == "beta"

    def test_load_from_file_path(self, temp_git_repo_with_pyproject: Path):
        config = load_config(temp_git_repo_with_pyproject / "pyproject.toml")

        assert config.default_branch == "main"

    def test_load_defaults_when_no_config(self, tmp_path: Path):
        (tmp_path / "pyproject.toml").write_text('[project]\nname = "test"\nversion = "1.0.0"\n')

        config = load_config(tmp_path)

        assert config == SemrelConfig()

    def test_invalid_config_raises(self, tmp_path: Path):
        (tmp_path / "pyproject.toml").write_text(
            '[[tool.semrel.branches]]\nname = "develop"\nis_release = false\n'
        )

        with pytest.raises(ConfigValidationError, match="tool.semrel"):
            load_config(tmp_path)
