"""Load semrel configuration from pyproject.toml."""

from __future__ import annotations

import logging
import tomllib
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from semrel.config.models import SemrelConfig
from semrel.exceptions import ConfigNotFoundError, ConfigValidationError

logger = logging.getLogger(__name__)

TOOL_SECTION = "semrel"


def find_pyproject_toml(start: Path | None = None) -> Path:
    """Find pyproject.toml by walking up from ``start``.

    Args:
        start: Directory to start searching from (defaults to cwd)

    Returns:
        Path to the nearest pyproject.toml

    Raises:
        ConfigNotFoundError: If no pyproject.toml is found
    """
    current = (start or Path.cwd()).resolve()
    for directory in (current, *current.parents):
        candidate = directory / "pyproject.toml"
        if candidate.is_file():
            return candidate
    raise ConfigNotFoundError(f"No pyproject.toml found in {current} or any parent directory")


def load_pyproject_toml(path: Path) -> dict[str, Any]:
    """Read and parse a pyproject.toml file.

    Raises:
        ConfigNotFoundError: If the file does not exist
        ConfigValidationError: If the file is not valid TOML
    """
    if not path.is_file():
        raise ConfigNotFoundError(f"File not found: {path}")
    try:
        with path.open("rb") as f:
            return tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigValidationError(f"Invalid TOML in {path}: {e}") from e


def extract_semrel_config(pyproject: dict[str, Any]) -> dict[str, Any]:
    """Return the ``[tool.semrel]`` table, or an empty dict."""
    section = pyproject.get("tool", {}).get(TOOL_SECTION, {})
    return dict(section)


def load_config(path: Path | None = None) -> SemrelConfig:
    """Load configuration for the project at ``path``.

    Args:
        path: Project directory, or a pyproject.toml file

    Returns:
        Validated configuration (defaults when no section exists)

    Raises:
        ConfigNotFoundError: If no pyproject.toml is found
        ConfigValidationError: If the configuration is invalid
    """
    if path is not None and path.is_file():
        pyproject_path = path
    else:
        pyproject_path = find_pyproject_toml(path)

    data = extract_semrel_config(load_pyproject_toml(pyproject_path))
    if not data:
        logger.debug("No [tool.%s] section in %s, using defaults", TOOL_SECTION, pyproject_path)

    try:
        return SemrelConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigValidationError(f"Invalid [tool.{TOOL_SECTION}] configuration: {e}") from e
