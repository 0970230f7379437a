"""Configuration loading.

Configuration is read from, in order of precedence:

1. ``gitpaper.toml`` in the project directory
2. ``[tool.gitpaper]`` in the nearest ``pyproject.toml``
3. Built-in defaults
"""

from __future__ import annotations

import logging
import tomllib
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from gitpaper.config.models import GitpaperConfig
from gitpaper.exceptions import ConfigNotFoundError, ConfigValidationError

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "gitpaper.toml"
PYPROJECT_FILENAME = "pyproject.toml"
TOOL_KEY = "gitpaper"


def find_pyproject_toml(start: Path | None = None) -> Path:
    """Find pyproject.toml in ``start`` or one of its parents.

    Raises:
        ConfigNotFoundError: If no pyproject.toml exists up to the filesystem root
    """
    current = (start or Path.cwd()).resolve()
    for directory in (current, *current.parents):
        candidate = directory / PYPROJECT_FILENAME
        if candidate.is_file():
            return candidate
    raise ConfigNotFoundError(f"No {PYPROJECT_FILENAME} found in {current} or its parents")


def load_toml(path: Path) -> dict[str, Any]:
    """Read a TOML file.

    Raises:
        ConfigNotFoundError: If the file does not exist
        ConfigValidationError: If the file is not valid TOML
    """
    if not path.is_file():
        raise ConfigNotFoundError(f"Configuration file not found: {path}")
    try:
        with path.open("rb") as f:
            return tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigValidationError(f"Invalid TOML in {path}: {e}") from e


def load_pyproject_toml(path: Path) -> dict[str, Any]:
    return load_toml(path)


def extract_gitpaper_config(pyproject: dict[str, Any]) -> dict[str, Any]:
    """Return the ``[tool.gitpaper]`` table, or an empty dict."""
    return dict(pyproject.get("tool", {}).get(TOOL_KEY, {}))


def _read_raw_config(project_path: Path) -> dict[str, Any]:
    standalone = project_path / CONFIG_FILENAME
    if standalone.is_file():
        logger.debug("Loading configuration from %s", standalone)
        return load_toml(standalone)

    try:
        pyproject_path = find_pyproject_toml(project_path)
    except ConfigNotFoundError:
        logger.debug("No configuration file found, using defaults")
        return {}

    logger.debug("Loading configuration from %s", pyproject_path)
    return extract_gitpaper_config(load_pyproject_toml(pyproject_path))


def load_config(
    path: Path | None = None,
    overrides: dict[str, Any] | None = None,
) -> GitpaperConfig:
    """Load and validate the configuration for a project.

    Args:
        path: Project directory (defaults to the current directory)
        overrides: Top-level values that take precedence over the files,
            typically command line options. ``None`` values are ignored.

    Returns:
        Validated configuration

    Raises:
        ConfigValidationError: If the configuration is invalid
    """
    project_path = path or Path.cwd()
    raw = _read_raw_config(project_path)

    if overrides:
        raw.update({key: value for key, value in overrides.items() if value is not None})

    try:
        return GitpaperConfig.model_validate(raw)
    except ValidationError as e:
        raise ConfigValidationError(f"Invalid gitpaper configuration:\n{e}") from e
