"""Configuration loader for npm build-info extraction.

Reads settings from a JSON file (default: npm-buildinfo.json in the working
directory) and validates the structure. All fields are optional:

- ``npmExecutable``: path to npm; looked up on PATH when absent
- ``npmArgs``: extra arguments for ``npm ls`` and ``npm config``
- ``calculateChecksums``: resolve tarball checksums through the npm cache
  (default True)
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

from .errors import NpmBuildInfoError

DEFAULT_CONFIG_FILENAME = "npm-buildinfo.json"
CONFIG_PATH_ENV_VAR = "NPM_BUILDINFO_CONFIG"


class ConfigError(NpmBuildInfoError):
    """Raised when the configuration file cannot be loaded or is invalid."""


@dataclass(slots=True, frozen=True)
class Settings:
    """Top-level settings container."""

    npm_executable: str | None = None
    npm_args: tuple[str, ...] = field(default_factory=tuple)
    calculate_checksums: bool = True

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Settings:
        """Create Settings from a dictionary, validating field types."""
        npm_executable = data.get("npmExecutable")
        if npm_executable is not None and (
            not isinstance(npm_executable, str) or not npm_executable
        ):
            raise ConfigError("'npmExecutable' must be a non-empty string")

        npm_args = data.get("npmArgs", [])
        if not isinstance(npm_args, list) or not all(isinstance(a, str) for a in npm_args):
            raise ConfigError("'npmArgs' must be an array of strings")

        calculate_checksums = data.get("calculateChecksums", True)
        if not isinstance(calculate_checksums, bool):
            raise ConfigError("'calculateChecksums' must be a boolean")

        return cls(
            npm_executable=npm_executable,
            npm_args=tuple(npm_args),
            calculate_checksums=calculate_checksums,
        )

    def with_overrides(
        self,
        *,
        npm_args: list[str] | None = None,
        calculate_checksums: bool | None = None,
    ) -> Settings:
        """Return a copy with command-line overrides applied."""
        updated = self
        if npm_args:
            updated = replace(updated, npm_args=(*updated.npm_args, *npm_args))
        if calculate_checksums is not None:
            updated = replace(updated, calculate_checksums=calculate_checksums)
        return updated


def _resolve_config_path(path: Path | str | None = None) -> tuple[Path, bool]:
    """Resolve the configuration file path.

    Priority:
    1. Explicit path argument
    2. NPM_BUILDINFO_CONFIG environment variable
    3. Default path (npm-buildinfo.json in the working directory)

    The flag tells whether the file was asked for explicitly and so must exist.
    """
    if path is not None:
        return Path(path), True

    env_path = os.environ.get(CONFIG_PATH_ENV_VAR)
    if env_path:
        return Path(env_path), True

    return Path.cwd() / DEFAULT_CONFIG_FILENAME, False


def load_settings(path: Path | str | None = None) -> Settings:
    """Load and validate settings from a JSON file.

    Args:
        path: Optional path to the config file. If not provided, uses the
            NPM_BUILDINFO_CONFIG env var or falls back to npm-buildinfo.json;
            a missing default file yields the default settings.

    Returns:
        A validated Settings object.

    Raises:
        ConfigError: If the file cannot be read or contains invalid data.
    """
    config_path, required = _resolve_config_path(path)

    if not config_path.exists():
        if required:
            raise ConfigError(f"Configuration file not found: {config_path}")
        return Settings()

    try:
        content = config_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Failed to read configuration file: {exc}") from exc

    try:
        data = json.loads(content)
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Invalid JSON in configuration file: {exc}") from exc

    if not isinstance(data, dict):
        raise ConfigError("Configuration must be a JSON object")

    return Settings.from_dict(data)
