"""
Configuration loader — reads jpd.yml into a DelegatorConfig.

The file is optional. It is searched from the project directory
upward so that running from a sub-folder still picks up the
repository's preferences.
"""

from __future__ import annotations

import logging
from pathlib import Path

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

logger = logging.getLogger(__name__)

# Accepted config filenames, in lookup order
CONFIG_FILES = ("jpd.yml", ".jpd.yml")


class ConfigError(Exception):
    """Raised when configuration is invalid or missing."""


class DelegatorConfig(BaseModel):
    """Per-project delegator preferences.

    Attributes:
        agent:                Preferred manager (same values as JPD_AGENT).
        volta:                Route install commands through Volta when present.
        auto_install:         Force the run preflight on (True) or off (False).
        auto_install_scripts: Scripts that get the preflight by default.
        log_level:            Default log level when no flag / env is set.
        log_file:             File that receives DEBUG logs (JPD_LOG_FILE wins).
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    agent: str | None = None
    volta: bool = True
    auto_install: bool | None = None
    auto_install_scripts: tuple[str, ...] = Field(default=("dev", "start"))
    log_level: str | None = None
    log_file: str | None = None


def find_config_file(start_dir: Path | None = None) -> Path | None:
    """Search for jpd.yml starting from the given directory, walking up.

    Args:
        start_dir: Directory to start searching from (default: cwd).

    Returns:
        Path to the config file, or None if not found.
    """
    current = (start_dir or Path.cwd()).resolve()

    for _ in range(20):  # safety limit
        for name in CONFIG_FILES:
            candidate = current / name
            if candidate.is_file():
                return candidate
        parent = current.parent
        if parent == current:
            break  # filesystem root
        current = parent

    return None


def load_config(path: Path | None = None, start_dir: Path | None = None) -> DelegatorConfig:
    """Load and validate delegator configuration.

    Args:
        path: Explicit path to a config file. If None, searches upward
            from ``start_dir``.
        start_dir: Where the upward search begins (default: cwd).

    Returns:
        Validated DelegatorConfig (defaults when no file exists).

    Raises:
        ConfigError: If an explicit file is missing or any file is invalid.
    """
    if path is None:
        path = find_config_file(start_dir)
        if path is None:
            logger.debug("No %s found, using defaults", CONFIG_FILES[0])
            return DelegatorConfig()

    if not path.is_file():
        raise ConfigError(f"Config file not found: {path}")

    logger.debug("Loading delegator config from %s", path)

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        return DelegatorConfig()

    if not isinstance(data, dict):
        raise ConfigError(f"Expected a YAML mapping in {path}, got {type(data).__name__}")

    try:
        config = DelegatorConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration in {path}: {e}") from e

    logger.info("Loaded delegator config from %s", path)
    return config
