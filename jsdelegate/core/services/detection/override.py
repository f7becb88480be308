"""
Environment override — an explicitly requested manager.

Sources, first non-empty wins:
    --agent / -a flag  >  JPD_AGENT env var  >  ``agent:`` in jpd.yml
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping

from jsdelegate.core.config.loader import ConfigError
from jsdelegate.core.models.manager import ManagerDialect, PackageManager

logger = logging.getLogger(__name__)

AGENT_ENV_VAR = "JPD_AGENT"


class InvalidOverrideError(ConfigError):
    """Raised when the override names no known manager."""


def override_value(
    flag: str | None = None,
    environ: Mapping[str, str] | None = None,
    config_agent: str | None = None,
) -> tuple[str, str] | None:
    """The raw override and where it came from, or None if unset.

    Returns:
        (value, origin) with origin one of ``flag``, ``env``, ``config``.
    """
    env = os.environ if environ is None else environ
    for value, origin in (
        (flag, "flag"),
        (env.get(AGENT_ENV_VAR), "env"),
        (config_agent, "config"),
    ):
        if value and value.strip():
            return value.strip(), origin
    return None


def parse_override(value: str) -> ManagerDialect | PackageManager:
    """Map an override value to a dialect, or to ``yarn`` (needs a probe).

    Raises:
        InvalidOverrideError: If the value names nothing known.
    """
    name = value.strip().lower()
    if name == PackageManager.YARN.value:
        return PackageManager.YARN
    try:
        return ManagerDialect(name)
    except ValueError:
        allowed = ", ".join([m.value for m in PackageManager] + [
            ManagerDialect.YARN_CLASSIC.value,
            ManagerDialect.YARN_MODERN.value,
        ])
        raise InvalidOverrideError(
            f"Invalid package manager override {value!r}. Must be one of: {allowed}"
        ) from None
