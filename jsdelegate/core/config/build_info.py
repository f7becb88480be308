"""
Build info — immutable process metadata, validated once at startup.

Built by the CLI entrypoint and passed explicitly to whatever needs
it. Nothing reads these values from module globals.
"""

from __future__ import annotations

import logging
import os
import re
from collections.abc import Mapping
from datetime import date

from pydantic import BaseModel, ConfigDict

from jsdelegate import __version__
from jsdelegate.core.config.loader import ConfigError

logger = logging.getLogger(__name__)

ALLOWED_MODES = ("development", "production", "debug")

_SEMVER_RE = re.compile(
    r"^v?(0|[1-9]\d*)\.(0|[1-9]\d*)\.(0|[1-9]\d*)"
    r"(?:-((?:0|[1-9]\d*|\d*[a-zA-Z-][0-9a-zA-Z-]*)"
    r"(?:\.(?:0|[1-9]\d*|\d*[a-zA-Z-][0-9a-zA-Z-]*))*))?"
    r"(?:\+([0-9a-zA-Z-]+(?:\.[0-9a-zA-Z-]+)*))?$"
)

_TRUTHY = {"1", "true", "yes", "on"}
_FALSY = {"", "0", "false", "no", "off"}


class BuildInfo(BaseModel):
    """Version, run mode, build date and CI flag of this process."""

    model_config = ConfigDict(frozen=True)

    version: str = __version__
    mode: str = "production"
    build_date: str = "unknown"
    ci: bool = False

    @property
    def is_debug(self) -> bool:
        return self.mode == "debug"

    @property
    def is_production(self) -> bool:
        return self.mode == "production"

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> BuildInfo:
        """Build and validate from JPD_MODE, JPD_BUILD_DATE and CI.

        Raises:
            ConfigError: If the mode or build date is malformed.
        """
        env = os.environ if environ is None else environ

        version = __version__.lstrip("v")
        if version != "dev" and not _SEMVER_RE.match(version):
            raise ConfigError(f"Invalid version {version!r}: must be semver (e.g. 1.2.3)")

        mode = env.get("JPD_MODE", "production").strip().lower() or "production"
        if mode not in ALLOWED_MODES:
            raise ConfigError(
                f"Invalid JPD_MODE {mode!r}. Must be one of: {', '.join(ALLOWED_MODES)}"
            )

        build_date = env.get("JPD_BUILD_DATE", "unknown").strip() or "unknown"
        if build_date != "unknown":
            try:
                date.fromisoformat(build_date)
            except ValueError as e:
                raise ConfigError(
                    f"Invalid JPD_BUILD_DATE {build_date!r}: must be YYYY-MM-DD or 'unknown'"
                ) from e

        ci_raw = env.get("CI", "").strip().lower()
        ci = ci_raw not in _FALSY
        if ci and ci_raw not in _TRUTHY:
            # Some CI systems set their own name (CI=drone, CI=woodpecker)
            logger.warning("Unrecognised CI value %r, assuming a CI environment", ci_raw)

        return cls(version=version, mode=mode, build_date=build_date, ci=ci)
