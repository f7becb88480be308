"""
Yarn version disambiguation — classic (1.x) vs modern (2.x+).

The version string comes from an injected VersionReporter, never from
a direct subprocess call here.
"""

from __future__ import annotations

import logging
import re

from jsdelegate.adapters.base import VersionProbeError, VersionReporter
from jsdelegate.core.models.manager import ManagerDialect

logger = logging.getLogger(__name__)

_MAJOR_RE = re.compile(r"\d+")


class YarnVersionError(ValueError):
    """Raised when yarn's version cannot be obtained or classified."""


def parse_yarn_major(raw: str) -> int:
    """Leading major component of a yarn version string.

    Tolerates surrounding whitespace, a ``v`` or ``berry-`` prefix and
    trailing pre-release noise (``4.0.0-rc.1``).

    Raises:
        YarnVersionError: If no digits are found.
    """
    text = raw.strip()
    text = text.removeprefix("berry-")
    match = _MAJOR_RE.search(text)
    if match is None:
        raise YarnVersionError(f"unrecognized yarn version {raw.strip()!r}")
    return int(match.group())


def classify_yarn(raw: str) -> ManagerDialect:
    """1 → yarn-classic, 2 and above → yarn-modern.

    Raises:
        YarnVersionError: Unparseable string or major version 0.
    """
    major = parse_yarn_major(raw)
    if major == 1:
        return ManagerDialect.YARN_CLASSIC
    if major >= 2:
        return ManagerDialect.YARN_MODERN
    raise YarnVersionError(f"unsupported yarn major version {major} ({raw.strip()!r})")


def probe_yarn_dialect(reporter: VersionReporter, cwd: str = ".") -> tuple[ManagerDialect, str]:
    """Ask yarn for its version and classify it.

    Returns:
        (dialect, raw version string)

    Raises:
        YarnVersionError: Probe failed or the output made no sense.
    """
    try:
        raw = reporter.version("yarn", cwd=cwd)
    except VersionProbeError as e:
        raise YarnVersionError(str(e)) from e

    dialect = classify_yarn(raw)
    logger.debug("yarn %s → %s", raw.strip(), dialect.value)
    return dialect, raw.strip()
