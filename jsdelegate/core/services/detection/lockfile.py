"""
Lockfile scanner — which manager wrote this project's dependency tree.

One directory, one pass, fixed order. Not recursive.
"""

from __future__ import annotations

import logging
from pathlib import Path

from jsdelegate.core.models.manager import LockfileKind

logger = logging.getLogger(__name__)


def _present(path: Path) -> bool:
    """stat() the path; only "does not exist" counts as absent."""
    try:
        path.stat()
    except (FileNotFoundError, NotADirectoryError):
        return False
    return True


def scan_lockfile(project_dir: Path) -> LockfileKind | None:
    """Return the first known lockfile present in ``project_dir``.

    Returns:
        The matching LockfileKind, or None when none exists.

    Raises:
        OSError: For filesystem errors other than absence
            (e.g. permission denied on the directory).
    """
    for kind in LockfileKind:
        if _present(project_dir / kind.value):
            logger.debug("Found %s in %s", kind.value, project_dir)
            return kind
    return None
