"""PATH prober — first known manager executable resolvable on the search path."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from jsdelegate.adapters.base import PathLookup
from jsdelegate.core.models.manager import PATH_PROBE_ORDER, PackageManager

logger = logging.getLogger(__name__)


def probe_path(
    lookup: PathLookup,
    order: Iterable[PackageManager] = PATH_PROBE_ORDER,
) -> PackageManager | None:
    """Return the first manager in ``order`` that resolves, else None.

    Resolution only: nothing found here is executed.
    """
    for manager in order:
        location = lookup.which(manager.value)
        if location:
            logger.debug("%s resolved on PATH at %s", manager.value, location)
            return manager
    return None
