"""
Dispatch states — the steps one invocation passes through.

    start → checking-override → detecting-lockfile → disambiguating-version
          → detecting-path → awaiting-interactive → resolved → rendering
          → cache-check → dispatched | failed

Detection states are skipped once an earlier one resolves.
"""

from __future__ import annotations

from enum import Enum


class DispatchState(str, Enum):
    START = "start"
    CHECKING_OVERRIDE = "checking-override"
    DETECTING_LOCKFILE = "detecting-lockfile"
    DISAMBIGUATING_VERSION = "disambiguating-version"
    DETECTING_PATH = "detecting-path"
    AWAITING_INTERACTIVE = "awaiting-interactive"
    RESOLVED = "resolved"
    RENDERING = "rendering"
    CACHE_CHECK = "cache-check"
    DISPATCHED = "dispatched"
    FAILED = "failed"

    @property
    def terminal(self) -> bool:
        return self in (DispatchState.DISPATCHED, DispatchState.FAILED)
