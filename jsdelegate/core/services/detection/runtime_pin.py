"""
Runtime pin overlay — Volta.

Volta's presence annotates a detection result; it never selects a
dialect. It only changes how install commands are launched.
"""

from __future__ import annotations

from jsdelegate.adapters.base import PathLookup
from jsdelegate.core.models.manager import DetectionResult, ManagerDialect

VOLTA_PROGRAM = "volta"

# Managers Volta can pin. bun and deno manage their own toolchains.
VOLTA_DIALECTS = frozenset({
    ManagerDialect.NPM,
    ManagerDialect.PNPM,
    ManagerDialect.YARN_CLASSIC,
    ManagerDialect.YARN_MODERN,
})


def detect_runtime_pin(lookup: PathLookup) -> bool:
    """Whether Volta is resolvable on PATH."""
    return lookup.has(VOLTA_PROGRAM)


def volta_prefix(detection: DetectionResult, enabled: bool = True) -> tuple[str, ...]:
    """``("volta", "run")`` when the install should go through Volta, else ``()``."""
    if enabled and detection.runtime_pin and detection.dialect in VOLTA_DIALECTS:
        return (VOLTA_PROGRAM, "run")
    return ()
