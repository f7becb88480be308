"""
Domain models — Pydantic types for the package delegator.

All models are re-exported here for convenient access:

    from jsdelegate.core.models import ManagerDialect, Intent, DetectionResult
"""

from jsdelegate.core.models.action import Invocation, Receipt
from jsdelegate.core.models.manager import (
    PATH_PROBE_ORDER,
    DetectionResult,
    DetectionSource,
    Intent,
    LockfileKind,
    ManagerDialect,
    PackageManager,
)
from jsdelegate.core.models.state import DispatchState
from jsdelegate.core.models.template import CommandTemplate, IntentParams

__all__ = [
    # template.py
    "CommandTemplate",
    # manager.py
    "DetectionResult",
    "DetectionSource",
    # state.py
    "DispatchState",
    "Intent",
    "IntentParams",
    # action.py
    "Invocation",
    "LockfileKind",
    "ManagerDialect",
    "PATH_PROBE_ORDER",
    "PackageManager",
    "Receipt",
]
