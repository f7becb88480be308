"""
Detection pipeline — ordered strategies, first hit wins.

Each strategy answers one question ("is there an override?", "is there
a lockfile?", "what is on PATH?") and reports a DetectionResult or
None. Precedence lives in the order of the list, nowhere else.

Not-found advances to the next strategy. Only an invalid override
(InvalidOverrideError) or an unexpected filesystem error stops the
pipeline early. Exhaustion raises NoManagerDetected.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from pathlib import Path

from jsdelegate.adapters.base import PathLookup, VersionReporter
from jsdelegate.core.models.manager import (
    PATH_PROBE_ORDER,
    DetectionResult,
    DetectionSource,
    LockfileKind,
    ManagerDialect,
    PackageManager,
)
from jsdelegate.core.models.state import DispatchState
from jsdelegate.core.services.detection.lockfile import scan_lockfile
from jsdelegate.core.services.detection.override import parse_override
from jsdelegate.core.services.detection.path_probe import probe_path
from jsdelegate.core.services.detection.runtime_pin import detect_runtime_pin
from jsdelegate.core.services.detection.yarn_version import (
    YarnVersionError,
    probe_yarn_dialect,
)

logger = logging.getLogger(__name__)


class NoManagerDetected(LookupError):
    """No strategy could resolve a manager.

    Attributes:
        lockfile_hint: A lockfile that was found but whose manager
            was not installed, if any.
    """

    def __init__(self, message: str = "no package manager detected", lockfile_hint: LockfileKind | None = None):
        super().__init__(message)
        self.lockfile_hint = lockfile_hint


class DetectionStrategy(ABC):
    """One detection source.

    Strategies share a version reporter so any of them can turn
    ``yarn`` into a concrete dialect.
    """

    state: DispatchState
    source: DetectionSource

    def __init__(self, version_reporter: VersionReporter):
        self._versions = version_reporter
        self.trace: list[DispatchState] = []

    @abstractmethod
    def detect(self, project_dir: Path) -> DetectionResult | None:
        """Return a result, or None to let the next strategy try."""

    def _resolve(
        self,
        manager: PackageManager | ManagerDialect,
        project_dir: Path,
        lockfile: LockfileKind | None = None,
    ) -> DetectionResult | None:
        yarn_version = None
        if manager is PackageManager.YARN:
            self.trace.append(DispatchState.DISAMBIGUATING_VERSION)
            try:
                dialect, yarn_version = probe_yarn_dialect(self._versions, cwd=str(project_dir))
            except YarnVersionError as e:
                logger.warning("Cannot tell yarn classic from modern (%s), trying next source", e)
                return None
        elif isinstance(manager, PackageManager):
            dialect = ManagerDialect.for_manager(manager)
        else:
            dialect = manager

        return DetectionResult(
            dialect=dialect,
            source=self.source,
            lockfile=lockfile,
            yarn_version=yarn_version,
        )

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}>"


class EnvironmentOverrideStrategy(DetectionStrategy):
    """Explicit ``--agent`` / JPD_AGENT / config value."""

    state = DispatchState.CHECKING_OVERRIDE
    source = DetectionSource.ENVIRONMENT_OVERRIDE

    def __init__(self, value: str | None, version_reporter: VersionReporter):
        super().__init__(version_reporter)
        self.value = value

    def detect(self, project_dir: Path) -> DetectionResult | None:
        if not self.value:
            return None
        # InvalidOverrideError propagates: the user asked for something impossible
        target = parse_override(self.value)
        logger.debug("Override requests %s", target.value)
        return self._resolve(target, project_dir)


class LockfileStrategy(DetectionStrategy):
    """Lockfile in the project dir, provided its manager is installed."""

    state = DispatchState.DETECTING_LOCKFILE
    source = DetectionSource.LOCKFILE

    def __init__(self, path_lookup: PathLookup, version_reporter: VersionReporter):
        super().__init__(version_reporter)
        self._lookup = path_lookup
        self.hint: LockfileKind | None = None

    def detect(self, project_dir: Path) -> DetectionResult | None:
        kind = scan_lockfile(project_dir)
        if kind is None:
            return None

        manager = kind.manager
        if not self._lookup.has(manager.value):
            logger.warning(
                "Found %s but %s is not installed",
                kind.value, manager.value,
            )
            self.hint = kind
            return None

        return self._resolve(manager, project_dir, lockfile=kind)


class PathStrategy(DetectionStrategy):
    """First known manager executable on PATH."""

    state = DispatchState.DETECTING_PATH
    source = DetectionSource.PATH

    def __init__(
        self,
        path_lookup: PathLookup,
        version_reporter: VersionReporter,
        order: tuple[PackageManager, ...] = PATH_PROBE_ORDER,
    ):
        super().__init__(version_reporter)
        self._lookup = path_lookup
        self._order = order

    def detect(self, project_dir: Path) -> DetectionResult | None:
        manager = probe_path(self._lookup, self._order)
        if manager is None:
            return None
        return self._resolve(manager, project_dir)


def default_strategies(
    override: str | None,
    path_lookup: PathLookup,
    version_reporter: VersionReporter,
) -> list[DetectionStrategy]:
    """Override, then lockfile, then PATH."""
    return [
        EnvironmentOverrideStrategy(override, version_reporter),
        LockfileStrategy(path_lookup, version_reporter),
        PathStrategy(path_lookup, version_reporter),
    ]


def detect_manager(
    project_dir: Path,
    strategies: list[DetectionStrategy],
    path_lookup: PathLookup,
    trace: list[DispatchState] | None = None,
) -> DetectionResult:
    """Run ``strategies`` in order and return the first result.

    Args:
        project_dir: Directory to detect for.
        strategies: Ordered detection sources.
        path_lookup: Used for the Volta annotation on the result.
        trace: If given, visited states are appended to it.

    Raises:
        NoManagerDetected: Every strategy reported not-found.
        InvalidOverrideError: The override names no known manager.
        OSError: Unexpected filesystem error while scanning.
    """
    visited = trace if trace is not None else []
    hint: LockfileKind | None = None

    for strategy in strategies:
        visited.append(strategy.state)
        strategy.trace = visited
        result = strategy.detect(project_dir)
        hint = hint or getattr(strategy, "hint", None)
        if result is not None:
            pinned = detect_runtime_pin(path_lookup)
            logger.debug(
                "Resolved %s via %s%s",
                result.dialect.value, result.source.value,
                " (volta present)" if pinned else "",
            )
            return result.with_runtime_pin(pinned)

    raise NoManagerDetected(lockfile_hint=hint)
