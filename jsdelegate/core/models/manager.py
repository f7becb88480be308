"""
Package manager models — dialects, lockfiles, intents, detection results.

A *dialect* is a package manager plus the major-version variant whose
command-line grammar it speaks.  Yarn is the only manager split in two:
classic (1.x) and modern (2.x+, "berry").
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict


class PackageManager(str, Enum):
    """Manager family, as named on the command line and on PATH."""

    DENO = "deno"
    BUN = "bun"
    PNPM = "pnpm"
    YARN = "yarn"
    NPM = "npm"


# PATH probe order. npm must stay last: any Node install ships it.
PATH_PROBE_ORDER: tuple[PackageManager, ...] = (
    PackageManager.DENO,
    PackageManager.BUN,
    PackageManager.PNPM,
    PackageManager.YARN,
    PackageManager.NPM,
)


class ManagerDialect(str, Enum):
    """A manager with its own command-line grammar."""

    NPM = "npm"
    YARN_CLASSIC = "yarn-classic"
    YARN_MODERN = "yarn-modern"
    PNPM = "pnpm"
    BUN = "bun"
    DENO = "deno"

    @property
    def manager(self) -> PackageManager:
        """The manager family this dialect belongs to."""
        if self in (ManagerDialect.YARN_CLASSIC, ManagerDialect.YARN_MODERN):
            return PackageManager.YARN
        return PackageManager(self.value)

    @property
    def program(self) -> str:
        """Canonical executable name (the invocation prefix)."""
        return self.manager.value

    @property
    def is_node(self) -> bool:
        """Whether the dialect installs into node_modules."""
        return self is not ManagerDialect.DENO

    @classmethod
    def for_manager(cls, manager: PackageManager) -> ManagerDialect:
        """Dialect for a manager whose grammar needs no disambiguation.

        Raises:
            ValueError: For yarn, which needs a version probe first.
        """
        if manager is PackageManager.YARN:
            raise ValueError("yarn needs a version probe to pick a dialect")
        return cls(manager.value)


class LockfileKind(str, Enum):
    """Recognized lockfile / config filenames, in scan order."""

    DENO_LOCK = "deno.lock"
    DENO_JSON = "deno.json"
    DENO_JSONC = "deno.jsonc"
    BUN_LOCKB = "bun.lockb"
    BUN_LOCK = "bun.lock"
    BUN_LOCK_JSON = "bun.lock.json"
    PNPM_LOCK_YAML = "pnpm-lock.yaml"
    YARN_LOCK = "yarn.lock"
    YARN_LOCK_JSON = "yarn.lock.json"
    PACKAGE_LOCK_JSON = "package-lock.json"
    NPM_SHRINKWRAP_JSON = "npm-shrinkwrap.json"

    @property
    def manager(self) -> PackageManager:
        return _LOCKFILE_MANAGERS[self]

    @property
    def needs_version_probe(self) -> bool:
        """Yarn lockfiles are shared by both dialects."""
        return self.manager is PackageManager.YARN


_LOCKFILE_MANAGERS: dict[LockfileKind, PackageManager] = {
    LockfileKind.DENO_LOCK: PackageManager.DENO,
    LockfileKind.DENO_JSON: PackageManager.DENO,
    LockfileKind.DENO_JSONC: PackageManager.DENO,
    LockfileKind.BUN_LOCKB: PackageManager.BUN,
    LockfileKind.BUN_LOCK: PackageManager.BUN,
    LockfileKind.BUN_LOCK_JSON: PackageManager.BUN,
    LockfileKind.PNPM_LOCK_YAML: PackageManager.PNPM,
    LockfileKind.YARN_LOCK: PackageManager.YARN,
    LockfileKind.YARN_LOCK_JSON: PackageManager.YARN,
    LockfileKind.PACKAGE_LOCK_JSON: PackageManager.NPM,
    LockfileKind.NPM_SHRINKWRAP_JSON: PackageManager.NPM,
}


class Intent(str, Enum):
    """Manager-agnostic operation requested by the user."""

    INSTALL = "install"
    RUN = "run"
    EXEC = "exec"
    DLX = "dlx"
    UPDATE = "update"
    UNINSTALL = "uninstall"
    CLEAN_INSTALL = "clean-install"
    AGENT = "agent"

    @property
    def installs(self) -> bool:
        """Install-class intents consult the dependency change cache."""
        return self in (Intent.INSTALL, Intent.CLEAN_INSTALL)


class DetectionSource(str, Enum):
    """How the dialect was chosen. Diagnostics only."""

    LOCKFILE = "lockfile"
    PATH = "path"
    ENVIRONMENT_OVERRIDE = "environment-override"
    RUNTIME_PIN = "runtime-pin"
    INTERACTIVE = "interactive"


class DetectionResult(BaseModel):
    """The resolved manager for one invocation. Never mutated."""

    model_config = ConfigDict(frozen=True)

    dialect: ManagerDialect
    source: DetectionSource
    lockfile: LockfileKind | None = None
    runtime_pin: bool = False       # Volta present (annotation only)
    yarn_version: str | None = None

    @property
    def program(self) -> str:
        return self.dialect.program

    def with_runtime_pin(self, pinned: bool) -> DetectionResult:
        """Copy annotated with the runtime pin signal."""
        return self.model_copy(update={"runtime_pin": pinned})

    def to_dict(self) -> dict:
        return {
            "dialect": self.dialect.value,
            "program": self.program,
            "source": self.source.value,
            "lockfile": self.lockfile.value if self.lockfile else None,
            "runtime_pin": self.runtime_pin,
            "yarn_version": self.yarn_version,
        }
