"""Manager detection — override, lockfile, PATH, yarn version, Volta, prompt."""

from jsdelegate.core.services.detection.interactive import (
    InteractiveValidationError,
    resolve_interactively,
    validate_install_command,
)
from jsdelegate.core.services.detection.lockfile import scan_lockfile
from jsdelegate.core.services.detection.override import (
    AGENT_ENV_VAR,
    InvalidOverrideError,
    override_value,
    parse_override,
)
from jsdelegate.core.services.detection.path_probe import probe_path
from jsdelegate.core.services.detection.pipeline import (
    DetectionStrategy,
    EnvironmentOverrideStrategy,
    LockfileStrategy,
    NoManagerDetected,
    PathStrategy,
    default_strategies,
    detect_manager,
)
from jsdelegate.core.services.detection.runtime_pin import detect_runtime_pin, volta_prefix
from jsdelegate.core.services.detection.yarn_version import (
    YarnVersionError,
    classify_yarn,
    parse_yarn_major,
    probe_yarn_dialect,
)

__all__ = [
    "AGENT_ENV_VAR",
    "DetectionStrategy",
    "EnvironmentOverrideStrategy",
    "InteractiveValidationError",
    "InvalidOverrideError",
    "LockfileStrategy",
    "NoManagerDetected",
    "PathStrategy",
    "YarnVersionError",
    "classify_yarn",
    "default_strategies",
    "detect_manager",
    "detect_runtime_pin",
    "override_value",
    "parse_override",
    "parse_yarn_major",
    "probe_path",
    "probe_yarn_dialect",
    "resolve_interactively",
    "scan_lockfile",
    "validate_install_command",
    "volta_prefix",
]
