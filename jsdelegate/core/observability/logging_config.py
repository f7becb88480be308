"""
Logging for jpd — diagnostics on stderr, next to the manager's own output.

Package managers stream their progress to the same terminal, so every
console line jpd writes is tagged to tell the two apart:

    jpd: warning: pnpm-lock.yaml found but pnpm is not on PATH
    jpd: Using pnpm (lockfile)
    jpd debug [detection.pipeline]: lockfile strategy found nothing

Level precedence:
    --debug / JPD_MODE=debug  >  --verbose  >  --quiet
        >  JPD_LOG_LEVEL  >  jpd.yml log_level  >  WARNING

A log file (JPD_LOG_FILE, else jpd.yml ``log_file``) always records
DEBUG with timestamps, whatever the console shows.
"""

from __future__ import annotations

import logging
import os
import sys
from collections.abc import Mapping
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from jsdelegate.core.config.build_info import BuildInfo
    from jsdelegate.core.config.loader import DelegatorConfig

LOG_LEVEL_ENV = "JPD_LOG_LEVEL"
LOG_FILE_ENV = "JPD_LOG_FILE"

_TAG = "jpd"
_FILE_FMT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"
_FILE_DATEFMT = "%Y-%m-%d %H:%M:%S"

# Dropped from logger names on the console at DEBUG
_NAME_PREFIXES = ("jsdelegate.core.services.", "jsdelegate.core.", "jsdelegate.")


class ConsoleFormatter(logging.Formatter):
    """``jpd: ...`` lines; module-tagged when ``detailed``."""

    def __init__(self, detailed: bool = False):
        super().__init__()
        self.detailed = detailed

    def format(self, record: logging.LogRecord) -> str:
        level = record.levelname.lower()
        if self.detailed:
            head = f"{_TAG} {level} [{_short_name(record.name)}]"
        elif record.levelno >= logging.WARNING:
            head = f"{_TAG}: {level}"
        else:
            head = _TAG

        text = f"{head}: {record.getMessage()}"
        if record.exc_info:
            text = f"{text}\n{self.formatException(record.exc_info)}"
        return text


def _short_name(name: str) -> str:
    for prefix in _NAME_PREFIXES:
        if name.startswith(prefix):
            return name[len(prefix):]
    return name


def resolve_level(
    debug: bool = False,
    verbose: bool = False,
    quiet: bool = False,
    env_level: str | None = None,
    config_level: str | None = None,
) -> str:
    """Pick the effective level name from flags, env and config."""
    if debug:
        return "DEBUG"
    if verbose:
        return "INFO"
    if quiet:
        return "ERROR"
    return env_level or config_level or "WARNING"


def setup_logging(
    config: DelegatorConfig,
    build_info: BuildInfo,
    debug: bool = False,
    verbose: bool = False,
    quiet: bool = False,
    environ: Mapping[str, str] | None = None,
) -> int:
    """Install jpd's handlers on the root logger, replacing any others.

    Args:
        config: Project config (``log_level``, ``log_file``).
        build_info: Startup metadata; debug mode forces DEBUG.
        debug, verbose, quiet: The CLI flags.
        environ: Where to read JPD_LOG_LEVEL / JPD_LOG_FILE (default: os.environ).

    Returns:
        The numeric console level.
    """
    env = os.environ if environ is None else environ
    level = _parse_level(resolve_level(
        debug=debug or build_info.is_debug,
        verbose=verbose,
        quiet=quiet,
        env_level=env.get(LOG_LEVEL_ENV),
        config_level=config.log_level,
    ))

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(level)
    console.setFormatter(ConsoleFormatter(detailed=level <= logging.DEBUG))

    root = logging.getLogger()
    root.handlers[:] = [console]
    root.setLevel(level)

    log_file = env.get(LOG_FILE_ENV) or config.log_file
    if log_file:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(_FILE_FMT, datefmt=_FILE_DATEFMT))
        root.addHandler(file_handler)
        root.setLevel(logging.DEBUG)

    return level


def _parse_level(level: str) -> int:
    numeric = logging.getLevelName(level.strip().upper())
    return numeric if isinstance(numeric, int) else logging.WARNING
