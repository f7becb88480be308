"""
Shell command adapters — run manager executables and query their versions.

This is the production execution boundary. Commands inherit the
terminal (stdin/stdout/stderr) because package managers are
interactive and stream progress.
"""

from __future__ import annotations

import logging
import shutil
import subprocess
import time
from pathlib import Path

from jsdelegate.adapters.base import (
    CommandRunner,
    PathLookup,
    VersionProbeError,
    VersionReporter,
)
from jsdelegate.core.models.action import Invocation, Receipt

logger = logging.getLogger(__name__)


class SubprocessCommandRunner(CommandRunner):
    """Execute invocations as child processes attached to the terminal.

    Args:
        timeout: Optional timeout in seconds (default: none, installs
            can legitimately take a long time).
    """

    def __init__(self, timeout: int | None = None):
        self._timeout = timeout

    @property
    def name(self) -> str:
        return "subprocess"

    def run(self, invocation: Invocation) -> Receipt:
        cwd = invocation.cwd
        if cwd and not Path(cwd).is_dir():
            return Receipt.failure(
                program=invocation.program,
                error=f"Working directory does not exist: {cwd}",
            )

        logger.debug("Executing: %s (cwd=%s)", invocation.command_line, cwd)
        start = time.monotonic()

        try:
            result = subprocess.run(
                [invocation.program, *invocation.argv],
                cwd=cwd,
                timeout=self._timeout,
            )
        except FileNotFoundError:
            return Receipt.failure(
                program=invocation.program,
                error=f"Executable not found: {invocation.program}",
                metadata={"command": invocation.command_line},
            )
        except subprocess.TimeoutExpired:
            return Receipt.failure(
                program=invocation.program,
                error=f"Command timed out after {self._timeout}s",
                metadata={"command": invocation.command_line, "timeout": self._timeout},
            )
        except Exception as e:
            return Receipt.failure(
                program=invocation.program,
                error=f"Command execution error: {e}",
                metadata={"command": invocation.command_line},
            )

        elapsed_ms = int((time.monotonic() - start) * 1000)
        metadata = {"command": invocation.command_line}

        if result.returncode == 0:
            return Receipt.success(
                program=invocation.program,
                return_code=0,
                duration_ms=elapsed_ms,
                metadata=metadata,
            )
        return Receipt.failure(
            program=invocation.program,
            error=f"Command exited with code {result.returncode}",
            return_code=result.returncode,
            duration_ms=elapsed_ms,
            metadata=metadata,
        )


class SubprocessVersionReporter(VersionReporter):
    """Runs ``<program> --version`` and returns its stdout."""

    def __init__(self, timeout: int = 10):
        self._timeout = timeout

    def version(self, program: str, cwd: str = ".") -> str:
        try:
            result = subprocess.run(
                [program, "--version"],
                cwd=cwd,
                capture_output=True,
                text=True,
                timeout=self._timeout,
            )
        except (FileNotFoundError, subprocess.TimeoutExpired, OSError) as e:
            raise VersionProbeError(f"{program} --version failed: {e}") from e

        if result.returncode != 0:
            raise VersionProbeError(
                f"{program} --version exited with code {result.returncode}: "
                f"{result.stderr.strip()}"
            )
        return result.stdout


class WhichPathLookup(PathLookup):
    """PATH resolution via ``shutil.which``. Never executes anything."""

    def which(self, program: str) -> str | None:
        return shutil.which(program)
