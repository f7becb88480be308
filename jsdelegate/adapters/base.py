"""
Adapter base — the capability contracts between the dispatcher and the world.

The dispatcher only talks to the outside through these interfaces,
never directly to subprocesses, terminals or PATH. Production and test
implementations are two variants of the same interface, injected
through constructors.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from jsdelegate.core.models.action import Invocation, Receipt


class VersionProbeError(RuntimeError):
    """Raised when a manager cannot report its version."""


class PromptAborted(RuntimeError):
    """Raised when the user aborts an interactive prompt."""


class CommandRunner(ABC):
    """Execution boundary: runs one command in a working directory.

    To create a new runner:
        1. Subclass CommandRunner
        2. Implement name, run
        3. Inject it into the Dispatcher
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """The runner identifier (e.g., 'subprocess', 'mock')."""

    @abstractmethod
    def run(self, invocation: Invocation) -> Receipt:
        """Execute the invocation and return a receipt.

        MUST never raise exceptions. All failures are captured
        in the Receipt with status='failed'.
        """

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} name={self.name!r}>"


class VersionReporter(ABC):
    """Asks a manager executable for its version string."""

    @abstractmethod
    def version(self, program: str, cwd: str = ".") -> str:
        """Return the raw version output of ``program --version``.

        Raises:
            VersionProbeError: If the version could not be obtained.
        """


class TextInput(ABC):
    """Blocking interactive input."""

    @abstractmethod
    def ask(self, title: str, description: str = "") -> str:
        """Prompt for a free-form line.

        Raises:
            PromptAborted: If the user cancels.
        """

    @abstractmethod
    def choose(self, title: str, options: list[str]) -> str:
        """Prompt for one of ``options``.

        Raises:
            PromptAborted: If the user cancels.
        """


class PathLookup(ABC):
    """Resolves executable names on the search path without running them."""

    @abstractmethod
    def which(self, program: str) -> str | None:
        """Absolute path of ``program``, or None if not resolvable."""

    def has(self, program: str) -> bool:
        return self.which(program) is not None
