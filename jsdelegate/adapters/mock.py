"""
Mock adapters — test doubles for every collaborator capability.

Used in tests (and ``--dry-run`` style harnesses) to simulate the
outside world without touching processes, terminals or PATH.
"""

from __future__ import annotations

from collections.abc import Iterable

from jsdelegate.adapters.base import (
    CommandRunner,
    PathLookup,
    PromptAborted,
    TextInput,
    VersionProbeError,
    VersionReporter,
)
from jsdelegate.core.models.action import Invocation, Receipt


class MockCommandRunner(CommandRunner):
    """Universal mock runner.

    By default, returns success for everything. Can be configured
    to fail for specific programs.
    """

    def __init__(self, runner_name: str = "mock", default_output: str = "[mock] executed"):
        self._name = runner_name
        self._default_output = default_output
        self._failures: dict[str, Receipt] = {}
        self._call_log: list[Invocation] = []

    @property
    def name(self) -> str:
        return self._name

    @property
    def call_log(self) -> list[Invocation]:
        """All invocations this mock has received."""
        return self._call_log

    @property
    def call_count(self) -> int:
        """Number of times run has been called."""
        return len(self._call_log)

    @property
    def command_lines(self) -> list[list[str]]:
        """Received invocations as ``[program, *argv]`` lists."""
        return [[inv.program, *inv.argv] for inv in self._call_log]

    def set_failure(self, program: str, error: str = "Mock failure", return_code: int = 1) -> None:
        """Configure every invocation of ``program`` to fail."""
        self._failures[program] = Receipt.failure(
            program=program,
            error=error,
            return_code=return_code,
        )

    def run(self, invocation: Invocation) -> Receipt:
        self._call_log.append(invocation)

        if invocation.program in self._failures:
            return self._failures[invocation.program]

        return Receipt.success(
            program=invocation.program,
            output=self._default_output,
            return_code=0,
            metadata={"mock": True, "command": invocation.command_line},
        )


class StaticVersionReporter(VersionReporter):
    """Reports fixed version strings per program.

    Programs mapped to None (or missing) raise VersionProbeError.
    """

    def __init__(self, versions: dict[str, str | None] | None = None):
        self._versions = dict(versions or {})
        self.calls: list[str] = []

    def version(self, program: str, cwd: str = ".") -> str:
        self.calls.append(program)
        value = self._versions.get(program)
        if value is None:
            raise VersionProbeError(f"{program} --version unavailable")
        return value


class ScriptedTextInput(TextInput):
    """Replays canned answers in order; raises PromptAborted when exhausted."""

    def __init__(self, answers: Iterable[str] = ()):
        self._answers = list(answers)
        self.prompts: list[str] = []

    def _next(self, title: str) -> str:
        self.prompts.append(title)
        if not self._answers:
            raise PromptAborted(f"{title}: no scripted answer left")
        return self._answers.pop(0)

    def ask(self, title: str, description: str = "") -> str:
        return self._next(title)

    def choose(self, title: str, options: list[str]) -> str:
        answer = self._next(title)
        if answer not in options:
            raise PromptAborted(f"{answer!r} is not one of {options}")
        return answer


class FakePathLookup(PathLookup):
    """PATH made of an explicit set of program names."""

    def __init__(self, programs: Iterable[str] = ()):
        self._programs = set(programs)
        self.lookups: list[str] = []

    def which(self, program: str) -> str | None:
        self.lookups.append(program)
        if program in self._programs:
            return f"/usr/bin/{program}"
        return None
