"""
Invocation and Receipt models — the execution contract.

Invocations represent a concrete command line to hand to the execution
boundary. Receipts represent results. The runner never raises: every
failure is captured in the Receipt.
"""

from __future__ import annotations

import shlex
from datetime import UTC, datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


def _now_iso() -> str:
    """Current UTC time as ISO string."""
    return datetime.now(UTC).isoformat()


class Invocation(BaseModel):
    """A fully rendered command: program, argument vector, working dir."""

    model_config = ConfigDict(frozen=True)

    program: str
    argv: tuple[str, ...] = ()
    cwd: str = "."

    @property
    def command_line(self) -> str:
        """Shell-quoted form, for display and logs."""
        return shlex.join([self.program, *self.argv])

    def prefixed(self, *prefix: str) -> Invocation:
        """Same command behind a launcher (``volta run npm ...``)."""
        if not prefix:
            return self
        return Invocation(
            program=prefix[0],
            argv=(*prefix[1:], self.program, *self.argv),
            cwd=self.cwd,
        )


class Receipt(BaseModel):
    """Result of handing an Invocation to the execution boundary."""

    program: str
    status: Literal["ok", "skipped", "failed"] = "ok"

    started_at: str = Field(default_factory=_now_iso)
    ended_at: str = Field(default_factory=_now_iso)
    duration_ms: int = 0

    output: str = ""
    error: str | None = None
    return_code: int | None = None

    metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def ok(self) -> bool:
        """Whether the command succeeded."""
        return self.status == "ok"

    @property
    def failed(self) -> bool:
        """Whether the command failed."""
        return self.status == "failed"

    @classmethod
    def success(
        cls,
        program: str,
        output: str = "",
        **kwargs: Any,
    ) -> Receipt:
        """Create a success receipt."""
        return cls(program=program, status="ok", output=output, **kwargs)

    @classmethod
    def failure(
        cls,
        program: str,
        error: str,
        **kwargs: Any,
    ) -> Receipt:
        """Create a failure receipt."""
        return cls(program=program, status="failed", error=error, **kwargs)

    @classmethod
    def skip(
        cls,
        program: str,
        reason: str = "",
        **kwargs: Any,
    ) -> Receipt:
        """Create a skip receipt."""
        return cls(program=program, status="skipped", output=reason, **kwargs)
