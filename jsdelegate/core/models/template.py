"""
Command template models — argument skeletons per (dialect, intent).

Templates are fixed data: built once at import time and never mutated.

Placeholders inside ``argv``:
    {package}           single required package / binary / URL
    {packages}          zero or more packages, spread
    {packages@latest}   packages spread with an ``@latest`` suffix
    {script}            script / task name (required)
    {args}              passthrough arguments, spread
    {--args}            ``--`` followed by passthrough args, only if any
    {flags}             where option flags go (default: appended at end)
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

# Boolean options an intent may carry. Order is the flag emission order.
OPTION_NAMES: tuple[str, ...] = (
    "dev",
    "global_",
    "production",
    "frozen",
    "interactive",
    "latest",
    "if_present",
)

# Spelling used in user-facing messages.
OPTION_LABELS: dict[str, str] = {
    "dev": "--dev",
    "global_": "--global",
    "production": "--production",
    "frozen": "--frozen",
    "interactive": "--interactive",
    "latest": "--latest",
    "if_present": "--if-present",
}


class IntentParams(BaseModel):
    """Intent-specific parameters substituted into a template."""

    model_config = ConfigDict(frozen=True)

    packages: tuple[str, ...] = ()
    script: str = ""
    args: tuple[str, ...] = ()

    dev: bool = False
    global_: bool = False
    production: bool = False
    frozen: bool = False
    interactive: bool = False
    latest: bool = False
    if_present: bool = False

    @property
    def package(self) -> str:
        """First package (exec binary / dlx target)."""
        return self.packages[0] if self.packages else ""

    def enabled_options(self) -> list[str]:
        """Option names switched on, in emission order."""
        return [name for name in OPTION_NAMES if getattr(self, name)]


class CommandTemplate(BaseModel):
    """Argument skeleton for one (dialect, intent) pair.

    Attributes:
        program:         Executable to invoke (usually the dialect's own).
        argv:            Skeleton with placeholders.
        bare_argv:       Skeleton used when ``{packages}`` would be empty.
        flags:           Option name → tokens to emit when set.
        unsupported:     Option name → error message when set.
        variants:        Option name → alternate template; first listed set option wins.
                         Other set options must appear in its ``flags``.
        package_pattern: Regex the ``{package}`` value must match.
        package_message: Error when ``package_pattern`` does not match.
        forbidden_args:  Passthrough token → error message.
    """

    model_config = ConfigDict(frozen=True)

    program: str
    argv: tuple[str, ...]
    bare_argv: tuple[str, ...] | None = None
    flags: dict[str, tuple[str, ...]] = Field(default_factory=dict)
    unsupported: dict[str, str] = Field(default_factory=dict)
    variants: dict[str, CommandTemplate] = Field(default_factory=dict)
    package_pattern: str | None = None
    package_message: str = ""
    forbidden_args: dict[str, str] = Field(default_factory=dict)
