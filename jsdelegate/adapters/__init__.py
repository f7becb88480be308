"""Adapters — collaborator capabilities for the dispatcher.

Public re-exports for convenient access.
"""

from jsdelegate.adapters.base import (
    CommandRunner,
    PathLookup,
    PromptAborted,
    TextInput,
    VersionProbeError,
    VersionReporter,
)
from jsdelegate.adapters.mock import (
    FakePathLookup,
    MockCommandRunner,
    ScriptedTextInput,
    StaticVersionReporter,
)

__all__ = [
    "CommandRunner",
    "FakePathLookup",
    "MockCommandRunner",
    "PathLookup",
    "PromptAborted",
    "ScriptedTextInput",
    "StaticVersionReporter",
    "TextInput",
    "VersionProbeError",
    "VersionReporter",
]
