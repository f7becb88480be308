"""
Interactive resolver — last resort when nothing could be detected.

The user types the literal command they want. It is validated against
a small structural grammar and then executed as typed: the command
template registry is not involved.
"""

from __future__ import annotations

import logging
import re
import shlex

from jsdelegate.adapters.base import TextInput
from jsdelegate.core.models.manager import LockfileKind

logger = logging.getLogger(__name__)

# command  subcommand-or-flag  package [more...]; no '=' in the first two words
INSTALL_COMMAND_RE = re.compile(r"^[^\s=]+\s+[^\s=]+(\s+\S+)+$")

EXPECTED_STRUCTURE = (
    "A command for installing a package is at least three words",
    "In the form write the command like you'd normally write a command like this",
    "[command] [subcommand or flag] [package]",
    "Place flags after the command",
)

PROMPT_TITLE = "Command"


class InteractiveValidationError(ValueError):
    """Raised when the entered command does not fit the install grammar."""


def prompt_description(lockfile_hint: LockfileKind | None) -> str:
    if lockfile_hint is not None:
        return f"We detected a lock file but there is no {lockfile_hint.manager.value}"
    return "The command you want to use to install your js package manager"


def validate_install_command(
    line: str,
    lockfile_hint: LockfileKind | None = None,
) -> list[str]:
    """Check ``line`` and split it into ``[program, *argv]``.

    Raises:
        InteractiveValidationError: With the expected structure spelled out.
    """
    text = line.strip()

    if lockfile_hint is not None and lockfile_hint.manager.value not in text:
        raise InteractiveValidationError(
            "the command you entered does not contain the package manager "
            f"command for {lockfile_hint.value} ({lockfile_hint.manager.value})"
        )

    if not INSTALL_COMMAND_RE.match(text):
        raise InteractiveValidationError(
            "\n".join((f"You wrote this as your string {text!r}", *EXPECTED_STRUCTURE))
        )

    try:
        words = shlex.split(text)
    except ValueError as e:
        raise InteractiveValidationError(f"cannot parse {text!r}: {e}") from e
    return words


def resolve_interactively(
    text_input: TextInput,
    lockfile_hint: LockfileKind | None = None,
) -> list[str]:
    """Ask once, validate, return the command as ``[program, *argv]``.

    Raises:
        InteractiveValidationError: Invalid entry.
        PromptAborted: The user cancelled the prompt.
    """
    line = text_input.ask(PROMPT_TITLE, prompt_description(lockfile_hint))
    words = validate_install_command(line, lockfile_hint)
    logger.info("Using entered command: %s", shlex.join(words))
    return words
