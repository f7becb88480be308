"""
Terminal prompts — click-backed text input for the interactive paths.
"""

from __future__ import annotations

import click

from jsdelegate.adapters.base import PromptAborted, TextInput


class ClickTextInput(TextInput):
    """Prompts on the controlling terminal through ``click.prompt``."""

    def ask(self, title: str, description: str = "") -> str:
        if description:
            click.secho(description, fg="cyan", err=True)
        try:
            return click.prompt(title, default="", show_default=False, err=True)
        except click.Abort as e:
            raise PromptAborted(f"{title} prompt aborted") from e

    def choose(self, title: str, options: list[str]) -> str:
        if not options:
            raise PromptAborted(f"{title}: nothing to choose from")
        try:
            return click.prompt(
                title,
                type=click.Choice(options),
                show_choices=True,
                err=True,
            )
        except click.Abort as e:
            raise PromptAborted(f"{title} prompt aborted") from e
