"""
jpd — JavaScript package delegator CLI entrypoint.

Detects the project's package manager (npm, yarn, pnpm, bun or deno)
and translates one manager-agnostic command into its native form.

Usage:
    jpd install react
    jpd run dev
    jpd agent
"""

from __future__ import annotations

import sys
from pathlib import Path

import click

from jsdelegate import __version__
from jsdelegate.core.config.build_info import BuildInfo
from jsdelegate.core.config.loader import ConfigError, load_config
from jsdelegate.core.observability.logging_config import setup_logging
from jsdelegate.ui.cli.intents import COMMAND_ALIASES, COMMANDS


class AliasedGroup(click.Group):
    """Group that also accepts the short command names."""

    def get_command(self, ctx: click.Context, cmd_name: str) -> click.Command | None:
        return super().get_command(ctx, COMMAND_ALIASES.get(cmd_name, cmd_name))

    def resolve_command(self, ctx: click.Context, args: list[str]):
        _, cmd, args = super().resolve_command(ctx, args)
        return (cmd.name if cmd else None), cmd, args


@click.group(cls=AliasedGroup)
@click.version_option(version=__version__, prog_name="jpd")
@click.option("--agent", "-a", default=None, help="Package manager to use (overrides detection).")
@click.option(
    "--cwd",
    "-C",
    type=click.Path(exists=True, file_okay=False),
    default=None,
    help="Run as if started in this directory.",
)
@click.option("--debug", "-d", is_flag=True, help="Enable debug logging (very verbose).")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--dry-run", is_flag=True, help="Print the command instead of running it.")
@click.pass_context
def cli(
    ctx: click.Context,
    agent: str | None,
    cwd: str | None,
    debug: bool,
    verbose: bool,
    quiet: bool,
    dry_run: bool,
) -> None:
    """jpd — one command line for npm, yarn, pnpm, bun and deno."""
    ctx.ensure_object(dict)
    project_dir = Path(cwd).resolve() if cwd else Path.cwd()

    try:
        build_info = ctx.obj.get("build_info") or BuildInfo.from_env()
        config = ctx.obj.get("config") or load_config(start_dir=project_dir)
    except ConfigError as e:
        click.secho(f"❌ {e}", fg="red", err=True)
        sys.exit(1)

    ctx.obj["agent"] = agent
    ctx.obj["project_dir"] = project_dir
    ctx.obj["quiet"] = quiet
    ctx.obj["dry_run"] = dry_run
    ctx.obj["build_info"] = build_info
    ctx.obj["config"] = config

    # ── Logging setup (once, at process start) ──────────────────
    setup_logging(config, build_info, debug=debug, verbose=verbose, quiet=quiet)


for _command in COMMANDS:
    cli.add_command(_command)


if __name__ == "__main__":
    cli()
