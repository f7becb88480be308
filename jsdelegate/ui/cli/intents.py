"""
CLI commands for the package manager intents.

Thin wrappers over ``jsdelegate.core.use_cases.dispatch``. Every
command builds IntentParams, dispatches once and turns the result into
output and an exit code.
"""

from __future__ import annotations

import json
import sys

import click

from jsdelegate.core.models.manager import Intent
from jsdelegate.core.models.template import IntentParams

# Short names accepted for each command
COMMAND_ALIASES: dict[str, str] = {
    "i": "install",
    "add": "install",
    "r": "run",
    "s": "start",
    "e": "exec",
    "x": "dlx",
    "u": "update",
    "up": "update",
    "upgrade": "update",
    "un": "uninstall",
    "remove": "uninstall",
    "rm": "uninstall",
    "ci": "clean-install",
    "a": "agent",
}

# Unknown options are passed through to the package manager.
_PASSTHROUGH = {"ignore_unknown_options": True}


def _get_dispatcher(ctx: click.Context):
    """Dispatcher from context, or a production one built on demand."""
    dispatcher = ctx.obj.get("dispatcher")
    if dispatcher is None:
        from jsdelegate.adapters.prompt import ClickTextInput
        from jsdelegate.adapters.shell.command import (
            SubprocessCommandRunner,
            SubprocessVersionReporter,
            WhichPathLookup,
        )
        from jsdelegate.core.use_cases.dispatch import Dispatcher

        dispatcher = Dispatcher(
            runner=SubprocessCommandRunner(),
            version_reporter=SubprocessVersionReporter(),
            text_input=ClickTextInput(),
            path_lookup=WhichPathLookup(),
            config=ctx.obj.get("config"),
            build_info=ctx.obj.get("build_info"),
        )
        ctx.obj["dispatcher"] = dispatcher
    return dispatcher


def _dispatch(
    ctx: click.Context,
    intent: Intent,
    params: IntentParams,
    force: bool = False,
    no_volta: bool = False,
    auto_install: bool | None = None,
):
    dispatcher = _get_dispatcher(ctx)
    return dispatcher.dispatch(
        intent,
        params,
        project_dir=ctx.obj.get("project_dir", "."),
        agent=ctx.obj.get("agent"),
        force=force,
        dry_run=ctx.obj.get("dry_run", False),
        no_volta=no_volta,
        auto_install=auto_install,
    )


def _finish(ctx: click.Context, result) -> None:
    """Report the outcome; exit non-zero on failure."""
    quiet = ctx.obj.get("quiet", False)

    if result.error:
        click.secho(f"❌ {result.error}", fg="red", err=True)
        sys.exit(result.exit_code)

    if result.skipped:
        if not quiet:
            click.secho(f"⏭️  Skipped: {result.skip_reason}", fg="yellow", err=True)
        return

    if result.dry_run:
        if result.preflight:
            click.echo(result.preflight.command_line)
        if result.invocation:
            click.echo(result.invocation.command_line)

    if result.cache_warning and not quiet:
        click.secho(f"⚠️  {result.cache_warning}", fg="yellow", err=True)


# ── Install ─────────────────────────────────────────────────────


@click.command(context_settings=_PASSTHROUGH)
@click.argument("packages", nargs=-1, type=click.UNPROCESSED)
@click.option("--dev", "-D", is_flag=True, help="Install as dev dependency.")
@click.option("--global", "-g", "global_", is_flag=True, help="Install globally.")
@click.option("--production", "-P", is_flag=True, help="Install production dependencies only.")
@click.option("--frozen", is_flag=True, help="Install with frozen lockfile.")
@click.option("--force", is_flag=True, help="Install even if dependencies look unchanged.")
@click.option("--no-volta", is_flag=True, help="Disable Volta integration for this command.")
@click.pass_context
def install(
    ctx: click.Context,
    packages: tuple[str, ...],
    dev: bool,
    global_: bool,
    production: bool,
    frozen: bool,
    force: bool,
    no_volta: bool,
) -> None:
    """Install packages (all dependencies when none are given)."""
    params = IntentParams(
        packages=packages,
        dev=dev,
        global_=global_,
        production=production,
        frozen=frozen,
    )
    _finish(ctx, _dispatch(ctx, Intent.INSTALL, params, force=force, no_volta=no_volta))


@click.command("clean-install")
@click.option("--force", is_flag=True, help="Install even if dependencies look unchanged.")
@click.option("--no-volta", is_flag=True, help="Disable Volta integration for this command.")
@click.pass_context
def clean_install(ctx: click.Context, force: bool, no_volta: bool) -> None:
    """Clean install from the lockfile (npm ci and friends)."""
    _finish(ctx, _dispatch(ctx, Intent.CLEAN_INSTALL, IntentParams(), force=force, no_volta=no_volta))


# ── Run ─────────────────────────────────────────────────────────


@click.command(context_settings=_PASSTHROUGH)
@click.argument("script", required=False)
@click.argument("args", nargs=-1, type=click.UNPROCESSED)
@click.option("--if-present", is_flag=True, help="Run the script only if it exists.")
@click.option(
    "--auto-install/--no-auto-install",
    default=None,
    help="Install dependencies first when missing or changed (default: on for dev/start).",
)
@click.option("--no-volta", is_flag=True, help="Disable Volta integration during auto-install.")
@click.pass_context
def run(
    ctx: click.Context,
    script: str | None,
    args: tuple[str, ...],
    if_present: bool,
    auto_install: bool | None,
    no_volta: bool,
) -> None:
    """Run a package.json script or deno task (pick one when omitted)."""
    params = IntentParams(script=script or "", args=args, if_present=if_present)
    _finish(ctx, _dispatch(ctx, Intent.RUN, params, no_volta=no_volta, auto_install=auto_install))


@click.command(context_settings=_PASSTHROUGH)
@click.argument("args", nargs=-1, type=click.UNPROCESSED)
@click.option("--if-present", is_flag=True, help="Run start only if it exists.")
@click.option("--auto-install/--no-auto-install", default=None, help="Install dependencies first.")
@click.option("--no-volta", is_flag=True, help="Disable Volta integration during auto-install.")
@click.pass_context
def start(
    ctx: click.Context,
    args: tuple[str, ...],
    if_present: bool,
    auto_install: bool | None,
    no_volta: bool,
) -> None:
    """Run the start script."""
    params = IntentParams(script="start", args=args, if_present=if_present)
    _finish(ctx, _dispatch(ctx, Intent.RUN, params, no_volta=no_volta, auto_install=auto_install))


# ── Exec / dlx ──────────────────────────────────────────────────


@click.command("exec", context_settings=_PASSTHROUGH)
@click.argument("binary")
@click.argument("args", nargs=-1, type=click.UNPROCESSED)
@click.pass_context
def exec_(ctx: click.Context, binary: str, args: tuple[str, ...]) -> None:
    """Execute a binary from local dependencies."""
    params = IntentParams(packages=(binary,), args=args)
    _finish(ctx, _dispatch(ctx, Intent.EXEC, params))


@click.command(context_settings=_PASSTHROUGH)
@click.argument("package")
@click.argument("args", nargs=-1, type=click.UNPROCESSED)
@click.pass_context
def dlx(ctx: click.Context, package: str, args: tuple[str, ...]) -> None:
    """Fetch and run a package without installing it."""
    params = IntentParams(packages=(package,), args=args)
    _finish(ctx, _dispatch(ctx, Intent.DLX, params))


# ── Update / uninstall ──────────────────────────────────────────


@click.command(context_settings=_PASSTHROUGH)
@click.argument("packages", nargs=-1, type=click.UNPROCESSED)
@click.option("--interactive", "-i", is_flag=True, help="Interactive update (where supported).")
@click.option("--global", "-g", "global_", is_flag=True, help="Update global packages.")
@click.option("--latest", is_flag=True, help="Update to latest, ignoring version ranges.")
@click.pass_context
def update(
    ctx: click.Context,
    packages: tuple[str, ...],
    interactive: bool,
    global_: bool,
    latest: bool,
) -> None:
    """Update packages (all when none are given)."""
    params = IntentParams(
        packages=packages,
        interactive=interactive,
        global_=global_,
        latest=latest,
    )
    _finish(ctx, _dispatch(ctx, Intent.UPDATE, params))


@click.command(context_settings=_PASSTHROUGH)
@click.argument("packages", nargs=-1, type=click.UNPROCESSED)
@click.option("--global", "-g", "global_", is_flag=True, help="Uninstall global packages.")
@click.pass_context
def uninstall(ctx: click.Context, packages: tuple[str, ...], global_: bool) -> None:
    """Remove packages."""
    params = IntentParams(packages=packages, global_=global_)
    _finish(ctx, _dispatch(ctx, Intent.UNINSTALL, params))


# ── Agent ───────────────────────────────────────────────────────


@click.command(context_settings=_PASSTHROUGH)
@click.argument("args", nargs=-1, type=click.UNPROCESSED)
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def agent(ctx: click.Context, args: tuple[str, ...], as_json: bool) -> None:
    """Show the detected package manager, or run it with raw ARGS."""
    result = _dispatch(ctx, Intent.AGENT, IntentParams(args=args))

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(0 if result.ok else result.exit_code)

    if args or result.error or result.interactive:
        _finish(ctx, result)
        return

    detection = result.detection
    click.echo(detection.program)
    if not ctx.obj.get("quiet", False):
        click.secho(f"   dialect: {detection.dialect.value}", fg="cyan", err=True)
        click.secho(f"   source:  {detection.source.value}", fg="cyan", err=True)
        if detection.lockfile:
            click.secho(f"   lockfile: {detection.lockfile.value}", fg="cyan", err=True)
        if detection.yarn_version:
            click.secho(f"   yarn: {detection.yarn_version}", fg="cyan", err=True)
        if detection.runtime_pin:
            click.secho("   volta: present", fg="cyan", err=True)


COMMANDS = (install, clean_install, run, start, exec_, dlx, update, uninstall, agent)
