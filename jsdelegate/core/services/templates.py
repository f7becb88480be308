"""
Command template registry — (dialect, intent) → argument vector.

This table is the single place that knows how each manager spells
each intent. Adding a manager means adding its row here; the
dispatcher never branches on dialect.

Rendering is pure: same (dialect, intent, params) in, same argv out.
"""

from __future__ import annotations

import logging
import re
from types import MappingProxyType

from jsdelegate.core.models.action import Invocation
from jsdelegate.core.models.manager import Intent, ManagerDialect
from jsdelegate.core.models.template import OPTION_LABELS, CommandTemplate, IntentParams

logger = logging.getLogger(__name__)

D = ManagerDialect
T = CommandTemplate


class TemplateError(ValueError):
    """Raised when an intent cannot be rendered for a dialect."""


# ═══════════════════════════════════════════════════════════════════
#  Templates
# ═══════════════════════════════════════════════════════════════════


_INSTALL: dict[ManagerDialect, CommandTemplate] = {
    D.NPM: T(
        program="npm",
        argv=("install", "{packages}"),
        bare_argv=("install",),
        flags={
            "dev": ("--save-dev",),
            "global_": ("--global",),
            "production": ("--omit=dev",),
            "frozen": ("--package-lock-only",),
        },
    ),
    D.YARN_CLASSIC: T(
        program="yarn",
        argv=("add", "{packages}"),
        bare_argv=("install",),
        flags={
            "dev": ("--dev",),
            "production": ("--production",),
            "frozen": ("--frozen-lockfile",),
        },
        variants={
            "global_": T(program="yarn", argv=("global", "add", "{packages}")),
        },
    ),
    D.YARN_MODERN: T(
        program="yarn",
        argv=("add", "{packages}"),
        bare_argv=("install",),
        flags={
            "dev": ("--dev",),
            "frozen": ("--immutable",),
        },
        unsupported={
            "global_": "yarn 2+ has no global installs; use dlx instead",
            "production": "yarn 2+ does not support production-only installs",
        },
    ),
    D.PNPM: T(
        program="pnpm",
        argv=("add", "{packages}"),
        bare_argv=("install",),
        flags={
            "dev": ("--save-dev",),
            "global_": ("--global",),
            "production": ("--prod",),
            "frozen": ("--frozen-lockfile",),
        },
    ),
    D.BUN: T(
        program="bun",
        argv=("add", "{packages}"),
        bare_argv=("install",),
        flags={
            "dev": ("--development",),
            "global_": ("--global",),
            "production": ("--production",),
            "frozen": ("--frozen-lockfile",),
        },
    ),
    D.DENO: T(
        program="deno",
        argv=("add", "{packages}"),
        bare_argv=("install",),
        flags={
            "dev": ("--dev",),
            "frozen": ("--frozen",),
        },
        unsupported={"production": "deno doesn't support production-only installs"},
        variants={
            "global_": T(program="deno", argv=("install", "--global", "{packages}")),
        },
    ),
}

_RUN: dict[ManagerDialect, CommandTemplate] = {
    D.NPM: T(
        program="npm",
        argv=("run", "{flags}", "{script}", "{--args}"),
        flags={"if_present": ("--if-present",)},
    ),
    D.YARN_CLASSIC: T(program="yarn", argv=("run", "{script}", "{args}")),
    D.YARN_MODERN: T(program="yarn", argv=("run", "{script}", "{args}")),
    D.PNPM: T(
        program="pnpm",
        argv=("run", "{flags}", "{script}", "{--args}"),
        flags={"if_present": ("--if-present",)},
    ),
    D.BUN: T(program="bun", argv=("run", "{script}", "{args}")),
    D.DENO: T(
        program="deno",
        argv=("task", "{script}", "{args}"),
        forbidden_args={"--eval": "don't pass --eval here use the exec command instead"},
    ),
}

_EXEC: dict[ManagerDialect, CommandTemplate] = {
    D.NPM: T(program="npm", argv=("exec", "{package}", "{--args}")),
    D.YARN_CLASSIC: T(program="yarn", argv=("{package}", "{args}")),
    D.YARN_MODERN: T(program="yarn", argv=("{package}", "{args}")),
    D.PNPM: T(program="pnpm", argv=("exec", "{package}", "{args}")),
    D.BUN: T(program="bun", argv=("x", "{package}", "{args}")),
    D.DENO: T(program="deno", argv=("run", "{package}", "{args}")),
}

_DLX: dict[ManagerDialect, CommandTemplate] = {
    D.NPM: T(program="npx", argv=("{package}", "{args}")),
    # yarn 1.x has no dlx; npx ships with the same Node install
    D.YARN_CLASSIC: T(program="npx", argv=("{package}", "{args}")),
    D.YARN_MODERN: T(program="yarn", argv=("dlx", "{package}", "{args}")),
    D.PNPM: T(program="pnpm", argv=("dlx", "{package}", "{args}")),
    D.BUN: T(program="bunx", argv=("{package}", "{args}")),
    D.DENO: T(
        program="deno",
        argv=("run", "{package}", "{args}"),
        package_pattern=r"^(https?://|npm:|jsr:)",
        package_message="deno dlx requires a URL or an npm:/jsr: specifier",
    ),
}

_UPDATE: dict[ManagerDialect, CommandTemplate] = {
    D.NPM: T(
        program="npm",
        argv=("update", "{packages}"),
        flags={"global_": ("--global",)},
        unsupported={"interactive": "npm does not support interactive updates"},
        variants={
            "latest": T(
                program="npm",
                argv=("install", "{packages@latest}"),
                flags={"global_": ("--global",)},
            ),
        },
    ),
    D.YARN_CLASSIC: T(
        program="yarn",
        argv=("upgrade", "{packages}"),
        flags={"latest": ("--latest",)},
        variants={
            "interactive": T(
                program="yarn",
                argv=("upgrade-interactive", "{packages}"),
                flags={"latest": ("--latest",), "global_": ("--global",)},
            ),
            "global_": T(
                program="yarn",
                argv=("global", "upgrade", "{packages}"),
                flags={"latest": ("--latest",)},
            ),
        },
    ),
    D.YARN_MODERN: T(
        program="yarn",
        argv=("up", "{packages}"),
        bare_argv=("up", "*"),
        unsupported={"global_": "yarn 2+ has no global packages to update"},
        variants={
            "interactive": T(program="yarn", argv=("upgrade-interactive",)),
        },
    ),
    D.PNPM: T(
        program="pnpm",
        argv=("update", "{packages}"),
        flags={
            "interactive": ("--interactive",),
            "global_": ("--global",),
            "latest": ("--latest",),
        },
    ),
    D.BUN: T(
        program="bun",
        argv=("update", "{packages}"),
        flags={
            "global_": ("--global",),
            "latest": ("--latest",),
        },
        unsupported={"interactive": "bun does not support interactive updates"},
    ),
    D.DENO: T(
        program="deno",
        argv=("outdated", "--update", "{flags}", "{packages}"),
        flags={
            "interactive": ("--interactive",),
            "latest": ("--latest",),
        },
        unsupported={"global_": "deno does not update global packages"},
    ),
}

_UNINSTALL: dict[ManagerDialect, CommandTemplate] = {
    D.NPM: T(program="npm", argv=("uninstall", "{packages}"), flags={"global_": ("--global",)}),
    D.YARN_CLASSIC: T(
        program="yarn",
        argv=("remove", "{packages}"),
        variants={"global_": T(program="yarn", argv=("global", "remove", "{packages}"))},
    ),
    D.YARN_MODERN: T(
        program="yarn",
        argv=("remove", "{packages}"),
        unsupported={"global_": "yarn 2+ has no global packages to remove"},
    ),
    D.PNPM: T(program="pnpm", argv=("remove", "{packages}"), flags={"global_": ("--global",)}),
    D.BUN: T(program="bun", argv=("remove", "{packages}"), flags={"global_": ("--global",)}),
    D.DENO: T(
        program="deno",
        argv=("remove", "{packages}"),
        variants={"global_": T(program="deno", argv=("uninstall", "--global", "{packages}"))},
    ),
}

_CLEAN_INSTALL: dict[ManagerDialect, CommandTemplate] = {
    D.NPM: T(program="npm", argv=("ci",)),
    D.YARN_CLASSIC: T(program="yarn", argv=("install", "--frozen-lockfile")),
    D.YARN_MODERN: T(program="yarn", argv=("install", "--immutable")),
    D.PNPM: T(program="pnpm", argv=("install", "--frozen-lockfile")),
    D.BUN: T(program="bun", argv=("install", "--frozen-lockfile")),
    D.DENO: T(program="deno", argv=("install", "--frozen")),
}

# agent is a query: it has no template on purpose.
TEMPLATES: MappingProxyType[tuple[ManagerDialect, Intent], CommandTemplate] = MappingProxyType({
    (dialect, intent): template
    for intent, table in (
        (Intent.INSTALL, _INSTALL),
        (Intent.RUN, _RUN),
        (Intent.EXEC, _EXEC),
        (Intent.DLX, _DLX),
        (Intent.UPDATE, _UPDATE),
        (Intent.UNINSTALL, _UNINSTALL),
        (Intent.CLEAN_INSTALL, _CLEAN_INSTALL),
    )
    for dialect, template in table.items()
})

# Intents that refuse an empty package list
_REQUIRED_PACKAGES = {
    Intent.UNINSTALL: "uninstall requires at least one package",
}


# ═══════════════════════════════════════════════════════════════════
#  Rendering
# ═══════════════════════════════════════════════════════════════════


def get_template(dialect: ManagerDialect, intent: Intent) -> CommandTemplate:
    """Look up the template for a pair.

    Raises:
        TemplateError: If the registry has no entry for the pair.
    """
    try:
        return TEMPLATES[(dialect, intent)]
    except KeyError:
        raise TemplateError(
            f"No command template for dialect '{dialect.value}' and intent '{intent.value}'"
        ) from None


def missing_pairs() -> list[tuple[ManagerDialect, Intent]]:
    """Renderable (dialect, intent) pairs without a template. Should be empty."""
    return [
        (dialect, intent)
        for dialect in ManagerDialect
        for intent in Intent
        if intent is not Intent.AGENT and (dialect, intent) not in TEMPLATES
    ]


def render(
    dialect: ManagerDialect,
    intent: Intent,
    params: IntentParams | None = None,
    cwd: str = ".",
) -> Invocation:
    """Render the concrete command for an intent.

    Args:
        dialect: Resolved manager dialect.
        intent: Requested intent (``agent`` always fails).
        params: Packages, script, passthrough args and options.
        cwd: Working directory recorded on the invocation.

    Returns:
        Invocation with program and argv filled in.

    Raises:
        TemplateError: Missing template, unsupported option, missing
            package/script, or a disallowed value.
    """
    params = params or IntentParams()
    template = get_template(dialect, intent)
    context = f"{dialect.value} {intent.value}"

    enabled = params.enabled_options()
    for option in enabled:
        if option in template.unsupported:
            raise TemplateError(f"{context}: {template.unsupported[option]}")

    variant = next((option for option in template.variants if option in enabled), None)
    if variant is not None:
        logger.debug("%s: using %s variant", context, OPTION_LABELS[variant])
        template = template.variants[variant]
        for option in enabled:
            if option == variant or option in template.flags:
                continue
            raise TemplateError(
                f"{context}: {OPTION_LABELS[option]} cannot be combined with {OPTION_LABELS[variant]}"
            )

    if intent in _REQUIRED_PACKAGES and not params.packages:
        raise TemplateError(f"{context}: {_REQUIRED_PACKAGES[intent]}")

    for token in params.args:
        if token in template.forbidden_args:
            raise TemplateError(f"{context}: {template.forbidden_args[token]}")

    skeleton = template.argv
    if not params.packages:
        if "{packages@latest}" in skeleton:
            raise TemplateError(f"{context}: --latest needs at least one package")
        if template.bare_argv is not None and "{packages}" in skeleton:
            skeleton = template.bare_argv

    flag_tokens = [
        token
        for option in enabled
        for token in template.flags.get(option, ())
    ]

    argv: list[str] = []
    flags_placed = False
    for part in skeleton:
        if part == "{flags}":
            argv.extend(flag_tokens)
            flags_placed = True
        elif part == "{packages}":
            argv.extend(params.packages)
        elif part == "{packages@latest}":
            argv.extend(f"{pkg}@latest" for pkg in params.packages)
        elif part == "{package}":
            argv.append(_require_package(template, params, context))
        elif part == "{script}":
            if not params.script:
                raise TemplateError(f"{context}: a script name is required")
            argv.append(params.script)
        elif part == "{args}":
            argv.extend(params.args)
        elif part == "{--args}":
            if params.args:
                argv.append("--")
                argv.extend(params.args)
        else:
            argv.append(part)

    if not flags_placed:
        argv.extend(flag_tokens)

    return Invocation(program=template.program, argv=tuple(argv), cwd=cwd)


def _require_package(template: CommandTemplate, params: IntentParams, context: str) -> str:
    package = params.package
    if not package:
        raise TemplateError(f"{context}: a package or binary name is required")
    if template.package_pattern and not re.match(template.package_pattern, package):
        raise TemplateError(f"{context}: {template.package_message}")
    return package


def extra_packages_as_args(params: IntentParams) -> IntentParams:
    """For exec/dlx: everything after the first package is passthrough."""
    if len(params.packages) <= 1:
        return params
    return params.model_copy(
        update={
            "packages": params.packages[:1],
            "args": (*params.packages[1:], *params.args),
        }
    )
