"""
Dispatch use case — from a manager-agnostic intent to one executed command.

This is the top-level orchestrator: it resolves the manager (override,
lockfile, PATH, then the interactive prompt), renders the intent through
the template registry, consults the dependency change cache for
install-class intents, and hands the result to the execution boundary.

Expected failures never raise out of ``dispatch``: they land in
``DispatchResult.error`` with state ``failed``.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from jsdelegate.adapters.base import (
    CommandRunner,
    PathLookup,
    PromptAborted,
    TextInput,
    VersionReporter,
)
from jsdelegate.core.config.build_info import BuildInfo
from jsdelegate.core.config.loader import DelegatorConfig
from jsdelegate.core.models.action import Invocation, Receipt
from jsdelegate.core.models.manager import (
    DetectionResult,
    DetectionSource,
    Intent,
    ManagerDialect,
)
from jsdelegate.core.models.state import DispatchState
from jsdelegate.core.models.template import IntentParams
from jsdelegate.core.persistence.deps_hash import (
    compute_deps_hash,
    read_stored_hash,
    write_stored_hash,
)
from jsdelegate.core.services import manifest
from jsdelegate.core.services.detection import (
    InteractiveValidationError,
    InvalidOverrideError,
    NoManagerDetected,
    default_strategies,
    detect_manager,
    override_value,
    resolve_interactively,
    volta_prefix,
)
from jsdelegate.core.services.templates import (
    TemplateError,
    extra_packages_as_args,
    render,
)

logger = logging.getLogger(__name__)


@dataclass
class DispatchResult:
    """Outcome of one dispatch."""

    intent: Intent
    state: DispatchState = DispatchState.START
    trace: list[DispatchState] = field(default_factory=list)
    detection: DetectionResult | None = None
    interactive: bool = False
    invocation: Invocation | None = None
    receipt: Receipt | None = None
    preflight: Invocation | None = None
    preflight_receipt: Receipt | None = None
    dry_run: bool = False
    skipped: bool = False
    skip_reason: str = ""
    cache_warning: str | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.state is DispatchState.DISPATCHED

    @property
    def exit_code(self) -> int:
        """Process exit code for the CLI: the child's code when it ran."""
        if self.ok:
            return 0
        for receipt in (self.receipt, self.preflight_receipt):
            if receipt is not None and receipt.failed and receipt.return_code:
                return receipt.return_code
        return 1

    def to_dict(self) -> dict:
        result: dict = {
            "intent": self.intent.value,
            "state": self.state.value,
            "trace": [s.value for s in self.trace],
        }
        if self.error:
            result["error"] = self.error
        if self.detection:
            result["detection"] = self.detection.to_dict()
        elif self.interactive:
            result["detection"] = {"source": DetectionSource.INTERACTIVE.value}
        if self.preflight:
            result["preflight"] = self.preflight.command_line
        if self.invocation:
            result["command"] = self.invocation.command_line
        if self.receipt:
            result["status"] = self.receipt.status
            result["return_code"] = self.receipt.return_code
        if self.dry_run:
            result["dry_run"] = True
        if self.skipped:
            result["skipped"] = True
            result["skip_reason"] = self.skip_reason
        if self.cache_warning:
            result["cache_warning"] = self.cache_warning
        return result


class Dispatcher:
    """Resolves a manager and runs one intent through it.

    All outside effects go through the injected capabilities, so tests
    swap in the mock adapters instead of patching.
    """

    def __init__(
        self,
        runner: CommandRunner,
        version_reporter: VersionReporter,
        text_input: TextInput,
        path_lookup: PathLookup,
        config: DelegatorConfig | None = None,
        build_info: BuildInfo | None = None,
    ):
        self._runner = runner
        self._versions = version_reporter
        self._input = text_input
        self._lookup = path_lookup
        self._config = config or DelegatorConfig()
        self._build = build_info or BuildInfo()

    # ── Detection ───────────────────────────────────────────────

    def detect(
        self,
        project_dir: Path,
        agent: str | None = None,
        environ: Mapping[str, str] | None = None,
        trace: list[DispatchState] | None = None,
    ) -> DetectionResult:
        """Resolve the manager for ``project_dir`` without prompting.

        Raises:
            NoManagerDetected: Nothing found.
            InvalidOverrideError: Override names no known manager.
            OSError: Unexpected filesystem error while scanning.
        """
        override = override_value(
            flag=agent,
            environ=os.environ if environ is None else environ,
            config_agent=self._config.agent,
        )
        if override is not None:
            logger.debug("Manager override %r from %s", override[0], override[1])

        strategies = default_strategies(
            override[0] if override else None,
            self._lookup,
            self._versions,
        )
        return detect_manager(project_dir, strategies, self._lookup, trace=trace)

    # ── Dispatch ────────────────────────────────────────────────

    def dispatch(
        self,
        intent: Intent,
        params: IntentParams | None = None,
        project_dir: Path | str = ".",
        agent: str | None = None,
        force: bool = False,
        dry_run: bool = False,
        no_volta: bool = False,
        auto_install: bool | None = None,
        environ: Mapping[str, str] | None = None,
    ) -> DispatchResult:
        """Run ``intent`` in ``project_dir``.

        Args:
            intent: What to do.
            params: Packages, script, passthrough args and options.
            project_dir: Project directory (the child's working dir).
            agent: ``--agent`` flag value, if given.
            force: Install even when dependencies look unchanged.
            dry_run: Resolve and render, but run nothing.
            no_volta: Never prefix installs with ``volta run``.
            auto_install: Force the run preflight on/off (None = config/default).
            environ: Environment to read JPD_AGENT from (default: os.environ).

        Returns:
            DispatchResult; ``error`` is set when state is ``failed``.
        """
        params = params or IntentParams()
        project_dir = Path(project_dir)
        result = DispatchResult(intent=intent)
        self._enter(result, DispatchState.START)

        if not project_dir.is_dir():
            return self._fail(result, f"Project directory not found: {project_dir}")

        try:
            detection = self.detect(project_dir, agent, environ, trace=result.trace)
        except InvalidOverrideError as e:
            return self._fail(result, str(e))
        except NoManagerDetected as e:
            return self._dispatch_interactively(result, project_dir, e, dry_run)
        except OSError as e:
            return self._fail(result, f"Cannot scan {project_dir}: {e}")

        result.detection = detection
        self._enter(result, DispatchState.RESOLVED)
        logger.info(
            "Using %s (%s)", detection.dialect.value, detection.source.value,
        )

        if intent is Intent.AGENT:
            return self._dispatch_agent(result, detection, params, project_dir, dry_run)

        volta = self._config.volta and not no_volta

        if intent is Intent.RUN:
            params = self._prepare_run(result, detection, params, project_dir)
            if params is None:
                return result
            if self._wants_preflight(params.script, auto_install):
                if not self._preflight(result, detection, project_dir, volta, dry_run):
                    return result

        if intent in (Intent.EXEC, Intent.DLX):
            params = extra_packages_as_args(params)

        self._enter(result, DispatchState.RENDERING)
        try:
            invocation = render(detection.dialect, intent, params, cwd=str(project_dir))
        except TemplateError as e:
            return self._fail(result, str(e))

        if not intent.installs:
            return self._execute(result, invocation, dry_run)

        self._enter(result, DispatchState.CACHE_CHECK)
        invocation = invocation.prefixed(*volta_prefix(detection, volta))

        if not (params.packages or params.enabled_options() or force):
            digest = self._digest(project_dir, detection.dialect)
            if digest and digest == read_stored_hash(project_dir, detection.dialect):
                logger.info("Dependencies unchanged since last install, skipping (use --force)")
                result.invocation = invocation
                result.skipped = True
                result.skip_reason = "dependencies unchanged"
                self._enter(result, DispatchState.DISPATCHED)
                return result

        self._execute(result, invocation, dry_run)
        if result.ok and not dry_run:
            self._store_digest(result, project_dir, detection.dialect)
        return result

    # ── Intent-specific steps ───────────────────────────────────

    def _dispatch_agent(
        self,
        result: DispatchResult,
        detection: DetectionResult,
        params: IntentParams,
        project_dir: Path,
        dry_run: bool,
    ) -> DispatchResult:
        # No args: a pure report. With args: raw passthrough to the manager.
        if not params.args:
            self._enter(result, DispatchState.DISPATCHED)
            return result
        invocation = Invocation(
            program=detection.program,
            argv=params.args,
            cwd=str(project_dir),
        )
        return self._execute(result, invocation, dry_run)

    def _prepare_run(
        self,
        result: DispatchResult,
        detection: DetectionResult,
        params: IntentParams,
        project_dir: Path,
    ) -> IntentParams | None:
        """Pick a script if none was given; honour --if-present.

        Returns None when the result is already final.
        """
        if params.script and not params.if_present:
            return params

        try:
            scripts = self._scripts(project_dir, detection.dialect)
        except manifest.ManifestError as e:
            if params.script:
                scripts = {}
            else:
                self._fail(result, str(e))
                return None

        if params.script:
            if params.script not in scripts:
                logger.info("Script %r not found, skipping (--if-present)", params.script)
                result.skipped = True
                result.skip_reason = f"script '{params.script}' not found"
                self._enter(result, DispatchState.DISPATCHED)
                return None
            return params

        if not scripts:
            kind = "tasks" if detection.dialect is ManagerDialect.DENO else "scripts"
            self._fail(result, f"No {kind} found in {project_dir}")
            return None

        try:
            chosen = self._input.choose("Select a script to run", sorted(scripts))
        except PromptAborted as e:
            self._fail(result, str(e))
            return None
        return params.model_copy(update={"script": chosen})

    def _wants_preflight(self, script: str, auto_install: bool | None) -> bool:
        if auto_install is not None:
            return auto_install
        if self._config.auto_install is not None:
            return self._config.auto_install
        return script in self._config.auto_install_scripts

    def _preflight(
        self,
        result: DispatchResult,
        detection: DetectionResult,
        project_dir: Path,
        volta: bool,
        dry_run: bool,
    ) -> bool:
        """Install dependencies before a run when they look stale."""
        reason = self._install_reason(project_dir, detection.dialect)
        if reason is None:
            logger.debug("Dependencies up to date, no install before run")
            return True

        logger.info("Installing dependencies first: %s", reason)
        invocation = render(detection.dialect, Intent.INSTALL, IntentParams(), cwd=str(project_dir))
        invocation = invocation.prefixed(*volta_prefix(detection, volta))
        result.preflight = invocation
        if dry_run:
            return True

        receipt = self._runner.run(invocation)
        result.preflight_receipt = receipt
        if receipt.failed:
            self._fail(result, f"Dependency install failed: {receipt.error}")
            return False

        self._store_digest(result, project_dir, detection.dialect)
        return True

    def _install_reason(self, project_dir: Path, dialect: ManagerDialect) -> str | None:
        if dialect.is_node and not manifest.is_yarn_pnp(project_dir):
            if not (project_dir / "node_modules").is_dir():
                return "node_modules is missing"
            try:
                declared = manifest.read_declared_dependencies(project_dir)
            except manifest.ManifestError:
                declared = {}
            missing = manifest.missing_node_packages(project_dir, list(declared))
            if missing:
                return f"missing packages: {', '.join(missing)}"

        digest = self._digest(project_dir, dialect)
        if digest and digest != read_stored_hash(project_dir, dialect):
            return "dependencies changed since last install"
        return None

    def _dispatch_interactively(
        self,
        result: DispatchResult,
        project_dir: Path,
        error: NoManagerDetected,
        dry_run: bool,
    ) -> DispatchResult:
        self._enter(result, DispatchState.AWAITING_INTERACTIVE)
        if self._build.ci:
            return self._fail(result, f"{error}; refusing to prompt in CI (set JPD_AGENT)")

        logger.warning("No package manager found, asking for an install command")
        try:
            words = resolve_interactively(self._input, error.lockfile_hint)
        except (InteractiveValidationError, PromptAborted) as e:
            return self._fail(result, str(e))

        result.interactive = True
        invocation = Invocation(program=words[0], argv=tuple(words[1:]), cwd=str(project_dir))
        return self._execute(result, invocation, dry_run)

    # ── Helpers ─────────────────────────────────────────────────

    def _execute(self, result: DispatchResult, invocation: Invocation, dry_run: bool) -> DispatchResult:
        result.invocation = invocation
        if dry_run:
            logger.info("[dry-run] %s", invocation.command_line)
            result.dry_run = True
            self._enter(result, DispatchState.DISPATCHED)
            return result

        logger.info("Running %s", invocation.command_line)
        receipt = self._runner.run(invocation)
        result.receipt = receipt
        if receipt.failed:
            return self._fail(result, receipt.error or f"{invocation.program} failed")

        self._enter(result, DispatchState.DISPATCHED)
        return result

    def _scripts(self, project_dir: Path, dialect: ManagerDialect) -> dict[str, str]:
        if dialect is ManagerDialect.DENO:
            return manifest.read_deno_tasks(project_dir)
        return manifest.read_package_scripts(project_dir)

    def _digest(self, project_dir: Path, dialect: ManagerDialect) -> str | None:
        try:
            return compute_deps_hash(project_dir, dialect)
        except OSError as e:
            logger.warning("Cannot hash dependencies: %s", e)
            return None

    def _store_digest(self, result: DispatchResult, project_dir: Path, dialect: ManagerDialect) -> None:
        digest = self._digest(project_dir, dialect)
        if not digest:
            return
        try:
            write_stored_hash(project_dir, digest, dialect)
        except OSError as e:
            result.cache_warning = f"Could not save dependency hash: {e}"
            logger.warning(result.cache_warning)

    @staticmethod
    def _enter(result: DispatchResult, state: DispatchState) -> None:
        result.state = state
        result.trace.append(state)

    def _fail(self, result: DispatchResult, error: str) -> DispatchResult:
        logger.debug("Dispatch failed in %s: %s", result.state.value, error)
        result.error = error
        self._enter(result, DispatchState.FAILED)
        return result
