"""
Tests for the dispatch use case — detection through execution.
"""

from pathlib import Path

import pytest

from jsdelegate.core.config.build_info import BuildInfo
from jsdelegate.core.config.loader import DelegatorConfig
from jsdelegate.core.models.manager import DetectionSource, Intent, ManagerDialect
from jsdelegate.core.models.state import DispatchState
from jsdelegate.core.models.template import IntentParams
from jsdelegate.core.persistence.deps_hash import (
    compute_deps_hash,
    read_stored_hash,
    write_stored_hash,
)

NPM_PROJECT = {
    "package.json": {"name": "app", "scripts": {"dev": "vite", "build": "vite build"}},
    "package-lock.json": "{}",
}


# ── End-to-end scenarios ─────────────────────────────────────────────


class TestScenarios:
    def test_a_npm_lockfile_install_package(self, make_project, make_dispatcher, runner):
        project = make_project({"package-lock.json": "{}"})
        result = make_dispatcher(path={"npm"}).dispatch(
            Intent.INSTALL, IntentParams(packages=("react",)), project,
        )
        assert result.ok
        assert result.detection.dialect is ManagerDialect.NPM
        assert result.detection.source is DetectionSource.LOCKFILE
        assert runner.command_lines == [["npm", "install", "react"]]
        assert runner.call_log[0].cwd == str(project)

    def test_b_yarn_classic_from_path(self, tmp_path: Path, make_dispatcher, runner):
        result = make_dispatcher(path={"yarn"}, versions={"yarn": "1.22.19"}).dispatch(
            Intent.INSTALL, IntentParams(packages=("react",)), tmp_path,
        )
        assert result.detection.dialect is ManagerDialect.YARN_CLASSIC
        assert result.detection.source is DetectionSource.PATH
        assert result.detection.yarn_version == "1.22.19"
        assert runner.command_lines == [["yarn", "add", "react"]]

    def test_c_interactive_invalid_entry(self, tmp_path: Path, make_dispatcher, runner):
        result = make_dispatcher(answers=["pnpm please"]).dispatch(Intent.INSTALL, project_dir=tmp_path)
        assert result.state is DispatchState.FAILED
        assert DispatchState.AWAITING_INTERACTIVE in result.trace
        assert "[command] [subcommand or flag] [package]" in result.error
        assert runner.call_count == 0

    def test_d_unchanged_dependencies_skip_install(self, make_project, make_dispatcher, runner):
        project = make_project({**NPM_PROJECT, "node_modules/.keep": ""})
        write_stored_hash(project, compute_deps_hash(project))

        result = make_dispatcher(path={"npm"}).dispatch(Intent.INSTALL, project_dir=project)
        assert result.ok
        assert result.skipped
        assert result.skip_reason == "dependencies unchanged"
        assert runner.call_count == 0

    def test_d_force_installs_anyway(self, make_project, make_dispatcher, runner):
        project = make_project({**NPM_PROJECT, "node_modules/.keep": ""})
        write_stored_hash(project, compute_deps_hash(project))

        result = make_dispatcher(path={"npm"}).dispatch(Intent.INSTALL, project_dir=project, force=True)
        assert not result.skipped
        assert runner.command_lines == [["npm", "install"]]


# ── Detection precedence ─────────────────────────────────────────────


class TestPrecedence:
    def test_agent_flag_beats_lockfile(self, make_project, make_dispatcher, runner):
        project = make_project({"package-lock.json": "{}"})
        result = make_dispatcher(path={"npm", "pnpm"}).dispatch(
            Intent.UNINSTALL, IntentParams(packages=("lodash",)), project, agent="pnpm",
        )
        assert result.detection.source is DetectionSource.ENVIRONMENT_OVERRIDE
        assert runner.command_lines == [["pnpm", "remove", "lodash"]]

    def test_env_override(self, make_project, make_dispatcher, runner):
        project = make_project({"package-lock.json": "{}"})
        result = make_dispatcher(path={"npm"}).dispatch(
            Intent.EXEC, IntentParams(packages=("tsc",)), project, environ={"JPD_AGENT": "bun"},
        )
        assert result.detection.dialect is ManagerDialect.BUN
        assert runner.command_lines == [["bun", "x", "tsc"]]

    def test_config_agent(self, tmp_path: Path, make_dispatcher, runner):
        dispatcher = make_dispatcher(path={"npm"}, config=DelegatorConfig(agent="deno"))
        dispatcher.dispatch(Intent.DLX, IntentParams(packages=("npm:cowsay", "moo")), tmp_path)
        assert runner.command_lines == [["deno", "run", "npm:cowsay", "moo"]]

    def test_invalid_override_fails_without_running(self, make_project, make_dispatcher, runner):
        project = make_project({"package-lock.json": "{}"})
        result = make_dispatcher(path={"npm"}).dispatch(Intent.INSTALL, project_dir=project, agent="cargo")
        assert result.state is DispatchState.FAILED
        assert "cargo" in result.error
        assert runner.call_count == 0

    def test_yarn_probe_failure_falls_back_to_path(self, make_project, make_dispatcher, runner):
        project = make_project({"yarn.lock": ""})
        result = make_dispatcher(path={"yarn", "bun"}, versions={"yarn": None}).dispatch(
            Intent.UPDATE, project_dir=project,
        )
        assert result.ok
        assert result.detection.dialect is ManagerDialect.BUN
        assert runner.command_lines == [["bun", "update"]]


# ── Interactive fallback ─────────────────────────────────────────────


class TestInteractive:
    def test_entered_command_runs_verbatim(self, tmp_path: Path, make_dispatcher, runner):
        result = make_dispatcher(answers=["npm install -g pnpm"]).dispatch(
            Intent.INSTALL, IntentParams(packages=("react",)), tmp_path,
        )
        assert result.ok
        assert result.interactive
        assert result.detection is None
        assert runner.command_lines == [["npm", "install", "-g", "pnpm"]]
        assert result.to_dict()["detection"] == {"source": "interactive"}

    def test_lockfile_hint_enforced(self, make_project, make_dispatcher, runner):
        project = make_project({"pnpm-lock.yaml": ""})
        result = make_dispatcher(answers=["npm install -g yarn"]).dispatch(Intent.INSTALL, project_dir=project)
        assert result.state is DispatchState.FAILED
        assert "pnpm" in result.error
        assert runner.call_count == 0

    def test_aborted_prompt(self, tmp_path: Path, make_dispatcher, runner):
        result = make_dispatcher(answers=[]).dispatch(Intent.INSTALL, project_dir=tmp_path)
        assert result.state is DispatchState.FAILED
        assert runner.call_count == 0

    def test_no_prompt_in_ci(self, tmp_path: Path, make_dispatcher, runner):
        dispatcher = make_dispatcher(answers=["npm install -g pnpm"], build_info=BuildInfo(ci=True))
        result = dispatcher.dispatch(Intent.INSTALL, project_dir=tmp_path)
        assert result.state is DispatchState.FAILED
        assert "CI" in result.error
        assert runner.call_count == 0


# ── Install-class intents ────────────────────────────────────────────


class TestInstall:
    def test_digest_written_after_install(self, make_project, make_dispatcher, runner):
        project = make_project({**NPM_PROJECT, "node_modules/.keep": ""})
        result = make_dispatcher(path={"npm"}).dispatch(Intent.INSTALL, project_dir=project)
        assert result.ok
        assert result.cache_warning is None
        assert read_stored_hash(project) == compute_deps_hash(project)

    def test_second_install_skipped(self, make_project, make_dispatcher, runner):
        project = make_project({**NPM_PROJECT, "node_modules/.keep": ""})
        dispatcher = make_dispatcher(path={"npm"})
        dispatcher.dispatch(Intent.INSTALL, project_dir=project)
        second = dispatcher.dispatch(Intent.INSTALL, project_dir=project)
        assert second.skipped
        assert runner.call_count == 1

    @pytest.mark.parametrize("option", ["production", "frozen"])
    def test_install_options_bypass_skip(self, make_project, make_dispatcher, runner, option):
        project = make_project({**NPM_PROJECT, "node_modules/.keep": ""})
        dispatcher = make_dispatcher(path={"npm"})
        dispatcher.dispatch(Intent.INSTALL, project_dir=project)
        second = dispatcher.dispatch(Intent.INSTALL, IntentParams(**{option: True}), project)
        assert not second.skipped
        assert runner.call_count == 2

    def test_manifest_change_reinstalls(self, make_project, make_dispatcher, runner):
        project = make_project({**NPM_PROJECT, "node_modules/.keep": ""})
        dispatcher = make_dispatcher(path={"npm"})
        dispatcher.dispatch(Intent.INSTALL, project_dir=project)
        (project / "package.json").write_text('{"name": "app", "dependencies": {"vue": "^3"}}')
        second = dispatcher.dispatch(Intent.INSTALL, project_dir=project)
        assert not second.skipped
        assert runner.call_count == 2

    def test_write_failure_is_a_warning(self, make_project, make_dispatcher, runner):
        project = make_project(NPM_PROJECT)
        result = make_dispatcher(path={"npm"}).dispatch(Intent.INSTALL, project_dir=project)
        assert result.ok
        assert "dependency hash" in result.cache_warning

    def test_install_with_packages_never_skipped(self, make_project, make_dispatcher, runner):
        project = make_project({**NPM_PROJECT, "node_modules/.keep": ""})
        write_stored_hash(project, compute_deps_hash(project))
        make_dispatcher(path={"npm"}).dispatch(Intent.INSTALL, IntentParams(packages=("zod",)), project)
        assert runner.command_lines == [["npm", "install", "zod"]]

    def test_clean_install(self, make_project, make_dispatcher, runner):
        project = make_project({"package.json": {}, "pnpm-lock.yaml": ""})
        make_dispatcher(path={"pnpm"}).dispatch(Intent.CLEAN_INSTALL, project_dir=project)
        assert runner.command_lines == [["pnpm", "install", "--frozen-lockfile"]]

    def test_volta_prefix(self, make_project, make_dispatcher, runner):
        project = make_project({"package-lock.json": "{}"})
        result = make_dispatcher(path={"npm", "volta"}).dispatch(
            Intent.INSTALL, IntentParams(packages=("react",)), project,
        )
        assert result.detection.runtime_pin
        assert runner.command_lines == [["volta", "run", "npm", "install", "react"]]

    def test_no_volta_flag(self, make_project, make_dispatcher, runner):
        project = make_project({"package-lock.json": "{}"})
        make_dispatcher(path={"npm", "volta"}).dispatch(
            Intent.INSTALL, IntentParams(packages=("react",)), project, no_volta=True,
        )
        assert runner.command_lines == [["npm", "install", "react"]]

    def test_volta_disabled_in_config(self, make_project, make_dispatcher, runner):
        project = make_project({"package-lock.json": "{}"})
        dispatcher = make_dispatcher(path={"npm", "volta"}, config=DelegatorConfig(volta=False))
        dispatcher.dispatch(Intent.INSTALL, IntentParams(packages=("react",)), project)
        assert runner.command_lines == [["npm", "install", "react"]]

    def test_volta_only_for_installs(self, make_project, make_dispatcher, runner):
        project = make_project({"package-lock.json": "{}"})
        make_dispatcher(path={"npm", "volta"}).dispatch(Intent.EXEC, IntentParams(packages=("tsc",)), project)
        assert runner.command_lines == [["npm", "exec", "tsc"]]

    def test_deno_digest_at_root(self, make_project, make_dispatcher, runner):
        project = make_project({"deno.json": {"imports": {}}, "deno.lock": "{}"})
        result = make_dispatcher(path={"deno"}).dispatch(Intent.INSTALL, project_dir=project)
        assert result.ok
        assert result.cache_warning is None
        assert (project / ".jpd-deno-deps-hash").is_file()


# ── Run ──────────────────────────────────────────────────────────────


class TestRun:
    def test_run_script(self, make_project, make_dispatcher, runner):
        project = make_project(NPM_PROJECT)
        result = make_dispatcher(path={"npm"}).dispatch(
            Intent.RUN, IntentParams(script="build", args=("--mode", "prod")), project,
        )
        assert result.ok
        assert runner.command_lines == [["npm", "run", "build", "--", "--mode", "prod"]]

    def test_if_present_skips_missing_script(self, make_project, make_dispatcher, runner):
        project = make_project(NPM_PROJECT)
        result = make_dispatcher(path={"npm"}).dispatch(
            Intent.RUN, IntentParams(script="lint", if_present=True), project,
        )
        assert result.ok
        assert result.skipped
        assert runner.call_count == 0

    def test_if_present_runs_existing_script(self, make_project, make_dispatcher, runner):
        project = make_project(NPM_PROJECT)
        make_dispatcher(path={"npm"}).dispatch(
            Intent.RUN, IntentParams(script="build", if_present=True), project,
        )
        assert runner.command_lines == [["npm", "run", "--if-present", "build"]]

    def test_choose_script(self, make_project, make_dispatcher, runner):
        project = make_project(NPM_PROJECT)
        dispatcher = make_dispatcher(path={"npm"}, answers=["build"])
        result = dispatcher.dispatch(Intent.RUN, project_dir=project)
        assert result.ok
        assert runner.command_lines == [["npm", "run", "build"]]

    def test_choose_from_deno_tasks(self, make_project, make_dispatcher, runner):
        project = make_project({"deno.json": {"tasks": {"fmt": "deno fmt"}}})
        make_dispatcher(path={"deno"}, answers=["fmt"]).dispatch(Intent.RUN, project_dir=project)
        assert runner.command_lines == [["deno", "task", "fmt"]]

    def test_no_scripts(self, make_project, make_dispatcher, runner):
        project = make_project({"package.json": {"name": "app"}, "package-lock.json": "{}"})
        result = make_dispatcher(path={"npm"}).dispatch(Intent.RUN, project_dir=project)
        assert result.state is DispatchState.FAILED
        assert "No scripts" in result.error

    def test_dev_installs_first_when_node_modules_missing(self, make_project, make_dispatcher, runner):
        project = make_project(NPM_PROJECT)
        result = make_dispatcher(path={"npm"}).dispatch(Intent.RUN, IntentParams(script="dev"), project)
        assert result.ok
        assert runner.command_lines == [["npm", "install"], ["npm", "run", "dev"]]
        assert result.preflight.command_line == "npm install"

    def test_dev_no_install_when_up_to_date(self, make_project, make_dispatcher, runner):
        project = make_project({**NPM_PROJECT, "node_modules/.keep": ""})
        write_stored_hash(project, compute_deps_hash(project))
        make_dispatcher(path={"npm"}).dispatch(Intent.RUN, IntentParams(script="dev"), project)
        assert runner.command_lines == [["npm", "run", "dev"]]

    def test_missing_declared_package_triggers_install(self, make_project, make_dispatcher, runner):
        project = make_project({
            "package.json": {"scripts": {"dev": "vite"}, "devDependencies": {"vite": "^5"}},
            "package-lock.json": "{}",
            "node_modules/.keep": "",
        })
        write_stored_hash(project, compute_deps_hash(project))
        make_dispatcher(path={"npm"}).dispatch(Intent.RUN, IntentParams(script="dev"), project)
        assert runner.command_lines[0] == ["npm", "install"]

    def test_build_has_no_preflight(self, make_project, make_dispatcher, runner):
        project = make_project(NPM_PROJECT)
        make_dispatcher(path={"npm"}).dispatch(Intent.RUN, IntentParams(script="build"), project)
        assert runner.command_lines == [["npm", "run", "build"]]

    def test_auto_install_forced_off(self, make_project, make_dispatcher, runner):
        project = make_project(NPM_PROJECT)
        make_dispatcher(path={"npm"}).dispatch(
            Intent.RUN, IntentParams(script="dev"), project, auto_install=False,
        )
        assert runner.command_lines == [["npm", "run", "dev"]]

    def test_auto_install_from_config(self, make_project, make_dispatcher, runner):
        project = make_project(NPM_PROJECT)
        dispatcher = make_dispatcher(path={"npm"}, config=DelegatorConfig(auto_install=True))
        dispatcher.dispatch(Intent.RUN, IntentParams(script="build"), project)
        assert runner.command_lines[0] == ["npm", "install"]

    def test_pnp_project_skips_node_modules_check(self, make_project, make_dispatcher, runner):
        project = make_project({
            "package.json": {"scripts": {"dev": "vite"}},
            "yarn.lock": "",
            ".pnp.cjs": "",
        })
        dispatcher = make_dispatcher(path={"yarn"}, versions={"yarn": "4.1.0"})
        result = dispatcher.dispatch(Intent.RUN, IntentParams(script="dev"), project)
        # No node_modules, but PnP: only the digest decides (never stored → install)
        assert runner.command_lines == [["yarn", "install"], ["yarn", "run", "dev"]]
        assert "dependency hash" in result.cache_warning

    def test_preflight_failure_stops_run(self, make_project, make_dispatcher, runner):
        project = make_project(NPM_PROJECT)
        runner.set_failure("npm", error="Command exited with code 1", return_code=1)
        result = make_dispatcher(path={"npm"}).dispatch(Intent.RUN, IntentParams(script="dev"), project)
        assert result.state is DispatchState.FAILED
        assert "Dependency install failed" in result.error
        assert runner.call_count == 1


# ── Agent, dry-run, failures ─────────────────────────────────────────


class TestMisc:
    def test_agent_report_runs_nothing(self, make_project, make_dispatcher, runner):
        project = make_project({"bun.lockb": ""})
        result = make_dispatcher(path={"bun"}).dispatch(Intent.AGENT, project_dir=project)
        assert result.ok
        assert result.detection.program == "bun"
        assert runner.call_count == 0

    def test_agent_passthrough(self, make_project, make_dispatcher, runner):
        project = make_project({"bun.lockb": ""})
        make_dispatcher(path={"bun"}).dispatch(Intent.AGENT, IntentParams(args=("pm", "ls")), project)
        assert runner.command_lines == [["bun", "pm", "ls"]]

    def test_dry_run(self, make_project, make_dispatcher, runner):
        project = make_project({"package-lock.json": "{}"})
        result = make_dispatcher(path={"npm"}).dispatch(
            Intent.INSTALL, IntentParams(packages=("react",)), project, dry_run=True,
        )
        assert result.ok
        assert result.dry_run
        assert result.invocation.command_line == "npm install react"
        assert runner.call_count == 0

    def test_child_failure(self, make_project, make_dispatcher, runner):
        project = make_project({"package-lock.json": "{}"})
        runner.set_failure("npm", error="Command exited with code 2", return_code=2)
        result = make_dispatcher(path={"npm"}).dispatch(
            Intent.INSTALL, IntentParams(packages=("react",)), project,
        )
        assert result.state is DispatchState.FAILED
        assert result.exit_code == 2

    def test_template_error_fails(self, make_project, make_dispatcher, runner):
        project = make_project({"package-lock.json": "{}"})
        result = make_dispatcher(path={"npm"}).dispatch(
            Intent.UPDATE, IntentParams(interactive=True), project,
        )
        assert result.state is DispatchState.FAILED
        assert "npm update" in result.error
        assert runner.call_count == 0

    def test_missing_project_dir(self, tmp_path: Path, make_dispatcher):
        result = make_dispatcher(path={"npm"}).dispatch(Intent.INSTALL, project_dir=tmp_path / "nope")
        assert result.state is DispatchState.FAILED
        assert result.exit_code == 1

    def test_trace_ends_in_terminal_state(self, make_project, make_dispatcher):
        project = make_project({"package-lock.json": "{}"})
        result = make_dispatcher(path={"npm"}).dispatch(
            Intent.INSTALL, IntentParams(packages=("react",)), project,
        )
        assert result.trace == [
            DispatchState.START,
            DispatchState.CHECKING_OVERRIDE,
            DispatchState.DETECTING_LOCKFILE,
            DispatchState.RESOLVED,
            DispatchState.RENDERING,
            DispatchState.CACHE_CHECK,
            DispatchState.DISPATCHED,
        ]
        assert result.state.terminal

    @pytest.mark.parametrize("intent", [Intent.INSTALL, Intent.AGENT])
    def test_to_dict(self, make_project, make_dispatcher, intent):
        project = make_project({"package-lock.json": "{}"})
        data = make_dispatcher(path={"npm"}).dispatch(intent, project_dir=project, dry_run=True).to_dict()
        assert data["intent"] == intent.value
        assert data["state"] == "dispatched"
        assert data["detection"]["dialect"] == "npm"
