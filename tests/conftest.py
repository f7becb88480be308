"""
Shared test fixtures and configuration.
"""

import json
import logging
from collections.abc import Callable
from pathlib import Path

import pytest

from jsdelegate.adapters.mock import (
    FakePathLookup,
    MockCommandRunner,
    ScriptedTextInput,
    StaticVersionReporter,
)
from jsdelegate.core.config.build_info import BuildInfo
from jsdelegate.core.config.loader import DelegatorConfig
from jsdelegate.core.use_cases.dispatch import Dispatcher


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep the developer's shell from leaking into detection."""
    for name in ("JPD_AGENT", "JPD_MODE", "JPD_BUILD_DATE", "JPD_LOG_LEVEL", "JPD_LOG_FILE", "CI"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture(autouse=True)
def restore_root_logger():
    """setup_logging replaces root handlers; put them back afterwards."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def make_project(tmp_path: Path) -> Callable[..., Path]:
    """Write files into tmp_path; dict values are dumped as JSON.

    Usage:
        project = make_project({"package.json": {"name": "app"}, "yarn.lock": ""})
    """

    def _make(files: dict[str, str | dict]) -> Path:
        for name, content in files.items():
            path = tmp_path / name
            path.parent.mkdir(parents=True, exist_ok=True)
            if isinstance(content, dict):
                content = json.dumps(content)
            path.write_text(content, encoding="utf-8")
        return tmp_path

    return _make


@pytest.fixture
def runner() -> MockCommandRunner:
    return MockCommandRunner()


@pytest.fixture
def make_dispatcher(runner: MockCommandRunner) -> Callable[..., Dispatcher]:
    """Build a Dispatcher over mock capabilities.

    Usage:
        dispatcher = make_dispatcher(path={"npm"}, versions={"yarn": "1.22.19"})
    """

    def _make(
        path: set[str] | None = None,
        versions: dict[str, str | None] | None = None,
        answers: list[str] | None = None,
        config: DelegatorConfig | None = None,
        build_info: BuildInfo | None = None,
    ) -> Dispatcher:
        return Dispatcher(
            runner=runner,
            version_reporter=StaticVersionReporter(versions or {}),
            text_input=ScriptedTextInput(answers or []),
            path_lookup=FakePathLookup(path or set()),
            config=config,
            build_info=build_info,
        )

    return _make
