"""
Manifest reading — package.json / deno.json(c) scripts, tasks, dependencies.

Pure reads. Used by the run intent (script listing, --if-present) and
by the auto-install preflight (missing packages, Yarn PnP).
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

logger = logging.getLogger(__name__)

PNP_MARKERS = (".pnp.cjs", ".pnp.data.json")

# Stop looking after this many missing packages
MAX_MISSING_PACKAGES = 10


class ManifestError(ValueError):
    """Raised when a manifest is missing or unparseable."""


def normalize_jsonc(text: str) -> str:
    """Strip // and /* */ comments and trailing commas from JSONC.

    Comment-like sequences inside string literals are left untouched.
    """
    out: list[str] = []
    i = 0
    n = len(text)
    in_string = False
    escape = False

    while i < n:
        ch = text[i]
        if in_string:
            out.append(ch)
            if escape:
                escape = False
            elif ch == "\\":
                escape = True
            elif ch == '"':
                in_string = False
            i += 1
            continue

        if ch == '"':
            in_string = True
            out.append(ch)
            i += 1
        elif text.startswith("//", i):
            end = text.find("\n", i)
            i = n if end == -1 else end
        elif text.startswith("/*", i):
            end = text.find("*/", i + 2)
            i = n if end == -1 else end + 2
        else:
            out.append(ch)
            i += 1

    return _strip_trailing_commas("".join(out))


def _strip_trailing_commas(text: str) -> str:
    out: list[str] = []
    in_string = False
    escape = False

    for i, ch in enumerate(text):
        if in_string:
            out.append(ch)
            if escape:
                escape = False
            elif ch == "\\":
                escape = True
            elif ch == '"':
                in_string = False
            continue

        if ch == '"':
            in_string = True
        elif ch == ",":
            rest = text[i + 1:].lstrip()
            if rest[:1] in ("}", "]"):
                continue
        out.append(ch)

    return "".join(out)


def _read_json(path: Path) -> dict:
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ManifestError(f"failed to read {path.name}: {e}") from e

    if path.suffix == ".jsonc":
        raw = normalize_jsonc(raw)

    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ManifestError(f"failed to parse {path.name}: {e}") from e

    if not isinstance(data, dict):
        raise ManifestError(f"{path.name} must contain a JSON object")
    return data


def _string_map(data: dict, key: str) -> dict[str, str]:
    value = data.get(key) or {}
    if not isinstance(value, dict):
        return {}
    return {str(k): str(v) for k, v in value.items()}


def deno_config_path(project_dir: Path) -> Path | None:
    """deno.json, else deno.jsonc, else None."""
    for name in ("deno.json", "deno.jsonc"):
        candidate = project_dir / name
        if candidate.is_file():
            return candidate
    return None


def read_package_scripts(project_dir: Path) -> dict[str, str]:
    """``scripts`` from package.json.

    Raises:
        ManifestError: If package.json is missing or invalid.
    """
    return _string_map(_read_json(project_dir / "package.json"), "scripts")


def read_deno_tasks(project_dir: Path) -> dict[str, str]:
    """``tasks`` from deno.json / deno.jsonc.

    Raises:
        ManifestError: If no deno config exists or it is invalid.
    """
    path = deno_config_path(project_dir)
    if path is None:
        raise ManifestError(f"failed to find deno.json or deno.jsonc in {project_dir}")
    return _string_map(_read_json(path), "tasks")


def read_declared_dependencies(project_dir: Path) -> dict[str, str]:
    """``dependencies`` merged with ``devDependencies`` (dev wins on clash).

    Raises:
        ManifestError: If package.json is missing or invalid.
    """
    data = _read_json(project_dir / "package.json")
    merged = _string_map(data, "dependencies")
    merged.update(_string_map(data, "devDependencies"))
    return merged


def is_yarn_pnp(project_dir: Path) -> bool:
    """Yarn Plug'n'Play projects keep no node_modules directory."""
    return any((project_dir / marker).exists() for marker in PNP_MARKERS)


def missing_node_packages(
    project_dir: Path,
    names: list[str],
    limit: int = MAX_MISSING_PACKAGES,
) -> list[str]:
    """Declared packages absent from node_modules, up to ``limit``.

    Scoped names (``@scope/pkg``) map to nested directories.
    """
    node_modules = project_dir / "node_modules"
    missing: list[str] = []
    for name in names:
        if len(missing) >= limit:
            break
        if not (node_modules / name).exists():
            missing.append(name)
    return missing
