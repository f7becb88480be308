"""
Dependency change cache — digest of manifest + lockfile, persisted per project.

The stored digest lets the dispatcher skip an install whose inputs
have not changed since the last successful one. ``--force`` bypasses it.

Marker locations:
    Node dialects:  node_modules/.jpd-deps-hash
    Deno:           .jpd-deno-deps-hash (project root)

Writes are atomic (write to temp file, then rename).
"""

from __future__ import annotations

import hashlib
import logging
import tempfile
from pathlib import Path

from jsdelegate.core.models.manager import LockfileKind, ManagerDialect

logger = logging.getLogger(__name__)

DEPS_HASH_FILE = ".jpd-deps-hash"
DENO_DEPS_HASH_FILE = ".jpd-deno-deps-hash"

NODE_MANIFEST = "package.json"
DENO_MANIFESTS = ("deno.json", "deno.jsonc")


def hash_file_path(project_dir: Path, dialect: ManagerDialect = ManagerDialect.NPM) -> Path:
    """Where the digest for this project/dialect lives."""
    if dialect is ManagerDialect.DENO:
        return project_dir / DENO_DEPS_HASH_FILE
    return project_dir / "node_modules" / DEPS_HASH_FILE


def manifest_path(project_dir: Path, dialect: ManagerDialect) -> Path | None:
    """The dependency manifest for the dialect, if present."""
    names = DENO_MANIFESTS if dialect is ManagerDialect.DENO else (NODE_MANIFEST,)
    for name in names:
        candidate = project_dir / name
        if candidate.is_file():
            return candidate
    return None


def lockfile_path(project_dir: Path, dialect: ManagerDialect) -> Path | None:
    """First lockfile written by the dialect's manager, if present."""
    for kind in LockfileKind:
        if kind.manager is not dialect.manager:
            continue
        if kind.value in DENO_MANIFESTS:
            continue  # config files, not lockfiles
        candidate = project_dir / kind.value
        if candidate.is_file():
            return candidate
    return None


def compute_deps_hash(project_dir: Path, dialect: ManagerDialect = ManagerDialect.NPM) -> str | None:
    """SHA-256 over manifest bytes, a NUL separator, then lockfile bytes.

    Returns:
        Hex digest, or None when the project has no manifest.

    Raises:
        OSError: If an existing manifest or lockfile cannot be read.
    """
    manifest = manifest_path(project_dir, dialect)
    if manifest is None:
        return None

    digest = hashlib.sha256()
    digest.update(manifest.read_bytes())
    digest.update(b"\0")

    lockfile = lockfile_path(project_dir, dialect)
    if lockfile is not None:
        digest.update(lockfile.read_bytes())

    return digest.hexdigest()


def read_stored_hash(project_dir: Path, dialect: ManagerDialect = ManagerDialect.NPM) -> str:
    """Previously persisted digest, or "" if never written or unreadable."""
    path = hash_file_path(project_dir, dialect)
    try:
        if not path.is_file():
            return ""
        return path.read_text(encoding="utf-8").strip()
    except OSError as e:
        logger.warning("Cannot read dependency hash %s, treating as absent: %s", path, e)
        return ""


def write_stored_hash(
    project_dir: Path,
    digest: str,
    dialect: ManagerDialect = ManagerDialect.NPM,
) -> Path:
    """Persist ``digest``, overwriting any prior value.

    Node markers live inside node_modules, which must already exist
    (it is created by the install this digest describes).

    Returns:
        Path of the written marker.

    Raises:
        OSError: If the marker cannot be written.
    """
    path = hash_file_path(project_dir, dialect)
    if not path.parent.is_dir():
        raise FileNotFoundError(f"Hash storage unavailable: {path.parent} does not exist")

    _fd, tmp_path = tempfile.mkstemp(
        dir=path.parent,
        prefix=".jpd_",
        suffix=".tmp",
    )
    tmp = Path(tmp_path)
    try:
        with open(_fd, "w", encoding="utf-8") as fh:
            fh.write(digest + "\n")
        tmp.replace(path)
    except Exception:
        tmp.unlink(missing_ok=True)
        raise

    logger.debug("Dependency hash %s… saved to %s", digest[:8], path)
    return path
