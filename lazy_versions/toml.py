"""TOML reading and writing utilities.

Uses tomlkit to preserve formatting and comments when modifying pyproject.toml
files. This is important for maintaining readable, diff-friendly files.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, cast

import tomlkit
from packaging.utils import canonicalize_name
from pydantic import ValidationError

from .errors import WorkspaceError
from .files import atomic_writer
from .models import VersionsConfig


def load_pyproject(path: Path) -> tomlkit.TOMLDocument:
    """Load and parse a pyproject.toml file.

    Returns a TOMLDocument that preserves formatting when modified and saved.
    """
    return tomlkit.parse(path.read_text())


def save_pyproject(path: Path, doc: tomlkit.TOMLDocument) -> None:
    """Save a TOMLDocument back to disk, preserving original formatting.

    The file is replaced atomically, so a failed write leaves it intact.
    """
    with atomic_writer(path) as fh:
        fh.write(tomlkit.dumps(doc))


def get_project_name(doc: tomlkit.TOMLDocument, fallback: str) -> str:
    """Extract the canonical package name from [project].name.

    Names are normalized per PEP 503 (lowercase, hyphens instead of
    underscores) for consistent comparison.

    Args:
        doc: Parsed pyproject.toml document.
        fallback: Value to return if name is not specified.
    """
    return canonicalize_name(doc.get("project", {}).get("name", fallback))


def get_project_version(doc: tomlkit.TOMLDocument) -> str | None:
    """Extract version from [project].version, or None if it is not set."""
    version = doc.get("project", {}).get("version")
    return str(version) if version is not None else None


def set_project_version(path: Path, new_version: str) -> None:
    """Rewrite [project].version of a pyproject.toml in place."""
    doc = load_pyproject(path)
    # Cast needed because tomlkit types are complex unions
    project = cast(dict[str, Any], doc["project"])
    project["version"] = new_version
    save_pyproject(path, doc)


def get_workspace_member_globs(doc: tomlkit.TOMLDocument) -> list[str]:
    """Extract workspace member glob patterns from [tool.uv.workspace].

    These patterns (e.g., "packages/*", "libs/*") define which directories
    contain workspace packages.

    Raises:
        WorkspaceError: If no workspace members are defined.
    """
    members = doc.get("tool", {}).get("uv", {}).get("workspace", {}).get("members")
    if not members:
        raise WorkspaceError(
            "No [tool.uv.workspace] members defined in root pyproject.toml"
        )
    return [str(m) for m in members]


def get_versions_config(doc: tomlkit.TOMLDocument) -> VersionsConfig:
    """Read the [tool.lazy-versions] table, falling back to defaults.

    Raises:
        WorkspaceError: If the table holds unknown keys or bad values.
    """
    table = doc.get("tool", {}).get("lazy-versions")
    # unwrap() turns tomlkit items (e.g. Bool) into plain Python values
    raw = table.unwrap() if table is not None else {}
    try:
        return VersionsConfig.model_validate(raw)
    except ValidationError as exc:
        raise WorkspaceError(f"Invalid [tool.lazy-versions] settings:\n{exc}") from exc
