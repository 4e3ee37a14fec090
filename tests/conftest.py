"""Shared test fixtures."""

from __future__ import annotations

from pathlib import Path

import pytest
import tomlkit

from lazy_versions.models import Workspace
from lazy_versions.workspace import discover_workspace

MEMBERS = {
    "alpha": '[project]\nname = "pkg-alpha"\nversion = "1.0.0"\n',
    "beta": '[project]\nname = "pkg_beta"\nversion = "2.0.0-rc.1"\n',
    # Not versioned yet
    "gamma": '[project]\nname = "pkg-gamma"\n',
    "delta": '# delta\n[project]\nname = "pkg-delta"\nversion = "1.2"  # short\n',
}


def write_workspace(root: Path, tool_config: str = "") -> Path:
    """Lay out a uv workspace with four members under ``root``."""
    (root / "pyproject.toml").write_text(
        '[tool.uv.workspace]\nmembers = ["packages/*"]\n' + tool_config
    )
    for dirname, content in MEMBERS.items():
        package_dir = root / "packages" / dirname
        package_dir.mkdir(parents=True)
        (package_dir / "pyproject.toml").write_text(content)
    return root


@pytest.fixture
def workspace_root(tmp_path: Path) -> Path:
    """Create a temporary workspace on disk."""
    return write_workspace(tmp_path)


@pytest.fixture
def workspace(workspace_root: Path) -> Workspace:
    """The discovered temporary workspace."""
    return discover_workspace(workspace_root)


@pytest.fixture
def sample_toml_doc() -> tomlkit.TOMLDocument:
    """Create a sample TOML document."""
    content = """\
[project]
name = "my-package"
version = "2.0.0"
dependencies = ["click>=8.0", "pydantic>=2.0"]

[tool.uv.workspace]
members = ["packages/*", "libs/*"]

[tool.lazy-versions]
deferred-folder = ".changes"
prefer-deferred = true
"""
    return tomlkit.parse(content)
