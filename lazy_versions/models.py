"""Data models for lazy-versions.

These Pydantic models represent the workspace, its configuration and the
version changes produced when pending releases are applied.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field


class PackageInfo(BaseModel):
    """Metadata for a single package in the workspace.

    Attributes:
        path: Relative path from workspace root to the package directory.
        version: Current version string from pyproject.toml, or None if the
                 package has not been versioned yet.
    """

    path: str
    version: str | None = None


class VersionBump(BaseModel):
    """Records a version change for a package.

    Attributes:
        old: The version before applying pending releases.
        new: The version after applying them.
    """

    old: str | None
    new: str


class VersionDecision(BaseModel):
    """Outcome of a ``version`` command.

    Attributes:
        package: Canonical name of the package the decision is for.
        strategy: What was stored in the record (keyword or version).
        version: The version the strategy resolves to, or None when declined.
        record: Path of the record that was written.
    """

    package: str
    strategy: str
    version: str | None
    record: Path


class VersionsConfig(BaseModel):
    """Settings from the root pyproject.toml ``[tool.lazy-versions]`` table."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    deferred_folder: str = Field(default=".versions", alias="deferred-folder")
    prefer_deferred: bool = Field(default=False, alias="prefer-deferred")
    base_branch: str = Field(default="main", alias="base-branch")


class Workspace(BaseModel):
    """A discovered uv workspace.

    Attributes:
        root: Absolute path of the directory holding the root pyproject.toml.
        config: lazy-versions settings for this workspace.
        packages: Map of canonical package name → PackageInfo.
    """

    root: Path
    config: VersionsConfig = Field(default_factory=VersionsConfig)
    packages: dict[str, PackageInfo] = Field(default_factory=dict)

    @property
    def deferred_folder(self) -> Path:
        """Directory holding the pending release records."""
        return self.root / self.config.deferred_folder
