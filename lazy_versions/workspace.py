"""Workspace discovery.

Locates the root of the uv workspace and reads each member's name and
current version from its pyproject.toml.
"""

from __future__ import annotations

import glob
from pathlib import Path

from .errors import WorkspaceError
from .models import PackageInfo, Workspace
from .toml import (
    get_project_name,
    get_project_version,
    get_versions_config,
    get_workspace_member_globs,
    load_pyproject,
)


def find_workspace_root(start: Path | None = None) -> Path:
    """Walk up from ``start`` to the directory declaring [tool.uv.workspace].

    Raises:
        WorkspaceError: If no enclosing workspace is found.
    """
    here = (start or Path.cwd()).resolve()
    for candidate in (here, *here.parents):
        pyproject = candidate / "pyproject.toml"
        if not pyproject.exists():
            continue
        doc = load_pyproject(pyproject)
        if doc.get("tool", {}).get("uv", {}).get("workspace") is not None:
            return candidate
    raise WorkspaceError(
        f"No uv workspace found from {here}.\n"
        "lazy-versions requires a uv workspace. Example:\n\n"
        "  [tool.uv.workspace]\n"
        '  members = ["packages/*"]'
    )


def discover_workspace(start: Path | None = None) -> Workspace:
    """Scan the workspace and discover all packages.

    Reads [tool.uv.workspace].members from root pyproject.toml to find
    package directories, then extracts name and version from each
    package's pyproject.toml.

    Raises:
        WorkspaceError: If no workspace or no members are found.
    """
    root = find_workspace_root(start)
    root_doc = load_pyproject(root / "pyproject.toml")
    config = get_versions_config(root_doc)
    member_globs = get_workspace_member_globs(root_doc)

    # Expand globs to find all package directories
    member_dirs: list[Path] = []
    for pattern in member_globs:
        for match in sorted(glob.glob(str(root / pattern))):
            p = Path(match)
            if (p / "pyproject.toml").exists() and p not in member_dirs:
                member_dirs.append(p)

    if not member_dirs:
        raise WorkspaceError("No packages found matching workspace members")

    packages: dict[str, PackageInfo] = {}
    for d in member_dirs:
        doc = load_pyproject(d / "pyproject.toml")
        name = get_project_name(doc, d.name)
        if name in packages:
            raise WorkspaceError(
                f"Duplicate package name {name!r} in {packages[name].path} "
                f"and {d.relative_to(root)}"
            )
        packages[name] = PackageInfo(
            path=str(d.relative_to(root)),
            version=get_project_version(doc),
        )

    return Workspace(root=root, config=config, packages=packages)


def find_package(workspace: Workspace, cwd: Path | None = None) -> str:
    """Return the name of the workspace member containing ``cwd``.

    When members are nested, the deepest one wins.

    Raises:
        WorkspaceError: If ``cwd`` is not inside any member.
    """
    here = (cwd or Path.cwd()).resolve()
    best: tuple[int, str] | None = None
    for name, info in workspace.packages.items():
        pkg_dir = (workspace.root / info.path).resolve()
        if here == pkg_dir or pkg_dir in here.parents:
            depth = len(pkg_dir.parts)
            if best is None or depth > best[0]:
                best = (depth, name)
    if best is None:
        raise WorkspaceError(
            f"{here} is not inside a workspace package; use --package to pick one"
        )
    return best[1]
