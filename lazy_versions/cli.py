"""CLI entry point for lazy-versions."""

from __future__ import annotations

import functools
from collections.abc import Callable
from pathlib import Path
from typing import Any, TypeVar

import click

from .errors import LazyVersionsError
from .models import Workspace
from .strategy import ACCEPTED_DECISIONS
from .versioning import apply_releases, check_decisions, set_version, show_status
from .workspace import discover_workspace, find_package

F = TypeVar("F", bound=Callable[..., Any])

STRATEGIES = ", ".join(sorted(d.value for d in ACCEPTED_DECISIONS))


def _reports_errors(func: F) -> F:
    """Turn lazy-versions errors into click errors (message + exit code 1)."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return func(*args, **kwargs)
        except LazyVersionsError as exc:
            raise click.ClickException(str(exc)) from exc

    return wrapper  # type: ignore[return-value]


def _workspace() -> Workspace:
    return discover_workspace(Path.cwd())


@click.group()
@click.version_option(package_name="lazy-versions")
def cli() -> None:
    """Deferred version bumps for uv workspaces."""


@cli.command()
@click.argument("strategy")
@click.option(
    "-p",
    "--package",
    default=None,
    help="Workspace package to version. Defaults to the one containing the cwd.",
)
@click.option(
    "-d", "--deferred", is_flag=True, help="Only record the decision for later."
)
@click.option(
    "-i", "--immediate", is_flag=True, help="Apply the decision right away."
)
@click.option(
    "-f", "--force", is_flag=True, help="Allow a version lower than a pending one."
)
@click.option(
    "--change",
    default=None,
    help="Record to write into. Defaults to the current git branch.",
)
@_reports_errors
def version(
    strategy: str,
    package: str | None,
    deferred: bool,
    immediate: bool,
    force: bool,
    change: str | None,
) -> None:
    """Choose the next version of a package.

    STRATEGY is a semver version or one of: major, minor, patch, premajor,
    preminor, prepatch, prerelease, decline.

    \b
    - major, minor, patch bump that number and zero the ones after it.
    - premajor, preminor, prepatch do the same and add a -0 suffix.
    - prerelease increases the suffix, bumping patch if there was none.
    - decline records that this change needs no release.
    - an explicit version is used as the new version.
    """
    workspace = _workspace()
    name = package or find_package(workspace, Path.cwd())

    # None means "use the prefer-deferred setting"
    use_deferred: bool | None = None
    if deferred:
        use_deferred = True
    if immediate:
        use_deferred = False

    set_version(
        workspace, name, strategy, deferred=use_deferred, force=force, change=change
    )


@cli.command()
@click.option("--dry-run", is_flag=True, help="Show the new versions only.")
@_reports_errors
def apply(dry_run: bool) -> None:
    """Apply all pending releases to the package manifests."""
    apply_releases(_workspace(), dry_run=dry_run)


@cli.command()
@click.option(
    "--change",
    default=None,
    help="Record to check. Defaults to the current git branch.",
)
@_reports_errors
def check(change: str | None) -> None:
    """Fail if a package changed on this branch has no release decision."""
    undecided = check_decisions(_workspace(), change=change)
    if undecided:
        raise click.ClickException(
            f"No release decision for: {', '.join(undecided)}\n"
            f"Run `lazy-versions version <strategy> --package <name> --deferred` "
            f"with one of: {STRATEGIES}"
        )
    click.echo("✓ All changed packages have a release decision")


@cli.command()
@_reports_errors
def status() -> None:
    """Show pending release records and the versions they resolve to."""
    show_status(_workspace())
