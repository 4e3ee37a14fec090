"""Release commands: version → (apply), check, status.

This module orchestrates deferred versioning:
1. ``set_version`` records a strategy for one package in the current
   change's pending release record, after making sure it would not lower
   a version another change already committed to.
2. ``apply_releases`` resolves every record, writes the resulting versions
   into each package's pyproject.toml and removes the consumed records.
3. ``check_decisions`` lists packages changed on this branch that nobody
   decided on yet.
"""

from __future__ import annotations

import time
from pathlib import Path

import semver
from packaging.utils import canonicalize_name

from .errors import (
    InvalidBumpError,
    MalformedRecordError,
    PersistenceError,
    WorkspaceError,
)
from .ledger import (
    MergedLedger,
    check_current,
    check_regression,
    load_all_records,
    merge_records,
)
from .models import VersionBump, VersionDecision, Workspace
from .record import PendingRelease, open_record
from .shell import git, step
from .strategy import (
    Decision,
    Strategy,
    apply_strategy,
    format_strategy,
    is_valid_version,
    parse_strategy,
    suggest_strategy,
)
from .toml import set_project_version


def load_records_with_retry(
    workspace: Workspace, attempts: int = 3, delay: float = 0.2
) -> list[PendingRelease]:
    """Read all records, retrying when one is caught mid-write.

    Another process may be replacing or removing a record while we list
    the folder. A MalformedRecordError is retried ``attempts`` times in
    total before the last one is raised.
    """
    attempt = 1
    while True:
        try:
            return load_all_records(workspace)
        except MalformedRecordError:
            if attempt >= attempts:
                raise
            attempt += 1
            time.sleep(delay)


def resolve_with_retry(
    workspace: Workspace, attempts: int = 3, delay: float = 0.2
) -> MergedLedger:
    """resolve_version_files() with load_records_with_retry() semantics."""
    return merge_records(workspace, load_records_with_retry(workspace, attempts, delay))


def _choose_strategy(current: str | None, strategy: Strategy) -> Strategy:
    """Prefer a relative keyword over an explicit version when one fits.

    ``1.0.0`` → ``2.0.0`` is stored as ``major`` so the record stays right
    if the current version moves before the release is applied.
    """
    if not isinstance(strategy, semver.Version):
        return strategy
    if current is None or not is_valid_version(current):
        return strategy
    return suggest_strategy(current, str(strategy)) or strategy


def set_version(
    workspace: Workspace,
    package: str,
    raw_strategy: str,
    *,
    deferred: bool | None = None,
    force: bool = False,
    change: str | None = None,
) -> VersionDecision:
    """Record a release strategy for ``package`` in the current change.

    Args:
        workspace: The discovered workspace.
        package: Name of the workspace package.
        raw_strategy: Strategy as typed by the user.
        deferred: Only record the decision. When False the pending releases
                  are applied right after the record is saved. None uses
                  the ``prefer-deferred`` setting.
        force: Skip the check against versions already pending. Going below
               the current version is never allowed.
        change: Record to write into; defaults to the current git change.

    Raises:
        InvalidVersionError: Bad strategy, or bumping a non-semver version.
        InvalidBumpError: Relative bump of a package without a version.
        RegressionError: The new version is lower than a pending one or than
            the current version.
        PersistenceError: The record could not be saved.
    """
    name = canonicalize_name(package)
    info = workspace.packages.get(name)
    if info is None:
        raise WorkspaceError(f"Unknown workspace package: {package}")

    strategy = _choose_strategy(info.version, parse_strategy(raw_strategy))

    if strategy is Decision.DECLINE:
        # Declining only acknowledges the package; no version is computed
        target = info.version
    elif isinstance(strategy, Decision) and info.version is None:
        raise InvalidBumpError(name)
    else:
        target = apply_strategy(info.version, strategy)

    if strategy is not Decision.DECLINE:
        check_current(name, target, info.version)
        if not force:
            check_regression(resolve_with_retry(workspace), name, target)

    record = open_record(workspace, allow_empty=True, change=change)
    record.set(name, strategy)
    record.save_all()

    shown = format_strategy(strategy)
    if strategy is Decision.DECLINE:
        print(f"  {name}: declined (stays at {info.version or '<none>'})")
    else:
        print(f"  {name}: {shown} → {target}")
    print(f"  Saved {workspace.config.deferred_folder}/{record.path.name}")

    if deferred is None:
        deferred = workspace.config.prefer_deferred
    if not deferred:
        apply_releases(workspace)

    return VersionDecision(
        package=name,
        strategy=shown,
        version=None if strategy is Decision.DECLINE else target,
        record=record.path,
    )


def _pin_records(
    records: list[PendingRelease], bumped: dict[str, VersionBump]
) -> None:
    """Replace the strategy of every bumped package with its target version."""
    for record in records:
        pinned = False
        for name, strategy in list(record):
            bump = bumped.get(name)
            if bump is None or strategy is Decision.DECLINE:
                continue
            target = semver.Version.parse(bump.new)
            if isinstance(strategy, semver.Version) and strategy == target:
                continue
            record.set(name, target)
            pinned = True
        if pinned:
            record.save_all()


def apply_releases(
    workspace: Workspace, *, dry_run: bool = False
) -> dict[str, VersionBump]:
    """Write every pending version into its pyproject.toml.

    All records are read and resolved before any file is touched. Records
    are then rewritten with the exact versions being released, so a run
    that stops halfway can be repeated without bumping anything twice.
    Once the manifests are written, the records that were applied are
    removed.

    Args:
        workspace: The discovered workspace. Package versions are updated
                   in place to reflect the new manifests.
        dry_run: Print what would change without writing or deleting.

    Returns:
        Map of package name → VersionBump for every package that changed.

    Raises:
        PersistenceError: A record or a manifest could not be written.
    """
    step("Applying pending releases")

    records = load_records_with_retry(workspace)
    ledger = merge_records(workspace, records)

    bumped: dict[str, VersionBump] = {}
    for name in sorted(ledger):
        info = workspace.packages[name]
        new = ledger[name]
        if new == info.version:
            continue
        bumped[name] = VersionBump(old=info.version, new=new)
        print(f"  {name}: {info.version or '<none>'} → {new}")

    if not records:
        print("  No pending releases")
    elif not bumped:
        print("  No version changes")

    if dry_run:
        return bumped

    _pin_records(records, bumped)

    for name, bump in bumped.items():
        info = workspace.packages[name]
        path = workspace.root / info.path / "pyproject.toml"
        try:
            set_project_version(path, bump.new)
        except OSError as exc:
            raise PersistenceError(path, str(exc)) from exc
        info.version = bump.new

    for record in records:
        try:
            record.path.unlink(missing_ok=True)
        except OSError as exc:
            raise PersistenceError(record.path, str(exc)) from exc
        print(f"  Removed {workspace.config.deferred_folder}/{record.path.name}")

    return bumped


def changed_packages(workspace: Workspace) -> list[str]:
    """Packages with files changed since HEAD forked from the base branch.

    Raises:
        WorkspaceError: If there is no merge-base with the base branch.
    """
    base = workspace.config.base_branch
    merge_base = git("merge-base", "HEAD", base, cwd=workspace.root, check=False)
    if not merge_base:
        raise WorkspaceError(f"Can't find where HEAD forked from {base!r}")

    changed_files = set(
        git("diff", "--name-only", merge_base, "HEAD", cwd=workspace.root).splitlines()
    )

    changed: list[str] = []
    for name, info in workspace.packages.items():
        prefix = Path(info.path).as_posix().rstrip("/") + "/"
        if any(f.startswith(prefix) for f in changed_files):
            changed.append(name)
    return sorted(changed)


def check_decisions(workspace: Workspace, *, change: str | None = None) -> list[str]:
    """Find changed packages that have no decision in the current record.

    Declined packages count as decided.

    Returns:
        Sorted names of the undecided packages; empty when all is well.
    """
    step("Checking release decisions")

    changed = changed_packages(workspace)
    if not changed:
        print("  No package changed on this branch")
        return []

    record = open_record(workspace, allow_empty=True, change=change)
    undecided: list[str] = []
    for name in changed:
        strategy = record.get(name)
        if strategy is None:
            undecided.append(name)
            print(f"  {name}: {Decision.UNDECIDED.value}")
        else:
            print(f"  {name}: {format_strategy(strategy)}")
    return undecided


def show_status(workspace: Workspace) -> MergedLedger:
    """Print every record and the versions they resolve to."""
    step("Pending release records")

    records = load_records_with_retry(workspace)
    if not records:
        print("  <none>")
    for record in records:
        print(f"  {record.path.name} ({record.change}, nonce {record.nonce})")
        for name, strategy in sorted(record, key=lambda item: item[0]):
            print(f"    {name}: {format_strategy(strategy)}")

    step("Resolved versions")

    ledger = merge_records(workspace, records)
    if not ledger:
        print("  <none>")
    for name in sorted(ledger):
        current = workspace.packages[name].version
        print(f"  {name}: {current or '<none>'} → {ledger[name]}")
    return ledger
