"""Merging pending release records into one view of upcoming versions.

Every record is read, each of its strategies is applied to the package's
current version, and for a package named by several records the highest
resulting version is kept. Concurrent changes may ask for different bump
levels; the strongest one is what will eventually be released.

Nothing here writes to disk.
"""

from __future__ import annotations

from .errors import (
    InvalidBumpError,
    MalformedRecordError,
    RecordNotFoundError,
    RegressionError,
)
from .models import Workspace
from .record import PendingRelease, list_records, load_record
from .shell import warn
from .strategy import Decision, apply_strategy, is_lower, is_valid_version

# Package name → version it will be released as.
MergedLedger = dict[str, str]


def load_all_records(workspace: Workspace) -> list[PendingRelease]:
    """Read every record of the workspace before anything is merged.

    Raises:
        MalformedRecordError: If any record can't be parsed, or vanished
            between listing the folder and reading it.
    """
    records: list[PendingRelease] = []
    for path in list_records(workspace):
        try:
            records.append(load_record(path))
        except RecordNotFoundError as exc:
            raise MalformedRecordError(path, "removed while being read") from exc
    return records


def merge_records(
    workspace: Workspace, records: list[PendingRelease]
) -> MergedLedger:
    """Fold ``records`` into a MergedLedger.

    Declined packages produce no candidate. Packages that are not members
    of the workspace, and candidates below the current version, are skipped
    with a warning.

    Raises:
        InvalidBumpError: If a record bumps a package that has no version.
        InvalidVersionError: If a package's current version isn't semver.
    """
    ledger: MergedLedger = {}
    for record in records:
        for name, strategy in record:
            info = workspace.packages.get(name)
            if info is None:
                warn(f"{record.path.name}: {name} is not a workspace package, skipping")
                continue
            if strategy is Decision.DECLINE:
                continue

            try:
                candidate = apply_strategy(info.version, strategy)
            except InvalidBumpError as exc:
                raise InvalidBumpError(name) from exc

            if is_below_current(candidate, info.version):
                warn(
                    f"{record.path.name}: {name} {candidate} is lower than the "
                    f"current version {info.version}, skipping"
                )
                continue

            pending = ledger.get(name)
            if pending is None or is_lower(pending, candidate):
                ledger[name] = candidate
    return ledger


def resolve_version_files(workspace: Workspace) -> MergedLedger:
    """Resolve every pending release record into the versions to release.

    Returns:
        Map of package name → highest pending version. Packages that are
        only declined, or not mentioned, are absent.

    Raises:
        MalformedRecordError: If any record can't be parsed. No partial
            ledger is returned.

    Example:
        Two records asking for ``minor`` and ``patch`` on pkg-a at 1.0.0
        resolve to {"pkg-a": "1.1.0"}.
    """
    return merge_records(workspace, load_all_records(workspace))


def check_regression(ledger: MergedLedger, package: str, candidate: str) -> None:
    """Reject ``candidate`` if it is lower than what is already pending.

    Raises:
        RegressionError: With both versions, if ``candidate`` is lower.
    """
    pending = ledger.get(package)
    if pending is not None and is_lower(candidate, pending):
        raise RegressionError(package, candidate, pending)


def is_below_current(candidate: str, current: str | None) -> bool:
    """Return True if ``candidate`` would move ``current`` backwards.

    A current version that isn't semver can't be compared and never blocks.
    """
    if current is None or not is_valid_version(current):
        return False
    return is_lower(candidate, current)


def check_current(package: str, candidate: str, current: str | None) -> None:
    """Reject ``candidate`` if it is lower than the package's current version.

    Raises:
        RegressionError: With both versions, if ``candidate`` is lower.
    """
    if current is not None and is_below_current(candidate, current):
        raise RegressionError(package, candidate, current, against="current version")
