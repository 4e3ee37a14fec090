"""Pending release records.

Each change (usually a git branch) owns one record in the deferred folder.
A record maps package names to the strategy chosen for them, plus a nonce
that is bumped every time a package is explicitly declined. Records are
TOML files:

    change = "feature/login"
    nonce = 1

    [releases]
    pkg-alpha = "minor"
    pkg-beta = "decline"

Records are only ever written whole, through an atomic replace, so a reader
never sees a half-written file once the rename has happened.
"""

from __future__ import annotations

import hashlib
from collections.abc import Iterator
from pathlib import Path

import tomlkit
from packaging.utils import canonicalize_name
from tomlkit.exceptions import TOMLKitError

from .errors import (
    InvalidVersionError,
    MalformedRecordError,
    PersistenceError,
    RecordNotFoundError,
    WorkspaceError,
)
from .files import atomic_writer
from .models import Workspace
from .shell import git
from .strategy import Decision, Strategy, format_strategy, parse_strategy


class PendingRelease:
    """The release decisions of a single change."""

    def __init__(
        self,
        path: Path,
        change: str,
        releases: dict[str, Strategy] | None = None,
        nonce: int = 0,
    ) -> None:
        self.path = path
        self.change = change
        self.releases: dict[str, Strategy] = dict(releases or {})
        self.nonce = nonce

    def __repr__(self) -> str:
        return (
            f"PendingRelease(path={str(self.path)!r}, change={self.change!r}, "
            f"releases={len(self.releases)}, nonce={self.nonce})"
        )

    def __len__(self) -> int:
        return len(self.releases)

    def __iter__(self) -> Iterator[tuple[str, Strategy]]:
        return iter(self.releases.items())

    def get(self, package: str) -> Strategy | None:
        return self.releases.get(canonicalize_name(package))

    def set(self, package: str, strategy: Strategy) -> None:
        """Record ``strategy`` for ``package``, replacing any earlier entry.

        Declining bumps the nonce so that an explicit "no release" can be
        told apart from a package nobody decided on.
        """
        if strategy is Decision.UNDECIDED:
            raise InvalidVersionError(strategy.value)
        self.releases[canonicalize_name(package)] = strategy
        if strategy is Decision.DECLINE:
            self.nonce += 1

    def to_toml(self) -> str:
        """Serialize the full record."""
        doc = tomlkit.document()
        doc.add("change", self.change)
        doc.add("nonce", self.nonce)
        releases = tomlkit.table()
        for name in sorted(self.releases):
            releases.add(name, format_strategy(self.releases[name]))
        doc.add("releases", releases)
        return tomlkit.dumps(doc)

    @classmethod
    def from_toml(cls, path: Path, text: str) -> PendingRelease:
        """Parse a record read from ``path``.

        Raises:
            MalformedRecordError: On invalid TOML, a missing or mistyped
                field, a strategy that isn't valid, or two entries that
                name the same package.
        """
        try:
            data = tomlkit.parse(text).unwrap()
        except TOMLKitError as exc:
            raise MalformedRecordError(path, f"invalid TOML: {exc}") from exc

        change = data.get("change")
        if not isinstance(change, str) or not change:
            raise MalformedRecordError(path, "missing change")

        nonce = data.get("nonce", 0)
        if isinstance(nonce, bool) or not isinstance(nonce, int) or nonce < 0:
            raise MalformedRecordError(path, f"invalid nonce: {nonce!r}")

        raw_releases = data.get("releases", {})
        if not isinstance(raw_releases, dict):
            raise MalformedRecordError(path, "releases must be a table")

        releases: dict[str, Strategy] = {}
        for name, raw in raw_releases.items():
            if not isinstance(raw, str):
                raise MalformedRecordError(
                    path, f"strategy for {name} must be a string, got {raw!r}"
                )
            canonical = canonicalize_name(name)
            if canonical in releases:
                raise MalformedRecordError(path, f"duplicate entry for {canonical}")
            try:
                releases[canonical] = parse_strategy(raw)
            except InvalidVersionError as exc:
                raise MalformedRecordError(path, f"{name}: {exc}") from exc

        return cls(path=path, change=change, releases=releases, nonce=nonce)

    def save_all(self) -> None:
        """Write the whole record to disk atomically.

        Raises:
            PersistenceError: If the file can't be written. The in-memory
                record is unchanged, so the call can be retried.
        """
        content = self.to_toml()
        try:
            with atomic_writer(self.path) as fh:
                fh.write(content)
        except OSError as exc:
            raise PersistenceError(self.path, str(exc)) from exc


def current_change(root: Path) -> str:
    """Identify the change being worked on: the git branch, else HEAD's sha.

    Raises:
        WorkspaceError: If git can't tell (no repository, no commits).
    """
    branch = git("rev-parse", "--abbrev-ref", "HEAD", cwd=root, check=False)
    if branch and branch != "HEAD":
        return branch
    # Detached HEAD: fall back to the commit itself
    sha = git("rev-parse", "--short", "HEAD", cwd=root, check=False)
    if sha:
        return sha
    raise WorkspaceError(
        "Can't determine the current change from git; pass --change explicitly"
    )


def record_path(workspace: Workspace, change: str) -> Path:
    """Location of the record owned by ``change``."""
    digest = hashlib.sha256(change.encode("utf-8")).hexdigest()[:8]
    return workspace.deferred_folder / f"{digest}.toml"


def list_records(workspace: Workspace) -> list[Path]:
    """All pending release records of the workspace, sorted by filename."""
    folder = workspace.deferred_folder
    if not folder.is_dir():
        return []
    return sorted(p for p in folder.glob("*.toml") if p.is_file())


def load_record(path: Path) -> PendingRelease:
    """Read and parse the record at ``path``.

    Raises:
        RecordNotFoundError: If the file does not exist.
        MalformedRecordError: If it can't be read or parsed.
    """
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        raise RecordNotFoundError(path) from exc
    except (OSError, UnicodeDecodeError) as exc:
        raise MalformedRecordError(path, f"unreadable: {exc}") from exc
    return PendingRelease.from_toml(path, text)


def open_record(
    workspace: Workspace, *, allow_empty: bool, change: str | None = None
) -> PendingRelease:
    """Load the record of ``change`` (default: the current git change).

    Args:
        workspace: The discovered workspace.
        allow_empty: Return a new, unsaved record when none exists yet
                     instead of raising.
        change: Change key; defaults to current_change().

    Raises:
        RecordNotFoundError: If absent and ``allow_empty`` is False.
        MalformedRecordError: If the existing record can't be parsed.
    """
    key = change or current_change(workspace.root)
    path = record_path(workspace, key)
    try:
        return load_record(path)
    except RecordNotFoundError:
        if not allow_empty:
            raise
        return PendingRelease(path=path, change=key)
