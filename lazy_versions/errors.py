"""Exceptions raised by lazy-versions.

Every failure surfaces to the caller as a subclass of LazyVersionsError.
The CLI turns them into user-facing messages; library code never catches
them to carry on with partial results.
"""

from __future__ import annotations

from pathlib import Path


class LazyVersionsError(Exception):
    """Base class for all lazy-versions errors."""


class WorkspaceError(LazyVersionsError):
    """The workspace layout or its configuration is unusable."""


class InvalidVersionError(LazyVersionsError):
    """A value is neither a known strategy nor a valid semantic version."""

    def __init__(self, value: str | None, reason: str | None = None) -> None:
        self.value = value
        message = reason or (
            f"{value!r} must be a semver version or one of "
            "major, minor, patch, premajor, preminor, prepatch, prerelease, decline"
        )
        super().__init__(message)


class InvalidBumpError(LazyVersionsError):
    """A relative bump was requested for a package that has no version yet."""

    def __init__(self, package: str | None = None) -> None:
        self.package = package
        subject = f"{package} " if package else ""
        super().__init__(
            f"Can't bump the version of {subject}if there wasn't a version to "
            "begin with - set an explicit version (e.g. 0.0.0) first"
        )


class RegressionError(LazyVersionsError):
    """A new decision would lower a version that is pending or released."""

    def __init__(
        self,
        package: str,
        candidate: str,
        pending: str,
        against: str = "pending deferred version",
    ) -> None:
        self.package = package
        self.candidate = candidate
        self.pending = pending
        super().__init__(
            f"Can't set {package} to {candidate}: it would be lower than the "
            f"{against} ({pending})"
        )


class RecordNotFoundError(LazyVersionsError):
    """No pending release record exists for the change."""

    def __init__(self, path: Path) -> None:
        self.path = path
        super().__init__(f"No pending release record at {path}")


class MalformedRecordError(LazyVersionsError):
    """A pending release record could not be parsed."""

    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Malformed release record {path}: {reason}")


class PersistenceError(LazyVersionsError):
    """Writing a pending release record or a manifest failed."""

    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to write {path}: {reason}")
