"""Version strategies and how they turn a current version into a new one.

A strategy is either one of the Decision keywords (``major``, ``prerelease``,
``decline``, ...) or an explicit semantic version. Keywords describe a bump
relative to the package's current version; explicit versions are used as-is.

Everything here is pure: no files are read or written.
"""

from __future__ import annotations

from collections.abc import Callable
from enum import Enum
from typing import Union

import semver

from .errors import InvalidBumpError, InvalidVersionError


class Decision(str, Enum):
    """Keywords accepted as a release strategy."""

    UNDECIDED = "undecided"
    DECLINE = "decline"
    MAJOR = "major"
    MINOR = "minor"
    PATCH = "patch"
    PREMAJOR = "premajor"
    PREMINOR = "preminor"
    PREPATCH = "prepatch"
    PRERELEASE = "prerelease"


# A strategy is a keyword or a concrete target version, never both.
Strategy = Union[Decision, semver.Version]

RELATIVE_DECISIONS: tuple[Decision, ...] = (
    Decision.MAJOR,
    Decision.MINOR,
    Decision.PATCH,
    Decision.PREMAJOR,
    Decision.PREMINOR,
    Decision.PREPATCH,
    Decision.PRERELEASE,
)

ACCEPTED_DECISIONS: frozenset[Decision] = frozenset(RELATIVE_DECISIONS) | {
    Decision.DECLINE
}


def _increment_prerelease(prerelease: str) -> str:
    """Increment the trailing numeric identifier of a prerelease string.

    Examples:
        "0" → "1"
        "rc.4" → "rc.5"
        "alpha" → "alpha.0"
    """
    parts = prerelease.split(".")
    if parts[-1].isdigit():
        parts[-1] = str(int(parts[-1]) + 1)
    else:
        parts.append("0")
    return ".".join(parts)


def _bump_prerelease(version: semver.Version) -> semver.Version:
    if version.prerelease:
        return semver.Version(
            version.major,
            version.minor,
            version.patch,
            prerelease=_increment_prerelease(version.prerelease),
        )
    return version.bump_patch().replace(prerelease="0")


_BUMPS: dict[Decision, Callable[[semver.Version], semver.Version]] = {
    Decision.MAJOR: lambda v: v.bump_major(),
    Decision.MINOR: lambda v: v.bump_minor(),
    Decision.PATCH: lambda v: v.bump_patch(),
    Decision.PREMAJOR: lambda v: v.bump_major().replace(prerelease="0"),
    Decision.PREMINOR: lambda v: v.bump_minor().replace(prerelease="0"),
    Decision.PREPATCH: lambda v: v.bump_patch().replace(prerelease="0"),
    Decision.PRERELEASE: _bump_prerelease,
}


def parse_version(version_str: str) -> semver.Version:
    """Parse a version string into a semver.Version object.

    Handles incomplete versions by padding with zeros:
    - "1" → "1.0.0"
    - "1.2" → "1.2.0"
    - "1.2.3-rc.1" → "1.2.3-rc.1"

    Raises:
        InvalidVersionError: If the string is not a semantic version.
    """
    text = str(version_str).strip()
    parts = text.split(".")
    if len(parts) < 3 and all(p.isdigit() for p in parts):
        # Pad with zeros to ensure we have 3 parts
        while len(parts) < 3:
            parts.append("0")
        text = ".".join(parts)
    try:
        return semver.Version.parse(text)
    except ValueError as exc:
        raise InvalidVersionError(
            version_str, f"{version_str!r} is not a valid semver version"
        ) from exc


def is_valid_version(version_str: str) -> bool:
    """Return True if parse_version() would accept ``version_str``."""
    try:
        parse_version(version_str)
    except InvalidVersionError:
        return False
    return True


def parse_strategy(raw: str) -> Strategy:
    """Turn a user-supplied string into a Strategy.

    Keywords are matched first, then explicit versions. ``undecided`` is a
    status, not something a user can choose, so it is rejected.

    Raises:
        InvalidVersionError: If ``raw`` is neither a keyword nor valid semver.
    """
    value = raw.strip()
    try:
        decision = Decision(value)
    except ValueError:
        decision = None

    if decision is not None:
        if decision not in ACCEPTED_DECISIONS:
            raise InvalidVersionError(raw)
        return decision

    try:
        return semver.Version.parse(value)
    except ValueError as exc:
        raise InvalidVersionError(raw) from exc


def format_strategy(strategy: Strategy) -> str:
    """Render a Strategy the way it is written to disk and shown to users."""
    if isinstance(strategy, Decision):
        return strategy.value
    return str(strategy)


def apply_strategy(current: str | None, strategy: Strategy) -> str:
    """Compute the version a package moves to under ``strategy``.

    Args:
        current: The package's current version, or None if it has none yet.
        strategy: A Decision keyword or an explicit version.

    Returns:
        The new version string. ``decline`` returns ``current`` unchanged.

    Raises:
        InvalidBumpError: If ``current`` is None and ``strategy`` is a keyword.
        InvalidVersionError: If ``current`` is not valid semver, or the
            strategy is ``undecided``.

    Examples:
        apply_strategy("1.2.3", Decision.MINOR) → "1.3.0"
        apply_strategy("1.2.3-rc.1", Decision.PRERELEASE) → "1.2.3-rc.2"
        apply_strategy(None, Version(2, 0, 0)) → "2.0.0"
    """
    if isinstance(strategy, semver.Version):
        return str(strategy)

    if current is None:
        raise InvalidBumpError()

    if strategy is Decision.DECLINE:
        return current

    bump = _BUMPS.get(strategy)
    if bump is None:
        raise InvalidVersionError(
            strategy.value, f"{strategy.value!r} can't be applied to a version"
        )
    return str(bump(parse_version(current)))


def suggest_strategy(current: str, target: str) -> Decision | None:
    """Find the single keyword that moves ``current`` to ``target``.

    Storing ``minor`` rather than ``1.3.0`` keeps a pending release correct
    if the current version changes before it is applied.

    Returns:
        The matching Decision, or None when no keyword (or more than one,
        e.g. ``prepatch`` and ``prerelease`` from a stable version) matches.
    """
    wanted = str(parse_version(target))
    matches = [d for d in RELATIVE_DECISIONS if apply_strategy(current, d) == wanted]
    return matches[0] if len(matches) == 1 else None


def is_lower(version: str, other: str) -> bool:
    """Return True if ``version`` sorts strictly before ``other``."""
    return parse_version(version) < parse_version(other)
