"""Version parsing and bumping utilities.

Handles conversion between version strings and semver objects, with
special handling for incomplete version strings (e.g., "1.0" → "1.0.0"),
and derives the next version of a release set from its commits.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Literal

import semver

from .errors import BumpError, HistoryError
from .models import ParsedCommit, PreviousRelease, Release

BumpPart = Literal["major", "minor", "patch"]


def parse_version(version_str: str) -> semver.Version:
    """Parse a version string into a semver.Version object.

    Handles incomplete versions by padding with zeros:
    - "1" → "1.0.0"
    - "1.2" → "1.2.0"
    - "1.2.3" → "1.2.3"

    Full semver strings (with prerelease or build metadata) are parsed
    as-is.

    Raises:
        HistoryError: If the string is not a version at all.
    """
    parts = version_str.split(".")
    # Pad with zeros to ensure we have at least 3 parts
    while len(parts) < 3:
        parts.append("0")
    try:
        return semver.Version.parse(".".join(parts))
    except ValueError as exc:
        raise HistoryError(f"version {version_str} should be semver") from exc


def manual_bump(version_str: str, part: BumpPart) -> str:
    """Bump exactly one component without looking at any commits.

    Examples:
        manual_bump("1.2.3", "patch") → "1.2.4"
        manual_bump("1.2.3", "minor") → "1.3.0"
        manual_bump("1.2.3", "major") → "2.0.0"
    """
    version = parse_version(version_str)
    if part == "major":
        return str(version.bump_major())
    if part == "minor":
        return str(version.bump_minor())
    if part == "patch":
        return str(version.bump_patch())
    raise ValueError(f"Unknown version part: {part}")


def _in_scope(commit: ParsedCommit, scopes: Sequence[str]) -> bool:
    return commit.scope is not None and any(s in commit.scope for s in scopes)


def filter_scoped_commits(
    commits: Sequence[ParsedCommit],
    scopes: Sequence[str] | None,
    *,
    exclude_out_of_scope: bool = True,
) -> list[ParsedCommit]:
    """Apply a breaking-change scope filter.

    A commit is in scope when its scope contains one of ``scopes`` as a
    substring. Out-of-scope commits are dropped from the bump calculation
    entirely when ``exclude_out_of_scope`` is set; otherwise they are kept
    with their breaking flag cleared.

    With no filter configured every commit is returned unchanged.
    """
    if not scopes:
        return list(commits)
    if exclude_out_of_scope:
        return [c for c in commits if _in_scope(c, scopes)]
    return [
        c if _in_scope(c, scopes) else c.model_copy(update={"breaking": False})
        for c in commits
    ]


def bump_release(release: Release) -> str:
    """Compute the version a release should carry from its commits.

    Semantic-versioning precedence over ``release.previous.version``:
    any breaking commit bumps major (minor while major is 0), else any
    ``feat`` bumps minor, else any commit bumps patch.

    Raises:
        BumpError: If there is no previous version or no commits.
    """
    if release.previous is None:
        raise BumpError("No previous release to bump from")
    if not release.commits:
        raise BumpError(
            f"No commits since {release.previous.version}; nothing to release"
        )
    current = parse_version(release.previous.version)
    if any(c.breaking for c in release.commits):
        bumped = current.bump_minor() if current.major == 0 else current.bump_major()
    elif any(c.type == "feat" for c in release.commits):
        bumped = current.bump_minor()
    else:
        bumped = current.bump_patch()
    return str(bumped)


def next_version(
    current_version: str,
    commits: Sequence[ParsedCommit],
    scopes: Sequence[str] | None = None,
    *,
    exclude_out_of_scope: bool = True,
) -> str:
    """Derive the next version of a release set from its commits.

    Args:
        current_version: Version of the latest release tag.
        commits: Commits since that tag touching any governed package.
        scopes: Optional breaking-change scope filter.
        exclude_out_of_scope: See filter_scoped_commits.

    Returns:
        The bumped version string.

    Raises:
        BumpError: If no commits remain after filtering.

    Examples:
        next_version("0.5.2", [breaking]) → "0.6.0"
        next_version("1.5.2", [breaking]) → "2.0.0"
        next_version("1.0.0", [feat])     → "1.1.0"
        next_version("1.0.0", [fix])      → "1.0.1"
    """
    filtered = filter_scoped_commits(
        commits, scopes, exclude_out_of_scope=exclude_out_of_scope
    )
    release = Release(
        commits=filtered,
        previous=PreviousRelease(version=current_version),
    )
    return bump_release(release)
