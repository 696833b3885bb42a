"""Data models for release-train.

These Pydantic models represent the core data structures shared by the
release-order resolver, the history scanner, the version calculator and
the changelog renderer.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

import semver
from pydantic import BaseModel, ConfigDict, Field

DependencyKind = Literal["normal", "dev", "build"]


class Dependency(BaseModel):
    """One declared dependency of a package.

    Attributes:
        name: Name of the depended-upon package.
        kind: "normal", "dev" or "build", as cargo reports it.
        feature_gated: True when one of the depending package's features
            references this dependency as ``name/feature``.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    kind: DependencyKind = "normal"
    feature_gated: bool = False


class Package(BaseModel):
    """A releasable package in the workspace.

    Attributes:
        name: Package name, unique within the workspace.
        version: Current version from the manifest.
        root_dir: Directory holding the manifest.
        manifest_path: Path to the package's Cargo.toml.
        dependencies: All declared dependencies, internal or not.
        publish: False when the manifest opts out of publishing.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    version: str
    root_dir: Path
    manifest_path: Path
    dependencies: list[Dependency] = Field(default_factory=list)
    publish: bool = True


class VersionedPackage(BaseModel):
    """The minimal identity needed to scope history and find a changelog."""

    model_config = ConfigDict(frozen=True)

    name: str
    dir: Path
    path: Path


class GitTag(BaseModel):
    """A release tag resolved to the commit it points at."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    version: semver.Version
    sha: str


class Commit(BaseModel):
    """A commit as read from git history.

    Attributes:
        sha: Full commit hash.
        message: Full commit message (subject, body and footers).
        timestamp: Author time, seconds since the epoch.
        paths: Repository-relative paths the commit changed.
    """

    sha: str
    message: str
    timestamp: int = 0
    paths: list[str] = Field(default_factory=list)


class ParsedCommit(BaseModel):
    """A commit classified by conventional-commit semantics.

    Attributes:
        commit: The underlying commit.
        type: Commit type (e.g. "feat", "fix"), None if not conventional.
        scope: Optional scope from ``type(scope): ...``.
        description: Subject text after the ``type(scope):`` prefix, or the
            whole subject for non-conventional commits.
        breaking: Marked breaking via ``!`` or a BREAKING CHANGE footer.
    """

    commit: Commit
    type: str | None = None
    scope: str | None = None
    description: str
    breaking: bool = False

    @property
    def conventional(self) -> bool:
        return self.type is not None


class PreviousRelease(BaseModel):
    """Version of the release a new release builds on."""

    version: str


class Release(BaseModel):
    """A release as consumed by changelog rendering and version bumping.

    Attributes:
        version: Released version, None for the in-progress release.
        commits: Commits that belong to this release.
        timestamp: Release time, seconds since the epoch.
        previous: The release this one follows, if known.
    """

    version: str | None = None
    commits: list[ParsedCommit] = Field(default_factory=list)
    timestamp: int = 0
    previous: PreviousRelease | None = None


class VersionBump(BaseModel):
    """Records a version change for a release set.

    Attributes:
        old: The version before bumping.
        new: The version after bumping.
    """

    old: str
    new: str
