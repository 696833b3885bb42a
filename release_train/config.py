"""Release configuration.

The workspace root holds a ``release.toml`` declaring named release sets:

    [[releases]]
    name = "crates"
    versioned_files = ["Cargo.toml", "npm/parser/package.json"]
    breaking_change_scopes = ["parser"]

Unknown keys are rejected at every level.
"""

from __future__ import annotations

from pathlib import Path
from typing import TypeVar

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, ValidationError
from tomlkit.exceptions import TOMLKitError

from .errors import ConfigError
from .history import commits_range
from .models import Package, VersionedPackage
from .toml import load_toml
from .versioning import NoContent, VersionedContent, read_versioned_content

RELEASE_CONFIG = "release.toml"

_P = TypeVar("_P", Package, VersionedPackage)


class ReleaseSet(BaseModel):
    """A named group of versioned files bumped and changelogged together.

    Attributes:
        name: Release set name, also the tag prefix (``<name>_v<version>``).
        versioned_files: Workspace-relative paths of Cargo.toml or
            package.json files carrying the version.
        breaking_change_scopes: If set, only commits whose scope contains
            one of these strings feed the version bump.
        exclude_out_of_scope_commits: With a scope filter, drop
            out-of-scope commits from the bump entirely (default) instead
            of only ignoring their breaking marker.
    """

    model_config = ConfigDict(extra="forbid")

    name: str
    versioned_files: list[Path]
    breaking_change_scopes: list[str] | None = None
    exclude_out_of_scope_commits: bool = True

    _contents: list[VersionedContent] = PrivateAttr(default_factory=list)

    def model_post_init(self, __context: object) -> None:
        self._contents = [NoContent() for _ in self.versioned_files]

    def load(self, root: Path) -> None:
        """Read every versioned file relative to the workspace root."""
        self._contents = [read_versioned_content(root / f) for f in self.versioned_files]

    def versioned_packages(self) -> list[VersionedPackage]:
        """Packages governed by this set, each once.

        Two Cargo.toml files of one workspace report the same members, so
        repeats are dropped.

        Raises:
            ConfigError: If two different packages share a name.
        """
        return self._unique([p for c in self._contents for p in c.versioned_packages()])

    def publishable_packages(self) -> list[Package]:
        return self._unique([p for c in self._contents for p in c.publishable_packages()])

    def _unique(self, packages: list[_P]) -> list[_P]:
        by_name: dict[str, _P] = {}
        for package in packages:
            seen = by_name.setdefault(package.name, package)
            if seen != package:
                raise ConfigError(
                    f"release {self.name}: conflicting entries for package {package.name}"
                )
        return list(by_name.values())

    def update_version(self, version: str) -> None:
        for content in self._contents:
            content.update_version(version)

    def commits_range(self, current_version: str) -> str:
        return commits_range(self.name, current_version)


class ReleaseConfig(BaseModel):
    """All release sets declared for a workspace."""

    model_config = ConfigDict(extra="forbid")

    release_sets: list[ReleaseSet] = Field(alias="releases")

    def find(self, name: str) -> ReleaseSet:
        """Look up a release set by name.

        Raises:
            ConfigError: If no release set has that name.
        """
        for release_set in self.release_sets:
            if release_set.name == name:
                return release_set
        raise ConfigError(f"release {name} not found")


def load_config(root: Path) -> ReleaseConfig:
    """Load and validate ``release.toml`` from the workspace root.

    Every versioned file is read as part of loading, so a config naming a
    missing or unrecognised file fails here.

    Raises:
        ConfigError: If the file is missing, unparsable or invalid.
    """
    path = root / RELEASE_CONFIG
    if not path.exists():
        raise ConfigError(f"No {RELEASE_CONFIG} found in {root}")
    try:
        raw = load_toml(path).unwrap()
    except TOMLKitError as exc:
        raise ConfigError(f"failed to parse {path}: {exc}") from exc
    try:
        config = ReleaseConfig.model_validate(raw)
    except ValidationError as exc:
        raise ConfigError(f"invalid {path}:\n{exc}") from exc
    for release_set in config.release_sets:
        release_set.load(root)
    return config
