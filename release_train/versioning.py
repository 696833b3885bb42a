"""Files that carry a release set's version.

A release set lists one or more versioned files. Each file is loaded into
a VersionedContent variant picked by its file name, and every variant can
enumerate the packages it governs and rewrite its stored version.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Protocol

from .errors import ConfigError
from .models import Package, VersionedPackage
from .toml import (
    get_workspace_dependency_names,
    load_toml,
    save_toml,
    set_package_version,
    set_workspace_dependency_version,
    set_workspace_package_version,
)
from .workspace import discover_packages


class VersionedContent(Protocol):
    """What release-train needs from a versioned file."""

    def versioned_packages(self) -> list[VersionedPackage]: ...

    def publishable_packages(self) -> list[Package]: ...

    def update_version(self, version: str) -> None: ...


class NoContent:
    """Placeholder for a file that governs nothing."""

    def versioned_packages(self) -> list[VersionedPackage]:
        return []

    def publishable_packages(self) -> list[Package]:
        return []

    def update_version(self, version: str) -> None:
        return None


class CargoWorkspace:
    """A Cargo workspace root and its publishable member crates.

    Members with ``publish = false`` are neither versioned nor published.
    """

    def __init__(self, manifest_path: Path) -> None:
        self.manifest_path = manifest_path
        self.packages = [
            p for p in discover_packages(manifest_path.parent) if p.publish
        ]

    def versioned_packages(self) -> list[VersionedPackage]:
        return [
            VersionedPackage(name=p.name, dir=p.root_dir, path=p.manifest_path)
            for p in self.packages
        ]

    def publishable_packages(self) -> list[Package]:
        return list(self.packages)

    def update_version(self, version: str) -> None:
        """Set every member crate's version and the workspace's pins to it.

        Each member manifest gets ``[package].version``. The root manifest
        gets ``[workspace.package].version`` and the version of every
        ``[workspace.dependencies]`` entry naming a member, and is saved
        once at the end.
        """
        root_doc = load_toml(self.manifest_path)
        root_resolved = self.manifest_path.resolve()

        for package in self.packages:
            if Path(package.manifest_path).resolve() == root_resolved:
                set_package_version(root_doc, version, self.manifest_path)
                continue
            doc = load_toml(package.manifest_path)
            if set_package_version(doc, version, package.manifest_path):
                save_toml(package.manifest_path, doc)

        set_workspace_package_version(root_doc, version)
        listed = set(get_workspace_dependency_names(root_doc))
        for package in self.packages:
            if package.name in listed:
                set_workspace_dependency_version(
                    root_doc, package.name, version, self.manifest_path
                )
        save_toml(self.manifest_path, root_doc)


class PackageJson:
    """An npm package descriptor versioned alongside the crates."""

    def __init__(self, path: Path) -> None:
        self.path = path
        try:
            self.raw: dict[str, Any] = json.loads(path.read_text())
        except (OSError, json.JSONDecodeError) as exc:
            raise ConfigError(f"failed to read {path}: {exc}") from exc
        if not isinstance(self.raw.get("name"), str):
            raise ConfigError(f"{path} has no `name` field")

    def versioned_packages(self) -> list[VersionedPackage]:
        return [VersionedPackage(name=self.raw["name"], dir=self.path.parent, path=self.path)]

    def publishable_packages(self) -> list[Package]:
        return []

    def update_version(self, version: str) -> None:
        self.raw["version"] = version
        self.path.write_text(json.dumps(self.raw, indent=2, ensure_ascii=False) + "\n")


def read_versioned_content(path: Path) -> VersionedContent:
    """Load a versioned file, dispatching on its file name.

    Raises:
        ConfigError: If the file name is not a recognised format.
    """
    if path.name == "Cargo.toml":
        return CargoWorkspace(path)
    if path.name == "package.json":
        return PackageJson(path)
    raise ConfigError(f"{path} is not recognized")
