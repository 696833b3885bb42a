"""Workspace discovery via ``cargo metadata``.

Turns cargo's JSON description of the workspace members into Package
models carrying everything the release-order resolver needs: declared
dependencies with their kind, and the feature table used to decide whether
a dev-dependency still constrains publish order.
"""

from __future__ import annotations

import json
import os
import subprocess
from pathlib import Path
from typing import Any

from .errors import ConfigError
from .models import Dependency, Package


def cargo_binary() -> str:
    """The cargo executable, honouring the CARGO override."""
    return os.environ.get("CARGO", "cargo")


def cargo_metadata(root: Path) -> dict[str, Any]:
    """Run ``cargo metadata`` for the workspace at root and parse its JSON."""
    try:
        result = subprocess.run(
            [cargo_binary(), "metadata", "--format-version", "1", "--no-deps"],
            cwd=root,
            capture_output=True,
            text=True,
            check=True,
        )
    except subprocess.CalledProcessError as exc:
        raise ConfigError(f"cargo metadata failed in {root}:\n{exc.stderr}") from exc
    return json.loads(result.stdout)


def feature_referenced_names(features: dict[str, list[str]]) -> set[str]:
    """Collect dependency names referenced as ``dep/feature`` in features.

    Weak references (``dep?/feature``) count as well.

    Examples:
        {"serde": ["dep-a/serde", "dep-b?/serde", "std"]} → {"dep-a", "dep-b"}
    """
    names: set[str] = set()
    for values in features.values():
        for value in values:
            if "/" not in value:
                continue
            lhs = value.split("/", 1)[0]
            names.add(lhs.removesuffix("?"))
    return names


def package_from_metadata(raw: dict[str, Any]) -> Package:
    """Build a Package from one entry of cargo metadata's ``packages``."""
    features = {k: list(v) for k, v in raw.get("features", {}).items()}
    gated = feature_referenced_names(features)
    dependencies = [
        Dependency(
            name=dep["name"],
            kind=dep.get("kind") or "normal",
            feature_gated=dep["name"] in gated,
        )
        for dep in raw.get("dependencies", [])
    ]
    manifest_path = Path(raw["manifest_path"])
    # cargo reports `publish = false` as an empty registry list
    publish = raw.get("publish") != []
    return Package(
        name=raw["name"],
        version=raw["version"],
        root_dir=manifest_path.parent,
        manifest_path=manifest_path,
        dependencies=dependencies,
        publish=publish,
    )


def discover_packages(root: Path) -> list[Package]:
    """Read all workspace members under root, in cargo's reported order.

    Raises:
        ConfigError: If cargo fails or two members share a name.
    """
    metadata = cargo_metadata(root)
    packages: list[Package] = []
    seen: set[str] = set()
    for raw in metadata.get("packages", []):
        package = package_from_metadata(raw)
        if package.name in seen:
            raise ConfigError(f"Duplicate package name in workspace: {package.name}")
        seen.add(package.name)
        packages.append(package)
    return packages
