"""TOML reading and writing utilities.

Uses tomlkit to preserve formatting and comments when modifying Cargo.toml
files. This is important for maintaining readable, diff-friendly files.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import tomlkit

from .errors import ConfigError


def load_toml(path: Path) -> tomlkit.TOMLDocument:
    """Load and parse a TOML file.

    Returns a TOMLDocument that preserves formatting when modified and saved.
    """
    return tomlkit.parse(path.read_text())


def save_toml(path: Path, doc: tomlkit.TOMLDocument) -> None:
    """Save a TOMLDocument back to disk, preserving original formatting."""
    path.write_text(tomlkit.dumps(doc))


def get_package_version(doc: tomlkit.TOMLDocument) -> str | None:
    """Extract [package].version, or None when inherited or absent."""
    version = doc.get("package", {}).get("version")
    return version if isinstance(version, str) else None


def get_workspace_dependency_names(doc: tomlkit.TOMLDocument) -> list[str]:
    """List the keys of [workspace.dependencies]."""
    return list(doc.get("workspace", {}).get("dependencies", {}).keys())


def set_package_version(doc: tomlkit.TOMLDocument, version: str, path: Path) -> bool:
    """Set [package].version in place.

    A crate using ``version.workspace = true`` inherits its version from the
    workspace root, so it is left untouched.

    Returns:
        True if the field was rewritten.

    Raises:
        ConfigError: If the manifest has no [package].version at all.
    """
    package = doc.get("package")
    if package is None or "version" not in package:
        raise ConfigError(f"No `package.version` field found: {path}")
    if isinstance(package["version"], dict):
        return False
    package["version"] = version
    return True


def set_workspace_package_version(doc: tomlkit.TOMLDocument, version: str) -> bool:
    """Set [workspace.package].version if the workspace declares one."""
    ws_package = doc.get("workspace", {}).get("package")
    if ws_package is None or "version" not in ws_package:
        return False
    ws_package["version"] = version
    return True


def set_workspace_dependency_version(
    doc: tomlkit.TOMLDocument, crate_name: str, version: str, path: Path
) -> None:
    """Set the version of one [workspace.dependencies] entry in place.

    Handles both ``name = "1.0"`` and ``name = { version = "1.0", path = ... }``.

    Raises:
        ConfigError: If the table or the entry is missing.
    """
    table = doc.get("workspace", {}).get("dependencies")
    if table is None:
        raise ConfigError(f"`workspace.dependencies` field not found: {path}")
    if crate_name not in table:
        raise ConfigError(f"dependency `{crate_name}` not found: {path}")
    entry: Any = table[crate_name]
    if isinstance(entry, str):
        table[crate_name] = version
    else:
        entry["version"] = version
