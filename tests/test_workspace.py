"""Tests for release_train.workspace."""

from __future__ import annotations

import json
import subprocess
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from release_train.errors import ConfigError
from release_train.workspace import (
    cargo_binary,
    discover_packages,
    feature_referenced_names,
    package_from_metadata,
)


def raw_package(name: str, **overrides) -> dict:
    raw = {
        "name": name,
        "version": "0.5.2",
        "manifest_path": f"/ws/crates/{name}/Cargo.toml",
        "dependencies": [],
        "features": {},
        "publish": None,
    }
    raw.update(overrides)
    return raw


class TestFeatureReferencedNames:
    def test_collects_lhs_of_slash_tokens(self) -> None:
        features = {"serde": ["dep-a/serde", "dep-b?/serde", "std"], "default": ["serde"]}
        assert feature_referenced_names(features) == {"dep-a", "dep-b"}

    def test_empty(self) -> None:
        assert feature_referenced_names({}) == set()


class TestPackageFromMetadata:
    def test_basic_fields(self) -> None:
        pkg = package_from_metadata(raw_package("pkg-a"))
        assert pkg.name == "pkg-a"
        assert pkg.version == "0.5.2"
        assert pkg.root_dir == Path("/ws/crates/pkg-a")
        assert pkg.manifest_path == Path("/ws/crates/pkg-a/Cargo.toml")
        assert pkg.publish

    def test_dependency_kinds(self) -> None:
        pkg = package_from_metadata(
            raw_package(
                "pkg-a",
                dependencies=[
                    {"name": "pkg-b", "kind": None},
                    {"name": "pkg-c", "kind": "dev"},
                    {"name": "cc", "kind": "build"},
                ],
            )
        )
        assert [(d.name, d.kind) for d in pkg.dependencies] == [
            ("pkg-b", "normal"),
            ("pkg-c", "dev"),
            ("cc", "build"),
        ]

    def test_feature_gated_dev_dependency(self) -> None:
        pkg = package_from_metadata(
            raw_package(
                "pkg-a",
                dependencies=[{"name": "pkg-c", "kind": "dev"}],
                features={"testing": ["pkg-c/testing"]},
            )
        )
        assert pkg.dependencies[0].feature_gated

    def test_publish_false(self) -> None:
        assert not package_from_metadata(raw_package("pkg-a", publish=[])).publish

    def test_publish_to_named_registry(self) -> None:
        assert package_from_metadata(raw_package("pkg-a", publish=["crates-io"])).publish


class TestDiscoverPackages:
    @patch("release_train.workspace.subprocess.run")
    def test_reads_members_in_order(self, mock_run: MagicMock, tmp_path: Path) -> None:
        mock_run.return_value = MagicMock(
            stdout=json.dumps({"packages": [raw_package("pkg-b"), raw_package("pkg-a")]})
        )
        packages = discover_packages(tmp_path)
        assert [p.name for p in packages] == ["pkg-b", "pkg-a"]
        assert mock_run.call_args.kwargs["cwd"] == tmp_path
        assert "--no-deps" in mock_run.call_args[0][0]

    @patch("release_train.workspace.subprocess.run")
    def test_duplicate_names_rejected(self, mock_run: MagicMock, tmp_path: Path) -> None:
        mock_run.return_value = MagicMock(
            stdout=json.dumps({"packages": [raw_package("x"), raw_package("x")]})
        )
        with pytest.raises(ConfigError, match="Duplicate package name"):
            discover_packages(tmp_path)

    @patch("release_train.workspace.subprocess.run")
    def test_cargo_failure(self, mock_run: MagicMock, tmp_path: Path) -> None:
        mock_run.side_effect = subprocess.CalledProcessError(
            101, ["cargo"], stderr="error: could not find Cargo.toml"
        )
        with pytest.raises(ConfigError, match="could not find Cargo.toml"):
            discover_packages(tmp_path)


def test_cargo_binary_override(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CARGO", "/opt/cargo")
    assert cargo_binary() == "/opt/cargo"
    monkeypatch.delenv("CARGO")
    assert cargo_binary() == "cargo"
