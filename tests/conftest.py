"""Shared test fixtures."""

from __future__ import annotations

import os
import subprocess
from collections.abc import Callable
from pathlib import Path

import pytest

from release_train.commits import parse_commit
from release_train.models import Commit, Dependency, Package, ParsedCommit

ROOT_MANIFEST = """\
[workspace]
members = ["crates/*"]

[workspace.package]
version = "0.5.2"
edition = "2021"

[workspace.dependencies]
# internal crates
pkg-a = { version = "0.5.2", path = "crates/pkg-a" }
pkg-b = { version = "0.5.2", path = "crates/pkg-b" }
serde = "1.0"
"""

MEMBER_MANIFEST = """\
[package]
name = "{name}"
version = "0.5.2"
edition.workspace = true

[dependencies]
serde = {{ workspace = true }}
"""


@pytest.fixture
def cargo_workspace(tmp_path: Path) -> Path:
    """Create a two-crate Cargo workspace on disk and return its root."""
    (tmp_path / "Cargo.toml").write_text(ROOT_MANIFEST)
    for name in ("pkg-a", "pkg-b"):
        crate = tmp_path / "crates" / name
        crate.mkdir(parents=True)
        (crate / "Cargo.toml").write_text(MEMBER_MANIFEST.format(name=name))
    return tmp_path


@pytest.fixture
def make_package(tmp_path: Path) -> Callable[..., Package]:
    """Factory for Package models rooted under tmp_path/crates."""

    def _make(
        name: str,
        deps: list[str | Dependency] | None = None,
        *,
        version: str = "1.0.0",
    ) -> Package:
        root_dir = tmp_path / "crates" / name
        dependencies = [
            d if isinstance(d, Dependency) else Dependency(name=d) for d in deps or []
        ]
        return Package(
            name=name,
            version=version,
            root_dir=root_dir,
            manifest_path=root_dir / "Cargo.toml",
            dependencies=dependencies,
        )

    return _make


@pytest.fixture
def make_commit() -> Callable[..., ParsedCommit]:
    """Factory for classified commits from a message."""
    counter = iter(range(1, 10_000))

    def _make(
        message: str, *, paths: list[str] | None = None, timestamp: int = 0
    ) -> ParsedCommit:
        sha = f"{next(counter):040x}"
        return parse_commit(
            Commit(sha=sha, message=message, timestamp=timestamp, paths=paths or [])
        )

    return _make


class GitRepo:
    """A throwaway git repository driven through the git CLI."""

    def __init__(self, root: Path) -> None:
        self.root = root

    def git(self, *args: str, date: str | None = None) -> str:
        env = dict(os.environ)
        env.update(
            GIT_AUTHOR_NAME="Release Bot",
            GIT_AUTHOR_EMAIL="bot@example.com",
            GIT_COMMITTER_NAME="Release Bot",
            GIT_COMMITTER_EMAIL="bot@example.com",
        )
        if date is not None:
            env.update(GIT_AUTHOR_DATE=date, GIT_COMMITTER_DATE=date)
        result = subprocess.run(
            ["git", *args],
            cwd=self.root,
            env=env,
            capture_output=True,
            text=True,
            check=True,
        )
        return result.stdout.strip()

    def write(self, files: dict[str, str]) -> None:
        for rel, content in files.items():
            path = self.root / rel
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content)

    def commit(
        self, message: str, files: dict[str, str], *, date: str | None = None
    ) -> str:
        self.write(files)
        self.git("add", "-A")
        self.git("commit", "-q", "-m", message, date=date)
        return self.git("rev-parse", "HEAD")


@pytest.fixture
def git_repo(tmp_path: Path) -> GitRepo:
    """An empty git repository at tmp_path with signing disabled."""
    repo = GitRepo(tmp_path)
    repo.git("init", "-q")
    repo.git("config", "commit.gpgsign", "false")
    repo.git("config", "tag.gpgsign", "false")
    return repo
