"""Publish pipeline: order → check → skip-if-published → publish.

This module drives a release set's crates through publishing:
1. Sort crates so every crate follows the crates it depends on
2. In dry-run mode, compile-check each crate on its own
3. Ask the registry whether the crate's version is already out
4. Publish (or dry-run publish) the crates that are not

Crates are handled strictly one at a time in release order, and the
first failure stops the whole run, so re-running after a fix picks up
where it stopped: crates published the first time are skipped.
"""

from __future__ import annotations

from collections.abc import Sequence
from enum import Enum
from pathlib import Path
from typing import Protocol

from .cargo import CargoCommand
from .config import load_config
from .graph import release_order
from .history import check_clean
from .models import Package
from .registry import CratesIoRegistry
from .shell import step


class PublishState(str, Enum):
    """Where a crate is in the pipeline."""

    PENDING = "pending"
    CHECKED = "checked"
    SKIP_CHECK = "skip-check"
    SKIPPED = "skipped"
    DRY_RUN_PUBLISHED = "dry-run-published"
    PUBLISHED = "published"


class Registry(Protocol):
    def is_published(self, name: str, version: str) -> bool: ...


class Publisher(Protocol):
    def check(self, package_name: str) -> None: ...

    def publish(self, package_name: str, dry_run: bool) -> None: ...


class PublishPipeline:
    """Publishes packages one by one in dependency order.

    Args:
        packages: Packages to publish, in any order.
        cargo: Runs the per-crate check and publish.
        registry: Answers whether a version is already published.
        dry_run: Check and verify only, do not upload.
    """

    def __init__(
        self,
        packages: Sequence[Package],
        cargo: Publisher,
        registry: Registry,
        *,
        dry_run: bool = True,
    ) -> None:
        self.order = release_order(packages)
        self.cargo = cargo
        self.registry = registry
        self.dry_run = dry_run
        self.states: dict[str, PublishState] = {
            p.name: PublishState.PENDING for p in self.order
        }

    def process(self, package: Package) -> PublishState:
        """Move one package through the pipeline to its final state.

        Raises:
            PublishError: If the check or the publish fails.
        """
        name = package.name
        if self.dry_run:
            self.cargo.check(name)
            self.states[name] = PublishState.CHECKED

        self.states[name] = PublishState.SKIP_CHECK
        if self.registry.is_published(name, package.version):
            print(f"  {name} {package.version}: already published, skipping")
            self.states[name] = PublishState.SKIPPED
            return self.states[name]

        self.cargo.publish(name, self.dry_run)
        if self.dry_run:
            print(f"  {name} {package.version}: dry run ok")
            self.states[name] = PublishState.DRY_RUN_PUBLISHED
        else:
            print(f"  {name} {package.version}: published")
            self.states[name] = PublishState.PUBLISHED
        return self.states[name]

    def run(self) -> dict[str, PublishState]:
        """Process every package in release order, stopping at the first error."""
        mode = "Dry-run publishing" if self.dry_run else "Publishing"
        step(f"{mode} {len(self.order)} packages")
        for package in self.order:
            self.process(package)
        return dict(self.states)


def run_publish(
    root: Path, release_names: Sequence[str], *, dry_run: bool = True
) -> dict[str, PublishState]:
    """Publish every crate of one or more release sets.

    The working tree is checked once, and every set is loaded before the
    first crate is touched. Sets are then published one after another.

    Args:
        root: Workspace root holding release.toml.
        release_names: Release sets to publish, in order.
        dry_run: Verify without uploading.

    Returns:
        Final state of each crate, keyed by name.
    """
    check_clean(root)
    config = load_config(root)
    release_sets = [config.find(name) for name in release_names]

    states: dict[str, PublishState] = {}
    with CratesIoRegistry() as registry:
        cargo = CargoCommand(root)
        pipelines = [
            (s.name, PublishPipeline(s.publishable_packages(), cargo, registry, dry_run=dry_run))
            for s in release_sets
        ]
        for name, pipeline in pipelines:
            step(f"Release order for {name}")
            for package in pipeline.order:
                print(f"  {package.name} {package.version}")
            states.update(pipeline.run())
    return states
