"""Version and changelog updates for one release set.

The Updater reads a release set's tag history once and then serves the
three changelog-related commands:

- ``run``: bump the version from commits since the last tag, prepend a
  section to every governed package's changelog, rewrite the versions.
- ``changelog``: render the unreleased section without touching files.
- ``regenerate_changelogs``: rebuild every changelog from the full tag
  history.

``run_update`` drives ``run`` over several release sets behind a single
clean-tree check.
"""

from __future__ import annotations

import sys
import time
from collections.abc import Sequence
from pathlib import Path

from .changelog import CHANGELOG_NAME, prepend, render_all, render_release, write
from .commits import parse_commits
from .config import ReleaseSet, load_config
from .history import (
    check_clean,
    commit_timestamp,
    include_pattern,
    list_tags,
    scan_commits,
    scan_package,
)
from .models import ParsedCommit, PreviousRelease, Release, VersionBump, VersionedPackage
from .shell import step
from .versions import BumpPart, manual_bump, next_version


def _now() -> int:
    return int(time.time())


class Updater:
    """Release-set bound view of the repository history.

    Args:
        root: Workspace root holding release.toml.
        release_name: Release set to operate on.

    Raises:
        ConfigError: If the config is invalid or the release set unknown.
        HistoryError: If the release set has no parsable tags.
    """

    def __init__(self, root: Path, release_name: str) -> None:
        self.root = root
        self.release_set: ReleaseSet = load_config(root).find(release_name)
        self.tags = list_tags(root, release_name)
        self.current_version = str(self.tags[-1].version)

    @property
    def commits_range(self) -> str:
        return self.release_set.commits_range(self.current_version)

    def calculate_next_version(self) -> str:
        """Bump the current version from every commit touching the set.

        Raises:
            ScopeError: If a governed package lies outside the root.
            BumpError: If no commit justifies a release.
        """
        patterns = [
            include_pattern(self.root, p) for p in self.release_set.versioned_packages()
        ]
        commits = parse_commits(scan_commits(self.root, self.commits_range, patterns))
        return next_version(
            self.current_version,
            commits,
            self.release_set.breaking_change_scopes,
            exclude_out_of_scope=self.release_set.exclude_out_of_scope_commits,
        )

    def package_commits(
        self, package: VersionedPackage, revision_range: str
    ) -> list[ParsedCommit]:
        return parse_commits(scan_package(self.root, revision_range, package))

    def unreleased(self, package: VersionedPackage, version: str | None) -> Release:
        """The in-progress release of a package, stamped with the current time."""
        return Release(
            version=version,
            commits=self.package_commits(package, self.commits_range),
            timestamp=_now(),
            previous=PreviousRelease(version=self.current_version),
        )

    def run(self, bump: BumpPart | None = None) -> VersionBump:
        """Release the set: bump, write changelogs, rewrite versions.

        Args:
            bump: Force a major/minor/patch bump instead of deriving one
                from commits.

        Returns:
            The old and new version.
        """
        step(f"Updating {self.release_set.name} from {self.current_version}")
        if bump is None:
            version = self.calculate_next_version()
        else:
            version = manual_bump(self.current_version, bump)

        for package in self.release_set.versioned_packages():
            text = render_release(self.unreleased(package, version))
            prepend(Path(package.dir) / CHANGELOG_NAME, text)
            print(f"  {package.name}: {CHANGELOG_NAME} updated", file=sys.stderr)

        self.release_set.update_version(version)
        return VersionBump(old=self.current_version, new=version)

    def changelog(self) -> dict[str, str]:
        """Render each package's unreleased changes, keyed by package name."""
        return {
            package.name: render_release(self.unreleased(package, None))
            for package in self.release_set.versioned_packages()
        }

    def historical_releases(self, package: VersionedPackage) -> list[Release]:
        """One release per consecutive pair of tags, oldest first."""
        releases: list[Release] = []
        for i in range(1, len(self.tags)):
            previous, tag = self.tags[i - 1], self.tags[i]
            commits = self.package_commits(package, f"{previous.sha}..{tag.sha}")
            releases.append(
                Release(
                    version=str(tag.version),
                    commits=commits,
                    timestamp=commit_timestamp(self.root, tag.sha),
                    previous=PreviousRelease(version=str(previous.version)),
                )
            )
        return releases

    def regenerate_changelogs(self) -> list[Path]:
        """Rewrite every governed package's changelog from tag history.

        Returns:
            The changelog files written.
        """
        step(f"Regenerating changelogs for {self.release_set.name}")
        written: list[Path] = []
        for package in self.release_set.versioned_packages():
            path = Path(package.dir) / CHANGELOG_NAME
            write(path, render_all(self.historical_releases(package)))
            print(f"  {package.name}: {path}", file=sys.stderr)
            written.append(path)
        return written


def run_update(
    root: Path, release_names: Sequence[str], bump: BumpPart | None = None
) -> list[VersionBump]:
    """Update several release sets in one go.

    The working tree must be clean before the first set is touched; the
    sets then write their changes one after another. Every set is loaded
    up front so an unknown name or missing tag stops the run before any
    file changes.
    """
    check_clean(root)
    updaters = [Updater(root, name) for name in release_names]
    return [updater.run(bump) for updater in updaters]
