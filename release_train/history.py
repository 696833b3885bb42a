"""Git history access scoped to package directories.

Release tags bound commit ranges, and each package only sees the commits
that touched its own subtree. Path scoping works on root-relative glob
patterns of the form ``<package-dir>/**``.
"""

from __future__ import annotations

import subprocess
from collections.abc import Iterable, Sequence
from fnmatch import fnmatchcase
from pathlib import Path

from .errors import DirtyWorkingTreeError, HistoryError, ScopeError
from .models import Commit, GitTag, VersionedPackage
from .shell import git, git_succeeds
from .versions import parse_version

# Separators for `git log` output: one record per commit, one unit per field
RECORD_SEP = "\x1e"
FIELD_SEP = "\x1f"
LOG_FORMAT = f"{RECORD_SEP}%H{FIELD_SEP}%at{FIELD_SEP}%B{FIELD_SEP}"
# Tag name, object, peeled commit, then the commit date of each
TAG_FORMAT = (
    "%(refname:short)%09%(objectname)%09%(*objectname)"
    "%09%(committerdate:unix)%09%(*committerdate:unix)"
)


def check_clean(root: Path) -> None:
    """Refuse to continue when tracked files have uncommitted changes."""
    if not git_succeeds("diff", "--exit-code", "--quiet", cwd=root):
        raise DirtyWorkingTreeError(
            "Uncommitted changes found, please check `git status`."
        )


def tag_prefix(release_name: str) -> str:
    """Tag prefix for a release set: ``<name>_v``."""
    return f"{release_name}_v"


def commits_range(release_name: str, current_version: str) -> str:
    """Revision range from the current release tag up to HEAD."""
    return f"{tag_prefix(release_name)}{current_version}..HEAD"


def parse_tag(sha: str, tag_name: str, prefix: str | None = None) -> GitTag:
    """Parse a tag into a GitTag by stripping its version prefix.

    With a known prefix (``crates_v``) that prefix is removed; otherwise
    everything up to and including the first ``v`` is, and a tag without
    any ``v`` is parsed whole.

    Raises:
        HistoryError: If the remainder is not a semantic version.
    """
    if prefix and tag_name.startswith(prefix):
        version = tag_name[len(prefix) :]
    elif "v" in tag_name:
        version = tag_name.split("v", 1)[1]
    else:
        version = tag_name
    try:
        return GitTag(version=parse_version(version), sha=sha)
    except HistoryError as exc:
        raise HistoryError(f"tag {tag_name}: {exc}") from exc


def list_tags(root: Path, release_name: str) -> list[GitTag]:
    """List a release set's tags reachable from HEAD, oldest first.

    Annotated tags are peeled to the commit they point at, and tags are
    ordered by that commit's committer time rather than by when the tag
    itself was made, so a re-created tag keeps its place in history. Tags
    on the same commit are ordered by version.

    Raises:
        HistoryError: If no tag matches or a tag is unparsable.
    """
    prefix = tag_prefix(release_name)
    output = git(
        "for-each-ref",
        "--merged=HEAD",
        f"--format={TAG_FORMAT}",
        f"refs/tags/{prefix}*",
        cwd=root,
    )
    dated: list[tuple[int, GitTag]] = []
    for line in output.splitlines():
        name, sha, peeled, date, peeled_date = (line.split("\t") + [""] * 4)[:5]
        tag = parse_tag(peeled or sha, name, prefix)
        dated.append((int(peeled_date or date or 0), tag))
    if not dated:
        raise HistoryError(f"Tags should not be empty for {prefix}*")
    dated.sort(key=lambda item: (item[0], item[1].version))
    return [tag for _, tag in dated]


def commit_timestamp(root: Path, sha: str) -> int:
    """Author time of a commit, seconds since the epoch."""
    output = git("log", "-1", "--format=%at", sha, cwd=root, check=False)
    if not output:
        raise HistoryError(f"Cannot find commit {sha}")
    return int(output)


def include_pattern(root: Path, package: VersionedPackage) -> str:
    """Root-relative glob covering everything under a package directory.

    A package at the workspace root itself covers the whole repository.

    Examples:
        root=workspace, dir=workspace/pkg-a → "pkg-a/**"

    Raises:
        ScopeError: If the package directory is outside root.
    """
    try:
        relative = Path(package.dir).resolve().relative_to(Path(root).resolve())
    except ValueError as exc:
        raise ScopeError(
            f"{package.name}: {package.dir} is not under {root}"
        ) from exc
    if relative == Path("."):
        return "**"
    return f"{relative.as_posix()}/**"


def matches_any(path: str, patterns: Iterable[str]) -> bool:
    """Whether a repository path matches at least one include pattern."""
    return any(fnmatchcase(path, pattern) for pattern in patterns)


def parse_log(output: str) -> list[Commit]:
    """Parse ``git log --name-only`` output produced with LOG_FORMAT."""
    commits: list[Commit] = []
    for record in output.split(RECORD_SEP):
        if not record.strip():
            continue
        sha, timestamp, message, files = (record.split(FIELD_SEP) + ["", "", ""])[:4]
        commits.append(
            Commit(
                sha=sha.strip(),
                message=message.strip(),
                timestamp=int(timestamp or 0),
                paths=[f for f in files.splitlines() if f.strip()],
            )
        )
    return commits


def scan_commits(
    root: Path, revision_range: str, patterns: Sequence[str]
) -> list[Commit]:
    """Commits in a revision range that touched at least one pattern.

    Args:
        root: Repository root the patterns are relative to.
        revision_range: Any range git accepts (``a..b``, ``tag..HEAD``).
        patterns: Include globs from include_pattern().

    Returns:
        Matching commits, newest first.
    """
    try:
        output = git(
            "log",
            f"--format={LOG_FORMAT}",
            "--name-only",
            revision_range,
            "--",
            *(f":(glob){p}" for p in patterns),
            cwd=root,
        )
    except subprocess.CalledProcessError as exc:
        raise HistoryError(
            f"Cannot read history for {revision_range}: {(exc.stderr or '').strip()}"
        ) from exc
    return [c for c in parse_log(output) if any(matches_any(p, patterns) for p in c.paths)]


def scan_package(root: Path, revision_range: str, package: VersionedPackage) -> list[Commit]:
    """Commits in a range touching one package's directory."""
    return scan_commits(root, revision_range, [include_pattern(root, package)])
