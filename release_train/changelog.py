"""Changelog rendering and writing.

Releases are rendered as markdown sections grouped by commit type. An
incremental run prepends the new section to a package's existing
CHANGELOG.md; a regeneration run rebuilds the whole file from tag history.
Rendering depends only on the releases passed in, so the same history
always produces the same bytes.
"""

from __future__ import annotations

import os
import stat
import tempfile
from collections.abc import Sequence
from datetime import datetime, timezone
from pathlib import Path

from .models import ParsedCommit, Release

CHANGELOG_NAME = "CHANGELOG.md"

HEADER = """\
# Changelog

All notable changes to this package will be documented in this file.

The format is based on [Keep a Changelog](https://keepachangelog.com/en/1.0.0/),
and this project adheres to [Semantic Versioning](https://semver.org/spec/v2.0.0.html).
"""

GROUPS: dict[str, str] = {
    "feat": "Features",
    "fix": "Bug Fixes",
    "perf": "Performance",
    "refactor": "Refactor",
    "docs": "Documentation",
    "test": "Testing",
    "build": "Build",
    "ci": "CI",
    "style": "Styling",
    "chore": "Miscellaneous",
}
OTHER_GROUP = "Other"
BREAKING_GROUP = "⚠ Breaking Changes"


def _format_date(timestamp: int) -> str:
    return datetime.fromtimestamp(timestamp, tz=timezone.utc).strftime("%Y-%m-%d")


def _format_entry(commit: ParsedCommit) -> str:
    scope = f"**{commit.scope}:** " if commit.scope else ""
    return f"- {scope}{commit.description} ({commit.commit.sha[:7]})"


def render_release(release: Release) -> str:
    """Render one release as a markdown section.

    Breaking commits are listed first under their own heading and not
    repeated in their type group. A release without commits renders as a
    bare heading.
    """
    if release.version is None:
        title = "## [unreleased]"
    else:
        title = f"## [{release.version}] - {_format_date(release.timestamp)}"
    lines = [title, ""]

    breaking = [c for c in release.commits if c.breaking]
    if breaking:
        lines.append(f"### {BREAKING_GROUP}")
        lines.append("")
        lines.extend(_format_entry(c) for c in breaking)
        lines.append("")

    grouped: dict[str, list[ParsedCommit]] = {}
    for commit in release.commits:
        if commit.breaking:
            continue
        group = GROUPS.get(commit.type or "", OTHER_GROUP)
        grouped.setdefault(group, []).append(commit)

    for group in [*GROUPS.values(), OTHER_GROUP]:
        if group in grouped:
            lines.append(f"### {group}")
            lines.append("")
            lines.extend(_format_entry(c) for c in grouped[group])
            lines.append("")

    return "\n".join(lines) + "\n"


def render_all(releases: Sequence[Release]) -> str:
    """Render a complete changelog, newest release first.

    Args:
        releases: Releases oldest first, as built from consecutive tags.
    """
    sections = [render_release(r) for r in reversed(releases)]
    return "\n".join([HEADER, *sections])


def _target_mode(path: Path) -> int:
    if path.exists():
        return stat.S_IMODE(path.stat().st_mode)
    umask = os.umask(0)
    os.umask(umask)
    return 0o666 & ~umask


def _atomic_write(path: Path, text: str) -> None:
    """Replace path's content with text in one rename.

    The file keeps its current permissions; a new file gets the usual
    ``0o666`` minus the umask instead of mkstemp's owner-only mode.
    """
    fd, tmp = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            fh.write(text)
        os.chmod(tmp, _target_mode(path))
        os.replace(tmp, path)
    except BaseException:
        Path(tmp).unlink(missing_ok=True)
        raise


def prepend(path: Path, text: str) -> None:
    """Put text in front of path's current content (empty if absent).

    A previous file starting with the standard header keeps it on top, so
    the new section lands right below it.
    """
    previous = path.read_text(encoding="utf-8") if path.exists() else ""
    if previous.startswith(HEADER):
        body = previous[len(HEADER) :].lstrip("\n")
        new = f"{HEADER}\n{text}\n{body}" if body else f"{HEADER}\n{text}"
    elif previous:
        new = f"{text}\n{previous}"
    else:
        new = f"{HEADER}\n{text}"
    _atomic_write(path, new)


def write(path: Path, text: str) -> None:
    """Overwrite path with text."""
    _atomic_write(path, text)
