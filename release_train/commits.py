"""Conventional commit parsing.

Classifies commit messages of the form ``type(scope)!: description``.
A commit is breaking when the header carries ``!`` or the message has a
``BREAKING CHANGE:`` / ``BREAKING-CHANGE:`` footer. Commits that do not
follow the convention are still returned, with no type, since they count
toward a patch bump.
"""

from __future__ import annotations

import re

from .models import Commit, ParsedCommit

HEADER_RE = re.compile(
    r"^(?P<type>[A-Za-z]+)(?:\((?P<scope>[^()]*)\))?(?P<breaking>!)?:\s+(?P<description>.+)$"
)
BREAKING_FOOTER_RE = re.compile(r"^BREAKING[ -]CHANGE:", re.MULTILINE)


def parse_commit(commit: Commit) -> ParsedCommit:
    """Classify a single commit.

    Examples:
        "feat(linter): add rule"      → type="feat", scope="linter"
        "fix!: drop old API"          → type="fix", breaking=True
        "Update README"               → type=None, description="Update README"
    """
    subject = commit.message.strip().splitlines()[0] if commit.message.strip() else ""
    match = HEADER_RE.match(subject)
    footer_breaking = bool(BREAKING_FOOTER_RE.search(commit.message))
    if not match:
        return ParsedCommit(
            commit=commit, description=subject, breaking=footer_breaking
        )
    scope = match.group("scope")
    return ParsedCommit(
        commit=commit,
        type=match.group("type").lower(),
        scope=scope.strip() if scope else None,
        description=match.group("description").strip(),
        breaking=bool(match.group("breaking")) or footer_breaking,
    )


def parse_commits(commits: list[Commit]) -> list[ParsedCommit]:
    """Classify a list of commits, preserving order."""
    return [parse_commit(c) for c in commits]
