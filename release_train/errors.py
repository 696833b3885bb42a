"""Error types raised by release-train.

Every error is fatal for the current run: nothing is retried, and the CLI
turns any ReleaseError into a non-zero exit with the message on stderr.
"""

from __future__ import annotations


class ReleaseError(Exception):
    """Base class for all release-train failures."""


class ConfigError(ReleaseError):
    """The release config file is missing, malformed, or references
    something that does not exist."""


class DirtyWorkingTreeError(ReleaseError):
    """The working tree has uncommitted changes."""


class CycleError(ReleaseError):
    """Two releasable packages depend on each other, directly or not."""

    def __init__(self, from_name: str, to_name: str) -> None:
        self.from_name = from_name
        self.to_name = to_name
        super().__init__(
            f"Circular dependency detected: {from_name} -> {to_name}"
        )


class HistoryError(ReleaseError):
    """Tags are missing or a tag does not carry a semantic version."""


class ScopeError(ReleaseError):
    """A package directory is not underneath the workspace root."""


class BumpError(ReleaseError):
    """No commits in range justify a new version."""


class PublishError(ReleaseError):
    """A cargo invocation did not satisfy the success contract."""

    def __init__(self, package: str, output: str) -> None:
        self.package = package
        self.output = output
        super().__init__(f"Failed to publish {package}:\n{output}")
