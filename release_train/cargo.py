"""Cargo subprocess wrapper for checking and publishing crates."""

from __future__ import annotations

import os
import re
from pathlib import Path

from .errors import PublishError
from .shell import CommandOutput, run_captured
from .workspace import cargo_binary

CARGO_REGISTRY_TOKEN = "CARGO_REGISTRY_TOKEN"
UPLOAD_MARKER = "Uploading"
ERROR_MARKER = "error:"
ANSI_ESCAPE_RE = re.compile(r"\x1b\[[0-9;]*m")


def publish_succeeded(output: CommandOutput) -> bool:
    """Whether a ``cargo publish`` run really went through.

    All three must hold: a zero exit, the upload confirmation on stderr,
    and no error line on stderr. Color codes are ignored.
    """
    stderr = ANSI_ESCAPE_RE.sub("", output.stderr)
    return output.ok and UPLOAD_MARKER in stderr and ERROR_MARKER not in stderr


class CargoCommand:
    """Runs cargo in a workspace directory.

    Args:
        current_dir: Workspace root to run cargo in.
        token: Registry token for publishing. Defaults to
            CARGO_REGISTRY_TOKEN from our environment.
    """

    def __init__(self, current_dir: Path, token: str | None = None) -> None:
        self.current_dir = current_dir
        self.token = token if token is not None else os.environ.get(CARGO_REGISTRY_TOKEN)

    def check(self, package_name: str) -> None:
        """Compile-check one crate on its own.

        Checking crates one at a time catches missing features that
        workspace-wide feature unification would hide.

        Raises:
            PublishError: If the check fails.
        """
        output = self.run("check", "-p", package_name, "--all-features")
        if not output.ok:
            raise PublishError(package_name, output.stderr)

    def publish(self, package_name: str, dry_run: bool) -> None:
        """Publish one crate, or only verify it when dry_run is set.

        Raises:
            PublishError: If the run does not satisfy publish_succeeded().
        """
        args = ["publish", "-p", package_name]
        if dry_run:
            args.append("--dry-run")
        output = self.run(*args)
        if not publish_succeeded(output):
            raise PublishError(package_name, output.stderr)

    def run(self, *args: str) -> CommandOutput:
        """Run cargo with colored output, forwarding the registry token."""
        env = dict(os.environ)
        if self.token:
            env[CARGO_REGISTRY_TOKEN] = self.token
        return run_captured(
            cargo_binary(), "--color", "always", *args, cwd=self.current_dir, env=env
        )
