"""Shell and git utilities.

Provides simple wrappers around subprocess calls for running shell commands
and git operations, plus output formatting helpers.
"""

from __future__ import annotations

import subprocess
import sys
from collections.abc import Mapping
from pathlib import Path

from pydantic import BaseModel


class CommandOutput(BaseModel):
    """Exit status and captured stderr of a finished command."""

    returncode: int
    stderr: str

    @property
    def ok(self) -> bool:
        return self.returncode == 0


def git(*args: str, cwd: Path | None = None, check: bool = True) -> str:
    """Run a git command and return stdout.

    Args:
        *args: Arguments to pass to git (e.g., "status", "--short").
        cwd: Directory to run git in. Defaults to the current directory.
        check: If True (default), raise on non-zero exit. Set to False
               for commands that may legitimately fail (e.g., tag lookup).

    Returns:
        Stripped stdout from the git command.
    """
    result = subprocess.run(
        ["git", *args], cwd=cwd, capture_output=True, text=True, check=check
    )
    return result.stdout.strip()


def git_succeeds(*args: str, cwd: Path | None = None) -> bool:
    """Run a git command for its exit status only."""
    result = subprocess.run(["git", *args], cwd=cwd, capture_output=True)
    return result.returncode == 0


def run_captured(
    *args: str,
    cwd: Path | None = None,
    env: Mapping[str, str] | None = None,
) -> CommandOutput:
    """Run a command, echoing its stderr to ours while capturing it.

    Cargo reports progress and errors on stderr, so the user sees the
    output live and the caller still gets the full text to inspect.

    Args:
        *args: Command and arguments (e.g., "cargo", "publish", "-p", "foo").
        cwd: Working directory for the command.
        env: Full environment for the child process. Inherits ours if None.

    Returns:
        CommandOutput with the exit code and the joined stderr lines.
    """
    lines: list[str] = []
    with subprocess.Popen(
        args,
        cwd=cwd,
        env=dict(env) if env is not None else None,
        stdout=subprocess.DEVNULL,
        stderr=subprocess.PIPE,
        text=True,
    ) as proc:
        for line in proc.stderr:
            line = line.rstrip("\n")
            print(line, file=sys.stderr)
            lines.append(line)
    return CommandOutput(returncode=proc.returncode, stderr="\n".join(lines))


def step(msg: str) -> None:
    """Print a visually distinct step header.

    Used to separate major phases of a release in terminal output. Goes to
    stderr so stdout stays clean for values other tools consume.
    """
    print(f"\n{'─' * 60}\n{msg}\n{'─' * 60}", file=sys.stderr)
