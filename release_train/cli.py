"""CLI entry point for release-train."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

import click

from release_train.errors import ReleaseError
from release_train.pipeline import run_publish
from release_train.update import Updater, run_update
from release_train.versions import BumpPart

path_argument = click.argument(
    "path",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=".",
)
release_option = click.option(
    "--release",
    "releases",
    metavar="NAME",
    multiple=True,
    required=True,
    help="Release set from release.toml (repeatable).",
)


@contextmanager
def reported_errors() -> Iterator[None]:
    """Turn release failures into a clean exit with the message on stderr."""
    try:
        yield
    except ReleaseError as exc:
        raise click.ClickException(str(exc)) from exc


@click.group()
@click.version_option(package_name="release-train")
def cli() -> None:
    """Version, changelog and publish orchestration for Cargo monorepos."""


@cli.command()
@path_argument
@release_option
@click.option(
    "--bump",
    type=click.Choice(["major", "minor", "patch"]),
    default=None,
    help="Bump this part instead of deriving the bump from commits.",
)
def update(path: Path, releases: tuple[str, ...], bump: BumpPart | None) -> None:
    """Generate CHANGELOG.md and bump versions for a release set."""
    with reported_errors():
        for result in run_update(path, releases, bump):
            click.echo(result.new)


@cli.command()
@path_argument
@release_option
def changelog(path: Path, releases: tuple[str, ...]) -> None:
    """Print the unreleased changelog of a release set."""
    with reported_errors():
        for name in releases:
            for package, text in Updater(path, name).changelog().items():
                click.echo(f"# {package}\n")
                click.echo(text)


@cli.command("regenerate-changelogs")
@path_argument
@release_option
def regenerate_changelogs(path: Path, releases: tuple[str, ...]) -> None:
    """Rebuild CHANGELOG.md files from the full tag history."""
    with reported_errors():
        for name in releases:
            Updater(path, name).regenerate_changelogs()


@cli.command()
@path_argument
@release_option
@click.option(
    "--dry-run/--upload",
    default=True,
    show_default=True,
    help="Verify crates without uploading, or upload them.",
)
def publish(path: Path, releases: tuple[str, ...], dry_run: bool) -> None:
    """Publish a release set's crates in dependency order."""
    with reported_errors():
        run_publish(path, releases, dry_run=dry_run)
