"""Tests for release_train.cli."""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from click.testing import CliRunner

from release_train.cli import cli
from release_train.errors import BumpError, ConfigError
from release_train.models import VersionBump


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


class TestUpdate:
    """Tests for the update command."""

    @patch("release_train.cli.run_update")
    def test_prints_new_version(
        self, mock_update: MagicMock, runner: CliRunner, tmp_path: Path
    ) -> None:
        mock_update.return_value = [VersionBump(old="0.5.2", new="0.6.0")]

        result = runner.invoke(cli, ["update", str(tmp_path), "--release", "crates"])

        assert result.exit_code == 0, result.output
        assert result.output.strip() == "0.6.0"
        mock_update.assert_called_once_with(tmp_path, ("crates",), None)

    @patch("release_train.cli.run_update")
    def test_multiple_releases_and_bump(
        self, mock_update: MagicMock, runner: CliRunner, tmp_path: Path
    ) -> None:
        mock_update.return_value = [
            VersionBump(old="1.0.0", new="2.0.0"),
            VersionBump(old="0.3.0", new="1.0.0"),
        ]

        result = runner.invoke(
            cli,
            ["update", str(tmp_path), "--release", "crates", "--release", "oxlint", "--bump", "major"],
        )

        assert result.exit_code == 0, result.output
        assert result.output.split() == ["2.0.0", "1.0.0"]
        mock_update.assert_called_once_with(tmp_path, ("crates", "oxlint"), "major")

    def test_release_required(self, runner: CliRunner, tmp_path: Path) -> None:
        result = runner.invoke(cli, ["update", str(tmp_path)])
        assert result.exit_code == 2
        assert "--release" in result.output

    def test_invalid_bump(self, runner: CliRunner, tmp_path: Path) -> None:
        result = runner.invoke(
            cli, ["update", str(tmp_path), "--release", "crates", "--bump", "huge"]
        )
        assert result.exit_code == 2

    @patch("release_train.cli.run_update")
    def test_release_error_exits_nonzero(
        self, mock_update: MagicMock, runner: CliRunner, tmp_path: Path
    ) -> None:
        mock_update.side_effect = BumpError("No commits since 0.5.2")

        result = runner.invoke(cli, ["update", str(tmp_path), "--release", "crates"])

        assert result.exit_code == 1
        assert "No commits since 0.5.2" in result.output


class TestUpdateInRepository:
    """The update command against a real git repository."""

    @pytest.fixture
    def two_sets(self, git_repo) -> Path:
        git_repo.write(
            {
                "release.toml": (
                    '[[releases]]\nname = "a"\nversioned_files = ["a/package.json"]\n\n'
                    '[[releases]]\nname = "b"\nversioned_files = ["b/package.json"]\n'
                ),
                "a/package.json": json.dumps({"name": "pkg-a", "version": "1.0.0"}),
                "b/package.json": json.dumps({"name": "pkg-b", "version": "1.0.0"}),
            }
        )
        git_repo.commit("chore: initial", {})
        git_repo.git("tag", "a_v1.0.0")
        git_repo.git("tag", "b_v1.0.0")
        git_repo.commit("feat: add a thing", {"a/index.js": "a"})
        git_repo.commit("fix: repair b", {"b/index.js": "b"})
        return git_repo.root

    def test_updates_every_release_set(self, runner: CliRunner, two_sets: Path) -> None:
        result = runner.invoke(
            cli, ["update", str(two_sets), "--release", "a", "--release", "b"]
        )

        assert result.exit_code == 0, result.output
        assert json.loads((two_sets / "a" / "package.json").read_text())["version"] == "1.1.0"
        assert json.loads((two_sets / "b" / "package.json").read_text())["version"] == "1.0.1"
        assert "## [1.1.0]" in (two_sets / "a" / "CHANGELOG.md").read_text()
        assert "- repair b" in (two_sets / "b" / "CHANGELOG.md").read_text()

    def test_dirty_tree_changes_nothing(
        self, runner: CliRunner, git_repo, two_sets: Path
    ) -> None:
        git_repo.write({"a/index.js": "edited"})

        result = runner.invoke(
            cli, ["update", str(two_sets), "--release", "a", "--release", "b"]
        )

        assert result.exit_code == 1
        assert "Uncommitted changes found" in result.output
        assert not (two_sets / "a" / "CHANGELOG.md").exists()


class TestChangelog:
    """Tests for the changelog command."""

    @patch("release_train.cli.Updater")
    def test_prints_each_package(
        self, mock_updater: MagicMock, runner: CliRunner, tmp_path: Path
    ) -> None:
        mock_updater.return_value.changelog.return_value = {
            "oxc": "## [unreleased]\n",
            "oxc-ast": "## [unreleased]\n",
        }

        result = runner.invoke(cli, ["changelog", str(tmp_path), "--release", "crates"])

        assert result.exit_code == 0, result.output
        assert "# oxc\n" in result.output
        assert "# oxc-ast\n" in result.output

    @patch("release_train.cli.Updater")
    def test_unknown_release(
        self, mock_updater: MagicMock, runner: CliRunner, tmp_path: Path
    ) -> None:
        mock_updater.side_effect = ConfigError("release nope not found")

        result = runner.invoke(cli, ["changelog", str(tmp_path), "--release", "nope"])

        assert result.exit_code == 1
        assert "release nope not found" in result.output


class TestRegenerateChangelogs:
    @patch("release_train.cli.Updater")
    def test_regenerates(
        self, mock_updater: MagicMock, runner: CliRunner, tmp_path: Path
    ) -> None:
        result = runner.invoke(
            cli, ["regenerate-changelogs", str(tmp_path), "--release", "crates"]
        )

        assert result.exit_code == 0, result.output
        mock_updater.return_value.regenerate_changelogs.assert_called_once_with()


class TestPublish:
    """Tests for the publish command."""

    @patch("release_train.cli.run_publish")
    def test_dry_run_by_default(
        self, mock_publish: MagicMock, runner: CliRunner, tmp_path: Path
    ) -> None:
        result = runner.invoke(cli, ["publish", str(tmp_path), "--release", "crates"])

        assert result.exit_code == 0, result.output
        mock_publish.assert_called_once_with(tmp_path, ("crates",), dry_run=True)

    @patch("release_train.cli.run_publish")
    def test_upload(
        self, mock_publish: MagicMock, runner: CliRunner, tmp_path: Path
    ) -> None:
        result = runner.invoke(
            cli, ["publish", str(tmp_path), "--release", "crates", "--upload"]
        )

        assert result.exit_code == 0, result.output
        mock_publish.assert_called_once_with(tmp_path, ("crates",), dry_run=False)

    def test_missing_path(self, runner: CliRunner, tmp_path: Path) -> None:
        result = runner.invoke(
            cli, ["publish", str(tmp_path / "nope"), "--release", "crates"]
        )
        assert result.exit_code == 2
