"""Tests for the command-line interface."""

import logging

import pytest
from click.testing import CliRunner

from artifact_sync.cli import cli
from artifact_sync.core.filesystem import ArtifactFileStore
from artifact_sync.core.versioning import VersionMetadataStore


@pytest.fixture(autouse=True)
def restore_logging(monkeypatch, tmp_path):
    """Keep root logger handlers and run away from any real .env file."""
    monkeypatch.chdir(tmp_path)
    root_logger = logging.getLogger()
    handlers = root_logger.handlers[:]
    level = root_logger.level
    yield
    root_logger.handlers[:] = handlers
    root_logger.setLevel(level)


@pytest.fixture
def runner():
    """Click test runner."""
    return CliRunner()


def _invoke(runner, artifacts_root, *args):
    return runner.invoke(cli, ["--root", str(artifacts_root), *args])


class TestScanCommand:
    """Test the scan command."""

    def test_empty_root(self, runner, artifacts_root):
        """Test scanning a root with no artifacts."""
        result = _invoke(runner, artifacts_root, "scan")

        assert result.exit_code == 0
        assert "No artifacts found" in result.output

    def test_lists_artifacts(self, runner, artifacts_root, file_store, login_identity):
        """Test the artifact table and summary."""
        file_store.write(login_identity, "# Login")
        (artifacts_root / "auth" / "notes.md").write_text("x", encoding="utf-8")

        result = _invoke(runner, artifacts_root, "scan")

        assert result.exit_code == 0
        assert "requirement" in result.output
        assert "1 artifacts in 1 collections (1 files skipped)" in result.output

    def test_kind_filter(self, runner, artifacts_root, file_store, login_identity):
        """Test filtering by kind."""
        file_store.write(login_identity, "# Login")

        result = _invoke(runner, artifacts_root, "scan", "--kind", "hld")

        assert "No artifacts found" in result.output

    def test_invalid_kind(self, runner, artifacts_root):
        """Test that unknown kinds are rejected by click."""
        result = _invoke(runner, artifacts_root, "scan", "--kind", "poem")

        assert result.exit_code == 2


class TestVersionsCommand:
    """Test the versions command."""

    def test_no_metadata(self, runner, artifacts_root):
        """Test a collection without metadata."""
        result = _invoke(runner, artifacts_root, "versions", "auth")

        assert result.exit_code == 0
        assert "No version metadata for auth" in result.output

    def test_lists_versions(self, runner, artifacts_root):
        """Test the version table."""
        VersionMetadataStore(artifacts_root).create_version("root1", "auth", "x", 4)

        result = _invoke(runner, artifacts_root, "versions", "auth")

        assert result.exit_code == 0
        assert "root1" in result.output
        assert "4" in result.output

    def test_traversal_rejected(self, runner, artifacts_root):
        """Test that a collection cannot escape the root."""
        result = _invoke(runner, artifacts_root, "versions", "..")

        assert result.exit_code == 1
        assert "Error" in result.output


class TestBackupsCommand:
    """Test the backups command."""

    def test_lists_backups(self, runner, artifacts_root, login_identity):
        """Test listing backups after overwrites."""
        store = ArtifactFileStore(artifacts_root)
        for index in range(3):
            store.write(login_identity, f"version {index}")

        result = _invoke(
            runner, artifacts_root, "backups", "auth", "requirement", "login"
        )

        assert result.exit_code == 0
        assert "Backups of requirement_login.md" in result.output
        assert result.output.count("requirement_login.md.") == 2

    def test_no_backups(self, runner, artifacts_root):
        """Test an artifact that was never overwritten."""
        result = _invoke(
            runner, artifacts_root, "backups", "auth", "requirement", "login"
        )

        assert result.exit_code == 0
        assert "No backups of requirement_login.md" in result.output

    def test_unsafe_name(self, runner, artifacts_root):
        """Test that traversal names are rejected."""
        result = _invoke(runner, artifacts_root, "backups", "auth", "hld", "..")

        assert result.exit_code == 1


class TestCompareCommand:
    """Test the compare command."""

    def test_equivalent(self, runner, artifacts_root, tmp_path):
        """Test files that differ only in markup and case."""
        first = tmp_path / "a.md"
        second = tmp_path / "b.md"
        first.write_text("<p>Hello   World</p>", encoding="utf-8")
        second.write_text("hello world\n", encoding="utf-8")

        result = _invoke(runner, artifacts_root, "compare", str(first), str(second))

        assert result.exit_code == 0
        assert "Content is equivalent" in result.output

    def test_different(self, runner, artifacts_root, tmp_path):
        """Test files with different content."""
        first = tmp_path / "a.md"
        second = tmp_path / "b.md"
        first.write_text("hello", encoding="utf-8")
        second.write_text("goodbye", encoding="utf-8")

        result = _invoke(runner, artifacts_root, "compare", str(first), str(second))

        assert result.exit_code == 1
        assert "Content differs" in result.output


class TestCliOptions:
    """Test group options."""

    def test_bad_environment_is_reported(self, runner, artifacts_root, monkeypatch):
        """Test that configuration errors become click errors."""
        monkeypatch.setenv("ARTIFACT_SYNC_MAX_BACKUPS", "zero")

        result = _invoke(runner, artifacts_root, "scan")

        assert result.exit_code == 1
        assert "MAX_BACKUPS must be a number" in result.output

    def test_log_file(self, runner, artifacts_root, tmp_path):
        """Test that --log-file creates the log file."""
        log_file = tmp_path / "logs" / "sync.log"

        result = runner.invoke(
            cli,
            [
                "--root",
                str(artifacts_root),
                "--log-level",
                "DEBUG",
                "--log-file",
                str(log_file),
                "scan",
            ],
        )

        assert result.exit_code == 0
        assert log_file.exists()
