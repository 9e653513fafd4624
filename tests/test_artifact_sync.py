"""Tests for pushing and pulling artifacts."""

from unittest.mock import Mock

import pytest

from artifact_sync.core.sync import ArtifactSyncService
from artifact_sync.core.sync.artifact_sync import extract_title
from artifact_sync.models import (
    ArtifactFilters,
    ArtifactIdentity,
    ArtifactKind,
    ServerArtifact,
    Task,
)


def _server(name="login", content="# Login", version=1, **kwargs):
    data = {
        "artifact_id": f"id-{name}-{version}",
        "collection": "auth",
        "kind": ArtifactKind.REQUIREMENT,
        "name": name,
        "content": content,
        "version": version,
        "root_id": f"root-{name}",
    }
    data.update(kwargs)
    return ServerArtifact(**data)


@pytest.fixture
def remote():
    """Mock backend with no remote artifacts."""
    api = Mock()
    api.fetch_artifacts.return_value = []
    api.fetch_tasks.return_value = []
    api.create_tasks.side_effect = lambda project, collection, milestone, tasks: tasks
    return api


@pytest.fixture
def service(remote, file_store, version_store):
    """Sync service for project p1."""
    return ArtifactSyncService("p1", remote, file_store, version_store)


class TestExtractTitle:
    """Test markdown title extraction."""

    def test_first_heading(self):
        """Test that the first level-one heading wins."""
        assert extract_title("intro\n# Sprint 1\n## Sub\n# Later") == "Sprint 1"

    def test_no_heading(self):
        """Test text without a heading."""
        assert extract_title("## Only a subheading") is None
        assert extract_title("") is None


class TestPush:
    """Test pushing local artifacts."""

    def test_new_artifact_created_and_renamed(
        self, service, remote, file_store, version_store, login_identity
    ):
        """Test that a new artifact is pushed and takes its server id."""
        file_store.write(login_identity, "# Login")
        remote.push_artifact.return_value = _server()

        result = service.push()

        assert result.success
        assert result.pushed == 1
        local_artifact, target = remote.push_artifact.call_args.args[1:]
        assert local_artifact.name == "login"
        assert target is None

        assert not file_store.resolve_path(login_identity).exists()
        renamed = file_store.artifacts_root / "auth" / "requirement_root-login.md"
        assert renamed.read_text(encoding="utf-8") == "# Login"
        latest = version_store.get_latest_version("root-login", "auth")
        assert latest.version_number == 1

    def test_exact_duplicate_skipped(self, service, remote, file_store, login_identity):
        """Test that unchanged content is not pushed again."""
        file_store.write(login_identity, "# Login")
        remote.fetch_artifacts.return_value = [_server(content="#  login ")]

        result = service.push()

        assert result.skipped == 1
        assert result.pushed == 0
        remote.push_artifact.assert_not_called()

    def test_force_pushes_duplicates(self, service, remote, file_store, login_identity):
        """Test the force flag."""
        file_store.write(login_identity, "# Login")
        existing = _server()
        remote.fetch_artifacts.return_value = [existing]
        remote.push_artifact.return_value = _server(version=2)

        result = service.push(force=True)

        assert result.pushed == 1
        assert remote.push_artifact.call_args.args[2] == existing

    def test_changed_content_versions_latest_record(
        self, service, remote, file_store, version_store, login_identity
    ):
        """Test that an edit becomes a new version of the newest record."""
        file_store.write(login_identity, "# Login v3")
        older = _server(content="# Login v1", version=1)
        newer = _server(content="# Login v2", version=2)
        remote.fetch_artifacts.return_value = [older, newer]
        remote.push_artifact.return_value = _server(content="# Login v3", version=3)

        result = service.push()

        assert result.pushed == 1
        assert remote.push_artifact.call_args.args[2] == newer
        latest = version_store.get_latest_version("root-login", "auth")
        assert latest.version_number == 3

    def test_renamed_file_matched_by_root_id(self, service, remote, file_store):
        """Test that a file named after its server id still matches."""
        identity = ArtifactIdentity(
            collection="auth",
            kind=ArtifactKind.REQUIREMENT,
            name="login",
            root_id="root-login",
        )
        file_store.write(identity, "# Login")
        remote.fetch_artifacts.return_value = [_server()]

        result = service.push()

        assert result.skipped == 1
        remote.push_artifact.assert_not_called()

    def test_tasks_pushed_without_duplicates(self, service, remote, file_store):
        """Test that only unknown task descriptions are created."""
        identity = ArtifactIdentity(
            collection="auth", kind=ArtifactKind.TASKS, name="sprint"
        )
        file_store.write(
            identity,
            "# Sprint 1\n\n- [ ] Build login\n- [x] Write docs\n- [ ] build  LOGIN\n",
        )
        remote.fetch_tasks.return_value = [Task(description="Write docs")]

        result = service.push()

        assert result.tasks_created == 1
        assert result.pushed == 1
        remote.fetch_tasks.assert_called_once_with("p1", "auth", "Sprint 1")
        created = remote.create_tasks.call_args.args[3]
        assert [task.description for task in created] == ["Build login"]
        assert file_store.exists(identity)

    def test_known_tasks_only_counts_as_skipped(self, service, remote, file_store):
        """Test a task list with nothing new."""
        identity = ArtifactIdentity(
            collection="auth", kind=ArtifactKind.TASKS, name="sprint"
        )
        file_store.write(identity, "- [ ] Write docs\n")
        remote.fetch_tasks.return_value = [Task(description="write docs")]

        result = service.push()

        assert result.skipped == 1
        remote.fetch_tasks.assert_called_once_with("p1", "auth", "sprint")
        remote.create_tasks.assert_not_called()

    def test_dry_run(self, service, remote, file_store, login_identity):
        """Test that a dry run only counts candidates."""
        file_store.write(login_identity, "# Login")

        result = service.push(dry_run=True)

        assert result.dry_run
        assert result.candidates == 1
        remote.fetch_artifacts.assert_not_called()

    def test_fetch_failure_is_general_error(
        self, service, remote, file_store, login_identity
    ):
        """Test a backend failure before any artifact is processed."""
        file_store.write(login_identity, "# Login")
        remote.fetch_artifacts.side_effect = ConnectionError("server down")

        result = service.push()

        assert not result.success
        assert str(result.errors[0]) == "general: server down"

    def test_one_failure_does_not_stop_others(self, service, remote, file_store):
        """Test per-artifact error collection."""
        for name in ("alpha", "beta"):
            file_store.write(
                ArtifactIdentity(
                    collection="auth", kind=ArtifactKind.CONTEXT, name=name
                ),
                f"# {name}",
            )
        remote.push_artifact.side_effect = [
            RuntimeError("rejected"),
            _server(name="beta", kind=ArtifactKind.CONTEXT, root_id=None),
        ]

        result = service.push()

        assert result.pushed == 1
        assert len(result.errors) == 1
        assert result.errors[0].error == "rejected"
        assert result.get_summary()["errors"] == 1

    def test_filters_forwarded(self, service, remote, file_store, login_identity):
        """Test that filters limit the scan and the remote query."""
        file_store.write(login_identity, "# Login")
        filters = ArtifactFilters(collection="billing")

        result = service.push(filters)

        assert result.candidates == 0
        remote.fetch_artifacts.assert_called_once_with("p1", filters)


class TestPull:
    """Test pulling server artifacts."""

    def test_creates_files(self, service, remote, file_store, version_store):
        """Test writing a new server artifact."""
        artifact = _server(
            name="arch",
            kind=ArtifactKind.HLD,
            content='"# Architecture"',
            version=2,
        )
        remote.fetch_artifacts.return_value = [artifact]

        result = service.pull()

        assert result.created == 1
        assert result.pulled == 1
        assert file_store.read(artifact.identity) == "# Architecture"
        latest = version_store.get_latest_version("root-arch", "auth")
        assert latest.version_number == 2

    def test_unchanged_skipped_and_changed_updated(self, service, remote, file_store):
        """Test repeated pulls."""
        remote.fetch_artifacts.return_value = [_server(content="# Login")]
        service.pull()

        again = service.pull()
        assert again.unchanged == 1
        assert again.pulled == 0

        remote.fetch_artifacts.return_value = [_server(content="# Login v2", version=2)]
        changed = service.pull()
        assert changed.updated == 1
        assert file_store.read(_server().identity) == "# Login v2"

    def test_force_rewrites_unchanged(self, service, remote):
        """Test the force flag on pull."""
        remote.fetch_artifacts.return_value = [_server()]
        service.pull()

        result = service.pull(force=True)

        assert result.updated == 1

    def test_stale_server_version_rejected(
        self, service, remote, file_store, version_store
    ):
        """Test that an older server version never overwrites local files."""
        version_store.create_version("root-login", "auth", "# Newer", 5)
        artifact = _server(content="# Older", version=2)
        remote.fetch_artifacts.return_value = [artifact]

        result = service.pull()

        assert not result.success
        assert "older than local version 5" in result.errors[0].error
        assert not file_store.exists(artifact.identity)

    def test_without_versioning(self, remote, file_store, version_store):
        """Test that metadata is untouched when versioning is off."""
        service = ArtifactSyncService(
            "p1", remote, file_store, version_store, enable_versioning=False
        )
        remote.fetch_artifacts.return_value = [_server()]

        service.pull()
        second = service.pull()

        assert second.updated == 1
        assert version_store.get_latest_version("root-login", "auth") is None

    def test_dry_run(self, service, remote, file_store):
        """Test that a dry run writes nothing."""
        remote.fetch_artifacts.return_value = [_server()]

        result = service.pull(dry_run=True)

        assert result.candidates == 1
        assert not file_store.exists(_server().identity)

    def test_fetch_failure(self, service, remote):
        """Test a backend failure."""
        remote.fetch_artifacts.side_effect = TimeoutError("timed out")

        result = service.pull()

        assert result.errors[0].artifact == "general"


class TestSync:
    """Test push followed by pull."""

    def test_sync_runs_both_halves(self, service, remote, file_store, login_identity):
        """Test the combined result."""
        file_store.write(login_identity, "# Login")
        pushed = _server()
        remote.push_artifact.return_value = pushed
        remote.fetch_artifacts.side_effect = [[], [pushed]]

        result = service.sync()

        assert result.success
        assert result.push.pushed == 1
        assert result.pull.unchanged == 1
        assert result.get_summary()["push"]["pushed"] == 1
