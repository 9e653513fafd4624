"""Tests for the version metadata store."""

import json

import pytest

from artifact_sync.core.content import compute_content_hash
from artifact_sync.core.versioning import VersionMetadataStore
from artifact_sync.exceptions import PathSafetyError, StaleVersionError


class TestVersionMonotonicity:
    """Test version history of one artifact."""

    def test_latest_after_three_versions(self, version_store):
        """Test that the last recorded version is returned."""
        for number, text in enumerate(["first", "second", "third"], start=1):
            version_store.create_version("req-1", "auth", text, number)

        latest = version_store.get_latest_version("req-1", "auth")
        assert latest.version_number == 3
        assert not version_store.has_content_changed("req-1", "auth", "third")
        assert version_store.has_content_changed("req-1", "auth", "second")

    def test_cosmetic_change_is_not_a_change(self, version_store):
        """Test that whitespace or case edits do not count as changes."""
        version_store.create_version("req-1", "auth", "User login", 1)
        edited = "  user   LOGIN\n"
        assert not version_store.has_content_changed("req-1", "auth", edited)

    def test_older_version_rejected(self, version_store):
        """Test that recording a lower version raises."""
        version_store.create_version("req-1", "auth", "v3", 3)
        with pytest.raises(StaleVersionError):
            version_store.create_version("req-1", "auth", "v2", 2)
        assert version_store.get_latest_version("req-1", "auth").version_number == 3

    def test_same_version_refreshes(self, version_store):
        """Test that re-recording the same version updates the hash."""
        version_store.create_version("req-1", "auth", "old", 1)
        version_store.create_version("req-1", "auth", "new", 1)
        latest = version_store.get_latest_version("req-1", "auth")
        assert latest.content_hash == compute_content_hash("new")

    def test_next_version_number(self, version_store):
        """Test numbering of the next version."""
        assert version_store.next_version_number("req-1", "auth") == 1
        version_store.create_version("req-1", "auth", "text", 4)
        assert version_store.next_version_number("req-1", "auth") == 5


class TestMetadataDocument:
    """Test the on-disk JSON document."""

    def test_document_uses_camel_case(self, version_store, artifacts_root):
        """Test the document layout."""
        version_store.create_version("req-1", "auth", "text", 1)

        path = artifacts_root / "auth" / ".metadata.json"
        document = json.loads(path.read_text(encoding="utf-8"))
        assert document["specName"] == "auth"
        assert "lastUpdated" in document
        entry = document["artifacts"]["req-1"]
        assert entry["artifactId"] == "req-1"
        assert entry["versionNumber"] == 1
        assert entry["contentHash"] == compute_content_hash("text")
        assert "lastSyncTimestamp" in entry

    def test_persists_across_instances(self, version_store, artifacts_root):
        """Test that a fresh store reads what another wrote."""
        version_store.create_version("req-1", "auth", "text", 2)

        fresh = VersionMetadataStore(artifacts_root)
        assert fresh.get_latest_version("req-1", "auth").version_number == 2

    def test_missing_document_is_empty_state(self, version_store):
        """Test that an unknown collection has no versions."""
        assert version_store.get_latest_version("req-1", "nowhere") is None
        assert version_store.get_all_artifact_metadata("nowhere") == {}
        assert version_store.has_content_changed("req-1", "nowhere", "x")

    def test_corrupt_document_is_empty_state(self, version_store, artifacts_root):
        """Test that unreadable JSON is treated as no history."""
        collection_dir = artifacts_root / "auth"
        collection_dir.mkdir()
        (collection_dir / ".metadata.json").write_text("{not json", encoding="utf-8")

        assert version_store.get_latest_version("req-1", "auth") is None
        version_store.create_version("req-1", "auth", "text", 1)
        assert version_store.get_latest_version("req-1", "auth").version_number == 1

    def test_no_temp_files_left(self, version_store, artifacts_root):
        """Test that atomic writes clean up after themselves."""
        version_store.create_version("req-1", "auth", "text", 1)
        version_store.create_version("req-1", "auth", "text 2", 2)
        names = [p.name for p in (artifacts_root / "auth").iterdir()]
        assert names == [".metadata.json"]

    def test_cache_is_not_refreshed_by_outside_writes(
        self, version_store, artifacts_root
    ):
        """Test that the read cache only refreshes after clear_cache."""
        version_store.create_version("req-1", "auth", "text", 1)
        other = VersionMetadataStore(artifacts_root)
        other.create_version("req-1", "auth", "text", 7)

        assert version_store.get_latest_version("req-1", "auth").version_number == 1
        version_store.clear_cache("auth")
        assert version_store.get_latest_version("req-1", "auth").version_number == 7


class TestDeleteAndList:
    """Test removal and listing."""

    def test_delete(self, version_store):
        """Test deleting metadata."""
        version_store.create_version("req-1", "auth", "text", 1)
        assert version_store.delete_artifact_metadata("req-1", "auth")
        assert version_store.get_latest_version("req-1", "auth") is None
        assert not version_store.delete_artifact_metadata("req-1", "auth")

    def test_get_all(self, version_store):
        """Test listing every artifact of a collection."""
        version_store.create_version("a", "auth", "one", 1)
        version_store.create_version("b", "auth", "two", 2)
        all_metadata = version_store.get_all_artifact_metadata("auth")
        assert set(all_metadata) == {"a", "b"}
        assert all_metadata["b"].version_number == 2

    def test_get_all_returns_copies(self, version_store):
        """Test that editing listed metadata leaves the store unchanged."""
        version_store.create_version("a", "auth", "one", 1)
        all_metadata = version_store.get_all_artifact_metadata("auth")
        all_metadata["a"].version_number = 99

        assert version_store.get_latest_version("a", "auth").version_number == 1

    def test_collection_traversal_rejected(self, version_store):
        """Test that a collection cannot escape the root."""
        with pytest.raises(PathSafetyError):
            version_store.create_version("a", "..", "text", 1)
