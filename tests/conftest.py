"""Shared fixtures."""

import pytest

from artifact_sync.core.filesystem import ArtifactFileStore
from artifact_sync.core.versioning import VersionMetadataStore
from artifact_sync.models import ArtifactIdentity, ArtifactKind


@pytest.fixture
def artifacts_root(tmp_path):
    """Per-test artifacts directory."""
    root = tmp_path / ".quikim" / "artifacts"
    root.mkdir(parents=True)
    return root


@pytest.fixture
def file_store(artifacts_root):
    """File store over the temporary artifacts root."""
    return ArtifactFileStore(artifacts_root)


@pytest.fixture
def version_store(artifacts_root):
    """Version metadata store over the temporary artifacts root."""
    return VersionMetadataStore(artifacts_root)


@pytest.fixture
def login_identity():
    """Identity of a name-based requirement."""
    return ArtifactIdentity(
        collection="auth", kind=ArtifactKind.REQUIREMENT, name="login"
    )
