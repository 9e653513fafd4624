"""Artifact Sync.

Keeps a local workspace of project artifacts (requirements, designs,
diagrams, task lists) consistent with a remote server: content
fingerprinting, version metadata, safe artifact files, and conflict-aware
synchronization.
"""

__version__ = "0.1.0"

from .config import Config
from .core.content import compute_content_hash, normalize_for_comparison
from .core.filesystem import ArtifactFileStore
from .core.sync import (
    ArtifactMatcher,
    ArtifactSyncService,
    SyncConfiguration,
    SyncOrchestrator,
)
from .core.versioning import VersionMetadataStore
from .models import ArtifactIdentity, ArtifactKind

__all__ = [
    "ArtifactFileStore",
    "ArtifactIdentity",
    "ArtifactKind",
    "ArtifactMatcher",
    "ArtifactSyncService",
    "Config",
    "SyncConfiguration",
    "SyncOrchestrator",
    "VersionMetadataStore",
    "compute_content_hash",
    "normalize_for_comparison",
]
