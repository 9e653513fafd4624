"""Synchronization module.

Handles match resolution, sync orchestration, conflict resolution, and
push/pull of artifacts.
"""

from .artifact_sync import (
    ArtifactError,
    ArtifactSyncResult,
    ArtifactSyncService,
    PullResult,
    PushResult,
)
from .collaborators import (
    ErrorContext,
    ErrorRecovery,
    NoRecovery,
    RecoveryResult,
    RemoteArtifactAPI,
    WorkflowIntegration,
)
from .conflict_resolver import (
    has_conflict_markers,
    infer_change_category,
    merge_content,
    resolve_automatically,
)
from .deduplication import (
    ArtifactMatch,
    ArtifactMatcher,
    ExactMatch,
    LocalCandidate,
    MatchSummary,
    UpdateTarget,
)
from .orchestrator import SyncConfiguration, SyncOrchestrator
from .state import (
    ChangeCategory,
    ChangeType,
    ConflictResolutionRecord,
    ConflictStatus,
    ConflictType,
    Resolution,
    ResolutionStrategy,
    SyncConflict,
    SyncDirection,
    SyncEvent,
    SyncOutcome,
    SyncState,
    SyncStatus,
)

__all__ = [
    # Match resolution
    "ArtifactMatch",
    "ArtifactMatcher",
    "ExactMatch",
    "LocalCandidate",
    "MatchSummary",
    "UpdateTarget",
    # Orchestration
    "SyncConfiguration",
    "SyncOrchestrator",
    # State
    "ChangeCategory",
    "ChangeType",
    "ConflictResolutionRecord",
    "ConflictStatus",
    "ConflictType",
    "Resolution",
    "ResolutionStrategy",
    "SyncConflict",
    "SyncDirection",
    "SyncEvent",
    "SyncOutcome",
    "SyncState",
    "SyncStatus",
    # Conflict resolution
    "has_conflict_markers",
    "infer_change_category",
    "merge_content",
    "resolve_automatically",
    # Collaborators
    "ErrorContext",
    "ErrorRecovery",
    "NoRecovery",
    "RecoveryResult",
    "RemoteArtifactAPI",
    "WorkflowIntegration",
    # Push/pull
    "ArtifactError",
    "ArtifactSyncResult",
    "ArtifactSyncService",
    "PullResult",
    "PushResult",
]
