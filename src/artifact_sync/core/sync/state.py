"""Sync status, conflict and event records.

All records here are held in memory by one SyncOrchestrator instance and are
not persisted beyond the running process.
"""

from dataclasses import dataclass
from dataclasses import field as dataclass_field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from ...models import ArtifactKind


class SyncState(str, Enum):
    """Per-artifact sync state."""

    PENDING = "pending"
    SYNCED = "synced"
    CONFLICT = "conflict"
    ERROR = "error"


class SyncDirection(str, Enum):
    """Direction of a sync operation relative to the local workspace."""

    TO_LOCAL = "to_local"
    FROM_LOCAL = "from_local"
    BIDIRECTIONAL = "bidirectional"


class ConflictType(str, Enum):
    """Classes of divergence between local and remote copies."""

    CONTENT = "content"
    VERSION = "version"
    LOCK = "lock"


class ConflictStatus(str, Enum):
    """Lifecycle of a conflict record."""

    PENDING = "pending"
    RESOLVED = "resolved"
    IGNORED = "ignored"


class ResolutionStrategy(str, Enum):
    """Configured handling of conflicts found by a two-way sync."""

    MANUAL = "manual"
    AUTO_MERGE = "auto_merge"
    LAST_WRITER_WINS = "last_writer_wins"


class Resolution(str, Enum):
    """Explicit ways to resolve a conflict ("ide" is the local workspace)."""

    KEEP_IDE = "keep_ide"
    KEEP_SERVER = "keep_server"
    MERGE = "merge"
    MANUAL = "manual"


class ChangeType(str, Enum):
    """Kind of change forwarded to the workflow collaborator."""

    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


class ChangeCategory(str, Enum):
    """Coarse classification of a content change."""

    BREAKING = "breaking"
    FEATURE = "feature"
    REFACTOR = "refactor"
    FIX = "fix"
    DOCS = "docs"
    STYLE = "style"


def status_key(project_id: str, kind: ArtifactKind, artifact_id: str) -> str:
    """Key identifying one artifact's sync record."""
    return f"{project_id}:{kind.value}:{artifact_id}"


@dataclass
class SyncStatus:
    """Latest known sync outcome for one artifact."""

    project_id: str
    artifact_kind: ArtifactKind
    artifact_id: str
    direction: SyncDirection
    status: SyncState
    last_sync_time: datetime = dataclass_field(default_factory=datetime.now)
    conflict_reason: Optional[str] = None
    error_message: Optional[str] = None

    @property
    def key(self) -> str:
        """Status map key."""
        return status_key(self.project_id, self.artifact_kind, self.artifact_id)

    def to_dict(self) -> Dict[str, Any]:
        """Convert status to dictionary for serialization."""
        return {
            "project_id": self.project_id,
            "artifact_kind": self.artifact_kind.value,
            "artifact_id": self.artifact_id,
            "direction": self.direction.value,
            "status": self.status.value,
            "last_sync_time": self.last_sync_time.isoformat(),
            "conflict_reason": self.conflict_reason,
            "error_message": self.error_message,
        }


@dataclass
class SyncConflict:
    """Snapshot of divergent local and remote content.

    Lives independently of the owning SyncStatus and is looked up by id.
    """

    id: str
    project_id: str
    artifact_kind: ArtifactKind
    artifact_id: str
    local_content: str
    remote_content: str
    local_hash: str
    remote_hash: str
    conflict_type: ConflictType = ConflictType.CONTENT
    detected_at: datetime = dataclass_field(default_factory=datetime.now)
    status: ConflictStatus = ConflictStatus.PENDING

    def __str__(self) -> str:
        """String representation of conflict."""
        return (
            f"{self.conflict_type.value}: {self.project_id}/"
            f"{self.artifact_kind.value}/{self.artifact_id} [{self.status.value}]"
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert conflict to dictionary for serialization."""
        return {
            "id": self.id,
            "project_id": self.project_id,
            "artifact_kind": self.artifact_kind.value,
            "artifact_id": self.artifact_id,
            "local_hash": self.local_hash,
            "remote_hash": self.remote_hash,
            "conflict_type": self.conflict_type.value,
            "detected_at": self.detected_at.isoformat(),
            "status": self.status.value,
        }


@dataclass
class ConflictResolutionRecord:
    """Audit record of how a conflict was resolved."""

    conflict_id: str
    project_id: str
    artifact_kind: ArtifactKind
    artifact_id: str
    resolution: Resolution
    resolved_content: str
    resolved_by: str
    resolved_at: datetime = dataclass_field(default_factory=datetime.now)


@dataclass
class SyncEvent:
    """Append-only history entry; used for queries, never for replay."""

    id: str
    project_id: str
    artifact_kind: ArtifactKind
    artifact_id: str
    direction: SyncDirection
    content: str
    content_hash: str
    actor: str
    timestamp: datetime = dataclass_field(default_factory=datetime.now)
    metadata: Dict[str, Any] = dataclass_field(default_factory=dict)


@dataclass
class SyncOutcome:
    """Result of a sync operation.

    Divergence is an expected outcome, reported here rather than raised:
    ``conflict`` is set when manual resolution is required and
    ``resolved_content`` when the configured strategy resolved it.
    ``fallback_data`` carries what error recovery supplied after a failure.
    """

    status: SyncStatus
    resolved_content: Optional[str] = None
    conflict: Optional[SyncConflict] = None
    resolution: Optional[ConflictResolutionRecord] = None
    fallback_data: Any = None

    @property
    def needs_resolution(self) -> bool:
        """True when a pending conflict was returned to the caller."""
        return self.status.status == SyncState.CONFLICT and self.conflict is not None

    @property
    def is_error(self) -> bool:
        """True when the sync failed."""
        return self.status.status == SyncState.ERROR
