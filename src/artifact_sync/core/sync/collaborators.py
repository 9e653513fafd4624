"""Interfaces of the external collaborators the sync engine calls.

The engine never talks to the network or the editor itself; it is handed
objects satisfying these protocols.
"""

import logging
from dataclasses import dataclass
from dataclasses import field as dataclass_field
from typing import Any, Dict, List, Optional, Protocol

from ...models import (
    ArtifactFilters,
    ArtifactKind,
    LocalArtifact,
    ServerArtifact,
    Task,
)
from .state import ChangeCategory, ChangeType

logger = logging.getLogger(__name__)


class WorkflowIntegration(Protocol):
    """Applies synced content to the workspace or server and records changes."""

    def sync_to_ide(
        self,
        project_id: str,
        kind: ArtifactKind,
        artifact_id: str,
        content: str,
        actor: str,
    ) -> Any:
        """Apply remote content to the local workspace."""
        ...

    def sync_from_ide(
        self,
        project_id: str,
        kind: ArtifactKind,
        artifact_id: str,
        content: str,
        actor: str,
    ) -> Any:
        """Send local content to the server."""
        ...

    def detect_change(
        self,
        project_id: str,
        kind: ArtifactKind,
        artifact_id: str,
        change_type: ChangeType,
        category: ChangeCategory,
        old_content: Optional[str],
        new_content: str,
        actor: str,
        note: str,
        metadata: Optional[Dict[str, Any]],
    ) -> Any:
        """Record a detected change for downstream workflow processing."""
        ...


class RemoteArtifactAPI(Protocol):
    """Backend operations used by push and pull."""

    def fetch_artifacts(
        self, project_id: str, filters: ArtifactFilters
    ) -> List[ServerArtifact]:
        """List the latest remote artifacts matching the filters."""
        ...

    def push_artifact(
        self,
        project_id: str,
        artifact: LocalArtifact,
        target: Optional[ServerArtifact],
    ) -> ServerArtifact:
        """Create a record, or a new version of ``target``; returns it."""
        ...

    def fetch_tasks(
        self, project_id: str, collection: str, milestone: str
    ) -> List[Task]:
        """List existing tasks of a milestone."""
        ...

    def create_tasks(
        self, project_id: str, collection: str, milestone: str, tasks: List[Task]
    ) -> List[Task]:
        """Create tasks under a milestone; returns the created tasks."""
        ...


@dataclass
class ErrorContext:
    """Where an error happened, handed to the recovery collaborator."""

    operation: str
    actor: Optional[str] = None
    additional_data: Dict[str, Any] = dataclass_field(default_factory=dict)


@dataclass
class RecoveryResult:
    """Outcome of an error recovery attempt."""

    success: bool
    strategy: str = "none"
    fallback_data: Any = None


class ErrorRecovery(Protocol):
    """Decides whether a failed operation can continue with fallback data."""

    def handle_error(self, error: Exception, context: ErrorContext) -> RecoveryResult:
        """Attempt recovery from ``error``."""
        ...


class NoRecovery:
    """Recovery collaborator that never recovers, so errors propagate."""

    def handle_error(self, error: Exception, context: ErrorContext) -> RecoveryResult:
        """Log the error and report that no recovery was possible."""
        logger.error("Error in %s: %s", context.operation, error)
        return RecoveryResult(success=False)
