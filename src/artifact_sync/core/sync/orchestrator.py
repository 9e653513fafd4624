"""Synchronization orchestrator.

Tracks per-artifact sync state for one project workspace and coordinates
the external workflow and error-recovery collaborators:
- One-directional syncs to and from the local workspace
- Two-way syncs that detect divergence and resolve it per strategy
- Explicit conflict resolution with an audit trail
- Optional background auto-sync interval

All state belongs to the orchestrator instance; nothing is shared between
instances.
"""

import logging
import threading
import uuid
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Union

from ...exceptions import (
    ConfigurationError,
    ConflictNotFoundError,
    InvalidResolutionError,
    SyncNotInitializedError,
)
from ...models import ArtifactKind
from ..content import compute_content_hash
from .collaborators import ErrorContext, ErrorRecovery, NoRecovery, WorkflowIntegration
from .conflict_resolver import (
    infer_change_category,
    merge_content,
    resolve_automatically,
)
from .state import (
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
    status_key,
)

logger = logging.getLogger(__name__)

DEFAULT_EVENT_LIMIT = 100


@dataclass
class SyncConfiguration:
    """Settings for a SyncOrchestrator."""

    enable_auto_sync: bool = False
    sync_interval: float = 30.0
    conflict_resolution: Union[ResolutionStrategy, str] = ResolutionStrategy.MANUAL
    enable_versioning: bool = True
    max_sync_retries: int = 3

    @property
    def strategy(self) -> ResolutionStrategy:
        """Conflict resolution strategy as an enum member.

        Raises:
            ConfigurationError: If the strategy is not a known value
        """
        try:
            return ResolutionStrategy(self.conflict_resolution)
        except ValueError as e:
            raise ConfigurationError(
                f"Invalid conflict resolution strategy: {self.conflict_resolution}"
            ) from e

    def validate(self) -> None:
        """Validate settings.

        Raises:
            ConfigurationError: If any value is out of range
        """
        if self.sync_interval <= 0:
            raise ConfigurationError("Sync interval must be greater than 0")
        if self.max_sync_retries < 0:
            raise ConfigurationError("Max sync retries must be non-negative")
        if self.conflict_resolution not in {s.value for s in ResolutionStrategy}:
            raise ConfigurationError("Invalid conflict resolution strategy")


AutoSyncCheck = Callable[["SyncOrchestrator"], None]


class SyncOrchestrator:
    """Per-project sync state machine.

    Each artifact moves ``pending -> synced | conflict | error``; a conflict
    only becomes ``synced`` through resolve_conflict, and an error only
    changes with a fresh sync attempt.

    State is guarded by one lock, so an auto-sync check may run sync
    operations while other threads query. Collaborators are called without
    holding it.
    """

    def __init__(
        self,
        config: SyncConfiguration,
        workflow: WorkflowIntegration,
        error_handler: Optional[ErrorRecovery] = None,
        auto_sync_check: Optional[AutoSyncCheck] = None,
    ):
        """Initialize the orchestrator.

        Args:
            config: Sync configuration, validated by initialize()
            workflow: Collaborator that applies content and records changes
            error_handler: Recovery collaborator (defaults to NoRecovery)
            auto_sync_check: Callable run on every auto-sync tick
        """
        self.config = config
        self.workflow = workflow
        self.error_handler: ErrorRecovery = error_handler or NoRecovery()
        self.auto_sync_check = auto_sync_check

        self._statuses: Dict[str, SyncStatus] = {}
        self._conflicts: Dict[str, SyncConflict] = {}
        self._resolutions: List[ConflictResolutionRecord] = []
        self._events: List[SyncEvent] = []

        self._lock = threading.RLock()
        self._initialized = False
        self._stop_event = threading.Event()
        self._auto_sync_thread: Optional[threading.Thread] = None

    def __enter__(self) -> "SyncOrchestrator":
        """Initialize on entering a ``with`` block."""
        self.initialize()
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Stop on leaving a ``with`` block."""
        self.stop()

    @property
    def is_initialized(self) -> bool:
        """Whether initialize() has run and stop() has not."""
        return self._initialized

    @property
    def auto_sync_running(self) -> bool:
        """Whether the background auto-sync thread is alive."""
        thread = self._auto_sync_thread
        return thread is not None and thread.is_alive()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def initialize(self) -> None:
        """Validate configuration and start auto-sync if enabled.

        Raises:
            ConfigurationError: If the configuration is invalid
        """
        if self._initialized:
            logger.debug("Sync orchestrator already initialized")
            return

        logger.info("Initializing sync orchestrator")
        self.config.validate()
        self._initialized = True

        if self.config.enable_auto_sync:
            self._start_auto_sync()

        logger.info(
            "Sync orchestrator initialized (strategy: %s, auto-sync: %s)",
            self.config.strategy.value,
            self.config.enable_auto_sync,
        )

    def stop(self) -> None:
        """Stop auto-sync and clear the initialized state; safe to repeat."""
        self._stop_event.set()
        thread = self._auto_sync_thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=max(self.config.sync_interval, 1.0))
            if thread.is_alive():
                logger.warning("Auto-sync thread still busy; it exits after its tick")
        self._auto_sync_thread = None

        if self._initialized:
            logger.info("Sync orchestrator stopped")
        self._initialized = False

    def _start_auto_sync(self) -> None:
        self._stop_event = threading.Event()
        self._auto_sync_thread = threading.Thread(
            target=self._auto_sync_loop,
            args=(self._stop_event,),
            name="artifact-auto-sync",
            daemon=True,
        )
        logger.info("Starting auto-sync (interval: %ss)", self.config.sync_interval)
        self._auto_sync_thread.start()

    def _auto_sync_loop(self, stop_event: threading.Event) -> None:
        # Each thread waits on its own event so a restart never revives it
        while not stop_event.wait(self.config.sync_interval):
            if self.auto_sync_check is None:
                logger.debug("Auto-sync tick")
                continue
            try:
                self.auto_sync_check(self)
            except Exception as e:
                # The interval keeps running; the next tick retries
                logger.error("Auto-sync check failed: %s", e, exc_info=True)

    def _require_initialized(self) -> None:
        if not self._initialized:
            raise SyncNotInitializedError("Sync orchestrator not initialized")

    # ------------------------------------------------------------------
    # Sync operations
    # ------------------------------------------------------------------

    def sync_to_local(
        self,
        project_id: str,
        kind: ArtifactKind,
        artifact_id: str,
        content: str,
        actor: str,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> SyncOutcome:
        """Apply remote content to the local workspace.

        Args:
            project_id: Project the artifact belongs to
            kind: Artifact kind
            artifact_id: Artifact id
            content: Content to apply
            actor: Who triggered the sync
            metadata: Extra data stored on the sync event

        Returns:
            Outcome whose status is synced, conflict, or (after a recovered
            failure) error with the recovery fallback data

        Raises:
            SyncNotInitializedError: If initialize() has not been called
            Exception: Whatever the collaborator raised, when recovery fails
        """
        self._require_initialized()
        direction = SyncDirection.TO_LOCAL
        context = ErrorContext(
            operation="sync_to_local",
            actor=actor,
            additional_data={
                "project_id": project_id,
                "kind": kind.value,
                "artifact_id": artifact_id,
            },
        )
        logger.info("Syncing %s/%s/%s to local", project_id, kind.value, artifact_id)
        self._set_status(project_id, kind, artifact_id, direction, SyncState.PENDING)

        try:
            content_hash = compute_content_hash(content)
            conflict = self._detect_conflict(
                project_id, kind, artifact_id, content_hash, direction
            )
            if conflict is not None:
                return SyncOutcome(
                    status=self._set_status(
                        project_id,
                        kind,
                        artifact_id,
                        direction,
                        SyncState.CONFLICT,
                        conflict_reason=self._conflict_reason(conflict),
                    ),
                    conflict=conflict,
                )

            self._record_event(
                project_id,
                kind,
                artifact_id,
                direction,
                content,
                content_hash,
                actor,
                metadata,
            )
            self.workflow.sync_to_ide(project_id, kind, artifact_id, content, actor)

            status = self._set_status(
                project_id, kind, artifact_id, direction, SyncState.SYNCED
            )
            logger.info("Synced %s to local", status.key)
            return SyncOutcome(status=status)

        except Exception as e:
            status = self._set_status(
                project_id,
                kind,
                artifact_id,
                direction,
                SyncState.ERROR,
                error_message=str(e),
            )
            recovery = self.error_handler.handle_error(e, context)
            if not recovery.success:
                logger.error("Failed to sync %s to local: %s", status.key, e)
                raise
            logger.warning(
                "Recovered from failed sync of %s (%s)", status.key, recovery.strategy
            )
            return SyncOutcome(status=status, fallback_data=recovery.fallback_data)

    def sync_from_local(
        self,
        project_id: str,
        kind: ArtifactKind,
        artifact_id: str,
        content: str,
        actor: str,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> SyncOutcome:
        """Send local content to the server and report the change.

        The change is classified from keywords in the content and forwarded
        to the workflow collaborator together with the content of the
        previous sync event for the same artifact.

        Returns:
            Outcome as for sync_to_local

        Raises:
            SyncNotInitializedError: If initialize() has not been called
            Exception: Whatever the collaborator raised, when recovery fails
        """
        self._require_initialized()
        direction = SyncDirection.FROM_LOCAL
        context = ErrorContext(
            operation="sync_from_local",
            actor=actor,
            additional_data={
                "project_id": project_id,
                "kind": kind.value,
                "artifact_id": artifact_id,
            },
        )
        logger.info("Syncing %s/%s/%s from local", project_id, kind.value, artifact_id)
        self._set_status(project_id, kind, artifact_id, direction, SyncState.PENDING)

        try:
            content_hash = compute_content_hash(content)
            conflict = self._detect_conflict(
                project_id, kind, artifact_id, content_hash, direction
            )
            if conflict is not None:
                return SyncOutcome(
                    status=self._set_status(
                        project_id,
                        kind,
                        artifact_id,
                        direction,
                        SyncState.CONFLICT,
                        conflict_reason=self._conflict_reason(conflict),
                    ),
                    conflict=conflict,
                )

            previous = self._latest_event(project_id, kind, artifact_id)
            old_content = previous.content if previous else None

            self._record_event(
                project_id,
                kind,
                artifact_id,
                direction,
                content,
                content_hash,
                actor,
                metadata,
            )
            self.workflow.sync_from_ide(project_id, kind, artifact_id, content, actor)

            category = infer_change_category(kind, content)
            self.workflow.detect_change(
                project_id,
                kind,
                artifact_id,
                ChangeType.UPDATE if previous else ChangeType.CREATE,
                category,
                old_content,
                content,
                actor,
                "Synced from local workspace",
                metadata,
            )

            status = self._set_status(
                project_id, kind, artifact_id, direction, SyncState.SYNCED
            )
            logger.info("Synced %s from local (%s change)", status.key, category.value)
            return SyncOutcome(status=status)

        except Exception as e:
            status = self._set_status(
                project_id,
                kind,
                artifact_id,
                direction,
                SyncState.ERROR,
                error_message=str(e),
            )
            recovery = self.error_handler.handle_error(e, context)
            if not recovery.success:
                logger.error("Failed to sync %s from local: %s", status.key, e)
                raise
            logger.warning(
                "Recovered from failed sync of %s (%s)", status.key, recovery.strategy
            )
            return SyncOutcome(status=status, fallback_data=recovery.fallback_data)

    def bidirectional_sync(
        self,
        project_id: str,
        kind: ArtifactKind,
        artifact_id: str,
        local_content: str,
        remote_content: str,
        actor: str,
    ) -> SyncOutcome:
        """Reconcile local and remote copies of one artifact.

        Equal fingerprints mean the artifact is synced. Otherwise a conflict
        is recorded and resolved with the configured strategy; with the
        manual strategy it is returned for explicit resolution.

        Returns:
            Outcome carrying the resolved content or the pending conflict

        Raises:
            SyncNotInitializedError: If initialize() has not been called
            Exception: Whatever failed, when recovery fails
        """
        self._require_initialized()
        direction = SyncDirection.BIDIRECTIONAL
        context = ErrorContext(
            operation="bidirectional_sync",
            actor=actor,
            additional_data={
                "project_id": project_id,
                "kind": kind.value,
                "artifact_id": artifact_id,
            },
        )
        logger.info(
            "Performing two-way sync of %s/%s/%s", project_id, kind.value, artifact_id
        )
        self._set_status(project_id, kind, artifact_id, direction, SyncState.PENDING)

        try:
            local_hash = compute_content_hash(local_content)
            remote_hash = compute_content_hash(remote_content)

            if local_hash == remote_hash:
                status = self._set_status(
                    project_id, kind, artifact_id, direction, SyncState.SYNCED
                )
                logger.debug("%s is already in sync", status.key)
                return SyncOutcome(status=status)

            conflict = self._create_conflict(
                project_id,
                kind,
                artifact_id,
                local_content,
                remote_content,
                local_hash,
                remote_hash,
            )

            resolution = resolve_automatically(conflict, self.config.strategy)
            if resolution is not None:
                with self._lock:
                    conflict.status = ConflictStatus.RESOLVED
                    self._resolutions.append(resolution)
                status = self._set_status(
                    project_id, kind, artifact_id, direction, SyncState.SYNCED
                )
                logger.info(
                    "Conflict on %s resolved automatically (%s)",
                    status.key,
                    resolution.resolution.value,
                )
                return SyncOutcome(
                    status=status,
                    resolved_content=resolution.resolved_content,
                    conflict=conflict,
                    resolution=resolution,
                )

            status = self._set_status(
                project_id,
                kind,
                artifact_id,
                direction,
                SyncState.CONFLICT,
                conflict_reason="Manual resolution required",
            )
            logger.info("Conflict on %s requires manual resolution", status.key)
            return SyncOutcome(status=status, conflict=conflict)

        except Exception as e:
            status = self._set_status(
                project_id,
                kind,
                artifact_id,
                direction,
                SyncState.ERROR,
                error_message=str(e),
            )
            recovery = self.error_handler.handle_error(e, context)
            if not recovery.success:
                logger.error("Failed two-way sync of %s: %s", status.key, e)
                raise
            return SyncOutcome(status=status, fallback_data=recovery.fallback_data)

    # ------------------------------------------------------------------
    # Conflicts
    # ------------------------------------------------------------------

    def resolve_conflict(
        self,
        conflict_id: str,
        resolution: Union[Resolution, str],
        resolved_content: Optional[str] = None,
        resolved_by: Optional[str] = None,
    ) -> ConflictResolutionRecord:
        """Resolve a conflict explicitly.

        Args:
            conflict_id: Id of the conflict
            resolution: keep_ide, keep_server, merge or manual
            resolved_content: Final content, required for manual
            resolved_by: Who resolved it (defaults to "system")

        Returns:
            Audit record of the resolution

        Raises:
            ConflictNotFoundError: If no conflict has this id
            InvalidResolutionError: If the resolution is unknown, the
                conflict is already resolved, or manual content is missing
        """
        self._require_initialized()
        with self._lock:
            conflict = self._conflicts.get(conflict_id)
            if conflict is None:
                raise ConflictNotFoundError(f"Conflict not found: {conflict_id}")

            try:
                resolution = Resolution(resolution)
            except ValueError as e:
                raise InvalidResolutionError(
                    f"Invalid resolution strategy: {resolution}"
                ) from e

            if conflict.status == ConflictStatus.RESOLVED:
                raise InvalidResolutionError(
                    f"Conflict already resolved: {conflict_id}"
                )

            if resolution == Resolution.KEEP_IDE:
                final_content = conflict.local_content
            elif resolution == Resolution.KEEP_SERVER:
                final_content = conflict.remote_content
            elif resolution == Resolution.MERGE:
                final_content = merge_content(
                    conflict.local_content, conflict.remote_content
                )
            else:
                if resolved_content is None:
                    raise InvalidResolutionError(
                        "Resolved content is required for manual resolution"
                    )
                final_content = resolved_content

            record = ConflictResolutionRecord(
                conflict_id=conflict_id,
                project_id=conflict.project_id,
                artifact_kind=conflict.artifact_kind,
                artifact_id=conflict.artifact_id,
                resolution=resolution,
                resolved_content=final_content,
                resolved_by=resolved_by or "system",
            )
            conflict.status = ConflictStatus.RESOLVED
            self._resolutions.append(record)
            self._set_status(
                conflict.project_id,
                conflict.artifact_kind,
                conflict.artifact_id,
                SyncDirection.BIDIRECTIONAL,
                SyncState.SYNCED,
            )

        logger.info(
            "Conflict %s resolved with %s by %s",
            conflict_id,
            resolution.value,
            record.resolved_by,
        )
        return record

    def ignore_conflict(self, conflict_id: str) -> SyncConflict:
        """Mark a pending conflict as ignored; the sync status is unchanged.

        Raises:
            ConflictNotFoundError: If no conflict has this id
        """
        with self._lock:
            conflict = self._conflicts.get(conflict_id)
            if conflict is None:
                raise ConflictNotFoundError(f"Conflict not found: {conflict_id}")
            if conflict.status == ConflictStatus.PENDING:
                conflict.status = ConflictStatus.IGNORED
                logger.info("Ignoring conflict %s", conflict_id)
        return conflict

    def _detect_conflict(
        self,
        project_id: str,
        kind: ArtifactKind,
        artifact_id: str,
        content_hash: str,
        direction: SyncDirection,
    ) -> Optional[SyncConflict]:
        # Pre-check hook for one-directional syncs; no conflicts are detected yet
        return None

    @staticmethod
    def _conflict_reason(conflict: SyncConflict) -> str:
        return f"Conflict detected: {conflict.conflict_type.value}"

    def _create_conflict(
        self,
        project_id: str,
        kind: ArtifactKind,
        artifact_id: str,
        local_content: str,
        remote_content: str,
        local_hash: str,
        remote_hash: str,
    ) -> SyncConflict:
        conflict = SyncConflict(
            id=self._generate_id(),
            project_id=project_id,
            artifact_kind=kind,
            artifact_id=artifact_id,
            local_content=local_content,
            remote_content=remote_content,
            local_hash=local_hash,
            remote_hash=remote_hash,
            conflict_type=ConflictType.CONTENT,
        )
        with self._lock:
            self._conflicts[conflict.id] = conflict
        logger.debug("Recorded conflict %s", conflict)
        return conflict

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_sync_status(
        self, project_id: str, kind: ArtifactKind, artifact_id: str
    ) -> Optional[SyncStatus]:
        """Latest status of one artifact, or None if never synced."""
        with self._lock:
            return self._statuses.get(status_key(project_id, kind, artifact_id))

    def get_project_sync_statuses(self, project_id: str) -> List[SyncStatus]:
        """All statuses recorded for a project."""
        with self._lock:
            return [
                status
                for status in self._statuses.values()
                if status.project_id == project_id
            ]

    def get_pending_conflicts(
        self, project_id: Optional[str] = None
    ) -> List[SyncConflict]:
        """Conflicts still waiting for resolution, oldest first."""
        with self._lock:
            return [
                conflict
                for conflict in self._conflicts.values()
                if conflict.status == ConflictStatus.PENDING
                and (project_id is None or conflict.project_id == project_id)
            ]

    def get_conflict(self, conflict_id: str) -> Optional[SyncConflict]:
        """Look up a conflict by id in any state."""
        with self._lock:
            return self._conflicts.get(conflict_id)

    def get_resolutions(
        self, conflict_id: Optional[str] = None
    ) -> List[ConflictResolutionRecord]:
        """Resolution audit records, optionally for one conflict."""
        with self._lock:
            return [
                record
                for record in self._resolutions
                if conflict_id is None or record.conflict_id == conflict_id
            ]

    def get_sync_events(
        self, project_id: Optional[str] = None, limit: int = DEFAULT_EVENT_LIMIT
    ) -> List[SyncEvent]:
        """Sync events, most recent first, at most ``limit`` of them."""
        if limit <= 0:
            return []
        with self._lock:
            events = [
                event
                for event in reversed(self._events)
                if project_id is None or event.project_id == project_id
            ]
        return events[:limit]

    # ------------------------------------------------------------------
    # Internal state
    # ------------------------------------------------------------------

    def _set_status(
        self,
        project_id: str,
        kind: ArtifactKind,
        artifact_id: str,
        direction: SyncDirection,
        state: SyncState,
        conflict_reason: Optional[str] = None,
        error_message: Optional[str] = None,
    ) -> SyncStatus:
        status = SyncStatus(
            project_id=project_id,
            artifact_kind=kind,
            artifact_id=artifact_id,
            direction=direction,
            status=state,
            conflict_reason=conflict_reason,
            error_message=error_message,
        )
        with self._lock:
            self._statuses[status.key] = status
        return status

    def _record_event(
        self,
        project_id: str,
        kind: ArtifactKind,
        artifact_id: str,
        direction: SyncDirection,
        content: str,
        content_hash: str,
        actor: str,
        metadata: Optional[Dict[str, Any]],
    ) -> SyncEvent:
        event = SyncEvent(
            id=self._generate_id(),
            project_id=project_id,
            artifact_kind=kind,
            artifact_id=artifact_id,
            direction=direction,
            content=content,
            content_hash=content_hash,
            actor=actor,
            metadata=dict(metadata or {}),
        )
        with self._lock:
            self._events.append(event)
        return event

    def _latest_event(
        self, project_id: str, kind: ArtifactKind, artifact_id: str
    ) -> Optional[SyncEvent]:
        with self._lock:
            for event in reversed(self._events):
                if (
                    event.project_id == project_id
                    and event.artifact_kind == kind
                    and event.artifact_id == artifact_id
                ):
                    return event
        return None

    @staticmethod
    def _generate_id() -> str:
        return f"sync_{uuid.uuid4().hex[:12]}"
