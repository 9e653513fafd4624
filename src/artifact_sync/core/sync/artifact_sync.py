"""Push and pull of artifacts between the local workspace and the server.

Push scans local files and, for each one, asks the match resolver whether
the server already has it: exact duplicates are skipped, same-identity
records are versioned forward, and everything else is created. Pull writes
every changed server artifact through the file store. Version metadata is
recorded only after the write it describes has succeeded.
"""

import logging
import re
from dataclasses import dataclass
from dataclasses import field as dataclass_field
from typing import Any, Dict, List, Optional, Sequence

from ...exceptions import StaleVersionError
from ...models import (
    ArtifactFilters,
    ArtifactIdentity,
    ArtifactKind,
    LocalArtifact,
    ServerArtifact,
    parse_tasks,
)
from ..content import strip_wrapped_quotes
from ..filesystem import ArtifactFileStore
from ..versioning import VersionMetadataStore
from .collaborators import RemoteArtifactAPI
from .deduplication import ArtifactMatcher, ExactMatch

logger = logging.getLogger(__name__)

_HEADING = re.compile(r"^#\s+(.+?)\s*$", re.MULTILINE)


@dataclass
class ArtifactError:
    """A failure attributed to one artifact."""

    artifact: str
    error: str

    def __str__(self) -> str:
        """String representation of error."""
        return f"{self.artifact}: {self.error}"


@dataclass
class PushResult:
    """Result of pushing local artifacts."""

    pushed: int = 0
    skipped: int = 0
    tasks_created: int = 0
    candidates: int = 0
    dry_run: bool = False
    errors: List[ArtifactError] = dataclass_field(default_factory=list)

    @property
    def success(self) -> bool:
        """True when no artifact failed."""
        return not self.errors

    def add_error(self, artifact: str, error: str) -> None:
        """Add an error message."""
        self.errors.append(ArtifactError(artifact, error))
        logger.error("Push failed for %s: %s", artifact, error)

    def get_summary(self) -> Dict[str, Any]:
        """Get summary statistics."""
        return {
            "success": self.success,
            "candidates": self.candidates,
            "pushed": self.pushed,
            "skipped": self.skipped,
            "tasks_created": self.tasks_created,
            "dry_run": self.dry_run,
            "errors": len(self.errors),
        }


@dataclass
class PullResult:
    """Result of pulling server artifacts."""

    pulled: int = 0
    created: int = 0
    updated: int = 0
    unchanged: int = 0
    candidates: int = 0
    dry_run: bool = False
    errors: List[ArtifactError] = dataclass_field(default_factory=list)

    @property
    def success(self) -> bool:
        """True when no artifact failed."""
        return not self.errors

    def add_error(self, artifact: str, error: str) -> None:
        """Add an error message."""
        self.errors.append(ArtifactError(artifact, error))
        logger.error("Pull failed for %s: %s", artifact, error)

    def get_summary(self) -> Dict[str, Any]:
        """Get summary statistics."""
        return {
            "success": self.success,
            "candidates": self.candidates,
            "pulled": self.pulled,
            "created": self.created,
            "updated": self.updated,
            "unchanged": self.unchanged,
            "dry_run": self.dry_run,
            "errors": len(self.errors),
        }


@dataclass
class ArtifactSyncResult:
    """Push followed by pull."""

    push: PushResult
    pull: PullResult

    @property
    def success(self) -> bool:
        """True when both halves succeeded."""
        return self.push.success and self.pull.success

    def get_summary(self) -> Dict[str, Any]:
        """Get summary of both halves."""
        return {
            "success": self.success,
            "push": self.push.get_summary(),
            "pull": self.pull.get_summary(),
        }


def extract_title(markdown: str) -> Optional[str]:
    """First level-one heading of a markdown document."""
    match = _HEADING.search(markdown or "")
    return match.group(1) if match else None


class ArtifactSyncService:
    """Moves artifacts between one project's workspace and its server."""

    def __init__(
        self,
        project_id: str,
        remote: RemoteArtifactAPI,
        file_store: ArtifactFileStore,
        version_store: Optional[VersionMetadataStore] = None,
        matcher: Optional[ArtifactMatcher] = None,
        enable_versioning: bool = True,
    ):
        """Initialize the service.

        Args:
            project_id: Server-side project id
            remote: Backend collaborator
            file_store: Local artifact files
            version_store: Version metadata (defaults to one on the same root)
            matcher: Duplicate resolver
            enable_versioning: Record version metadata after writes
        """
        self.project_id = project_id
        self.remote = remote
        self.file_store = file_store
        self.version_store = version_store or VersionMetadataStore(
            file_store.artifacts_root
        )
        self.matcher = matcher or ArtifactMatcher()
        self.enable_versioning = enable_versioning

    # ------------------------------------------------------------------
    # Push
    # ------------------------------------------------------------------

    def push(
        self,
        filters: Optional[ArtifactFilters] = None,
        dry_run: bool = False,
        force: bool = False,
    ) -> PushResult:
        """Push local artifacts to the server.

        Args:
            filters: Optional collection/kind/name filters
            dry_run: Only count what would be pushed
            force: Push exact duplicates too

        Returns:
            PushResult; per-artifact failures are collected, not raised
        """
        filters = filters or ArtifactFilters()
        result = PushResult(dry_run=dry_run)

        local_artifacts = self.file_store.scan(filters)
        result.candidates = len(local_artifacts)
        if dry_run:
            logger.info("[DRY RUN] Would push %d artifacts", len(local_artifacts))
            return result

        try:
            remote_artifacts = self.remote.fetch_artifacts(self.project_id, filters)
        except Exception as e:
            result.add_error("general", str(e))
            return result

        for artifact in local_artifacts:
            try:
                if artifact.kind == ArtifactKind.TASKS:
                    created = self._push_tasks(artifact)
                    result.tasks_created += created
                    if created:
                        result.pushed += 1
                    else:
                        result.skipped += 1
                    continue

                if self._push_artifact(artifact, remote_artifacts, force):
                    result.pushed += 1
                else:
                    result.skipped += 1
            except Exception as e:
                result.add_error(str(artifact.file_path), str(e))

        logger.info("Push complete: %s", result.get_summary())
        return result

    def _push_artifact(
        self,
        artifact: LocalArtifact,
        remote_artifacts: Sequence[ServerArtifact],
        force: bool,
    ) -> bool:
        identity = self._remote_identity(artifact, remote_artifacts)
        match = self.matcher.find_match(identity, artifact.content, remote_artifacts)
        if isinstance(match, ExactMatch) and not force:
            logger.debug("Skipped %s (no changes)", artifact.file_path)
            return False

        target = match.artifact if match is not None else None
        pushed = self.remote.push_artifact(self.project_id, artifact, target)
        logger.info("Pushed %s as %s v%d", identity, pushed.artifact_id, pushed.version)

        self._move_to_canonical_path(artifact, pushed.identity)
        if self.enable_versioning:
            self.version_store.create_version(
                pushed.identity.version_key,
                pushed.collection,
                artifact.content,
                pushed.version,
            )
        return True

    def _remote_identity(
        self, artifact: LocalArtifact, remote_artifacts: Sequence[ServerArtifact]
    ) -> ArtifactIdentity:
        # Files renamed after an earlier push carry the server id, not the name
        for candidate in remote_artifacts:
            if (
                candidate.collection == artifact.collection
                and candidate.kind == artifact.kind
                and artifact.name in (candidate.artifact_id, candidate.root_id)
            ):
                return ArtifactIdentity(
                    collection=artifact.collection,
                    kind=artifact.kind,
                    name=candidate.name,
                    artifact_id=candidate.artifact_id,
                    root_id=candidate.root_id,
                )
        return artifact.identity

    def _move_to_canonical_path(
        self, artifact: LocalArtifact, identity: ArtifactIdentity
    ) -> None:
        canonical = self.file_store.resolve_path(identity)
        if canonical != artifact.file_path.resolve():
            self.file_store.rename(artifact.file_path, canonical)

    def _push_tasks(self, artifact: LocalArtifact) -> int:
        """Create the tasks of a task list that the server does not have yet.

        Returns:
            Number of tasks created
        """
        milestone = extract_title(artifact.content) or artifact.name
        tasks = parse_tasks(artifact.content)
        known = list(
            self.remote.fetch_tasks(self.project_id, artifact.collection, milestone)
        )

        created_count = 0
        for task in tasks:
            if self.matcher.find_matching_task(task.description, known) is not None:
                continue
            created = self.remote.create_tasks(
                self.project_id, artifact.collection, milestone, [task]
            )
            known.extend(created or [task])
            created_count += len(created) if created else 1

        logger.info(
            "Pushed %d of %d tasks for milestone %r",
            created_count,
            len(tasks),
            milestone,
        )
        return created_count

    # ------------------------------------------------------------------
    # Pull
    # ------------------------------------------------------------------

    def pull(
        self,
        filters: Optional[ArtifactFilters] = None,
        dry_run: bool = False,
        force: bool = False,
    ) -> PullResult:
        """Write server artifacts into the local workspace.

        Args:
            filters: Optional collection/kind/name filters
            dry_run: Only count what would be pulled
            force: Rewrite files whose content is unchanged

        Returns:
            PullResult; per-artifact failures are collected, not raised
        """
        filters = filters or ArtifactFilters()
        result = PullResult(dry_run=dry_run)

        try:
            remote_artifacts = self.remote.fetch_artifacts(self.project_id, filters)
        except Exception as e:
            result.add_error("general", str(e))
            return result

        result.candidates = len(remote_artifacts)
        if dry_run:
            logger.info("[DRY RUN] Would pull %d artifacts", len(remote_artifacts))
            return result

        for artifact in remote_artifacts:
            identity = artifact.identity
            try:
                written = self._pull_artifact(artifact, identity, force)
            except Exception as e:
                result.add_error(str(identity), str(e))
                continue

            if written is None:
                result.unchanged += 1
                continue
            result.pulled += 1
            if written:
                result.updated += 1
            else:
                result.created += 1

        logger.info("Pull complete: %s", result.get_summary())
        return result

    def _pull_artifact(
        self, artifact: ServerArtifact, identity: ArtifactIdentity, force: bool
    ) -> Optional[bool]:
        """Write one server artifact.

        Returns:
            None if skipped as unchanged, else whether a file was replaced
        """
        content = strip_wrapped_quotes(artifact.content)
        key = identity.version_key
        existed = self.file_store.exists(identity)

        if self.enable_versioning:
            latest = self.version_store.get_latest_version(key, identity.collection)
            if latest is not None and artifact.version < latest.version_number:
                raise StaleVersionError(
                    f"Server version {artifact.version} is older than local "
                    f"version {latest.version_number}"
                )
            if (
                existed
                and not force
                and not self.version_store.has_content_changed(
                    key, identity.collection, content
                )
            ):
                logger.debug("Skipped %s (unchanged)", identity)
                return None

        self.file_store.write(identity, content)
        if self.enable_versioning:
            self.version_store.create_version(
                key, identity.collection, content, artifact.version
            )
        return existed

    def sync(
        self,
        filters: Optional[ArtifactFilters] = None,
        dry_run: bool = False,
        force: bool = False,
    ) -> ArtifactSyncResult:
        """Push local changes, then pull server changes."""
        push_result = self.push(filters, dry_run=dry_run, force=force)
        pull_result = self.pull(filters, dry_run=dry_run, force=force)
        return ArtifactSyncResult(push=push_result, pull=pull_result)
