"""Artifact file store.

Maps artifact identities to ``<root>/<collection>/<kind>_<nameOrId>.md`` and
performs every mutating filesystem operation: atomic writes, timestamped
backups with rotation, safe renames and idempotent deletes.
"""

import logging
import re
import shutil
from dataclasses import dataclass
from dataclasses import field as dataclass_field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

from ...exceptions import ArtifactNotFoundError
from ...models import (
    ArtifactFilters,
    ArtifactIdentity,
    ArtifactKind,
    LocalArtifact,
    MarkdownContent,
    WireframeContent,
    content_for,
)
from .atomic import atomic_write_text
from .paths import ensure_within_root, validate_segment

logger = logging.getLogger(__name__)

ARTIFACT_EXTENSION = ".md"
BACKUP_DIR_NAME = ".backups"
BACKUP_SUFFIX = ".bak"
DEFAULT_MAX_BACKUPS = 5

# Longest prefix first so "flow_diagram_x" is never read as "flow" + "diagram_x"
_KIND_PREFIXES: List[Tuple[str, ArtifactKind]] = sorted(
    [(kind.value, kind) for kind in ArtifactKind]
    + [("flow", ArtifactKind.FLOW_DIAGRAM)],
    key=lambda item: len(item[0]),
    reverse=True,
)

_UNSAFE_FILENAME_CHARS = re.compile(r'[:*?"<>|\s]')
_BACKUP_STAMP = re.compile(r"^(\d{4}-\d{2}-\d{2}T\d{2}-\d{2}-\d{2}-\d{6})(?:-(\d+))?$")

ContentLike = Union[str, MarkdownContent, WireframeContent]


@dataclass
class ScanStatistics:
    """Statistics from an artifacts directory scan."""

    collections_scanned: int = 0
    files_found: int = 0
    files_matched: int = 0
    files_skipped: int = 0
    errors: List[str] = dataclass_field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Convert statistics to dictionary format."""
        return {
            "collections_scanned": self.collections_scanned,
            "files_found": self.files_found,
            "files_matched": self.files_matched,
            "files_skipped": self.files_skipped,
            "error_count": len(self.errors),
            "errors": self.errors[:10],
        }


class ArtifactFileStore:
    """Filesystem persistence for artifacts under one artifacts root."""

    def __init__(self, artifacts_root: Path, max_backups: int = DEFAULT_MAX_BACKUPS):
        """Initialize the file store.

        Args:
            artifacts_root: Per-project artifacts directory
            max_backups: Backups retained per artifact filename
        """
        self.artifacts_root = Path(artifacts_root).resolve()
        self.max_backups = max_backups
        self.last_scan = ScanStatistics()

    # ------------------------------------------------------------------
    # Naming
    # ------------------------------------------------------------------

    @staticmethod
    def generate_filename(kind: Union[ArtifactKind, str], name_or_id: str) -> str:
        """Build ``<kind>_<nameOrId>.md``.

        Characters that are illegal in filenames on common platforms become
        underscores; separators and traversal segments are rejected.

        Raises:
            PathSafetyError: If the name contains a path separator or is
                a traversal segment
            ValueError: If kind or name is missing
        """
        kind_value = kind.value if isinstance(kind, ArtifactKind) else kind
        if not kind_value or not name_or_id:
            raise ValueError("kind and name are required to build a filename")

        validate_segment(name_or_id, "artifact name")
        safe_name = _UNSAFE_FILENAME_CHARS.sub("_", name_or_id)
        return f"{kind_value}_{safe_name}{ARTIFACT_EXTENSION}"

    @staticmethod
    def parse_filename(filename: str) -> Optional[Tuple[ArtifactKind, str]]:
        """Split ``<kind>_<nameOrId>.md`` back into kind and name-or-id.

        Returns:
            (kind, name_or_id), or None if the name is not an artifact file
        """
        if not filename.endswith(ARTIFACT_EXTENSION):
            return None
        stem = filename[: -len(ARTIFACT_EXTENSION)]

        for prefix, kind in _KIND_PREFIXES:
            if stem.startswith(prefix + "_") and len(stem) > len(prefix) + 1:
                return kind, stem[len(prefix) + 1 :]
        return None

    def relative_path(self, identity: ArtifactIdentity) -> Path:
        """Canonical path of an artifact relative to the artifacts root."""
        validate_segment(identity.collection, "collection")
        return Path(identity.collection) / self.generate_filename(
            identity.kind, identity.file_key
        )

    def resolve_path(self, identity: ArtifactIdentity) -> Path:
        """Absolute canonical path, verified to lie inside the artifacts root.

        Raises:
            PathSafetyError: If the path would escape the root
        """
        return ensure_within_root(self.artifacts_root, self.relative_path(identity))

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def exists(self, identity: ArtifactIdentity) -> bool:
        """Check whether the artifact file exists."""
        return self.resolve_path(identity).is_file()

    def read(self, identity: ArtifactIdentity) -> Optional[str]:
        """Read an artifact's text, or None if it does not exist."""
        path = self.resolve_path(identity)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None

    def read_content(
        self, identity: ArtifactIdentity
    ) -> Optional[Union[MarkdownContent, WireframeContent]]:
        """Read an artifact as its typed content variant."""
        text = self.read(identity)
        if text is None:
            return None
        return content_for(identity.kind, text)

    def scan(self, filters: Optional[ArtifactFilters] = None) -> List[LocalArtifact]:
        """Enumerate local artifacts matching the filters.

        Args:
            filters: Optional collection/kind/name filters

        Returns:
            Matching artifacts with content, path and modification time
        """
        filters = filters or ArtifactFilters()
        stats = ScanStatistics()
        self.last_scan = stats
        artifacts: List[LocalArtifact] = []

        if not self.artifacts_root.is_dir():
            logger.debug("Artifacts root %s does not exist", self.artifacts_root)
            return artifacts

        for collection_dir in sorted(self.artifacts_root.iterdir()):
            if not collection_dir.is_dir() or collection_dir.name.startswith("."):
                continue
            if filters.collection and collection_dir.name != filters.collection:
                continue

            stats.collections_scanned += 1
            for file_path in sorted(collection_dir.glob(f"*{ARTIFACT_EXTENSION}")):
                if not file_path.is_file():
                    continue
                stats.files_found += 1

                parsed = self.parse_filename(file_path.name)
                if parsed is None:
                    stats.files_skipped += 1
                    continue
                kind, name = parsed
                if not filters.matches(collection_dir.name, kind, name):
                    continue

                try:
                    content = file_path.read_text(encoding="utf-8")
                    modified = datetime.fromtimestamp(file_path.stat().st_mtime)
                except OSError as e:
                    stats.errors.append(f"{file_path}: {e}")
                    logger.warning("Failed to read artifact %s: %s", file_path, e)
                    continue

                artifacts.append(
                    LocalArtifact(
                        collection=collection_dir.name,
                        kind=kind,
                        name=name,
                        content=content,
                        file_path=file_path,
                        last_modified=modified,
                    )
                )
                stats.files_matched += 1

        logger.debug("Scan complete: %s", stats.to_dict())
        return artifacts

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def write(self, identity: ArtifactIdentity, content: ContentLike) -> Path:
        """Atomically write an artifact, backing up any previous version.

        The path is validated before anything on disk is touched.

        Args:
            identity: Artifact to write
            content: Raw text or a typed content variant

        Returns:
            Path of the written file

        Raises:
            PathSafetyError: If the identity resolves outside the root
        """
        path = self.resolve_path(identity)
        text = self._render(content)

        if path.exists():
            self.backup_file(path)

        atomic_write_text(path, text)
        logger.info("Wrote artifact %s -> %s", identity, path)
        return path

    def rename(self, old_path: Union[str, Path], new_path: Union[str, Path]) -> Path:
        """Move an artifact file, e.g. when it receives a server-issued id.

        Relative paths are taken relative to the artifacts root. An existing
        destination file is backed up before being replaced.

        Returns:
            The resolved destination path

        Raises:
            PathSafetyError: If either path lies outside the artifacts root
            ArtifactNotFoundError: If the source file does not exist
        """
        source = ensure_within_root(self.artifacts_root, old_path)
        target = ensure_within_root(self.artifacts_root, new_path)

        if not source.is_file():
            raise ArtifactNotFoundError(f"Source file does not exist: {source}")
        if source == target:
            return target

        if target.exists():
            self.backup_file(target)

        target.parent.mkdir(parents=True, exist_ok=True)
        source.replace(target)
        logger.info("Renamed artifact %s -> %s", source, target)
        return target

    def delete(self, identity: ArtifactIdentity) -> bool:
        """Delete an artifact file; a missing file is not an error.

        Returns:
            True if a file was removed
        """
        path = self.resolve_path(identity)
        try:
            path.unlink()
        except FileNotFoundError:
            logger.debug("Artifact %s already absent", identity)
            return False
        logger.info("Deleted artifact %s", identity)
        return True

    # ------------------------------------------------------------------
    # Backups
    # ------------------------------------------------------------------

    def backup_file(self, file_path: Path) -> Optional[Path]:
        """Copy a file into its sibling ``.backups`` folder.

        Backups are best effort: failures are logged and never raised.

        Returns:
            Path to the backup, or None if it could not be created
        """
        try:
            backup_dir = file_path.parent / BACKUP_DIR_NAME
            backup_dir.mkdir(parents=True, exist_ok=True)

            timestamp = datetime.now(timezone.utc).strftime("%Y-%m-%dT%H-%M-%S-%f")
            backup_path = backup_dir / f"{file_path.name}.{timestamp}{BACKUP_SUFFIX}"
            counter = 1
            while backup_path.exists():
                backup_name = f"{file_path.name}.{timestamp}-{counter}{BACKUP_SUFFIX}"
                backup_path = backup_dir / backup_name
                counter += 1

            shutil.copy2(file_path, backup_path)
            logger.debug("Created backup: %s", backup_path)
        except OSError as e:
            logger.warning("Failed to create backup of %s: %s", file_path, e)
            return None

        try:
            self._rotate_backups(backup_dir, file_path.name)
        except OSError as e:
            logger.warning("Failed to rotate backups of %s: %s", file_path, e)
        return backup_path

    def list_backups(self, file_path: Path) -> List[Path]:
        """Backups of a file, oldest first."""
        backup_dir = file_path.parent / BACKUP_DIR_NAME
        if not backup_dir.is_dir():
            return []

        prefix = f"{file_path.name}."
        backups = [
            p
            for p in backup_dir.iterdir()
            if p.is_file()
            and p.name.startswith(prefix)
            and p.name.endswith(BACKUP_SUFFIX)
        ]
        return sorted(backups, key=lambda p: self._backup_sort_key(p, prefix))

    def _rotate_backups(self, backup_dir: Path, filename: str) -> None:
        """Delete the oldest backups beyond ``max_backups``."""
        backups = self.list_backups(backup_dir.parent / filename)
        excess = len(backups) - self.max_backups
        for old_backup in backups[: max(excess, 0)]:
            try:
                old_backup.unlink()
                logger.debug("Removed old backup: %s", old_backup)
            except OSError as e:
                logger.warning("Failed to remove old backup %s: %s", old_backup, e)

    @staticmethod
    def _backup_sort_key(path: Path, prefix: str) -> Tuple[str, int, float]:
        # Timestamp embedded in the name, ties broken by modification time
        stamp = path.name[len(prefix) : -len(BACKUP_SUFFIX)]
        match = _BACKUP_STAMP.match(stamp)
        try:
            mtime = path.stat().st_mtime
        except OSError:
            mtime = 0.0
        if not match:
            return "", 0, mtime
        return match.group(1), int(match.group(2) or 0), mtime

    @staticmethod
    def _render(content: ContentLike) -> str:
        if isinstance(content, str):
            return content
        if isinstance(content, (MarkdownContent, WireframeContent)):
            return content.render()
        raise TypeError(f"Unsupported artifact content: {type(content).__name__}")

