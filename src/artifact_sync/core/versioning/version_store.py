"""Version metadata store.

Keeps, per collection, the last synced version number, content hash and
timestamp of every artifact. One JSON document per collection lives at
``<artifacts_root>/<collection>/.metadata.json`` and is cached in memory:
reads hit disk only on first access per collection, writes update disk and
cache together. A missing or corrupt document means "no prior version".
"""

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from ...exceptions import StaleVersionError
from ..content import compute_content_hash
from ..filesystem.atomic import atomic_write_text
from ..filesystem.paths import ensure_within_root, validate_segment

logger = logging.getLogger(__name__)

METADATA_FILENAME = ".metadata.json"


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class VersionMetadata(BaseModel):
    """Last successfully synced state of one artifact."""

    artifact_id: str
    version_number: int
    content_hash: str
    last_sync_timestamp: str

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CollectionMetadata(BaseModel):
    """On-disk metadata document for one collection."""

    spec_name: str
    artifacts: Dict[str, VersionMetadata] = Field(default_factory=dict)
    last_updated: str = Field(default_factory=_utc_now_iso)

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class VersionMetadataStore:
    """Read-through/write-through store of artifact version metadata.

    The cache is owned by this instance and is never invalidated by writers
    in other processes.
    """

    def __init__(self, artifacts_root: Path):
        """Initialize the store.

        Args:
            artifacts_root: Root directory holding one folder per collection
        """
        self.artifacts_root = Path(artifacts_root)
        self._cache: Dict[str, CollectionMetadata] = {}

    def metadata_path(self, collection: str) -> Path:
        """Location of the metadata document for a collection."""
        validate_segment(collection, "collection")
        return ensure_within_root(
            self.artifacts_root, Path(collection) / METADATA_FILENAME
        )

    def get_latest_version(
        self, artifact_id: str, collection: str
    ) -> Optional[VersionMetadata]:
        """Get the last synced version of an artifact.

        Args:
            artifact_id: Version key of the artifact
            collection: Collection the artifact belongs to

        Returns:
            Stored metadata, or None if the artifact is unknown
        """
        return self._load(collection).artifacts.get(artifact_id)

    def next_version_number(self, artifact_id: str, collection: str) -> int:
        """Version number the next successful write should record."""
        latest = self.get_latest_version(artifact_id, collection)
        return latest.version_number + 1 if latest else 1

    def create_version(
        self,
        artifact_id: str,
        collection: str,
        content: str,
        version_number: int,
    ) -> VersionMetadata:
        """Record that ``content`` was synced as ``version_number``.

        Call only after the write it describes has succeeded.

        Args:
            artifact_id: Version key of the artifact
            collection: Collection the artifact belongs to
            content: Content that was synced
            version_number: Version number of that content

        Returns:
            The stored metadata

        Raises:
            StaleVersionError: If a higher version is already recorded
        """
        latest = self.get_latest_version(artifact_id, collection)
        if latest is not None and version_number < latest.version_number:
            raise StaleVersionError(
                f"Version {version_number} of {collection}/{artifact_id} is older "
                f"than recorded version {latest.version_number}"
            )

        version = VersionMetadata(
            artifact_id=artifact_id,
            version_number=version_number,
            content_hash=compute_content_hash(content),
            last_sync_timestamp=_utc_now_iso(),
        )

        document = self._load(collection).model_copy(deep=True)
        document.artifacts[artifact_id] = version
        self._save(collection, document)

        logger.debug(
            "Recorded version %d of %s/%s", version_number, collection, artifact_id
        )
        return version

    def has_content_changed(
        self, artifact_id: str, collection: str, content: str
    ) -> bool:
        """Check whether content differs from the last synced version.

        Unknown artifacts count as changed.
        """
        latest = self.get_latest_version(artifact_id, collection)
        if latest is None:
            return True
        return compute_content_hash(content) != latest.content_hash

    def delete_artifact_metadata(self, artifact_id: str, collection: str) -> bool:
        """Forget an artifact's version history.

        Returns:
            True if metadata existed and was removed
        """
        document = self._load(collection)
        if artifact_id not in document.artifacts:
            return False

        updated = document.model_copy(deep=True)
        del updated.artifacts[artifact_id]
        self._save(collection, updated)
        return True

    def get_all_artifact_metadata(self, collection: str) -> Dict[str, VersionMetadata]:
        """Get a copy of every artifact's metadata in a collection."""
        return {
            artifact_id: version.model_copy()
            for artifact_id, version in self._load(collection).artifacts.items()
        }

    def clear_cache(self, collection: Optional[str] = None) -> None:
        """Drop cached documents so the next read goes to disk."""
        if collection is None:
            self._cache.clear()
        else:
            self._cache.pop(collection, None)

    def _load(self, collection: str) -> CollectionMetadata:
        """Load a collection's document, through the cache."""
        cached = self._cache.get(collection)
        if cached is not None:
            return cached

        path = self.metadata_path(collection)
        document = CollectionMetadata(spec_name=collection)

        if path.exists():
            try:
                raw = json.loads(path.read_text(encoding="utf-8"))
                document = CollectionMetadata.model_validate(raw)
            except (OSError, ValueError, ValidationError) as e:
                logger.warning(
                    "Ignoring unreadable metadata %s, starting fresh: %s", path, e
                )
                document = CollectionMetadata(spec_name=collection)

        self._cache[collection] = document
        return document

    def _save(self, collection: str, document: CollectionMetadata) -> None:
        """Persist a document, then publish it to the cache."""
        document.last_updated = _utc_now_iso()
        path = self.metadata_path(collection)
        payload = document.model_dump(by_alias=True)
        atomic_write_text(path, json.dumps(payload, indent=2) + "\n")
        self._cache[collection] = document
