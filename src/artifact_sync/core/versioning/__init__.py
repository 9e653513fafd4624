"""Version metadata tracking."""

from .version_store import CollectionMetadata, VersionMetadata, VersionMetadataStore

__all__ = [
    "CollectionMetadata",
    "VersionMetadata",
    "VersionMetadataStore",
]
