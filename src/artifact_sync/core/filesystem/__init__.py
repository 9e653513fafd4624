"""Filesystem module.

Handles artifact paths, atomic writes, backups and local scanning.
"""

from .artifact_store import ArtifactFileStore, ScanStatistics
from .atomic import atomic_write_text
from .paths import ensure_within_root, resolve_artifacts_root, validate_segment

__all__ = [
    "ArtifactFileStore",
    "ScanStatistics",
    "atomic_write_text",
    "ensure_within_root",
    "resolve_artifacts_root",
    "validate_segment",
]
