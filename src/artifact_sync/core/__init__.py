"""Core logic of the artifact synchronization engine.

This package is organized by concern:
- content: Normalization and content fingerprints
- versioning: Per-collection version metadata
- filesystem: Artifact files, backups and path safety
- sync: Match resolution, orchestration and push/pull
"""

__all__: list[str] = []
