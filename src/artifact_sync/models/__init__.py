"""Models for the artifact synchronization engine."""

from .models import (
    VERSIONED_KINDS,
    ArtifactContent,
    ArtifactFilters,
    ArtifactIdentity,
    ArtifactKind,
    LocalArtifact,
    MarkdownContent,
    ServerArtifact,
    Task,
    TaskStatus,
    WireframeContent,
    content_for,
)
from .tasks import parse_tasks

__all__ = [
    "ArtifactContent",
    "ArtifactFilters",
    "ArtifactIdentity",
    "ArtifactKind",
    "LocalArtifact",
    "MarkdownContent",
    "ServerArtifact",
    "Task",
    "TaskStatus",
    "VERSIONED_KINDS",
    "WireframeContent",
    "content_for",
    "parse_tasks",
]
