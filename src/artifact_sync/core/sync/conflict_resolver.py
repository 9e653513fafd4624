"""Conflict resolution helpers: line merge and change classification."""

import logging
from typing import List, Optional

from ...models import ArtifactKind
from .state import (
    ChangeCategory,
    ConflictResolutionRecord,
    Resolution,
    ResolutionStrategy,
    SyncConflict,
)

logger = logging.getLogger(__name__)

LOCAL_MARKER = "<<<<<<< LOCAL"
SEPARATOR_MARKER = "======="
REMOTE_MARKER = ">>>>>>> REMOTE"

# Checked in order; the first keyword present decides the category
_CATEGORY_KEYWORDS = [
    (ChangeCategory.BREAKING, ("BREAKING", "breaking")),
    (ChangeCategory.FIX, ("TODO", "FIXME")),
    (ChangeCategory.FEATURE, ("feat", "feature")),
    (ChangeCategory.REFACTOR, ("refactor",)),
    (ChangeCategory.DOCS, ("doc",)),
]


def merge_content(local_content: str, remote_content: str) -> str:
    """Merge two texts line by line at equal indices.

    This is not a three-way merge. Equal lines are kept, lines differing at
    the same index are wrapped in conflict markers, and lines that exist on
    only one side are kept verbatim.

    Args:
        local_content: Local (workspace) text
        remote_content: Remote (server) text

    Returns:
        Merged text, possibly containing conflict markers
    """
    local_lines = local_content.split("\n")
    remote_lines = remote_content.split("\n")
    merged: List[str] = []

    for index in range(max(len(local_lines), len(remote_lines))):
        local_line = local_lines[index] if index < len(local_lines) else None
        remote_line = remote_lines[index] if index < len(remote_lines) else None

        if local_line is None:
            merged.append(remote_line)
        elif remote_line is None or local_line == remote_line:
            merged.append(local_line)
        else:
            merged.extend(
                [LOCAL_MARKER, local_line, SEPARATOR_MARKER, remote_line, REMOTE_MARKER]
            )

    return "\n".join(merged)


def has_conflict_markers(content: str) -> bool:
    """Check whether merged text still contains unresolved markers."""
    return any(
        line in (LOCAL_MARKER, REMOTE_MARKER) for line in content.split("\n")
    )


def infer_change_category(kind: ArtifactKind, content: str) -> ChangeCategory:
    """Classify a change from keywords in the new content.

    Requirement artifacts without a more specific keyword count as docs;
    anything else defaults to feature.
    """
    for category, keywords in _CATEGORY_KEYWORDS:
        if any(keyword in content for keyword in keywords):
            return category
    if kind == ArtifactKind.REQUIREMENT:
        return ChangeCategory.DOCS
    return ChangeCategory.FEATURE


def resolve_automatically(
    conflict: SyncConflict, strategy: ResolutionStrategy
) -> Optional[ConflictResolutionRecord]:
    """Resolve a conflict with the configured strategy.

    ``last_writer_wins`` does not compare timestamps; it always keeps the
    local copy.

    Returns:
        A resolution record, or None when the strategy is manual
    """
    if strategy == ResolutionStrategy.AUTO_MERGE:
        resolution = Resolution.MERGE
        content = merge_content(conflict.local_content, conflict.remote_content)
    elif strategy == ResolutionStrategy.LAST_WRITER_WINS:
        resolution = Resolution.KEEP_IDE
        content = conflict.local_content
    else:
        return None

    logger.debug("Auto-resolved conflict %s with %s", conflict.id, strategy.value)
    return ConflictResolutionRecord(
        conflict_id=conflict.id,
        project_id=conflict.project_id,
        artifact_kind=conflict.artifact_kind,
        artifact_id=conflict.artifact_id,
        resolution=resolution,
        resolved_content=content,
        resolved_by=strategy.value,
    )
