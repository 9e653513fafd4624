"""Duplicate detection between local artifacts and remote records.

A local artifact is matched against remote candidates in two phases:
metadata (collection, kind, name) first, then normalized content hash.
Task items carry no structural identity and match on description only.
"""

import logging
from dataclasses import dataclass
from dataclasses import field as dataclass_field
from typing import Dict, List, Optional, Sequence, Union

from ...models import ArtifactIdentity, ServerArtifact, Task
from ..content import compute_content_hash, normalize_for_comparison

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExactMatch:
    """Same identity and equal content: nothing needs to be written."""

    artifact: ServerArtifact

    is_exact = True


@dataclass(frozen=True)
class UpdateTarget:
    """Same identity, different content: the record to version forward."""

    artifact: ServerArtifact

    is_exact = False


ArtifactMatch = Union[ExactMatch, UpdateTarget]


@dataclass
class LocalCandidate:
    """A local artifact to be matched: identity plus content."""

    identity: ArtifactIdentity
    content: str


@dataclass
class MatchSummary:
    """Result of matching many local items against one remote set."""

    matches: Dict[int, ArtifactMatch] = dataclass_field(default_factory=dict)
    items_checked: int = 0

    @property
    def exact_count(self) -> int:
        """Number of items already in sync."""
        return sum(1 for m in self.matches.values() if m.is_exact)

    @property
    def update_count(self) -> int:
        """Number of items that update an existing record."""
        return sum(1 for m in self.matches.values() if not m.is_exact)

    @property
    def new_count(self) -> int:
        """Number of items with no remote counterpart."""
        return self.items_checked - len(self.matches)

    def get_summary(self) -> Dict[str, int]:
        """Get summary statistics."""
        return {
            "items_checked": self.items_checked,
            "exact": self.exact_count,
            "update": self.update_count,
            "new": self.new_count,
        }


class ArtifactMatcher:
    """Decides whether a local artifact is new, a duplicate, or an update."""

    def find_match(
        self,
        identity: ArtifactIdentity,
        content: str,
        candidates: Sequence[ServerArtifact],
    ) -> Optional[ArtifactMatch]:
        """Match one local artifact against remote candidates.

        Args:
            identity: Collection, kind and name of the local artifact
            content: Local content
            candidates: Remote artifacts to search

        Returns:
            An exact match if a same-identity record has equal content, the
            highest-version same-identity record as update target if none
            does, or None if the artifact is new
        """
        metadata_matches = [
            candidate
            for candidate in candidates
            if candidate.collection == identity.collection
            and candidate.kind == identity.kind
            and candidate.name == identity.name
        ]
        if not metadata_matches:
            logger.debug("No metadata match for %s", identity)
            return None

        local_hash = compute_content_hash(content)
        for candidate in metadata_matches:
            remote_hash = candidate.content_hash or compute_content_hash(
                candidate.content
            )
            if remote_hash == local_hash:
                logger.debug(
                    "Exact duplicate of %s (id: %s)", identity, candidate.artifact_id
                )
                return ExactMatch(candidate)

        latest = max(metadata_matches, key=lambda candidate: candidate.version)
        logger.debug(
            "Content differs for %s, updating id %s (v%d)",
            identity,
            latest.artifact_id,
            latest.version,
        )
        return UpdateTarget(latest)

    def find_matches(
        self,
        local_items: Sequence[LocalCandidate],
        candidates: Sequence[ServerArtifact],
    ) -> MatchSummary:
        """Match every local item independently against the same remote set.

        Returns:
            MatchSummary keyed by the index of each matched local item
        """
        summary = MatchSummary()
        for index, item in enumerate(local_items):
            summary.items_checked += 1
            match = self.find_match(item.identity, item.content, candidates)
            if match is not None:
                summary.matches[index] = match
        return summary

    def find_matching_task(
        self, description: str, existing_tasks: Sequence[Task]
    ) -> Optional[Task]:
        """Find an existing task whose normalized description is equal."""
        if not description or not existing_tasks:
            return None

        normalized = normalize_for_comparison(description)
        if not normalized:
            return None

        for task in existing_tasks:
            if normalize_for_comparison(task.description) == normalized:
                return task
        return None

    def find_matching_tasks(
        self, descriptions: Sequence[str], existing_tasks: Sequence[Task]
    ) -> Dict[int, Task]:
        """Batch form of find_matching_task, keyed by description index."""
        matches: Dict[int, Task] = {}
        for index, description in enumerate(descriptions):
            task = self.find_matching_task(description, existing_tasks)
            if task is not None:
                matches[index] = task
        return matches

    def unmatched_tasks(
        self, tasks: Sequence[Task], existing_tasks: Sequence[Task]
    ) -> List[Task]:
        """Tasks with no equivalent among the existing ones."""
        matched = self.find_matching_tasks(
            [task.description for task in tasks], existing_tasks
        )
        return [task for index, task in enumerate(tasks) if index not in matched]
