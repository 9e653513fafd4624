"""Artifacts root resolution and path-safety checks."""

import logging
from pathlib import Path, PurePath
from typing import Optional, Union

from ...exceptions import PathSafetyError

logger = logging.getLogger(__name__)

ARTIFACTS_DIR_PARTS = (".quikim", "artifacts")
MAX_PARENT_SEARCH_DEPTH = 10


def resolve_artifacts_root(start: Optional[Path] = None) -> Path:
    """Find the artifacts directory for the project containing ``start``.

    Searches ``start`` and up to ten parent directories for an existing
    ``.quikim/artifacts`` directory.

    Args:
        start: Directory to start from (defaults to the current directory)

    Returns:
        The first existing artifacts directory, or ``<start>/.quikim/artifacts``
    """
    start_dir = Path(start or Path.cwd()).resolve()
    current = start_dir

    for _ in range(MAX_PARENT_SEARCH_DEPTH):
        candidate = current.joinpath(*ARTIFACTS_DIR_PARTS)
        if candidate.is_dir():
            return candidate
        if current.parent == current:
            break
        current = current.parent

    return start_dir.joinpath(*ARTIFACTS_DIR_PARTS)


def validate_segment(segment: str, what: str = "path segment") -> str:
    """Ensure a value can be used as a single path component.

    Raises:
        PathSafetyError: If the value is empty, absolute, a traversal
            segment, or contains a path separator
    """
    if not segment or not segment.strip():
        raise PathSafetyError(f"Invalid file path: empty {what}")
    if segment in (".", "..") or "/" in segment or "\\" in segment:
        raise PathSafetyError(
            f"Invalid file path: {what} {segment!r} "
            "resolves outside artifacts directory"
        )
    if PurePath(segment).is_absolute() or PurePath(segment).drive:
        raise PathSafetyError(f"Invalid file path: {what} {segment!r} is absolute")
    return segment


def ensure_within_root(root: Path, candidate: Union[str, Path]) -> Path:
    """Resolve ``candidate`` and verify it is strictly inside ``root``.

    Relative candidates are interpreted relative to ``root``.

    Raises:
        PathSafetyError: If the resolved path is the root itself or lies
            outside it
    """
    root_resolved = Path(root).resolve()
    path = Path(candidate)
    if not path.is_absolute():
        path = root_resolved / path
    resolved = path.resolve()

    if resolved == root_resolved or root_resolved not in resolved.parents:
        raise PathSafetyError(
            f"Invalid file path: {candidate} is outside artifacts directory "
            f"{root_resolved}"
        )
    return resolved
