"""Atomic file replacement."""

import logging
import os
import stat
import tempfile
from pathlib import Path

logger = logging.getLogger(__name__)


def atomic_write_text(path: Path, text: str, encoding: str = "utf-8") -> None:
    """Write text to ``path`` so readers see either the old or the new file.

    Content goes to a sibling temp file which is fsynced and then renamed
    over the target. The rename is atomic on the same filesystem, so a crash
    or a concurrent reader never observes a partially written file.

    Args:
        path: Destination file
        text: Full new content
        encoding: Text encoding
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(
        prefix=f".{path.name}.", suffix=".tmp", dir=str(path.parent)
    )
    tmp_path = Path(tmp_name)

    try:
        with os.fdopen(fd, "w", encoding=encoding, newline="") as handle:
            handle.write(text)
            handle.flush()
            os.fsync(handle.fileno())
        os.chmod(tmp_path, _target_mode(path))
        os.replace(tmp_path, path)
    except BaseException:
        _discard_temp(tmp_path)
        raise


def _target_mode(path: Path) -> int:
    """Mode for the replacement file.

    mkstemp creates files as 0600; keep the existing file's mode, or apply
    the process umask to 0666 for a new file.
    """
    try:
        return stat.S_IMODE(path.stat().st_mode)
    except FileNotFoundError:
        umask = os.umask(0)
        os.umask(umask)
        return 0o666 & ~umask


def _discard_temp(tmp_path: Path) -> None:
    """Remove a leftover temp file; failures are only logged."""
    try:
        tmp_path.unlink(missing_ok=True)
    except OSError as e:
        logger.warning("Failed to clean up temp file %s: %s", tmp_path, e)
