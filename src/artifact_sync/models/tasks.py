"""Parsing of markdown task lists into Task items."""

import re
from typing import List

from .models import Task, TaskStatus

# - [ ] 1. Description      - [x]* 2.1 Optional description
_TASK_LINE = re.compile(
    r"^\s*[-*]\s+\[(?P<mark>[ xX~\-!])\](?P<optional>\*)?\s+"
    r"(?:(?P<numbering>\d+(?:\.\d+)*)\.?\s+)?(?P<description>.+?)\s*$"
)

_STATUS_MARKERS = {
    " ": TaskStatus.NOT_STARTED,
    "x": TaskStatus.COMPLETED,
    "X": TaskStatus.COMPLETED,
    "-": TaskStatus.IN_PROGRESS,
    "~": TaskStatus.QUEUED,
    "!": TaskStatus.BLOCKED,
}


def parse_tasks(markdown: str) -> List[Task]:
    """Extract checkbox task items from a markdown task list.

    Args:
        markdown: Task list document

    Returns:
        Tasks in document order; lines that are not checkbox items are ignored
    """
    tasks: List[Task] = []
    for line in (markdown or "").splitlines():
        match = _TASK_LINE.match(line)
        if not match:
            continue
        tasks.append(
            Task(
                description=match.group("description"),
                status=_STATUS_MARKERS[match.group("mark")],
                order=len(tasks),
                is_optional=bool(match.group("optional")),
            )
        )
    return tasks
