"""CLI command modules."""

from .compare import compare_command
from .scan import scan_command
from .versions import backups_command, versions_command

__all__ = [
    "backups_command",
    "compare_command",
    "scan_command",
    "versions_command",
]
