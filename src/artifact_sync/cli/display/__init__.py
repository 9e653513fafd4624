"""CLI display and formatting utilities."""

from .formatters import (
    display_artifacts,
    display_backups,
    display_comparison,
    display_versions,
)

__all__ = [
    "display_artifacts",
    "display_backups",
    "display_comparison",
    "display_versions",
]
