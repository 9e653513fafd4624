"""Display formatters and UI helpers for CLI."""

import logging
from pathlib import Path
from typing import Dict, List

from rich.console import Console
from rich.table import Table

from ...core.filesystem import ScanStatistics
from ...core.versioning import VersionMetadata
from ...models import LocalArtifact

console = Console()
logger = logging.getLogger(__name__)

HASH_PREVIEW = 12


def display_artifacts(artifacts: List[LocalArtifact], stats: ScanStatistics) -> None:
    """Display scanned local artifacts.

    Args:
        artifacts: Artifacts returned by a scan
        stats: Statistics of that scan
    """
    if not artifacts:
        console.print("[yellow]No artifacts found[/yellow]")
    else:
        table = Table(show_header=True, header_style="bold magenta")
        table.add_column("Collection", style="cyan")
        table.add_column("Kind", style="blue")
        table.add_column("Name")
        table.add_column("Modified", style="dim")
        table.add_column("Size", justify="right", style="green")

        for artifact in artifacts:
            table.add_row(
                artifact.collection,
                artifact.kind.value,
                artifact.name,
                artifact.last_modified.strftime("%Y-%m-%d %H:%M"),
                str(len(artifact.content)),
            )
        console.print(table)

    console.print(
        f"{stats.files_matched} artifacts in {stats.collections_scanned} "
        f"collections ({stats.files_skipped} files skipped)"
    )
    for error in stats.errors:
        console.print(f"[red]✗ {error}[/red]")


def display_versions(collection: str, versions: Dict[str, VersionMetadata]) -> None:
    """Display the version metadata of a collection."""
    if not versions:
        console.print(f"[yellow]No version metadata for {collection}[/yellow]")
        return

    table = Table(title=f"Versions: {collection}", header_style="bold magenta")
    table.add_column("Artifact", style="cyan")
    table.add_column("Version", justify="right", style="green")
    table.add_column("Hash", style="dim")
    table.add_column("Last sync")

    for artifact_id, version in sorted(versions.items()):
        table.add_row(
            artifact_id,
            str(version.version_number),
            version.content_hash[:HASH_PREVIEW],
            version.last_sync_timestamp,
        )
    console.print(table)


def display_backups(file_path: Path, backups: List[Path]) -> None:
    """Display the backups of one artifact file, oldest first."""
    if not backups:
        console.print(f"[yellow]No backups of {file_path.name}[/yellow]")
        return

    console.print(f"[bold]Backups of {file_path.name}[/bold] (oldest first)")
    for backup in backups:
        console.print(f"  {backup.name}")


def display_comparison(
    first: Path, second: Path, first_hash: str, second_hash: str
) -> None:
    """Display whether two files have equivalent content."""
    table = Table(show_header=False)
    table.add_column("File", style="cyan")
    table.add_column("Fingerprint", style="dim")
    table.add_row(first.name, first_hash[:HASH_PREVIEW])
    table.add_row(second.name, second_hash[:HASH_PREVIEW])
    console.print(table)

    if first_hash == second_hash:
        console.print("[green]✓ Content is equivalent[/green]")
    else:
        console.print("[red]✗ Content differs[/red]")
