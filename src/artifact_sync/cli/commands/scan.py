"""Scan command for listing local artifacts."""

import logging
from typing import Any, Optional

import click

from ...core.filesystem import ArtifactFileStore
from ...models import ArtifactFilters, ArtifactKind
from ..display import display_artifacts

logger = logging.getLogger(__name__)

KIND_CHOICES = [kind.value for kind in ArtifactKind]


@click.command("scan")
@click.option("--collection", "-c", help="Only this collection")
@click.option("--kind", "-k", type=click.Choice(KIND_CHOICES), help="Only this kind")
@click.option("--name", "-n", help="Only this name or id")
@click.pass_obj
def scan_command(
    config: Any, collection: Optional[str], kind: Optional[str], name: Optional[str]
) -> None:
    """List local artifacts under the artifacts root."""
    store = ArtifactFileStore(config.artifacts_root, max_backups=config.max_backups)
    filters = ArtifactFilters(
        collection=collection,
        kind=ArtifactKind(kind) if kind else None,
        name=name,
    )
    logger.debug("Scanning %s with %s", store.artifacts_root, filters)

    artifacts = store.scan(filters)
    display_artifacts(artifacts, store.last_scan)
