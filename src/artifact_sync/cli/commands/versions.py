"""Commands for inspecting version metadata and backups."""

import logging
from typing import Any

import click

from ...core.filesystem import ArtifactFileStore
from ...core.versioning import VersionMetadataStore
from ...exceptions import ArtifactSyncError
from ...models import ArtifactIdentity, ArtifactKind
from ..display import display_backups, display_versions
from .scan import KIND_CHOICES

logger = logging.getLogger(__name__)


@click.command("versions")
@click.argument("collection")
@click.pass_obj
def versions_command(config: Any, collection: str) -> None:
    """Show the recorded versions of every artifact in COLLECTION."""
    store = VersionMetadataStore(config.artifacts_root)
    try:
        versions = store.get_all_artifact_metadata(collection)
    except ArtifactSyncError as e:
        raise click.ClickException(str(e)) from e
    display_versions(collection, versions)


@click.command("backups")
@click.argument("collection")
@click.argument("kind", type=click.Choice(KIND_CHOICES))
@click.argument("name")
@click.pass_obj
def backups_command(config: Any, collection: str, kind: str, name: str) -> None:
    """List backups of one artifact file, oldest first.

    NAME is the name or id used in the artifact's filename.
    """
    store = ArtifactFileStore(config.artifacts_root, max_backups=config.max_backups)
    try:
        identity = ArtifactIdentity(
            collection=collection, kind=ArtifactKind(kind), name=name
        )
        file_path = store.resolve_path(identity)
    except (ArtifactSyncError, ValueError) as e:
        raise click.ClickException(str(e)) from e

    display_backups(file_path, store.list_backups(file_path))
