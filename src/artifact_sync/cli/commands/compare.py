"""Compare command for checking content equivalence of two files."""

import logging
from pathlib import Path

import click

from ...core.content import compute_content_hash
from ..display import display_comparison

logger = logging.getLogger(__name__)


@click.command("compare")
@click.argument("file_a", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("file_b", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.pass_context
def compare_command(ctx: click.Context, file_a: Path, file_b: Path) -> None:
    """Check whether FILE_A and FILE_B differ only cosmetically.

    Markup, whitespace and case are ignored. Exits with status 1 when the
    contents differ.
    """
    first_hash = compute_content_hash(file_a.read_text(encoding="utf-8"))
    second_hash = compute_content_hash(file_b.read_text(encoding="utf-8"))
    logger.debug("Fingerprints: %s=%s %s=%s", file_a, first_hash, file_b, second_hash)

    display_comparison(file_a, file_b, first_hash, second_hash)
    if first_hash != second_hash:
        ctx.exit(1)
