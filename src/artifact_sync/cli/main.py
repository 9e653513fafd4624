"""Command-line interface for the artifact sync engine.

This is the main entry point that delegates to command modules.
"""

from pathlib import Path
from typing import Any, Optional

import click

from ..config import Config, load_env_file
from ..exceptions import ConfigurationError
from ..utils.logging_config import setup_logging
from .commands import backups_command, compare_command, scan_command, versions_command


@click.group()
@click.option(
    "--log-level",
    default=None,
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]),
    help="Set logging level (default: ARTIFACT_SYNC_LOG_LEVEL or INFO)",
)
@click.option("--log-file", type=click.Path(path_type=Path), help="Log to file")
@click.option(
    "--root",
    type=click.Path(file_okay=False, path_type=Path),
    help="Artifacts root (default: nearest .quikim/artifacts)",
)
@click.pass_context
def cli(
    ctx: Any,
    log_level: Optional[str],
    log_file: Optional[Path],
    root: Optional[Path],
) -> None:
    """Artifact sync: inspect locally synced project artifacts."""
    load_env_file()
    try:
        config = Config(artifacts_root=root)
    except ConfigurationError as e:
        raise click.ClickException(str(e)) from e

    setup_logging(log_level=log_level or config.log_level, log_file=log_file)
    ctx.obj = config


cli.add_command(scan_command)
cli.add_command(versions_command)
cli.add_command(backups_command)
cli.add_command(compare_command)


if __name__ == "__main__":
    cli()
