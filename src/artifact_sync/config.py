"""Configuration management for the artifact sync engine."""

import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from .core.filesystem import resolve_artifacts_root
from .core.sync import ResolutionStrategy, SyncConfiguration
from .exceptions import ConfigurationError

ENV_PREFIX = "ARTIFACT_SYNC_"

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off", ""}


def load_env_file(env_file: Optional[Path] = None) -> bool:
    """Load variables from a .env file without overriding the environment.

    Args:
        env_file: Explicit file; defaults to the nearest ``.env`` upwards

    Returns:
        True if a file was found and loaded
    """
    if env_file is not None:
        return load_dotenv(env_file, override=False)
    return load_dotenv(override=False)


def _env(name: str, default: str) -> str:
    return os.getenv(ENV_PREFIX + name, default)


def _env_bool(name: str, default: bool) -> bool:
    raw = _env(name, "true" if default else "false").strip().lower()
    if raw in _TRUE_VALUES:
        return True
    if raw in _FALSE_VALUES:
        return False
    raise ConfigurationError(f"{ENV_PREFIX}{name} must be a boolean, got {raw!r}")


def _env_number(name: str, default: str, cast: type) -> float:
    raw = _env(name, default)
    try:
        return cast(raw)
    except ValueError as e:
        raise ConfigurationError(
            f"{ENV_PREFIX}{name} must be a number, got {raw!r}"
        ) from e


class Config:
    """Application configuration."""

    def __init__(self, artifacts_root: Optional[Path] = None) -> None:
        """Initialize configuration from environment variables.

        Args:
            artifacts_root: Overrides ``ARTIFACT_SYNC_ARTIFACTS_ROOT`` and
                the upward search for ``.quikim/artifacts``

        Raises:
            ConfigurationError: If a numeric or boolean variable is malformed
        """
        configured_root = _env("ARTIFACTS_ROOT", "")
        if artifacts_root is not None:
            self.artifacts_root = Path(artifacts_root)
        elif configured_root:
            self.artifacts_root = Path(configured_root).expanduser()
        else:
            self.artifacts_root = resolve_artifacts_root()

        # Sync settings
        self.auto_sync = _env_bool("AUTO_SYNC", False)
        self.sync_interval = _env_number("SYNC_INTERVAL", "30", float)
        self.conflict_resolution = _env(
            "CONFLICT_RESOLUTION", ResolutionStrategy.MANUAL.value
        ).strip().lower()
        self.enable_versioning = _env_bool("ENABLE_VERSIONING", True)
        self.max_sync_retries = int(_env_number("MAX_SYNC_RETRIES", "3", int))

        # File store settings
        self.max_backups = int(_env_number("MAX_BACKUPS", "5", int))
        if self.max_backups < 1:
            raise ConfigurationError(f"{ENV_PREFIX}MAX_BACKUPS must be at least 1")

        self.log_level = _env("LOG_LEVEL", "INFO").upper()

    def sync_configuration(self) -> SyncConfiguration:
        """Build the settings consumed by SyncOrchestrator.

        Values are validated when the orchestrator is initialized.
        """
        return SyncConfiguration(
            enable_auto_sync=self.auto_sync,
            sync_interval=self.sync_interval,
            conflict_resolution=self.conflict_resolution,
            enable_versioning=self.enable_versioning,
            max_sync_retries=self.max_sync_retries,
        )


def get_config(artifacts_root: Optional[Path] = None) -> Config:
    """Get application configuration."""
    return Config(artifacts_root)
