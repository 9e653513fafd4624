"""Exception hierarchy for the artifact synchronization engine."""


class ArtifactSyncError(Exception):
    """Base class for all artifact sync errors."""


class ConfigurationError(ArtifactSyncError, ValueError):
    """Sync configuration is invalid (interval, retries, strategy)."""


class PathSafetyError(ArtifactSyncError, ValueError):
    """An artifact path escapes the artifacts root or contains traversal."""


class ArtifactNotFoundError(ArtifactSyncError, FileNotFoundError):
    """A file that an operation depends on does not exist."""


class ConflictNotFoundError(ArtifactSyncError, KeyError):
    """No conflict is registered under the requested id."""

    def __str__(self) -> str:
        """Plain message instead of KeyError's quoted repr."""
        return str(self.args[0]) if self.args else ""


class InvalidResolutionError(ArtifactSyncError, ValueError):
    """A conflict resolution request is malformed."""


class StaleVersionError(ArtifactSyncError):
    """A version number lower than the stored one was recorded."""


class SyncNotInitializedError(ArtifactSyncError, RuntimeError):
    """A sync operation was attempted before initialize()."""
