"""Exception hierarchy for the file ingestion pipeline."""

from pathlib import Path


class IngestionError(Exception):
    """Base exception for all ingestion errors."""


class ConfigError(IngestionError):
    """Invalid or missing configuration."""


class DirectoryError(IngestionError):
    """A required directory could not be created."""


class HandoffError(IngestionError):
    """The downstream hand-off rejected or failed to accept a file."""


class RelocationError(IngestionError):
    """Moving a file into a sink directory failed."""

    def __init__(self, source: Path, target_dir: Path, cause: OSError) -> None:
        super().__init__(f"Cannot move {source} to {target_dir}: {cause}")
        self.source = source
        self.target_dir = target_dir
        self.cause = cause
