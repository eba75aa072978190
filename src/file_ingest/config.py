"""Ingestion configuration via pydantic-settings (.env + env vars)."""

import sys
from pathlib import Path

from loguru import logger
from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from .errors import ConfigError, DirectoryError
from .models import DEFAULT_EXTENSION, DEFAULT_SCAN_INTERVAL


class IngestionConfig(BaseSettings):
    """All ingestion configuration with layered resolution:
    .env file < environment variables < constructor kwargs.

    The three directories have no defaults. A process started without them
    must not run at all, so construction fails instead.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
    )

    # -- Directories --
    ingestion_dir: Path
    completed_dir: Path
    error_dir: Path

    # -- Scanning --
    scan_interval: float = Field(default=DEFAULT_SCAN_INTERVAL, gt=0)
    file_extension: str = DEFAULT_EXTENSION

    # -- Logging --
    log_level: str = "INFO"
    log_dir: Path | None = None

    @classmethod
    def load(cls, **overrides) -> "IngestionConfig":
        """Build the config, turning validation failures into ConfigError.

        Missing directory variables are reported by their env var name so the
        operator knows exactly what to export.
        """
        try:
            return cls(**overrides)
        except ValidationError as e:
            missing = [
                str(err["loc"][0]).upper()
                for err in e.errors()
                if err["type"] == "missing" and err["loc"]
            ]
            if missing:
                raise ConfigError(
                    f"Environment variables not set correctly: "
                    f"missing {', '.join(missing)}"
                ) from e
            raise ConfigError(f"Invalid configuration: {e}") from e

    @property
    def watched_dirs(self) -> tuple[Path, Path, Path]:
        return (self.ingestion_dir, self.completed_dir, self.error_dir)

    def ensure_dirs(self) -> None:
        """Create the inbound, completed, and error directories if absent."""
        for d in self.watched_dirs:
            try:
                d.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                raise DirectoryError(f"Cannot create directory {d}: {e}") from e

    def setup_logging(self) -> None:
        """Configure loguru for the ingestion service."""
        logger.remove()  # Remove default stderr handler

        log_format = (
            "{time:YYYY-MM-DDTHH:mm:ssZ} | {level:<8} | "
            "{extra[stage]:<10} | {message}"
        )

        def _default_extra(record):
            record["extra"].setdefault("stage", "")
            return True

        logger.add(
            sys.stderr,
            format=log_format,
            level=self.log_level.upper(),
            filter=_default_extra,
        )

        if self.log_dir is None:
            return

        try:
            self.log_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise DirectoryError(f"Cannot create log directory {self.log_dir}: {e}") from e
        logger.add(
            str(self.log_dir / "ingest.log"),
            format=log_format,
            level="DEBUG",
            rotation="10 MB",
            retention="30 days",
            filter=_default_extra,
        )
