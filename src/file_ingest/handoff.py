"""Downstream hand-off -- where file content leaves the pipeline.

Real integrations (an orchestration API, a message broker) implement the
``Handoff`` protocol. The processor only relies on ``submit`` returning
normally on success and raising on failure.
"""

from typing import Protocol

from loguru import logger

log = logger.bind(stage="handoff")


class Handoff(Protocol):
    def submit(self, filename: str, content: bytes) -> None:
        """Hand the file content downstream. Raises HandoffError on failure."""
        ...


class LoggingHandoff:
    """Stand-in hand-off that logs the submission and always succeeds."""

    def submit(self, filename: str, content: bytes) -> None:
        log.info(
            f"File content placed on processing queue for orchestration: "
            f"{filename} ({len(content):,} bytes)"
        )
