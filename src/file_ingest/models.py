"""Core enums, constants, and data types for the ingestion pipeline.

Enums:
    FileState -- Lifecycle of a single file (discovered, queued, processing,
                 completed, error). Completed and error are terminal.

Dataclasses:
    FileTask        -- In-memory reference to a discovered file.
    ScanResult      -- Summary of one directory scan.
    ProcessingStats -- Running counters kept by the processor.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import StrEnum
from pathlib import Path

DEFAULT_EXTENSION = ".txt"
DEFAULT_SCAN_INTERVAL = 60.0


class FileState(StrEnum):
    DISCOVERED = "discovered"
    QUEUED = "queued"
    PROCESSING = "processing"
    COMPLETED = "completed"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        return self in (FileState.COMPLETED, FileState.ERROR)


@dataclass
class FileTask:
    """A file awaiting or undergoing ingestion.

    Only lives in memory between discovery and the final move; there is no
    task record once the file lands in the completed or error directory.
    """

    path: Path
    discovered_at: datetime = field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
    state: FileState = FileState.DISCOVERED

    @property
    def name(self) -> str:
        return self.path.name


@dataclass
class ScanResult:
    """Result summary from a single inbound directory scan."""

    seen: int = 0
    enqueued: int = 0
    rejected: int = 0
    relocation_failures: int = 0
    listing_failed: bool = False


@dataclass
class ProcessingStats:
    """Counters for files handled by the processor."""

    completed: int = 0
    failed: int = 0
    skipped: int = 0
    relocation_failures: int = 0

    @property
    def total(self) -> int:
        return self.completed + self.failed + self.skipped
