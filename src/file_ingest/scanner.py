"""Inbound directory scanner -- the producer side of the pipeline."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from loguru import logger

from .errors import RelocationError
from .fsops import relocate
from .models import DEFAULT_EXTENSION, FileTask, ScanResult

if TYPE_CHECKING:
    from loguru import Logger

    from .channel import FileTaskQueue


class DirectoryScanner:
    """Snapshots the inbound directory and partitions its entries.

    Regular files ending with ``extension`` (literal, case-sensitive) are
    queued; everything else is moved to the error directory. The scanner
    never waits on the processor.
    """

    def __init__(
        self,
        inbound_dir: Path,
        error_dir: Path,
        queue: FileTaskQueue,
        extension: str = DEFAULT_EXTENSION,
        log: Logger | None = None,
    ) -> None:
        self.inbound_dir = inbound_dir
        self.error_dir = error_dir
        self.queue = queue
        self.extension = extension
        self.log = log or logger.bind(stage="scanner")

    def accepts(self, entry: Path) -> bool:
        """True for a regular file (or a link to one) with the accepted suffix."""
        return entry.is_file() and entry.name.endswith(self.extension)

    def scan_once(self) -> ScanResult:
        """List the inbound directory once and enqueue or reject each entry.

        A listing failure is logged and the scan is abandoned for this cycle.
        A failed move to the error directory is logged and skipped; it never
        aborts the rest of the scan.
        """
        log = self.log
        result = ScanResult()
        log.info(f"Checking {self.inbound_dir} for new files")

        try:
            entries = sorted(self.inbound_dir.iterdir())
        except OSError as e:
            log.error(f"Error checking directory {self.inbound_dir}: {e}")
            result.listing_failed = True
            return result

        for entry in entries:
            result.seen += 1
            try:
                accepted = self.accepts(entry)
            except OSError as e:
                log.warning(f"Cannot stat {entry.name}, rejecting: {e}")
                accepted = False

            if accepted:
                self._enqueue(entry, result)
            else:
                self._reject(entry, result)

        log.info(
            f"Scan complete: seen={result.seen} enqueued={result.enqueued} "
            f"rejected={result.rejected} failed_moves={result.relocation_failures}"
        )
        return result

    def _enqueue(self, entry: Path, result: ScanResult) -> None:
        task = FileTask(path=entry.absolute())
        self.log.info(f"New file detected: {task.path}")
        if not self.queue.put(task):
            self.log.warning(f"Queue closed, leaving {entry.name} in inbound")
            return
        result.enqueued += 1
        self.log.info(f"Enqueued {entry.name} (pending={self.queue.size()})")

    def _reject(self, entry: Path, result: ScanResult) -> None:
        result.rejected += 1
        self.log.info(
            f"Rejecting {entry.name}: not a regular {self.extension} file"
        )
        try:
            target = relocate(entry, self.error_dir)
        except RelocationError as e:
            result.relocation_failures += 1
            self.log.error(f"Failed to move {entry.name} to error dir: {e.cause}")
            return
        self.log.info(f"File moved to error dir: {target}")
