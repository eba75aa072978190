"""Ingestion service -- wires the scanner, queue, and processor together."""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING

from loguru import logger

from .channel import FileTaskQueue
from .processor import FileProcessor
from .scanner import DirectoryScanner
from .scheduler import FixedRateScheduler

if TYPE_CHECKING:
    from .config import IngestionConfig
    from .handoff import Handoff
    from .models import ProcessingStats, ScanResult

log = logger.bind(stage="service")


class IngestionService:
    """Owns the two threads of control and their shared channel.

    ``start()`` launches the processor thread and the scan scheduler (first
    scan immediately). ``stop()`` stops the scheduler, closes the queue, and
    waits for the processor to finish the file it is working on.
    """

    def __init__(self, config: IngestionConfig, handoff: Handoff | None = None) -> None:
        self.config = config
        self.queue = FileTaskQueue()
        self.scanner = DirectoryScanner(
            inbound_dir=config.ingestion_dir,
            error_dir=config.error_dir,
            queue=self.queue,
            extension=config.file_extension,
        )
        self.processor = FileProcessor(
            queue=self.queue,
            completed_dir=config.completed_dir,
            error_dir=config.error_dir,
            handoff=handoff,
        )
        self.scheduler = FixedRateScheduler(
            self.scanner.scan_once,
            interval=config.scan_interval,
            name="scanner",
        )
        self._processor_thread: threading.Thread | None = None

    def start(self) -> None:
        """Create the watched directories and start scanning and processing.

        Raises DirectoryError if a directory cannot be created; nothing is
        started in that case.
        """
        if self._processor_thread is not None:
            raise RuntimeError("IngestionService is already running")
        if self.queue.is_closed():
            raise RuntimeError(
                "IngestionService has been stopped; create a new service to restart"
            )

        self.config.ensure_dirs()
        log.info(f"Ingestion dir: {self.config.ingestion_dir}")
        log.info(f"Completed dir: {self.config.completed_dir}")
        log.info(f"Error dir: {self.config.error_dir}")

        self._processor_thread = threading.Thread(
            target=self.processor.process_loop,
            name="processor",
            daemon=True,
        )
        self._processor_thread.start()
        self.scheduler.start()
        log.info(f"Scanning every {self.config.scan_interval:g}s")

    def stop(self, timeout: float | None = None) -> None:
        """Cooperatively shut down both threads."""
        log.info("Shutdown requested")
        self.scheduler.stop(timeout=timeout)
        self.queue.close()
        if self._processor_thread is not None:
            self._processor_thread.join(timeout=timeout)
            if self._processor_thread.is_alive():
                log.warning("Processor still busy after timeout")
            self._processor_thread = None

        pending = self.queue.drain_remaining()
        if pending:
            log.info(
                f"{len(pending)} queued file(s) left in inbound for the next run: "
                + ", ".join(t.name for t in pending)
            )
        log.info("Stopped")

    def is_running(self) -> bool:
        return self._processor_thread is not None and self._processor_thread.is_alive()

    def run_until(self, stop_event: threading.Event) -> None:
        """Run until ``stop_event`` is set, then shut down."""
        self.start()
        try:
            stop_event.wait()
        finally:
            self.stop()

    def run_once(self) -> tuple[ScanResult, ProcessingStats]:
        """Scan once and process everything found, on the calling thread."""
        self.config.ensure_dirs()
        result = self.scanner.scan_once()
        self.processor.drain()
        return result, self.processor.stats
