"""Sequential file processor -- the single consumer of the task queue."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from loguru import logger

from .channel import CANCELLED
from .errors import RelocationError
from .fsops import relocate
from .handoff import LoggingHandoff
from .models import FileState, FileTask, ProcessingStats

if TYPE_CHECKING:
    from loguru import Logger

    from .channel import FileTaskQueue
    from .handoff import Handoff

PREVIEW_CHARS = 200


def _preview(content: bytes) -> str:
    text = content[:PREVIEW_CHARS].decode("utf-8", errors="replace")
    if len(content) > PREVIEW_CHARS:
        text += "..."
    return text.replace("\n", "\\n")


class FileProcessor:
    """Turns queued tasks into a terminal filesystem state.

    Every task ends in the completed directory, the error directory, or --
    when the file vanished or could not be moved -- is left alone and only
    logged. Nothing a single file does can stop the loop.
    """

    def __init__(
        self,
        queue: FileTaskQueue,
        completed_dir: Path,
        error_dir: Path,
        handoff: Handoff | None = None,
        log: Logger | None = None,
    ) -> None:
        self.queue = queue
        self.completed_dir = completed_dir
        self.error_dir = error_dir
        self.handoff = handoff or LoggingHandoff()
        self.log = log or logger.bind(stage="processor")
        self.stats = ProcessingStats()

    def process_loop(self) -> None:
        """Consume tasks until the queue is closed.

        The task in flight when the queue closes always runs to completion.
        """
        self.log.info("Processor started, waiting for files")
        while True:
            task = self.queue.get()
            if task is CANCELLED:
                break
            self._process_safe(task)
        self.log.info(
            f"Processor stopped: completed={self.stats.completed} "
            f"failed={self.stats.failed} skipped={self.stats.skipped}"
        )

    def drain(self) -> int:
        """Process whatever is queued right now without blocking.

        Returns the number of tasks handled.
        """
        handled = 0
        while (task := self.queue.get_nowait()) is not None:
            self._process_safe(task)
            handled += 1
        return handled

    def _process_safe(self, task: FileTask) -> FileState:
        try:
            return self.process_task(task)
        except Exception as e:
            self.log.exception(f"Unexpected error processing {task.name}: {e}")
            self.stats.failed += 1
            task.state = FileState.ERROR
            return task.state

    def process_task(self, task: FileTask) -> FileState:
        """Read, hand off, and relocate a single file.

        Returns the terminal state. A file that is gone by the time it is
        read (e.g. a duplicate task for an already moved file) is skipped and
        reported as ERROR without any move.
        """
        log = self.log
        task.state = FileState.PROCESSING
        log.info(f"Processing file: {task.path}")

        try:
            content = task.path.read_bytes()
        except OSError as e:
            log.error(f"Error reading {task.name}: {e}")
            if not task.path.exists() and not task.path.is_symlink():
                log.warning(f"{task.name} no longer exists, skipping")
                self.stats.skipped += 1
                task.state = FileState.ERROR
                return task.state
            return self._fail(task)

        log.debug(f"File content: {_preview(content)}")

        try:
            self.handoff.submit(task.name, content)
        except Exception as e:
            log.error(f"Hand-off failed for {task.name}: {e}")
            return self._fail(task)

        try:
            target = relocate(task.path, self.completed_dir)
        except RelocationError as e:
            log.error(
                f"Failed to move {task.name} to completed dir, "
                f"file remains at {task.path}: {e.cause}"
            )
            self.stats.relocation_failures += 1
            self.stats.failed += 1
            task.state = FileState.ERROR
            return task.state

        self.stats.completed += 1
        task.state = FileState.COMPLETED
        log.info(f"File moved to completed dir: {target}")
        return task.state

    def _fail(self, task: FileTask) -> FileState:
        """Route a failed task's file to the error directory."""
        self.stats.failed += 1
        task.state = FileState.ERROR
        try:
            target = relocate(task.path, self.error_dir)
        except RelocationError as e:
            self.stats.relocation_failures += 1
            self.log.error(
                f"Failed to move {task.name} to error dir, "
                f"file remains at {task.path}: {e.cause}"
            )
            return task.state
        self.log.info(f"File moved to error dir: {target}")
        return task.state
