"""Thread-safe FIFO channel between the scanner and the processor.

Producers never block (the channel is unbounded). Consumers block in
``get()`` until a task arrives or the channel is closed, at which point they
receive the ``CANCELLED`` sentinel instead of a task.
"""

import queue
import threading

from loguru import logger

from .models import FileState, FileTask

log = logger.bind(stage="queue")


class _Cancelled:
    """Sentinel returned by ``FileTaskQueue.get`` after ``close``."""

    def __repr__(self) -> str:
        return "CANCELLED"


CANCELLED = _Cancelled()


class FileTaskQueue:
    """Unbounded FIFO of FileTask with cooperative cancellation."""

    def __init__(self) -> None:
        self._queue: queue.Queue[FileTask | _Cancelled] = queue.Queue()
        self._closed = threading.Event()

    def put(self, task: FileTask) -> bool:
        """Append a task to the tail.

        Returns False only when the channel is already closed; the task is
        not queued in that case.
        """
        if self._closed.is_set():
            log.debug(f"Queue closed, not accepting {task.name}")
            return False
        task.state = FileState.QUEUED
        self._queue.put(task)
        return True

    def get(self) -> FileTask | _Cancelled:
        """Remove and return the head task, blocking until one is available.

        Returns CANCELLED once the channel has been closed. The close marker
        is put back after being consumed so every other blocked consumer
        wakes up as well.
        """
        if self._closed.is_set():
            return CANCELLED
        item = self._queue.get()
        if item is CANCELLED:
            self._queue.put(CANCELLED)
        return item

    def get_nowait(self) -> FileTask | None:
        """Return the head task without blocking, or None if there is none."""
        if self._closed.is_set():
            return None
        try:
            item = self._queue.get_nowait()
        except queue.Empty:
            return None
        if item is CANCELLED:
            self._queue.put(CANCELLED)
            return None
        return item

    def close(self) -> None:
        """Signal cancellation to all current and future consumers."""
        if self._closed.is_set():
            return
        self._closed.set()
        self._queue.put(CANCELLED)
        log.debug("Queue closed")

    def drain_remaining(self) -> list[FileTask]:
        """Remove and return tasks that were still pending at close time."""
        pending: list[FileTask] = []
        while True:
            try:
                item = self._queue.get_nowait()
            except queue.Empty:
                break
            if item is not CANCELLED:
                pending.append(item)
        if self._closed.is_set():
            self._queue.put(CANCELLED)
        return pending

    def is_closed(self) -> bool:
        return self._closed.is_set()

    def is_empty(self) -> bool:
        return self.size() == 0

    def size(self) -> int:
        """Number of pending tasks, not counting the close marker."""
        n = self._queue.qsize()
        if self._closed.is_set() and n > 0:
            n -= 1
        return n
