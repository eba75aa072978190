"""Fixed-rate, non-overlapping job scheduler."""

import math
import threading
import time
from collections.abc import Callable

from loguru import logger

log = logger.bind(stage="scheduler")


class FixedRateScheduler:
    """Runs ``job`` on its own thread at ``start + n * interval``.

    The first run happens immediately. Runs never overlap: if one overruns
    the interval, the ticks it covered are skipped and the next run waits
    for the following tick boundary. An exception raised by the job is
    logged and the schedule continues.
    """

    def __init__(
        self,
        job: Callable[[], object],
        interval: float,
        name: str = "scheduler",
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if interval <= 0:
            raise ValueError(f"interval must be positive, got {interval}")
        self.job = job
        self.interval = interval
        self.name = name
        self._clock = clock
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self.runs = 0
        self.skipped_ticks = 0

    def start(self) -> None:
        if self._thread is not None:
            raise RuntimeError(f"{self.name} is already running")
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run, name=self.name, daemon=True)
        self._thread.start()
        log.debug(f"{self.name} started (interval={self.interval}s)")

    def stop(self, timeout: float | None = None) -> None:
        """Stop ticking and wait for a run in progress to finish."""
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout=timeout)
            self._thread = None
        log.debug(f"{self.name} stopped after {self.runs} runs")

    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def _run(self) -> None:
        start = self._clock()
        tick = 0
        while not self._stop_event.is_set():
            self._run_job()

            # A tick due exactly now still runs; only ticks already past are missed
            due_tick = math.ceil((self._clock() - start) / self.interval)
            next_tick = max(tick + 1, due_tick)
            missed = next_tick - (tick + 1)
            if missed > 0:
                self.skipped_ticks += missed
                log.warning(
                    f"{self.name} overran its {self.interval}s interval, "
                    f"skipping {missed} tick(s)"
                )
            tick = next_tick

            delay = max(0.0, start + tick * self.interval - self._clock())
            if self._stop_event.wait(delay):
                break

    def _run_job(self) -> None:
        self.runs += 1
        try:
            self.job()
        except Exception as e:
            log.exception(f"{self.name} run {self.runs} failed: {e}")
