"""Background sweeper purging expired revocation entries, markers and sessions."""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable, Mapping

logger = logging.getLogger(__name__)

SweepTask = Callable[[], int]


class MaintenanceSweeper:
    """
    Run every registered sweep on a fixed interval in a daemon thread.

    ``run_once`` performs one pass synchronously, so tests (and the CLI) can
    trigger a sweep deterministically. Passes are single-flight: a trigger
    that arrives while a pass is running is skipped, not queued. A failing
    task is logged and does not prevent the others from running.
    """

    def __init__(
        self,
        tasks: Mapping[str, SweepTask],
        *,
        interval_seconds: float = 3600.0,
    ) -> None:
        self._tasks = dict(tasks)
        self._interval = max(1.0, float(interval_seconds))
        self._run_lock = threading.Lock()
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.running:
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run, name="authcore-sweeper", daemon=True)
        self._thread.start()

    def stop(self, timeout: float | None = 5.0) -> None:
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout=timeout)
            self._thread = None

    def run_once(self) -> dict[str, int] | None:
        """
        Run one pass over all tasks.

        :returns: Purged counts per task, or ``None`` if a pass was already running.
        """
        if not self._run_lock.acquire(blocking=False):
            logger.info("Sweep already in progress; skipping trigger")
            return None
        try:
            started = time.monotonic()
            results: dict[str, int] = {}
            for name, task in self._tasks.items():
                try:
                    results[name] = int(task())
                except Exception:
                    logger.exception("Sweep task %s failed", name)
                    results[name] = 0
            logger.info(
                "Sweep finished",
                extra={
                    "count": sum(results.values()),
                    "elapsed_ms": round((time.monotonic() - started) * 1000, 2),
                },
            )
            return results
        finally:
            self._run_lock.release()

    def _run(self) -> None:
        while not self._stop_event.wait(self._interval):
            self.run_once()


__all__ = ["MaintenanceSweeper", "SweepTask"]
