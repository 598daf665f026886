"""Background cleanup loop for the in-memory stores.

A ``PeriodicSweeper`` calls a cleanup function every ``interval_seconds`` on a
daemon thread. It never starts on its own: the application lifespan calls
``start()`` at startup and ``stop()`` at shutdown, and tests call
``run_once()`` directly.
"""

from __future__ import annotations

import logging
import threading
from typing import Callable

logger = logging.getLogger(__name__)


class PeriodicSweeper:
    """Run a cleanup task on a fixed interval until stopped."""

    def __init__(self, name: str, task: Callable[[], int], *, interval_seconds: float) -> None:
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be > 0")

        self.name = name
        self._task = task
        self._interval = interval_seconds
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self._lock = threading.Lock()

    @property
    def is_running(self) -> bool:
        thread = self._thread
        return thread is not None and thread.is_alive()

    @property
    def interval_seconds(self) -> float:
        return self._interval

    def run_once(self) -> int:
        """Run the cleanup task once in the calling thread.

        Returns:
            Number of entries the task removed (0 if it failed).
        """

        try:
            removed = self._task()
        except Exception:
            logger.exception("sweeper.failed", extra={"sweeper": self.name})
            return 0

        if removed:
            logger.info("sweeper.swept", extra={"sweeper": self.name, "removed": removed})
        return removed

    def _run(self) -> None:
        while not self._stop_event.wait(self._interval):
            self.run_once()

    def start(self) -> None:
        """Start the background thread; no-op if already running."""

        with self._lock:
            if self.is_running:
                return
            self._stop_event.clear()
            self._thread = threading.Thread(
                target=self._run,
                name=f"sweeper-{self.name}",
                daemon=True,
            )
            self._thread.start()

        logger.info(
            "sweeper.started",
            extra={"sweeper": self.name, "interval_s": self._interval},
        )

    def stop(self, timeout: float = 5.0) -> None:
        """Signal the background thread to exit and wait for it.

        If the thread is still inside a sweep when ``timeout`` elapses, it
        keeps its stop signal and ``start()`` stays a no-op until it exits.
        """

        with self._lock:
            thread = self._thread
            if thread is None:
                return
            self._stop_event.set()
            thread.join(timeout)
            if thread.is_alive():
                logger.warning(
                    "sweeper.stop_timeout",
                    extra={"sweeper": self.name, "timeout_s": timeout},
                )
                return
            self._thread = None

        logger.info("sweeper.stopped", extra={"sweeper": self.name})
