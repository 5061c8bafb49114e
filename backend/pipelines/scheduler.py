"""Fixed-period trigger for sync runs.

Runs never overlap: the next tick is scheduled ``period_seconds`` after the
previous run returns.
"""

from __future__ import annotations

import threading
from collections.abc import Callable

from loguru import logger


class PeriodicScheduler:
    def __init__(
        self,
        task: Callable[[], object],
        *,
        period_seconds: float,
        initial_delay_seconds: float = 1.0,
        name: str = "customer-sync-timer",
    ) -> None:
        if period_seconds <= 0:
            raise ValueError("period_seconds must be positive")
        self._task = task
        self.period_seconds = period_seconds
        self.initial_delay_seconds = max(0.0, initial_delay_seconds)
        self.name = name
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self.ticks = 0

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.running:
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._loop, name=self.name, daemon=True)
        self._thread.start()
        logger.info(
            "Scheduler {} started (period={}s, initial_delay={}s)",
            self.name,
            self.period_seconds,
            self.initial_delay_seconds,
        )

    def stop(self, timeout: float | None = None) -> None:
        """Stop scheduling; an in-flight run is allowed to finish."""

        self._stop_event.set()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)
        self._thread = None
        logger.info("Scheduler {} stopped after {} ticks", self.name, self.ticks)

    def run_forever(self) -> None:
        """Run the loop in the calling thread until interrupted."""

        logger.info("Scheduler {} running in foreground (period={}s)", self.name, self.period_seconds)
        try:
            self._loop()
        except KeyboardInterrupt:
            logger.info("Scheduler {} interrupted", self.name)
            self._stop_event.set()

    def _loop(self) -> None:
        if self._stop_event.wait(self.initial_delay_seconds):
            return
        while not self._stop_event.is_set():
            self._tick()
            if self._stop_event.wait(self.period_seconds):
                return

    def _tick(self) -> None:
        self.ticks += 1
        try:
            self._task()
        except Exception:  # noqa: BLE001
            logger.exception("Scheduled task {} raised; next tick is unaffected", self.name)
