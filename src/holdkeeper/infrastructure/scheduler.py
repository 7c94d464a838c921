"""Periodic driver for the Expiration Processor.

One daemon thread runs a tick, then waits ``interval_seconds`` on a stop
event.  Ticks therefore never overlap, and ``stop()`` wakes the wait at
once instead of sleeping out the interval.
"""

from __future__ import annotations

import logging
import threading

from holdkeeper.domain.service.expiration_processor import ExpirationProcessor

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL_SECONDS = 60.0


class ExpirationScheduler:

    def __init__(
        self,
        processor: ExpirationProcessor,
        interval_seconds: float = DEFAULT_INTERVAL_SECONDS,
    ) -> None:
        self._processor = processor
        self._interval = interval_seconds
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None
        self._lock = threading.Lock()

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        with self._lock:
            if self.is_running:
                return
            self._stop.clear()
            self._thread = threading.Thread(
                target=self._run, name="holdkeeper-expiration", daemon=True
            )
            self._thread.start()
        logger.info("Expiration scheduler started", extra={"interval_seconds": self._interval})

    def stop(self, timeout: float | None = None) -> None:
        """Stop ticking; safe to call repeatedly or before ``start()``."""
        with self._lock:
            self._stop.set()
            thread, self._thread = self._thread, None
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)
            logger.info("Expiration scheduler stopped")

    # Lifecycle names used by the hosting service.
    initialize = start
    shutdown = stop

    def _run(self) -> None:
        while not self._stop.is_set():
            try:
                self._processor.run_tick()
            except Exception:
                logger.exception("Expiration tick crashed")
            if self._stop.wait(self._interval):
                break
