"""
Periodic tick scheduling for the frame detector.

The detector never owns a timer; the host hands it a scheduler (or calls
`tick()` itself, e.g. from a GUI timer). ThreadScheduler is the default
background implementation: one daemon thread per scheduled callback.
"""

import logging
import threading
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class TickHandle:
    """Handle to a running periodic callback."""

    def __init__(self, callback: Callable[[], object], interval_s: float, name: str = "core-orient-tick"):
        if interval_s <= 0:
            raise ValueError(f"Tick interval must be positive, got {interval_s}")
        self.interval_s = interval_s
        self._callback = callback
        self._stop = threading.Event()
        self._thread = threading.Thread(target=self._run, name=name, daemon=True)

    def start(self) -> 'TickHandle':
        self._thread.start()
        return self

    def _run(self) -> None:
        while not self._stop.wait(self.interval_s):
            try:
                self._callback()
            except Exception:
                logger.exception("Scheduled tick raised")

    @property
    def active(self) -> bool:
        return self._thread.is_alive() and not self._stop.is_set()

    @property
    def cancelled(self) -> bool:
        return self._stop.is_set()

    def cancel(self, timeout: Optional[float] = 1.0) -> None:
        """Stop the callback; safe to call repeatedly and from the tick itself."""
        self._stop.set()
        if self._thread.is_alive() and threading.current_thread() is not self._thread:
            self._thread.join(timeout)


class ThreadScheduler:
    """Runs callbacks periodically on daemon threads."""

    def schedule(self, callback: Callable[[], object], interval_s: float) -> TickHandle:
        handle = TickHandle(callback, interval_s).start()
        logger.debug("Scheduled tick every %.3fs", interval_s)
        return handle
