"""Fixed-interval progress reporting for long MARC runs.

Usage:
    ticker = ProgressTicker(lambda: log_stats(), interval=5.0)
    ticker.start()
    try:
        ...  # stream records
    finally:
        ticker.stop()
"""

import threading
from typing import Callable, Optional

DEFAULT_INTERVAL_SECONDS = 5.0


class ProgressTicker:
    """Calls ``report`` every ``interval`` seconds on a daemon thread.

    The timer runs independently of record throughput. `stop()` wakes the
    thread immediately and joins it, so no timer outlives the run.
    """

    def __init__(self, report: Callable[[], None], interval: float = DEFAULT_INTERVAL_SECONDS):
        if interval <= 0:
            raise ValueError(f"Progress interval must be positive, got {interval}")
        self._report = report
        self._interval = interval
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self.ticks = 0

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.running:
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run, name="reconcile-progress", daemon=True)
        self._thread.start()

    def _run(self) -> None:
        while not self._stop_event.wait(self._interval):
            self.ticks += 1
            self._report()

    def stop(self, timeout: float = 5.0) -> None:
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout=timeout)
            self._thread = None
