import threading
import time


class MonotonicClock:
    """Epoch milliseconds, strictly increasing across calls in this process.

    When the wall clock has not moved past the last value handed out (same
    millisecond, or a backwards step), the previous value plus one is returned
    instead.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._last = 0

    def now(self) -> int:
        wall = int(time.time() * 1000)
        with self._lock:
            if wall <= self._last:
                wall = self._last + 1
            self._last = wall
            return wall
