import logging
import signal
import threading
import time

logger = logging.getLogger(__name__)

# ────────────────────────────────
# Time Helpers
# ────────────────────────────────


def now() -> float:
    return time.perf_counter()


def elapsed_micros(start: float) -> int:
    return max(1, int((now() - start) * 1_000_000))


# ────────────────────────────────
# Shared Counters
# ────────────────────────────────


class AtomicCounter:
    """Integer counter whose updates are indivisible across tasks and threads."""

    def __init__(self, value: int = 0) -> None:
        self._value = value
        self._lock = threading.Lock()

    def load(self) -> int:
        with self._lock:
            return self._value

    def increment(self) -> int:
        with self._lock:
            self._value += 1
            return self._value

    def compare_and_swap(self, expected: int, new: int) -> bool:
        with self._lock:
            if self._value != expected:
                return False
            self._value = new
            return True


class StopFlag:
    """Write-once boolean: once set it stays set."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def set(self) -> None:
        self._event.set()

    def is_set(self) -> bool:
        return self._event.is_set()


# ────────────────────────────────
# Signal Handling
# ────────────────────────────────


class GracefulKiller:
    def __init__(self, stop: StopFlag):
        self.stop = stop
        self._previous = {}
        for sig in (signal.SIGINT, signal.SIGTERM):
            self._previous[sig] = signal.signal(sig, self.exit_gracefully)

    def exit_gracefully(self, signum, frame):
        logger.warning("Received shutdown signal. Draining in-flight requests...")
        self.stop.set()

    def restore(self) -> None:
        for sig, handler in self._previous.items():
            signal.signal(sig, handler)
        self._previous.clear()
