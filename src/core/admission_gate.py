"""
Admission Gate - counting limiter for concurrent probe/extraction work.

Waiters are admitted strictly in arrival order: release() hands the freed
slot directly to the longest-waiting caller instead of letting threads race
for it. There is no timeout; a caller whose slot is never released blocks
indefinitely.
"""
from collections import deque
import threading

from config import PROBE_MAX_CONCURRENT


class AdmissionGate:
    """FIFO counting semaphore."""

    def __init__(self, max_concurrent: int = PROBE_MAX_CONCURRENT):
        if max_concurrent < 1:
            raise ValueError("max_concurrent must be at least 1")
        self._max_concurrent = max_concurrent
        self._active = 0
        self._waiters: deque[threading.Event] = deque()
        self._lock = threading.Lock()

    @property
    def max_concurrent(self) -> int:
        return self._max_concurrent

    @property
    def active(self) -> int:
        with self._lock:
            return self._active

    @property
    def waiting(self) -> int:
        with self._lock:
            return len(self._waiters)

    def acquire(self) -> None:
        """Block until a slot is granted."""
        with self._lock:
            if self._active < self._max_concurrent and not self._waiters:
                self._active += 1
                return
            ticket = threading.Event()
            self._waiters.append(ticket)
        # The releasing thread has already counted this slot as ours.
        ticket.wait()

    def release(self) -> None:
        """Return a slot, waking the oldest waiter if any."""
        with self._lock:
            if self._active <= 0:
                raise RuntimeError("release() called without a matching acquire()")
            if self._waiters:
                self._waiters.popleft().set()
            else:
                self._active -= 1

    def __enter__(self):
        self.acquire()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.release()
        return False


# Process-wide gate shared by every probe caller
_probe_gate: AdmissionGate | None = None
_probe_gate_lock = threading.Lock()


def get_probe_gate() -> AdmissionGate:
    """Get the shared probe gate, sized from the runtime config on first use."""
    global _probe_gate
    with _probe_gate_lock:
        if _probe_gate is None:
            from runtime_config import get_config
            _probe_gate = AdmissionGate(get_config().probe_max_concurrent)
        return _probe_gate
