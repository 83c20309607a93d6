"""Sliding-window rate limiting for the public read endpoints."""

from collections import defaultdict, deque
from threading import Lock
from time import monotonic
from typing import Deque, Dict, Optional, Tuple

WINDOW_SECONDS = 60


class RateLimiter:
    """
    Per-client sliding window limiter.

    Each client (IP address) gets `max_requests` per `window_seconds`.
    Clients with an empty window are swept at most once per window.
    Thread-safe.
    """

    def __init__(self, max_requests: int = 60, window_seconds: int = WINDOW_SECONDS):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._hits: Dict[str, Deque[float]] = defaultdict(deque)
        self._lock = Lock()
        self._last_sweep = monotonic()

    def _expire(self, hits: Deque[float], now: float) -> None:
        cutoff = now - self.window_seconds
        while hits and hits[0] <= cutoff:
            hits.popleft()

    def check(self, client_id: str) -> Tuple[bool, Optional[int]]:
        """
        Record a request for `client_id` if it is allowed.

        Returns:
            (allowed, retry_after_seconds); retry_after is None when allowed
        """
        now = monotonic()
        with self._lock:
            if now - self._last_sweep >= self.window_seconds:
                self._sweep(now)
            hits = self._hits[client_id]
            self._expire(hits, now)
            if len(hits) >= self.max_requests:
                retry_after = int(hits[0] + self.window_seconds - now) + 1
                return False, max(1, retry_after)
            hits.append(now)
            return True, None

    def remaining(self, client_id: str) -> int:
        """Requests left for `client_id` in the current window."""
        with self._lock:
            hits = self._hits.get(client_id)
            if not hits:
                return self.max_requests
            self._expire(hits, monotonic())
            return max(0, self.max_requests - len(hits))

    def reset(self, client_id: Optional[str] = None) -> None:
        """Forget one client's history, or everyone's when no client is given."""
        with self._lock:
            if client_id is None:
                self._hits.clear()
            else:
                self._hits.pop(client_id, None)

    def cleanup(self) -> int:
        """
        Remove clients with no requests left in the window.

        Returns the number of clients cleaned up.
        """
        with self._lock:
            return self._sweep(monotonic())

    def _sweep(self, now: float) -> int:
        # Caller holds the lock
        self._last_sweep = now
        idle = []
        for client_id, hits in self._hits.items():
            self._expire(hits, now)
            if not hits:
                idle.append(client_id)
        for client_id in idle:
            del self._hits[client_id]
        return len(idle)

    def __len__(self) -> int:
        """Number of clients currently tracked."""
        with self._lock:
            return len(self._hits)
