"""
Single-flight request coalescing for cache misses.

Concurrent misses for the same cache key share one aggregation: the first
caller runs it, the others block until it finishes and get the same result.
"""
import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional, Tuple

logger = logging.getLogger("cache.coalescer")


@dataclass
class _Flight:
    """An aggregation currently running for one key."""
    done: threading.Event = field(default_factory=threading.Event)
    result: Any = None
    error: Optional[BaseException] = None
    started_at: float = field(default_factory=time.monotonic)
    waiters: int = 0


class RequestCoalescer:
    """
    Deduplicates in-flight loads per key.

    Usage:
        coalescer = RequestCoalescer()
        result, shared = coalescer.run("gateway:match_details:42", load)
    """

    def __init__(self, timeout: float = 30.0):
        """
        Args:
            timeout: Max seconds a waiter blocks on someone else's load
        """
        self._flights: Dict[str, _Flight] = {}
        self._lock = threading.Lock()
        self._timeout = timeout
        self._coalesced = 0

    def run(self, key: str, load: Callable[[], Any]) -> Tuple[Any, bool]:
        """
        Run `load` for `key`, or join the run already in progress.

        Returns:
            (result, shared) where shared is True for callers that joined
            another caller's load

        Raises:
            TimeoutError: If the joined load does not finish in time
            Exception: Whatever `load` raised, re-raised in every caller
        """
        with self._lock:
            flight = self._flights.get(key)
            leader = flight is None
            if leader:
                flight = _Flight()
                self._flights[key] = flight
            else:
                flight.waiters += 1
                self._coalesced += 1

        if leader:
            try:
                flight.result = load()
            except BaseException as e:
                flight.error = e
                raise
            finally:
                with self._lock:
                    self._flights.pop(key, None)
                flight.done.set()
            return flight.result, False

        logger.debug(f"Joined in-flight load for {key} (waiters: {flight.waiters})")
        if not flight.done.wait(timeout=self._timeout):
            logger.error(f"Timeout waiting for in-flight load: {key}")
            raise TimeoutError(f"Load for {key} timed out after {self._timeout}s")
        if flight.error is not None:
            raise flight.error
        return flight.result, True

    @property
    def active(self) -> int:
        """Number of loads currently in flight."""
        with self._lock:
            return len(self._flights)

    def stats(self) -> Dict[str, Any]:
        with self._lock:
            now = time.monotonic()
            return {
                "active": len(self._flights),
                "coalesced": self._coalesced,
                "in_flight": {
                    key: round(now - flight.started_at, 3)
                    for key, flight in self._flights.items()
                },
            }
