"""
Token-bucket rate limiter.

The bucket holds up to ``burst`` tokens and refills at ``rate`` tokens per
second. ``acquire()`` blocks until a token is available and then consumes it.
It is shared by all batch workers so the courtesy limit toward the data source
holds no matter how many fetches run at once.

The clock and sleep functions are injectable for tests.
"""

from __future__ import annotations

import threading
import time
from typing import Callable


class TokenBucket:
    """Thread-safe token bucket.

    Args:
        rate: Tokens added per second (must be > 0).
        burst: Bucket capacity; also the number of tokens available at start.
        clock: Monotonic clock returning seconds.
        sleep: Function used to wait.
    """

    def __init__(
        self,
        rate: float,
        burst: int = 1,
        *,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if rate <= 0:
            raise ValueError(f"rate must be positive, got {rate}")
        if burst < 1:
            raise ValueError(f"burst must be >= 1, got {burst}")
        self._rate = float(rate)
        self._capacity = float(burst)
        self._tokens = float(burst)
        self._clock = clock
        self._sleep = sleep
        self._updated = clock()
        self._lock = threading.Lock()

    @property
    def rate(self) -> float:
        return self._rate

    @property
    def capacity(self) -> int:
        return int(self._capacity)

    def _refill(self) -> None:
        now = self._clock()
        elapsed = max(0.0, now - self._updated)
        self._tokens = min(self._capacity, self._tokens + elapsed * self._rate)
        self._updated = now

    def acquire(self) -> float:
        """Block until a token is available; return the total time waited."""
        waited = 0.0
        while True:
            with self._lock:
                self._refill()
                if self._tokens >= 1.0:
                    self._tokens -= 1.0
                    return waited
                delay = (1.0 - self._tokens) / self._rate
            # sleep outside the lock so other workers can refill/check
            self._sleep(delay)
            waited += delay


__all__ = ["TokenBucket"]
