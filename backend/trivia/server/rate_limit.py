"""Per-connection message throttling."""

import time
from collections.abc import Callable


class TokenBucket:
    """Token bucket: `burst` messages at once, refilled at `rate` per second.

    allow() spends one token and reports whether the message may be handled.
    """

    def __init__(self, rate: float, burst: int, clock: Callable[[], float] = time.monotonic) -> None:
        if rate <= 0 or burst < 1:
            raise ValueError("rate must be positive and burst at least 1")
        self._rate = rate
        self._burst = burst
        self._clock = clock
        self._tokens = float(burst)
        self._updated_at = clock()

    @property
    def tokens(self) -> float:
        return self._tokens

    def allow(self) -> bool:
        now = self._clock()
        self._tokens = min(float(self._burst), self._tokens + (now - self._updated_at) * self._rate)
        self._updated_at = now
        if self._tokens < 1.0:
            return False
        self._tokens -= 1.0
        return True
