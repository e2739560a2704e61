"""Minimum-interval rate limiter for outbound LLM calls."""

import time
from typing import Callable, Optional


class RateLimiter:
    """Spaces successive calls at least `min_interval` seconds apart.

    The first call never waits. Clock and sleep are injectable so tests can
    drive time without sleeping.

    Example:
        >>> limiter = RateLimiter(12.0)
        >>> limiter.wait()  # returns immediately
        >>> limiter.wait()  # sleeps until 12s after the first call
    """

    def __init__(
        self,
        min_interval: float,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        if min_interval < 0:
            raise ValueError(f"min_interval cannot be negative, got: {min_interval}")
        self.min_interval = min_interval
        self._clock = clock
        self._sleep = sleep
        self._last_call: Optional[float] = None

    def wait(self) -> float:
        """Block until the next call is allowed, then record it.

        Returns:
            Seconds slept (0.0 when no wait was needed)
        """
        waited = 0.0
        if self._last_call is not None:
            remaining = self.min_interval - (self._clock() - self._last_call)
            if remaining > 0:
                self._sleep(remaining)
                waited = remaining

        self._last_call = self._clock()
        return waited

    def reset(self) -> None:
        self._last_call = None
