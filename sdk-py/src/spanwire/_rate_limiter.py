"""Token-bucket rate limiter with lazily replenished fractional credit."""

from __future__ import annotations

import threading
import time
from collections.abc import Callable

from spanwire._config import InvalidConfigurationError

Clock = Callable[[], float]


class RateLimiter:
    """Token bucket that admits work while it holds enough credit.

    Credit accrues continuously at ``credits_per_second`` up to
    ``max_balance``, which is also the largest burst the bucket allows.
    Replenishment is computed on each call, so there is no timer thread.
    The bucket starts full.
    """

    def __init__(
        self,
        credits_per_second: float,
        max_balance: float,
        *,
        clock: Clock = time.time,
    ) -> None:
        if credits_per_second < 0:
            raise InvalidConfigurationError(
                f"credits_per_second must not be negative, got {credits_per_second}"
            )
        if max_balance < 0:
            raise InvalidConfigurationError(
                f"max_balance must not be negative, got {max_balance}"
            )
        self._credits_per_second = float(credits_per_second)
        self._max_balance = float(max_balance)
        self._balance = float(max_balance)
        self._clock = clock
        self._last_tick = clock()
        self._lock = threading.Lock()

    def check_credit(self, item_cost: float) -> bool:
        """Spend ``item_cost`` credits if available. Returns whether it did."""
        with self._lock:
            self._replenish()
            if self._balance < item_cost:
                return False
            self._balance -= item_cost
            return True

    def update(self, credits_per_second: float, max_balance: float) -> None:
        """Change the rate and ceiling, keeping the balance proportionally full."""
        if credits_per_second < 0:
            raise InvalidConfigurationError(
                f"credits_per_second must not be negative, got {credits_per_second}"
            )
        if max_balance < 0:
            raise InvalidConfigurationError(
                f"max_balance must not be negative, got {max_balance}"
            )
        with self._lock:
            self._replenish()
            self._credits_per_second = float(credits_per_second)
            if self._max_balance > 0:
                self._balance = max_balance * self._balance / self._max_balance
            else:
                self._balance = float(max_balance)
            self._max_balance = float(max_balance)

    def _replenish(self) -> None:
        # Caller holds the lock.
        now = self._clock()
        # A clock stepped backwards earns no credit and costs none.
        elapsed = max(0.0, now - self._last_tick)
        self._last_tick = now
        self._balance = min(
            self._max_balance,
            self._balance + elapsed * self._credits_per_second,
        )

    @property
    def credits_per_second(self) -> float:
        return self._credits_per_second

    @property
    def max_balance(self) -> float:
        return self._max_balance
