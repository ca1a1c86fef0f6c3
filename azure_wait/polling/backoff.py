"""Exponential poll backoff bounded by a minimum and maximum interval.

The interval for attempt *k* is ``min(min_interval * 2**k, max_interval)``.
It depends only on the persisted attempt count, so a process resumed
after a restart computes exactly the interval a live process would have.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta

from azure_wait.core.constants import (
    DEFAULT_MAX_POLL_INTERVAL_SECONDS,
    DEFAULT_MIN_POLL_INTERVAL_SECONDS,
)
from azure_wait.core.exceptions import ConfigError


@dataclass(frozen=True, slots=True)
class BackoffPolicy:
    """Doubling poll interval clamped to ``[min_interval, max_interval]``.

    Attributes:
        min_interval: Wait after the first attempt (attempt 0).
        max_interval: Ceiling every later interval saturates at.
    """

    min_interval: timedelta = timedelta(seconds=DEFAULT_MIN_POLL_INTERVAL_SECONDS)
    max_interval: timedelta = timedelta(seconds=DEFAULT_MAX_POLL_INTERVAL_SECONDS)

    def __post_init__(self) -> None:
        if self.min_interval <= timedelta(0):
            msg = f"BackoffPolicy.min_interval must be > 0, got {self.min_interval}"
            raise ConfigError(msg, code="INVALID_POLL_INTERVAL")
        if self.min_interval > self.max_interval:
            msg = (
                f"BackoffPolicy.min_interval ({self.min_interval}) must be <= "
                f"max_interval ({self.max_interval})"
            )
            raise ConfigError(msg, code="INVALID_POLL_INTERVAL")

    @classmethod
    def of_seconds(cls, min_seconds: float, max_seconds: float) -> BackoffPolicy:
        return cls(timedelta(seconds=min_seconds), timedelta(seconds=max_seconds))

    def next_interval(self, attempt_count: int) -> timedelta:
        """Return the wait that follows attempt number *attempt_count*.

        Raises:
            ValueError: If *attempt_count* is negative.
        """
        if attempt_count < 0:
            msg = f"attempt_count must be >= 0, got {attempt_count}"
            raise ValueError(msg)

        # Saturate in seconds first: timedelta arithmetic overflows long
        # before the doubling does.
        if attempt_count >= _SATURATED_ATTEMPTS or (
            self.min_interval.total_seconds() * 2**attempt_count
            >= self.max_interval.total_seconds()
        ):
            return self.max_interval
        return self.min_interval * (2**attempt_count)


#: Any positive interval doubled this many times exceeds ``timedelta.max``.
_SATURATED_ATTEMPTS = 128
