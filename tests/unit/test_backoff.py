"""Tests for the exponential poll backoff policy.

Covers:
- Doubling from the minimum interval, clamped to the maximum
- Bounds and monotonicity over a wide range of attempt counts
- Resumability: the interval depends only on the attempt count
- Validation of the interval bounds
"""

from __future__ import annotations

from datetime import timedelta

import pytest

from azure_wait.core.exceptions import ConfigError
from azure_wait.polling.backoff import BackoffPolicy


class TestNextInterval:
    """BackoffPolicy.next_interval behaviour."""

    def test_default_bounds(self) -> None:
        policy = BackoffPolicy()
        assert policy.min_interval == timedelta(seconds=5)
        assert policy.max_interval == timedelta(minutes=5)

    def test_doubling_sequence_clamped(self) -> None:
        """5s/300s: attempts 0..6 → 5, 10, 20, 40, 80, 160, 300."""
        policy = BackoffPolicy.of_seconds(5, 300)
        intervals = [policy.next_interval(k).total_seconds() for k in range(7)]
        assert intervals == [5, 10, 20, 40, 80, 160, 300]

    def test_attempt_zero_is_min_interval(self) -> None:
        policy = BackoffPolicy.of_seconds(3, 60)
        assert policy.next_interval(0) == timedelta(seconds=3)

    def test_always_within_bounds(self) -> None:
        policy = BackoffPolicy.of_seconds(5, 300)
        for k in range(200):
            interval = policy.next_interval(k)
            assert policy.min_interval <= interval <= policy.max_interval

    def test_non_decreasing(self) -> None:
        policy = BackoffPolicy.of_seconds(7, 1000)
        intervals = [policy.next_interval(k) for k in range(50)]
        assert intervals == sorted(intervals)

    def test_saturates_for_huge_attempt_counts(self) -> None:
        policy = BackoffPolicy.of_seconds(5, 300)
        assert policy.next_interval(10_000) == timedelta(seconds=300)

    def test_equal_bounds_is_constant(self) -> None:
        policy = BackoffPolicy.of_seconds(30, 30)
        assert {policy.next_interval(k) for k in range(10)} == {timedelta(seconds=30)}

    def test_same_count_same_interval(self) -> None:
        """A fresh policy instance (e.g. after restart) agrees with a live one."""
        live = BackoffPolicy.of_seconds(5, 300)
        resumed = BackoffPolicy.of_seconds(5, 300)
        for k in (0, 3, 5, 9):
            assert live.next_interval(k) == resumed.next_interval(k)

    def test_negative_attempt_count_raises(self) -> None:
        with pytest.raises(ValueError, match="attempt_count"):
            BackoffPolicy().next_interval(-1)


class TestPolicyValidation:
    """Constructor invariants."""

    def test_min_greater_than_max_raises(self) -> None:
        with pytest.raises(ConfigError, match="min_interval"):
            BackoffPolicy.of_seconds(10, 5)

    def test_zero_min_interval_raises(self) -> None:
        with pytest.raises(ConfigError):
            BackoffPolicy.of_seconds(0, 5)

    def test_is_frozen(self) -> None:
        policy = BackoffPolicy()
        with pytest.raises(AttributeError):
            policy.min_interval = timedelta(seconds=1)  # type: ignore[misc]
