"""Polling retry executor — run exactly one counted poll attempt.

Each engine tick runs at most one attempt.  The executor reads the
operation's persisted record, runs the check, records the attempt
durably, and only then classifies the outcome:

- ``Found``                    -> ``Success(value)``
- ``NotFound``                 -> ``RetryAfter(interval)``
- retryable exception          -> ``RetryAfter(interval, error=exc)``
- non-retryable exception      -> ``Fatal(exc)``
- anything else from the check -> ``Fatal(ContractError)``

The interval is ``backoff.next_interval(count_before_this_attempt)``, so
a resumed process continues the backoff where the previous one left it.
Recording happens before classification so the counter reflects every
attempt even when the check throws; if recording fails the
``PersistenceError`` propagates and the attempt never counted.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Generic, TypeVar

from azure_wait.core.exceptions import ContractError, WaitTimeoutError
from azure_wait.models.outcomes import (
    Fatal,
    Found,
    NotFound,
    RetryAfter,
    Success,
)
from azure_wait.polling.backoff import BackoffPolicy
from azure_wait.polling.retry import retry_all

if TYPE_CHECKING:
    from collections.abc import Callable
    from datetime import timedelta

    from azure_wait.models.outcomes import CheckResult, ExecutorOutcome
    from azure_wait.models.state import OperationRecord, TaskState
    from azure_wait.polling.retry import RetryClassifier

logger = logging.getLogger("azure_wait.polling.executor")

T = TypeVar("T")


class PollingRetryExecutor(Generic[T]):
    """Runs one attempt of a check for a named operation.

    Args:
        state: State view the operation record lives in.
        operation: Operation name (e.g. ``"POLL"``).
        backoff: Interval policy for ``RetryAfter`` outcomes.
        classifier: Decides whether an exception from the check is retryable.
        timeout: Optional absolute timeout measured from the first attempt.
    """

    def __init__(
        self,
        state: TaskState,
        operation: str,
        *,
        backoff: BackoffPolicy | None = None,
        classifier: RetryClassifier = retry_all,
        timeout: timedelta | None = None,
    ) -> None:
        self._state = state
        self._operation = operation
        self._backoff = backoff or BackoffPolicy()
        self._classifier = classifier
        self._timeout = timeout

    def run_once(self, check: Callable[[], CheckResult[T]]) -> ExecutorOutcome[T]:
        """Run *check* once and return the classified outcome.

        Raises:
            PersistenceError: If the attempt cannot be recorded.
        """
        previous = self._state.get(self._operation)
        interval = self._backoff.next_interval(previous.attempt_count)

        result: object = None
        error: Exception | None = None
        try:
            result = check()
        except Exception as exc:  # classified after the attempt is recorded
            error = exc

        record = self._state.record_attempt(self._operation)
        key = self._state.key(self._operation)

        if error is not None:
            if not self._classifier(error):
                logger.error(
                    "Poll attempt failed permanently | operation=%s | attempt=%d | error=%s",
                    key,
                    record.attempt_count,
                    error,
                )
                return Fatal(error)
            logger.warning(
                "Poll attempt failed, will retry | operation=%s | attempt=%d | "
                "retry_after=%ds | error=%s",
                key,
                record.attempt_count,
                interval.total_seconds(),
                error,
            )
        elif isinstance(result, Found):
            logger.info(
                "Poll attempt found resource | operation=%s | attempt=%d",
                key,
                record.attempt_count,
            )
            return Success(result.value)
        elif isinstance(result, NotFound):
            logger.info(
                "Poll attempt not found yet | operation=%s | attempt=%d | retry_after=%ds",
                key,
                record.attempt_count,
                interval.total_seconds(),
            )
        else:
            msg = (
                f"Check for operation {key!r} returned {type(result).__name__}; "
                "expected Found or NotFound"
            )
            return Fatal(ContractError(msg, stage="poll", code="INVALID_CHECK_RESULT"))

        timed_out = self._timed_out(record)
        if timed_out is not None:
            return Fatal(timed_out)

        return RetryAfter(interval=interval, attempt=record.attempt_count, error=error)

    def _timed_out(self, record: OperationRecord) -> WaitTimeoutError | None:
        if self._timeout is None or record.first_attempt_time is None:
            return None
        elapsed = self._state.clock() - record.first_attempt_time
        if elapsed < self._timeout:
            return None
        logger.error(
            "Poll timeout | operation=%s | attempts=%d | elapsed=%ds | timeout=%ds",
            self._state.key(self._operation),
            record.attempt_count,
            elapsed.total_seconds(),
            self._timeout.total_seconds(),
        )
        return WaitTimeoutError(self._state.key(self._operation), elapsed, self._timeout)
