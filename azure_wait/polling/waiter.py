"""Polling waiter — the per-tick outer loop of a wait operator.

The waiter is a thin shell around one executor run.  It holds no
attempt counter of its own; per operation it moves through::

    NOT_STARTED -> POLLING -> {SATISFIED | FAILED}

``POLLING`` is re-entered on every engine tick.  The waiter never
sleeps: a ``RetryAfter`` outcome becomes a raised ``RetryLater`` signal
that hands control back to the engine, which owns the delay and the
re-invocation.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Generic, TypeVar

from azure_wait.core.exceptions import ContractError, RetryLater
from azure_wait.models.outcomes import Fatal, RetryAfter, Success

if TYPE_CHECKING:
    from collections.abc import Callable

    from azure_wait.models.outcomes import ExecutorOutcome
    from azure_wait.models.state import TaskState

logger = logging.getLogger("azure_wait.polling.waiter")

T = TypeVar("T")

DEFAULT_WAIT_MESSAGE = "Waiting for resource"


class PollingWaiter(Generic[T]):
    """Turns executor outcomes into a return value or an engine signal.

    Args:
        state: Task state the operation namespace is created in.
        operation: Operation name (e.g. ``"EXISTS"``).
        wait_message: ``%``-style template logged while waiting.
        message_args: Arguments interpolated into *wait_message*.
    """

    def __init__(
        self,
        state: TaskState,
        operation: str,
        *,
        wait_message: str = DEFAULT_WAIT_MESSAGE,
        message_args: tuple[object, ...] = (),
    ) -> None:
        self._state = state
        self._operation = operation
        self._wait_message = wait_message
        self._message_args = message_args

    def with_wait_message(self, wait_message: str, *args: object) -> PollingWaiter[T]:
        """Return a copy of this waiter using *wait_message* % *args*."""
        return PollingWaiter(
            self._state,
            self._operation,
            wait_message=wait_message,
            message_args=args,
        )

    @property
    def message(self) -> str:
        if not self._message_args:
            return self._wait_message
        return self._wait_message % self._message_args

    def wait_for(self, inner: Callable[[TaskState], ExecutorOutcome[T]]) -> T:
        """Run one tick of the wait.

        Args:
            inner: One executor run against the operation's nested state.

        Returns:
            The observed resource once the wait is satisfied.

        Raises:
            RetryLater: The resource is not available yet.
            Exception: The fatal error of a ``Fatal`` outcome, unchanged.
        """
        outcome = inner(self._state.nested(self._operation))

        if isinstance(outcome, Success):
            logger.info(
                "Wait satisfied | operation=%s",
                self._state.key(self._operation),
            )
            return outcome.value

        if isinstance(outcome, Fatal):
            raise outcome.error

        if isinstance(outcome, RetryAfter):
            next_check_at = self._state.clock() + outcome.interval
            message = self.message
            logger.info(
                "%s | operation=%s | attempt=%d | reason=%s | next_check=%s",
                message,
                self._state.key(self._operation),
                outcome.attempt,
                "not_found" if outcome.not_found else "transient_error",
                next_check_at.isoformat(),
            )
            raise RetryLater(outcome.interval, message, next_check_at)

        msg = f"Unexpected executor outcome {type(outcome).__name__}"
        raise ContractError(msg, stage="wait", code="INVALID_EXECUTOR_OUTCOME")
