"""Unified exception taxonomy for the wait operators.

Provides a shared base exception hierarchy for the polling core, the
operators and the engine adapter.  Every domain exception inherits from
``WaitError`` and carries structured context fields that enable
consistent retry decisions and operator diagnostics.

Taxonomy categories
-------------------
- ``ValidationError``   — configuration/input violations, never retryable.
- ``TransientError``    — temporary failures (network, throttle), retryable.
- ``PermanentError``    — unrecoverable failures, not retryable.
- ``ContractError``     — payload/result shape violations, never retryable.

``RetryLater`` is outside the taxonomy: it is the signal a
waiter raises to hand control back to the engine, not a failure.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from datetime import datetime, timedelta


class WaitError(Exception):
    """Base exception for all wait-domain errors.

    Attributes:
        message: Human-readable error description.
        stage: Component where the error occurred
            (e.g. ``"blob_wait"``, ``"state"``).
        code: Machine-readable error code (e.g. ``"CONFIG_INVALID"``).
        retryable: Whether a poll attempt that raised it may be retried.
        correlation_id: Task identifier used to correlate log lines.
    """

    #: Default stage for subclasses (override via class attribute or kwarg).
    default_stage: str = ""
    #: Default code for subclasses (override via class attribute or kwarg).
    default_code: str = ""

    def __init__(
        self,
        message: str = "",
        *,
        stage: str = "",
        code: str = "",
        retryable: bool = False,
        correlation_id: str = "",
    ) -> None:
        self.message = message
        self.stage = stage or self.default_stage
        self.code = code or self.default_code
        self.retryable = retryable
        self.correlation_id = correlation_id
        super().__init__(message)

    @property
    def category(self) -> str:
        """Return the error category based on concrete class."""
        if isinstance(self, ContractError):
            return "contract"
        if isinstance(self, ValidationError):
            return "validation"
        if isinstance(self, TransientError):
            return "transient"
        if isinstance(self, PermanentError):
            return "permanent"
        return "transient" if self.retryable else "permanent"

    def to_error_dict(self) -> dict[str, object]:
        """Return a structured error payload with stable keys."""
        return {
            "category": self.category,
            "code": self.code,
            "stage": self.stage,
            "message": self.message,
            "retryable": self.retryable,
            "correlation_id": self.correlation_id,
        }


# ---------------------------------------------------------------------------
# Category base classes
# ---------------------------------------------------------------------------


class ValidationError(WaitError):
    """Input or configuration validation failure. Never retryable."""

    def __init__(self, message: str = "", **kwargs: object) -> None:
        kwargs.setdefault("retryable", False)
        super().__init__(message, **kwargs)  # type: ignore[arg-type]


class TransientError(WaitError):
    """Temporary failure that may succeed on retry."""

    def __init__(self, message: str = "", **kwargs: object) -> None:
        kwargs.setdefault("retryable", True)
        super().__init__(message, **kwargs)  # type: ignore[arg-type]


class PermanentError(WaitError):
    """Unrecoverable failure. Not retryable."""

    def __init__(self, message: str = "", **kwargs: object) -> None:
        kwargs.setdefault("retryable", False)
        super().__init__(message, **kwargs)  # type: ignore[arg-type]


class ContractError(WaitError):
    """Payload or result shape violation. Never retryable."""

    def __init__(self, message: str = "", **kwargs: object) -> None:
        kwargs.setdefault("retryable", False)
        super().__init__(message, **kwargs)  # type: ignore[arg-type]


# ---------------------------------------------------------------------------
# Concrete kinds
# ---------------------------------------------------------------------------


class ConfigError(ValidationError):
    """Malformed connection credential or missing required configuration.

    Raised before any poll attempt is recorded.
    """

    default_stage = "config"
    default_code = "CONFIG_INVALID"


class TransientResourceError(TransientError):
    """The remote check call failed (network, throttling, unavailability)."""

    default_stage = "check"
    default_code = "RESOURCE_CHECK_FAILED"


class PersistenceError(PermanentError):
    """The operation state store could not record an attempt.

    The attempt is treated as not having happened; the tick fails and the
    engine repeats the same check on a later invocation.
    """

    default_stage = "state"
    default_code = "STATE_PERSIST_FAILED"


class WaitTimeoutError(PermanentError):
    """The optional absolute wait timeout elapsed before the resource appeared.

    Attributes:
        operation: Name of the operation that timed out.
        elapsed: Time between the first attempt and the timed-out attempt.
    """

    default_stage = "poll"
    default_code = "WAIT_TIMEOUT"

    def __init__(self, operation: str, elapsed: timedelta, timeout: timedelta) -> None:
        self.operation = operation
        self.elapsed = elapsed
        self.timeout = timeout
        super().__init__(
            f"Operation {operation!r} still unsatisfied after "
            f"{elapsed.total_seconds():.0f}s (timeout {timeout.total_seconds():.0f}s)"
        )


# ---------------------------------------------------------------------------
# Engine signal
# ---------------------------------------------------------------------------


class RetryLater(Exception):  # noqa: N818
    """Signal to the engine: the task is not finished, invoke it again later.

    Attributes:
        interval: Minimum delay before the next invocation.
        message: Human-readable wait message naming the awaited resource.
        next_check_at: Earliest UTC time for the next invocation.
    """

    def __init__(self, interval: timedelta, message: str, next_check_at: datetime) -> None:
        self.interval = interval
        self.message = message
        self.next_check_at = next_check_at
        super().__init__(message)
