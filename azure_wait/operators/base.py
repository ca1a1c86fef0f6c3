"""Shared operator plumbing.

Everything the wait operators have in common lives here: the task
request, parameter merging and validation, and ``await_resource`` — the
single generic waiter/executor pairing every operator runs its check
closure through.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import timedelta
from typing import TYPE_CHECKING, Any, Protocol, TypeVar

from azure_wait.core.constants import (
    AZURE_PARAMS,
    EXISTS_OPERATION,
    POLL_OPERATION,
    TIMEOUT_PARAM,
)
from azure_wait.core.exceptions import ConfigError
from azure_wait.models.outcomes import TaskResult
from azure_wait.polling.executor import PollingRetryExecutor
from azure_wait.polling.retry import retry_all
from azure_wait.polling.waiter import PollingWaiter

if TYPE_CHECKING:
    from collections.abc import Callable

    from azure_wait.core.config import WaitConfig
    from azure_wait.core.secrets import SecretProvider
    from azure_wait.models.outcomes import CheckResult
    from azure_wait.models.state import TaskState
    from azure_wait.polling.backoff import BackoffPolicy
    from azure_wait.polling.retry import RetryClassifier

logger = logging.getLogger("azure_wait.operators.base")

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class TaskRequest:
    """One invocation request from the engine.

    Attributes:
        task_id: Engine task identifier (correlates logs and state).
        config: Already-parsed task configuration.
    """

    task_id: str
    config: dict[str, Any] = field(default_factory=dict)

    def params(self) -> dict[str, Any]:
        """Return the task configuration merged with its ``azure`` defaults."""
        return merge_azure_params(self.config)


class WaitOperator(Protocol):
    """Signature shared by every registered operator."""

    def __call__(
        self,
        request: TaskRequest,
        state: TaskState,
        secrets: SecretProvider,
        *,
        settings: WaitConfig | None = None,
    ) -> TaskResult: ...


# ---------------------------------------------------------------------------
# Parameters
# ---------------------------------------------------------------------------


def merge_azure_params(config: dict[str, Any]) -> dict[str, Any]:
    """Fill keys missing at the top level from the nested ``azure`` mapping.

    Top-level keys win; the ``azure`` mapping only supplies defaults.

    Raises:
        ConfigError: If ``azure`` is present but not a mapping.
    """
    nested = config.get(AZURE_PARAMS)
    if nested is None:
        return dict(config)
    if not isinstance(nested, dict):
        msg = f"'{AZURE_PARAMS}' must be a mapping, got {type(nested).__name__}"
        raise ConfigError(msg, code="INVALID_PARAM")
    merged = dict(nested)
    merged.update(config)
    return merged


def require_param(params: dict[str, Any], key: str) -> str:
    """Return the required string parameter *key*.

    Raises:
        ConfigError: If the key is missing, empty, or not a string.
    """
    value = params.get(key)
    if value is None or value == "":
        msg = f"Parameter '{key}' is required"
        raise ConfigError(msg, code="MISSING_PARAM")
    if not isinstance(value, str):
        msg = f"Parameter '{key}' must be a string, got {type(value).__name__}"
        raise ConfigError(msg, code="INVALID_PARAM")
    return value


def resolve_timeout(params: dict[str, Any], default: timedelta | None) -> timedelta | None:
    """Return the task's ``timeout`` (seconds) or *default* when unset.

    Raises:
        ConfigError: If ``timeout`` is not a positive whole number of seconds.
    """
    raw = params.get(TIMEOUT_PARAM)
    if raw is None:
        return default
    if isinstance(raw, float) and raw.is_integer():
        raw = int(raw)
    if isinstance(raw, bool) or not isinstance(raw, int) or raw <= 0:
        msg = f"Parameter '{TIMEOUT_PARAM}' must be a positive integer (seconds), got {raw!r}"
        raise ConfigError(msg, code="INVALID_PARAM")
    return timedelta(seconds=raw)


# ---------------------------------------------------------------------------
# Shared wait tick
# ---------------------------------------------------------------------------


def await_resource(
    state: TaskState,
    check: Callable[[], CheckResult[T]],
    *,
    wait_message: str,
    message_args: tuple[object, ...] = (),
    backoff: BackoffPolicy | None = None,
    classifier: RetryClassifier = retry_all,
    timeout: timedelta | None = None,
) -> T:
    """Run one tick of "wait until *check* finds the resource".

    The ``POLL`` attempt record lives inside the ``EXISTS`` operation.

    Raises:
        RetryLater: Not found yet (or transient failure); come back later.
        Exception: Fatal check errors, timeouts and persistence failures.
    """
    waiter: PollingWaiter[T] = PollingWaiter(
        state,
        EXISTS_OPERATION,
        wait_message=wait_message,
        message_args=message_args,
    )
    return waiter.wait_for(
        lambda poll_state: PollingRetryExecutor(
            poll_state,
            POLL_OPERATION,
            backoff=backoff,
            classifier=classifier,
            timeout=timeout,
        ).run_once(check)
    )


def last_object_result(output_key: tuple[str, ...], snapshot: dict[str, Any]) -> TaskResult:
    """Build a ``TaskResult`` that replaces *output_key* with *snapshot*."""
    store: dict[str, Any] = snapshot
    for key in reversed(output_key):
        store = {key: store}
    return TaskResult(reset_store_params=(output_key,), store_params=store)


def iso_or_none(value: object) -> str | None:
    """Render a timestamp for output params (``None`` stays ``None``)."""
    if value is None:
        return None
    isoformat = getattr(value, "isoformat", None)
    return isoformat() if callable(isoformat) else str(value)
