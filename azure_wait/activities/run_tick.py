"""Run tick activity — one engine invocation of a wait operator.

Called once per tick by the wait orchestrator.  Builds the task state
from the configured store, runs the selected operator once and reports
either the observed resource or the "come back later" signal.

State handling:
    • ``WAIT_STATE_CONTAINER`` unset — the operation records travel in
      the payload (``state``) and come back in the result, so the
      orchestration history is the durable store.
    • ``WAIT_STATE_CONTAINER`` set — records live in Blob Storage
      (``BlobStateStore``) and the payload ``state`` is ignored.

Once the wait is satisfied or fails, the poll record is deleted so a
later wait reusing the task id starts from attempt zero.

Fatal errors (configuration, persistence, timeouts, non-retryable check
failures) propagate and fail the activity.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from azure_wait.core.config import WaitConfig
from azure_wait.core.constants import EXISTS_OPERATION, POLL_OPERATION
from azure_wait.core.exceptions import ContractError, PersistenceError, RetryLater, WaitError
from azure_wait.core.state_store import BlobStateStore
from azure_wait.models.payloads import RunTickInput, validate_payload
from azure_wait.models.state import InMemoryStateStore, TaskState, utc_now
from azure_wait.operators.base import TaskRequest
from azure_wait.operators.factory import get_operator

if TYPE_CHECKING:
    from collections.abc import Callable
    from datetime import datetime

    from azure.storage.blob import BlobServiceClient

    from azure_wait.core.secrets import SecretProvider
    from azure_wait.models.payloads import RunTickDone, RunTickWaiting
    from azure_wait.models.state import StateStore

logger = logging.getLogger("azure_wait.activities.run_tick")


def run_tick(
    payload: dict[str, Any],
    *,
    secrets: SecretProvider,
    settings: WaitConfig | None = None,
    blob_service_client: BlobServiceClient | None = None,
    clock: Callable[[], datetime] = utc_now,
) -> RunTickWaiting | RunTickDone:
    """Run the payload's operator for one tick.

    Args:
        payload: A ``RunTickInput`` dict.
        secrets: Secret provider the operator resolves credentials from.
        settings: Polling configuration (defaults to ``WaitConfig()``).
        blob_service_client: Client for the state container; required
            when ``settings.state_container`` is set.
        clock: Source of "now" for attempt timestamps.

    Returns:
        A ``RunTickWaiting`` or ``RunTickDone`` dict.

    Raises:
        ContractError: If the payload is malformed.
        WaitError: Any fatal operator failure.
    """
    validate_payload(payload, RunTickInput, activity="run_wait_tick")
    settings = settings or WaitConfig()

    task_id = str(payload["task_id"])
    config = payload["config"]
    if not isinstance(config, dict):
        msg = f"run_wait_tick: config must be an object, got {type(config).__name__}"
        raise ContractError(msg, stage="run_wait_tick", code="INVALID_INPUT_TYPE")

    operator_name = str(payload["operator"])
    operator = get_operator(operator_name)
    store = _build_store(payload, task_id, settings, blob_service_client)
    state = TaskState(store, clock=clock)
    request = TaskRequest(task_id=task_id, config=config)

    logger.info(
        "run_wait_tick started | task_id=%s | operator=%s",
        task_id,
        operator_name,
    )

    try:
        result = operator(request, state, secrets, settings=settings)
    except RetryLater as signal:
        return {
            "status": "waiting",
            "retry_after_seconds": signal.interval.total_seconds(),
            "next_check_at": signal.next_check_at.isoformat(),
            "message": signal.message,
            "state": _snapshot(store),
        }
    except WaitError as exc:
        exc.correlation_id = exc.correlation_id or task_id
        _clear_wait_state(state, task_id)
        logger.error(
            "run_wait_tick failed | task_id=%s | operator=%s | error=%s",
            task_id,
            operator_name,
            exc.to_error_dict(),
        )
        raise

    _clear_wait_state(state, task_id)
    logger.info(
        "run_wait_tick completed | task_id=%s | operator=%s",
        task_id,
        operator_name,
    )
    return {
        "status": "done",
        "result": result.to_dict(),
        "state": _snapshot(store),
    }


def _build_store(
    payload: dict[str, Any],
    task_id: str,
    settings: WaitConfig,
    blob_service_client: BlobServiceClient | None,
) -> StateStore:
    if settings.state_container:
        if blob_service_client is None:
            from azure_wait.core.ingress import get_blob_service_client

            blob_service_client = get_blob_service_client()
        return BlobStateStore(blob_service_client, task_id, container=settings.state_container)

    initial = payload.get("state") or {}
    if not isinstance(initial, dict):
        msg = f"run_wait_tick: state must be an object, got {type(initial).__name__}"
        raise ContractError(msg, stage="run_wait_tick", code="INVALID_INPUT_TYPE")
    return InMemoryStateStore(initial)


def _clear_wait_state(state: TaskState, task_id: str) -> None:
    """Forget the poll record once the wait reached a terminal outcome."""
    try:
        state.nested(EXISTS_OPERATION).reset(POLL_OPERATION)
    except PersistenceError as exc:
        logger.warning(
            "Wait state not cleared | task_id=%s | error=%s",
            task_id,
            exc,
        )


def _snapshot(store: StateStore) -> dict[str, dict[str, Any]]:
    if isinstance(store, InMemoryStateStore):
        return store.snapshot()
    return {}
