"""Durable Functions orchestrator that plays the engine for a wait operator.

One orchestration instance handles one tick:

1. Call the ``run_wait_tick`` activity with the task and its state.
2. ``done``    — return the operator's ``TaskResult`` and the task's stored
   ``params`` with that result applied (reset paths cleared, then the
   snapshot merged).
3. ``waiting`` — create a durable timer for the returned interval, then
   ``continue_as_new`` with the returned state.

``continue_as_new`` keeps the history bounded for waits that may last
forever; each tick starts from nothing but the persisted state.  Fatal
activity errors propagate and fail the orchestration.
"""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import TYPE_CHECKING, Any

from azure_wait.core.exceptions import ContractError
from azure_wait.models.outcomes import TaskResult
from azure_wait.models.payloads import (
    RunTickDone,
    RunTickWaiting,
    WaitOrchestratorInput,
    validate_payload,
)

if TYPE_CHECKING:
    from collections.abc import Generator

    import azure.durable_functions as df

logger = logging.getLogger("azure_wait.orchestrators.wait_pipeline")

RUN_TICK_ACTIVITY = "run_wait_tick"


def wait_orchestrator(
    context: df.DurableOrchestrationContext,
) -> Generator[Any, Any, dict[str, Any] | None]:
    """Run one tick of a wait and schedule the next one if needed.

    Input (via ``context.get_input``):
        A ``WaitOrchestratorInput`` dict: ``operator``, ``task_id``,
        ``config`` and optionally ``state``, ``tick`` and ``params``.

    Returns:
        ``{"task_id", "operator", "ticks", "result", "params"}`` once satisfied;
        ``None`` for ticks that continue as new.
    """
    wait_input: dict[str, Any] = context.get_input() or {}
    validate_payload(wait_input, WaitOrchestratorInput, activity="wait_orchestrator")

    task_id = str(wait_input["task_id"])
    operator = str(wait_input["operator"])
    tick = int(wait_input.get("tick", 1))
    params = wait_input.get("params") or {}
    if not isinstance(params, dict):
        msg = f"wait_orchestrator: params must be an object, got {type(params).__name__}"
        raise ContractError(msg, stage="wait_orchestrator", code="INVALID_INPUT_TYPE")

    outcome = yield context.call_activity(
        RUN_TICK_ACTIVITY,
        {
            "operator": operator,
            "task_id": task_id,
            "config": wait_input["config"],
            "state": wait_input.get("state", {}),
        },
    )

    if not isinstance(outcome, dict):
        msg = f"{RUN_TICK_ACTIVITY} returned {type(outcome).__name__}, expected an object"
        raise ContractError(msg, stage="wait_orchestrator", code="INVALID_TICK_RESULT")

    status = outcome.get("status")
    if status == "done":
        validate_payload(outcome, RunTickDone, activity="wait_orchestrator")
        if not context.is_replaying:
            logger.info(
                "Wait completed | instance=%s | task_id=%s | operator=%s | ticks=%d",
                context.instance_id,
                task_id,
                operator,
                tick,
            )
        result = TaskResult.from_dict(outcome["result"])
        return {
            "task_id": task_id,
            "operator": operator,
            "ticks": tick,
            "result": outcome["result"],
            "params": result.apply_to(params),
        }

    if status != "waiting":
        msg = f"{RUN_TICK_ACTIVITY} returned unknown status {status!r}"
        raise ContractError(msg, stage="wait_orchestrator", code="INVALID_TICK_RESULT")

    validate_payload(outcome, RunTickWaiting, activity="wait_orchestrator")
    retry_after = timedelta(seconds=float(outcome["retry_after_seconds"]))
    fire_at = context.current_utc_datetime + retry_after

    if not context.is_replaying:
        logger.info(
            "%s | instance=%s | task_id=%s | tick=%d | next_check=%s",
            outcome["message"],
            context.instance_id,
            task_id,
            tick,
            fire_at.isoformat(),
        )

    yield context.create_timer(fire_at)

    context.continue_as_new(
        {
            "operator": operator,
            "task_id": task_id,
            "config": wait_input["config"],
            "state": outcome.get("state", {}),
            "tick": tick + 1,
            "params": params,
        }
    )
    return None
