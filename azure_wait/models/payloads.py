"""Typed payload schemas for the Durable Functions engine adapter.

Every payload exchanged between the starter, the wait orchestrator and
the ``run_wait_tick`` activity is a JSON-serialisable dict.  These
``TypedDict`` definitions make the contracts explicit and
``validate_payload`` checks them at runtime.

Usage::

    from azure_wait.models.payloads import RunTickInput, validate_payload

    validate_payload(raw, RunTickInput, activity="run_wait_tick")
"""

from __future__ import annotations

from typing import Any, Literal, NotRequired, TypedDict

from azure_wait.core.exceptions import ContractError

# ---------------------------------------------------------------------------
# Orchestrator input
# ---------------------------------------------------------------------------


class WaitOrchestratorInput(TypedDict):
    """Starter → ``wait_orchestrator`` (and ``continue_as_new`` between ticks)."""

    operator: str
    task_id: str
    config: dict[str, Any]
    state: NotRequired[dict[str, dict[str, Any]]]
    tick: NotRequired[int]
    params: NotRequired[dict[str, Any]]


# ---------------------------------------------------------------------------
# Run tick activity
# ---------------------------------------------------------------------------


class RunTickInput(TypedDict):
    """Orchestrator → ``run_wait_tick`` activity."""

    operator: str
    task_id: str
    config: dict[str, Any]
    state: NotRequired[dict[str, dict[str, Any]]]


class RunTickWaiting(TypedDict):
    """``run_wait_tick`` → orchestrator when the resource is not there yet."""

    status: Literal["waiting"]
    retry_after_seconds: float
    next_check_at: str
    message: str
    state: dict[str, dict[str, Any]]


class RunTickDone(TypedDict):
    """``run_wait_tick`` → orchestrator once the resource was observed."""

    status: Literal["done"]
    result: dict[str, Any]
    state: dict[str, dict[str, Any]]


# ---------------------------------------------------------------------------
# Required-key registrations (used by validate_payload)
# ---------------------------------------------------------------------------

_REQUIRED_KEYS: dict[type, frozenset[str]] = {
    WaitOrchestratorInput: frozenset({"operator", "task_id", "config"}),
    RunTickInput: frozenset({"operator", "task_id", "config"}),
    RunTickWaiting: frozenset({"status", "retry_after_seconds", "message"}),
    RunTickDone: frozenset({"status", "result"}),
}


# ---------------------------------------------------------------------------
# Runtime validation
# ---------------------------------------------------------------------------


def validate_payload(
    raw: dict[str, Any],
    schema: type,
    *,
    activity: str,
) -> None:
    """Validate that *raw* contains the required keys for *schema*.

    Raises:
        ContractError: If required keys are missing from the payload.
    """
    required = _REQUIRED_KEYS.get(schema)
    if required is None:
        return

    missing = required - raw.keys()
    if missing:
        msg = f"{activity}: missing required payload key(s): {', '.join(sorted(missing))}"
        raise ContractError(msg, stage=activity, code="PAYLOAD_MISSING_KEYS")
