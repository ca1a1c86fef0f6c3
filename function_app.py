"""Azure Functions entry point — Azure Storage wait operators.

This module registers all Azure Functions (HTTP starter, orchestrator,
activity) using the Python v2 programming model.

All business logic lives in the azure_wait package. This file is purely
the wiring layer between Azure Functions bindings and application code.
"""

from __future__ import annotations

import json
import logging
import uuid

import azure.durable_functions as df
import azure.functions as func

from azure_wait.core.config import WaitConfig
from azure_wait.core.exceptions import ContractError
from azure_wait.core.ingress import deserialize_activity_input
from azure_wait.core.secrets import EnvSecretProvider
from azure_wait.models.payloads import RunTickInput, validate_payload
from azure_wait.operators.factory import list_operators

app = func.FunctionApp(http_auth_level=func.AuthLevel.FUNCTION)

logger = logging.getLogger("azure_wait.function_app")


# ---------------------------------------------------------------------------
# HTTP: Start a wait
# ---------------------------------------------------------------------------


@app.function_name("start_wait")
@app.route(route="waits/{operator}", methods=["POST"])
@app.durable_client_input(client_name="client")
async def start_wait(
    req: func.HttpRequest,
    client: df.DurableOrchestrationClient,
) -> func.HttpResponse:
    """Start a wait orchestration for the operator named in the route.

    Body: the task configuration (``_command``, ``container``, optional
    ``azure`` and ``timeout``), an optional ``task_id`` and optional
    ``params`` (the task's stored parameters the result is applied to).
    """
    operator = req.route_params.get("operator", "")
    if operator not in list_operators():
        return func.HttpResponse(f"Unknown operator: {operator}", status_code=404)

    try:
        body = req.get_json()
    except ValueError:
        return func.HttpResponse("Request body must be JSON", status_code=400)
    if not isinstance(body, dict):
        return func.HttpResponse("Request body must be a JSON object", status_code=400)

    task_id = str(body.pop("task_id", "") or uuid.uuid4())
    params = body.pop("params", None) or {}
    if not isinstance(params, dict):
        return func.HttpResponse("params must be a JSON object", status_code=400)
    try:
        instance_id = await client.start_new(
            "wait_orchestrator",
            client_input={
                "operator": operator,
                "task_id": task_id,
                "config": body,
                "params": params,
            },
        )
    except Exception:
        logger.exception("Failed to start wait | operator=%s | task_id=%s", operator, task_id)
        raise

    logger.info(
        "Wait started | instance_id=%s | operator=%s | task_id=%s",
        instance_id,
        operator,
        task_id,
    )
    return client.create_check_status_response(req, instance_id)


# ---------------------------------------------------------------------------
# HTTP: Orchestrator Status Endpoint (convenience for local debugging)
# ---------------------------------------------------------------------------


@app.function_name("wait_status")
@app.route(route="waits/status/{instance_id}", methods=["GET"])
@app.durable_client_input(client_name="client")
async def wait_status(
    req: func.HttpRequest,
    client: df.DurableOrchestrationClient,
) -> func.HttpResponse:
    """Return the status of a wait orchestration instance."""
    instance_id = req.route_params.get("instance_id", "")
    if not instance_id:
        return func.HttpResponse("Missing instance_id", status_code=400)

    status = await client.get_status(instance_id)
    if not status:
        return func.HttpResponse("Instance not found", status_code=404)

    return func.HttpResponse(
        json.dumps(status.to_json(), default=str),
        mimetype="application/json",
    )


# ---------------------------------------------------------------------------
# Orchestrator
# ---------------------------------------------------------------------------


@app.function_name("wait_orchestrator")
@app.orchestration_trigger(context_name="context")
def wait_orchestrator(context: df.DurableOrchestrationContext) -> object:
    """Durable Functions orchestrator: one wait tick per instance generation.

    See ``azure_wait.orchestrators.wait_pipeline`` for implementation.
    """
    from azure_wait.orchestrators.wait_pipeline import wait_orchestrator as orchestrator_function

    return orchestrator_function(context)


# ---------------------------------------------------------------------------
# Activities
# ---------------------------------------------------------------------------


@app.function_name("run_wait_tick")
@app.activity_trigger(input_name="activityInput")
def run_wait_tick_activity(activityInput: str) -> dict[str, object]:  # noqa: N803
    """Durable Functions activity: run one tick of a wait operator.

    Input:
        JSON string (or dict when replaying) matching ``RunTickInput``.

    Returns:
        ``RunTickWaiting`` or ``RunTickDone`` dict.

    Raises:
        WaitError: On fatal operator failures (configuration, persistence,
        timeout).
    """
    from azure_wait.activities.run_tick import run_tick

    payload = deserialize_activity_input(activityInput)
    validate_payload(payload, RunTickInput, activity="run_wait_tick")

    try:
        settings = WaitConfig.from_env()
    except ValueError as exc:
        msg = f"Wait configuration could not be parsed: {exc}"
        raise ContractError(msg, stage="config", code="CONFIG_PARSE_FAILED") from exc

    return dict(run_tick(payload, secrets=EnvSecretProvider(), settings=settings))
