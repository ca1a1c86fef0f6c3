"""``storage_queue_wait`` operator — wait until a queue has a message to peek.

Peeking is non-destructive: the message stays on the queue for its
real consumer.

Task parameters (``azure`` nested mapping supplies defaults):
    ``_command``: Queue name.
    ``timeout``:  Optional absolute wait timeout in seconds.

Secret:
    ``azure.queue.connectionString``

Output:
    ``queue.last_object`` = ``{"messageId", "insertionTime", "expirationTime"}``
    of the head message, replacing any previous value.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from azure.core.exceptions import AzureError

from azure_wait.core.config import WaitConfig
from azure_wait.core.constants import (
    AZURE_SECRET_SCOPE,
    COMMAND_PARAM,
    CONNECTION_STRING_SECRET,
    QUEUE_OUTPUT_KEY,
    QUEUE_SECRET_SCOPE,
    STORAGE_QUEUE_WAIT,
)
from azure_wait.core.exceptions import TransientResourceError
from azure_wait.core.ingress import queue_service_client_from_connection_string
from azure_wait.models.outcomes import Found, NotFound
from azure_wait.operators.base import (
    await_resource,
    iso_or_none,
    last_object_result,
    require_param,
    resolve_timeout,
)

if TYPE_CHECKING:
    from collections.abc import Callable

    from azure.storage.queue import QueueMessage, QueueServiceClient

    from azure_wait.core.secrets import SecretProvider
    from azure_wait.models.outcomes import CheckResult, TaskResult
    from azure_wait.models.state import TaskState
    from azure_wait.operators.base import TaskRequest

logger = logging.getLogger("azure_wait.operators.queue_wait")

WAIT_MESSAGE = "Message in '%s/' does not peek"


def storage_queue_wait(
    request: TaskRequest,
    state: TaskState,
    secrets: SecretProvider,
    *,
    settings: WaitConfig | None = None,
    client_factory: Callable[[str], QueueServiceClient] = queue_service_client_from_connection_string,
) -> TaskResult:
    """Run one tick of the ``storage_queue_wait`` operator.

    Raises:
        ConfigError: Missing parameter, missing secret or malformed
            connection string (raised before any attempt is recorded).
        RetryLater: The queue is empty.
    """
    settings = settings or WaitConfig()
    params = request.params()
    queue_name = require_param(params, COMMAND_PARAM)
    timeout = resolve_timeout(params, settings.wait_timeout)

    connection_string = (
        secrets.get_secrets(AZURE_SECRET_SCOPE)
        .get_secrets(QUEUE_SECRET_SCOPE)
        .get_secret(CONNECTION_STRING_SECRET)
    )
    client = client_factory(connection_string)

    logger.info(
        "storage_queue_wait tick | task_id=%s | queue=%s",
        request.task_id,
        queue_name,
    )

    message = await_resource(
        state,
        peek_message_check(client, queue_name),
        wait_message=WAIT_MESSAGE,
        message_args=(queue_name,),
        backoff=settings.backoff_policy(),
        timeout=timeout,
    )

    logger.info(
        "storage_queue_wait satisfied | task_id=%s | queue=%s | message_id=%s",
        request.task_id,
        queue_name,
        message.id,
    )
    return last_object_result(QUEUE_OUTPUT_KEY, message_snapshot(message))


def peek_message_check(
    client: QueueServiceClient,
    queue_name: str,
) -> Callable[[], CheckResult[QueueMessage]]:
    """Return a check that peeks the head message of *queue_name*."""

    def check() -> CheckResult[QueueMessage]:
        try:
            messages = client.get_queue_client(queue_name).peek_messages(max_messages=1)
        except AzureError as exc:
            msg = f"Failed to peek queue {queue_name}: {exc}"
            raise TransientResourceError(msg, stage=STORAGE_QUEUE_WAIT) from exc
        if messages:
            return Found(messages[0])
        return NotFound()

    return check


def message_snapshot(message: QueueMessage) -> dict[str, Any]:
    """Serialise a peeked message into the ``queue.last_object`` snapshot."""
    return {
        "messageId": message.id,
        "insertionTime": iso_or_none(getattr(message, "inserted_on", None)),
        "expirationTime": iso_or_none(getattr(message, "expires_on", None)),
    }
