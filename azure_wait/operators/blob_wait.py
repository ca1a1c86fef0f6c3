"""``blob_wait`` operator — wait until a blob exists under a prefix.

Task parameters (``azure`` nested mapping supplies defaults):
    ``_command``:  Blob name prefix to wait for (e.g. ``"path/"``).
    ``container``: Blob container name.
    ``timeout``:   Optional absolute wait timeout in seconds.

Secret:
    ``azure.blob.connectionString``

Output:
    ``blob.last_object`` = ``{"name", "metadata", "properties"}`` of the
    first blob found, replacing any previous value.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from azure.core.exceptions import AzureError

from azure_wait.core.config import WaitConfig
from azure_wait.core.constants import (
    AZURE_SECRET_SCOPE,
    BLOB_OUTPUT_KEY,
    BLOB_SECRET_SCOPE,
    BLOB_WAIT,
    COMMAND_PARAM,
    CONNECTION_STRING_SECRET,
    CONTAINER_PARAM,
)
from azure_wait.core.exceptions import TransientResourceError
from azure_wait.core.ingress import blob_service_client_from_connection_string
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

    from azure.storage.blob import BlobProperties, BlobServiceClient

    from azure_wait.core.secrets import SecretProvider
    from azure_wait.models.outcomes import CheckResult, TaskResult
    from azure_wait.models.state import TaskState
    from azure_wait.operators.base import TaskRequest

logger = logging.getLogger("azure_wait.operators.blob_wait")

WAIT_MESSAGE = "Object '%s/%s' does not yet exist"


def blob_wait(
    request: TaskRequest,
    state: TaskState,
    secrets: SecretProvider,
    *,
    settings: WaitConfig | None = None,
    client_factory: Callable[[str], BlobServiceClient] = blob_service_client_from_connection_string,
) -> TaskResult:
    """Run one tick of the ``blob_wait`` operator.

    Returns:
        The ``TaskResult`` storing the first matching blob.

    Raises:
        ConfigError: Missing parameter, missing secret or malformed
            connection string (raised before any attempt is recorded).
        RetryLater: No matching blob yet.
    """
    settings = settings or WaitConfig()
    params = request.params()
    prefix = require_param(params, COMMAND_PARAM)
    container = require_param(params, CONTAINER_PARAM)
    timeout = resolve_timeout(params, settings.wait_timeout)

    connection_string = (
        secrets.get_secrets(AZURE_SECRET_SCOPE)
        .get_secrets(BLOB_SECRET_SCOPE)
        .get_secret(CONNECTION_STRING_SECRET)
    )
    client = client_factory(connection_string)

    logger.info(
        "blob_wait tick | task_id=%s | container=%s | prefix=%s",
        request.task_id,
        container,
        prefix,
    )

    blob = await_resource(
        state,
        first_blob_check(client, container, prefix),
        wait_message=WAIT_MESSAGE,
        message_args=(container, prefix),
        backoff=settings.backoff_policy(),
        timeout=timeout,
    )

    logger.info(
        "blob_wait satisfied | task_id=%s | container=%s | blob=%s",
        request.task_id,
        container,
        blob.name,
    )
    return last_object_result(BLOB_OUTPUT_KEY, blob_snapshot(blob))


def first_blob_check(
    client: BlobServiceClient,
    container: str,
    prefix: str,
) -> Callable[[], CheckResult[BlobProperties]]:
    """Return a check that finds the first blob in *container* starting with *prefix*."""

    def check() -> CheckResult[BlobProperties]:
        try:
            container_client = client.get_container_client(container)
            for blob in container_client.list_blobs(name_starts_with=prefix, include=["metadata"]):
                return Found(blob)
        except AzureError as exc:
            msg = f"Failed to list blobs in {container}/{prefix}: {exc}"
            raise TransientResourceError(msg, stage=BLOB_WAIT) from exc
        return NotFound()

    return check


def blob_snapshot(blob: BlobProperties) -> dict[str, Any]:
    """Serialise a listed blob into the ``blob.last_object`` snapshot."""
    content_settings = getattr(blob, "content_settings", None)
    blob_type = getattr(blob, "blob_type", None)
    return {
        "name": blob.name,
        "metadata": dict(getattr(blob, "metadata", None) or {}),
        "properties": {
            "length": getattr(blob, "size", None),
            "contentType": getattr(content_settings, "content_type", None),
            "etag": getattr(blob, "etag", None),
            "lastModified": iso_or_none(getattr(blob, "last_modified", None)),
            "createdOn": iso_or_none(getattr(blob, "creation_time", None)),
            "blobType": getattr(blob_type, "value", blob_type),
        },
    }
