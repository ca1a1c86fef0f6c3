"""Azure Blob Storage backed operation state store.

Persists each operation record of a task as one small JSON blob::

    <container>/<task_id>/<operation path>.json

e.g. ``wait-state/task-42/EXISTS/POLL.json``.  Writes use
``overwrite=True`` so a repeated write of the same record is idempotent.

Failure semantics (fail-closed):
    • ``save``/``delete`` errors raise ``PersistenceError``; the caller
      treats the attempt as not having happened.
    • A missing blob on ``load`` means "no record yet".
    • Any other read error also raises ``PersistenceError``.
"""

from __future__ import annotations

import contextlib
import json
import logging
from typing import TYPE_CHECKING, Any

from azure.core.exceptions import ResourceExistsError, ResourceNotFoundError

from azure_wait.core.exceptions import PersistenceError

if TYPE_CHECKING:
    from azure.storage.blob import BlobServiceClient

logger = logging.getLogger("azure_wait.core.state_store")

DEFAULT_STATE_CONTAINER: str = "wait-state"
"""Default blob container for operation state."""


class BlobStateStore:
    """``StateStore`` keeping one JSON blob per operation key.

    Args:
        blob_service_client: Client for the storage account holding state.
        task_id: Task whose records this store scopes to.
        container: Blob container name.
    """

    def __init__(
        self,
        blob_service_client: BlobServiceClient,
        task_id: str,
        *,
        container: str = DEFAULT_STATE_CONTAINER,
    ) -> None:
        if not task_id:
            msg = "BlobStateStore requires a non-empty task_id"
            raise ValueError(msg)
        self._client = blob_service_client
        self._task_id = task_id
        self._container = container
        self._container_ready = False

    def blob_path(self, key: str) -> str:
        return f"{self._task_id}/{key}.json"

    def load(self, key: str) -> dict[str, Any] | None:
        path = self.blob_path(key)
        try:
            data = (
                self._client.get_blob_client(container=self._container, blob=path)
                .download_blob()
                .readall()
            )
        except ResourceNotFoundError:
            return None
        except Exception as exc:
            msg = f"Failed to read state blob {self._container}/{path}: {exc}"
            raise PersistenceError(msg) from exc

        try:
            record = json.loads(data)
        except (json.JSONDecodeError, TypeError) as exc:
            msg = f"Failed to decode state blob {self._container}/{path}: {exc}"
            raise PersistenceError(msg) from exc

        if not isinstance(record, dict):
            msg = f"State blob {self._container}/{path} is not an object: {type(record).__name__}"
            raise PersistenceError(msg)
        return record

    def save(self, key: str, value: dict[str, Any]) -> None:
        path = self.blob_path(key)
        payload = json.dumps(value, separators=(",", ":")).encode("utf-8")
        try:
            self._ensure_container()
            self._client.get_blob_client(container=self._container, blob=path).upload_blob(
                payload, overwrite=True
            )
        except Exception as exc:
            msg = f"Failed to write state blob {self._container}/{path}: {exc}"
            raise PersistenceError(msg) from exc

        logger.debug(
            "State saved | container=%s | path=%s | size=%d bytes",
            self._container,
            path,
            len(payload),
        )

    def delete(self, key: str) -> None:
        path = self.blob_path(key)
        try:
            self._client.get_blob_client(container=self._container, blob=path).delete_blob()
        except ResourceNotFoundError:
            return
        except Exception as exc:
            msg = f"Failed to delete state blob {self._container}/{path}: {exc}"
            raise PersistenceError(msg) from exc

    def _ensure_container(self) -> None:
        if self._container_ready:
            return
        with contextlib.suppress(ResourceExistsError):
            self._client.get_container_client(self._container).create_container()
        self._container_ready = True
