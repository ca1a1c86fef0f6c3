"""Thin ingress boundary helpers for the Azure Functions entrypoints.

Centralises cross-cutting transport concerns so that ``function_app.py``
contains only trigger bindings and handoff:

- **deserialize_activity_input** — normalises the JSON-string-or-dict
  payload that Durable Functions passes to activities (idempotent on
  replays).
- **blob_service_client_from_connection_string** /
  **queue_service_client_from_connection_string** — build storage
  clients from an operator's connection string, rejecting malformed
  strings with ``ConfigError`` before any network call.
- **get_blob_service_client** — the Functions host's own storage
  account (``AzureWebJobsStorage``), used for operation state.
"""

from __future__ import annotations

import base64
import binascii
import json
import logging
import os
from typing import TYPE_CHECKING, Any

from azure_wait.core.exceptions import ConfigError, ContractError

if TYPE_CHECKING:
    from azure.storage.blob import BlobServiceClient
    from azure.storage.queue import QueueServiceClient

logger = logging.getLogger("azure_wait.core.ingress")

INVALID_CONNECTION_STRING = "Invalid Storage Account ConnectionString"


# ---------------------------------------------------------------------------
# Activity input deserialisation
# ---------------------------------------------------------------------------


def deserialize_activity_input(raw: str | dict[str, Any] | object) -> dict[str, Any]:
    """Normalise Durable Functions activity input to a plain dict.

    During initial execution the activity input arrives as a JSON
    string; on orchestrator replay it may already be a ``dict``.

    Raises:
        ContractError: If *raw* is neither a JSON object string nor a dict.
    """
    if isinstance(raw, str):
        try:
            parsed = json.loads(raw)
        except (json.JSONDecodeError, ValueError) as exc:
            msg = f"Activity input is not valid JSON: {exc}"
            raise ContractError(msg, stage="ingress", code="INVALID_JSON") from exc
        if not isinstance(parsed, dict):
            msg = f"Activity input JSON must be an object, got {type(parsed).__name__}"
            raise ContractError(msg, stage="ingress", code="INVALID_INPUT_TYPE")
        return parsed
    if isinstance(raw, dict):
        return raw
    msg = f"Unexpected activity input type: {type(raw).__name__}"
    raise ContractError(msg, stage="ingress", code="INVALID_INPUT_TYPE")


# ---------------------------------------------------------------------------
# Storage client factories
# ---------------------------------------------------------------------------


def blob_service_client_from_connection_string(connection_string: str) -> BlobServiceClient:
    """Create a ``BlobServiceClient`` for an operator's storage account.

    Parsing is local; no request is sent.

    Raises:
        ConfigError: If the connection string is malformed.
    """
    from azure.storage.blob import BlobServiceClient

    try:
        validate_account_key(connection_string)
        return BlobServiceClient.from_connection_string(connection_string)
    except ValueError as exc:
        raise ConfigError(INVALID_CONNECTION_STRING, stage="blob_wait") from exc


def queue_service_client_from_connection_string(connection_string: str) -> QueueServiceClient:
    """Create a ``QueueServiceClient`` for an operator's storage account.

    Raises:
        ConfigError: If the connection string is malformed.
    """
    from azure.storage.queue import QueueServiceClient

    try:
        validate_account_key(connection_string)
        return QueueServiceClient.from_connection_string(connection_string)
    except ValueError as exc:
        raise ConfigError(INVALID_CONNECTION_STRING, stage="storage_queue_wait") from exc


def validate_account_key(connection_string: str) -> None:
    """Check that the ``AccountKey`` of *connection_string*, if any, is base64.

    The storage SDK only decodes the key when signing the first request.

    Raises:
        ValueError: If the key is empty or not valid base64.
    """
    for setting in connection_string.split(";"):
        name, sep, value = setting.partition("=")
        if not sep or name.strip().lower() != "accountkey":
            continue
        key = value.strip()
        if not key:
            msg = "AccountKey is empty"
            raise ValueError(msg)
        try:
            base64.b64decode(key, validate=True)
        except binascii.Error as exc:
            msg = f"AccountKey is not valid base64: {exc}"
            raise ValueError(msg) from exc


def get_blob_service_client() -> BlobServiceClient:
    """Create a ``BlobServiceClient`` from the ``AzureWebJobsStorage`` env var.

    Raises:
        ConfigError: If the environment variable is not set or malformed.
    """
    connection_string = os.environ.get("AzureWebJobsStorage", "")  # noqa: SIM112
    if not connection_string:
        msg = "AzureWebJobsStorage environment variable is not set"
        raise ConfigError(msg, stage="ingress", code="MISSING_CONNECTION_STRING")

    return blob_service_client_from_connection_string(connection_string)
