"""Shared constants — single source of truth.

Centralises operator type names, operation names, output keys and
secret scopes used across the operators, the polling core and the
engine adapter.
"""

from __future__ import annotations

# ---------------------------------------------------------------------------
# Operator types
# ---------------------------------------------------------------------------

BLOB_WAIT: str = "blob_wait"
"""Operator that waits for a blob to exist under a prefix."""

STORAGE_QUEUE_WAIT: str = "storage_queue_wait"
"""Operator that waits for a message to be peekable on a queue."""

# ---------------------------------------------------------------------------
# Operation names (nested: POLL lives inside EXISTS)
# ---------------------------------------------------------------------------

EXISTS_OPERATION: str = "EXISTS"
POLL_OPERATION: str = "POLL"

# ---------------------------------------------------------------------------
# Polling defaults
# ---------------------------------------------------------------------------

DEFAULT_MIN_POLL_INTERVAL_SECONDS: int = 5
DEFAULT_MAX_POLL_INTERVAL_SECONDS: int = 300  # 5 minutes

# ---------------------------------------------------------------------------
# Task parameter keys
# ---------------------------------------------------------------------------

COMMAND_PARAM: str = "_command"
CONTAINER_PARAM: str = "container"
TIMEOUT_PARAM: str = "timeout"
AZURE_PARAMS: str = "azure"

# ---------------------------------------------------------------------------
# Secrets
# ---------------------------------------------------------------------------

AZURE_SECRET_SCOPE: str = "azure"
BLOB_SECRET_SCOPE: str = "blob"
QUEUE_SECRET_SCOPE: str = "queue"
CONNECTION_STRING_SECRET: str = "connectionString"

# ---------------------------------------------------------------------------
# Output keys
# ---------------------------------------------------------------------------

LAST_OBJECT_KEY: str = "last_object"
BLOB_OUTPUT_KEY: tuple[str, str] = ("blob", LAST_OBJECT_KEY)
QUEUE_OUTPUT_KEY: tuple[str, str] = ("queue", LAST_OBJECT_KEY)
