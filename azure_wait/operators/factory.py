"""Operator factory — selects a wait operator by type name.

The factory maintains a registry of known operators.  Built-in entries
are lazy-import thunks so that a storage SDK is only loaded when its
operator is selected.

Usage::

    from azure_wait.operators.factory import get_operator

    operator = get_operator("blob_wait")
    result = operator(request, state, secrets)
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from azure_wait.core.constants import BLOB_WAIT, STORAGE_QUEUE_WAIT
from azure_wait.core.exceptions import ConfigError

if TYPE_CHECKING:
    from collections.abc import Callable

    from azure_wait.operators.base import WaitOperator

logger = logging.getLogger(__name__)

_OPERATOR_REGISTRY: dict[str, Callable[[], WaitOperator]] = {}


class UnknownOperatorError(ConfigError):
    """Raised when an operator type is not registered."""

    default_code = "UNKNOWN_OPERATOR"


def _register_builtin_operators() -> None:
    """Register the built-in operators (called once, lazily)."""

    def _blob_wait() -> WaitOperator:
        from azure_wait.operators.blob_wait import blob_wait

        return blob_wait

    def _storage_queue_wait() -> WaitOperator:
        from azure_wait.operators.queue_wait import storage_queue_wait

        return storage_queue_wait

    _OPERATOR_REGISTRY[BLOB_WAIT] = _blob_wait
    _OPERATOR_REGISTRY[STORAGE_QUEUE_WAIT] = _storage_queue_wait


def _ensure_registry() -> None:
    """Initialise the operator registry once (idempotent)."""
    if not _OPERATOR_REGISTRY:
        _register_builtin_operators()


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def register_operator(name: str, loader: Callable[[], WaitOperator]) -> None:
    """Register a custom operator.

    Args:
        name: Operator type name (e.g. ``"my_wait"``).
        loader: A zero-argument callable that returns the operator function.

    Raises:
        ValueError: If the name is empty.
    """
    if not name:
        msg = "Operator name must be non-empty"
        raise ValueError(msg)
    _ensure_registry()
    _OPERATOR_REGISTRY[name] = loader
    logger.debug("Registered operator: %s", name)


def get_operator(name: str) -> WaitOperator:
    """Return the operator registered as *name*.

    Raises:
        UnknownOperatorError: If no operator has that name.
    """
    _ensure_registry()

    loader = _OPERATOR_REGISTRY.get(name)
    if loader is None:
        available = ", ".join(sorted(_OPERATOR_REGISTRY))
        msg = f"Unknown operator type: {name!r}. Available: {available}"
        raise UnknownOperatorError(msg)
    return loader()


def list_operators() -> list[str]:
    """Return the names of all registered operators."""
    _ensure_registry()
    return sorted(_OPERATOR_REGISTRY)
