"""Tagged results exchanged between checks, the polling core and the engine.

- ``CheckResult``: what one resource check observed (``Found`` / ``NotFound``).
- ``ExecutorOutcome``: what one poll attempt decided
  (``Success`` / ``RetryAfter`` / ``Fatal``).
- ``TaskResult``: the operator's output contract — keys to clear and the
  snapshot to store.

Design notes:
- All models are frozen dataclasses.
- Suspension is a value (``RetryAfter``), never a sleep.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Any, Generic, TypeVar

T = TypeVar("T")


# ---------------------------------------------------------------------------
# Check results
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Found(Generic[T]):
    """The awaited resource was observed."""

    value: T


@dataclass(frozen=True, slots=True)
class NotFound:
    """The awaited resource does not exist yet.  Not an error."""


CheckResult = Found[T] | NotFound


# ---------------------------------------------------------------------------
# Executor outcomes
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Success(Generic[T]):
    """The check found the resource."""

    value: T


@dataclass(frozen=True, slots=True)
class RetryAfter:
    """The resource is not available yet; invoke again after *interval*.

    Attributes:
        interval: Minimum delay before the next attempt.
        attempt: Attempt count after this attempt was recorded.
        error: The transient error the check raised, or ``None`` when the
            check simply did not find the resource.
    """

    interval: timedelta
    attempt: int = 0
    error: BaseException | None = None

    @property
    def not_found(self) -> bool:
        return self.error is None


@dataclass(frozen=True, slots=True)
class Fatal:
    """The attempt failed permanently; *error* ends the task."""

    error: BaseException


ExecutorOutcome = Success[T] | RetryAfter | Fatal


# ---------------------------------------------------------------------------
# Task output contract
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class TaskResult:
    """Operator output: parameter paths to clear, then parameters to store.

    Attributes:
        reset_store_params: Key paths (e.g. ``("blob", "last_object")``)
            removed from the task's stored parameters before writing.
        store_params: Nested mapping merged into the stored parameters.
    """

    reset_store_params: tuple[tuple[str, ...], ...] = ()
    store_params: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Serialise for the engine (JSON-compatible)."""
        return {
            "reset_store_params": [list(path) for path in self.reset_store_params],
            "store_params": copy.deepcopy(self.store_params),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TaskResult:
        return cls(
            reset_store_params=tuple(tuple(path) for path in data.get("reset_store_params", [])),
            store_params=copy.deepcopy(data.get("store_params", {})),
        )

    def apply_to(self, params: dict[str, Any]) -> dict[str, Any]:
        """Return *params* with every reset path cleared and store params merged.

        The input mapping is not modified.
        """
        result = copy.deepcopy(params)
        for path in self.reset_store_params:
            _remove_path(result, path)
        _deep_merge(result, copy.deepcopy(self.store_params))
        return result


def _remove_path(params: dict[str, Any], path: tuple[str, ...]) -> None:
    if not path:
        return
    parent: Any = params
    for key in path[:-1]:
        parent = parent.get(key) if isinstance(parent, dict) else None
        if parent is None:
            return
    if isinstance(parent, dict):
        parent.pop(path[-1], None)


def _deep_merge(target: dict[str, Any], source: dict[str, Any]) -> None:
    for key, value in source.items():
        existing = target.get(key)
        if isinstance(existing, dict) and isinstance(value, dict):
            _deep_merge(existing, value)
        else:
            target[key] = value
