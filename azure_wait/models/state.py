"""Persisted per-operation state.

Every long-running activity within a task is a named *operation*
(``"EXISTS"``, ``"POLL"``).  Each operation owns one ``OperationRecord``
holding its attempt count and attempt timestamps.  Records live in a
``StateStore`` supplied by the engine, so they survive process restarts
between ticks.

Design notes:
- ``TaskState`` never caches records: every ``get`` reads the store, so
  the store is the single source of truth across ticks.
- ``record_attempt`` is fail-closed: if the store write fails nothing is
  advanced and ``PersistenceError`` propagates.
- Operations nest.  ``state.nested("EXISTS")`` returns a view whose keys
  are prefixed with ``EXISTS/``; names only need to be unique within
  their parent namespace.
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any, Protocol

from azure_wait.core.exceptions import ContractError, PersistenceError

logger = logging.getLogger("azure_wait.models.state")

KEY_SEPARATOR = "/"


def utc_now() -> datetime:
    """Return the current time as a timezone-aware UTC ``datetime``."""
    return datetime.now(UTC)


# ---------------------------------------------------------------------------
# Operation record
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class OperationRecord:
    """Progress of one named operation.

    Attributes:
        attempt_count: Number of recorded attempts (starts at 0).
        first_attempt_time: UTC time of the first attempt; immutable once set.
        last_attempt_time: UTC time of the most recent attempt.
    """

    attempt_count: int = 0
    first_attempt_time: datetime | None = None
    last_attempt_time: datetime | None = None

    def __post_init__(self) -> None:
        if self.attempt_count < 0:
            msg = f"OperationRecord.attempt_count must be >= 0, got {self.attempt_count}"
            raise ContractError(msg, stage="state", code="INVALID_STATE_RECORD")

    def advance(self, now: datetime) -> OperationRecord:
        """Return the record after one more attempt at *now*."""
        return OperationRecord(
            attempt_count=self.attempt_count + 1,
            first_attempt_time=self.first_attempt_time or now,
            last_attempt_time=now,
        )

    def to_dict(self) -> dict[str, object]:
        """Serialise to a JSON-compatible dict."""
        return {
            "attempt_count": self.attempt_count,
            "first_attempt_time": _iso(self.first_attempt_time),
            "last_attempt_time": _iso(self.last_attempt_time),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> OperationRecord:
        """Deserialise from a dict produced by ``to_dict``.

        Raises:
            ContractError: If the stored payload is malformed.
        """
        try:
            return cls(
                attempt_count=int(data.get("attempt_count", 0)),
                first_attempt_time=_parse_iso(data.get("first_attempt_time")),
                last_attempt_time=_parse_iso(data.get("last_attempt_time")),
            )
        except (TypeError, ValueError) as exc:
            msg = f"Malformed operation record {data!r}: {exc}"
            raise ContractError(msg, stage="state", code="INVALID_STATE_RECORD") from exc


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def _parse_iso(value: object) -> datetime | None:
    if value is None or value == "":
        return None
    if not isinstance(value, str):
        msg = f"expected ISO-8601 string, got {type(value).__name__}"
        raise TypeError(msg)
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


# ---------------------------------------------------------------------------
# State store contract
# ---------------------------------------------------------------------------


class StateStore(Protocol):
    """Durable key-value store owned by the engine for one task.

    ``save`` must be durable before it returns; any exception it raises
    means the write did not happen.
    """

    def load(self, key: str) -> dict[str, Any] | None: ...

    def save(self, key: str, value: dict[str, Any]) -> None: ...

    def delete(self, key: str) -> None: ...


class InMemoryStateStore:
    """Dict-backed ``StateStore``.

    Used when the engine persists the whole task state itself (e.g. by
    carrying ``snapshot()`` through orchestration history) and in tests.
    """

    def __init__(self, initial: dict[str, dict[str, Any]] | None = None) -> None:
        self._data: dict[str, dict[str, Any]] = copy.deepcopy(initial) if initial else {}

    def load(self, key: str) -> dict[str, Any] | None:
        value = self._data.get(key)
        return copy.deepcopy(value) if value is not None else None

    def save(self, key: str, value: dict[str, Any]) -> None:
        self._data[key] = copy.deepcopy(value)

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def snapshot(self) -> dict[str, dict[str, Any]]:
        """Return a deep copy of every stored record, keyed by operation path."""
        return copy.deepcopy(self._data)


# ---------------------------------------------------------------------------
# Task state
# ---------------------------------------------------------------------------


class TaskState:
    """Access to the persisted operation records of one task.

    Args:
        store: The engine's persistence collaborator.
        namespace: Parent operation names; empty for the task root.
        clock: Source of "now" for attempt timestamps (UTC).
    """

    def __init__(
        self,
        store: StateStore,
        *,
        namespace: tuple[str, ...] = (),
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._store = store
        self._namespace = namespace
        self._clock = clock

    @property
    def namespace(self) -> tuple[str, ...]:
        return self._namespace

    @property
    def clock(self) -> Callable[[], datetime]:
        return self._clock

    def key(self, name: str) -> str:
        """Return the store key of operation *name* in this namespace."""
        if not name or KEY_SEPARATOR in name:
            msg = f"Invalid operation name {name!r}"
            raise ValueError(msg)
        return KEY_SEPARATOR.join((*self._namespace, name))

    def nested(self, name: str) -> TaskState:
        """Return the state view for operations nested under *name*."""
        self.key(name)
        return TaskState(self._store, namespace=(*self._namespace, name), clock=self._clock)

    def get(self, name: str) -> OperationRecord:
        """Return the record for *name*, or a zero record if none exists."""
        data = self._store.load(self.key(name))
        if data is None:
            return OperationRecord()
        return OperationRecord.from_dict(data)

    def record_attempt(self, name: str) -> OperationRecord:
        """Count one attempt of *name* durably and return the new record.

        Raises:
            PersistenceError: If the store write fails; nothing is advanced.
        """
        key = self.key(name)
        record = self.get(name).advance(self._clock())
        try:
            self._store.save(key, record.to_dict())
        except PersistenceError:
            raise
        except Exception as exc:
            msg = f"Failed to record attempt for operation {key!r}: {exc}"
            raise PersistenceError(msg) from exc

        logger.debug(
            "Attempt recorded | operation=%s | attempt=%d",
            key,
            record.attempt_count,
        )
        return record

    def reset(self, name: str) -> None:
        """Forget the record for *name*."""
        key = self.key(name)
        try:
            self._store.delete(key)
        except PersistenceError:
            raise
        except Exception as exc:
            msg = f"Failed to reset operation {key!r}: {exc}"
            raise PersistenceError(msg) from exc
