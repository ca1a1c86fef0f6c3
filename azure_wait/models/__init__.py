"""Domain models for the wait operators.

- outcomes: check results, executor outcomes and the task output contract
- state: persisted per-operation records and the state store contract
"""

from azure_wait.models.outcomes import (
    CheckResult,
    ExecutorOutcome,
    Fatal,
    Found,
    NotFound,
    RetryAfter,
    Success,
    TaskResult,
)
from azure_wait.models.state import (
    InMemoryStateStore,
    OperationRecord,
    StateStore,
    TaskState,
)

__all__ = [
    "CheckResult",
    "ExecutorOutcome",
    "Fatal",
    "Found",
    "InMemoryStateStore",
    "NotFound",
    "OperationRecord",
    "RetryAfter",
    "StateStore",
    "Success",
    "TaskResult",
    "TaskState",
]
