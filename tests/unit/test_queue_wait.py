"""Tests for the storage_queue_wait operator.

Covers:
- Empty queue over several ticks → growing intervals, then found
- Peek is non-destructive (peek_messages, max_messages=1)
- queue.last_object snapshot fields
- Missing queue name and malformed connection string → ConfigError
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest
from azure.core.exceptions import ServiceRequestError

from azure_wait.core.exceptions import ConfigError, RetryLater
from azure_wait.core.secrets import MappingSecretProvider
from azure_wait.models.state import InMemoryStateStore, TaskState
from azure_wait.operators.base import TaskRequest
from azure_wait.operators.queue_wait import message_snapshot, storage_queue_wait
from tests.conftest import FakeClock

INSERTED = datetime(2026, 2, 17, 12, 0, 30, tzinfo=UTC)
EXPIRES = datetime(2026, 2, 24, 12, 0, 30, tzinfo=UTC)


def _message() -> SimpleNamespace:
    return SimpleNamespace(id="msg-1", inserted_on=INSERTED, expires_on=EXPIRES, content="hello")


def _client(*peeks: list[SimpleNamespace]) -> MagicMock:
    client = MagicMock()
    client.get_queue_client.return_value.peek_messages.side_effect = list(peeks)
    return client


def _request(queue: str = "q") -> TaskRequest:
    return TaskRequest(task_id="task-q", config={"_command": queue})


class TestQueueWaitScenario:
    def test_growing_intervals_then_found(
        self, state: TaskState, clock: FakeClock, secrets: MappingSecretProvider
    ) -> None:
        client = _client([], [], [], [_message()])
        intervals: list[float] = []

        for _ in range(3):
            with pytest.raises(RetryLater) as ctx:
                storage_queue_wait(_request(), state, secrets, client_factory=lambda cs: client)
            assert ctx.value.message == "Message in 'q/' does not peek"
            intervals.append(ctx.value.interval.total_seconds())
            clock.advance(ctx.value.interval.total_seconds())

        result = storage_queue_wait(_request(), state, secrets, client_factory=lambda cs: client)

        assert intervals == [5, 10, 20]
        assert result.store_params["queue"]["last_object"]["messageId"] == "msg-1"
        assert result.reset_store_params == (("queue", "last_object"),)

    def test_peek_is_non_destructive(
        self, state: TaskState, secrets: MappingSecretProvider
    ) -> None:
        client = _client([_message()])
        storage_queue_wait(_request(), state, secrets, client_factory=lambda cs: client)

        client.get_queue_client.assert_called_once_with("q")
        queue_client = client.get_queue_client.return_value
        queue_client.peek_messages.assert_called_once_with(max_messages=1)
        queue_client.receive_message.assert_not_called()
        queue_client.receive_messages.assert_not_called()

    def test_uses_queue_connection_string(self, state: TaskState) -> None:
        secrets = MappingSecretProvider({"azure": {"queue": {"connectionString": "cs-queue"}}})
        factory = MagicMock(return_value=_client([_message()]))
        storage_queue_wait(_request(), state, secrets, client_factory=factory)
        factory.assert_called_once_with("cs-queue")

    def test_transient_peek_failure_is_retried(
        self, state: TaskState, secrets: MappingSecretProvider
    ) -> None:
        client = MagicMock()
        client.get_queue_client.return_value.peek_messages.side_effect = ServiceRequestError(
            "connection reset"
        )
        with pytest.raises(RetryLater):
            storage_queue_wait(_request(), state, secrets, client_factory=lambda cs: client)


class TestMessageSnapshot:
    def test_snapshot_fields(self) -> None:
        assert message_snapshot(_message()) == {  # type: ignore[arg-type]
            "messageId": "msg-1",
            "insertionTime": INSERTED.isoformat(),
            "expirationTime": EXPIRES.isoformat(),
        }

    def test_missing_times_are_none(self) -> None:
        message = SimpleNamespace(id="m", inserted_on=None, expires_on=None)
        snapshot = message_snapshot(message)  # type: ignore[arg-type]
        assert snapshot["insertionTime"] is None
        assert snapshot["expirationTime"] is None


class TestQueueConfig:
    def test_missing_queue_name(
        self, state: TaskState, store: InMemoryStateStore, secrets: MappingSecretProvider
    ) -> None:
        with pytest.raises(ConfigError, match="_command"):
            storage_queue_wait(
                TaskRequest("t", {}), state, secrets, client_factory=lambda cs: MagicMock()
            )
        assert store.snapshot() == {}

    def test_queue_name_from_azure_mapping(
        self, state: TaskState, secrets: MappingSecretProvider
    ) -> None:
        client = _client([_message()])
        request = TaskRequest("t", {"azure": {"_command": "nested-q"}})
        storage_queue_wait(request, state, secrets, client_factory=lambda cs: client)
        client.get_queue_client.assert_called_once_with("nested-q")

    def test_malformed_connection_string(
        self,
        state: TaskState,
        store: InMemoryStateStore,
        malformed_secrets: MappingSecretProvider,
    ) -> None:
        with pytest.raises(ConfigError, match="Invalid Storage Account ConnectionString"):
            storage_queue_wait(_request(), state, malformed_secrets)
        assert store.snapshot() == {}


def test_settings_tune_backoff(state: TaskState, secrets: MappingSecretProvider) -> None:
    from azure_wait.core.config import WaitConfig

    settings = WaitConfig(poll_min_interval_seconds=2, poll_max_interval_seconds=3)
    client = _client([], [])
    with pytest.raises(RetryLater) as ctx:
        storage_queue_wait(
            _request(), state, secrets, settings=settings, client_factory=lambda cs: client
        )
    assert ctx.value.interval == timedelta(seconds=2)


def test_bad_account_key_fails_before_any_attempt(
    state: TaskState, store: InMemoryStateStore, bad_key_secrets: MappingSecretProvider
) -> None:
    with pytest.raises(ConfigError, match="Invalid Storage Account ConnectionString"):
        storage_queue_wait(_request(), state, bad_key_secrets)
    assert store.snapshot() == {}
