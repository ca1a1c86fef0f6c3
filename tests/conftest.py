"""Shared pytest fixtures for the wait operator test suite."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest

from azure_wait.core.secrets import MappingSecretProvider
from azure_wait.models.state import InMemoryStateStore, TaskState

START = datetime(2026, 2, 17, 12, 0, 0, tzinfo=UTC)

VALID_CONNECTION_STRING = (
    "DefaultEndpointsProtocol=https;AccountName=devaccount;"
    "AccountKey=ZGV2a2V5;EndpointSuffix=core.windows.net"
)

BAD_KEY_CONNECTION_STRING = (
    "DefaultEndpointsProtocol=https;AccountName=devaccount;"
    "AccountKey=!!!not-base64!!!;EndpointSuffix=core.windows.net"
)


class FakeClock:
    """Deterministic, manually advanced UTC clock."""

    def __init__(self, now: datetime = START) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


# ---------------------------------------------------------------------------
# State fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def clock() -> FakeClock:
    """A clock frozen at ``START`` until advanced."""
    return FakeClock()


@pytest.fixture()
def store() -> InMemoryStateStore:
    """An empty in-memory state store."""
    return InMemoryStateStore()


@pytest.fixture()
def state(store: InMemoryStateStore, clock: FakeClock) -> TaskState:
    """Root task state over ``store`` using ``clock``."""
    return TaskState(store, clock=clock)


# ---------------------------------------------------------------------------
# Secret fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def secrets() -> MappingSecretProvider:
    """Secrets holding connection strings for both operators."""
    return MappingSecretProvider(
        {
            "azure": {
                "blob": {"connectionString": VALID_CONNECTION_STRING},
                "queue": {"connectionString": VALID_CONNECTION_STRING},
            }
        }
    )


@pytest.fixture()
def malformed_secrets() -> MappingSecretProvider:
    """Secrets whose connection strings are not parseable."""
    return MappingSecretProvider(
        {
            "azure": {
                "blob": {"connectionString": "not-a-connection-string"},
                "queue": {"connectionString": "not-a-connection-string"},
            }
        }
    )


@pytest.fixture()
def bad_key_secrets() -> MappingSecretProvider:
    """Well-formed connection strings whose AccountKey is not base64."""
    return MappingSecretProvider(
        {
            "azure": {
                "blob": {"connectionString": BAD_KEY_CONNECTION_STRING},
                "queue": {"connectionString": BAD_KEY_CONNECTION_STRING},
            }
        }
    )
