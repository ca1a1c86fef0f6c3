"""Tests for the wait error taxonomy."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest

from azure_wait.core.config import ConfigValidationError
from azure_wait.core.exceptions import (
    ConfigError,
    ContractError,
    PermanentError,
    PersistenceError,
    RetryLater,
    TransientError,
    TransientResourceError,
    ValidationError,
    WaitError,
    WaitTimeoutError,
)
from azure_wait.core.secrets import SecretNotFoundError
from azure_wait.operators.factory import UnknownOperatorError


class TestCategories:
    @pytest.mark.parametrize(
        ("error", "category", "retryable"),
        [
            (ConfigError("bad"), "validation", False),
            (TransientResourceError("503"), "transient", True),
            (PersistenceError("disk"), "permanent", False),
            (ContractError("shape"), "contract", False),
            (WaitError("x", retryable=True), "transient", True),
            (WaitError("x"), "permanent", False),
        ],
    )
    def test_category_and_retryable(
        self, error: WaitError, category: str, retryable: bool
    ) -> None:
        assert error.category == category
        assert error.retryable is retryable

    def test_explicit_retryable_override(self) -> None:
        assert TransientError("x", retryable=False).retryable is False


class TestDefaults:
    @pytest.mark.parametrize(
        ("error", "stage", "code"),
        [
            (ConfigError("x"), "config", "CONFIG_INVALID"),
            (TransientResourceError("x"), "check", "RESOURCE_CHECK_FAILED"),
            (PersistenceError("x"), "state", "STATE_PERSIST_FAILED"),
            (SecretNotFoundError("azure.blob.connectionString"), "config", "SECRET_NOT_FOUND"),
            (UnknownOperatorError("x"), "config", "UNKNOWN_OPERATOR"),
        ],
    )
    def test_stage_and_code(self, error: WaitError, stage: str, code: str) -> None:
        assert error.stage == stage
        assert error.code == code

    def test_kwargs_override_defaults(self) -> None:
        error = ConfigError("x", stage="blob_wait", code="MISSING_PARAM")
        assert (error.stage, error.code) == ("blob_wait", "MISSING_PARAM")


class TestHierarchy:
    def test_config_errors_are_validation_errors(self) -> None:
        for cls in (ConfigValidationError, SecretNotFoundError, UnknownOperatorError):
            assert issubclass(cls, ConfigError)
        assert issubclass(ConfigError, ValidationError)

    def test_persistence_and_timeout_are_permanent(self) -> None:
        assert issubclass(PersistenceError, PermanentError)
        assert issubclass(WaitTimeoutError, PermanentError)

    def test_retry_later_is_not_a_wait_error(self) -> None:
        assert not issubclass(RetryLater, WaitError)


class TestPayloads:
    def test_to_error_dict(self) -> None:
        error = TransientResourceError("503", stage="blob_wait", correlation_id="task-1")
        assert error.to_error_dict() == {
            "category": "transient",
            "code": "RESOURCE_CHECK_FAILED",
            "stage": "blob_wait",
            "message": "503",
            "retryable": True,
            "correlation_id": "task-1",
        }

    def test_timeout_message(self) -> None:
        error = WaitTimeoutError("EXISTS/POLL", timedelta(seconds=90), timedelta(seconds=60))
        assert "EXISTS/POLL" in str(error)
        assert "timeout 60s" in str(error)
        assert error.code == "WAIT_TIMEOUT"

    def test_retry_later_fields(self) -> None:
        at = datetime(2026, 2, 17, tzinfo=UTC)
        signal = RetryLater(timedelta(seconds=5), "waiting", at)
        assert (signal.interval, signal.message, signal.next_check_at) == (
            timedelta(seconds=5),
            "waiting",
            at,
        )
