"""Wait operator configuration loaded from environment variables.

Azure Functions app settings (or ``local.settings.json`` for local dev)
are the source of truth.  Values tune the polling core; the per-task
parameters (container, prefix, queue) come from the task request.

Fail-fast validation:
    ``from_env()`` raises ``ConfigValidationError`` if any numeric
    value is out of its valid range.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import timedelta

from azure_wait.core.constants import (
    DEFAULT_MAX_POLL_INTERVAL_SECONDS,
    DEFAULT_MIN_POLL_INTERVAL_SECONDS,
)
from azure_wait.core.exceptions import ConfigError
from azure_wait.polling.backoff import BackoffPolicy


class ConfigValidationError(ConfigError):
    """Raised when configuration values are out of valid range.

    Attributes:
        key: The configuration key that failed validation.
        value: The invalid value.
    """

    default_code = "CONFIG_VALIDATION_FAILED"

    def __init__(self, key: str, value: object, message: str) -> None:
        self.key = key
        self.value = value
        super().__init__(f"Invalid configuration {key}={value!r}: {message}")


@dataclass(frozen=True, slots=True)
class WaitConfig:
    """Immutable wait operator configuration.

    Attributes:
        poll_min_interval_seconds: Backoff floor, the wait after the first attempt.
        poll_max_interval_seconds: Backoff ceiling.
        wait_timeout_seconds: Absolute wait timeout; ``0`` waits forever.
        state_container: Blob container for operation state.  Empty keeps
            the state in the orchestration history instead.
    """

    poll_min_interval_seconds: int = DEFAULT_MIN_POLL_INTERVAL_SECONDS
    poll_max_interval_seconds: int = DEFAULT_MAX_POLL_INTERVAL_SECONDS
    wait_timeout_seconds: int = 0
    state_container: str = ""

    @classmethod
    def from_env(cls) -> WaitConfig:
        """Load and validate configuration from environment variables.

        Raises:
            ConfigValidationError: If a numeric value is out of range.
            ValueError: If a numeric environment variable cannot be
                parsed (e.g. ``POLL_MIN_INTERVAL_SECONDS=abc``).
        """
        config = cls(
            poll_min_interval_seconds=int(
                os.getenv("POLL_MIN_INTERVAL_SECONDS", str(DEFAULT_MIN_POLL_INTERVAL_SECONDS))
            ),
            poll_max_interval_seconds=int(
                os.getenv("POLL_MAX_INTERVAL_SECONDS", str(DEFAULT_MAX_POLL_INTERVAL_SECONDS))
            ),
            wait_timeout_seconds=int(os.getenv("WAIT_TIMEOUT_SECONDS", "0")),
            state_container=os.getenv("WAIT_STATE_CONTAINER", ""),
        )
        _validate(config)
        return config

    def backoff_policy(self) -> BackoffPolicy:
        """Return the ``BackoffPolicy`` described by this configuration."""
        return BackoffPolicy(
            min_interval=timedelta(seconds=self.poll_min_interval_seconds),
            max_interval=timedelta(seconds=self.poll_max_interval_seconds),
        )

    @property
    def wait_timeout(self) -> timedelta | None:
        """Absolute wait timeout, or ``None`` when waiting forever."""
        if self.wait_timeout_seconds <= 0:
            return None
        return timedelta(seconds=self.wait_timeout_seconds)


def _validate(config: WaitConfig) -> None:
    """Validate configuration ranges.  Raises ``ConfigValidationError``."""
    if config.poll_min_interval_seconds <= 0:
        raise ConfigValidationError(
            "POLL_MIN_INTERVAL_SECONDS",
            config.poll_min_interval_seconds,
            "must be > 0 (seconds)",
        )

    if config.poll_max_interval_seconds < config.poll_min_interval_seconds:
        raise ConfigValidationError(
            "POLL_MAX_INTERVAL_SECONDS",
            config.poll_max_interval_seconds,
            f"must be >= POLL_MIN_INTERVAL_SECONDS ({config.poll_min_interval_seconds})",
        )

    if config.wait_timeout_seconds < 0:
        raise ConfigValidationError(
            "WAIT_TIMEOUT_SECONDS",
            config.wait_timeout_seconds,
            "must be >= 0 (seconds, 0 disables the timeout)",
        )
