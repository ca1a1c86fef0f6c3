"""Scoped secret providers.

Operators resolve their connection credential through a scoped lookup::

    secrets.get_secrets("azure").get_secrets("blob").get_secret("connectionString")

The engine owns the real secret store; this module defines the contract
and two providers: one over a nested mapping (tests, local runs) and one
over environment variables / Functions app settings.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from typing import Protocol

from azure_wait.core.exceptions import ConfigError

logger = logging.getLogger("azure_wait.core.secrets")

#: Separator Azure Functions uses for hierarchical app setting names.
ENV_SCOPE_SEPARATOR = "__"


class SecretNotFoundError(ConfigError):
    """Raised when a secret is absent from its scope.

    Attributes:
        name: Fully scoped secret name (e.g. ``"azure.blob.connectionString"``).
    """

    default_code = "SECRET_NOT_FOUND"

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Secret not found: {name}")


class SecretProvider(Protocol):
    """Contract for scoped secret lookup."""

    def get_secrets(self, scope: str) -> SecretProvider: ...

    def get_secret(self, name: str) -> str: ...


class MappingSecretProvider:
    """Secret provider backed by a nested mapping.

    Scopes are nested mappings; secrets are string leaves.
    """

    def __init__(self, secrets: Mapping[str, object], *, scope: tuple[str, ...] = ()) -> None:
        self._secrets = secrets
        self._scope = scope

    def get_secrets(self, scope: str) -> MappingSecretProvider:
        nested = self._secrets.get(scope)
        if not isinstance(nested, Mapping):
            nested = {}
        return MappingSecretProvider(nested, scope=(*self._scope, scope))

    def get_secret(self, name: str) -> str:
        value = self._secrets.get(name)
        if not isinstance(value, str) or not value:
            raise SecretNotFoundError(".".join((*self._scope, name)))
        return value


class EnvSecretProvider:
    """Secret provider backed by environment variables.

    ``get_secrets("azure").get_secrets("blob").get_secret("connectionString")``
    reads ``AZURE__BLOB__CONNECTIONSTRING``.
    """

    def __init__(
        self,
        environ: Mapping[str, str] | None = None,
        *,
        scope: tuple[str, ...] = (),
    ) -> None:
        self._environ = os.environ if environ is None else environ
        self._scope = scope

    def get_secrets(self, scope: str) -> EnvSecretProvider:
        return EnvSecretProvider(self._environ, scope=(*self._scope, scope))

    def get_secret(self, name: str) -> str:
        key = ENV_SCOPE_SEPARATOR.join((*self._scope, name)).upper()
        value = self._environ.get(key, "")
        if not value:
            raise SecretNotFoundError(".".join((*self._scope, name)))
        logger.debug("Resolved secret from environment | key=%s", key)
        return value
