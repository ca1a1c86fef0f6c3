"""Tests for scoped secret providers."""

from __future__ import annotations

import pytest

from azure_wait.core.secrets import EnvSecretProvider, MappingSecretProvider, SecretNotFoundError


class TestMappingSecretProvider:
    def test_scoped_lookup(self) -> None:
        secrets = MappingSecretProvider({"azure": {"blob": {"connectionString": "cs"}}})
        value = secrets.get_secrets("azure").get_secrets("blob").get_secret("connectionString")
        assert value == "cs"

    def test_missing_secret_names_full_path(self) -> None:
        secrets = MappingSecretProvider({"azure": {}})
        with pytest.raises(SecretNotFoundError) as ctx:
            secrets.get_secrets("azure").get_secrets("queue").get_secret("connectionString")
        assert ctx.value.name == "azure.queue.connectionString"

    def test_empty_value_is_missing(self) -> None:
        secrets = MappingSecretProvider({"token": ""})
        with pytest.raises(SecretNotFoundError):
            secrets.get_secret("token")

    def test_scope_that_is_a_leaf_is_empty(self) -> None:
        secrets = MappingSecretProvider({"azure": "not-a-scope"})
        with pytest.raises(SecretNotFoundError):
            secrets.get_secrets("azure").get_secret("x")


class TestEnvSecretProvider:
    def test_reads_double_underscore_key(self) -> None:
        secrets = EnvSecretProvider({"AZURE__BLOB__CONNECTIONSTRING": "cs"})
        value = secrets.get_secrets("azure").get_secrets("blob").get_secret("connectionString")
        assert value == "cs"

    def test_missing_variable(self) -> None:
        with pytest.raises(SecretNotFoundError, match="azure.queue.connectionString"):
            EnvSecretProvider({}).get_secrets("azure").get_secrets("queue").get_secret(
                "connectionString"
            )

    def test_defaults_to_process_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("AZURE__QUEUE__CONNECTIONSTRING", "from-env")
        value = (
            EnvSecretProvider().get_secrets("azure").get_secrets("queue").get_secret("connectionString")
        )
        assert value == "from-env"
