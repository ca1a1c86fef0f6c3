"""Tests for ingress helpers: activity input and storage client factories."""

from __future__ import annotations

import pytest

from azure_wait.core.exceptions import ConfigError, ContractError
from azure_wait.core.ingress import (
    INVALID_CONNECTION_STRING,
    blob_service_client_from_connection_string,
    deserialize_activity_input,
    get_blob_service_client,
    queue_service_client_from_connection_string,
    validate_account_key,
)
from tests.conftest import BAD_KEY_CONNECTION_STRING, VALID_CONNECTION_STRING


class TestDeserializeActivityInput:
    def test_json_string(self) -> None:
        assert deserialize_activity_input('{"task_id": "t"}') == {"task_id": "t"}

    def test_dict_passthrough(self) -> None:
        payload = {"task_id": "t"}
        assert deserialize_activity_input(payload) is payload

    def test_invalid_json(self) -> None:
        with pytest.raises(ContractError) as ctx:
            deserialize_activity_input("{nope")
        assert ctx.value.code == "INVALID_JSON"

    def test_json_array_rejected(self) -> None:
        with pytest.raises(ContractError) as ctx:
            deserialize_activity_input("[1]")
        assert ctx.value.code == "INVALID_INPUT_TYPE"

    def test_other_type_rejected(self) -> None:
        with pytest.raises(ContractError):
            deserialize_activity_input(42)


class TestClientFactories:
    @pytest.mark.parametrize("connection_string", ["not-a-connection-string", "", "a=b;;c"])
    def test_malformed_blob_connection_string(self, connection_string: str) -> None:
        with pytest.raises(ConfigError, match=INVALID_CONNECTION_STRING):
            blob_service_client_from_connection_string(connection_string)

    def test_malformed_queue_connection_string(self) -> None:
        with pytest.raises(ConfigError, match=INVALID_CONNECTION_STRING) as ctx:
            queue_service_client_from_connection_string("not-a-connection-string")
        assert ctx.value.stage == "storage_queue_wait"

    def test_valid_queue_connection_string(self) -> None:
        client = queue_service_client_from_connection_string(VALID_CONNECTION_STRING)
        assert client.account_name == "devaccount"


class TestAccountKey:
    def test_valid_key_accepted(self) -> None:
        validate_account_key(VALID_CONNECTION_STRING)

    def test_string_without_key_accepted(self) -> None:
        validate_account_key("UseDevelopmentStorage=true")

    @pytest.mark.parametrize(
        "connection_string",
        [BAD_KEY_CONNECTION_STRING, "AccountName=a;AccountKey=;EndpointSuffix=core.windows.net"],
    )
    def test_bad_key_rejected(self, connection_string: str) -> None:
        with pytest.raises(ValueError, match="AccountKey"):
            validate_account_key(connection_string)

    def test_bad_key_blob_client(self) -> None:
        with pytest.raises(ConfigError, match=INVALID_CONNECTION_STRING):
            blob_service_client_from_connection_string(BAD_KEY_CONNECTION_STRING)

    def test_bad_key_queue_client(self) -> None:
        with pytest.raises(ConfigError, match=INVALID_CONNECTION_STRING):
            queue_service_client_from_connection_string(BAD_KEY_CONNECTION_STRING)


class TestHostStorage:
    def test_missing_setting(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("AzureWebJobsStorage", raising=False)
        with pytest.raises(ConfigError) as ctx:
            get_blob_service_client()
        assert ctx.value.code == "MISSING_CONNECTION_STRING"

    def test_reads_setting(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("AzureWebJobsStorage", VALID_CONNECTION_STRING)
        assert get_blob_service_client().account_name == "devaccount"
