"""
Tests for request builders and their JSON Schemas.

Test plan:
- Each builder yields the expected operation name and camelCase payload
- HCS-10 connection builders: message, connection request, accept
- Optional fields are omitted, not sent as null
- Schema violations raise RequestValidationError (bad topic ids, long
  memos, unknown options, bad inscription mode)
- Only inscriptions require confirmation
- Inscription start requests: url / path / base64 file descriptors,
  hashinal extras, holder id
"""

from __future__ import annotations

import base64

import pytest

from agent_ledger.execution import builders
from agent_ledger.execution.builders import InscriptionInput, RegistryType
from agent_ledger.execution.request import Network
from agent_ledger.execution.schema import RequestValidationError


class TestHcs2Builders:
    def test_create_registry_defaults(self) -> None:
        request = builders.hcs2_create_registry("testnet")
        assert request.operation_name == builders.HCS2_CREATE_REGISTRY
        assert request.plain_payload() == {
            "options": {"registryType": RegistryType.INDEXED, "ttl": 86400}
        }
        assert request.requires_confirmation is False

    def test_create_registry_with_keys(self) -> None:
        request = builders.hcs2_create_registry(
            Network.MAINNET,
            registry_type=RegistryType.NON_INDEXED,
            ttl=3600,
            admin_key=True,
            submit_key="302a300506032b6570032100" + "ab" * 32,
        )
        options = request.plain_payload()["options"]
        assert options["registryType"] == 1
        assert options["adminKey"] is True
        assert request.network is Network.MAINNET

    def test_register_entry(self) -> None:
        request = builders.hcs2_register_entry(
            Network.TESTNET, "0.0.100", "0.0.200", metadata="hcs://1/0.0.300"
        )
        assert request.plain_payload() == {
            "registryTopicId": "0.0.100",
            "options": {"targetTopicId": "0.0.200", "metadata": "hcs://1/0.0.300"},
        }

    def test_update_entry(self) -> None:
        request = builders.hcs2_update_entry(
            Network.TESTNET, "0.0.100", "7", "0.0.201", memo="v2"
        )
        assert request.operation_name == builders.HCS2_UPDATE_ENTRY
        assert request.plain_payload()["options"] == {
            "targetTopicId": "0.0.201", "uid": "7", "memo": "v2",
        }

    def test_delete_entry(self) -> None:
        request = builders.hcs2_delete_entry(Network.TESTNET, "0.0.100", "7")
        assert request.plain_payload() == {
            "registryTopicId": "0.0.100", "options": {"uid": "7"},
        }

    def test_migrate_registry(self) -> None:
        request = builders.hcs2_migrate_registry(Network.TESTNET, "0.0.100", "0.0.999")
        assert request.operation_name == builders.HCS2_MIGRATE_REGISTRY
        assert request.plain_payload()["options"]["targetTopicId"] == "0.0.999"

    def test_submit_message_serializes_objects(self) -> None:
        request = builders.hcs2_submit_message(
            Network.TESTNET, "0.0.100", {"p": "hcs-2", "op": "register"}
        )
        assert request.plain_payload() == {
            "topicId": "0.0.100",
            "payload": '{"op":"register","p":"hcs-2"}',
        }

    def test_submit_message_passes_text_through(self) -> None:
        request = builders.hcs2_submit_message(Network.TESTNET, "0.0.100", "hello")
        assert request.payload["payload"] == "hello"


class TestHcs6Builders:
    def test_create_registry(self) -> None:
        request = builders.hcs6_create_registry("testnet", ttl=7200)
        assert request.operation_name == builders.HCS6_CREATE_REGISTRY
        assert request.plain_payload() == {"options": {"ttl": 7200}}

    def test_register_entry(self) -> None:
        request = builders.hcs6_register_entry(
            Network.TESTNET, "0.0.100", "0.0.200", memo="latest"
        )
        assert request.family == "hcs6"
        assert request.plain_payload()["options"] == {
            "targetTopicId": "0.0.200", "memo": "latest",
        }

    def test_submit_message(self) -> None:
        request = builders.hcs6_submit_message(Network.TESTNET, "0.0.100", None)
        assert request.payload["payload"] == "{}"


class TestSchemaValidation:
    def test_bad_topic_id(self) -> None:
        with pytest.raises(RequestValidationError) as exc_info:
            builders.hcs2_register_entry(Network.TESTNET, "topic-1", "0.0.200")
        assert exc_info.value.operation_name == builders.HCS2_REGISTER_ENTRY

    def test_memo_too_long(self) -> None:
        with pytest.raises(RequestValidationError):
            builders.hcs2_delete_entry(
                Network.TESTNET, "0.0.100", "7", memo="x" * (builders.MAX_MEMO_CHARS + 1)
            )

    def test_empty_uid(self) -> None:
        with pytest.raises(RequestValidationError):
            builders.hcs2_delete_entry(Network.TESTNET, "0.0.100", "")

    def test_bad_registry_type(self) -> None:
        with pytest.raises(RequestValidationError):
            builders.hcs2_create_registry(Network.TESTNET, registry_type=5)

    def test_zero_ttl(self) -> None:
        with pytest.raises(RequestValidationError):
            builders.hcs6_create_registry(Network.TESTNET, ttl=0)

    def test_bad_inscription_mode(self) -> None:
        with pytest.raises(RequestValidationError):
            builders.inscribe(
                Network.TESTNET, InscriptionInput.from_url("https://x"), mode="bogus"
            )

    def test_validation_error_is_value_error(self) -> None:
        with pytest.raises(ValueError):
            builders.hcs6_register_entry(Network.TESTNET, "0.0.100", "nope")


class TestInscribe:
    def test_requires_confirmation(self) -> None:
        request = builders.inscribe(
            Network.TESTNET, InscriptionInput.from_url("https://example.com/a.png")
        )
        assert request.operation_name == builders.INSCRIBE
        assert request.requires_confirmation is True
        assert request.plain_payload() == {
            "source": {"type": "url", "url": "https://example.com/a.png"},
            "options": {"mode": "file"},
        }

    def test_buffer_source_is_base64(self) -> None:
        request = builders.inscribe(
            Network.TESTNET,
            InscriptionInput.from_buffer(b"hello", "hello.txt", "text/plain"),
            tags=["greeting"],
        )
        payload = request.plain_payload()
        assert payload["source"] == {
            "type": "buffer",
            "base64": base64.b64encode(b"hello").decode("ascii"),
            "fileName": "hello.txt",
            "mimeType": "text/plain",
        }
        assert payload["options"]["tags"] == ["greeting"]


class TestInscriptionStartRequest:
    def test_url_source(self) -> None:
        request = builders.inscribe(
            Network.TESTNET,
            InscriptionInput.from_url("https://example.com/a.png"),
            chunk_size=1024,
        )
        start = builders.build_inscription_start_request(request, "0.0.1234")
        assert start == {
            "holderId": "0.0.1234",
            "metadata": {},
            "tags": [],
            "mode": "file",
            "chunkSize": 1024,
            "file": {"type": "url", "url": "https://example.com/a.png"},
        }

    def test_file_source_becomes_path(self) -> None:
        request = builders.inscribe(
            Network.TESTNET, InscriptionInput.from_file("/tmp/art.png")
        )
        start = builders.build_inscription_start_request(request, "0.0.1")
        assert start["file"] == {"type": "path", "path": "/tmp/art.png"}

    def test_buffer_source_becomes_base64(self) -> None:
        request = builders.inscribe(
            Network.TESTNET, InscriptionInput.from_buffer(b"\x00\x01", "a.bin")
        )
        start = builders.build_inscription_start_request(request, "0.0.1")
        assert start["file"] == {
            "type": "base64", "base64": "AAE=", "fileName": "a.bin",
        }

    def test_hashinal_extras(self) -> None:
        request = builders.inscribe(
            Network.MAINNET,
            InscriptionInput.from_url("https://example.com/a.png"),
            mode="hashinal",
            metadata={"name": "Art", "creator": "0.0.77", "description": "one of one"},
            json_file_url="https://example.com/meta.json",
        )
        start = builders.build_inscription_start_request(request, "0.0.1")
        assert start["mode"] == "hashinal"
        assert start["metadataObject"] == start["metadata"]
        assert start["creator"] == "0.0.77"
        assert start["description"] == "one of one"
        assert start["jsonFileURL"] == "https://example.com/meta.json"

    def test_hashinal_creator_defaults_to_holder(self) -> None:
        request = builders.inscribe(
            Network.TESTNET, InscriptionInput.from_url("https://x/a"), mode="hashinal",
        )
        start = builders.build_inscription_start_request(request, "0.0.1")
        assert start["creator"] == "0.0.1"
        assert "description" not in start
        assert "jsonFileURL" not in start


class TestHcs10Builders:
    def test_send_message(self) -> None:
        request = builders.send_message(
            Network.TESTNET, "0.0.700", {"op": "message", "text": "hi"}, memo="greeting"
        )
        assert request.operation_name == builders.HCS10_SEND_MESSAGE == "sendMessage"
        assert request.plain_payload() == {
            "topicId": "0.0.700",
            "data": '{"op":"message","text":"hi"}',
            "memo": "greeting",
        }
        assert request.requires_confirmation is False

    def test_send_message_text_without_memo(self) -> None:
        request = builders.send_message(Network.TESTNET, "0.0.700", "plain text")
        assert request.plain_payload() == {"topicId": "0.0.700", "data": "plain text"}

    def test_submit_connection_request(self) -> None:
        request = builders.submit_connection_request(
            Network.MAINNET, "0.0.800", memo="hello agent"
        )
        assert request.operation_name == "submitConnectionRequest"
        assert request.network is Network.MAINNET
        assert request.plain_payload() == {
            "inboundTopicId": "0.0.800", "memo": "hello agent",
        }

    def test_handle_connection_request(self) -> None:
        request = builders.handle_connection_request(
            Network.TESTNET, "0.0.800", "0.0.1234", 17
        )
        assert request.operation_name == "handleConnectionRequest"
        assert request.plain_payload() == {
            "inboundTopicId": "0.0.800",
            "requestingAccountId": "0.0.1234",
            "connectionRequestId": 17,
        }

    def test_bad_connection_topic(self) -> None:
        with pytest.raises(RequestValidationError):
            builders.send_message(Network.TESTNET, "connection-1", "hi")

    def test_bad_requesting_account(self) -> None:
        with pytest.raises(RequestValidationError):
            builders.handle_connection_request(Network.TESTNET, "0.0.800", "alice", 1)

    def test_negative_connection_request_id(self) -> None:
        with pytest.raises(RequestValidationError):
            builders.handle_connection_request(Network.TESTNET, "0.0.800", "0.0.1", -1)

    def test_long_memo_rejected(self) -> None:
        with pytest.raises(RequestValidationError):
            builders.submit_connection_request(
                Network.TESTNET, "0.0.800", memo="m" * (builders.MAX_MEMO_CHARS + 1)
            )
