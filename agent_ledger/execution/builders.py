"""
Request builders: domain arguments in, OperationRequest out.

One function per operation. Each builds the camelCase payload that
external delegate builders and write clients consume, validates it
against the operation's JSON Schema, and wraps it in an OperationRequest.

Payload shapes:
    registry mutations:  {"registryTopicId": ..., "options": {...}}
    registry creation:   {"options": {...}}
    topic messages:      {"topicId": ..., "payload": "<text>"}
    connection messages: {"topicId": ..., "data": "<text>", "memo"?: ...}
    connection requests: {"inboundTopicId": ..., ...}
    inscriptions:        {"source": {...}, "options": {...}}

Only inscriptions require read-side confirmation.
"""

from __future__ import annotations

import base64
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

from agent_ledger.canonical_json import message_text
from agent_ledger.execution.request import Network, OperationRequest, thaw
from agent_ledger.execution.schema import validate

# =========================================================================
# Operation names
# =========================================================================

HCS2_CREATE_REGISTRY = "hcs2.createRegistry"
HCS2_REGISTER_ENTRY = "hcs2.registerEntry"
HCS2_UPDATE_ENTRY = "hcs2.updateEntry"
HCS2_DELETE_ENTRY = "hcs2.deleteEntry"
HCS2_MIGRATE_REGISTRY = "hcs2.migrateRegistry"
HCS2_SUBMIT_MESSAGE = "hcs2.submitMessage"
HCS6_CREATE_REGISTRY = "hcs6.createRegistry"
HCS6_REGISTER_ENTRY = "hcs6.registerEntry"
HCS6_SUBMIT_MESSAGE = "hcs6.submitMessage"
HCS10_SEND_MESSAGE = "sendMessage"
HCS10_SUBMIT_CONNECTION_REQUEST = "submitConnectionRequest"
HCS10_HANDLE_CONNECTION_REQUEST = "handleConnectionRequest"
INSCRIBE = "inscription.inscribe"

DEFAULT_REGISTRY_TTL = 86400
MAX_MEMO_CHARS = 500


class RegistryType:
    INDEXED = 0
    NON_INDEXED = 1


# =========================================================================
# Schemas
# =========================================================================

_TOPIC_ID = {"type": "string", "pattern": r"^\d+\.\d+\.\d+$"}
_ACCOUNT_ID = _TOPIC_ID
_MEMO = {"type": "string", "maxLength": MAX_MEMO_CHARS}
_KEY = {"type": ["string", "boolean"]}
_TTL = {"type": "integer", "minimum": 1}


def _options_schema(properties: dict[str, Any], required: list[str]) -> dict[str, Any]:
    return {
        "type": "object",
        "properties": properties,
        "required": required,
        "additionalProperties": False,
    }


def _registry_schema(options: dict[str, Any]) -> dict[str, Any]:
    return {
        "type": "object",
        "properties": {"registryTopicId": _TOPIC_ID, "options": options},
        "required": ["registryTopicId", "options"],
    }


_MESSAGE_SCHEMA = {
    "type": "object",
    "properties": {"topicId": _TOPIC_ID, "payload": {"type": "string"}},
    "required": ["topicId", "payload"],
}

SCHEMAS: dict[str, dict[str, Any]] = {
    HCS2_CREATE_REGISTRY: {
        "type": "object",
        "properties": {
            "options": _options_schema(
                {
                    "registryType": {"enum": [RegistryType.INDEXED, RegistryType.NON_INDEXED]},
                    "ttl": _TTL,
                    "adminKey": _KEY,
                    "submitKey": _KEY,
                },
                ["registryType", "ttl"],
            ),
        },
        "required": ["options"],
    },
    HCS2_REGISTER_ENTRY: _registry_schema(
        _options_schema(
            {"targetTopicId": _TOPIC_ID, "metadata": {"type": "string"}, "memo": _MEMO},
            ["targetTopicId"],
        )
    ),
    HCS2_UPDATE_ENTRY: _registry_schema(
        _options_schema(
            {
                "targetTopicId": _TOPIC_ID,
                "uid": {"type": "string", "minLength": 1},
                "metadata": {"type": "string"},
                "memo": _MEMO,
            },
            ["targetTopicId", "uid"],
        )
    ),
    HCS2_DELETE_ENTRY: _registry_schema(
        _options_schema(
            {"uid": {"type": "string", "minLength": 1}, "memo": _MEMO},
            ["uid"],
        )
    ),
    HCS2_MIGRATE_REGISTRY: _registry_schema(
        _options_schema(
            {"targetTopicId": _TOPIC_ID, "metadata": {"type": "string"}, "memo": _MEMO},
            ["targetTopicId"],
        )
    ),
    HCS2_SUBMIT_MESSAGE: _MESSAGE_SCHEMA,
    HCS6_CREATE_REGISTRY: {
        "type": "object",
        "properties": {"options": _options_schema({"ttl": _TTL}, ["ttl"])},
        "required": ["options"],
    },
    HCS6_REGISTER_ENTRY: _registry_schema(
        _options_schema(
            {"targetTopicId": _TOPIC_ID, "memo": _MEMO},
            ["targetTopicId"],
        )
    ),
    HCS6_SUBMIT_MESSAGE: _MESSAGE_SCHEMA,
    HCS10_SEND_MESSAGE: {
        "type": "object",
        "properties": {"topicId": _TOPIC_ID, "data": {"type": "string"}, "memo": _MEMO},
        "required": ["topicId", "data"],
        "additionalProperties": False,
    },
    HCS10_SUBMIT_CONNECTION_REQUEST: {
        "type": "object",
        "properties": {"inboundTopicId": _TOPIC_ID, "memo": _MEMO},
        "required": ["inboundTopicId"],
        "additionalProperties": False,
    },
    HCS10_HANDLE_CONNECTION_REQUEST: {
        "type": "object",
        "properties": {
            "inboundTopicId": _TOPIC_ID,
            "requestingAccountId": _ACCOUNT_ID,
            "connectionRequestId": {"type": "integer", "minimum": 0},
            "memo": _MEMO,
        },
        "required": ["inboundTopicId", "requestingAccountId", "connectionRequestId"],
        "additionalProperties": False,
    },
    INSCRIBE: {
        "type": "object",
        "properties": {
            "source": {
                "oneOf": [
                    {
                        "type": "object",
                        "properties": {
                            "type": {"const": "url"},
                            "url": {"type": "string", "minLength": 1},
                        },
                        "required": ["type", "url"],
                    },
                    {
                        "type": "object",
                        "properties": {
                            "type": {"const": "file"},
                            "path": {"type": "string", "minLength": 1},
                        },
                        "required": ["type", "path"],
                    },
                    {
                        "type": "object",
                        "properties": {
                            "type": {"const": "buffer"},
                            "base64": {"type": "string"},
                            "fileName": {"type": "string", "minLength": 1},
                            "mimeType": {"type": "string"},
                        },
                        "required": ["type", "base64", "fileName"],
                    },
                ],
            },
            "options": _options_schema(
                {
                    "mode": {"enum": ["file", "upload", "hashinal"]},
                    "metadata": {"type": "object"},
                    "tags": {"type": "array", "items": {"type": "string"}},
                    "fileStandard": {"type": "string"},
                    "chunkSize": {"type": "integer", "minimum": 1},
                    "jsonFileURL": {"type": "string"},
                },
                ["mode"],
            ),
        },
        "required": ["source", "options"],
    },
}


def _compact(values: Mapping[str, Any]) -> dict[str, Any]:
    """Drop None-valued optional fields."""
    return {k: v for k, v in values.items() if v is not None}


def _build(
    operation_name: str,
    network: Network | str,
    payload: dict[str, Any],
    *,
    requires_confirmation: bool = False,
) -> OperationRequest:
    validate(operation_name, payload, SCHEMAS[operation_name])
    return OperationRequest(
        operation_name=operation_name,
        network=Network.parse(network),
        payload=payload,
        requires_confirmation=requires_confirmation,
    )


# =========================================================================
# HCS-2 registries
# =========================================================================


def hcs2_create_registry(
    network: Network | str,
    *,
    registry_type: int = RegistryType.INDEXED,
    ttl: int = DEFAULT_REGISTRY_TTL,
    admin_key: str | bool | None = None,
    submit_key: str | bool | None = None,
) -> OperationRequest:
    options = _compact({
        "registryType": registry_type,
        "ttl": ttl,
        "adminKey": admin_key,
        "submitKey": submit_key,
    })
    return _build(HCS2_CREATE_REGISTRY, network, {"options": options})


def hcs2_register_entry(
    network: Network | str,
    registry_topic_id: str,
    target_topic_id: str,
    *,
    metadata: str | None = None,
    memo: str | None = None,
) -> OperationRequest:
    options = _compact({
        "targetTopicId": target_topic_id,
        "metadata": metadata,
        "memo": memo,
    })
    return _build(
        HCS2_REGISTER_ENTRY, network,
        {"registryTopicId": registry_topic_id, "options": options},
    )


def hcs2_update_entry(
    network: Network | str,
    registry_topic_id: str,
    uid: str,
    target_topic_id: str,
    *,
    metadata: str | None = None,
    memo: str | None = None,
) -> OperationRequest:
    options = _compact({
        "targetTopicId": target_topic_id,
        "uid": uid,
        "metadata": metadata,
        "memo": memo,
    })
    return _build(
        HCS2_UPDATE_ENTRY, network,
        {"registryTopicId": registry_topic_id, "options": options},
    )


def hcs2_delete_entry(
    network: Network | str,
    registry_topic_id: str,
    uid: str,
    *,
    memo: str | None = None,
) -> OperationRequest:
    options = _compact({"uid": uid, "memo": memo})
    return _build(
        HCS2_DELETE_ENTRY, network,
        {"registryTopicId": registry_topic_id, "options": options},
    )


def hcs2_migrate_registry(
    network: Network | str,
    registry_topic_id: str,
    target_topic_id: str,
    *,
    metadata: str | None = None,
    memo: str | None = None,
) -> OperationRequest:
    options = _compact({
        "targetTopicId": target_topic_id,
        "metadata": metadata,
        "memo": memo,
    })
    return _build(
        HCS2_MIGRATE_REGISTRY, network,
        {"registryTopicId": registry_topic_id, "options": options},
    )


def hcs2_submit_message(
    network: Network | str, topic_id: str, payload: Any
) -> OperationRequest:
    return _build(
        HCS2_SUBMIT_MESSAGE, network,
        {"topicId": topic_id, "payload": message_text(payload)},
    )


# =========================================================================
# HCS-6 registries
# =========================================================================


def hcs6_create_registry(
    network: Network | str, *, ttl: int = DEFAULT_REGISTRY_TTL
) -> OperationRequest:
    return _build(HCS6_CREATE_REGISTRY, network, {"options": {"ttl": ttl}})


def hcs6_register_entry(
    network: Network | str,
    registry_topic_id: str,
    target_topic_id: str,
    *,
    memo: str | None = None,
) -> OperationRequest:
    options = _compact({"targetTopicId": target_topic_id, "memo": memo})
    return _build(
        HCS6_REGISTER_ENTRY, network,
        {"registryTopicId": registry_topic_id, "options": options},
    )


def hcs6_submit_message(
    network: Network | str, topic_id: str, payload: Any
) -> OperationRequest:
    return _build(
        HCS6_SUBMIT_MESSAGE, network,
        {"topicId": topic_id, "payload": message_text(payload)},
    )


# =========================================================================
# HCS-10 agent connections
# =========================================================================


def send_message(
    network: Network | str,
    connection_topic_id: str,
    data: Any,
    *,
    memo: str | None = None,
) -> OperationRequest:
    """Message on an established connection topic."""
    return _build(
        HCS10_SEND_MESSAGE, network,
        _compact({
            "topicId": connection_topic_id,
            "data": message_text(data),
            "memo": memo,
        }),
    )


def submit_connection_request(
    network: Network | str,
    inbound_topic_id: str,
    *,
    memo: str | None = None,
) -> OperationRequest:
    return _build(
        HCS10_SUBMIT_CONNECTION_REQUEST, network,
        _compact({"inboundTopicId": inbound_topic_id, "memo": memo}),
    )


def handle_connection_request(
    network: Network | str,
    inbound_topic_id: str,
    requesting_account_id: str,
    connection_request_id: int,
    *,
    memo: str | None = None,
) -> OperationRequest:
    """Accept request ``connection_request_id`` received on our inbound topic."""
    return _build(
        HCS10_HANDLE_CONNECTION_REQUEST, network,
        _compact({
            "inboundTopicId": inbound_topic_id,
            "requestingAccountId": requesting_account_id,
            "connectionRequestId": connection_request_id,
            "memo": memo,
        }),
    )


# =========================================================================
# Inscriptions
# =========================================================================


class InputKind(StrEnum):
    URL = "url"
    FILE = "file"
    BUFFER = "buffer"


@dataclass(frozen=True)
class InscriptionInput:
    """Content to inscribe: a URL, a local file path, or raw bytes."""

    kind: InputKind
    url: str | None = None
    path: str | None = None
    data: bytes | None = None
    file_name: str | None = None
    mime_type: str | None = None

    @classmethod
    def from_url(cls, url: str) -> InscriptionInput:
        return cls(kind=InputKind.URL, url=url)

    @classmethod
    def from_file(cls, path: str) -> InscriptionInput:
        return cls(kind=InputKind.FILE, path=path)

    @classmethod
    def from_buffer(
        cls, data: bytes, file_name: str, mime_type: str | None = None
    ) -> InscriptionInput:
        return cls(
            kind=InputKind.BUFFER, data=data, file_name=file_name, mime_type=mime_type
        )

    def to_payload(self) -> dict[str, Any]:
        if self.kind is InputKind.URL:
            return {"type": "url", "url": self.url}
        if self.kind is InputKind.FILE:
            return {"type": "file", "path": self.path}
        return _compact({
            "type": "buffer",
            "base64": base64.b64encode(self.data or b"").decode("ascii"),
            "fileName": self.file_name,
            "mimeType": self.mime_type,
        })


def inscribe(
    network: Network | str,
    source: InscriptionInput,
    *,
    mode: str = "file",
    metadata: Mapping[str, Any] | None = None,
    tags: Iterable[str] = (),
    file_standard: str | None = None,
    chunk_size: int | None = None,
    json_file_url: str | None = None,
) -> OperationRequest:
    """Build an inscription request.

    Inscriptions are only observable on the read side, so the request is
    marked ``requires_confirmation``.
    """
    options = _compact({
        "mode": mode,
        "metadata": dict(metadata) if metadata is not None else None,
        "tags": list(tags) or None,
        "fileStandard": file_standard,
        "chunkSize": chunk_size,
        "jsonFileURL": json_file_url,
    })
    return _build(
        INSCRIBE, network,
        {"source": source.to_payload(), "options": options},
        requires_confirmation=True,
    )


def build_inscription_start_request(
    request: OperationRequest, holder_id: str
) -> dict[str, Any]:
    """Shape an inscription request the way the inscription service expects.

    Used by wallet delegates: the connected wallet's account becomes the
    holder, file sources become url/path/base64 descriptors, and hashinal
    mode carries its metadata object, creator and description.
    """
    payload = thaw(request.payload)
    options: dict[str, Any] = payload.get("options", {})
    source: dict[str, Any] = payload["source"]
    metadata: dict[str, Any] = options.get("metadata") or {}
    mode = options.get("mode") or "file"

    start: dict[str, Any] = {
        "holderId": holder_id,
        "metadata": metadata,
        "tags": options.get("tags") or [],
        "mode": mode,
    }
    if "fileStandard" in options:
        start["fileStandard"] = options["fileStandard"]
    if "chunkSize" in options:
        start["chunkSize"] = options["chunkSize"]

    kind = source["type"]
    if kind == InputKind.URL:
        start["file"] = {"type": "url", "url": source["url"]}
    elif kind == InputKind.FILE:
        start["file"] = {"type": "path", "path": source["path"]}
    else:
        start["file"] = _compact({
            "type": "base64",
            "base64": source["base64"],
            "fileName": source["fileName"],
            "mimeType": source.get("mimeType"),
        })

    if mode == "hashinal":
        start["metadataObject"] = metadata
        start["creator"] = metadata.get("creator") or holder_id
        if metadata.get("description") is not None:
            start["description"] = metadata["description"]
        if options.get("jsonFileURL"):
            start["jsonFileURL"] = options["jsonFileURL"]
    return start
