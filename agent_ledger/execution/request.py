"""
Operation request: what the agent wants written to the ledger.

An OperationRequest is the canonical, broker-facing description of one
ledger-changing operation. It is:

    - **Named**: ``operation_name`` selects the delegate builder and the
      write-client operation (e.g. "hcs2.registerEntry").
    - **Serializable**: the payload must round-trip through canonical JSON.
    - **Immutable**: the payload is deep-frozen at construction; callers
      cannot mutate it afterwards, and neither can collaborators.
    - **Hashable by content**: request_digest = sha256(canonical_json(...)).

Requests are owned by the call that built them and discarded once the
broker resolves them.

Invariants:
    - operation_name: dotted identifier, e.g. "sendMessage", "hcs6.createRegistry".
    - network: "mainnet" or "testnet".
    - payload: JSON object (str keys), no NaN/Infinity.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from types import MappingProxyType
from typing import Any

from agent_ledger.canonical_json import canonical_json, canonical_json_bytes
from agent_ledger.integrity import sha256_digest

_OPERATION_NAME_RE = re.compile(r"^[A-Za-z][A-Za-z0-9]*(\.[A-Za-z][A-Za-z0-9]*)*$")


class Network(StrEnum):
    """Target ledger network."""

    MAINNET = "mainnet"
    TESTNET = "testnet"

    @classmethod
    def parse(cls, value: str | Network) -> Network:
        """Anything mentioning mainnet is mainnet; everything else is testnet."""
        if isinstance(value, Network):
            return value
        return cls.MAINNET if "mainnet" in str(value).lower() else cls.TESTNET


# =========================================================================
# Freezing helpers
# =========================================================================


def _freeze(value: Any) -> Any:
    if isinstance(value, Mapping):
        return MappingProxyType({k: _freeze(v) for k, v in value.items()})
    if isinstance(value, (list, tuple)):
        return tuple(_freeze(v) for v in value)
    return value


def thaw(value: Any) -> Any:
    """Turn a frozen payload back into plain dicts and lists."""
    if isinstance(value, Mapping):
        return {k: thaw(v) for k, v in value.items()}
    if isinstance(value, tuple):
        return [thaw(v) for v in value]
    return value


def _validate_operation_name(value: str) -> None:
    if not _OPERATION_NAME_RE.match(value):
        raise ValueError(
            f"operation_name must be a dotted identifier, got: {value!r}"
        )


def _validate_payload(value: Mapping[str, Any]) -> None:
    if not isinstance(value, Mapping):
        raise ValueError(f"payload must be a mapping, got: {type(value).__name__}")
    for key in value:
        if not isinstance(key, str):
            raise ValueError(f"payload keys must be strings, got: {key!r}")
    try:
        canonical_json(thaw(value))
    except (TypeError, ValueError) as exc:
        raise ValueError(f"payload is not JSON-serializable: {exc}") from exc


# =========================================================================
# OperationRequest
# =========================================================================


@dataclass(frozen=True)
class OperationRequest:
    """One ledger-changing operation, ready for the broker.

    Required:
        operation_name: Dotted operation identifier.
        network: Target network.

    Optional:
        payload: Serializable parameter map (camelCase keys, as consumed
            by external delegate builders).
        requires_confirmation: True for operations whose outcome is only
            observable on the read side (inscriptions).
    """

    operation_name: str
    network: Network
    payload: Mapping[str, Any] = field(default_factory=dict)
    requires_confirmation: bool = False

    def __post_init__(self) -> None:
        _validate_operation_name(self.operation_name)
        _validate_payload(self.payload)
        object.__setattr__(self, "network", Network(self.network))
        object.__setattr__(self, "payload", _freeze(self.payload))

    @property
    def family(self) -> str:
        """Operation family, e.g. "hcs2" for "hcs2.registerEntry"."""
        return self.operation_name.split(".", 1)[0]

    def plain_payload(self) -> dict[str, Any]:
        """A mutable deep copy of the payload."""
        result: dict[str, Any] = thaw(self.payload)
        return result

    # --- Canonical representation ---

    def to_canonical_dict(self) -> dict[str, object]:
        return {
            "operation_name": self.operation_name,
            "network": str(self.network),
            "payload": self.plain_payload(),
            "requires_confirmation": self.requires_confirmation,
        }

    def request_digest(self) -> str:
        """SHA256 of the canonical request (64 hex chars, no prefix)."""
        return sha256_digest(canonical_json_bytes(self.to_canonical_dict()))

    # --- Serialization ---

    def to_dict(self) -> dict[str, object]:
        return self.to_canonical_dict()

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> OperationRequest:
        return cls(
            operation_name=data["operation_name"],
            network=Network.parse(data["network"]),
            payload=data.get("payload", {}),
            requires_confirmation=bool(data.get("requires_confirmation", False)),
        )
