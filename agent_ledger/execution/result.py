"""
Execution result: the single value the broker hands back.

Exactly one variant is produced per call:

    - ``Success``: the operation reached a state known to the caller.
      ``ledger_result.confirmed`` tells whether the read side has seen it;
      a slow inscription that exhausted its confirmation budget is still
      a Success, with ``confirmed=False``.
    - ``PendingSignature``: unsigned bytes were produced but nothing was
      submitted (``ExecutionBroker.prepare``). Not an error.
    - ``Failure``: a stable ``kind`` plus a human-readable ``message``.

Every variant serializes via ``to_dict()`` for the business layer that
turns results into user-facing responses.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any, Literal

from agent_ledger.execution.request import Network

DEFAULT_MAX_ATTEMPTS = 60
DEFAULT_INTERVAL_MS = 5000


# =========================================================================
# Enums
# =========================================================================


class ErrorKind(StrEnum):
    """Coded error taxonomy."""

    WALLET_UNAVAILABLE = "wallet_unavailable"
    WALLET_SUBMIT_FAILED = "wallet_submit_failed"
    OPERATION_FAILED = "operation_failed"


class StrategyPath(StrEnum):
    """Which execution strategy performed the submission."""

    DIRECT_SIGNER = "direct_signer"
    WALLET = "wallet"
    SERVER = "server"


# =========================================================================
# LedgerResult
# =========================================================================


@dataclass(frozen=True)
class LedgerResult:
    """What is known about a submitted operation.

    Attributes:
        path: Strategy that submitted the operation.
        transaction_id: Ledger transaction id, when one is known.
        confirmed: False only when the operation needed read-side
            confirmation and it was not observed (not waited for, or the
            polling budget ran out).
        topic_id: Topic created or written to, when known.
        job_id: Id of the off-ledger job that produced the bytes.
        status: Last status string reported by the ledger or service.
        completed: Completion flag reported alongside ``status``.
        details: Extra collaborator-specific fields (opaque).
    """

    path: StrategyPath
    transaction_id: str | None = None
    confirmed: bool = True
    topic_id: str | None = None
    job_id: str | None = None
    status: str | None = None
    completed: bool | None = None
    details: Mapping[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, object]:
        result: dict[str, object] = {
            "path": str(self.path),
            "confirmed": self.confirmed,
        }
        if self.transaction_id is not None:
            result["transaction_id"] = self.transaction_id
        if self.topic_id is not None:
            result["topic_id"] = self.topic_id
        if self.job_id is not None:
            result["job_id"] = self.job_id
        if self.status is not None:
            result["status"] = self.status
        if self.completed is not None:
            result["completed"] = self.completed
        if self.details:
            result["details"] = dict(self.details)
        return result


# =========================================================================
# Variants
# =========================================================================


@dataclass(frozen=True)
class Success:
    ledger_result: LedgerResult

    status: Literal["success"] = field(default="success", init=False)

    def to_dict(self) -> dict[str, object]:
        return {"status": self.status, "result": self.ledger_result.to_dict()}


@dataclass(frozen=True)
class PendingSignature:
    """Unsigned bytes waiting for manual wallet approval."""

    operation_name: str
    unsigned_bytes: str
    network: Network
    description: str = ""

    status: Literal["pending_signature"] = field(
        default="pending_signature", init=False
    )

    def to_dict(self) -> dict[str, object]:
        return {
            "status": self.status,
            "operation_name": self.operation_name,
            "transaction_bytes": self.unsigned_bytes,
            "network": str(self.network),
            "description": self.description,
        }


@dataclass(frozen=True)
class Failure:
    kind: ErrorKind
    message: str

    status: Literal["failure"] = field(default="failure", init=False)

    def to_dict(self) -> dict[str, object]:
        return {"status": self.status, "kind": str(self.kind), "message": self.message}


ExecutionResult = Success | PendingSignature | Failure


# =========================================================================
# Options
# =========================================================================


@dataclass(frozen=True)
class ExecuteOptions:
    """Per-call knobs for ``ExecutionBroker.execute``.

    Only operations that require confirmation (inscriptions submitted
    through a wallet) look at the polling knobs. ``max_attempts=0``
    returns the partial result without reading.
    """

    wait_for_confirmation: bool = True
    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    interval_ms: int = DEFAULT_INTERVAL_MS

    def __post_init__(self) -> None:
        if self.max_attempts < 0:
            raise ValueError(f"max_attempts must be >= 0, got: {self.max_attempts}")
        if self.interval_ms < 0:
            raise ValueError(f"interval_ms must be >= 0, got: {self.interval_ms}")
