"""
Ledger collaborator protocols: the network boundary.

The broker depends on these interfaces, not on concrete SDKs, so every
path can be exercised with fakes.

    - ``LedgerWriteClient``: server-autonomous submission with the
      operator credential.
    - ``LedgerReadClient``: eventually-consistent read side, used only by
      the confirmation poller.
    - ``DirectSigner``: an in-process signer that submits on its own
      (e.g. a connected dApp signer).

Read results are boring frozen dataclasses. "Not yet indexed" is
``found=False``, not an exception.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from agent_ledger.execution.credential import OperatorCredential
    from agent_ledger.execution.request import OperationRequest
    from agent_ledger.execution.result import LedgerResult

TERMINAL_STATUS = "completed"


@dataclass(frozen=True)
class RetrievedState:
    """Read-side view of a submitted transaction.

    Attributes:
        found: Whether the read side knows the transaction at all.
        status: Service-reported status ("pending", "processing",
            "completed", ...). None if not reported.
        topic_id: Topic the operation produced or wrote to. None until
            the read side has indexed it.
        raw: The parsed response, for callers that need more.
    """

    found: bool
    status: str | None = None
    topic_id: str | None = None
    raw: Mapping[str, Any] = field(default_factory=dict)

    def is_terminal(self, fallback_topic_id: str | None = None) -> bool:
        """True once the state is completed or a concrete topic id exists.

        ``fallback_topic_id`` is the topic id returned when the
        transaction was started; once the read side finds the
        transaction, that topic id counts.
        """
        if not self.found:
            return False
        if self.status == TERMINAL_STATUS:
            return True
        return bool(self.topic_id or fallback_topic_id)


@runtime_checkable
class LedgerReadClient(Protocol):
    """Read side used for confirmation polling."""

    async def retrieve_state(self, transaction_id: str) -> RetrievedState:
        """Fetch the current state of a submitted transaction.

        May raise on transport failures; the poller treats any exception
        as transient.
        """
        ...


@runtime_checkable
class LedgerWriteClient(Protocol):
    """Write client for the server-autonomous path."""

    async def submit(
        self,
        request: OperationRequest,
        credential: OperatorCredential,
    ) -> LedgerResult:
        """Sign with the operator credential and submit.

        Raises on rejection (validation, network); the broker maps the
        exception to ``operation_failed``.
        """
        ...


@runtime_checkable
class DirectSigner(Protocol):
    """A signer that executes operations itself."""

    @property
    def account_id(self) -> str:
        """Account the signer pays and signs for."""
        ...

    async def execute(self, request: OperationRequest) -> LedgerResult:
        """Sign and submit the operation; raise on failure."""
        ...
