"""
Transaction execution and confirmation broker.

Public API:

    Requests:
        - ``OperationRequest`` / ``Network``: what to write, and where.
        - Request builders (``hcs2_*``, ``hcs6_*``, HCS-10 connections,
          ``inscribe``) in ``agent_ledger.execution.builders``.

    Strategy configuration (inject into the broker):
        - ``ExecutionStrategyConfig``: signer provider, wallet info
          resolver, operation delegates, wallet executor, wallet-only flag.
        - ``SignerCapability``, ``WalletInfo``, ``UnsignedTransaction``,
          ``WalletSubmission``: hook value types.

    Broker:
        - ``ExecutionBroker.execute()``: sign + submit, optionally confirm.
        - ``ExecutionBroker.prepare()``: unsigned bytes only.

    Results:
        - ``Success`` / ``PendingSignature`` / ``Failure`` with
          ``LedgerResult`` and ``ErrorKind``.

    Confirmation:
        - ``ConfirmationPoller``: bounded read-side polling.

    Protocols (for dependency injection):
        - ``LedgerWriteClient``, ``LedgerReadClient``, ``DirectSigner``.
"""

from agent_ledger.execution.broker import ExecutionBroker, StrategyOutcome
from agent_ledger.execution.client import (
    DirectSigner,
    LedgerReadClient,
    LedgerWriteClient,
    RetrievedState,
)
from agent_ledger.execution.credential import OperatorCredential
from agent_ledger.execution.errors import (
    CodedError,
    Stage,
    classify_exception,
    failure_from_exception,
)
from agent_ledger.execution.poller import (
    ConfirmationPoller,
    Confirmed,
    PollState,
    StillPending,
)
from agent_ledger.execution.request import Network, OperationRequest
from agent_ledger.execution.result import (
    ErrorKind,
    ExecuteOptions,
    ExecutionResult,
    Failure,
    LedgerResult,
    PendingSignature,
    StrategyPath,
    Success,
)
from agent_ledger.execution.schema import RequestValidationError
from agent_ledger.execution.strategy import (
    ExecutionStrategyConfig,
    SignerCapability,
    UnsignedTransaction,
    WalletInfo,
    WalletSubmission,
)

__all__ = [
    "CodedError",
    "ConfirmationPoller",
    "Confirmed",
    "DirectSigner",
    "ErrorKind",
    "ExecuteOptions",
    "ExecutionBroker",
    "ExecutionResult",
    "ExecutionStrategyConfig",
    "Failure",
    "LedgerReadClient",
    "LedgerResult",
    "LedgerWriteClient",
    "Network",
    "OperationRequest",
    "OperatorCredential",
    "PendingSignature",
    "PollState",
    "RequestValidationError",
    "RetrievedState",
    "SignerCapability",
    "Stage",
    "StillPending",
    "StrategyOutcome",
    "StrategyPath",
    "Success",
    "UnsignedTransaction",
    "WalletInfo",
    "WalletSubmission",
    "classify_exception",
    "failure_from_exception",
]
