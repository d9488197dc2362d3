"""
agent-ledger: ledger write operations for automated agents.

Every write is routed through one broker that picks a signing strategy:
- a direct in-process signer
- the end user's wallet (unsigned bytes out, receipt back)
- the operator credential held by the server

and reports back a single Success / PendingSignature / Failure value.
"""

__version__ = "0.1.0"

from agent_ledger.execution import (
    ErrorKind,
    ExecuteOptions,
    ExecutionBroker,
    ExecutionStrategyConfig,
    Failure,
    LedgerResult,
    Network,
    OperationRequest,
    OperatorCredential,
    PendingSignature,
    Success,
)

__all__ = [
    "ErrorKind",
    "ExecuteOptions",
    "ExecutionBroker",
    "ExecutionStrategyConfig",
    "Failure",
    "LedgerResult",
    "Network",
    "OperationRequest",
    "OperatorCredential",
    "PendingSignature",
    "Success",
]
