"""
Read-side clients used for confirmation polling.
"""

from agent_ledger.execution.mirror.client import (
    MIRROR_NODE_URLS,
    InscriptionReadClient,
    MirrorNodeReadClient,
    parse_inscription_response,
    parse_mirror_transactions,
    to_mirror_transaction_id,
)
from agent_ledger.execution.mirror.transport import HttpTransport, HttpxTransport

__all__ = [
    "MIRROR_NODE_URLS",
    "HttpTransport",
    "HttpxTransport",
    "InscriptionReadClient",
    "MirrorNodeReadClient",
    "parse_inscription_response",
    "parse_mirror_transactions",
    "to_mirror_transaction_id",
]
