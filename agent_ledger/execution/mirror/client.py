"""
Read-side clients: concrete LedgerReadClient implementations.

Two read sides are supported:

    - ``InscriptionReadClient``: the inscription service's retrieve
      endpoint. Reports job status and, once the content is on-ledger,
      the topic id holding it.
    - ``MirrorNodeReadClient``: the ledger's mirror node REST API.
      Reports the consensus result of a plain transaction.

Both translate responses into RetrievedState with pure parsing functions.
No retry loops (the poller owns retries). No secrets beyond an optional
API key header. Transport exceptions propagate to the poller, which
treats them as transient.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from agent_ledger.execution.client import TERMINAL_STATUS, RetrievedState
from agent_ledger.execution.mirror.transport import HttpTransport, HttpxTransport
from agent_ledger.execution.request import Network

MIRROR_NODE_URLS: dict[Network, str] = {
    Network.MAINNET: "https://mainnet-public.mirrornode.hedera.com",
    Network.TESTNET: "https://testnet.mirrornode.hedera.com",
}

_TOPIC_ID_KEYS = ("topic_id", "topicId", "jsonTopicId")


class InscriptionReadClient:
    """Read client for the inscription service.

    Args:
        base_url: Service API root (e.g. "https://inscriptions.example/api").
        api_key: Optional API key, sent as ``x-api-key``.
        transport: Injectable transport. Defaults to HttpxTransport.
    """

    def __init__(
        self,
        base_url: str,
        *,
        api_key: str | None = None,
        transport: HttpTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._api_key = api_key
        self._transport = transport or HttpxTransport()

    @property
    def base_url(self) -> str:
        return self._base_url

    async def retrieve_state(self, transaction_id: str) -> RetrievedState:
        headers = {"x-api-key": self._api_key} if self._api_key else None
        response = await self._transport.get_json(
            f"{self._base_url}/inscriptions/retrieve-inscription",
            params={"id": transaction_id},
            headers=headers,
        )
        return parse_inscription_response(response)


class MirrorNodeReadClient:
    """Read client for the mirror node transactions endpoint.

    Args:
        network: Selects the public mirror node when base_url is omitted.
        base_url: Explicit mirror node root.
        transport: Injectable transport. Defaults to HttpxTransport.
    """

    def __init__(
        self,
        network: Network | str = Network.TESTNET,
        *,
        base_url: str | None = None,
        transport: HttpTransport | None = None,
    ) -> None:
        self._base_url = (base_url or MIRROR_NODE_URLS[Network.parse(network)]).rstrip("/")
        self._transport = transport or HttpxTransport()

    @property
    def base_url(self) -> str:
        return self._base_url

    async def retrieve_state(self, transaction_id: str) -> RetrievedState:
        mirror_id = to_mirror_transaction_id(transaction_id)
        response = await self._transport.get_json(
            f"{self._base_url}/api/v1/transactions/{mirror_id}"
        )
        return parse_mirror_transactions(response)


# =====================================================================
# Parsing (pure functions, no I/O)
# =====================================================================


def to_mirror_transaction_id(transaction_id: str) -> str:
    """Convert "0.0.1@1700000000.123456789" to "0.0.1-1700000000-123456789".

    Ids already in mirror form are returned unchanged.
    """
    if "@" not in transaction_id:
        return transaction_id
    account, _, valid_start = transaction_id.partition("@")
    seconds, _, nanos = valid_start.partition(".")
    return f"{account}-{seconds}-{nanos or '0'}"


def _first_str(data: Mapping[str, Any], keys: tuple[str, ...]) -> str | None:
    for key in keys:
        value = data.get(key)
        if isinstance(value, str) and value:
            return value
    return None


def parse_inscription_response(response: Mapping[str, Any]) -> RetrievedState:
    """Parse an inscription retrieve response.

    Handles:
        - Completed jobs (status "completed" or completed=True)
        - In-flight jobs (status only)
        - Error bodies / empty bodies (found=False)
    """
    if not response or response.get("error"):
        return RetrievedState(found=False, raw=dict(response or {}))

    status = response.get("status")
    if not isinstance(status, str):
        status = None
    if response.get("completed") is True:
        status = TERMINAL_STATUS

    return RetrievedState(
        found=True,
        status=status,
        topic_id=_first_str(response, _TOPIC_ID_KEYS),
        raw=dict(response),
    )


def parse_mirror_transactions(response: Mapping[str, Any]) -> RetrievedState:
    """Parse a mirror node ``/api/v1/transactions/{id}`` response.

    The first transaction is the parent; child records are ignored.
    ``result == "SUCCESS"`` maps to the terminal status; other results
    are reported lower-cased. ``entity_id`` is the created or targeted
    topic, reported only for successful transactions.
    """
    transactions = response.get("transactions")
    if not isinstance(transactions, list) or not transactions:
        return RetrievedState(found=False, raw=dict(response))

    tx = transactions[0]
    result = tx.get("result")
    if result == "SUCCESS":
        status: str | None = TERMINAL_STATUS
    elif isinstance(result, str):
        status = result.lower()
    else:
        status = None

    entity_id = tx.get("entity_id")
    if status != TERMINAL_STATUS or not isinstance(entity_id, str):
        entity_id = None
    return RetrievedState(
        found=True,
        status=status,
        topic_id=entity_id or None,
        raw=dict(tx),
    )
