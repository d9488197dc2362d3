"""
Transport protocol for read-side HTTP calls.

The read clients depend on this protocol, not on httpx directly, so the
HTTP layer can be swapped for test fakes without touching parsing logic.

Concrete implementations:
    - HttpxTransport (default, uses httpx.AsyncClient)
    - FakeTransport (tests, returns canned responses)
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class HttpTransport(Protocol):
    """Async transport for JSON GET requests."""

    async def get_json(
        self,
        url: str,
        params: Mapping[str, str] | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> dict[str, Any]:
        """Send a GET request and return the parsed JSON body.

        Raises:
            Exception: On transport-level failures (connection refused,
                timeout, non-2xx status). Callers treat these as
                transient.
        """
        ...


class HttpxTransport:
    """Default transport using httpx.AsyncClient."""

    def __init__(self, timeout: float = 30.0) -> None:
        self._timeout = timeout

    async def get_json(
        self,
        url: str,
        params: Mapping[str, str] | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> dict[str, Any]:
        import httpx

        async with httpx.AsyncClient(timeout=self._timeout) as client:
            response = await client.get(
                url,
                params=dict(params or {}),
                headers={"Accept": "application/json", **dict(headers or {})},
            )
            response.raise_for_status()
            result: dict[str, Any] = response.json()
            return result
