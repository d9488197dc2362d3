"""
Execution strategy configuration: the pluggable hooks the broker consults.

An ExecutionStrategyConfig is constructed once by the host application and
injected into each ExecutionBroker. Brokers that should share hooks share
the same config object by reference; nothing here is module-global.

Hooks:
    - signer provider: yields a SignerCapability (direct signing) or None.
    - wallet info resolver: yields the connected WalletInfo or None.
    - operation delegates: operation name → builder of unsigned bytes.
    - wallet executor: submits unsigned bytes through the user's wallet.
    - prefer_wallet_only: forbid falling back to the operator credential.

Setters replace one field at a time and do no validation; a bad hook
surfaces only when the broker exercises it. Each ``execute`` call reads
one ``snapshot()`` up front, so setters called while a call is in flight
affect later calls only.
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Union

from agent_ledger.execution.client import DirectSigner
from agent_ledger.execution.errors import CodedError
from agent_ledger.execution.request import Network, OperationRequest
from agent_ledger.execution.result import ErrorKind, LedgerResult

logger = logging.getLogger(__name__)


# =========================================================================
# Hook value types
# =========================================================================


@dataclass(frozen=True)
class WalletInfo:
    """The wallet currently connected by the end user."""

    account_id: str
    network: Network

    def __post_init__(self) -> None:
        if not self.account_id:
            raise ValueError("account_id must be non-empty")
        object.__setattr__(self, "network", Network.parse(self.network))

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> WalletInfo:
        """Accepts ``{"accountId", "network"}`` or snake_case keys."""
        account_id = data.get("accountId", data.get("account_id"))
        return cls(account_id=str(account_id or ""), network=data["network"])


@dataclass(frozen=True)
class SignerCapability:
    """Permission to execute directly with an in-process signer.

    Built once from a DirectSigner when the provider is registered (or by
    the provider itself); the broker only ever calls ``execute``.
    """

    account_id: str
    execute: Callable[[OperationRequest], Awaitable[LedgerResult]] = field(
        repr=False
    )

    @classmethod
    def from_signer(cls, signer: DirectSigner) -> SignerCapability:
        return cls(account_id=signer.account_id, execute=signer.execute)


@dataclass(frozen=True)
class UnsignedTransaction:
    """Unsigned transaction bytes built by an operation delegate.

    Attributes:
        transaction_bytes: Base64 bytes in the wallet protocol's format.
        job_id: Service-side job id, when the bytes came from a service.
        topic_id: Topic id already known at build time.
        status: Service-side status at build time.
        completed: Service-side completion flag at build time.
    """

    transaction_bytes: str
    job_id: str | None = None
    topic_id: str | None = None
    status: str | None = None
    completed: bool | None = None


@dataclass(frozen=True)
class WalletSubmission:
    """Receipt returned by the wallet executor."""

    transaction_id: str


SignerFactory = Callable[
    [],
    Union[SignerCapability, DirectSigner, None, Awaitable[Any]],
]
SignerProvider = Union[SignerFactory, SignerCapability, DirectSigner]
WalletInfoResolver = Callable[
    [], Union[WalletInfo, Mapping[str, Any], None, Awaitable[Any]]
]
OperationDelegate = Callable[
    [OperationRequest, WalletInfo], Awaitable[UnsignedTransaction]
]
WalletExecutor = Callable[[str, Network], Awaitable[WalletSubmission]]


async def _call_hook(hook: Callable[[], Any]) -> Any:
    value = hook()
    if inspect.isawaitable(value):
        value = await value
    return value


def _static(value: SignerCapability) -> SignerFactory:
    return lambda: value


def _as_signer_factory(provider: SignerProvider | None) -> SignerFactory | None:
    """Classify the provider once, at registration time."""
    if provider is None:
        return None
    if isinstance(provider, SignerCapability):
        return _static(provider)
    if isinstance(provider, DirectSigner):
        return _static(SignerCapability.from_signer(provider))
    if callable(provider):
        return provider
    raise TypeError(
        "signer provider must be a SignerCapability, a DirectSigner or a "
        f"callable, got: {type(provider).__name__}"
    )


# =========================================================================
# Snapshot
# =========================================================================


@dataclass(frozen=True)
class StrategySnapshot:
    """Read-only view of the config for one broker call."""

    signer_factory: SignerFactory | None
    wallet_info_resolver: WalletInfoResolver | None
    operation_delegates: Mapping[str, OperationDelegate]
    wallet_executor: WalletExecutor | None
    prefer_wallet_only: bool

    def delegate_for(self, operation_name: str) -> OperationDelegate | None:
        return self.operation_delegates.get(operation_name)

    async def resolve_signer(self) -> SignerCapability | None:
        """Call the signer provider; failures count as no signer.

        Raises:
            CodedError: ``operation_failed`` when the provider returns a
                value that is neither None nor a signer.
        """
        if self.signer_factory is None:
            return None
        try:
            value = await _call_hook(self.signer_factory)
        except Exception as exc:
            logger.warning("signer provider raised, treating as absent: %s", exc)
            return None
        if value is None or isinstance(value, SignerCapability):
            return value
        if isinstance(value, DirectSigner):
            return SignerCapability.from_signer(value)
        raise CodedError(
            ErrorKind.OPERATION_FAILED,
            f"signer provider returned {type(value).__name__}, expected a signer",
        )

    async def resolve_wallet_info(self) -> WalletInfo | None:
        """Call the wallet info resolver; failures count as no wallet."""
        if self.wallet_info_resolver is None:
            return None
        try:
            value = await _call_hook(self.wallet_info_resolver)
            if value is None or isinstance(value, WalletInfo):
                return value
            return WalletInfo.from_dict(value)
        except Exception as exc:
            logger.warning("wallet info resolver failed, treating as absent: %s", exc)
            return None


# =========================================================================
# ExecutionStrategyConfig
# =========================================================================


class ExecutionStrategyConfig:
    """Mutable holder of execution hooks.

    All fields are independently settable at any time. Setting a hook to
    None (or the flag to False) unsets it.
    """

    def __init__(
        self,
        *,
        signer_provider: SignerProvider | None = None,
        wallet_info_resolver: WalletInfoResolver | None = None,
        operation_delegates: Mapping[str, OperationDelegate] | None = None,
        wallet_executor: WalletExecutor | None = None,
        prefer_wallet_only: bool = False,
    ) -> None:
        self._signer_factory = _as_signer_factory(signer_provider)
        self._wallet_info_resolver = wallet_info_resolver
        self._operation_delegates: dict[str, OperationDelegate] = dict(
            operation_delegates or {}
        )
        self._wallet_executor = wallet_executor
        self._prefer_wallet_only = bool(prefer_wallet_only)

    # --- Setters ---

    def set_signer_provider(self, provider: SignerProvider | None) -> None:
        self._signer_factory = _as_signer_factory(provider)

    def set_wallet_info_resolver(self, resolver: WalletInfoResolver | None) -> None:
        self._wallet_info_resolver = resolver

    def set_delegate(
        self, operation_name: str, delegate: OperationDelegate | None
    ) -> None:
        if delegate is None:
            self._operation_delegates.pop(operation_name, None)
        else:
            self._operation_delegates[operation_name] = delegate

    def set_wallet_executor(self, executor: WalletExecutor | None) -> None:
        self._wallet_executor = executor

    def set_prefer_wallet_only(self, flag: bool) -> None:
        self._prefer_wallet_only = bool(flag)

    # --- Getters ---

    @property
    def signer_provider(self) -> SignerFactory | None:
        return self._signer_factory

    @property
    def wallet_info_resolver(self) -> WalletInfoResolver | None:
        return self._wallet_info_resolver

    @property
    def operation_delegates(self) -> Mapping[str, OperationDelegate]:
        return MappingProxyType(self._operation_delegates)

    @property
    def wallet_executor(self) -> WalletExecutor | None:
        return self._wallet_executor

    @property
    def prefer_wallet_only(self) -> bool:
        return self._prefer_wallet_only

    def snapshot(self) -> StrategySnapshot:
        return StrategySnapshot(
            signer_factory=self._signer_factory,
            wallet_info_resolver=self._wallet_info_resolver,
            operation_delegates=MappingProxyType(dict(self._operation_delegates)),
            wallet_executor=self._wallet_executor,
            prefer_wallet_only=self._prefer_wallet_only,
        )
