"""
Execution broker: decides how a ledger-changing operation gets signed.

Given an OperationRequest, the broker tries three mutually exclusive
strategies in a fixed order and returns one ExecutionResult:

    1. Direct signer: the signer provider yields a capability → execute
       with it. No other path is consulted, whatever happens.
    2. Wallet info: resolve the connected wallet. No wallet under the
       wallet-only policy → ``wallet_unavailable``.
    3. Wallet-delegated: wallet + delegate for the operation + wallet
       executor → build unsigned bytes, hand them to the wallet. A failed
       hand-off is ``wallet_submit_failed`` under the wallet-only policy,
       otherwise it falls through. Operations that need confirmation are
       polled on the read side.
    4. Policy gate: wallet-only policy and no wallet path → stop.
    5. Server-autonomous: operator credential + write client → submit.

Each strategy attempt returns a StrategyOutcome (applied / skipped /
failed); the fallthrough decision is a branch on that value. Exceptions
from collaborators are captured at the call site and never escape
``execute``. At most one submission happens per call; only confirmation
reads are retried.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from enum import StrEnum

from agent_ledger.execution.client import LedgerReadClient, LedgerWriteClient
from agent_ledger.execution.credential import OperatorCredential
from agent_ledger.execution.errors import (
    CodedError,
    Stage,
    failure_from_exception,
    wallet_unavailable,
)
from agent_ledger.execution.poller import (
    ConfirmationPoller,
    Confirmed,
    Sleep,
)
from agent_ledger.execution.request import OperationRequest
from agent_ledger.execution.result import (
    ErrorKind,
    ExecuteOptions,
    Failure,
    LedgerResult,
    PendingSignature,
    StrategyPath,
    Success,
)
from agent_ledger.execution.strategy import (
    ExecutionStrategyConfig,
    StrategySnapshot,
    UnsignedTransaction,
    WalletInfo,
)

logger = logging.getLogger(__name__)

WALLET_UNAVAILABLE_MESSAGE = (
    "Wallet unavailable: connect a wallet or switch to autonomous mode"
)
NO_SERVER_PATH_MESSAGE = (
    "No wallet executor and no operator private key available for server execution"
)


# =========================================================================
# StrategyOutcome
# =========================================================================


class OutcomeStatus(StrEnum):
    APPLIED = "applied"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(frozen=True)
class StrategyOutcome:
    """Result of attempting one strategy.

    Attributes:
        status: APPLIED (result is a Success), FAILED (result is a
            Failure) or SKIPPED (strategy not available; result is None).
        result: The Success or Failure to return if the broker stops here.
        reason: Why the strategy was skipped.
    """

    status: OutcomeStatus
    result: Success | Failure | None = None
    reason: str | None = None

    @classmethod
    def applied(cls, ledger_result: LedgerResult) -> StrategyOutcome:
        return cls(status=OutcomeStatus.APPLIED, result=Success(ledger_result))

    @classmethod
    def failed(cls, failure: Failure) -> StrategyOutcome:
        return cls(status=OutcomeStatus.FAILED, result=failure)

    @classmethod
    def skipped(cls, reason: str) -> StrategyOutcome:
        return cls(status=OutcomeStatus.SKIPPED, reason=reason)


# =========================================================================
# ExecutionBroker
# =========================================================================


class ExecutionBroker:
    """Routes operation requests to a signing strategy.

    Args:
        config: Strategy hooks. Shared by reference if the caller wants
            several brokers to see the same hooks.
        write_client: Ledger write client for the server-autonomous path.
        credential: Operator credential for the server-autonomous path.
        read_client: Read side for confirmation polling.
        poller: Explicit poller; built from read_client when omitted.
        sleep: Sleep used by the default poller (inject for tests).
    """

    def __init__(
        self,
        config: ExecutionStrategyConfig,
        *,
        write_client: LedgerWriteClient | None = None,
        credential: OperatorCredential | None = None,
        read_client: LedgerReadClient | None = None,
        poller: ConfirmationPoller | None = None,
        sleep: Sleep | None = None,
    ) -> None:
        self._config = config
        self._write_client = write_client
        self._credential = credential
        if poller is None and read_client is not None:
            poller = ConfirmationPoller(read_client, sleep=sleep)
        self._poller = poller

    @property
    def config(self) -> ExecutionStrategyConfig:
        return self._config

    @property
    def has_server_credential(self) -> bool:
        return self._credential is not None and self._write_client is not None

    # -----------------------------------------------------------------
    # execute()
    # -----------------------------------------------------------------

    async def execute(
        self,
        request: OperationRequest,
        options: ExecuteOptions | None = None,
    ) -> Success | Failure:
        """Sign and submit ``request`` through the first available strategy.

        Returns:
            Success or Failure. Never raises for collaborator errors.
        """
        options = options or ExecuteOptions()
        snapshot = self._config.snapshot()
        name = request.operation_name

        # 1. Direct signer
        outcome = await self._try_direct_signer(snapshot, request)
        if outcome.status is not OutcomeStatus.SKIPPED:
            return self._finish(request, StrategyPath.DIRECT_SIGNER, outcome)

        # 2. Wallet info
        wallet = await snapshot.resolve_wallet_info()
        if wallet is None and snapshot.prefer_wallet_only:
            logger.info("%s: no wallet connected under wallet-only policy", name)
            return wallet_unavailable(WALLET_UNAVAILABLE_MESSAGE)

        # 3. Wallet-delegated
        outcome = await self._try_wallet(snapshot, request, wallet, options)
        if outcome.status is OutcomeStatus.APPLIED:
            return self._finish(request, StrategyPath.WALLET, outcome)
        if outcome.status is OutcomeStatus.FAILED:
            if snapshot.prefer_wallet_only:
                return self._finish(request, StrategyPath.WALLET, outcome)
            logger.info("%s: wallet hand-off failed, falling back to server", name)
        else:
            logger.debug("%s: wallet path skipped: %s", name, outcome.reason)

        # 4. Policy gate
        if snapshot.prefer_wallet_only:
            return wallet_unavailable(f"WalletExecutor not configured for {name}")

        # 5. Server-autonomous
        outcome = await self._try_server(request)
        if outcome.status is OutcomeStatus.SKIPPED:
            logger.info("%s: no signing path available", name)
            return wallet_unavailable(NO_SERVER_PATH_MESSAGE)
        return self._finish(request, StrategyPath.SERVER, outcome)

    def _finish(
        self,
        request: OperationRequest,
        path: StrategyPath,
        outcome: StrategyOutcome,
    ) -> Success | Failure:
        result = outcome.result
        if isinstance(result, Failure):
            logger.warning(
                "%s via %s failed (%s): %s",
                request.operation_name, path, result.kind, result.message,
            )
            return result
        if isinstance(result, Success):
            logger.info(
                "%s executed via %s (transaction_id=%s, confirmed=%s)",
                request.operation_name, path,
                result.ledger_result.transaction_id,
                result.ledger_result.confirmed,
            )
            return result
        raise ValueError(f"{outcome.status} outcome carries no result")

    # -----------------------------------------------------------------
    # Strategies
    # -----------------------------------------------------------------

    async def _try_direct_signer(
        self,
        snapshot: StrategySnapshot,
        request: OperationRequest,
    ) -> StrategyOutcome:
        try:
            capability = await snapshot.resolve_signer()
        except CodedError as exc:
            return StrategyOutcome.failed(exc.to_failure())
        if capability is None:
            return StrategyOutcome.skipped("no signer")

        try:
            ledger_result = replace(
                await capability.execute(request), path=StrategyPath.DIRECT_SIGNER
            )
        except Exception as exc:
            return StrategyOutcome.failed(
                failure_from_exception(
                    Stage.DIRECT_SIGNER, exc,
                    prefer_wallet_only=snapshot.prefer_wallet_only,
                )
            )
        return StrategyOutcome.applied(ledger_result)

    async def _try_wallet(
        self,
        snapshot: StrategySnapshot,
        request: OperationRequest,
        wallet: WalletInfo | None,
        options: ExecuteOptions,
    ) -> StrategyOutcome:
        if wallet is None:
            return StrategyOutcome.skipped("no wallet connected")
        delegate = snapshot.delegate_for(request.operation_name)
        if delegate is None:
            return StrategyOutcome.skipped(
                f"no delegate registered for {request.operation_name}"
            )
        executor = snapshot.wallet_executor
        if executor is None:
            return StrategyOutcome.skipped("no wallet executor")

        if wallet.network != request.network:
            logger.debug(
                "%s: request targets %s but wallet is on %s; using wallet network",
                request.operation_name, request.network, wallet.network,
            )

        try:
            unsigned = await delegate(request, wallet)
        except Exception as exc:
            return _handoff_failed(snapshot, exc)
        if not unsigned or not unsigned.transaction_bytes:
            return _handoff_failed(
                snapshot, ValueError("delegate returned no transaction bytes")
            )

        try:
            submission = await executor(unsigned.transaction_bytes, wallet.network)
        except Exception as exc:
            return _handoff_failed(snapshot, exc)

        transaction_id = submission.transaction_id if submission else ""
        poller = self._poller
        if (
            request.requires_confirmation
            and options.wait_for_confirmation
            and poller is not None
            and transaction_id
        ):
            return StrategyOutcome.applied(
                await _confirm(poller, transaction_id, unsigned, options)
            )
        return StrategyOutcome.applied(
            _partial_wallet_result(
                transaction_id, unsigned,
                confirmed=not request.requires_confirmation,
            )
        )

    async def _try_server(self, request: OperationRequest) -> StrategyOutcome:
        if self._credential is None or self._write_client is None:
            return StrategyOutcome.skipped("no operator credential")

        try:
            ledger_result = replace(
                await self._write_client.submit(request, self._credential),
                path=StrategyPath.SERVER,
            )
        except Exception as exc:
            return StrategyOutcome.failed(
                failure_from_exception(Stage.SERVER, exc, prefer_wallet_only=False)
            )
        return StrategyOutcome.applied(ledger_result)

    # -----------------------------------------------------------------
    # prepare()
    # -----------------------------------------------------------------

    async def prepare(self, request: OperationRequest) -> PendingSignature | Failure:
        """Build unsigned bytes for manual wallet approval; submit nothing.

        The payer is the connected wallet, or the operator account when
        no wallet is connected.
        """
        snapshot = self._config.snapshot()
        name = request.operation_name
        delegate = snapshot.delegate_for(name)
        if delegate is None:
            return wallet_unavailable(f"No transaction builder registered for {name}")

        wallet = await snapshot.resolve_wallet_info()
        if wallet is None:
            if self._credential is None:
                return wallet_unavailable(WALLET_UNAVAILABLE_MESSAGE)
            wallet = WalletInfo(
                account_id=self._credential.account_id,
                network=request.network,
            )

        try:
            unsigned = await delegate(request, wallet)
        except Exception as exc:
            return failure_from_exception(
                Stage.PREPARE, exc,
                prefer_wallet_only=snapshot.prefer_wallet_only,
            )
        if not unsigned or not unsigned.transaction_bytes:
            return Failure(
                kind=ErrorKind.OPERATION_FAILED,
                message=f"{name}: delegate returned no transaction bytes",
            )

        logger.info("%s prepared for %s on %s", name, wallet.account_id, wallet.network)
        return PendingSignature(
            operation_name=name,
            unsigned_bytes=unsigned.transaction_bytes,
            network=wallet.network,
            description=f"{name} paid by {wallet.account_id} on {wallet.network}",
        )


def _handoff_failed(snapshot: StrategySnapshot, exc: BaseException) -> StrategyOutcome:
    return StrategyOutcome.failed(
        failure_from_exception(
            Stage.WALLET_HANDOFF, exc,
            prefer_wallet_only=snapshot.prefer_wallet_only,
        )
    )


async def _confirm(
    poller: ConfirmationPoller,
    transaction_id: str,
    unsigned: UnsignedTransaction,
    options: ExecuteOptions,
) -> LedgerResult:
    outcome = await poller.await_confirmation(
        transaction_id,
        options.max_attempts,
        options.interval_ms,
        fallback_topic_id=unsigned.topic_id,
    )
    if isinstance(outcome, Confirmed):
        state = outcome.state
        return LedgerResult(
            path=StrategyPath.WALLET,
            transaction_id=transaction_id,
            confirmed=True,
            topic_id=state.topic_id or unsigned.topic_id,
            job_id=unsigned.job_id,
            status=state.status,
            completed=True,
            details=dict(state.raw),
        )

    partial = _partial_wallet_result(transaction_id, unsigned, confirmed=False)
    details: dict[str, object] = {"attempts": outcome.attempts}
    if outcome.last_error is not None:
        details["last_error"] = outcome.last_error
    return replace(partial, details=details)


def _partial_wallet_result(
    transaction_id: str,
    unsigned: UnsignedTransaction,
    *,
    confirmed: bool,
) -> LedgerResult:
    return LedgerResult(
        path=StrategyPath.WALLET,
        transaction_id=transaction_id or None,
        confirmed=confirmed,
        topic_id=unsigned.topic_id,
        job_id=unsigned.job_id,
        status=unsigned.status,
        completed=unsigned.completed,
    )
