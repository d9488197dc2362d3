"""
Error classification: maps strategy failures to ErrorKind.

The mapping:

    - Anything raised while handing bytes to the wallet, when the policy
      forbids falling back (``prefer_wallet_only``), is
      ``wallet_submit_failed``.
    - Anything else raised by a direct signer, a wallet hand-off or the
      server write client is ``operation_failed``.
    - No viable signing path at all is ``wallet_unavailable``.

Collaborators that know better can raise ``CodedError`` with an explicit
kind; that kind is kept as-is.
"""

from __future__ import annotations

from enum import StrEnum

from agent_ledger.execution.result import ErrorKind, Failure


class Stage(StrEnum):
    """Where in the broker a failure happened."""

    DIRECT_SIGNER = "direct_signer"
    WALLET_HANDOFF = "wallet_handoff"
    SERVER = "server"
    PREPARE = "prepare"


class CodedError(Exception):
    """An exception carrying a stable ErrorKind."""

    def __init__(self, kind: ErrorKind | str, message: str) -> None:
        super().__init__(message)
        self.kind = ErrorKind(kind)
        self.message = message

    def to_failure(self) -> Failure:
        return Failure(kind=self.kind, message=self.message)


def classify_exception(
    stage: Stage,
    exc: BaseException,
    *,
    prefer_wallet_only: bool,
) -> ErrorKind:
    """Map an exception raised at ``stage`` to an ErrorKind.

    Args:
        stage: Broker stage that raised.
        exc: The exception.
        prefer_wallet_only: Policy flag in effect for the call.

    Returns:
        The CodedError's own kind, ``WALLET_SUBMIT_FAILED`` for wallet
        hand-offs under the wallet-only policy, else ``OPERATION_FAILED``.
    """
    if isinstance(exc, CodedError):
        return exc.kind
    if stage in (Stage.WALLET_HANDOFF, Stage.PREPARE) and prefer_wallet_only:
        return ErrorKind.WALLET_SUBMIT_FAILED
    return ErrorKind.OPERATION_FAILED


def _describe(exc: BaseException) -> str:
    text = str(exc)
    return text if text else type(exc).__name__


def failure_from_exception(
    stage: Stage,
    exc: BaseException,
    *,
    prefer_wallet_only: bool,
) -> Failure:
    """Build a Failure whose message is prefixed with its kind."""
    if isinstance(exc, CodedError):
        return exc.to_failure()
    kind = classify_exception(stage, exc, prefer_wallet_only=prefer_wallet_only)
    return Failure(kind=kind, message=f"{kind}: {_describe(exc)}")


def wallet_unavailable(detail: str) -> Failure:
    """No signer, no usable wallet, and no permitted fallback."""
    return Failure(kind=ErrorKind.WALLET_UNAVAILABLE, message=detail)
