"""
Confirmation poller: bounded wait for the read side to catch up.

Used after a wallet-signed submission of an operation whose result is only
observable by querying the read side (inscriptions). The poller is a small
state machine:

    POLLING ──(terminal state)──▶ CONFIRMED
       │
       └──(attempts exhausted)──▶ EXHAUSTED

Rules:
    - Each attempt reads once. Any retrieval error is transient: it is
      recorded on the PollState and the loop continues. A read that
      returns None instead of a RetrievedState counts as not found.
    - A found state whose status is "completed", or that carries a topic
      id, ends the loop as Confirmed.
    - After exactly ``max_attempts`` reads without success the loop ends
      as StillPending. A budget of 0 returns StillPending without
      reading. ``await_confirmation`` raises only for a negative budget.
    - ``sleep(interval_ms / 1000)`` runs between attempts, never after the
      last one. ``sleep`` is injectable so tests run the whole budget
      without real elapsed time.

Only reads are retried. The submission itself is never repeated here.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import StrEnum

from agent_ledger.execution.client import LedgerReadClient, RetrievedState

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]


class PollPhase(StrEnum):
    POLLING = "polling"
    CONFIRMED = "confirmed"
    EXHAUSTED = "exhausted"


@dataclass
class PollState:
    """Mutable state of one confirmation wait."""

    transaction_id: str
    attempts_remaining: int
    max_attempts: int
    interval_ms: int
    phase: PollPhase = PollPhase.POLLING
    last_error: str | None = None

    @classmethod
    def start(
        cls, transaction_id: str, max_attempts: int, interval_ms: int
    ) -> PollState:
        if max_attempts < 0:
            raise ValueError(f"max_attempts must be >= 0, got: {max_attempts}")
        if interval_ms < 0:
            raise ValueError(f"interval_ms must be >= 0, got: {interval_ms}")
        return cls(
            transaction_id=transaction_id,
            attempts_remaining=max_attempts,
            max_attempts=max_attempts,
            interval_ms=interval_ms,
            phase=PollPhase.POLLING if max_attempts else PollPhase.EXHAUSTED,
        )

    @property
    def attempts_made(self) -> int:
        return self.max_attempts - self.attempts_remaining

    def record_error(self, exc: BaseException) -> None:
        self.attempts_remaining -= 1
        self.last_error = str(exc) or type(exc).__name__
        self._maybe_exhaust()

    def record_state(self, terminal: bool) -> None:
        self.attempts_remaining -= 1
        if terminal:
            self.phase = PollPhase.CONFIRMED
        else:
            self._maybe_exhaust()

    def _maybe_exhaust(self) -> None:
        if self.attempts_remaining <= 0:
            self.phase = PollPhase.EXHAUSTED


@dataclass(frozen=True)
class Confirmed:
    state: RetrievedState
    attempts: int


@dataclass(frozen=True)
class StillPending:
    """Budget exhausted; the operation may still complete later."""

    transaction_id: str
    attempts: int
    last_error: str | None = None


ConfirmationOutcome = Confirmed | StillPending


def _as_retrieved_state(value: object) -> RetrievedState:
    """A read client that answers None (or anything else) has not found it."""
    if isinstance(value, RetrievedState):
        return value
    return RetrievedState(found=False)


class ConfirmationPoller:
    """Polls a LedgerReadClient until a terminal state or budget exhaustion.

    Args:
        read_client: The read side to query.
        sleep: Awaitable sleep taking seconds. Defaults to asyncio.sleep.
    """

    def __init__(
        self,
        read_client: LedgerReadClient,
        *,
        sleep: Sleep | None = None,
    ) -> None:
        self._read_client = read_client
        self._sleep = sleep or asyncio.sleep

    async def await_confirmation(
        self,
        transaction_id: str,
        max_attempts: int,
        interval_ms: int,
        *,
        fallback_topic_id: str | None = None,
    ) -> ConfirmationOutcome:
        state = PollState.start(transaction_id, max_attempts, interval_ms)

        while state.phase is PollPhase.POLLING:
            if state.attempts_made > 0:
                await self._sleep(state.interval_ms / 1000)
            try:
                retrieved = _as_retrieved_state(
                    await self._read_client.retrieve_state(transaction_id)
                )
                terminal = retrieved.is_terminal(fallback_topic_id)
            except Exception as exc:
                logger.debug(
                    "retrieve_state(%s) failed on attempt %d: %s",
                    transaction_id, state.attempts_made + 1, exc,
                )
                state.record_error(exc)
                continue
            state.record_state(terminal)
            if state.phase is PollPhase.CONFIRMED:
                logger.info(
                    "transaction %s confirmed after %d attempt(s)",
                    transaction_id, state.attempts_made,
                )
                return Confirmed(state=retrieved, attempts=state.attempts_made)

        logger.info(
            "transaction %s still pending after %d attempt(s)",
            transaction_id, state.attempts_made,
        )
        return StillPending(
            transaction_id=transaction_id,
            attempts=state.attempts_made,
            last_error=state.last_error,
        )
