"""
karmabot.services.transfer_service — Karma Grants & Quota Fallback
===================================================================

Executes a grant from a giver to a receiver against the ledger.

Direct grant (``grant``):
  1. Reset the giver's counters if their quota window expired
  2. Read the counter for the requested polarity
  3. Counter ≥ 1 → spend it, stamp last-grant, move the receiver's karma,
     log history, record both as guild members  → DIRECT
  4. Counter = 0 → offer to spend the giver's own karma → OFFERED_FALLBACK

Fallback confirmation (``confirm_fallback``) may arrive any time after the
offer.  It re-checks the quota first: if the window reset meanwhile the
grant is paid with a quota point.  Otherwise the giver needs at least one
karma, which is moved to the receiver.  Paying with karma never touches the
last-grant timestamp.

Every operation holds the giver's and receiver's locks for its whole
sequence, and the guild's lock while updating its membership set.  There
is no transaction across keys: a crash halfway can leave a spent counter
without the matching balance change.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import UTC, datetime

from karmabot.engine.events import (
    FundingSource,
    GrantOutcome,
    GrantRequest,
    GrantResult,
)
from karmabot.engine.locks import KeyedLock
from karmabot.engine.quota import is_quota_expired
from karmabot.services.ledger import Ledger

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(UTC)


class TransferService:
    """Applies grant requests to a :class:`Ledger`."""

    def __init__(
        self,
        ledger: Ledger,
        *,
        clock: Callable[[], datetime] = _utcnow,
        locks: KeyedLock | None = None,
    ) -> None:
        self.ledger = ledger
        self.clock = clock
        self.locks = locks or KeyedLock()

    # -------------------------------------------------------------------
    # Shared steps
    # -------------------------------------------------------------------
    def _refresh_quota(self, giver_id: str, now: datetime) -> None:
        """Reset both counters if the giver's quota window has expired."""
        if is_quota_expired(self.ledger.last_grant(giver_id), now):
            self.ledger.reset_quota(giver_id)

    def _credit_receiver(self, request: GrantRequest, timestamp: int) -> int:
        """Apply the grant's delta to the receiver and log the new balance."""
        karma = self.ledger.karma(request.receiver_id) + request.polarity.delta
        self.ledger.set_karma(request.receiver_id, karma)
        self.ledger.append_history(request.receiver_id, karma, timestamp)
        return karma

    def _spend_quota(self, request: GrantRequest, available: int, now: datetime) -> int:
        """Direct-grant path: consume a quota point and move karma."""
        timestamp = int(now.timestamp())
        self.ledger.set_quota(request.giver_id, request.polarity, available - 1)
        self.ledger.set_last_grant(request.giver_id, timestamp)
        karma = self._credit_receiver(request, timestamp)
        if request.group_id is not None:
            # Pairs in one guild share its membership set
            with self.locks.hold(f"group:{request.group_id}"):
                self.ledger.add_members(request.group_id, request.giver_id, request.receiver_id)
        return karma

    def _result(self, request: GrantRequest, outcome: GrantOutcome, **kwargs) -> GrantResult:
        return GrantResult(
            outcome=outcome,
            polarity=request.polarity,
            receiver_id=request.receiver_id,
            **kwargs,
        )

    # -------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------
    def grant(self, request: GrantRequest) -> GrantResult:
        """Handle a ``+``/``-`` reply from *giver* to *receiver*."""
        if not request.is_valid:
            logger.debug("Ignoring grant %s → %s", request.giver_id, request.receiver_id)
            return self._result(request, GrantOutcome.REJECTED)

        with self.locks.hold(request.giver_id, request.receiver_id):
            now = self.clock()
            self._refresh_quota(request.giver_id, now)

            available = self.ledger.quota(request.giver_id, request.polarity)
            if available < 1:
                logger.info(
                    "Quota exhausted: %s has no %s points left",
                    request.giver_id,
                    request.polarity,
                )
                return self._result(request, GrantOutcome.OFFERED_FALLBACK)

            karma = self._spend_quota(request, available, now)
            giver_karma = self.ledger.karma(request.giver_id)

        logger.info(
            "Grant %s: %s → %s (now %d, %d %s left)",
            request.polarity,
            request.giver_id,
            request.receiver_id,
            karma,
            available - 1,
            request.polarity,
        )
        return self._result(
            request,
            GrantOutcome.DIRECT,
            karma=karma,
            giver_karma=giver_karma,
            source=FundingSource.QUOTA,
        )

    def confirm_fallback(self, request: GrantRequest) -> GrantResult:
        """Giver accepted a fallback offer: pay with a quota point or own karma."""
        if not request.is_valid:
            logger.debug(
                "Ignoring fallback %s → %s", request.giver_id, request.receiver_id
            )
            return self._result(request, GrantOutcome.REJECTED)

        with self.locks.hold(request.giver_id, request.receiver_id):
            now = self.clock()
            self._refresh_quota(request.giver_id, now)

            available = self.ledger.quota(request.giver_id, request.polarity)
            if available >= 1:
                # Quota came back since the offer was made
                karma = self._spend_quota(request, available, now)
                source = FundingSource.QUOTA
                giver_karma = self.ledger.karma(request.giver_id)
            else:
                giver_karma = self.ledger.karma(request.giver_id)
                if giver_karma < 1:
                    logger.info(
                        "Fallback refused: %s has %d karma", request.giver_id, giver_karma
                    )
                    return self._result(
                        request,
                        GrantOutcome.INSUFFICIENT_KARMA,
                        giver_karma=giver_karma,
                    )
                giver_karma -= 1
                self.ledger.set_karma(request.giver_id, giver_karma)
                karma = self._credit_receiver(request, int(now.timestamp()))
                source = FundingSource.KARMA

        logger.info(
            "Fallback grant %s: %s → %s paid with %s (now %d)",
            request.polarity,
            request.giver_id,
            request.receiver_id,
            source,
            karma,
        )
        return self._result(
            request,
            GrantOutcome.FALLBACK,
            karma=karma,
            giver_karma=giver_karma,
            source=source,
        )
