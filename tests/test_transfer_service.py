"""
tests/test_transfer_service.py — Transfer Engine Tests
=======================================================

Direct grants, quota exhaustion, the karma-funded fallback and the
quota window reset, all against an in-memory ledger and a fixed clock.
"""

from __future__ import annotations

from karmabot.database.store import Measure
from karmabot.engine.events import (
    FundingSource,
    GrantOutcome,
    GrantRequest,
    Karma,
)
from karmabot.services.ledger import Ledger
from karmabot.services.transfer_service import TransferService

GIVER = "100"
RECEIVER = "200"
GUILD = "900"


def _request(polarity: Karma = Karma.UP, **kwargs) -> GrantRequest:
    kwargs.setdefault("giver_id", GIVER)
    kwargs.setdefault("receiver_id", RECEIVER)
    kwargs.setdefault("group_id", GUILD)
    return GrantRequest(polarity=polarity, **kwargs)


def _exhaust(ledger, clock, polarity: Karma = Karma.UP) -> None:
    """Giver granted earlier today and has no points left."""
    ledger.set_last_grant(GIVER, clock.timestamp - 60)
    ledger.set_quota(GIVER, polarity, 0)


# ---------------------------------------------------------------------------
# Direct grants
# ---------------------------------------------------------------------------
class TestDirectGrant:
    def test_worked_example(self, transfers, ledger, clock):
        ledger.set_last_grant(GIVER, clock.timestamp - 3600)
        ledger.set_quota(GIVER, Karma.UP, 1)
        ledger.set_quota(GIVER, Karma.DOWN, 2)
        ledger.set_karma(GIVER, 5)

        result = transfers.grant(_request())

        assert result.outcome is GrantOutcome.DIRECT
        assert result.karma == 1
        assert result.giver_karma == 5
        assert result.source is FundingSource.QUOTA
        assert ledger.quota(GIVER, Karma.UP) == 0
        assert ledger.quota(GIVER, Karma.DOWN) == 2
        assert ledger.karma(RECEIVER) == 1
        assert ledger.karma(GIVER) == 5
        assert ledger.last_grant(GIVER) == clock.timestamp
        assert ledger.history(RECEIVER) == [Measure(clock.timestamp, 1)]

    def test_first_grant_uses_default_quota(self, transfers, ledger):
        result = transfers.grant(_request())

        assert result.outcome is GrantOutcome.DIRECT
        assert ledger.quota(GIVER, Karma.UP) == 5
        assert ledger.quota(GIVER, Karma.DOWN) == 2

    def test_records_group_members(self, transfers, ledger):
        transfers.grant(_request())
        assert ledger.members(GUILD) == {GIVER, RECEIVER}

    def test_no_group_leaves_members_untouched(self, transfers, ledger):
        transfers.grant(_request(group_id=None))
        assert ledger.members(GUILD) == set()

    def test_down_grant_can_go_negative(self, transfers, ledger):
        result = transfers.grant(_request(Karma.DOWN))

        assert result.outcome is GrantOutcome.DIRECT
        assert result.karma == -1
        assert ledger.karma(RECEIVER) == -1
        assert ledger.quota(GIVER, Karma.DOWN) == 1

    def test_history_tracks_each_change(self, transfers, ledger, clock):
        transfers.grant(_request())
        first = clock.timestamp
        clock.advance(minutes=5)
        transfers.grant(_request())

        assert ledger.history(RECEIVER) == [
            Measure(first, 1),
            Measure(clock.timestamp, 2),
        ]


# ---------------------------------------------------------------------------
# Preconditions
# ---------------------------------------------------------------------------
class TestRejected:
    def test_self_grant(self, transfers, ledger):
        result = transfers.grant(_request(receiver_id=GIVER))

        assert result.outcome is GrantOutcome.REJECTED
        assert not result.succeeded
        assert ledger.karma(GIVER) == 0
        assert ledger.last_grant(GIVER) == 0

    def test_bot_giver(self, transfers, ledger):
        result = transfers.grant(_request(giver_is_bot=True))
        assert result.outcome is GrantOutcome.REJECTED
        assert ledger.karma(RECEIVER) == 0

    def test_bot_receiver(self, transfers, ledger):
        result = transfers.grant(_request(receiver_is_bot=True))
        assert result.outcome is GrantOutcome.REJECTED
        assert ledger.karma(RECEIVER) == 0

    def test_fallback_to_self_rejected(self, transfers, ledger, clock):
        _exhaust(ledger, clock)
        ledger.set_karma(GIVER, 3)

        result = transfers.confirm_fallback(_request(receiver_id=GIVER))

        assert result.outcome is GrantOutcome.REJECTED
        assert ledger.karma(GIVER) == 3


# ---------------------------------------------------------------------------
# Quota exhaustion & fallback
# ---------------------------------------------------------------------------
class TestFallback:
    def test_exhausted_quota_offers_fallback(self, transfers, ledger):
        for _ in range(6):
            assert transfers.grant(_request()).outcome is GrantOutcome.DIRECT

        result = transfers.grant(_request())

        assert result.outcome is GrantOutcome.OFFERED_FALLBACK
        assert result.karma is None
        assert ledger.karma(RECEIVER) == 6
        assert ledger.quota(GIVER, Karma.UP) == 0

    def test_down_exhaustion_does_not_block_up(self, transfers, ledger):
        transfers.grant(_request(Karma.DOWN))
        transfers.grant(_request(Karma.DOWN))

        assert transfers.grant(_request(Karma.DOWN)).outcome is GrantOutcome.OFFERED_FALLBACK
        assert transfers.grant(_request(Karma.UP)).outcome is GrantOutcome.DIRECT

    def test_offer_changes_nothing(self, transfers, ledger, clock):
        _exhaust(ledger, clock)
        ledger.set_karma(GIVER, 4)
        before = ledger.last_grant(GIVER)

        transfers.grant(_request())

        assert ledger.karma(GIVER) == 4
        assert ledger.karma(RECEIVER) == 0
        assert ledger.last_grant(GIVER) == before
        assert ledger.history(RECEIVER) == []

    def test_insufficient_karma(self, transfers, ledger, clock):
        _exhaust(ledger, clock)

        result = transfers.confirm_fallback(_request())

        assert result.outcome is GrantOutcome.INSUFFICIENT_KARMA
        assert result.giver_karma == 0
        assert ledger.karma(GIVER) == 0
        assert ledger.karma(RECEIVER) == 0
        assert ledger.history(RECEIVER) == []

    def test_negative_giver_cannot_pay(self, transfers, ledger, clock):
        _exhaust(ledger, clock)
        ledger.set_karma(GIVER, -2)

        result = transfers.confirm_fallback(_request())

        assert result.outcome is GrantOutcome.INSUFFICIENT_KARMA
        assert ledger.karma(GIVER) == -2

    def test_paid_with_karma(self, transfers, ledger, clock):
        _exhaust(ledger, clock)
        ledger.set_karma(GIVER, 3)
        last = ledger.last_grant(GIVER)
        clock.advance(minutes=10)

        result = transfers.confirm_fallback(_request())

        assert result.outcome is GrantOutcome.FALLBACK
        assert result.succeeded
        assert result.source is FundingSource.KARMA
        assert result.karma == 1
        assert result.giver_karma == 2
        assert ledger.karma(GIVER) == 2
        assert ledger.karma(RECEIVER) == 1
        assert ledger.quota(GIVER, Karma.UP) == 0
        assert ledger.last_grant(GIVER) == last
        assert ledger.history(RECEIVER) == [Measure(clock.timestamp, 1)]

    def test_down_paid_with_karma(self, transfers, ledger, clock):
        _exhaust(ledger, clock, Karma.DOWN)
        ledger.set_karma(GIVER, 1)
        ledger.set_karma(RECEIVER, 10)

        result = transfers.confirm_fallback(_request(Karma.DOWN))

        assert result.outcome is GrantOutcome.FALLBACK
        assert ledger.karma(GIVER) == 0
        assert ledger.karma(RECEIVER) == 9

    def test_quota_restored_before_confirmation(self, transfers, ledger, clock):
        _exhaust(ledger, clock)
        ledger.set_karma(GIVER, 3)
        clock.advance(days=1)

        result = transfers.confirm_fallback(_request())

        assert result.outcome is GrantOutcome.FALLBACK
        assert result.source is FundingSource.QUOTA
        assert ledger.karma(GIVER) == 3
        assert ledger.karma(RECEIVER) == 1
        assert ledger.quota(GIVER, Karma.UP) == 5
        assert ledger.last_grant(GIVER) == clock.timestamp


# ---------------------------------------------------------------------------
# Quota window
# ---------------------------------------------------------------------------
class TestQuotaWindow:
    def test_quota_survives_until_midnight(self, transfers, ledger, clock):
        _exhaust(ledger, clock)
        clock.now = clock.now.replace(hour=23, minute=59)

        assert transfers.grant(_request()).outcome is GrantOutcome.OFFERED_FALLBACK

    def test_quota_resets_after_midnight(self, transfers, ledger, clock):
        _exhaust(ledger, clock)
        ledger.set_quota(GIVER, Karma.DOWN, 0)
        clock.advance(days=1)

        result = transfers.grant(_request())

        assert result.outcome is GrantOutcome.DIRECT
        assert ledger.quota(GIVER, Karma.UP) == 5
        assert ledger.quota(GIVER, Karma.DOWN) == 2

    def test_configured_defaults(self, store, clock):
        ledger = Ledger(store, default_up=1, default_down=0)
        transfers = TransferService(ledger, clock=clock)

        assert transfers.grant(_request()).outcome is GrantOutcome.DIRECT
        assert transfers.grant(_request()).outcome is GrantOutcome.OFFERED_FALLBACK
        assert transfers.grant(_request(Karma.DOWN)).outcome is GrantOutcome.OFFERED_FALLBACK
