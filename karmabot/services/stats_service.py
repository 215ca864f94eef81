"""
karmabot.services.stats_service — Leaderboard, Stats & History Views
=====================================================================

Read-only projections of the ledger.  Nothing here writes: the quota shown
by :func:`get_stats` is what the member *would* have if they granted now,
the stored counters are only reset by an actual grant.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from karmabot.database.store import Measure
from karmabot.engine.events import Karma
from karmabot.engine.quota import is_quota_expired
from karmabot.services.ledger import Ledger


@dataclass(frozen=True, slots=True)
class LeaderboardEntry:
    rank: int
    user_id: str
    karma: int


@dataclass(frozen=True, slots=True)
class Leaderboard:
    group_id: str
    entries: list[LeaderboardEntry]

    def top(self, limit: int) -> list[LeaderboardEntry]:
        return self.entries[:limit]


@dataclass(frozen=True, slots=True)
class KarmaStats:
    """A member's balance and what they can still grant today."""

    karma: int
    up: int
    down: int


def get_leaderboard(ledger: Ledger, group_id: str) -> Leaderboard | None:
    """Rank a guild's members by karma, highest first.

    Returns ``None`` when nobody in the guild has given or received karma.
    Members with equal karma come in no particular order.
    """
    members = ledger.members(group_id)
    if not members:
        return None

    scores = [(user_id, ledger.karma(user_id)) for user_id in members]
    scores.sort(key=lambda pair: pair[1], reverse=True)
    return Leaderboard(
        group_id=group_id,
        entries=[
            LeaderboardEntry(rank=i, user_id=user_id, karma=karma)
            for i, (user_id, karma) in enumerate(scores, 1)
        ],
    )


def get_stats(ledger: Ledger, user_id: str, now: datetime | None = None) -> KarmaStats:
    """Balance plus remaining quota, projecting a pending daily reset."""
    karma = ledger.karma(user_id)
    if is_quota_expired(ledger.last_grant(user_id), now):
        return KarmaStats(
            karma=karma,
            up=ledger.default_quota(Karma.UP),
            down=ledger.default_quota(Karma.DOWN),
        )
    return KarmaStats(
        karma=karma,
        up=ledger.quota(user_id, Karma.UP),
        down=ledger.quota(user_id, Karma.DOWN),
    )


def get_history(ledger: Ledger, user_id: str) -> list[Measure]:
    """The member's stored history log, oldest sample first."""
    return ledger.history(user_id)
