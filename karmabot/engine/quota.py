"""
karmabot.engine.quota — Daily Quota Reset Policy
=================================================

Pure functions, no DB or Discord I/O.

A member's grant allowance resets once per calendar day (UTC): it expires
as soon as the clock passes the midnight that follows the day of their last
grant.  Exactly midnight still belongs to the old window.
"""

from __future__ import annotations

from datetime import UTC, datetime, time, timedelta


def next_reset(timestamp: int) -> datetime:
    """Midnight (UTC) following the calendar day that contains *timestamp*."""
    then = datetime.fromtimestamp(timestamp, UTC)
    return datetime.combine(then.date() + timedelta(days=1), time.min, tzinfo=UTC)


def is_quota_expired(timestamp: int, now: datetime | None = None) -> bool:
    """Return True once *now* is strictly past :func:`next_reset` of *timestamp*.

    A timestamp of 0 means the member never granted anything, which always
    counts as expired.
    """
    if timestamp == 0:
        return True
    now = now or datetime.now(UTC)
    return now > next_reset(timestamp)
