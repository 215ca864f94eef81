"""
karmabot.services.admin_service — Admin Quota Resets
=====================================================

Resetting a member means forgetting their last grant: the next grant then
sees an expired window and restores the default counters.  Balances and
history are never touched by admin tools.
"""

from __future__ import annotations

import logging

from karmabot.services.ledger import Ledger

logger = logging.getLogger(__name__)


def reset_quota(ledger: Ledger, user_id: str | None, *, admin_id: str | None = None) -> int:
    """Reset one member's quota window, or everyone's when *user_id* is None.

    Returns the number of members whose last-grant timestamp was cleared.
    """
    if user_id is None:
        cleared = ledger.clear_all_last_grants()
        logger.info("Admin %s reset quota for all members (%d cleared)", admin_id, cleared)
        return cleared

    cleared = 1 if ledger.clear_last_grant(user_id) else 0
    logger.info("Admin %s reset quota for %s", admin_id, user_id)
    return cleared
