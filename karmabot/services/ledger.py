"""
karmabot.services.ledger — Typed Ledger Accessors
==================================================

Shared service module callable by the bot, the API and the admin tools.
Wraps the :class:`~karmabot.database.store.Store` trees with the ledger's
vocabulary and defaults:

- balance       — signed karma per member, global across guilds (default 0)
- quota         — remaining ``+`` / ``-`` grants today (default 6 / 2)
- last grant    — Unix time of the member's last direct grant (default 0)
- history       — bounded ``(timestamp, karma)`` log per member
- members       — who has given or received karma in a guild
- last message  — most recent bot notification per channel slot

Absent keys always read as their default; nothing here enforces rules.
The rules live in :mod:`karmabot.services.transfer_service`.
"""

from __future__ import annotations

import logging

from karmabot.constants import (
    DEFAULT_DOWN,
    DEFAULT_KARMA,
    DEFAULT_LAST,
    DEFAULT_UP,
    HISTORY_MAX_SIZE,
)
from karmabot.database.store import Measure, Store, Tree
from karmabot.engine.events import Karma

logger = logging.getLogger(__name__)


def notification_key(channel_id: str | int, slot: str | int) -> str:
    """Key of a last-message reference, e.g. ``"1234-leaderboard"``."""
    return f"{channel_id}-{slot}"


class Ledger:
    """Typed view of every entity the karma engine reads and writes."""

    def __init__(
        self,
        store: Store,
        *,
        default_up: int = DEFAULT_UP,
        default_down: int = DEFAULT_DOWN,
        history_size: int = HISTORY_MAX_SIZE,
    ) -> None:
        self.store = store
        self.default_up = default_up
        self.default_down = default_down
        self.history_size = history_size

    # -------------------------------------------------------------------
    # Balance
    # -------------------------------------------------------------------
    def karma(self, user_id: str) -> int:
        return self.store.karma.get_or(user_id, DEFAULT_KARMA)

    def set_karma(self, user_id: str, karma: int) -> None:
        self.store.karma.insert(user_id, karma)

    # -------------------------------------------------------------------
    # Quota counters
    # -------------------------------------------------------------------
    def _quota_tree(self, polarity: Karma) -> tuple[Tree[int], int]:
        if polarity is Karma.UP:
            return self.store.up, self.default_up
        return self.store.down, self.default_down

    def default_quota(self, polarity: Karma) -> int:
        return self._quota_tree(polarity)[1]

    def quota(self, user_id: str, polarity: Karma) -> int:
        tree, default = self._quota_tree(polarity)
        return tree.get_or(user_id, default)

    def set_quota(self, user_id: str, polarity: Karma, remaining: int) -> None:
        tree, _ = self._quota_tree(polarity)
        tree.insert(user_id, remaining)

    def reset_quota(self, user_id: str) -> None:
        """Drop both counters so the next read yields the defaults."""
        self.store.up.discard(user_id)
        self.store.down.discard(user_id)

    # -------------------------------------------------------------------
    # Last grant
    # -------------------------------------------------------------------
    def last_grant(self, user_id: str) -> int:
        return self.store.last.get_or(user_id, DEFAULT_LAST)

    def set_last_grant(self, user_id: str, timestamp: int) -> None:
        self.store.last.insert(user_id, timestamp)

    def clear_last_grant(self, user_id: str) -> bool:
        """Forget the member's last grant.  Returns True if one was stored."""
        return self.store.last.discard(user_id)

    def clear_all_last_grants(self) -> int:
        return self.store.last.clear()

    # -------------------------------------------------------------------
    # History
    # -------------------------------------------------------------------
    def history(self, user_id: str) -> list[Measure]:
        return self.store.graph.get_or(user_id, [])

    def append_history(self, user_id: str, karma: int, timestamp: int) -> list[Measure]:
        """Append a sample, keeping only the most recent ``history_size``."""
        graph = self.history(user_id)
        graph.append(Measure(timestamp, karma))
        if len(graph) > self.history_size:
            graph = graph[len(graph) - self.history_size:]
        self.store.graph.insert(user_id, graph)
        return graph

    # -------------------------------------------------------------------
    # Membership
    # -------------------------------------------------------------------
    def members(self, group_id: str) -> set[str]:
        return self.store.members.get_or(group_id, set())

    def add_members(self, group_id: str, *user_ids: str) -> set[str]:
        members = self.members(group_id)
        if members.issuperset(user_ids):
            return members
        members.update(user_ids)
        self.store.members.insert(group_id, members)
        return members

    # -------------------------------------------------------------------
    # Last notification message
    # -------------------------------------------------------------------
    def last_message(self, channel_id: str | int, slot: str | int) -> int | None:
        return self.store.last_message.get(notification_key(channel_id, slot))

    def set_last_message(self, channel_id: str | int, slot: str | int, message_id: int) -> None:
        self.store.last_message.insert(notification_key(channel_id, slot), message_id)
