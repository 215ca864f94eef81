"""
karmabot.constants — Shared Constants
======================================

Single source of truth for ledger defaults, store tree names and
presentation constants.  Import from here instead of duplicating in cogs,
services, and the API.
"""

from __future__ import annotations

# ---------------------------------------------------------------------------
# Ledger defaults
# ---------------------------------------------------------------------------
DEFAULT_KARMA = 0
DEFAULT_UP = 6
DEFAULT_DOWN = 2
DEFAULT_LAST = 0

HISTORY_MAX_SIZE = 100

# A chart needs at least two samples to draw a line.
MIN_CHART_POINTS = 2

# ---------------------------------------------------------------------------
# Store trees (one logical partition per entity)
# ---------------------------------------------------------------------------
TREE_KARMA = "karma"
TREE_UP = "up"
TREE_DOWN = "down"
TREE_LAST = "last"
TREE_GRAPH = "graph"
TREE_MEMBERS = "members"
TREE_LAST_MESSAGE = "last_message"

# ---------------------------------------------------------------------------
# Notification slots (last-message references per channel)
# ---------------------------------------------------------------------------
SLOT_LEADERBOARD = "leaderboard"
SLOT_CHART = "chart"
SLOT_STATUS = "status"

# ---------------------------------------------------------------------------
# Presentation
# ---------------------------------------------------------------------------
RANK_BADGES: list[str] = ["\U0001f947", "\U0001f948", "\U0001f949"]  # 🥇🥈🥉
