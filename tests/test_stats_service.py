"""
tests/test_stats_service.py — Leaderboard & Stats Views
========================================================
"""

from __future__ import annotations

from karmabot.engine.events import GrantRequest, Karma
from karmabot.services.stats_service import get_history, get_leaderboard, get_stats

GUILD = "900"


class TestLeaderboard:
    def test_empty_group(self, ledger):
        assert get_leaderboard(ledger, GUILD) is None

    def test_single_grant(self, transfers, ledger):
        transfers.grant(GrantRequest("1", "2", Karma.UP, group_id=GUILD))

        board = get_leaderboard(ledger, GUILD)

        assert board is not None
        assert [(e.rank, e.user_id, e.karma) for e in board.entries] == [
            (1, "2", 1),
            (2, "1", 0),
        ]

    def test_sorted_descending(self, ledger):
        ledger.add_members(GUILD, "a", "b", "c")
        ledger.set_karma("a", -4)
        ledger.set_karma("b", 12)
        ledger.set_karma("c", 3)

        board = get_leaderboard(ledger, GUILD)

        assert [e.user_id for e in board.entries] == ["b", "c", "a"]
        assert [e.rank for e in board.entries] == [1, 2, 3]

    def test_ties_in_any_order(self, ledger):
        ledger.add_members(GUILD, "a", "b", "c")
        ledger.set_karma("a", 5)
        ledger.set_karma("b", 5)
        ledger.set_karma("c", 9)

        board = get_leaderboard(ledger, GUILD)

        assert board.entries[0].user_id == "c"
        assert {e.user_id for e in board.entries[1:]} == {"a", "b"}

    def test_top_limits_entries(self, ledger):
        ledger.add_members(GUILD, *(str(i) for i in range(10)))
        board = get_leaderboard(ledger, GUILD)
        assert len(board.top(3)) == 3
        assert len(board.top(50)) == 10

    def test_balances_are_global(self, transfers, ledger):
        transfers.grant(GrantRequest("1", "2", Karma.UP, group_id="g1"))
        transfers.grant(GrantRequest("3", "2", Karma.UP, group_id="g2"))

        board = get_leaderboard(ledger, "g1")

        assert {e.user_id: e.karma for e in board.entries} == {"1": 0, "2": 2}


class TestStats:
    def test_fresh_member(self, ledger, clock):
        stats = get_stats(ledger, "1", clock.now)
        assert (stats.karma, stats.up, stats.down) == (0, 6, 2)

    def test_reflects_spent_quota(self, transfers, ledger, clock):
        transfers.grant(GrantRequest("1", "2", Karma.UP))
        transfers.grant(GrantRequest("1", "2", Karma.DOWN))

        stats = get_stats(ledger, "1", clock.now)

        assert (stats.up, stats.down) == (5, 1)

    def test_projects_reset_without_writing(self, transfers, ledger, store, clock):
        transfers.grant(GrantRequest("1", "2", Karma.UP))
        clock.advance(days=1)

        stats = get_stats(ledger, "1", clock.now)

        assert (stats.up, stats.down) == (6, 2)
        assert store.up.get("1") == 5

    def test_history_view(self, transfers, ledger, clock):
        transfers.grant(GrantRequest("1", "2", Karma.UP))
        assert [m.karma for m in get_history(ledger, "2")] == [1]
        assert get_history(ledger, "1") == []
