"""
tests/test_ledger.py — Ledger Accessor Tests
=============================================
"""

from __future__ import annotations

from sqlalchemy.orm import Session

from karmabot.constants import HISTORY_MAX_SIZE
from karmabot.database.models import Record
from karmabot.database.store import Measure
from karmabot.engine.events import Karma
from karmabot.services.ledger import Ledger, notification_key


class TestDefaults:
    def test_absent_keys_read_as_defaults(self, ledger):
        assert ledger.karma("1") == 0
        assert ledger.quota("1", Karma.UP) == 6
        assert ledger.quota("1", Karma.DOWN) == 2
        assert ledger.last_grant("1") == 0
        assert ledger.history("1") == []
        assert ledger.members("g") == set()
        assert ledger.last_message("c", "leaderboard") is None

    def test_configured_quota_defaults(self, store):
        ledger = Ledger(store, default_up=10, default_down=3)
        assert ledger.quota("1", Karma.UP) == 10
        assert ledger.quota("1", Karma.DOWN) == 3


class TestQuota:
    def test_reset_quota_removes_counters(self, ledger, store):
        ledger.set_quota("1", Karma.UP, 0)
        ledger.set_quota("1", Karma.DOWN, 1)

        ledger.reset_quota("1")

        assert store.up.get("1") is None
        assert store.down.get("1") is None
        assert ledger.quota("1", Karma.UP) == 6
        assert ledger.quota("1", Karma.DOWN) == 2

    def test_reset_quota_repairs_corrupt_counter(self, ledger, db_engine):
        with Session(db_engine) as session:
            session.add(Record(tree="up", key="1", value=b"\xff"))
            session.commit()

        ledger.reset_quota("1")

        assert ledger.quota("1", Karma.UP) == 6

    def test_clear_last_grant(self, ledger):
        ledger.set_last_grant("1", 1_700_000_000)
        assert ledger.clear_last_grant("1") is True
        assert ledger.last_grant("1") == 0
        assert ledger.clear_last_grant("1") is False


class TestHistory:
    def test_append_keeps_chronological_order(self, ledger):
        ledger.append_history("1", 1, 100)
        ledger.append_history("1", 2, 200)
        assert ledger.history("1") == [Measure(100, 1), Measure(200, 2)]

    def test_history_capped_to_most_recent(self, ledger):
        for i in range(105):
            ledger.append_history("1", i, 1_000 + i)

        history = ledger.history("1")
        assert len(history) == HISTORY_MAX_SIZE
        assert history[0] == Measure(1_005, 5)
        assert history[-1] == Measure(1_104, 104)
        assert [m.timestamp for m in history] == sorted(m.timestamp for m in history)

    def test_configured_history_size(self, store):
        ledger = Ledger(store, history_size=3)
        for i in range(5):
            ledger.append_history("1", i, i)
        assert [m.karma for m in ledger.history("1")] == [2, 3, 4]


class TestMembersAndMessages:
    def test_add_members_grows_set(self, ledger):
        ledger.add_members("g", "1", "2")
        ledger.add_members("g", "2", "3")
        assert ledger.members("g") == {"1", "2", "3"}

    def test_members_scoped_per_group(self, ledger):
        ledger.add_members("g1", "1")
        assert ledger.members("g2") == set()

    def test_last_message_overwritten(self, ledger):
        ledger.set_last_message(10, "chart", 111)
        ledger.set_last_message(10, "chart", 222)
        assert ledger.last_message(10, "chart") == 222
        assert ledger.last_message(10, "leaderboard") is None

    def test_notification_key(self):
        assert notification_key(10, "status") == "10-status"
        assert notification_key("10", 99) == "10-99"
