"""
tests/conftest.py — Shared Test Fixtures
=========================================
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest
from sqlalchemy import Engine, create_engine
from sqlalchemy.pool import StaticPool

from karmabot.database.models import Base
from karmabot.database.store import Store
from karmabot.services.ledger import Ledger
from karmabot.services.transfer_service import TransferService


class FakeClock:
    """Settable clock for the transfer engine."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now

    @property
    def timestamp(self) -> int:
        return int(self.now.timestamp())


@pytest.fixture
def db_engine() -> Engine:
    """Create an in-memory SQLite engine with the records table.

    Uses StaticPool so all threads share the same in-memory database
    (required by ``asyncio.to_thread`` used in ``run_db``).
    """
    engine = create_engine(
        "sqlite://",
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    return engine


@pytest.fixture
def store(db_engine: Engine) -> Store:
    return Store(db_engine)


@pytest.fixture
def ledger(store: Store) -> Ledger:
    return Ledger(store)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2026, 3, 10, 15, 30, tzinfo=UTC))


@pytest.fixture
def transfers(ledger: Ledger, clock: FakeClock) -> TransferService:
    return TransferService(ledger, clock=clock)
