"""
karmabot.database.models — SQLAlchemy 2.0 Data Models
======================================================

The ledger keeps every entity in one generic key-value table.  Each logical
partition ("tree") — balances, quota counters, timestamps, history logs,
memberships, last-message references — is a set of rows sharing the same
``tree`` value.

Tables:
- records — (tree, key) → serialized value bytes
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, LargeBinary, String, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


# ---------------------------------------------------------------------------
# Base
# ---------------------------------------------------------------------------
class Base(DeclarativeBase):
    """Shared base for all karmabot ORM models."""


# ---------------------------------------------------------------------------
# Records — one row per (tree, key)
# ---------------------------------------------------------------------------
class Record(Base):
    __tablename__ = "records"

    tree: Mapped[str] = mapped_column(String(32), primary_key=True)
    key: Mapped[str] = mapped_column(String(100), primary_key=True)
    value: Mapped[bytes] = mapped_column(LargeBinary, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    def __repr__(self) -> str:
        return f"<Record tree={self.tree!r} key={self.key!r} size={len(self.value)}>"
