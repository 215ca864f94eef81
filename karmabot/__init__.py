"""
karmabot — Peer Karma for Discord Communities
==============================================
Members reply to each other's messages with ``+`` or ``-`` to award or
deduct karma.  Each member gets a small daily allowance of grants; once it
runs out they may spend their *own* karma to push a grant through.

Package layout::

    karmabot/
    ├── config.py          # YAML → typed Python config
    ├── constants.py       # Defaults, tree names, presentation constants
    ├── database/
    │   ├── engine.py      # SQLAlchemy engine + async helper
    │   ├── models.py      # The ``records`` key-value table
    │   └── store.py       # Typed trees over the record table
    ├── engine/
    │   ├── events.py      # Karma polarity, grant requests/results
    │   ├── locks.py       # Per-identity serialization
    │   └── quota.py       # Daily quota reset policy
    ├── services/
    │   ├── ledger.py              # Typed accessors for every entity
    │   ├── transfer_service.py    # Grants + quota-exhausted fallback
    │   ├── stats_service.py       # Leaderboard, stats, history
    │   ├── admin_service.py       # Quota resets
    │   ├── announcement_service.py # Replace-previous notifications
    │   └── chart_service.py       # History → PNG
    ├── bot/
    │   ├── core.py        # Bot subclass, cog loader
    │   └── cogs/          # karma, meta, admin
    └── api/
        ├── main.py        # FastAPI app
        └── routes/        # Read-only public endpoints
"""

__version__ = "0.1.0"
