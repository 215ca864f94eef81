"""
karmabot.api.deps — FastAPI dependency injection
=================================================
"""

from __future__ import annotations

from functools import lru_cache
from typing import Annotated

from fastapi import Depends
from sqlalchemy import Engine

from karmabot.config import KarmaConfig, load_config
from karmabot.database.engine import create_db_engine
from karmabot.database.store import Store
from karmabot.services.ledger import Ledger


@lru_cache(maxsize=1)
def get_engine() -> Engine:
    return create_db_engine()


@lru_cache(maxsize=1)
def get_config() -> KarmaConfig:
    return load_config()


def get_ledger(engine: Annotated[Engine, Depends(get_engine)]) -> Ledger:
    """Ledger over the shared engine.

    Quota defaults come from ``config.yaml`` when present so the API
    projects the same allowance the bot enforces.
    """
    try:
        cfg = get_config()
    except FileNotFoundError:
        return Ledger(Store(engine))
    return Ledger(
        Store(engine),
        default_up=cfg.up_quota,
        default_down=cfg.down_quota,
        history_size=cfg.history_size,
    )
