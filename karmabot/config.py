"""
karmabot.config — YAML Configuration Loader
============================================

**Why this file exists:**
This module reads ``config.yaml`` for the soft settings of a deployment
(community identity, command prefix, admin role, quota tuning).  Secrets
such as the Discord token and the database URL live in ``.env`` and are
read where they are needed.

Usage::

    from karmabot.config import load_config

    cfg = load_config()          # reads ./config.yaml by default
    print(cfg.community_name)    # "Karma Dev"
    print(cfg.up_quota)          # 6
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import yaml

from karmabot.constants import DEFAULT_DOWN, DEFAULT_UP, HISTORY_MAX_SIZE


# ---------------------------------------------------------------------------
# Typed settings object
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class KarmaConfig:
    """Immutable configuration loaded from ``config.yaml``."""

    # Identity
    community_name: str

    # Discord
    bot_prefix: str
    admin_role_id: int  # Discord role required for admin commands

    # Ledger tuning
    up_quota: int = DEFAULT_UP
    down_quota: int = DEFAULT_DOWN
    history_size: int = HISTORY_MAX_SIZE

    # Presentation
    leaderboard_size: int = 25

    # API
    api_port: int = 8000


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------
def load_config(path: str | Path = "config.yaml") -> KarmaConfig:
    """Read *path* and return a :class:`KarmaConfig` instance.

    Parameters
    ----------
    path:
        Filesystem path to the YAML configuration file.
        Defaults to ``config.yaml`` in the current working directory.

    Raises
    ------
    FileNotFoundError
        If the YAML file doesn't exist.
    KeyError
        If a required key is missing from the YAML file.
    """
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(
            f"Configuration file not found: {config_path.resolve()}\n"
            "Hint: copy config.yaml.example → config.yaml and edit it."
        )

    with open(config_path, encoding="utf-8") as fh:
        raw: dict = yaml.safe_load(fh) or {}

    return KarmaConfig(
        community_name=raw["community_name"],
        bot_prefix=raw["bot_prefix"],
        admin_role_id=int(raw["admin_role_id"]),
        up_quota=int(raw.get("up_quota", DEFAULT_UP)),
        down_quota=int(raw.get("down_quota", DEFAULT_DOWN)),
        history_size=int(raw.get("history_size", HISTORY_MAX_SIZE)),
        leaderboard_size=int(raw.get("leaderboard_size", 25)),
        api_port=int(raw.get("api_port", 8000)),
    )
