"""
karmabot.bot.core — Bot Instance & Cog Loader
==============================================

**Why this file exists:**
Defines :class:`KarmaBot`, a ``commands.Bot`` subclass that:

1. Stores the shared config (``bot.cfg``), DB engine (``bot.engine``),
   ledger (``bot.ledger``) and transfer engine (``bot.transfers``) so every
   Cog can reach them via ``self.bot.*``.
2. Loads every Cog listed in :data:`EXTENSIONS`.
3. Syncs the slash-command tree on startup (guild-scoped for dev, global
   for production — controlled by the ``DEV_GUILD_ID`` env var).
"""

from __future__ import annotations

import logging
import os

import discord
from discord.ext import commands
from sqlalchemy import Engine

from karmabot.config import KarmaConfig
from karmabot.database.store import Store
from karmabot.services.ledger import Ledger
from karmabot.services.transfer_service import TransferService

logger = logging.getLogger(__name__)

# Cog modules to load on startup.
EXTENSIONS: list[str] = [
    "karmabot.bot.cogs.karma",
    "karmabot.bot.cogs.meta",
    "karmabot.bot.cogs.admin",
]


class KarmaBot(commands.Bot):
    """Custom Bot subclass that carries project-wide state.

    Parameters
    ----------
    cfg:
        The parsed :class:`KarmaConfig` from ``config.yaml``.
    engine:
        A SQLAlchemy :class:`Engine` holding the ledger's records.
    """

    def __init__(self, cfg: KarmaConfig, engine: Engine) -> None:
        # MESSAGE_CONTENT is privileged (enable it in the Developer Portal);
        # it is needed to read the leading + / - of a reply.
        # MEMBERS resolves leaderboard names from the member cache.
        intents = discord.Intents.default()
        intents.message_content = True
        intents.members = True
        intents.presences = False

        super().__init__(
            command_prefix=cfg.bot_prefix,
            intents=intents,
            description=f"{cfg.community_name} karma",
        )

        # Attach shared state so Cogs can read it via self.bot.*
        self.cfg = cfg
        self.engine = engine
        self.ledger = Ledger(
            Store(engine),
            default_up=cfg.up_quota,
            default_down=cfg.down_quota,
            history_size=cfg.history_size,
        )
        self.transfers = TransferService(self.ledger)

    # -----------------------------------------------------------------------
    # Lifecycle hooks
    # -----------------------------------------------------------------------
    async def setup_hook(self) -> None:
        """Called once before the bot connects to Discord.

        Loads all Cog extensions.  If any extension fails to load, we log
        the error but keep going — one broken Cog shouldn't take down the
        whole bot.
        """
        for ext in EXTENSIONS:
            try:
                await self.load_extension(ext)
                logger.info("Loaded extension: %s", ext)
            except Exception as exc:
                logger.error("Failed to load extension %s: %s", ext, exc)

    async def on_ready(self) -> None:
        """Fired when the bot has connected and the cache is populated."""
        assert self.user is not None  # guaranteed after on_ready
        logger.info("Logged in as %s (ID: %s)", self.user.name, self.user.id)

        dev_guild_id = os.getenv("DEV_GUILD_ID")
        if dev_guild_id:
            guild = discord.Object(id=int(dev_guild_id))
            self.tree.copy_global_to(guild=guild)
            synced = await self.tree.sync(guild=guild)
            logger.info("Synced %d commands to dev guild %s", len(synced), dev_guild_id)
        else:
            synced = await self.tree.sync()
            logger.info("Synced %d commands globally", len(synced))
