"""
karmabot.bot.cogs.admin — Admin Slash Commands
===============================================

Discord slash commands for server admins:
- /reset — restore a member's daily quota
- /reset-all — restore everyone's daily quota
- /info — show a member's Discord id

All commands require the configured admin_role_id and answer ephemerally.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import discord
from discord import app_commands
from discord.ext import commands

from karmabot.database.engine import run_db
from karmabot.services.admin_service import reset_quota

if TYPE_CHECKING:
    from karmabot.bot.core import KarmaBot

logger = logging.getLogger(__name__)


def is_admin():
    """Decorator that checks if the user has the configured admin role."""
    async def predicate(interaction: discord.Interaction) -> bool:
        bot: KarmaBot = interaction.client  # type: ignore[assignment]
        if not interaction.user or not hasattr(interaction.user, "roles"):
            return False
        admin_role_id = bot.cfg.admin_role_id
        return any(role.id == admin_role_id for role in interaction.user.roles)
    return app_commands.check(predicate)


class Admin(commands.Cog, name="Admin"):
    """Quota administration."""

    def __init__(self, bot: KarmaBot) -> None:
        self.bot = bot

    @app_commands.command(name="reset", description="Restore a member's daily quota.")
    @app_commands.describe(member="The member whose quota to reset")
    @is_admin()
    async def reset(self, interaction: discord.Interaction, member: discord.Member) -> None:
        await run_db(
            reset_quota,
            self.bot.ledger,
            str(member.id),
            admin_id=str(interaction.user.id),
        )
        await interaction.response.send_message("Reset complete.", ephemeral=True)

    @app_commands.command(name="reset-all", description="Restore every member's daily quota.")
    @is_admin()
    async def reset_all(self, interaction: discord.Interaction) -> None:
        cleared = await run_db(
            reset_quota, self.bot.ledger, None, admin_id=str(interaction.user.id)
        )
        await interaction.response.send_message(
            f"Reset complete ({cleared} members).", ephemeral=True
        )

    @app_commands.command(name="info", description="Identify a member.")
    @app_commands.describe(member="The member to identify")
    @is_admin()
    async def info(self, interaction: discord.Interaction, member: discord.Member) -> None:
        await interaction.response.send_message(
            f"User info {member.display_name}:\n- ID: {member.id}",
            ephemeral=True,
        )

    # -------------------------------------------------------------------
    # Error handler for missing admin role
    # -------------------------------------------------------------------
    async def cog_app_command_error(
        self, interaction: discord.Interaction, error: app_commands.AppCommandError
    ) -> None:
        if isinstance(error, app_commands.CheckFailure):
            await interaction.response.send_message(
                "🔒 You need the Admin role to use this command.",
                ephemeral=True,
            )
        else:
            raise error


async def setup(bot: KarmaBot) -> None:
    await bot.add_cog(Admin(bot))
