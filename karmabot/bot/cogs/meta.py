"""
karmabot.bot.cogs.meta — Leaderboard, Chart & Stats Commands
=============================================================

Hybrid commands for user self-service:
- /leaderboard — guild members ranked by karma
- /chart — karma over time for you (or another member)
- /stats — your karma and today's remaining grants
"""

from __future__ import annotations

import io
import logging
from typing import TYPE_CHECKING

import discord
from discord import app_commands
from discord.ext import commands

from karmabot.constants import MIN_CHART_POINTS, RANK_BADGES, SLOT_CHART, SLOT_LEADERBOARD
from karmabot.database.engine import run_db
from karmabot.services.announcement_service import replace_notification
from karmabot.services.chart_service import render_history_chart
from karmabot.services.stats_service import get_history, get_leaderboard, get_stats

if TYPE_CHECKING:
    from karmabot.bot.core import KarmaBot

logger = logging.getLogger(__name__)


class Meta(commands.Cog, name="Meta"):
    """Leaderboards, charts and personal stats."""

    def __init__(self, bot: KarmaBot) -> None:
        self.bot = bot

    def _display_name(self, guild: discord.Guild | None, user_id: str) -> str:
        member = guild.get_member(int(user_id)) if guild else None
        return member.mention if member else f"<@{user_id}>"

    # -------------------------------------------------------------------
    # /leaderboard
    # -------------------------------------------------------------------
    @commands.hybrid_command(  # type: ignore[arg-type]
        name="leaderboard",
        description="View the members of this server ranked by karma.",
    )
    @commands.guild_only()
    async def leaderboard(self, ctx: commands.Context) -> None:
        assert ctx.guild is not None
        board = await run_db(get_leaderboard, self.bot.ledger, str(ctx.guild.id))

        if board is None:
            await ctx.send("*There are no members with karma in this group.*")
            return

        lines = []
        for entry in board.top(self.bot.cfg.leaderboard_size):
            medal = (
                RANK_BADGES[entry.rank - 1]
                if entry.rank <= len(RANK_BADGES)
                else f"**{entry.rank}.**"
            )
            name = self._display_name(ctx.guild, entry.user_id)
            lines.append(f"{medal} {name} : {entry.karma}")

        embed = discord.Embed(
            title="\U0001f3c6 Leaderboard",
            description="\n".join(lines),
            color=discord.Color.gold(),
        )
        embed.set_footer(text=self.bot.cfg.community_name)
        await replace_notification(self.bot.ledger, ctx.channel, SLOT_LEADERBOARD, embed=embed)

    # -------------------------------------------------------------------
    # /chart
    # -------------------------------------------------------------------
    @commands.hybrid_command(  # type: ignore[arg-type]
        name="chart",
        description="Plot karma over time for you (or another member).",
    )
    @app_commands.describe(member="The member to chart (defaults to you)")
    @commands.guild_only()
    async def chart(self, ctx: commands.Context, member: discord.Member | None = None) -> None:
        target = member
        # A prefix command replying to someone charts that member
        if target is None and ctx.message.reference is not None:
            replied = ctx.message.reference.resolved
            if isinstance(replied, discord.Message):
                target = replied.author
        target = target or ctx.author

        points = await run_db(get_history, self.bot.ledger, str(target.id))
        if len(points) < MIN_CHART_POINTS:
            await ctx.send("*There is no data to display.*")
            return

        png = await run_db(render_history_chart, points, f"karma of {target.display_name}")
        file = discord.File(io.BytesIO(png), filename=f"{target.id}.png")
        await replace_notification(
            self.bot.ledger,
            ctx.channel,
            SLOT_CHART,
            f"Karma chart for {target.mention}",
            file=file,
        )

    # -------------------------------------------------------------------
    # /stats
    # -------------------------------------------------------------------
    @commands.hybrid_command(  # type: ignore[arg-type]
        name="stats",
        description="See your karma and how many grants you have left today.",
    )
    async def stats(self, ctx: commands.Context) -> None:
        stats = await run_db(get_stats, self.bot.ledger, str(ctx.author.id))
        await ctx.send(
            "Your stats:\n"
            f"- {stats.karma} karma\n"
            f"- {stats.up} + available today\n"
            f"- {stats.down} - available today",
            ephemeral=True,
        )


async def setup(bot: KarmaBot) -> None:
    await bot.add_cog(Meta(bot))
