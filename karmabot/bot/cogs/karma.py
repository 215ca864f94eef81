"""
karmabot.bot.cogs.karma — Reply Grants & Fallback Button
=========================================================

Listens for guild messages that reply to someone and start with ``+`` or
``-``, turns them into :class:`GrantRequest` objects and runs them through
the transfer engine.

Pipeline:
1. on_message fires → gate checks (DM, not a reply, no polarity)
2. Resolve the replied-to message and build a GrantRequest
3. Call transfers.grant (runs on a background thread via run_db)
4. Post the receiver's new karma, or a "no more points" notice carrying a
   persistent "use my karma" button (:class:`FallbackButton`)
5. Button press → transfers.confirm_fallback, then edit the notice
"""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING, Any

import discord
from discord.ext import commands

from karmabot.constants import SLOT_STATUS
from karmabot.database.engine import run_db
from karmabot.engine.events import (
    CUSTOM_ID_TEMPLATE,
    FallbackOffer,
    GrantOutcome,
    GrantRequest,
    GrantResult,
    Karma,
)
from karmabot.services.announcement_service import (
    SILENT_MENTIONS,
    delete_previous,
    remember,
    replace_notification,
)

if TYPE_CHECKING:
    from karmabot.bot.core import KarmaBot

logger = logging.getLogger(__name__)

# Discord caps button labels at 80 characters.
_MAX_LABEL = 80


def build_grant_request(message: discord.Message, target: discord.Message) -> GrantRequest | None:
    """GrantRequest for *message* replying to *target*, or None if it isn't a grant."""
    polarity = Karma.from_text(message.content)
    if polarity is None:
        return None
    return GrantRequest(
        giver_id=str(message.author.id),
        receiver_id=str(target.author.id),
        polarity=polarity,
        group_id=str(message.guild.id) if message.guild else None,
        giver_is_bot=message.author.bot,
        receiver_is_bot=target.author.bot,
    )


def fallback_label(polarity: Karma, receiver_name: str) -> str:
    label = f"use my karma as {polarity} for {receiver_name}"
    return label if len(label) <= _MAX_LABEL else label[: _MAX_LABEL - 1] + "…"


def fallback_text(result: GrantResult, giver: discord.abc.User) -> str:
    """Text of a notice after its fallback button was accepted."""
    return (
        f"{result.polarity} reputation of <@{result.receiver_id}> ({result.karma})\n"
        f"*thanks to {giver.mention}'s {result.source} ({result.giver_karma})*"
    )


class FallbackButton(discord.ui.DynamicItem[discord.ui.Button], template=CUSTOM_ID_TEMPLATE):
    """Persistent "use my karma" button; survives bot restarts.

    The polarity and receiver travel in the custom id.  Whoever presses the
    button is the giver.
    """

    def __init__(self, offer: FallbackOffer, label: str = "use my karma") -> None:
        super().__init__(
            discord.ui.Button(
                label=label,
                style=discord.ButtonStyle.primary,
                custom_id=offer.to_custom_id(),
            )
        )
        self.offer = offer

    @classmethod
    async def from_custom_id(
        cls,
        interaction: discord.Interaction,
        item: discord.ui.Item[Any],
        match: re.Match[str],
        /,
    ) -> FallbackButton:
        offer = FallbackOffer(Karma(match["polarity"]), match["receiver"])
        return cls(offer, label=getattr(item, "label", None) or "use my karma")

    async def callback(self, interaction: discord.Interaction) -> None:
        bot: KarmaBot = interaction.client  # type: ignore[assignment]
        request = GrantRequest(
            giver_id=str(interaction.user.id),
            receiver_id=self.offer.receiver_id,
            polarity=self.offer.polarity,
            group_id=str(interaction.guild_id) if interaction.guild_id else None,
            giver_is_bot=interaction.user.bot,
        )
        try:
            result = await run_db(bot.transfers.confirm_fallback, request)
        except Exception:
            logger.exception(
                "Error confirming fallback from %s for %s",
                request.giver_id,
                request.receiver_id,
            )
            await interaction.response.send_message("something went wrong", ephemeral=True)
            return

        if result.outcome is GrantOutcome.REJECTED:
            await interaction.response.send_message(
                "you can't give karma to yourself", ephemeral=True
            )
            return
        if result.outcome is GrantOutcome.INSUFFICIENT_KARMA:
            await interaction.response.send_message("not enough karma", ephemeral=True)
            return

        await interaction.response.edit_message(
            content=fallback_text(result, interaction.user),
            view=None,
            allowed_mentions=SILENT_MENTIONS,
        )
        if interaction.message is not None and interaction.channel is not None:
            # The edited notice becomes the receiver's live update message
            channel = interaction.channel
            await delete_previous(
                bot.ledger, channel, result.receiver_id, keep=interaction.message.id
            )
            await remember(bot.ledger, channel, result.receiver_id, interaction.message.id)


class KarmaCog(commands.Cog, name="Karma"):
    """Awards and deducts karma from ``+`` / ``-`` replies."""

    def __init__(self, bot: KarmaBot) -> None:
        self.bot = bot

    async def _resolve_target(self, message: discord.Message) -> discord.Message | None:
        ref = message.reference
        if ref is None or ref.message_id is None:
            return None
        if isinstance(ref.resolved, discord.Message):
            return ref.resolved
        try:
            return await message.channel.fetch_message(ref.message_id)
        except discord.HTTPException:
            logger.debug("Replied-to message %s is unavailable", ref.message_id)
            return None

    @commands.Cog.listener()
    async def on_message(self, message: discord.Message) -> None:
        """Grant loop — fires on every guild message."""
        try:
            await self._handle_message(message)
        except Exception:
            logger.exception(
                "Error processing message %s from user %s",
                message.id,
                message.author.id,
            )

    async def _handle_message(self, message: discord.Message) -> None:
        """Inner message handler (separated for error isolation)."""

        # Gate 1: guild messages only
        if message.guild is None:
            return

        # Gate 2: must start with + or - and reply to someone
        if Karma.from_text(message.content) is None:
            return
        target = await self._resolve_target(message)
        if target is None:
            return

        request = build_grant_request(message, target)
        if request is None:
            return

        result = await run_db(self.bot.transfers.grant, request)

        if result.outcome is GrantOutcome.DIRECT:
            await replace_notification(
                self.bot.ledger,
                message.channel,
                result.receiver_id,
                f"reputation of {target.author.mention} ({result.karma})",
            )
        elif result.outcome is GrantOutcome.OFFERED_FALLBACK:
            view = discord.ui.View(timeout=None)
            view.add_item(
                FallbackButton(
                    FallbackOffer.from_result(result),
                    label=fallback_label(result.polarity, target.author.display_name),
                )
            )
            await replace_notification(
                self.bot.ledger,
                message.channel,
                SLOT_STATUS,
                f"*no more {result.polarity} points available today*",
                view=view,
            )


async def setup(bot: KarmaBot) -> None:
    bot.add_dynamic_items(FallbackButton)
    await bot.add_cog(KarmaCog(bot))
