"""
karmabot.services.announcement_service — Replace-previous Notifications
========================================================================

Each kind of bot notification (leaderboard, chart, "quota exhausted",
per-receiver karma update) keeps one live message per channel.  Posting a
new one deletes the previous message of the same slot first.

Deleting is best effort: the old message may already be gone or the bot
may have lost permissions, neither of which should block the new post.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import discord

from karmabot.database.engine import run_db

if TYPE_CHECKING:
    from karmabot.services.ledger import Ledger

logger = logging.getLogger(__name__)

# Mentions render as names without pinging anyone.
SILENT_MENTIONS = discord.AllowedMentions.none()


async def delete_previous(
    ledger: Ledger,
    channel: discord.abc.Messageable,
    slot: str | int,
    *,
    keep: int | None = None,
) -> None:
    """Delete the last message posted in *slot*, unless its id is *keep*."""
    channel_id = getattr(channel, "id", 0)
    previous = await run_db(ledger.last_message, channel_id, slot)
    if previous is None or previous == keep:
        return
    try:
        await channel.get_partial_message(previous).delete()  # type: ignore[attr-defined]
    except discord.HTTPException as exc:
        logger.debug(
            "Could not delete previous %s message %d in %d: %s",
            slot,
            previous,
            channel_id,
            exc,
        )


async def remember(
    ledger: Ledger, channel: discord.abc.Messageable, slot: str | int, message_id: int
) -> None:
    """Record *message_id* as the live message of *slot*."""
    await run_db(ledger.set_last_message, getattr(channel, "id", 0), slot, message_id)


async def replace_notification(
    ledger: Ledger,
    channel: discord.abc.Messageable,
    slot: str | int,
    content: str | None = None,
    **kwargs: Any,
) -> discord.Message:
    """Delete the previous message of *slot*, post a new one, remember it.

    Extra keyword arguments go straight to ``channel.send`` (``embed``,
    ``file``, ``view``, ...).
    """
    await delete_previous(ledger, channel, slot)
    kwargs.setdefault("allowed_mentions", SILENT_MENTIONS)
    message = await channel.send(content, **kwargs)
    await remember(ledger, channel, slot, message.id)
    return message
