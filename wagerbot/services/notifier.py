"""
Guild notification delivery.

Posts are best effort: a missing channel or a Discord error is logged and the
caller carries on. Delivery is at-least-once at most; nothing is retried.
"""

from typing import Optional

import discord

from wagerbot.utils.logger import setup_logger

logger = setup_logger(__name__)


class Notifier:
    """Sends and deletes bot messages in each guild's betting channel."""

    def __init__(self, bot, db):
        self.bot = bot
        self.db = db

    async def resolve_channel(self, guild_id: int) -> Optional[discord.abc.Messageable]:
        """The configured channel, else the first text channel the bot may send to."""
        guild = self.bot.get_guild(guild_id)
        if guild is None:
            return None

        channel_id = await self.db.get_guild_channel(guild_id)
        if channel_id:
            channel = guild.get_channel(channel_id)
            if channel is not None:
                return channel
            logger.warning(f"Configured channel {channel_id} missing in guild {guild_id}, falling back")

        me = guild.me
        for channel in guild.text_channels:
            if me is None or channel.permissions_for(me).send_messages:
                return channel
        return None

    async def publish(self, guild_id: int, embed: discord.Embed,
                      view: Optional[discord.ui.View] = None) -> Optional[int]:
        """Post an embed; returns the message id, or None if nothing was sent."""
        channel = await self.resolve_channel(guild_id)
        if channel is None:
            logger.warning(f"No channel available for notifications in guild {guild_id}")
            return None

        try:
            if view is not None:
                message = await channel.send(embed=embed, view=view)
            else:
                message = await channel.send(embed=embed)
        except discord.HTTPException as e:
            logger.error(f"Failed to publish to guild {guild_id}: {e}")
            return None
        return message.id

    async def delete(self, guild_id: int, message_id: Optional[int]):
        """Delete a previous post; errors are logged and never raised."""
        if not message_id:
            return
        channel = await self.resolve_channel(guild_id)
        if channel is None:
            return
        try:
            message = await channel.fetch_message(message_id)
            await message.delete()
        except discord.NotFound:
            logger.debug(f"Message {message_id} in guild {guild_id} already gone")
        except discord.HTTPException as e:
            logger.warning(f"Failed to delete message {message_id} in guild {guild_id}: {e}")
