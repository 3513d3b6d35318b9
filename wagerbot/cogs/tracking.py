"""
Tracked player commands: adding and removing players, ranks and peaks.
"""

import discord
from discord import app_commands
from discord.ext import commands
from typing import Optional

from wagerbot.constants import UIConstants
from wagerbot.services.rate_limiter import rate_limit
from wagerbot.utils.clock import utc_date_string
from wagerbot.utils.embeds import build_peak_embed, build_rank_embed, build_ranks_overview_embed
from wagerbot.utils.logger import setup_logger

logger = setup_logger(__name__)


class TrackingCog(commands.Cog):
    """Tracked player management"""

    def __init__(self, bot):
        self.bot = bot
        self.db = bot.db
        self.tracking_ops = bot.tracking_ops
        self.logger = logger

    @app_commands.command(name="adduser", description="Track a player's matches for betting")
    @app_commands.describe(riot_id="Riot ID in GameName#TagLine format (e.g. Nivy#NA1)")
    @app_commands.guild_only()
    @rate_limit("adduser")
    async def adduser(self, interaction: discord.Interaction, riot_id: str):
        await interaction.response.defer()
        player = await self.tracking_ops.add_player(interaction.guild_id, riot_id)

        embed = discord.Embed(
            title="✅ Player Added",
            description=f"Now tracking **{player.riot_tag}**. Bets open when they start a match.",
            color=UIConstants.SUCCESS_COLOR
        )
        await interaction.followup.send(embed=embed)

    @app_commands.command(name="removeuser", description="Stop tracking a player")
    @app_commands.describe(riot_id="Riot ID in GameName#TagLine format")
    @app_commands.guild_only()
    @rate_limit("removeuser")
    async def removeuser(self, interaction: discord.Interaction, riot_id: str):
        await self.tracking_ops.remove_player(interaction.guild_id, riot_id)
        await interaction.response.send_message(
            f"🗑️ Stopped tracking **{riot_id.strip()}**. Their auto-bets were removed."
        )

    @app_commands.command(name="rank", description="Show Solo/Duo rank for a player, or all tracked players")
    @app_commands.describe(riot_id="Riot ID in GameName#TagLine format (omit for all tracked players)")
    @app_commands.guild_only()
    @rate_limit("rank")
    async def rank(self, interaction: discord.Interaction, riot_id: Optional[str] = None):
        await interaction.response.defer()
        emoji_enabled = await self.db.is_emoji_enabled(interaction.guild_id)

        if riot_id:
            riot_tag, entry = await self.tracking_ops.lookup_rank(riot_id)
            await interaction.followup.send(embed=build_rank_embed(riot_tag, entry, emoji_enabled))
            return

        rows = await self.tracking_ops.tracked_ranks(interaction.guild_id)
        await interaction.followup.send(
            embed=build_ranks_overview_embed(rows, utc_date_string(), emoji_enabled)
        )

    @app_commands.command(name="peak", description="Show tracked players' peak ranks")
    @app_commands.guild_only()
    @rate_limit("peak")
    async def peak(self, interaction: discord.Interaction):
        players = await self.tracking_ops.peaks(interaction.guild_id)
        emoji_enabled = await self.db.is_emoji_enabled(interaction.guild_id)
        await interaction.response.send_message(embed=build_peak_embed(players, emoji_enabled))


async def setup(bot):
    await bot.add_cog(TrackingCog(bot))
