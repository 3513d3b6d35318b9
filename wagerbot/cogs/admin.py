"""
Server configuration commands for moderators.
"""

import discord
from discord import app_commands
from discord.ext import commands

from wagerbot.constants import UIConstants
from wagerbot.utils.logger import setup_logger

logger = setup_logger(__name__)


class AdminCog(commands.Cog):
    """Per-guild settings"""

    def __init__(self, bot):
        self.bot = bot
        self.db = bot.db
        self.logger = logger

    @app_commands.command(name="bethere", description="Send match notifications to this channel")
    @app_commands.guild_only()
    @app_commands.default_permissions(manage_channels=True)
    @app_commands.checks.has_permissions(manage_channels=True)
    async def bethere(self, interaction: discord.Interaction):
        await self.db.set_guild_channel(interaction.guild_id, interaction.channel_id)
        self.logger.info(f"{interaction.user} set notifications to {interaction.channel_id} in {interaction.guild_id}")
        await interaction.response.send_message(
            embed=discord.Embed(
                description=f"📢 Match notifications will be posted in {interaction.channel.mention}.",
                color=UIConstants.SUCCESS_COLOR
            )
        )

    @app_commands.command(name="emoji", description="Turn custom rank emoji on or off")
    @app_commands.describe(state="on or off")
    @app_commands.choices(state=[
        app_commands.Choice(name="on", value="on"),
        app_commands.Choice(name="off", value="off"),
    ])
    @app_commands.guild_only()
    @app_commands.default_permissions(manage_guild=True)
    @app_commands.checks.has_permissions(manage_guild=True)
    async def emoji(self, interaction: discord.Interaction, state: app_commands.Choice[str]):
        enabled = state.value == "on"
        await self.db.set_emoji_enabled(interaction.guild_id, enabled)
        await interaction.response.send_message(
            f"Rank emoji **{'enabled' if enabled else 'disabled'}**.", ephemeral=True
        )


async def setup(bot):
    await bot.add_cog(AdminCog(bot))
