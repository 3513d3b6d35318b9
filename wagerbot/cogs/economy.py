"""
Economy commands: collecting coins, gifting, leaderboards and personal stats.
"""

import discord
from typing import Optional
from discord import app_commands
from discord.ext import commands

from wagerbot.config import Config
from wagerbot.constants import UIConstants
from wagerbot.database.match_operations import MatchOperations
from wagerbot.services.rate_limiter import rate_limit
from wagerbot.utils.betting_exceptions import InvalidTransferError
from wagerbot.utils.embeds import build_history_embed, build_leaderboard_embed, build_stats_embed
from wagerbot.utils.logger import setup_logger

logger = setup_logger(__name__)


class EconomyCog(commands.Cog):
    """Coin balance commands"""

    def __init__(self, bot):
        self.bot = bot
        self.db = bot.db
        self.match_ops = MatchOperations(bot.db)
        self.logger = logger

    @app_commands.command(name="collect", description="Collect your free coins")
    @app_commands.guild_only()
    @rate_limit("collect")
    async def collect(self, interaction: discord.Interaction):
        balance = await self.db.collect(interaction.guild_id, interaction.user.id)

        embed = discord.Embed(
            title=f"{UIConstants.COIN_EMOJI} Coins Collected!",
            description=(
                f"You collected **{Config.COLLECT_AMOUNT:,}** {UIConstants.COIN_EMOJI}\n"
                f"Balance: **{balance:,}** {UIConstants.COIN_EMOJI}"
            ),
            color=UIConstants.GOLD_COLOR
        )
        hours = Config.COLLECT_COOLDOWN_HOURS
        embed.set_footer(text=f"Come back in {hours:g} hour{'s' if hours != 1 else ''}")
        await interaction.response.send_message(embed=embed)

    @app_commands.command(name="give", description="Give coins to another member")
    @app_commands.describe(user="Who receives the coins", amount="How many coins to give")
    @app_commands.guild_only()
    @rate_limit("give")
    async def give(self, interaction: discord.Interaction, user: discord.Member,
                   amount: app_commands.Range[int, 1]):
        if user.bot:
            raise InvalidTransferError("You can't give coins to a bot.")

        balance = await self.db.transfer_coins(interaction.guild_id, interaction.user.id, user.id, amount)
        await interaction.response.send_message(
            f"🎁 **{interaction.user.display_name}** gave **{amount:,}** {UIConstants.COIN_EMOJI} "
            f"to {user.mention}. Your balance: **{balance:,}** {UIConstants.COIN_EMOJI}"
        )

    @app_commands.command(name="baltop", description="Show the richest members")
    @app_commands.guild_only()
    @rate_limit("baltop")
    async def baltop(self, interaction: discord.Interaction):
        users = await self.db.get_top_users(interaction.guild_id, UIConstants.LEADERBOARD_LIMIT)
        await interaction.response.send_message(embed=build_leaderboard_embed(users, interaction.guild.name))

    @app_commands.command(name="stats", description="Show betting stats")
    @app_commands.describe(member="Whose stats to show (defaults to you)")
    @app_commands.guild_only()
    @rate_limit("stats")
    async def stats(self, interaction: discord.Interaction, member: Optional[discord.Member] = None):
        target = member or interaction.user
        user = await self.db.ensure_user(interaction.guild_id, target.id)
        unlocked = [achievement_id for achievement_id, _ in
                    await self.db.get_user_achievements(interaction.guild_id, target.id)]
        await interaction.response.send_message(embed=build_stats_embed(target, user, unlocked))

    @app_commands.command(name="history", description="Show your recent bets")
    @app_commands.guild_only()
    @rate_limit("history")
    async def history(self, interaction: discord.Interaction):
        history = await self.match_ops.get_bet_history(
            interaction.guild_id, interaction.user.id, UIConstants.HISTORY_LIMIT
        )
        await interaction.response.send_message(
            embed=build_history_embed(interaction.user, history), ephemeral=True
        )


async def setup(bot):
    await bot.add_cog(EconomyCog(bot))
