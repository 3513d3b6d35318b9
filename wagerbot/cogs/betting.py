"""
Betting commands: one-off bets on a live match and standing auto-bets.

Announcement buttons are handled by wagerbot.ui.views; both paths go through
BettingOperations so the window and balance rules are identical.
"""

import discord
from discord import app_commands
from discord.ext import commands
from typing import List, Optional

from wagerbot.constants import UIConstants
from wagerbot.database.models import BetPrediction
from wagerbot.services.rate_limiter import rate_limit
from wagerbot.utils.embeds import build_autobet_list_embed
from wagerbot.utils.logger import setup_logger

logger = setup_logger(__name__)

PREDICTION_CHOICES = [
    app_commands.Choice(name="WIN", value=BetPrediction.WIN.value),
    app_commands.Choice(name="LOSE", value=BetPrediction.LOSE.value),
]


class BettingCog(commands.Cog):
    """Wager placement commands"""

    def __init__(self, bot):
        self.bot = bot
        self.db = bot.db
        self.betting_ops = bot.betting_ops
        self.logger = logger

    async def tracked_player_autocomplete(self, interaction: discord.Interaction,
                                          current: str) -> List[app_commands.Choice[str]]:
        players = await self.db.get_tracked_players(interaction.guild_id)
        current = current.lower()
        return [
            app_commands.Choice(name=p.riot_tag, value=p.riot_tag)
            for p in players if current in p.riot_tag.lower()
        ][:25]

    @app_commands.command(name="bet", description="Bet on a tracked player's current match")
    @app_commands.describe(
        prediction="Will the player win or lose?",
        amount="How many coins to bet",
        player="Tracked player (optional when only one is tracked)"
    )
    @app_commands.choices(prediction=PREDICTION_CHOICES)
    @app_commands.autocomplete(player=tracked_player_autocomplete)
    @app_commands.guild_only()
    @rate_limit("bet")
    async def bet(self, interaction: discord.Interaction, prediction: app_commands.Choice[str],
                  amount: app_commands.Range[int, 1], player: Optional[str] = None):
        bet, tracked = await self.betting_ops.place_bet(
            interaction.guild_id, interaction.user.id, BetPrediction(prediction.value), amount, player
        )
        emoji = "🟢" if bet.prediction == BetPrediction.WIN else "🔴"
        await interaction.response.send_message(
            f"{emoji} **{interaction.user.display_name}** bet **{bet.prediction.value.upper()}** on "
            f"**{tracked.display_name}** for **{amount:,}** {UIConstants.COIN_EMOJI}"
        )

    @app_commands.command(name="autobet", description="View, set or clear automatic bets on a tracked player")
    @app_commands.describe(
        player="Tracked player (optional when only one is tracked)",
        prediction="Bet WIN or LOSE on every new match",
        amount="Coins to bet each match",
        clear="Remove your auto-bet on this player"
    )
    @app_commands.choices(prediction=PREDICTION_CHOICES)
    @app_commands.autocomplete(player=tracked_player_autocomplete)
    @app_commands.guild_only()
    @rate_limit("autobet")
    async def autobet(self, interaction: discord.Interaction, player: Optional[str] = None,
                      prediction: Optional[app_commands.Choice[str]] = None,
                      amount: Optional[app_commands.Range[int, 1]] = None,
                      clear: bool = False):
        guild_id, user_id = interaction.guild_id, interaction.user.id

        if clear:
            tracked, removed = await self.betting_ops.clear_auto_bet(guild_id, user_id, player)
            if removed:
                message = f"🗑️ Auto-bet on **{tracked.riot_tag}** removed."
            else:
                message = f"You had no auto-bet on **{tracked.riot_tag}**."
            await interaction.response.send_message(message, ephemeral=True)
            return

        if prediction is None and amount is None:
            auto_bets = await self.betting_ops.list_auto_bets(guild_id, user_id)
            await interaction.response.send_message(embed=build_autobet_list_embed(auto_bets), ephemeral=True)
            return

        if prediction is None or amount is None:
            await interaction.response.send_message(
                "❌ Provide both `prediction` and `amount` to set an auto-bet.", ephemeral=True
            )
            return

        auto_bet, tracked = await self.betting_ops.set_auto_bet(
            guild_id, user_id, player, BetPrediction(prediction.value), amount
        )
        await interaction.response.send_message(
            f"🤖 Auto-bet set: **{auto_bet.prediction.value.upper()}** on **{tracked.riot_tag}** for "
            f"**{auto_bet.amount:,}** {UIConstants.COIN_EMOJI} every match.",
            ephemeral=True
        )


async def setup(bot):
    await bot.add_cog(BettingCog(bot))
