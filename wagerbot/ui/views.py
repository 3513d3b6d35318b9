"""
Discord UI components for match announcements.

Components:
- BetButtonsView: WIN / LOSE buttons, plus OVER / UNDER (or YES / NO) when the
  match has a parley
- BetAmountModal: amount entry opened by any of those buttons
"""

import discord
from typing import Optional

from wagerbot.constants import UIConstants
from wagerbot.database.models import BetPrediction, ParleyPrediction
from wagerbot.operations.betting_operations import BettingOperations, parse_amount
from wagerbot.services.parley import get_parley_stat, prediction_label
from wagerbot.utils.betting_exceptions import BettingError
from wagerbot.utils.logger import setup_logger

logger = setup_logger(__name__)


class BetAmountModal(discord.ui.Modal):
    """Collects the stake for a win/lose or parley bet."""

    def __init__(self, betting_ops: BettingOperations, match_id: str, prediction: str, is_parley: bool = False,
                 display_prediction: Optional[str] = None):
        kind = "Parley" if is_parley else "Bet"
        label = display_prediction or prediction.upper()
        super().__init__(title=f"{kind} {label}: Enter Amount", timeout=300)

        self.betting_ops = betting_ops
        self.match_id = match_id
        self.prediction = prediction
        self.is_parley = is_parley
        self.display_prediction = label

        self.amount_input = discord.ui.TextInput(
            label="How many coins do you want to bet?",
            placeholder="e.g. 5000",
            required=True,
            max_length=12,
            style=discord.TextStyle.short
        )
        self.add_item(self.amount_input)

    async def on_submit(self, interaction: discord.Interaction):
        try:
            amount = parse_amount(self.amount_input.value)
            if self.is_parley:
                await self.betting_ops.place_parley_bet(
                    interaction.guild_id, interaction.user.id, self.match_id,
                    ParleyPrediction(self.prediction), amount
                )
                emoji = "⬆️" if self.prediction == ParleyPrediction.OVER.value else "⬇️"
                verb = "parley bet"
            else:
                await self.betting_ops.place_bet_on_match(
                    interaction.guild_id, interaction.user.id, self.match_id,
                    BetPrediction(self.prediction), amount
                )
                emoji = "🟢" if self.prediction == BetPrediction.WIN.value else "🔴"
                verb = "bet"
        except BettingError as e:
            await interaction.response.send_message(e.user_message, ephemeral=True)
            return

        await interaction.response.send_message(
            f"{emoji} **{interaction.user.display_name}** {verb} **{self.display_prediction}** "
            f"for **{amount:,}** {UIConstants.COIN_EMOJI}"
        )

    async def on_error(self, interaction: discord.Interaction, error: Exception):
        logger.error(f"Bet modal error on {self.match_id}: {error}", exc_info=True)
        message = "❌ Something went wrong placing that bet."
        if interaction.response.is_done():
            await interaction.followup.send(message, ephemeral=True)
        else:
            await interaction.response.send_message(message, ephemeral=True)


class BetButtonsView(discord.ui.View):
    """Buttons attached to a match announcement; they expire with the betting window."""

    def __init__(self, betting_ops: BettingOperations, match_id: str, parley_stat: Optional[str] = None,
                 timeout: Optional[float] = None):
        super().__init__(timeout=timeout)
        self.betting_ops = betting_ops
        self.match_id = match_id
        self.parley = get_parley_stat(parley_stat)

        self.add_item(self._button("🟢 WIN", discord.ButtonStyle.success, BetPrediction.WIN.value, False))
        self.add_item(self._button("🔴 LOSE", discord.ButtonStyle.danger, BetPrediction.LOSE.value, False))
        if self.parley:
            over = prediction_label(self.parley, ParleyPrediction.OVER.value)
            under = prediction_label(self.parley, ParleyPrediction.UNDER.value)
            over_emoji, under_emoji = ("✅", "❌") if self.parley.is_yes_no else ("⬆️", "⬇️")
            self.add_item(self._button(f"{over_emoji} {over}", discord.ButtonStyle.primary,
                                       ParleyPrediction.OVER.value, True, row=1))
            self.add_item(self._button(f"{under_emoji} {under}", discord.ButtonStyle.secondary,
                                       ParleyPrediction.UNDER.value, True, row=1))

    def _button(self, label: str, style: discord.ButtonStyle, prediction: str, is_parley: bool,
                row: int = 0) -> discord.ui.Button:
        kind = "parley" if is_parley else "bet"
        button = discord.ui.Button(
            label=label, style=style, row=row,
            custom_id=f"{kind}_{prediction}_{self.match_id}"
        )

        async def callback(interaction: discord.Interaction):
            await self._open_modal(interaction, prediction, is_parley)

        button.callback = callback
        return button

    async def _open_modal(self, interaction: discord.Interaction, prediction: str, is_parley: bool):
        try:
            if is_parley:
                _, stat = await self.betting_ops.get_open_parley(interaction.guild_id, self.match_id)
                display = prediction_label(stat, prediction)
            else:
                if not self.betting_ops.registry.is_open(self.match_id):
                    await interaction.response.send_message(
                        f"{UIConstants.LOCK_EMOJI} Betting is closed for this match.", ephemeral=True
                    )
                    return
                display = prediction.upper()
        except BettingError as e:
            await interaction.response.send_message(e.user_message, ephemeral=True)
            return

        await interaction.response.send_modal(
            BetAmountModal(self.betting_ops, self.match_id, prediction, is_parley, display)
        )
