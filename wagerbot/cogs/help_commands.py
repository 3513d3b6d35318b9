"""
Help Commands Cog

Interactive /help with one section per topic, switched with buttons.
Multipliers and amounts are filled in from the live configuration.
"""

import discord
from discord.ext import commands
from discord import app_commands

from wagerbot.config import Config
from wagerbot.constants import UIConstants
from wagerbot.utils.logger import setup_logger

logger = setup_logger(__name__)

HELP_CONTENT = {
    "betting": {
        "title": "🎲 Betting",
        "description": (
            "When a tracked player starts a match, a **Match Detected** post appears with bet buttons.\n"
            "Betting stays open for **{window}**.\n\n"
            "• **🟢 WIN** pays **{win}x** your stake\n"
            "• **🔴 LOSE** pays **{lose}x** your stake\n"
            "• Some matches roll a **parley** (over/under or yes/no on a stat) paying **{parley}x**\n\n"
            "`/bet prediction amount [player]`: bet without the buttons\n"
            "`/autobet [player] [prediction] [amount] [clear]`: bet automatically on every new match\n"
            "One bet and one parley bet per match. Stakes are taken when you bet; losing bets pay nothing."
        )
    },
    "economy": {
        "title": f"{UIConstants.COIN_EMOJI} Coins & Stats",
        "description": (
            "`/collect`: collect **{collect}** coins every **{cooldown}h**\n"
            "`/give user amount`: gift coins to another member\n"
            "`/baltop`: richest members\n"
            "`/stats [member]`: balance, record, streaks and achievements\n"
            "`/history`: your last {history} bets"
        )
    },
    "players": {
        "title": "🎮 Tracked Players",
        "description": (
            "`/adduser riot_id`: start tracking a player (`GameName#TagLine`)\n"
            "`/removeuser riot_id`: stop tracking a player (their auto-bets are removed)\n"
            "`/rank [riot_id]`: Solo/Duo rank of a player, or every tracked player with today's record\n"
            "`/peak`: highest rank each tracked player reached after a win"
        )
    },
    "admin": {
        "title": "⚙️ Server Settings",
        "description": (
            "`/bethere`: post match notifications in the current channel (Manage Channels)\n"
            "`/emoji on|off`: toggle custom rank emoji (Manage Server)"
        )
    },
}


class HelpView(discord.ui.View):
    """Interactive help view with section navigation"""

    def __init__(self, author: discord.abc.User):
        super().__init__(timeout=300)
        self.author = author
        self.current_section = "betting"

    def _get_embed(self, section_key: str) -> discord.Embed:
        """Create embed for the specified section"""
        section = HELP_CONTENT[section_key]
        window_minutes, window_seconds = divmod(Config.BETTING_WINDOW_SECONDS, 60)
        window = f"{window_minutes} minutes" if not window_seconds else f"{Config.BETTING_WINDOW_SECONDS} seconds"

        embed = discord.Embed(
            title=section["title"],
            description=section["description"].format(
                window=window,
                win=f"{Config.WIN_PAYOUT_MULTIPLIER:g}",
                lose=f"{Config.LOSE_PAYOUT_MULTIPLIER:g}",
                parley=f"{Config.PARLEY_PAYOUT_MULTIPLIER:g}",
                collect=f"{Config.COLLECT_AMOUNT:,}",
                cooldown=f"{Config.COLLECT_COOLDOWN_HOURS:g}",
                history=UIConstants.HISTORY_LIMIT,
            ),
            color=UIConstants.DEFAULT_EMBED_COLOR
        )
        embed.set_footer(text=f"Requested by {self.author.display_name} • Use buttons to navigate")
        return embed

    async def _update_embed(self, interaction: discord.Interaction, section_key: str):
        self.current_section = section_key
        for child in self.children:
            if isinstance(child, discord.ui.Button):
                button_section = child.custom_id.split(":")[-1] if child.custom_id else ""
                child.disabled = (button_section == section_key)

        try:
            await interaction.response.edit_message(embed=self._get_embed(section_key), view=self)
        except discord.NotFound:
            pass

    @discord.ui.button(label="🎲 Betting", style=discord.ButtonStyle.secondary, custom_id="help:betting",
                       disabled=True)
    async def betting_button(self, interaction: discord.Interaction, button: discord.ui.Button):
        await self._update_embed(interaction, "betting")

    @discord.ui.button(label="🪙 Coins", style=discord.ButtonStyle.secondary, custom_id="help:economy")
    async def economy_button(self, interaction: discord.Interaction, button: discord.ui.Button):
        await self._update_embed(interaction, "economy")

    @discord.ui.button(label="🎮 Players", style=discord.ButtonStyle.secondary, custom_id="help:players")
    async def players_button(self, interaction: discord.Interaction, button: discord.ui.Button):
        await self._update_embed(interaction, "players")

    @discord.ui.button(label="⚙️ Settings", style=discord.ButtonStyle.secondary, custom_id="help:admin")
    async def admin_button(self, interaction: discord.Interaction, button: discord.ui.Button):
        await self._update_embed(interaction, "admin")


class HelpCommandsCog(commands.Cog):
    """User help commands"""

    def __init__(self, bot):
        self.bot = bot
        self.logger = logger

    @app_commands.command(name="help", description="Show all commands and how betting works")
    async def help(self, interaction: discord.Interaction):
        help_view = HelpView(interaction.user)
        await interaction.response.send_message(
            embed=help_view._get_embed("betting"), view=help_view, ephemeral=True
        )


async def setup(bot):
    """Add the HelpCommandsCog to the bot"""
    await bot.add_cog(HelpCommandsCog(bot))
