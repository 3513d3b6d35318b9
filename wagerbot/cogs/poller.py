"""
Poller Cog - Background match polling

Runs the poll scheduler on a fixed interval: discovery of new matches, then
settlement of finished ones. Tracked players' PUUIDs are refreshed once
before the first cycle.
"""

import discord
from discord import app_commands
from discord.ext import commands, tasks

from wagerbot.config import Config
from wagerbot.constants import UIConstants
from wagerbot.services.match_discovery import MatchDiscovery
from wagerbot.services.notifier import Notifier
from wagerbot.services.poller import PollScheduler
from wagerbot.services.settlement import SettlementEngine
from wagerbot.ui.views import BetButtonsView
from wagerbot.utils.logger import setup_logger

logger = setup_logger(__name__)


class PollerCog(commands.Cog):
    """Background match polling"""

    def __init__(self, bot):
        self.bot = bot
        self.registry = bot.registry
        self.notifier = Notifier(bot, bot.db)
        self.discovery = MatchDiscovery(
            bot.db, bot.riot, self.registry, self.notifier, view_factory=self._build_bet_view
        )
        self.settlement = SettlementEngine(bot.db, bot.riot, self.notifier, registry=self.registry)
        self.scheduler = PollScheduler(self.discovery, self.settlement, self.registry)
        self._puuids_refreshed = False
        self.logger = logger

    def _build_bet_view(self, guild_id: int, match_id: str, puuid: str, parley_stat=None) -> BetButtonsView:
        return BetButtonsView(
            self.bot.betting_ops, match_id, parley_stat,
            timeout=self.registry.remaining(match_id) or None
        )

    @commands.Cog.listener()
    async def on_ready(self):
        """Start polling once the bot is connected"""
        if not self.poll_matches.is_running():
            self.poll_matches.start()
            self.logger.info(f"PollerCog: polling every {Config.POLL_INTERVAL_SECONDS}s")

    def cog_unload(self):
        """Stop polling and drop pending close notices"""
        self.poll_matches.cancel()
        cancelled = self.registry.cancel_all()
        self.logger.info(f"PollerCog: polling stopped ({cancelled} close notices cancelled)")

    @tasks.loop(seconds=Config.POLL_INTERVAL_SECONDS)
    async def poll_matches(self):
        await self.scheduler.run_cycle()

    @poll_matches.before_loop
    async def before_poll_matches(self):
        """Wait for the bot, then refresh PUUIDs for the current API key"""
        await self.bot.wait_until_ready()
        if self._puuids_refreshed:
            return
        self._puuids_refreshed = True
        try:
            updated = await self.bot.tracking_ops.refresh_puuids()
            self.logger.info(f"PUUID refresh complete, {updated} updated")
        except Exception as e:
            self.logger.error(f"PUUID refresh failed: {e}", exc_info=True)

    @app_commands.command(name="admin-poll-now", description="Run a poll cycle immediately (Owner only)")
    async def admin_poll_now(self, interaction: discord.Interaction):
        if interaction.user.id != Config.OWNER_DISCORD_ID:
            await interaction.response.send_message(
                "❌ **Access Denied**\nThis command is restricted to the bot owner.",
                ephemeral=True
            )
            return

        await interaction.response.defer(ephemeral=True)
        report = await self.scheduler.run_cycle()
        if report is None:
            await interaction.followup.send("⏳ A poll cycle is already running.", ephemeral=True)
            return

        new_matches = len(report.discovery.new_matches) if report.discovery else 0
        settled = len(report.settlement.settled) if report.settlement else 0
        embed = discord.Embed(
            title="✅ Poll Cycle Complete",
            description=(
                f"New matches: **{new_matches}**\n"
                f"Settled: **{settled}**\n"
                f"Rate limited: **{'yes' if report.rate_limited else 'no'}**\n"
                f"Open betting windows: **{self.registry.open_count()}**\n"
                f"Close notices pending: **{self.registry.pending_closes()}**"
            ),
            color=UIConstants.ERROR_COLOR if report.error else UIConstants.SUCCESS_COLOR
        )
        if report.error:
            embed.add_field(name="Error", value=str(report.error)[:1000], inline=False)
        await interaction.followup.send(embed=embed, ephemeral=True)


async def setup(bot):
    await bot.add_cog(PollerCog(bot))
