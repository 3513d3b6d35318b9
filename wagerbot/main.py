import asyncio
import logging
import traceback
from typing import Optional

import discord
from discord.ext import commands
from discord import app_commands

from wagerbot.config import Config
from wagerbot.database.database import Database
from wagerbot.operations.betting_operations import BettingOperations
from wagerbot.operations.tracking_operations import TrackingOperations
from wagerbot.services.betting_window import BettingWindowRegistry
from wagerbot.services.rate_limiter import SimpleRateLimiter
from wagerbot.services.riot_api import RiotClient
from wagerbot.utils.betting_exceptions import BettingError
from wagerbot.utils.error_embeds import ErrorEmbeds
from wagerbot.utils.logger import setup_logger

class WagerBot(commands.Bot):
    def __init__(self):
        intents = discord.Intents.default()
        intents.guilds = True

        super().__init__(
            command_prefix=Config.COMMAND_PREFIX,
            intents=intents,
            help_command=None
        )

        # Attach app command error handler
        self.tree.on_error = self.on_app_command_error

        self.db: Optional[Database] = None
        self.riot: Optional[RiotClient] = None
        self.registry = BettingWindowRegistry()
        self.rate_limiter = SimpleRateLimiter()
        self.betting_ops: Optional[BettingOperations] = None
        self.tracking_ops: Optional[TrackingOperations] = None
        self.logger = setup_logger(__name__)

    async def setup_hook(self):
        """Called when the bot is starting up"""
        self.logger.info("Setting up Wager Bot...")

        # Initialize database
        self.db = Database()
        await self.db.initialize()

        self.riot = RiotClient()
        self.betting_ops = BettingOperations(self.db, self.registry)
        self.tracking_ops = TrackingOperations(self.db, self.riot)

        # Load cogs
        await self.load_cogs()

        # Sync slash commands
        await self._sync_commands()

        self.logger.info("Wager Bot setup complete!")

    async def load_cogs(self):
        """Load all cogs"""
        cogs_to_load = [
            'wagerbot.cogs.economy',
            'wagerbot.cogs.betting',
            'wagerbot.cogs.tracking',
            'wagerbot.cogs.admin',
            'wagerbot.cogs.poller',
            'wagerbot.cogs.help_commands'
        ]

        for cog in cogs_to_load:
            try:
                await self.load_extension(cog)
                self.logger.info(f"Loaded cog: {cog}")
            except Exception as e:
                self.logger.error(f"Failed to load cog {cog}: {e}", exc_info=True)

    async def _sync_commands(self):
        """Sync slash commands with Discord"""
        if not self.tree.get_commands():
            self.logger.warning("No application commands found to sync. Check for cog loading errors.")
            return

        try:
            guild_ids = Config.get_guild_ids()

            if guild_ids:
                # Guild-specific sync (instant updates, works in specified servers)
                self.logger.info(f"Attempting to sync commands to {len(guild_ids)} guild(s): {guild_ids}...")

                total_synced = 0
                for guild_id in guild_ids:
                    try:
                        guild = discord.Object(id=guild_id)
                        self.tree.copy_global_to(guild=guild)
                        synced = await self.tree.sync(guild=guild)
                        self.logger.info(f"Successfully synced {len(synced)} command(s) to guild {guild_id}")
                        total_synced += len(synced)
                    except discord.errors.Forbidden:
                        self.logger.error(f"Permission error syncing to guild {guild_id}. Ensure the bot has the 'application.commands' scope and is in the guild.", exc_info=True)
                    except discord.errors.HTTPException as e:
                        self.logger.error(f"HTTP error syncing to guild {guild_id}. Status: {e.status}, Response: {e.text}", exc_info=True)

                self.logger.info(f"Multi-guild sync complete: {total_synced} total command instances deployed")
            else:
                # Global sync (can take up to 1 hour, works everywhere)
                self.logger.info("Attempting to sync commands globally... (Note: This can take up to an hour to propagate)")
                synced = await self.tree.sync()
                self.logger.info(f"Successfully synced {len(synced)} command(s) globally")
                for cmd in synced:
                    self.logger.info(f"  - {cmd.name}: {cmd.description}")
        except Exception as e:
            self.logger.error(f"Failed to sync commands: {e}", exc_info=True)

    async def on_ready(self):
        """Called when the bot is ready"""
        self.logger.info(f'{self.user} has connected to Discord!')
        self.logger.info(f'Bot is in {len(self.guilds)} guilds')

        await self.change_presence(
            activity=discord.Game(name="League bets | /help")
        )

    async def on_app_command_error(self, interaction: discord.Interaction, error: app_commands.AppCommandError):
        """Global error handler for slash commands"""
        command_name = interaction.command.name if interaction.command else 'Unknown'
        original = getattr(error, 'original', error)

        if isinstance(original, BettingError):
            # Expected rule violations (insufficient coins, closed window, ...)
            self.logger.info(f"Command '{command_name}' by {interaction.user} rejected: {original}")
            error_embed = ErrorEmbeds.betting_error(original)
        elif isinstance(error, app_commands.CommandOnCooldown):
            error_embed = ErrorEmbeds.cooldown(error.retry_after)
        elif isinstance(error, app_commands.NoPrivateMessage):
            error_embed = ErrorEmbeds.guild_only()
        elif isinstance(error, (app_commands.MissingPermissions, app_commands.CheckFailure)):
            self.logger.info(f"Permission denied for command '{command_name}' by user {interaction.user}")
            error_embed = ErrorEmbeds.permission_denied()
        else:
            self.logger.error(f"Error in app command '{command_name}': {error}", exc_info=True)
            error_embed = ErrorEmbeds.unexpected()

        try:
            if interaction.response.is_done():
                await interaction.followup.send(embed=error_embed, ephemeral=True)
            else:
                await interaction.response.send_message(embed=error_embed, ephemeral=True)
        except Exception as e:
            self.logger.error(f"Failed to send error response: {e}")

    async def close(self):
        """Cleanup when bot is shutting down"""
        self.logger.info("Shutting down Wager Bot...")

        self.registry.cancel_all()

        if self.riot:
            await self.riot.close()

        if self.db:
            await self.db.close()

        await super().close()

async def main():
    """Main entry point"""
    Config.validate()

    bot = WagerBot()

    try:
        await bot.start(Config.DISCORD_TOKEN)
    except KeyboardInterrupt:
        await bot.close()
    except Exception as e:
        logging.error(f"Fatal error: {e}")
        traceback.print_exc()
    finally:
        await bot.close()

def run():
    asyncio.run(main())

if __name__ == "__main__":
    run()
