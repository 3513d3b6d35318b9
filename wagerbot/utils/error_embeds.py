"""
Centralized error embeds for consistent error handling across the wager bot.
"""

import discord

from wagerbot.constants import UIConstants
from wagerbot.utils.betting_exceptions import BettingError


class ErrorEmbeds:
    """Centralized error embed factory for consistent error handling."""

    @staticmethod
    def betting_error(error: BettingError) -> discord.Embed:
        """Create embed from a betting error's user-facing message."""
        return discord.Embed(description=error.user_message, color=UIConstants.ERROR_COLOR)

    @staticmethod
    def guild_only() -> discord.Embed:
        return discord.Embed(
            title="Server Only",
            description="This command can only be used inside a server.",
            color=discord.Color.red()
        )

    @staticmethod
    def command_error(error: str) -> discord.Embed:
        """Create embed for general command errors."""
        return discord.Embed(
            title="Command Error",
            description=f"An error occurred: {error}\n\nPlease try again or contact an administrator.",
            color=discord.Color.red()
        )

    @staticmethod
    def invalid_input(message: str) -> discord.Embed:
        """Create embed for invalid user input."""
        return discord.Embed(
            title="Invalid Input",
            description=message,
            color=discord.Color.red()
        )

    @staticmethod
    def permission_denied() -> discord.Embed:
        """Create embed for permission errors."""
        return discord.Embed(
            title="Permission Denied",
            description="You don't have permission to perform this action.",
            color=discord.Color.red()
        )

    @staticmethod
    def cooldown(retry_after: float) -> discord.Embed:
        return discord.Embed(
            title="Slow Down",
            description=f"⏳ Try again in {retry_after:.1f} seconds.",
            color=discord.Color.orange()
        )

    @staticmethod
    def unexpected() -> discord.Embed:
        return discord.Embed(
            title="❌ Something went wrong",
            description="An unexpected error occurred while processing your command.",
            color=discord.Color.red()
        )
