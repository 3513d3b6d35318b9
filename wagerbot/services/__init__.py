"""
Services package for the wager bot.

Background polling pipeline (discovery, settlement, scheduler), the Riot API
client, the betting window registry and supporting services.
"""

from .rate_limiter import SimpleRateLimiter

__all__ = ['SimpleRateLimiter']
