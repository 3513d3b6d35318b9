"""
Rate limiting for Discord commands.

Simple in-memory per-user limiter using deques and time-based windows. Keys
whose history has fully expired are swept periodically so memory stays
bounded by the number of recently active users.
"""

import time
import asyncio
from functools import wraps
from collections import defaultdict, deque
from typing import Callable

from wagerbot.config import Config
from wagerbot.utils.logger import setup_logger

logger = setup_logger(__name__)


class SimpleRateLimiter:
    """In-memory rate limiter for Discord commands."""

    def __init__(self, cleanup_interval: float = 300, clock: Callable[[], float] = time.monotonic):
        self._requests = defaultdict(deque)
        self._lock = asyncio.Lock()
        self._clock = clock
        self._cleanup_interval = cleanup_interval
        self._last_cleanup = clock()
        self._max_window = 0

    def __len__(self) -> int:
        return len(self._requests)

    async def is_allowed(self, user_id: int, command: str, limit: int, window: float) -> bool:
        """Check if user can execute command within rate limit."""
        if limit <= 0 or window <= 0:
            return False

        key = f"{user_id}:{command}"
        now = self._clock()

        async with self._lock:
            self._max_window = max(self._max_window, window)

            history = self._requests[key]
            while history and history[0] <= now - window:
                history.popleft()

            allowed = len(history) < limit
            if allowed:
                history.append(now)

            if now - self._last_cleanup >= self._cleanup_interval:
                self._sweep(now)

            return allowed

    def retry_after(self, user_id: int, command: str, window: float) -> float:
        """Seconds until the oldest recorded use leaves the window."""
        history = self._requests.get(f"{user_id}:{command}")
        if not history:
            return 0.0
        return max(history[0] + window - self._clock(), 0.0)

    def _sweep(self, now: float):
        """Drop keys with no use inside the longest window seen."""
        stale = [key for key, history in self._requests.items()
                 if not history or history[-1] <= now - self._max_window]
        for key in stale:
            del self._requests[key]
        self._last_cleanup = now
        if stale:
            logger.debug(f"Rate limiter dropped {len(stale)} idle entries")


def rate_limit(command: str, limit: int = 1, window: float = None):
    """Decorator for rate limiting Discord commands."""
    def decorator(func):
        @wraps(func)
        async def wrapper(self, interaction, *args, **kwargs):
            rate_limiter = self.bot.rate_limiter
            command_window = window if window is not None else Config.COMMAND_COOLDOWN_SECONDS

            # Bot owner bypasses rate limits
            if interaction.user.id == Config.OWNER_DISCORD_ID:
                return await func(self, interaction, *args, **kwargs)

            if not await rate_limiter.is_allowed(interaction.user.id, command, limit, command_window):
                wait = rate_limiter.retry_after(interaction.user.id, command, command_window)
                await interaction.response.send_message(
                    f"⏰ Slow down! You can use `/{command}` again in {wait:.1f}s.",
                    ephemeral=True
                )
                return

            return await func(self, interaction, *args, **kwargs)
        return wrapper
    return decorator
