"""
Betting window registry.

Lifecycle: one registry is created empty when the bot starts, owned by the
poller and handed to the command handlers, which only read it. Windows are
added when a match is discovered and never reopened; match ids are not reused,
so stale entries are dropped by prune() rather than explicit removal. Windows
live in memory only, so a restart closes every open window.
"""

import asyncio
import time
from typing import Awaitable, Callable, Dict, Hashable, Optional

from wagerbot.config import Config
from wagerbot.utils.logger import setup_logger

logger = setup_logger(__name__)


class BettingWindowRegistry:
    """Maps match id -> absolute close time, plus the one-shot close notices."""

    def __init__(self, window_seconds: Optional[float] = None, clock: Callable[[], float] = time.monotonic):
        self.window_seconds = window_seconds if window_seconds is not None else Config.BETTING_WINDOW_SECONDS
        self._clock = clock
        self._close_times: Dict[str, float] = {}
        self._close_tasks: Dict[Hashable, asyncio.Task] = {}

    def __len__(self) -> int:
        return len(self._close_times)

    def register(self, match_id: str) -> float:
        """Open the window for a match and return its close time."""
        close_at = self._clock() + self.window_seconds
        self._close_times[match_id] = close_at
        logger.debug(f"Betting window opened for {match_id} ({self.window_seconds}s)")
        return close_at

    def is_open(self, match_id: str) -> bool:
        close_at = self._close_times.get(match_id)
        if close_at is None:
            return False
        return self._clock() < close_at

    def open_count(self) -> int:
        now = self._clock()
        return sum(1 for close_at in self._close_times.values() if now < close_at)

    def remaining(self, match_id: str) -> float:
        """Seconds until the window closes, 0 when closed or unknown."""
        close_at = self._close_times.get(match_id)
        if close_at is None:
            return 0.0
        return max(close_at - self._clock(), 0.0)

    def prune(self, grace_seconds: float = 3600) -> int:
        """Forget windows that closed more than grace_seconds ago."""
        cutoff = self._clock() - grace_seconds
        stale = [match_id for match_id, close_at in self._close_times.items() if close_at < cutoff]
        for match_id in stale:
            del self._close_times[match_id]
        if stale:
            logger.debug(f"Pruned {len(stale)} expired betting windows")
        return len(stale)

    # ------------------------------------------------------------------
    # Close notices
    # ------------------------------------------------------------------

    def schedule_close(self, key: Hashable, callback: Callable[[], Awaitable[None]],
                       delay: Optional[float] = None) -> asyncio.Task:
        """
        Run callback once after delay (defaults to the window length).

        The task is independent of the poll cycle. Scheduling again under the
        same key replaces the pending notice.
        """
        self.cancel_close(key)
        delay = self.window_seconds if delay is None else delay
        task = asyncio.create_task(self._run_close(key, callback, delay))
        self._close_tasks[key] = task
        return task

    async def _run_close(self, key: Hashable, callback: Callable[[], Awaitable[None]], delay: float):
        try:
            await asyncio.sleep(delay)
            await callback()
        except asyncio.CancelledError:
            logger.debug(f"Close notice for {key} cancelled")
            raise
        except Exception as e:
            logger.error(f"Close notice for {key} failed: {e}", exc_info=True)
        finally:
            if self._close_tasks.get(key) is asyncio.current_task():
                del self._close_tasks[key]

    def cancel_close(self, key: Hashable) -> bool:
        task = self._close_tasks.pop(key, None)
        if task is None or task.done():
            return False
        task.cancel()
        return True

    def pending_closes(self) -> int:
        return sum(1 for task in self._close_tasks.values() if not task.done())

    def cancel_all(self) -> int:
        cancelled = 0
        for key in list(self._close_tasks):
            if self.cancel_close(key):
                cancelled += 1
        return cancelled
