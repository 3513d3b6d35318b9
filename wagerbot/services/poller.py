"""
Poll scheduler.

Drives one cycle per tick: prune expired windows, run discovery, then
settlement unless discovery hit the rate limit. A tick that arrives while a
cycle is still running is dropped. Errors inside a cycle are logged and the
next tick runs normally.
"""

from dataclasses import dataclass
from typing import Optional

from wagerbot.services.match_discovery import DiscoveryReport, MatchDiscovery
from wagerbot.services.settlement import SettlementEngine, SettlementReport
from wagerbot.utils.logger import setup_logger

logger = setup_logger(__name__)


@dataclass
class CycleReport:
    pruned_windows: int = 0
    discovery: Optional[DiscoveryReport] = None
    settlement: Optional[SettlementReport] = None
    error: Optional[BaseException] = None

    @property
    def rate_limited(self) -> bool:
        return bool(
            (self.discovery and self.discovery.rate_limited)
            or (self.settlement and self.settlement.rate_limited)
        )


class PollScheduler:
    """Runs discovery then settlement, one cycle at a time."""

    def __init__(self, discovery: MatchDiscovery, settlement: SettlementEngine, registry,
                 prune_grace_seconds: float = 3600):
        self.discovery = discovery
        self.settlement = settlement
        self.registry = registry
        self.prune_grace_seconds = prune_grace_seconds
        self._running = False
        self.cycles_run = 0

    @property
    def is_running(self) -> bool:
        return self._running

    async def run_cycle(self) -> Optional[CycleReport]:
        """Run one cycle; returns None when a cycle is already in progress."""
        if self._running:
            logger.debug("Poll cycle still running, dropping tick")
            return None

        self._running = True
        report = CycleReport()
        try:
            report.pruned_windows = self.registry.prune(self.prune_grace_seconds)

            report.discovery = await self.discovery.run()
            if report.discovery.rate_limited:
                logger.warning("Discovery was rate limited, skipping settlement this cycle")
            else:
                report.settlement = await self.settlement.run()
        except Exception as e:
            logger.error(f"Poll cycle error: {e}", exc_info=True)
            report.error = e
        finally:
            self._running = False
            self.cycles_run += 1

        if report.discovery and (report.discovery.new_matches or (report.settlement and report.settlement.settled)):
            settled = report.settlement.settled if report.settlement else []
            logger.info(
                f"Poll cycle: {len(report.discovery.new_matches)} new matches, {len(settled)} settled"
            )
        return report
