"""Poll scheduler tests with stub discovery and settlement passes."""

import asyncio

import pytest

from wagerbot.services.match_discovery import DiscoveryReport
from wagerbot.services.poller import PollScheduler
from wagerbot.services.settlement import SettlementReport


class StubPass:
    def __init__(self, report=None, error=None, gate=None):
        self.report = report
        self.error = error
        self.gate = gate
        self.runs = 0

    async def run(self):
        self.runs += 1
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        return self.report


class TestPollScheduler:

    @pytest.mark.asyncio
    async def test_cycle_runs_discovery_then_settlement(self, registry, clock):
        registry.register("NA1_old")
        clock.advance(300 + 3601)
        discovery = StubPass(DiscoveryReport(new_matches=["NA1_1"]))
        settlement = StubPass(SettlementReport(settled=["NA1_0"]))
        scheduler = PollScheduler(discovery, settlement, registry)

        report = await scheduler.run_cycle()

        assert report.pruned_windows == 1
        assert report.discovery.new_matches == ["NA1_1"]
        assert report.settlement.settled == ["NA1_0"]
        assert not report.rate_limited
        assert scheduler.cycles_run == 1

    @pytest.mark.asyncio
    async def test_discovery_rate_limit_skips_settlement(self, registry):
        discovery = StubPass(DiscoveryReport(rate_limited=True))
        settlement = StubPass(SettlementReport())
        scheduler = PollScheduler(discovery, settlement, registry)

        report = await scheduler.run_cycle()

        assert report.rate_limited
        assert report.settlement is None
        assert settlement.runs == 0

    @pytest.mark.asyncio
    async def test_overlapping_tick_is_dropped(self, registry):
        gate = asyncio.Event()
        discovery = StubPass(DiscoveryReport(), gate=gate)
        settlement = StubPass(SettlementReport())
        scheduler = PollScheduler(discovery, settlement, registry)

        first = asyncio.create_task(scheduler.run_cycle())
        await asyncio.sleep(0)
        assert scheduler.is_running

        assert await scheduler.run_cycle() is None
        assert discovery.runs == 1

        gate.set()
        report = await first
        assert report is not None
        assert not scheduler.is_running
        assert scheduler.cycles_run == 1

    @pytest.mark.asyncio
    async def test_error_is_contained_and_next_cycle_runs(self, registry):
        discovery = StubPass(DiscoveryReport(), error=RuntimeError("boom"))
        settlement = StubPass(SettlementReport())
        scheduler = PollScheduler(discovery, settlement, registry)

        report = await scheduler.run_cycle()
        assert isinstance(report.error, RuntimeError)
        assert not scheduler.is_running

        discovery.error = None
        report = await scheduler.run_cycle()
        assert report.error is None
        assert settlement.runs == 1
        assert scheduler.cycles_run == 2
