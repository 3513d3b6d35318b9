"""
Full cycle: a tracked player goes live, a user bets, the game ends.
"""

import random

import pytest

from wagerbot.database.models import BetOutcome, BetPrediction, MatchState
from wagerbot.operations.betting_operations import BettingOperations
from wagerbot.services.match_discovery import MatchDiscovery
from wagerbot.services.poller import PollScheduler
from wagerbot.services.riot_api import ApiResult
from wagerbot.services.settlement import SettlementEngine
from tests.conftest import GUILD_ID, PLAYER_PUUID, fund, make_completed, make_live_game

USER_A = 4242


async def _no_sleep(_seconds):
    return None


@pytest.fixture
def scheduler(db, riot, registry, notifier, match_ops):
    discovery = MatchDiscovery(
        db, riot, registry, notifier, match_ops=match_ops,
        rng=random.Random(3), parley_chance=0, rank_sample_delay=0, sleep=_no_sleep
    )
    settlement = SettlementEngine(db, riot, notifier, registry=registry, match_ops=match_ops)
    return PollScheduler(discovery, settlement, registry)


@pytest.mark.asyncio
async def test_bet_on_a_win_is_paid_once(db, riot, registry, notifier, match_ops, scheduler, tracked_player):
    betting_ops = BettingOperations(db, registry, match_ops=match_ops)
    await fund(db, USER_A, 5000)

    # Cycle 1: the player is in game 555 on na1
    riot.live[PLAYER_PUUID] = ApiResult.success(make_live_game(game_id=555))
    report = await scheduler.run_cycle()
    assert report.discovery.new_matches == ["NA1_555"]
    assert report.settlement.still_running == 1

    bet, _ = await betting_ops.place_bet(GUILD_ID, USER_A, BetPrediction.WIN, 2000)
    assert bet.match_id == "NA1_555"
    assert (await db.get_user(GUILD_ID, USER_A)).coins == 3000

    # Cycle 2: the game is over and the player won
    del riot.live[PLAYER_PUUID]
    riot.completed["NA1_555"] = ApiResult.success(make_completed(match_id="NA1_555", win=True))
    report = await scheduler.run_cycle()
    assert report.settlement.settled == ["NA1_555"]

    user = await db.get_user(GUILD_ID, USER_A)
    assert user.coins == 3000 + 3000
    assert user.correct == 1
    assert user.current_streak == 1

    stored_bet = await match_ops.get_user_bet_on_match(GUILD_ID, USER_A, "NA1_555")
    assert (stored_bet.outcome, stored_bet.payout) == (BetOutcome.CORRECT, 3000)
    match = await match_ops.get_match(GUILD_ID, "NA1_555")
    assert match.state == MatchState.FINISHED

    # Cycle 3: nothing left to do
    published = len(notifier.published)
    report = await scheduler.run_cycle()
    assert report.settlement.matches_checked == 0
    assert (await db.get_user(GUILD_ID, USER_A)).coins == 6000
    assert len(notifier.published) == published

    # A direct second settlement of the finished record is a no-op too
    completed = make_completed(match_id="NA1_555", win=True)
    assert await scheduler.settlement.settle_match(match, completed) is None
    assert (await db.get_user(GUILD_ID, USER_A)).coins == 6000
    registry.cancel_all()
