"""
Command-level wager rules: amount parsing, player resolution and window checks.
"""

import pytest

from wagerbot.database.models import BetPrediction
from wagerbot.operations.betting_operations import BettingOperations, parse_amount
from wagerbot.utils.betting_exceptions import (
    AmbiguousPlayerError, BettingClosedError, InvalidAmountError, MatchNotActiveError,
    NoParleyError, NoTrackedPlayersError, PlayerNotTrackedError
)
from tests.conftest import GUILD_ID, PLAYER_PUUID, fund

ALICE = 11


@pytest.fixture
def betting_ops(db, registry, match_ops):
    return BettingOperations(db, registry, match_ops=match_ops)


class TestParseAmount:

    @pytest.mark.parametrize("raw, expected", [
        ("5000", 5000),
        ("5,000", 5000),
        (" 12 ", 12),
        ("1,234,567", 1234567),
        (250, 250),
    ])
    def test_valid(self, raw, expected):
        assert parse_amount(raw) == expected

    @pytest.mark.parametrize("raw", ["", "0", "-5", "5k", "5,00", "1.5", None])
    def test_invalid(self, raw):
        with pytest.raises(InvalidAmountError):
            parse_amount(raw)


class TestResolvePlayer:

    @pytest.mark.asyncio
    async def test_no_players(self, betting_ops):
        with pytest.raises(NoTrackedPlayersError):
            await betting_ops.resolve_player(GUILD_ID)

    @pytest.mark.asyncio
    async def test_single_player_is_default(self, betting_ops, tracked_player):
        player = await betting_ops.resolve_player(GUILD_ID)
        assert player.puuid == PLAYER_PUUID

    @pytest.mark.asyncio
    async def test_multiple_players_need_a_tag(self, db, betting_ops, tracked_player):
        await db.add_tracked_player(GUILD_ID, "Second#NA1", "puuid-second", "na1")

        with pytest.raises(AmbiguousPlayerError):
            await betting_ops.resolve_player(GUILD_ID)
        player = await betting_ops.resolve_player(GUILD_ID, "second#na1")
        assert player.puuid == "puuid-second"

    @pytest.mark.asyncio
    async def test_unknown_tag(self, betting_ops, tracked_player):
        with pytest.raises(PlayerNotTrackedError):
            await betting_ops.resolve_player(GUILD_ID, "Nobody#NA1")


class TestPlaceBet:

    @pytest.mark.asyncio
    async def test_bet_while_window_open(self, db, betting_ops, match_ops, registry, tracked_player):
        await fund(db, ALICE, 1000)
        await match_ops.create_active_match(GUILD_ID, PLAYER_PUUID, "na1", "NA1_555")
        registry.register("NA1_555")

        bet, player = await betting_ops.place_bet(GUILD_ID, ALICE, BetPrediction.WIN, 400)

        assert bet.match_id == "NA1_555"
        assert player.riot_tag == "Nivy#NA1"
        assert (await db.get_user(GUILD_ID, ALICE)).coins == 600

    @pytest.mark.asyncio
    async def test_no_active_match(self, db, betting_ops, tracked_player):
        await fund(db, ALICE, 1000)
        with pytest.raises(MatchNotActiveError):
            await betting_ops.place_bet(GUILD_ID, ALICE, BetPrediction.WIN, 400)

    @pytest.mark.asyncio
    async def test_closed_window_rejects_and_keeps_balance(self, db, betting_ops, match_ops, registry, clock,
                                                           tracked_player):
        await fund(db, ALICE, 1000)
        await match_ops.create_active_match(GUILD_ID, PLAYER_PUUID, "na1", "NA1_555")
        registry.register("NA1_555")
        clock.advance(301)

        with pytest.raises(BettingClosedError):
            await betting_ops.place_bet(GUILD_ID, ALICE, BetPrediction.LOSE, 400)
        assert (await db.get_user(GUILD_ID, ALICE)).coins == 1000

    @pytest.mark.asyncio
    async def test_restart_leaves_known_match_closed(self, db, betting_ops, match_ops, tracked_player):
        await fund(db, ALICE, 1000)
        await match_ops.create_active_match(GUILD_ID, PLAYER_PUUID, "na1", "NA1_555")

        with pytest.raises(BettingClosedError):
            await betting_ops.place_bet_on_match(GUILD_ID, ALICE, "NA1_555", BetPrediction.WIN, 100)

    @pytest.mark.asyncio
    async def test_button_bet_on_finished_match(self, db, betting_ops, match_ops, registry, tracked_player):
        await fund(db, ALICE, 1000)
        match = await match_ops.create_active_match(GUILD_ID, PLAYER_PUUID, "na1", "NA1_555")
        registry.register("NA1_555")
        await match_ops.claim_match_finished(match.id)

        with pytest.raises(MatchNotActiveError):
            await betting_ops.place_bet_on_match(GUILD_ID, ALICE, "NA1_555", BetPrediction.WIN, 100)


class TestParley:

    @pytest.mark.asyncio
    async def test_match_without_parley(self, betting_ops, match_ops, registry, tracked_player):
        await match_ops.create_active_match(GUILD_ID, PLAYER_PUUID, "na1", "NA1_555")
        registry.register("NA1_555")

        with pytest.raises(NoParleyError):
            await betting_ops.get_open_parley(GUILD_ID, "NA1_555")

    @pytest.mark.asyncio
    async def test_parley_bet(self, db, betting_ops, match_ops, registry, tracked_player):
        await fund(db, ALICE, 1000)
        match = await match_ops.create_active_match(GUILD_ID, PLAYER_PUUID, "na1", "NA1_555")
        await match_ops.set_match_parley(match.id, "deaths", 4.5)
        registry.register("NA1_555")

        bet, stat = await betting_ops.place_parley_bet(GUILD_ID, ALICE, "NA1_555", "under", 250)

        assert stat.key == "deaths"
        assert bet.amount == 250
        assert (await db.get_user(GUILD_ID, ALICE)).coins == 750


class TestAutoBets:

    @pytest.mark.asyncio
    async def test_set_list_clear(self, betting_ops, tracked_player):
        auto_bet, player = await betting_ops.set_auto_bet(GUILD_ID, ALICE, None, BetPrediction.WIN, 500)
        assert (auto_bet.amount, player.puuid) == (500, PLAYER_PUUID)
        assert len(await betting_ops.list_auto_bets(GUILD_ID, ALICE)) == 1

        _, removed = await betting_ops.clear_auto_bet(GUILD_ID, ALICE, "Nivy#NA1")
        assert removed
        _, removed = await betting_ops.clear_auto_bet(GUILD_ID, ALICE, "Nivy#NA1")
        assert not removed
        assert await betting_ops.list_auto_bets(GUILD_ID, ALICE) == []
