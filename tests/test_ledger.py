"""
Ledger tests: balances, wagers and match records against a real SQLite file.
"""

import pytest

from wagerbot.database.models import BetOutcome, BetPrediction, ParleyPrediction
from wagerbot.utils.betting_exceptions import (
    CollectCooldownError, DuplicateBetError, InsufficientFundsError,
    InvalidAmountError, InvalidTransferError
)
from tests.conftest import GUILD_ID, PLAYER_PUUID, fund

ALICE = 11
BOB = 22


class TestCollectAndTransfer:

    @pytest.mark.asyncio
    async def test_collect_then_cooldown(self, db):
        balance = await db.collect(GUILD_ID, ALICE, amount=500, cooldown_hours=12)
        assert balance == 500

        with pytest.raises(CollectCooldownError):
            await db.collect(GUILD_ID, ALICE, amount=500, cooldown_hours=12)

        user = await db.get_user(GUILD_ID, ALICE)
        assert user.coins == 500

    @pytest.mark.asyncio
    async def test_balances_are_per_guild(self, db):
        await fund(db, ALICE, 300)
        await fund(db, ALICE, 700, guild_id=GUILD_ID + 1)

        assert (await db.get_user(GUILD_ID, ALICE)).coins == 300
        assert (await db.get_user(GUILD_ID + 1, ALICE)).coins == 700

    @pytest.mark.asyncio
    async def test_transfer_moves_coins(self, db):
        await fund(db, ALICE, 1000)
        balance = await db.transfer_coins(GUILD_ID, ALICE, BOB, 400)

        assert balance == 600
        assert (await db.get_user(GUILD_ID, BOB)).coins == 400

    @pytest.mark.asyncio
    async def test_transfer_insufficient_leaves_both_balances(self, db):
        await fund(db, ALICE, 100)
        with pytest.raises(InsufficientFundsError):
            await db.transfer_coins(GUILD_ID, ALICE, BOB, 101)

        assert (await db.get_user(GUILD_ID, ALICE)).coins == 100
        assert await db.get_user(GUILD_ID, BOB) is None

    @pytest.mark.asyncio
    async def test_transfer_rejects_self_and_bad_amounts(self, db):
        await fund(db, ALICE, 100)
        with pytest.raises(InvalidTransferError):
            await db.transfer_coins(GUILD_ID, ALICE, ALICE, 10)
        with pytest.raises(InvalidAmountError):
            await db.transfer_coins(GUILD_ID, ALICE, BOB, 0)

    @pytest.mark.asyncio
    async def test_top_users_sorted_by_coins(self, db):
        await fund(db, ALICE, 100)
        await fund(db, BOB, 900)
        await fund(db, 33, 500)

        top = await db.get_top_users(GUILD_ID, limit=2)
        assert [u.discord_id for u in top] == [BOB, 33]


class TestPlaceBet:

    @pytest.mark.asyncio
    async def test_stake_is_deducted(self, db, match_ops):
        await fund(db, ALICE, 5000)
        bet = await match_ops.place_bet(GUILD_ID, ALICE, "NA1_555", PLAYER_PUUID, BetPrediction.WIN, 2000)

        assert bet.outcome == BetOutcome.PENDING
        user = await db.get_user(GUILD_ID, ALICE)
        assert user.coins == 3000
        assert user.total_wagered == 2000

    @pytest.mark.asyncio
    async def test_insufficient_balance_changes_nothing(self, db, match_ops):
        await fund(db, ALICE, 500)
        with pytest.raises(InsufficientFundsError) as exc_info:
            await match_ops.place_bet(GUILD_ID, ALICE, "NA1_555", PLAYER_PUUID, "win", 501)

        assert exc_info.value.balance == 500
        assert (await db.get_user(GUILD_ID, ALICE)).coins == 500
        assert await match_ops.get_bets_for_match(GUILD_ID, "NA1_555") == []

    @pytest.mark.asyncio
    async def test_exact_balance_goes_to_zero_never_below(self, db, match_ops):
        await fund(db, ALICE, 500)
        await match_ops.place_bet(GUILD_ID, ALICE, "NA1_555", PLAYER_PUUID, "lose", 500)
        assert (await db.get_user(GUILD_ID, ALICE)).coins == 0

        with pytest.raises(InsufficientFundsError):
            await match_ops.place_bet(GUILD_ID, ALICE, "NA1_556", PLAYER_PUUID, "lose", 1)
        assert (await db.get_user(GUILD_ID, ALICE)).coins == 0

    @pytest.mark.asyncio
    async def test_second_bet_on_same_match_rejected(self, db, match_ops):
        await fund(db, ALICE, 5000)
        await match_ops.place_bet(GUILD_ID, ALICE, "NA1_555", PLAYER_PUUID, "win", 1000)

        with pytest.raises(DuplicateBetError):
            await match_ops.place_bet(GUILD_ID, ALICE, "NA1_555", PLAYER_PUUID, "lose", 1000)

        assert (await db.get_user(GUILD_ID, ALICE)).coins == 4000
        assert len(await match_ops.get_bets_for_match(GUILD_ID, "NA1_555")) == 1

    @pytest.mark.asyncio
    async def test_non_positive_amount_rejected(self, db, match_ops):
        await fund(db, ALICE, 5000)
        with pytest.raises(InvalidAmountError):
            await match_ops.place_bet(GUILD_ID, ALICE, "NA1_555", PLAYER_PUUID, "win", 0)

    @pytest.mark.asyncio
    async def test_parley_bet_is_separate_from_win_lose_bet(self, db, match_ops):
        await fund(db, ALICE, 5000)
        await match_ops.place_bet(GUILD_ID, ALICE, "NA1_555", PLAYER_PUUID, "win", 1000)
        await match_ops.place_parley_bet(GUILD_ID, ALICE, "NA1_555", ParleyPrediction.OVER, 1000)

        with pytest.raises(DuplicateBetError):
            await match_ops.place_parley_bet(GUILD_ID, ALICE, "NA1_555", "under", 1000)
        assert (await db.get_user(GUILD_ID, ALICE)).coins == 3000

    @pytest.mark.asyncio
    async def test_resolve_only_once(self, db, match_ops):
        await fund(db, ALICE, 5000)
        bet = await match_ops.place_bet(GUILD_ID, ALICE, "NA1_555", PLAYER_PUUID, "win", 1000)

        assert await match_ops.resolve_bet(bet.id, BetOutcome.CORRECT, 1500)
        assert not await match_ops.resolve_bet(bet.id, BetOutcome.INCORRECT, 0)

        pending = await match_ops.get_bets_for_match(GUILD_ID, "NA1_555", pending_only=True)
        assert pending == []


class TestMatchRecords:

    @pytest.mark.asyncio
    async def test_create_is_insert_or_ignore(self, match_ops):
        first = await match_ops.create_active_match(GUILD_ID, PLAYER_PUUID, "NA1", "NA1_555")
        second = await match_ops.create_active_match(GUILD_ID, PLAYER_PUUID, "na1", "NA1_555")

        assert first is not None
        assert first.region == "na1"
        assert second is None
        assert len(await match_ops.get_all_active_matches()) == 1

    @pytest.mark.asyncio
    async def test_same_match_id_in_two_guilds(self, match_ops):
        assert await match_ops.create_active_match(GUILD_ID, PLAYER_PUUID, "na1", "NA1_555")
        assert await match_ops.create_active_match(GUILD_ID + 1, PLAYER_PUUID, "na1", "NA1_555")

    @pytest.mark.asyncio
    async def test_claim_finished_exactly_once(self, match_ops):
        match = await match_ops.create_active_match(GUILD_ID, PLAYER_PUUID, "na1", "NA1_555")

        assert await match_ops.claim_match_finished(match.id)
        assert not await match_ops.claim_match_finished(match.id)
        assert await match_ops.get_active_match(GUILD_ID, PLAYER_PUUID) is None
        assert await match_ops.get_all_active_matches() == []

        finished = await match_ops.get_match(GUILD_ID, "NA1_555")
        assert finished.finished_at is not None

    @pytest.mark.asyncio
    async def test_message_ids_round_trip(self, match_ops):
        match = await match_ops.create_active_match(GUILD_ID, PLAYER_PUUID, "na1", "NA1_555")
        await match_ops.set_match_message(match.id, 42)
        await match_ops.set_close_message(match.id, 43)
        await match_ops.set_match_parley(match.id, "kills", 6.5)

        stored = await match_ops.get_match(GUILD_ID, "NA1_555")
        assert (stored.message_id, stored.close_message_id) == (42, 43)
        assert (stored.parley_stat, stored.parley_line) == ("kills", 6.5)


class TestTrackedPlayers:

    @pytest.mark.asyncio
    async def test_duplicate_puuid_not_tracked_twice(self, db, tracked_player):
        assert await db.add_tracked_player(GUILD_ID, "Other#NA1", PLAYER_PUUID, "na1") is None

    @pytest.mark.asyncio
    async def test_tag_lookup_is_case_insensitive(self, db, tracked_player):
        found = await db.get_tracked_player_by_tag(GUILD_ID, "nivy#na1")
        assert found.id == tracked_player.id

    @pytest.mark.asyncio
    async def test_remove_player_drops_auto_bets(self, db, match_ops, tracked_player):
        await match_ops.set_auto_bet(GUILD_ID, ALICE, tracked_player, "win", 100)

        assert await db.remove_tracked_player(GUILD_ID, "NIVY#NA1")
        assert await match_ops.get_auto_bets_for_player(GUILD_ID, PLAYER_PUUID) == []
        assert not await db.remove_tracked_player(GUILD_ID, "Nivy#NA1")

    @pytest.mark.asyncio
    async def test_puuid_update_follows_auto_bets_and_active_match(self, db, match_ops, tracked_player):
        await match_ops.set_auto_bet(GUILD_ID, ALICE, tracked_player, "win", 100)
        await match_ops.create_active_match(GUILD_ID, PLAYER_PUUID, "na1", "NA1_555")

        await db.update_tracked_player_puuid(tracked_player.id, "puuid-new")

        assert (await db.get_tracked_player_by_tag(GUILD_ID, "Nivy#NA1")).puuid == "puuid-new"
        assert len(await match_ops.get_auto_bets_for_player(GUILD_ID, "puuid-new")) == 1
        assert (await match_ops.get_active_match(GUILD_ID, "puuid-new")).match_id == "NA1_555"


class TestAutoBets:

    @pytest.mark.asyncio
    async def test_set_replaces_existing(self, match_ops, tracked_player):
        await match_ops.set_auto_bet(GUILD_ID, ALICE, tracked_player, "win", 100)
        await match_ops.set_auto_bet(GUILD_ID, ALICE, tracked_player, BetPrediction.LOSE, 250)

        rows = await match_ops.get_auto_bets(GUILD_ID, ALICE)
        assert len(rows) == 1
        auto_bet, riot_tag = rows[0]
        assert (auto_bet.prediction, auto_bet.amount, riot_tag) == (BetPrediction.LOSE, 250, "Nivy#NA1")

    @pytest.mark.asyncio
    async def test_remove(self, match_ops, tracked_player):
        await match_ops.set_auto_bet(GUILD_ID, ALICE, tracked_player, "win", 100)
        assert await match_ops.remove_auto_bet(GUILD_ID, ALICE, PLAYER_PUUID)
        assert not await match_ops.remove_auto_bet(GUILD_ID, ALICE, PLAYER_PUUID)

    @pytest.mark.asyncio
    async def test_amount_must_be_positive(self, match_ops, tracked_player):
        with pytest.raises(InvalidAmountError):
            await match_ops.set_auto_bet(GUILD_ID, ALICE, tracked_player, "win", -5)


class TestSettlementBookkeeping:

    @pytest.mark.asyncio
    async def test_streak_grows_then_resets(self, db, match_ops):
        for _ in range(3):
            await match_ops.apply_bet_result(GUILD_ID, ALICE, True, 150)
        user = await match_ops.apply_bet_result(GUILD_ID, ALICE, False, 0)

        assert (user.correct, user.incorrect) == (3, 1)
        assert user.current_streak == 0
        assert user.best_streak == 3
        assert user.coins == 450
        assert user.total_won == 450

    @pytest.mark.asyncio
    async def test_peak_only_moves_up(self, db, match_ops, tracked_player):
        assert await match_ops.update_peak_rank(tracked_player.id, "GOLD", "II", 40)
        assert not await match_ops.update_peak_rank(tracked_player.id, "GOLD", "III", 90)
        assert not await match_ops.update_peak_rank(tracked_player.id, "GOLD", "II", 40)
        assert await match_ops.update_peak_rank(tracked_player.id, "GOLD", "II", 41)

        player = await db.get_tracked_player_by_tag(GUILD_ID, "Nivy#NA1")
        assert (player.peak_tier, player.peak_division, player.peak_lp) == ("GOLD", "II", 41)

    @pytest.mark.asyncio
    async def test_achievement_unlocks_once(self, match_ops):
        assert await match_ops.unlock_achievement(GUILD_ID, ALICE, "first_bet")
        assert not await match_ops.unlock_achievement(GUILD_ID, ALICE, "first_bet")
        assert await match_ops.get_unlocked_achievement_ids(GUILD_ID, ALICE) == ["first_bet"]
