"""
Settlement engine.

Finds active matches that the match endpoint now reports as finished and
settles each one exactly once. All ledger effects of a match happen inside a
single transaction that starts with the conditional active -> finished claim,
so a second pass over the same match (or a crash midway) never pays twice.
Chat notifications go out after the commit and are best effort.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from wagerbot.config import Config
from wagerbot.data_models.riot import CompletedMatch, RankedEntry, solo_queue_entry
from wagerbot.data_models.settlement import BetResult, ParleyResult, SettledMatch
from wagerbot.database.match_operations import MatchOperations
from wagerbot.database.models import ActiveMatch, BetOutcome, BetPrediction, ParleyPrediction
from wagerbot.services.achievements import newly_satisfied
from wagerbot.services.parley import get_parley_stat
from wagerbot.utils.embeds import build_settlement_embed
from wagerbot.utils.logger import setup_logger

logger = setup_logger(__name__)


def compute_payout(amount: int, prediction: BetPrediction, correct: bool,
                   win_multiplier: Optional[float] = None,
                   lose_multiplier: Optional[float] = None) -> int:
    """
    Coins credited for a resolved win/lose bet.

    The stake was deducted at placement, so an incorrect bet pays 0 and a
    correct one pays the whole amount times the prediction's multiplier.
    """
    if not correct:
        return 0
    if BetPrediction(prediction) == BetPrediction.WIN:
        multiplier = Config.WIN_PAYOUT_MULTIPLIER if win_multiplier is None else win_multiplier
    else:
        multiplier = Config.LOSE_PAYOUT_MULTIPLIER if lose_multiplier is None else lose_multiplier
    return int(amount * multiplier)


def compute_parley_payout(amount: int, correct: bool, multiplier: Optional[float] = None) -> int:
    if not correct:
        return 0
    return int(amount * (Config.PARLEY_PAYOUT_MULTIPLIER if multiplier is None else multiplier))


@dataclass
class SettlementReport:
    matches_checked: int = 0
    settled: List[str] = field(default_factory=list)
    still_running: int = 0
    rate_limited: bool = False


class SettlementEngine:
    """One settlement pass over all active matches."""

    def __init__(self, db, riot, notifier, registry=None, match_ops: Optional[MatchOperations] = None):
        self.db = db
        self.riot = riot
        self.notifier = notifier
        self.registry = registry
        self.match_ops = match_ops or MatchOperations(db)
        self.logger = logger

    async def run(self) -> SettlementReport:
        report = SettlementReport()
        matches = await self.match_ops.get_all_active_matches()

        for match in matches:
            report.matches_checked += 1
            result = await self.riot.fetch_completed(match.match_id, match.region)
            if result.rate_limited:
                self.logger.warning("Rate limited during active-match check, pausing cycle")
                report.rate_limited = True
                return report
            if not result.ok:
                # Still in progress (or the lookup failed); try again next cycle
                await self.match_ops.touch_match(match.id)
                report.still_running += 1
                continue

            completed: CompletedMatch = result.data
            participant = completed.participant(match.puuid)

            standing, standing_limited = None, False
            if participant and participant.win:
                standing, standing_limited = await self._fetch_standing(match)

            settled = await self.settle_match(match, completed, standing)
            if settled:
                report.settled.append(match.match_id)
                await self._announce(match, settled)

            if standing_limited:
                self.logger.warning("Rate limited while fetching standing, pausing cycle")
                report.rate_limited = True
                return report

        return report

    async def _fetch_standing(self, match: ActiveMatch) -> Tuple[Optional[RankedEntry], bool]:
        """Current solo-queue entry for the peak check; best effort."""
        result = await self.riot.fetch_standing(match.puuid, match.region)
        if result.rate_limited:
            return None, True
        if not result.ok:
            return None, False
        return solo_queue_entry(result.data), False

    async def settle_match(self, match: ActiveMatch, completed: CompletedMatch,
                           standing: Optional[RankedEntry] = None) -> Optional[SettledMatch]:
        """
        Apply every ledger effect of a finished match in one transaction.

        Returns:
            What was settled, or None if another pass already finished the match
        """
        guild_id, match_id = match.guild_id, match.match_id

        async with self.db.transaction() as session:
            if not await self.match_ops.claim_match_finished(match.id, session=session):
                self.logger.debug(f"Match {match_id} already settled, skipping")
                return None

            player = await self.db.get_tracked_player_by_puuid(guild_id, match.puuid, session=session)
            player_name = player.display_name if player else "Unknown"

            participant = completed.participant(match.puuid)
            if participant is None:
                self.logger.warning(f"Tracked player {match.puuid} not found in result for {match_id}")
                return SettledMatch(guild_id=guild_id, match_id=match_id, player_name=player_name, won=None)

            won = participant.win
            self.logger.info(f"Match {match_id} ended ({'win' if won else 'loss'}), settling bets")

            new_peak = None
            if player:
                await self.match_ops.record_daily_result(player.id, won, session=session)
                if won and standing:
                    raised = await self.match_ops.update_peak_rank(
                        player.id, standing.tier, standing.division, standing.league_points, session=session
                    )
                    if raised:
                        new_peak = (standing.tier, standing.division, standing.league_points)

            bettors = []
            bet_results = []
            bets = await self.match_ops.get_bets_for_match(guild_id, match_id, pending_only=True, session=session)
            for bet in bets:
                correct = (bet.prediction == BetPrediction.WIN) == won
                payout = compute_payout(bet.amount, bet.prediction, correct)
                outcome = BetOutcome.CORRECT if correct else BetOutcome.INCORRECT
                if not await self.match_ops.resolve_bet(bet.id, outcome, payout, session=session):
                    continue
                await self.match_ops.apply_bet_result(guild_id, bet.discord_id, correct, payout, session=session)
                bet_results.append(BetResult(
                    discord_id=bet.discord_id, prediction=bet.prediction.value, amount=bet.amount,
                    correct=correct, payout=payout, is_auto=bet.is_auto
                ))
                if bet.discord_id not in bettors:
                    bettors.append(bet.discord_id)

            parley_actual = None
            parley_results = []
            stat = get_parley_stat(match.parley_stat)
            if stat:
                parley_actual = stat.actual(participant, completed)
                over_hits = stat.over_hits(participant, completed, match.parley_line)
                parley_bets = await self.match_ops.get_parley_bets_for_match(
                    guild_id, match_id, pending_only=True, session=session
                )
                for parley_bet in parley_bets:
                    correct = (parley_bet.prediction == ParleyPrediction.OVER) == over_hits
                    payout = compute_parley_payout(parley_bet.amount, correct)
                    outcome = BetOutcome.CORRECT if correct else BetOutcome.INCORRECT
                    if not await self.match_ops.resolve_parley_bet(parley_bet.id, outcome, payout, session=session):
                        continue
                    await self.match_ops.apply_bet_result(
                        guild_id, parley_bet.discord_id, correct, payout, session=session
                    )
                    parley_results.append(ParleyResult(
                        discord_id=parley_bet.discord_id, prediction=parley_bet.prediction.value,
                        amount=parley_bet.amount, correct=correct, payout=payout
                    ))
                    if parley_bet.discord_id not in bettors:
                        bettors.append(parley_bet.discord_id)
            elif match.parley_stat:
                self.logger.warning(f"Unknown parley stat '{match.parley_stat}' on {match_id}, parley bets left pending")

            unlocks = []
            for discord_id in bettors:
                user = await self.db.ensure_user(guild_id, discord_id, session=session)
                held = await self.match_ops.get_unlocked_achievement_ids(guild_id, discord_id, session=session)
                for achievement in newly_satisfied(user, held):
                    if await self.match_ops.unlock_achievement(guild_id, discord_id, achievement.id, session=session):
                        unlocks.append((discord_id, achievement.id))

            settled = SettledMatch(
                guild_id=guild_id,
                match_id=match_id,
                player_name=player_name,
                won=won,
                participant=participant,
                duration_minutes=completed.duration_minutes,
                bet_results=bet_results,
                parley_stat=stat.key if stat else None,
                parley_line=match.parley_line,
                parley_actual=parley_actual,
                parley_results=parley_results,
                achievements=unlocks,
                new_peak=new_peak,
            )

        self.logger.info(
            f"Settled {match_id} in guild {guild_id}: {len(bet_results)} bets, "
            f"{len(parley_results)} parley bets, {len(unlocks)} achievements"
        )
        return settled

    async def _announce(self, match: ActiveMatch, settled: SettledMatch):
        """Post-commit notifications: clean up the match's posts and publish the summary."""
        if self.registry is not None:
            self.registry.cancel_close((match.guild_id, match.match_id))

        current = await self.match_ops.get_match(match.guild_id, match.match_id)
        if current:
            await self.notifier.delete(match.guild_id, current.message_id)
            await self.notifier.delete(match.guild_id, current.close_message_id)

        if not settled.has_participant:
            return
        await self.notifier.publish(match.guild_id, build_settlement_embed(settled))
