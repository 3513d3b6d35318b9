"""
Match Operations Module

Persistence primitives for the match lifecycle: match records, win/lose bets,
parley bets, standing auto-bets, and the bookkeeping applied at settlement.

Every write that must be idempotent is expressed at the storage layer:
- match creation is insert-or-ignore on (guild, match id)
- the active -> finished transition only updates rows still active
- bet resolution only updates bets still pending
- placement deducts with a conditional UPDATE ... WHERE coins >= amount

Operations accept an optional session so the settlement engine can compose
them into one transaction.
"""

from typing import List, Optional, Tuple
from contextlib import asynccontextmanager
from sqlalchemy import select, update, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from wagerbot.database.models import (
    ActiveMatch, MatchState, Bet, BetPrediction, BetOutcome,
    ParleyBet, ParleyPrediction, AutoBet, TrackedPlayer, User, Achievement
)
from wagerbot.utils.betting_exceptions import (
    DuplicateBetError, InsufficientFundsError, InvalidAmountError
)
from wagerbot.utils.clock import utcnow, utc_date_string
from wagerbot.utils.ranking import is_higher_standing
from wagerbot.utils.logger import setup_logger

logger = setup_logger(__name__)


class MatchOperations:
    """Core service class for match and wager persistence."""

    def __init__(self, database):
        """Initialize with database instance"""
        self.db = database
        self.logger = logger

    @asynccontextmanager
    async def _get_session_context(self, session: Optional[AsyncSession] = None):
        """
        Provides a session context. Uses the provided session if available,
        otherwise runs in a new transaction that commits on exit.
        """
        if session:
            # If a session is provided, we do not manage its lifecycle
            yield session
        else:
            async with self.db.transaction() as new_session:
                yield new_session

    # ============================================================================
    # Match records
    # ============================================================================

    async def create_active_match(self, guild_id: int, puuid: str, region: str,
                                  match_id: str) -> Optional[ActiveMatch]:
        """
        Insert-or-ignore a match record.

        Returns:
            The new ActiveMatch, or None if (guild_id, match_id) already exists
        """
        try:
            async with self.db.transaction() as session:
                existing = await session.execute(
                    select(ActiveMatch.id).where(
                        ActiveMatch.guild_id == guild_id, ActiveMatch.match_id == match_id
                    )
                )
                if existing.scalar_one_or_none() is not None:
                    return None

                match = ActiveMatch(
                    guild_id=guild_id, puuid=puuid, region=region.lower(),
                    match_id=match_id, state=MatchState.ACTIVE
                )
                session.add(match)
                await session.flush()
        except IntegrityError:
            # Lost a race with another insert of the same pair
            self.logger.debug(f"Match {match_id} already recorded for guild {guild_id}")
            return None

        self.logger.info(f"Recorded new active match {match_id} for guild {guild_id}")
        return match

    async def get_match(self, guild_id: int, match_id: str) -> Optional[ActiveMatch]:
        """Get a match record in any state"""
        async with self.db.get_session() as session:
            result = await session.execute(
                select(ActiveMatch).where(ActiveMatch.guild_id == guild_id, ActiveMatch.match_id == match_id)
            )
            return result.scalar_one_or_none()

    async def get_active_match(self, guild_id: int, puuid: str) -> Optional[ActiveMatch]:
        """Get the player's current active match in a guild"""
        async with self.db.get_session() as session:
            result = await session.execute(
                select(ActiveMatch)
                .where(
                    ActiveMatch.guild_id == guild_id,
                    ActiveMatch.puuid == puuid,
                    ActiveMatch.state == MatchState.ACTIVE
                )
                .order_by(ActiveMatch.id.desc())
                .limit(1)
            )
            return result.scalar_one_or_none()

    async def get_active_match_by_match_id(self, guild_id: int, match_id: str) -> Optional[ActiveMatch]:
        async with self.db.get_session() as session:
            result = await session.execute(
                select(ActiveMatch).where(
                    ActiveMatch.guild_id == guild_id,
                    ActiveMatch.match_id == match_id,
                    ActiveMatch.state == MatchState.ACTIVE
                )
            )
            return result.scalar_one_or_none()

    async def get_all_active_matches(self) -> List[ActiveMatch]:
        async with self.db.get_session() as session:
            result = await session.execute(
                select(ActiveMatch)
                .where(ActiveMatch.state == MatchState.ACTIVE)
                .order_by(ActiveMatch.id)
            )
            return result.scalars().all()

    async def set_match_parley(self, match_pk: int, parley_stat: str, parley_line: Optional[float]):
        async with self.db.transaction() as session:
            await session.execute(
                update(ActiveMatch)
                .where(ActiveMatch.id == match_pk)
                .values(parley_stat=parley_stat, parley_line=parley_line)
            )

    async def set_match_message(self, match_pk: int, message_id: Optional[int]):
        async with self.db.transaction() as session:
            await session.execute(
                update(ActiveMatch).where(ActiveMatch.id == match_pk).values(message_id=message_id)
            )

    async def set_close_message(self, match_pk: int, message_id: Optional[int]):
        async with self.db.transaction() as session:
            await session.execute(
                update(ActiveMatch).where(ActiveMatch.id == match_pk).values(close_message_id=message_id)
            )

    async def touch_match(self, match_pk: int):
        """Record that the match was checked and is still running"""
        async with self.db.transaction() as session:
            await session.execute(
                update(ActiveMatch).where(ActiveMatch.id == match_pk).values(last_checked_at=utcnow())
            )

    async def claim_match_finished(self, match_pk: int, session: Optional[AsyncSession] = None) -> bool:
        """
        Transition active -> finished.

        Returns:
            True if this call performed the transition, False if the match was
            already finished (settlement must then do nothing)
        """
        async with self._get_session_context(session) as s:
            now = utcnow()
            result = await s.execute(
                update(ActiveMatch)
                .where(ActiveMatch.id == match_pk, ActiveMatch.state == MatchState.ACTIVE)
                .values(state=MatchState.FINISHED, finished_at=now, last_checked_at=now)
                .execution_options(synchronize_session=False)
            )
            return result.rowcount == 1

    # ============================================================================
    # Win/lose bets
    # ============================================================================

    async def _deduct_stake(self, session: AsyncSession, guild_id: int, discord_id: int, amount: int):
        """Deduct a stake, refusing to take the balance below zero"""
        if amount is None or amount <= 0:
            raise InvalidAmountError(amount)

        user = await self.db.ensure_user(guild_id, discord_id, session=session)
        result = await session.execute(
            update(User)
            .where(User.id == user.id, User.coins >= amount)
            .values(coins=User.coins - amount, total_wagered=User.total_wagered + amount)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise InsufficientFundsError(user.coins, amount)

    async def place_bet(self, guild_id: int, discord_id: int, match_id: str, puuid: str,
                        prediction: BetPrediction, amount: int, is_auto: bool = False,
                        session: Optional[AsyncSession] = None) -> Bet:
        """
        Atomically check the balance, deduct the stake and create the bet.

        Raises:
            InvalidAmountError: If amount is not positive
            DuplicateBetError: If the user already bet on this match
            InsufficientFundsError: If amount exceeds the balance
        """
        prediction = BetPrediction(prediction)
        async with self._get_session_context(session) as s:
            existing = await s.execute(
                select(Bet).where(Bet.guild_id == guild_id, Bet.match_id == match_id, Bet.discord_id == discord_id)
            )
            existing_bet = existing.scalar_one_or_none()
            if existing_bet:
                raise DuplicateBetError(match_id, existing_bet.prediction.value, existing_bet.amount)

            await self._deduct_stake(s, guild_id, discord_id, amount)

            bet = Bet(
                guild_id=guild_id, discord_id=discord_id, match_id=match_id, puuid=puuid,
                prediction=prediction, amount=amount, outcome=BetOutcome.PENDING,
                payout=0, is_auto=is_auto
            )
            s.add(bet)
            try:
                await s.flush()
            except IntegrityError:
                raise DuplicateBetError(match_id)

        self.logger.info(
            f"User {discord_id} bet {prediction.value} for {amount} on {match_id} "
            f"(guild {guild_id}{', auto' if is_auto else ''})"
        )
        return bet

    async def get_user_bet_on_match(self, guild_id: int, discord_id: int, match_id: str) -> Optional[Bet]:
        async with self.db.get_session() as session:
            result = await session.execute(
                select(Bet).where(Bet.guild_id == guild_id, Bet.match_id == match_id, Bet.discord_id == discord_id)
            )
            return result.scalar_one_or_none()

    async def get_bets_for_match(self, guild_id: int, match_id: str,
                                 pending_only: bool = False,
                                 session: Optional[AsyncSession] = None) -> List[Bet]:
        async with self._get_session_context(session) as s:
            query = select(Bet).where(Bet.guild_id == guild_id, Bet.match_id == match_id)
            if pending_only:
                query = query.where(Bet.outcome == BetOutcome.PENDING)
            result = await s.execute(query.order_by(Bet.id))
            return result.scalars().all()

    async def resolve_bet(self, bet_id: int, outcome: BetOutcome, payout: int,
                          session: Optional[AsyncSession] = None) -> bool:
        """Resolve a bet only if it is still pending; True if this call resolved it"""
        async with self._get_session_context(session) as s:
            result = await s.execute(
                update(Bet)
                .where(Bet.id == bet_id, Bet.outcome == BetOutcome.PENDING)
                .values(outcome=outcome, payout=payout, resolved_at=utcnow())
                .execution_options(synchronize_session=False)
            )
            return result.rowcount == 1

    async def get_bet_history(self, guild_id: int, discord_id: int, limit: int = 10) -> List[Tuple[Bet, Optional[str]]]:
        """The user's most recent bets with the tracked player's Riot tag"""
        async with self.db.get_session() as session:
            result = await session.execute(
                select(Bet, TrackedPlayer.riot_tag)
                .outerjoin(
                    TrackedPlayer,
                    (TrackedPlayer.guild_id == Bet.guild_id) & (TrackedPlayer.puuid == Bet.puuid)
                )
                .where(Bet.guild_id == guild_id, Bet.discord_id == discord_id)
                .order_by(Bet.placed_at.desc(), Bet.id.desc())
                .limit(limit)
            )
            return [(bet, riot_tag) for bet, riot_tag in result.all()]

    # ============================================================================
    # Parley bets
    # ============================================================================

    async def place_parley_bet(self, guild_id: int, discord_id: int, match_id: str,
                               prediction: ParleyPrediction, amount: int,
                               session: Optional[AsyncSession] = None) -> ParleyBet:
        """Atomically deduct the stake and create the parley bet"""
        prediction = ParleyPrediction(prediction)
        async with self._get_session_context(session) as s:
            existing = await s.execute(
                select(ParleyBet).where(
                    ParleyBet.guild_id == guild_id,
                    ParleyBet.match_id == match_id,
                    ParleyBet.discord_id == discord_id
                )
            )
            existing_bet = existing.scalar_one_or_none()
            if existing_bet:
                raise DuplicateBetError(match_id, existing_bet.prediction.value, existing_bet.amount)

            await self._deduct_stake(s, guild_id, discord_id, amount)

            bet = ParleyBet(
                guild_id=guild_id, discord_id=discord_id, match_id=match_id,
                prediction=prediction, amount=amount, outcome=BetOutcome.PENDING, payout=0
            )
            s.add(bet)
            try:
                await s.flush()
            except IntegrityError:
                raise DuplicateBetError(match_id)

        self.logger.info(f"User {discord_id} parley bet {prediction.value} for {amount} on {match_id}")
        return bet

    async def get_parley_bets_for_match(self, guild_id: int, match_id: str,
                                        pending_only: bool = False,
                                        session: Optional[AsyncSession] = None) -> List[ParleyBet]:
        async with self._get_session_context(session) as s:
            query = select(ParleyBet).where(ParleyBet.guild_id == guild_id, ParleyBet.match_id == match_id)
            if pending_only:
                query = query.where(ParleyBet.outcome == BetOutcome.PENDING)
            result = await s.execute(query.order_by(ParleyBet.id))
            return result.scalars().all()

    async def resolve_parley_bet(self, bet_id: int, outcome: BetOutcome, payout: int,
                                 session: Optional[AsyncSession] = None) -> bool:
        async with self._get_session_context(session) as s:
            result = await s.execute(
                update(ParleyBet)
                .where(ParleyBet.id == bet_id, ParleyBet.outcome == BetOutcome.PENDING)
                .values(outcome=outcome, payout=payout, resolved_at=utcnow())
                .execution_options(synchronize_session=False)
            )
            return result.rowcount == 1

    # ============================================================================
    # Auto-bets
    # ============================================================================

    async def set_auto_bet(self, guild_id: int, discord_id: int, tracked_player: TrackedPlayer,
                           prediction: BetPrediction, amount: int) -> AutoBet:
        """Create or replace the user's standing auto-bet on a player"""
        if amount is None or amount <= 0:
            raise InvalidAmountError(amount)
        prediction = BetPrediction(prediction)

        async with self.db.transaction() as session:
            await self.db.ensure_user(guild_id, discord_id, session=session)
            result = await session.execute(
                select(AutoBet).where(
                    AutoBet.guild_id == guild_id,
                    AutoBet.discord_id == discord_id,
                    AutoBet.puuid == tracked_player.puuid
                )
            )
            auto_bet = result.scalar_one_or_none()
            if auto_bet:
                auto_bet.prediction = prediction
                auto_bet.amount = amount
            else:
                auto_bet = AutoBet(
                    guild_id=guild_id, discord_id=discord_id,
                    tracked_player_id=tracked_player.id, puuid=tracked_player.puuid,
                    prediction=prediction, amount=amount
                )
                session.add(auto_bet)
            await session.flush()

        self.logger.info(
            f"Auto-bet set for user {discord_id} on {tracked_player.riot_tag}: {prediction.value} {amount}"
        )
        return auto_bet

    async def remove_auto_bet(self, guild_id: int, discord_id: int, puuid: str) -> bool:
        async with self.db.transaction() as session:
            result = await session.execute(
                select(AutoBet).where(
                    AutoBet.guild_id == guild_id, AutoBet.discord_id == discord_id, AutoBet.puuid == puuid
                )
            )
            auto_bet = result.scalar_one_or_none()
            if not auto_bet:
                return False
            await session.delete(auto_bet)
        return True

    async def get_auto_bets(self, guild_id: int, discord_id: int) -> List[Tuple[AutoBet, str]]:
        """The user's auto-bets with each player's Riot tag"""
        async with self.db.get_session() as session:
            result = await session.execute(
                select(AutoBet, TrackedPlayer.riot_tag)
                .join(TrackedPlayer, AutoBet.tracked_player_id == TrackedPlayer.id)
                .where(AutoBet.guild_id == guild_id, AutoBet.discord_id == discord_id)
                .order_by(AutoBet.id)
            )
            return [(auto_bet, riot_tag) for auto_bet, riot_tag in result.all()]

    async def get_auto_bets_for_player(self, guild_id: int, puuid: str) -> List[AutoBet]:
        async with self.db.get_session() as session:
            result = await session.execute(
                select(AutoBet)
                .where(AutoBet.guild_id == guild_id, AutoBet.puuid == puuid)
                .order_by(AutoBet.id)
            )
            return result.scalars().all()

    # ============================================================================
    # Settlement bookkeeping
    # ============================================================================

    async def apply_bet_result(self, guild_id: int, discord_id: int, correct: bool, payout: int,
                               session: Optional[AsyncSession] = None) -> User:
        """Credit the payout and update record and streak in one write"""
        async with self._get_session_context(session) as s:
            user = await self.db.ensure_user(guild_id, discord_id, session=s)
            await s.refresh(user)
            if correct:
                user.correct += 1
                user.coins += payout
                user.total_won += payout
                user.current_streak += 1
                user.best_streak = max(user.best_streak, user.current_streak)
            else:
                user.incorrect += 1
                user.current_streak = 0
            await s.flush()
            return user

    async def record_daily_result(self, tracked_player_id: int, won: bool,
                                  session: Optional[AsyncSession] = None) -> Optional[TrackedPlayer]:
        """Bump today's win/loss counter, resetting it when the UTC day changed"""
        async with self._get_session_context(session) as s:
            player = await s.get(TrackedPlayer, tracked_player_id)
            if not player:
                return None
            today = utc_date_string()
            if player.daily_date != today:
                player.daily_date = today
                player.daily_wins = 0
                player.daily_losses = 0
            if won:
                player.daily_wins += 1
            else:
                player.daily_losses += 1
            await s.flush()
            return player

    async def update_peak_rank(self, tracked_player_id: int, tier: str, division: str, lp: int,
                               session: Optional[AsyncSession] = None) -> bool:
        """Store the standing as the new peak if it is strictly higher; True if it was"""
        async with self._get_session_context(session) as s:
            player = await s.get(TrackedPlayer, tracked_player_id)
            if not player:
                return False
            if not is_higher_standing(tier, division, lp, player.peak_tier, player.peak_division, player.peak_lp):
                return False
            player.peak_tier = tier
            player.peak_division = division
            player.peak_lp = lp
            await s.flush()
            self.logger.info(f"New peak for {player.riot_tag}: {tier} {division} {lp} LP")
            return True

    async def get_unlocked_achievement_ids(self, guild_id: int, discord_id: int,
                                           session: Optional[AsyncSession] = None) -> List[str]:
        async with self._get_session_context(session) as s:
            result = await s.execute(
                select(Achievement.achievement_id)
                .where(Achievement.guild_id == guild_id, Achievement.discord_id == discord_id)
            )
            return list(result.scalars().all())

    async def unlock_achievement(self, guild_id: int, discord_id: int, achievement_id: str,
                                 session: Optional[AsyncSession] = None) -> bool:
        """Insert-or-ignore an unlock; True if it was newly unlocked"""
        async with self._get_session_context(session) as s:
            existing = await s.scalar(
                select(func.count(Achievement.id)).where(
                    Achievement.guild_id == guild_id,
                    Achievement.discord_id == discord_id,
                    Achievement.achievement_id == achievement_id
                )
            )
            if existing:
                return False
            s.add(Achievement(guild_id=guild_id, discord_id=discord_id, achievement_id=achievement_id))
            await s.flush()
            return True
