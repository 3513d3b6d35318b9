from datetime import timedelta
from typing import Optional, List, Tuple
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import selectinload
from sqlalchemy import select, update, func
from contextlib import asynccontextmanager

from wagerbot.config import Config
from wagerbot.database.models import (
    Base, User, TrackedPlayer, GuildSettings, Achievement, AutoBet, ActiveMatch, MatchState
)
from wagerbot.utils.betting_exceptions import (
    CollectCooldownError, InsufficientFundsError, InvalidAmountError, InvalidTransferError
)
from wagerbot.utils.clock import utcnow
from wagerbot.utils.logger import setup_logger

class Database:
    def __init__(self, database_url: Optional[str] = None):
        self.logger = setup_logger(__name__)
        self.database_url = database_url or Config.DATABASE_URL
        self.engine = None
        self.async_session = None

    @property
    def session_factory(self):
        return self.async_session

    async def initialize(self):
        """Initialize the database connection and create tables"""
        self.logger.info("Initializing database...")

        # Convert sqlite URL to async if needed
        database_url = self.database_url
        if database_url.startswith('sqlite:///'):
            database_url = database_url.replace('sqlite:///', 'sqlite+aiosqlite:///')

        self.engine = create_async_engine(
            database_url,
            echo=Config.DEBUG,
            future=True
        )

        self.async_session = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False
        )

        # Create all tables
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

        self.logger.info("Database initialized successfully")

    @asynccontextmanager
    async def get_session(self):
        """Get a database session"""
        async with self.async_session() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise
            finally:
                await session.close()

    @asynccontextmanager
    async def transaction(self):
        """
        Create a transaction boundary for atomic operations.

        All operations within the context are committed together on success,
        or rolled back together on failure. Callers pass the yielded session to
        every participating operation and must let exceptions propagate for
        the rollback to happen.

        Usage:
            async with db.transaction() as session:
                await match_ops.claim_match_finished(match.id, session=session)
                await match_ops.resolve_bet(bet.id, ..., session=session)
        """
        async with self.async_session() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise
            finally:
                await session.close()

    @asynccontextmanager
    async def _session_scope(self, session: Optional[AsyncSession] = None):
        """Use the caller's session, or run in a fresh transaction."""
        if session:
            yield session
        else:
            async with self.transaction() as new_session:
                yield new_session

    async def close(self):
        """Close the database connection"""
        if self.engine:
            await self.engine.dispose()
            self.logger.info("Database connection closed")

    # User operations
    async def ensure_user(self, guild_id: int, discord_id: int,
                          session: Optional[AsyncSession] = None) -> User:
        """Get or lazily create the user's account for this guild"""
        async with self._session_scope(session) as s:
            result = await s.execute(
                select(User).where(User.guild_id == guild_id, User.discord_id == discord_id)
            )
            user = result.scalar_one_or_none()
            if user:
                return user

            user = User(
                guild_id=guild_id, discord_id=discord_id, coins=0,
                correct=0, incorrect=0, total_wagered=0, total_won=0,
                current_streak=0, best_streak=0
            )
            s.add(user)
            await s.flush()
            self.logger.debug(f"Created account for user {discord_id} in guild {guild_id}")
            return user

    async def get_user(self, guild_id: int, discord_id: int) -> Optional[User]:
        async with self.get_session() as session:
            result = await session.execute(
                select(User).where(User.guild_id == guild_id, User.discord_id == discord_id)
            )
            return result.scalar_one_or_none()

    async def collect(self, guild_id: int, discord_id: int,
                      amount: Optional[int] = None, cooldown_hours: Optional[float] = None) -> int:
        """
        Grant the periodic coin collection.

        Returns:
            The new balance

        Raises:
            CollectCooldownError: If the user collected within the cooldown
        """
        amount = Config.COLLECT_AMOUNT if amount is None else amount
        cooldown = timedelta(hours=Config.COLLECT_COOLDOWN_HOURS if cooldown_hours is None else cooldown_hours)

        async with self.transaction() as session:
            user = await self.ensure_user(guild_id, discord_id, session=session)
            now = utcnow()

            if user.last_collect_at:
                remaining = (user.last_collect_at + cooldown) - now
                if remaining.total_seconds() > 0:
                    raise CollectCooldownError(int(remaining.total_seconds()))

            user.coins += amount
            user.last_collect_at = now
            new_balance = user.coins

        self.logger.info(f"User {discord_id} collected {amount} coins in guild {guild_id}")
        return new_balance

    async def transfer_coins(self, guild_id: int, sender_id: int, recipient_id: int, amount: int) -> int:
        """
        Move coins between two users atomically.

        Returns:
            The sender's new balance
        """
        if amount is None or amount <= 0:
            raise InvalidAmountError(amount)
        if sender_id == recipient_id:
            raise InvalidTransferError("You can't give coins to yourself.")

        async with self.transaction() as session:
            sender = await self.ensure_user(guild_id, sender_id, session=session)
            await self.ensure_user(guild_id, recipient_id, session=session)

            result = await session.execute(
                update(User)
                .where(User.id == sender.id, User.coins >= amount)
                .values(coins=User.coins - amount)
            )
            if result.rowcount != 1:
                raise InsufficientFundsError(sender.coins, amount)

            await session.execute(
                update(User)
                .where(User.guild_id == guild_id, User.discord_id == recipient_id)
                .values(coins=User.coins + amount)
            )

            balance = await session.scalar(select(User.coins).where(User.id == sender.id))

        self.logger.info(f"Transferred {amount} coins from {sender_id} to {recipient_id} in guild {guild_id}")
        return balance

    async def get_top_users(self, guild_id: int, limit: int = 10) -> List[User]:
        """Get the richest users in a guild"""
        async with self.get_session() as session:
            result = await session.execute(
                select(User)
                .where(User.guild_id == guild_id)
                .order_by(User.coins.desc())
                .limit(limit)
            )
            return result.scalars().all()

    # Tracked player operations
    async def add_tracked_player(self, guild_id: int, riot_tag: str, puuid: str, region: str) -> Optional[TrackedPlayer]:
        """Track a player; returns None if the PUUID is already tracked in the guild"""
        async with self.transaction() as session:
            existing = await session.execute(
                select(TrackedPlayer).where(TrackedPlayer.guild_id == guild_id, TrackedPlayer.puuid == puuid)
            )
            if existing.scalar_one_or_none():
                return None

            player = TrackedPlayer(
                guild_id=guild_id, riot_tag=riot_tag, puuid=puuid, region=region.lower(),
                daily_wins=0, daily_losses=0
            )
            session.add(player)
            await session.flush()

        self.logger.info(f"Now tracking {riot_tag} ({region}) in guild {guild_id}")
        return player

    async def remove_tracked_player(self, guild_id: int, riot_tag: str) -> bool:
        """Stop tracking a player; their auto-bets go with them"""
        async with self.transaction() as session:
            result = await session.execute(
                select(TrackedPlayer)
                .options(selectinload(TrackedPlayer.auto_bets))
                .where(
                    TrackedPlayer.guild_id == guild_id,
                    func.lower(TrackedPlayer.riot_tag) == riot_tag.lower()
                )
            )
            player = result.scalar_one_or_none()
            if not player:
                return False

            removed_auto_bets = len(player.auto_bets)
            await session.delete(player)

        self.logger.info(
            f"Stopped tracking {riot_tag} in guild {guild_id} ({removed_auto_bets} auto-bets removed)"
        )
        return True

    async def get_tracked_players(self, guild_id: int) -> List[TrackedPlayer]:
        async with self.get_session() as session:
            result = await session.execute(
                select(TrackedPlayer).where(TrackedPlayer.guild_id == guild_id).order_by(TrackedPlayer.id)
            )
            return result.scalars().all()

    async def get_all_tracked_players(self) -> List[TrackedPlayer]:
        async with self.get_session() as session:
            result = await session.execute(select(TrackedPlayer).order_by(TrackedPlayer.id))
            return result.scalars().all()

    async def get_tracked_player_by_tag(self, guild_id: int, riot_tag: str) -> Optional[TrackedPlayer]:
        """Look up a tracked player by Riot tag (case insensitive)"""
        async with self.get_session() as session:
            result = await session.execute(
                select(TrackedPlayer).where(
                    TrackedPlayer.guild_id == guild_id,
                    func.lower(TrackedPlayer.riot_tag) == riot_tag.lower()
                )
            )
            return result.scalar_one_or_none()

    async def get_tracked_player_by_puuid(self, guild_id: int, puuid: str,
                                          session: Optional[AsyncSession] = None) -> Optional[TrackedPlayer]:
        async with self._session_scope(session) as s:
            result = await s.execute(
                select(TrackedPlayer).where(TrackedPlayer.guild_id == guild_id, TrackedPlayer.puuid == puuid)
            )
            return result.scalar_one_or_none()

    async def update_tracked_player_puuid(self, tracked_player_id: int, puuid: str):
        """Swap a player's PUUID everywhere it is used as a lookup key."""
        async with self.transaction() as session:
            player = await session.get(TrackedPlayer, tracked_player_id)
            if not player:
                return
            old_puuid = player.puuid
            player.puuid = puuid

            await session.execute(
                update(AutoBet)
                .where(AutoBet.tracked_player_id == tracked_player_id)
                .values(puuid=puuid)
            )
            await session.execute(
                update(ActiveMatch)
                .where(
                    ActiveMatch.guild_id == player.guild_id,
                    ActiveMatch.puuid == old_puuid,
                    ActiveMatch.state == MatchState.ACTIVE
                )
                .values(puuid=puuid)
            )

    # Guild settings
    async def _get_or_create_settings(self, session: AsyncSession, guild_id: int) -> GuildSettings:
        result = await session.execute(select(GuildSettings).where(GuildSettings.guild_id == guild_id))
        settings = result.scalar_one_or_none()
        if not settings:
            settings = GuildSettings(guild_id=guild_id, emoji_enabled=True)
            session.add(settings)
            await session.flush()
        return settings

    async def set_guild_channel(self, guild_id: int, channel_id: int):
        async with self.transaction() as session:
            settings = await self._get_or_create_settings(session, guild_id)
            settings.channel_id = channel_id
        self.logger.info(f"Notification channel for guild {guild_id} set to {channel_id}")

    async def get_guild_channel(self, guild_id: int) -> Optional[int]:
        async with self.get_session() as session:
            return await session.scalar(
                select(GuildSettings.channel_id).where(GuildSettings.guild_id == guild_id)
            )

    async def set_emoji_enabled(self, guild_id: int, enabled: bool):
        async with self.transaction() as session:
            settings = await self._get_or_create_settings(session, guild_id)
            settings.emoji_enabled = enabled

    async def is_emoji_enabled(self, guild_id: int) -> bool:
        async with self.get_session() as session:
            enabled = await session.scalar(
                select(GuildSettings.emoji_enabled).where(GuildSettings.guild_id == guild_id)
            )
            return True if enabled is None else bool(enabled)

    # Achievements
    async def get_user_achievements(self, guild_id: int, discord_id: int) -> List[Tuple[str, object]]:
        """(achievement_id, unlocked_at) pairs in unlock order"""
        async with self.get_session() as session:
            result = await session.execute(
                select(Achievement.achievement_id, Achievement.unlocked_at)
                .where(Achievement.guild_id == guild_id, Achievement.discord_id == discord_id)
                .order_by(Achievement.unlocked_at, Achievement.id)
            )
            return [tuple(row) for row in result.all()]
