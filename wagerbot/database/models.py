from sqlalchemy import (
    Column, Integer, String, DateTime, Boolean, Float, BigInteger,
    ForeignKey, Enum as SQLEnum, UniqueConstraint, CheckConstraint
)
from sqlalchemy.orm import declarative_base, relationship
from wagerbot.utils.clock import utcnow
from enum import Enum

Base = declarative_base()

class MatchState(Enum):
    ACTIVE = "active"
    FINISHED = "finished"

class BetPrediction(Enum):
    WIN = "win"
    LOSE = "lose"

class ParleyPrediction(Enum):
    OVER = "over"     # YES for yes/no parleys
    UNDER = "under"   # NO for yes/no parleys

class BetOutcome(Enum):
    PENDING = "pending"
    CORRECT = "correct"
    INCORRECT = "incorrect"

class User(Base):
    __tablename__ = 'users'

    id = Column(Integer, primary_key=True)
    guild_id = Column(BigInteger, nullable=False, index=True)
    discord_id = Column(BigInteger, nullable=False)

    # Economy
    coins = Column(Integer, nullable=False, default=0)
    last_collect_at = Column(DateTime, nullable=True)

    # Betting record
    correct = Column(Integer, nullable=False, default=0)
    incorrect = Column(Integer, nullable=False, default=0)
    total_wagered = Column(Integer, nullable=False, default=0)
    total_won = Column(Integer, nullable=False, default=0)
    current_streak = Column(Integer, nullable=False, default=0)  # Consecutive correct bets
    best_streak = Column(Integer, nullable=False, default=0)

    # Metadata
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        UniqueConstraint('guild_id', 'discord_id', name='uq_user_guild_discord'),
        CheckConstraint('coins >= 0', name='ck_user_coins_non_negative'),
    )

    @property
    def total_bets(self) -> int:
        return (self.correct or 0) + (self.incorrect or 0)

    @property
    def win_rate(self) -> float:
        if self.total_bets == 0:
            return 0.0
        return self.correct / self.total_bets

    def __repr__(self):
        return f"<User(guild={self.guild_id}, discord_id={self.discord_id}, coins={self.coins})>"

class TrackedPlayer(Base):
    __tablename__ = 'tracked_players'

    id = Column(Integer, primary_key=True)
    guild_id = Column(BigInteger, nullable=False, index=True)
    riot_tag = Column(String(64), nullable=False)       # GameName#TagLine
    puuid = Column(String(100), nullable=False, index=True)
    region = Column(String(8), nullable=False)          # Platform, e.g. na1

    # Today's record, reset when daily_date rolls over
    daily_wins = Column(Integer, nullable=False, default=0)
    daily_losses = Column(Integer, nullable=False, default=0)
    daily_date = Column(String(10), nullable=True)      # YYYY-MM-DD (UTC)

    # Best solo/duo standing observed after a win
    peak_tier = Column(String(20), nullable=True)
    peak_division = Column(String(4), nullable=True)
    peak_lp = Column(Integer, nullable=True)

    created_at = Column(DateTime, default=utcnow)

    auto_bets = relationship("AutoBet", back_populates="tracked_player", cascade="all, delete-orphan")

    __table_args__ = (UniqueConstraint('guild_id', 'puuid', name='uq_tracked_guild_puuid'),)

    @property
    def display_name(self) -> str:
        return self.riot_tag.split('#')[0]

    def __repr__(self):
        return f"<TrackedPlayer(guild={self.guild_id}, riot_tag='{self.riot_tag}', region='{self.region}')>"

class ActiveMatch(Base):
    __tablename__ = 'active_matches'

    id = Column(Integer, primary_key=True)
    guild_id = Column(BigInteger, nullable=False, index=True)
    puuid = Column(String(100), nullable=False)
    region = Column(String(8), nullable=False)          # Stored so settlement never re-scans tracked players
    match_id = Column(String(40), nullable=False)       # e.g. NA1_555
    state = Column(SQLEnum(MatchState), nullable=False, default=MatchState.ACTIVE, index=True)

    # Optional proposition rolled at discovery
    parley_stat = Column(String(30), nullable=True)
    parley_line = Column(Float, nullable=True)

    # Announcement and "betting closed" messages
    message_id = Column(BigInteger, nullable=True)
    close_message_id = Column(BigInteger, nullable=True)

    started_at = Column(DateTime, default=utcnow)
    last_checked_at = Column(DateTime, default=utcnow)
    finished_at = Column(DateTime, nullable=True)

    __table_args__ = (UniqueConstraint('guild_id', 'match_id', name='uq_match_guild_match'),)

    def __repr__(self):
        return f"<ActiveMatch(guild={self.guild_id}, match_id='{self.match_id}', state={self.state.value if self.state else None})>"

class Bet(Base):
    __tablename__ = 'bets'

    id = Column(Integer, primary_key=True)
    guild_id = Column(BigInteger, nullable=False)
    discord_id = Column(BigInteger, nullable=False)
    match_id = Column(String(40), nullable=False, index=True)
    puuid = Column(String(100), nullable=False)
    prediction = Column(SQLEnum(BetPrediction), nullable=False)
    amount = Column(Integer, nullable=False)
    outcome = Column(SQLEnum(BetOutcome), nullable=False, default=BetOutcome.PENDING)
    payout = Column(Integer, nullable=False, default=0)
    is_auto = Column(Boolean, nullable=False, default=False)

    placed_at = Column(DateTime, default=utcnow)
    resolved_at = Column(DateTime, nullable=True)

    __table_args__ = (
        UniqueConstraint('guild_id', 'match_id', 'discord_id', name='uq_bet_guild_match_user'),
        CheckConstraint('amount > 0', name='ck_bet_amount_positive'),
    )

    def __repr__(self):
        return f"<Bet(match_id='{self.match_id}', discord_id={self.discord_id}, {self.prediction.value} {self.amount})>"

class ParleyBet(Base):
    __tablename__ = 'parley_bets'

    id = Column(Integer, primary_key=True)
    guild_id = Column(BigInteger, nullable=False)
    discord_id = Column(BigInteger, nullable=False)
    match_id = Column(String(40), nullable=False, index=True)
    prediction = Column(SQLEnum(ParleyPrediction), nullable=False)
    amount = Column(Integer, nullable=False)
    outcome = Column(SQLEnum(BetOutcome), nullable=False, default=BetOutcome.PENDING)
    payout = Column(Integer, nullable=False, default=0)

    placed_at = Column(DateTime, default=utcnow)
    resolved_at = Column(DateTime, nullable=True)

    __table_args__ = (
        UniqueConstraint('guild_id', 'match_id', 'discord_id', name='uq_parley_guild_match_user'),
        CheckConstraint('amount > 0', name='ck_parley_amount_positive'),
    )

class AutoBet(Base):
    __tablename__ = 'auto_bets'

    id = Column(Integer, primary_key=True)
    guild_id = Column(BigInteger, nullable=False)
    discord_id = Column(BigInteger, nullable=False)
    tracked_player_id = Column(Integer, ForeignKey('tracked_players.id', ondelete='CASCADE'), nullable=False)
    puuid = Column(String(100), nullable=False, index=True)
    prediction = Column(SQLEnum(BetPrediction), nullable=False)
    amount = Column(Integer, nullable=False)

    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    tracked_player = relationship("TrackedPlayer", back_populates="auto_bets")

    __table_args__ = (
        UniqueConstraint('guild_id', 'discord_id', 'puuid', name='uq_autobet_guild_user_puuid'),
        CheckConstraint('amount > 0', name='ck_autobet_amount_positive'),
    )

class Achievement(Base):
    __tablename__ = 'achievements'

    id = Column(Integer, primary_key=True)
    guild_id = Column(BigInteger, nullable=False)
    discord_id = Column(BigInteger, nullable=False)
    achievement_id = Column(String(40), nullable=False)
    unlocked_at = Column(DateTime, default=utcnow)

    __table_args__ = (
        UniqueConstraint('guild_id', 'discord_id', 'achievement_id', name='uq_achievement_unlock'),
    )

class GuildSettings(Base):
    __tablename__ = 'guild_settings'

    id = Column(Integer, primary_key=True)
    guild_id = Column(BigInteger, nullable=False, unique=True)
    channel_id = Column(BigInteger, nullable=True)
    emoji_enabled = Column(Boolean, nullable=False, default=True)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)
