"""
Betting Operations Module

Business rules for placing wagers from commands and buttons. The ledger makes
placement atomic; this layer adds the checks that depend on live state:
the betting window, the match still being active and the parley existing.

Every failure raises a BettingError subclass whose user_message the cogs show
ephemerally.
"""

import re
from typing import List, Optional, Tuple

from wagerbot.database.match_operations import MatchOperations
from wagerbot.database.models import (
    ActiveMatch, AutoBet, Bet, BetPrediction, ParleyBet, ParleyPrediction, TrackedPlayer
)
from wagerbot.services.betting_window import BettingWindowRegistry
from wagerbot.services.parley import ParleyStat, get_parley_stat
from wagerbot.utils.betting_exceptions import (
    AmbiguousPlayerError, BettingClosedError, InvalidAmountError, MatchNotActiveError,
    NoParleyError, NoTrackedPlayersError, PlayerNotTrackedError
)
from wagerbot.utils.logger import setup_logger

logger = setup_logger(__name__)

_AMOUNT_PATTERN = re.compile(r'^\d{1,3}(,\d{3})*$|^\d+$')


def parse_amount(raw) -> int:
    """Parse a stake typed by a user ('5000', '5,000'); must be a positive integer."""
    text = str(raw if raw is not None else '').strip()
    if not _AMOUNT_PATTERN.match(text):
        raise InvalidAmountError(raw)
    amount = int(text.replace(',', ''))
    if amount <= 0:
        raise InvalidAmountError(raw)
    return amount


class BettingOperations:
    """Wager placement and auto-bet management for one bot instance."""

    def __init__(self, database, registry: BettingWindowRegistry, match_ops: Optional[MatchOperations] = None):
        self.db = database
        self.registry = registry
        self.match_ops = match_ops or MatchOperations(database)
        self.logger = logger

    async def resolve_player(self, guild_id: int, riot_tag: Optional[str] = None) -> TrackedPlayer:
        """
        Find the tracked player a command refers to.

        With no tag the guild must track exactly one player.
        """
        if riot_tag:
            player = await self.db.get_tracked_player_by_tag(guild_id, riot_tag.strip())
            if not player:
                raise PlayerNotTrackedError(riot_tag)
            return player

        players = await self.db.get_tracked_players(guild_id)
        if not players:
            raise NoTrackedPlayersError()
        if len(players) > 1:
            raise AmbiguousPlayerError([p.riot_tag for p in players])
        return players[0]

    def _ensure_open(self, match_id: str):
        if not self.registry.is_open(match_id):
            raise BettingClosedError(match_id)

    async def place_bet(self, guild_id: int, discord_id: int, prediction: BetPrediction, amount: int,
                        riot_tag: Optional[str] = None) -> Tuple[Bet, TrackedPlayer]:
        """Place a one-off wager on a tracked player's current match (/bet)."""
        player = await self.resolve_player(guild_id, riot_tag)
        match = await self.match_ops.get_active_match(guild_id, player.puuid)
        if not match:
            raise MatchNotActiveError(player.display_name)
        self._ensure_open(match.match_id)

        bet = await self.match_ops.place_bet(guild_id, discord_id, match.match_id, match.puuid, prediction, amount)
        return bet, player

    async def place_bet_on_match(self, guild_id: int, discord_id: int, match_id: str,
                                 prediction: BetPrediction, amount: int) -> Bet:
        """Place a wager from an announcement button; the window is rechecked on submit."""
        self._ensure_open(match_id)
        match = await self.match_ops.get_active_match_by_match_id(guild_id, match_id)
        if not match:
            raise MatchNotActiveError(match_id)
        return await self.match_ops.place_bet(guild_id, discord_id, match_id, match.puuid, prediction, amount)

    async def get_open_parley(self, guild_id: int, match_id: str) -> Tuple[ActiveMatch, ParleyStat]:
        """The active match and its parley template, if betting on it is possible."""
        self._ensure_open(match_id)
        match = await self.match_ops.get_active_match_by_match_id(guild_id, match_id)
        if not match:
            raise MatchNotActiveError(match_id)
        stat = get_parley_stat(match.parley_stat)
        if not stat:
            raise NoParleyError(match_id)
        return match, stat

    async def place_parley_bet(self, guild_id: int, discord_id: int, match_id: str,
                               prediction: ParleyPrediction, amount: int) -> Tuple[ParleyBet, ParleyStat]:
        _, stat = await self.get_open_parley(guild_id, match_id)
        bet = await self.match_ops.place_parley_bet(guild_id, discord_id, match_id, prediction, amount)
        return bet, stat

    # Auto-bets
    async def set_auto_bet(self, guild_id: int, discord_id: int, riot_tag: Optional[str],
                           prediction: BetPrediction, amount: int) -> Tuple[AutoBet, TrackedPlayer]:
        player = await self.resolve_player(guild_id, riot_tag)
        auto_bet = await self.match_ops.set_auto_bet(guild_id, discord_id, player, prediction, amount)
        return auto_bet, player

    async def clear_auto_bet(self, guild_id: int, discord_id: int,
                             riot_tag: Optional[str]) -> Tuple[TrackedPlayer, bool]:
        """Returns the player and whether an auto-bet existed."""
        player = await self.resolve_player(guild_id, riot_tag)
        removed = await self.match_ops.remove_auto_bet(guild_id, discord_id, player.puuid)
        if removed:
            self.logger.info(f"Auto-bet cleared for {discord_id} on {player.riot_tag}")
        return player, removed

    async def list_auto_bets(self, guild_id: int, discord_id: int) -> List[Tuple[AutoBet, str]]:
        return await self.match_ops.get_auto_bets(guild_id, discord_id)

    async def get_history(self, guild_id: int, discord_id: int, limit: int = 10) -> List[Tuple[Bet, Optional[str]]]:
        return await self.match_ops.get_bet_history(guild_id, discord_id, limit)
