"""
Match discovery.

Checks every tracked player for a live game and opens betting on the ones not
seen before: window registration, average-rank sampling, an optional parley,
the announcement post, standing auto-bets and the window-close notice.
Re-running over an already-recorded game does nothing.
"""

import asyncio
import random
from dataclasses import dataclass, field
from typing import Awaitable, Callable, List, Optional, Tuple

from wagerbot.config import Config
from wagerbot.data_models.riot import LiveGame, solo_queue_entry
from wagerbot.database.match_operations import MatchOperations
from wagerbot.database.models import ActiveMatch, TrackedPlayer
from wagerbot.services.betting_window import BettingWindowRegistry
from wagerbot.services.parley import roll_parley
from wagerbot.utils.betting_exceptions import DuplicateBetError, InsufficientFundsError
from wagerbot.utils.embeds import (
    build_autobet_placed_embed, build_autobet_skipped_embed,
    build_betting_closed_embed, build_match_announcement_embed
)
from wagerbot.utils.logger import setup_logger
from wagerbot.utils.ranking import average_standing, standing_value

logger = setup_logger(__name__)


def build_match_id(region: str, game_id: int) -> str:
    """Match-V5 id for a live game, e.g. na1 + 555 -> NA1_555."""
    return f"{region.upper()}_{game_id}"


@dataclass
class DiscoveryReport:
    players_checked: int = 0
    new_matches: List[str] = field(default_factory=list)
    autobets_placed: int = 0
    autobets_skipped: int = 0
    rate_limited: bool = False


class MatchDiscovery:
    """One discovery pass over all tracked players."""

    def __init__(self, db, riot, registry: BettingWindowRegistry, notifier,
                 match_ops: Optional[MatchOperations] = None,
                 rng: Optional[random.Random] = None,
                 view_factory: Optional[Callable] = None,
                 rank_sample_size: Optional[int] = None,
                 rank_sample_delay: Optional[float] = None,
                 parley_chance: Optional[float] = None,
                 sleep: Callable[[float], Awaitable[None]] = asyncio.sleep):
        self.db = db
        self.riot = riot
        self.registry = registry
        self.notifier = notifier
        self.match_ops = match_ops or MatchOperations(db)
        self.rng = rng or random.Random()
        self.view_factory = view_factory
        self.rank_sample_size = Config.RANK_SAMPLE_SIZE if rank_sample_size is None else rank_sample_size
        self.rank_sample_delay = Config.RANK_SAMPLE_DELAY_SECONDS if rank_sample_delay is None else rank_sample_delay
        self.parley_chance = Config.PARLEY_CHANCE if parley_chance is None else parley_chance
        self._sleep = sleep
        self.logger = logger

    async def run(self) -> DiscoveryReport:
        report = DiscoveryReport()
        players = await self.db.get_all_tracked_players()

        for player in players:
            report.players_checked += 1
            result = await self.riot.check_live(player.puuid, player.region)
            if result.rate_limited:
                self.logger.warning("Rate limited during new-match check, pausing cycle")
                report.rate_limited = True
                return report
            if not result.ok:
                continue

            game: LiveGame = result.data
            match_id = build_match_id(player.region, game.game_id)
            match = await self.match_ops.create_active_match(player.guild_id, player.puuid, player.region, match_id)
            if match is None:
                continue

            self.logger.info(f"New active match {match_id} for {player.riot_tag} in guild {player.guild_id}")
            report.new_matches.append(match_id)

            sampling_limited = await self._open_betting(player, game, match)
            await self._apply_auto_bets(player, match, report)
            self._schedule_close_notice(player, match)

            if sampling_limited:
                self.logger.warning("Rate limited while sampling ranks, pausing cycle")
                report.rate_limited = True
                return report

        return report

    async def _open_betting(self, player: TrackedPlayer, game: LiveGame, match: ActiveMatch) -> bool:
        """Register the window and post the announcement. Returns True if rank sampling hit a rate limit."""
        self.registry.register(match.match_id)

        average_rank, limited = await self._sample_average_rank(game, player.region)

        parley_stat = parley_line = None
        if self.rng.random() < self.parley_chance:
            stat, parley_line = roll_parley(self.rng)
            parley_stat = stat.key
            match.parley_stat, match.parley_line = parley_stat, parley_line
            await self.match_ops.set_match_parley(match.id, parley_stat, parley_line)
            self.logger.info(f"Parley rolled for {match.match_id}: {parley_stat} {parley_line}")

        emoji_enabled = await self.db.is_emoji_enabled(player.guild_id)
        embed = build_match_announcement_embed(
            player, game, average_rank,
            parley_stat=parley_stat, parley_line=parley_line,
            window_seconds=self.registry.window_seconds,
            emoji_enabled=emoji_enabled
        )
        view = None
        if self.view_factory:
            view = self.view_factory(player.guild_id, match.match_id, player.puuid, parley_stat)

        message_id = await self.notifier.publish(player.guild_id, embed, view=view)
        if message_id:
            match.message_id = message_id
            await self.match_ops.set_match_message(match.id, message_id)
        return limited

    async def _sample_average_rank(self, game: LiveGame, region: str) -> Tuple[Optional[tuple], bool]:
        """Average solo-queue standing of a few participants, and whether sampling was cut short."""
        participants = [p for p in game.participants if p.puuid]
        sample = self.rng.sample(participants, min(self.rank_sample_size, len(participants)))

        values = []
        for i, participant in enumerate(sample):
            if i:
                await self._sleep(self.rank_sample_delay)
            result = await self.riot.fetch_standing(participant.puuid, region)
            if result.rate_limited:
                return average_standing(values), True
            if not result.ok:
                continue
            entry = solo_queue_entry(result.data)
            if entry:
                values.append(standing_value(entry.tier, entry.division, entry.league_points))

        return average_standing(values), False

    async def _apply_auto_bets(self, player: TrackedPlayer, match: ActiveMatch, report: DiscoveryReport):
        auto_bets = await self.match_ops.get_auto_bets_for_player(player.guild_id, player.puuid)
        for auto_bet in auto_bets:
            try:
                await self.match_ops.place_bet(
                    player.guild_id, auto_bet.discord_id, match.match_id, player.puuid,
                    auto_bet.prediction, auto_bet.amount, is_auto=True
                )
            except InsufficientFundsError as e:
                report.autobets_skipped += 1
                self.logger.info(f"Auto-bet skipped for {auto_bet.discord_id} on {match.match_id}: insufficient coins")
                await self.notifier.publish(
                    player.guild_id,
                    build_autobet_skipped_embed(auto_bet.discord_id, player.display_name, auto_bet.amount, e.balance)
                )
                continue
            except DuplicateBetError:
                continue

            report.autobets_placed += 1
            await self.notifier.publish(
                player.guild_id,
                build_autobet_placed_embed(
                    auto_bet.discord_id, player.display_name, auto_bet.prediction.value, auto_bet.amount
                )
            )

    def _schedule_close_notice(self, player: TrackedPlayer, match: ActiveMatch):
        guild_id, match_pk, player_name = player.guild_id, match.id, player.display_name

        async def announce_closed():
            message_id = await self.notifier.publish(guild_id, build_betting_closed_embed(player_name))
            if message_id:
                await self.match_ops.set_close_message(match_pk, message_id)

        self.registry.schedule_close((guild_id, match.match_id), announce_closed)
