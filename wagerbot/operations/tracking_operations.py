"""
Tracking Operations Module

Adding and removing tracked players, rank lookups and the startup PUUID
refresh. Riot IDs are resolved to PUUIDs through the account endpoint; PUUIDs
are scoped to the API key, so they are refreshed whenever the bot starts.
"""

from typing import List, Optional, Tuple

from wagerbot.config import Config
from wagerbot.data_models.riot import RankedEntry, solo_queue_entry
from wagerbot.database.models import TrackedPlayer
from wagerbot.services.riot_api import ApiStatus
from wagerbot.utils.betting_exceptions import (
    InvalidRiotIdError, PlayerAlreadyTrackedError, PlayerNotTrackedError,
    RiotAccountNotFoundError, UpstreamUnavailableError
)
from wagerbot.utils.logger import setup_logger
from wagerbot.utils.ranking import standing_value

logger = setup_logger(__name__)


def parse_riot_id(riot_id: str) -> Tuple[str, str]:
    """Split 'GameName#TagLine'; both parts are required."""
    parts = (riot_id or '').strip().split('#')
    if len(parts) != 2 or not parts[0].strip() or not parts[1].strip():
        raise InvalidRiotIdError(riot_id)
    return parts[0].strip(), parts[1].strip()


class TrackingOperations:
    """Tracked player lifecycle backed by the Riot account and league endpoints."""

    def __init__(self, database, riot):
        self.db = database
        self.riot = riot
        self.logger = logger

    async def _resolve_puuid(self, game_name: str, tag_line: str, region: str) -> str:
        result = await self.riot.resolve_identity(game_name, tag_line, region)
        if result.status == ApiStatus.NOT_FOUND:
            raise RiotAccountNotFoundError(f"{game_name}#{tag_line}")
        if not result.ok:
            raise UpstreamUnavailableError(rate_limited=result.rate_limited)
        return result.data

    async def add_player(self, guild_id: int, riot_id: str, region: Optional[str] = None) -> TrackedPlayer:
        """Resolve and start tracking a player in the guild."""
        game_name, tag_line = parse_riot_id(riot_id)
        region = (region or Config.RIOT_REGION).lower()
        riot_tag = f"{game_name}#{tag_line}"

        puuid = await self._resolve_puuid(game_name, tag_line, region)
        player = await self.db.add_tracked_player(guild_id, riot_tag, puuid, region)
        if player is None:
            raise PlayerAlreadyTrackedError(riot_tag)
        return player

    async def remove_player(self, guild_id: int, riot_id: str):
        """Stop tracking a player; their auto-bets are removed with them."""
        riot_id = (riot_id or '').strip()
        if not await self.db.remove_tracked_player(guild_id, riot_id):
            raise PlayerNotTrackedError(riot_id)

    async def lookup_rank(self, riot_id: str, region: Optional[str] = None) -> Tuple[str, Optional[RankedEntry]]:
        """Solo/duo entry for any Riot ID (None when unranked)."""
        game_name, tag_line = parse_riot_id(riot_id)
        region = (region or Config.RIOT_REGION).lower()
        puuid = await self._resolve_puuid(game_name, tag_line, region)

        result = await self.riot.fetch_standing(puuid, region)
        if not result.ok:
            raise UpstreamUnavailableError(rate_limited=result.rate_limited)
        return f"{game_name}#{tag_line}", solo_queue_entry(result.data)

    async def tracked_ranks(self, guild_id: int) -> List[Tuple[TrackedPlayer, Optional[RankedEntry]]]:
        """Current solo/duo entry for every tracked player in the guild."""
        rows = []
        rate_limited = False
        for player in await self.db.get_tracked_players(guild_id):
            entry = None
            if not rate_limited:
                result = await self.riot.fetch_standing(player.puuid, player.region)
                if result.rate_limited:
                    rate_limited = True
                    self.logger.warning("Rate limited during rank overview, remaining players shown unranked")
                elif result.ok:
                    entry = solo_queue_entry(result.data)
            rows.append((player, entry))
        return rows

    async def peaks(self, guild_id: int) -> List[TrackedPlayer]:
        """Tracked players ordered by peak standing, highest first; no peak sorts last."""
        players = await self.db.get_tracked_players(guild_id)

        def sort_key(player):
            value = standing_value(player.peak_tier, player.peak_division, player.peak_lp)
            return (value is None, -(value or 0), player.riot_tag.lower())

        return sorted(players, key=sort_key)

    async def refresh_puuids(self) -> int:
        """Re-resolve every tracked player's PUUID; returns how many changed."""
        players = await self.db.get_all_tracked_players()
        self.logger.info(f"Refreshing PUUIDs for {len(players)} tracked players")

        updated = 0
        for player in players:
            try:
                game_name, tag_line = parse_riot_id(player.riot_tag)
            except InvalidRiotIdError:
                self.logger.warning(f"Stored Riot tag '{player.riot_tag}' is malformed, skipping refresh")
                continue

            result = await self.riot.resolve_identity(game_name, tag_line, player.region)
            if result.rate_limited:
                self.logger.warning("Rate limited during PUUID refresh, stopping early")
                break
            if not result.ok:
                self.logger.warning(f"Could not refresh PUUID for {player.riot_tag}")
                continue

            if result.data != player.puuid:
                await self.db.update_tracked_player_puuid(player.id, result.data)
                self.logger.info(f"Updated PUUID for {player.riot_tag}")
                updated += 1
        return updated
