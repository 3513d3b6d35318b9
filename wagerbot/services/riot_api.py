"""
Riot Games API client.

Every call returns an ApiResult instead of raising, so the poller can tell a
normal "not found" (player not in game, match not finished yet) apart from
back-pressure (HTTP 429) and from generic failures.
"""

import asyncio
from dataclasses import dataclass
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from enum import Enum
from typing import Any, Callable, Optional
from urllib.parse import quote

import aiohttp

from wagerbot.config import Config
from wagerbot.data_models.riot import CompletedMatch, LiveGame, RankedEntry
from wagerbot.utils.logger import setup_logger

logger = setup_logger(__name__)


class ApiStatus(Enum):
    OK = "ok"
    NOT_FOUND = "not_found"
    RATE_LIMITED = "rate_limited"
    FAILED = "failed"


@dataclass(frozen=True)
class ApiResult:
    """Outcome of one upstream call."""
    status: ApiStatus
    data: Any = None
    retry_after: Optional[int] = None

    @property
    def ok(self) -> bool:
        return self.status == ApiStatus.OK

    @property
    def rate_limited(self) -> bool:
        return self.status == ApiStatus.RATE_LIMITED

    @classmethod
    def success(cls, data: Any) -> "ApiResult":
        return cls(ApiStatus.OK, data)

    @classmethod
    def not_found(cls) -> "ApiResult":
        return cls(ApiStatus.NOT_FOUND)

    @classmethod
    def limited(cls, retry_after: Optional[int] = None) -> "ApiResult":
        return cls(ApiStatus.RATE_LIMITED, retry_after=retry_after)

    @classmethod
    def failed(cls) -> "ApiResult":
        return cls(ApiStatus.FAILED)


DEFAULT_RETRY_AFTER = 10


def _parse_retry_after(value: Optional[str]) -> int:
    """Seconds from a Retry-After header (delta-seconds or HTTP-date); 10 when unusable."""
    if not value:
        return DEFAULT_RETRY_AFTER
    value = value.strip()
    if value.isdigit():
        return int(value)
    try:
        retry_at = parsedate_to_datetime(value)
    except (TypeError, ValueError, IndexError):
        return DEFAULT_RETRY_AFTER
    if retry_at is None:
        return DEFAULT_RETRY_AFTER
    if retry_at.tzinfo is None:
        retry_at = retry_at.replace(tzinfo=timezone.utc)
    return max(int((retry_at - datetime.now(timezone.utc)).total_seconds()), 0)


class RiotClient:
    """Thin async wrapper around the four Riot endpoints the bot needs."""

    def __init__(self, api_key: Optional[str] = None, session: Optional[aiohttp.ClientSession] = None,
                 timeout: Optional[float] = None):
        self.api_key = api_key or Config.RIOT_API_KEY
        self._session = session
        self._owns_session = session is None
        self._timeout = aiohttp.ClientTimeout(total=timeout or Config.RIOT_TIMEOUT_SECONDS)

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                headers={'X-Riot-Token': self.api_key or ''},
                timeout=self._timeout,
            )
            self._owns_session = True
        return self._session

    async def close(self):
        if self._session and self._owns_session and not self._session.closed:
            await self._session.close()

    async def _fetch(self, url: str, parse: Callable[[Any], Any] = None) -> ApiResult:
        logger.debug(f"Riot API request: {url}")
        session = await self._get_session()
        try:
            async with session.get(url) as response:
                if response.status == 429:
                    retry_after = _parse_retry_after(response.headers.get('Retry-After'))
                    logger.warning(f"Riot API rate limited, backing off (retry after {retry_after}s)")
                    return ApiResult.limited(retry_after)

                if response.status == 404:
                    return ApiResult.not_found()

                if response.status >= 400:
                    body = await response.text()
                    logger.error(f"Riot API error {response.status} for {url}: {body[:200]}")
                    return ApiResult.failed()

                try:
                    payload = await response.json()
                except ValueError as e:
                    logger.error(f"Malformed JSON from Riot API for {url}: {e}")
                    return ApiResult.failed()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error(f"Riot API request failed for {url}: {e}")
            return ApiResult.failed()

        if parse is None:
            return ApiResult.success(payload)
        try:
            return ApiResult.success(parse(payload))
        except (KeyError, TypeError, ValueError) as e:
            logger.error(f"Unexpected Riot API payload from {url}: {e}")
            return ApiResult.failed()

    async def resolve_identity(self, game_name: str, tag_line: str, region: Optional[str] = None) -> ApiResult:
        """Resolve a Riot ID to its PUUID (Account-V1, regional route)."""
        base = Config.regional_url(region)
        url = f"{base}/riot/account/v1/accounts/by-riot-id/{quote(game_name)}/{quote(tag_line)}"
        return await self._fetch(url, parse=lambda payload: payload['puuid'])

    async def check_live(self, puuid: str, region: Optional[str] = None) -> ApiResult:
        """Return the player's live game, if any (Spectator-V5, platform route)."""
        base = Config.platform_url(region)
        url = f"{base}/lol/spectator/v5/active-games/by-summoner/{puuid}"
        return await self._fetch(url, parse=LiveGame.from_api)

    async def fetch_completed(self, match_id: str, region: Optional[str] = None) -> ApiResult:
        """Return a finished match; NOT_FOUND until Match-V5 has it (regional route)."""
        base = Config.regional_url(region)
        url = f"{base}/lol/match/v5/matches/{match_id}"
        return await self._fetch(url, parse=CompletedMatch.from_api)

    async def fetch_standing(self, puuid: str, region: Optional[str] = None) -> ApiResult:
        """Return the player's ranked queue entries (League-V4, platform route)."""
        base = Config.platform_url(region)
        url = f"{base}/lol/league/v4/entries/by-puuid/{puuid}"
        return await self._fetch(url, parse=lambda payload: [RankedEntry.from_api(e) for e in payload])
