"""Shared fixtures and fakes for the wager bot tests."""

from __future__ import annotations

import itertools
from typing import Dict, List, Optional

import pytest
import pytest_asyncio

from wagerbot.data_models.riot import (
    CompletedMatch, LiveGame, LiveParticipant, MatchParticipantStats, RankedEntry
)
from wagerbot.database.database import Database
from wagerbot.database.match_operations import MatchOperations
from wagerbot.services.betting_window import BettingWindowRegistry
from wagerbot.services.riot_api import ApiResult

GUILD_ID = 1001
PLAYER_PUUID = "puuid-tracked"
PLAYER_TAG = "Nivy#NA1"


# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


class FakeRiot:
    """Scripted Riot client; unknown keys answer NOT_FOUND."""

    def __init__(self):
        self.live: Dict[str, ApiResult] = {}
        self.completed: Dict[str, ApiResult] = {}
        self.standings: Dict[str, ApiResult] = {}
        self.identities: Dict[str, ApiResult] = {}
        self.calls: List[tuple] = []

    async def check_live(self, puuid, region=None):
        self.calls.append(("check_live", puuid, region))
        return self.live.get(puuid, ApiResult.not_found())

    async def fetch_completed(self, match_id, region=None):
        self.calls.append(("fetch_completed", match_id, region))
        return self.completed.get(match_id, ApiResult.not_found())

    async def fetch_standing(self, puuid, region=None):
        self.calls.append(("fetch_standing", puuid, region))
        return self.standings.get(puuid, ApiResult.success([]))

    async def resolve_identity(self, game_name, tag_line, region=None):
        self.calls.append(("resolve_identity", f"{game_name}#{tag_line}", region))
        return self.identities.get(f"{game_name}#{tag_line}", ApiResult.not_found())

    def count(self, name: str) -> int:
        return sum(1 for call in self.calls if call[0] == name)


class FakeNotifier:
    """Records posts and deletions instead of talking to Discord."""

    def __init__(self):
        self._ids = itertools.count(5000)
        self.published: List[tuple] = []
        self.deleted: List[tuple] = []

    async def publish(self, guild_id, embed, view=None) -> Optional[int]:
        message_id = next(self._ids)
        self.published.append((guild_id, embed, view, message_id))
        return message_id

    async def delete(self, guild_id, message_id):
        if message_id:
            self.deleted.append((guild_id, message_id))

    def titles(self) -> List[Optional[str]]:
        return [embed.title for _, embed, _, _ in self.published]

    def descriptions(self) -> List[str]:
        return [embed.description or "" for _, embed, _, _ in self.published]


# ---------------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------------


def make_live_game(game_id: int = 555, puuid: str = PLAYER_PUUID, opponents: int = 5) -> LiveGame:
    participants = [LiveParticipant(puuid=puuid, team_id=100, champion_id=1, riot_id=PLAYER_TAG)]
    participants += [
        LiveParticipant(puuid=f"ally-{i}", team_id=100, champion_id=10 + i, riot_id=f"Ally{i}#NA1")
        for i in range(4)
    ]
    participants += [
        LiveParticipant(puuid=f"enemy-{i}", team_id=200, champion_id=20 + i, riot_id=f"Enemy{i}#NA1")
        for i in range(opponents)
    ]
    return LiveGame(game_id=game_id, participants=participants, game_mode="CLASSIC")


def make_completed(match_id: str = "NA1_555", puuid: str = PLAYER_PUUID, win: bool = True,
                   include_player: bool = True, **stats) -> CompletedMatch:
    participants = []
    if include_player:
        participants.append(MatchParticipantStats(
            puuid=puuid, team_id=100, win=win,
            kills=stats.get("kills", 7), deaths=stats.get("deaths", 2), assists=stats.get("assists", 9),
            creep_score=stats.get("creep_score", 180), vision_score=stats.get("vision_score", 25),
            first_blood=stats.get("first_blood", False), triple_kills=stats.get("triple_kills", 0),
            champion_name="Ahri",
        ))
    participants.append(MatchParticipantStats(puuid="enemy-0", team_id=200, win=not win))
    return CompletedMatch(
        match_id=match_id,
        duration_seconds=stats.get("duration_seconds", 30 * 60),
        participants=participants,
    )


def solo_entry(tier: str, division: str, lp: int) -> RankedEntry:
    return RankedEntry(queue_type="RANKED_SOLO_5x5", tier=tier, division=division, league_points=lp)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def db(tmp_path):
    database = Database(f"sqlite:///{tmp_path / 'wagerbot_test.db'}")
    await database.initialize()
    yield database
    await database.close()


@pytest.fixture
def match_ops(db):
    return MatchOperations(db)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def registry(clock):
    return BettingWindowRegistry(window_seconds=300, clock=clock)


@pytest.fixture
def riot():
    return FakeRiot()


@pytest.fixture
def notifier():
    return FakeNotifier()


@pytest_asyncio.fixture
async def tracked_player(db):
    return await db.add_tracked_player(GUILD_ID, PLAYER_TAG, PLAYER_PUUID, "na1")


async def fund(db, discord_id: int, coins: int, guild_id: int = GUILD_ID):
    """Give a user an exact balance through the collect path."""
    return await db.collect(guild_id, discord_id, amount=coins, cooldown_hours=0)
