"""
Riot API data models.

Immutable data transfer objects parsed from the Spectator-V5, Match-V5 and
League-V4 payloads. Only the fields the poller and commands read are kept.
"""

from dataclasses import dataclass, field
from typing import List, Optional

from wagerbot.constants import RankConstants, TeamConstants


@dataclass(frozen=True)
class LiveParticipant:
    """One player in a live game."""
    puuid: str
    team_id: int
    champion_id: int
    riot_id: Optional[str] = None

    @property
    def display_name(self) -> str:
        if not self.riot_id:
            return "Unknown"
        return self.riot_id.split('#')[0]

    @classmethod
    def from_api(cls, data: dict) -> "LiveParticipant":
        return cls(
            puuid=data.get('puuid') or '',
            team_id=int(data.get('teamId', 0)),
            champion_id=int(data.get('championId', 0)),
            riot_id=data.get('riotId'),
        )


@dataclass(frozen=True)
class LiveGame:
    """A game currently in progress (Spectator-V5)."""
    game_id: int
    participants: List[LiveParticipant] = field(default_factory=list)
    game_mode: Optional[str] = None

    def participant(self, puuid: str) -> Optional[LiveParticipant]:
        return next((p for p in self.participants if p.puuid == puuid), None)

    def opponents_of(self, puuid: str) -> List[LiveParticipant]:
        me = self.participant(puuid)
        if not me:
            return []
        return [p for p in self.participants if p.team_id != me.team_id]

    def side_of(self, puuid: str) -> str:
        me = self.participant(puuid)
        if not me:
            return "Unknown Side"
        return TeamConstants.TEAM_NAMES.get(me.team_id, "Unknown Side")

    @classmethod
    def from_api(cls, data: dict) -> "LiveGame":
        return cls(
            game_id=int(data['gameId']),
            participants=[LiveParticipant.from_api(p) for p in data.get('participants', [])],
            game_mode=data.get('gameMode'),
        )


@dataclass(frozen=True)
class MatchParticipantStats:
    """End-of-game stats for one participant (Match-V5)."""
    puuid: str
    team_id: int
    win: bool
    kills: int = 0
    deaths: int = 0
    assists: int = 0
    creep_score: int = 0
    vision_score: int = 0
    first_blood: bool = False
    triple_kills: int = 0
    champion_name: Optional[str] = None
    riot_id: Optional[str] = None

    @property
    def kda(self) -> float:
        return (self.kills + self.assists) / max(self.deaths, 1)

    @classmethod
    def from_api(cls, data: dict) -> "MatchParticipantStats":
        game_name = data.get('riotIdGameName')
        tag_line = data.get('riotIdTagline')
        return cls(
            puuid=data.get('puuid') or '',
            team_id=int(data.get('teamId', 0)),
            win=bool(data.get('win', False)),
            kills=int(data.get('kills', 0)),
            deaths=int(data.get('deaths', 0)),
            assists=int(data.get('assists', 0)),
            creep_score=int(data.get('totalMinionsKilled', 0)) + int(data.get('neutralMinionsKilled', 0)),
            vision_score=int(data.get('visionScore', 0)),
            first_blood=bool(data.get('firstBloodKill', False) or data.get('firstBloodAssist', False)),
            triple_kills=int(data.get('tripleKills', 0)),
            champion_name=data.get('championName'),
            riot_id=f"{game_name}#{tag_line}" if game_name and tag_line else None,
        )


@dataclass(frozen=True)
class CompletedMatch:
    """A finished match (Match-V5)."""
    match_id: str
    duration_seconds: int
    participants: List[MatchParticipantStats] = field(default_factory=list)

    @property
    def duration_minutes(self) -> float:
        return self.duration_seconds / 60

    def participant(self, puuid: str) -> Optional[MatchParticipantStats]:
        return next((p for p in self.participants if p.puuid == puuid), None)

    @classmethod
    def from_api(cls, data: dict) -> "CompletedMatch":
        info = data.get('info', {})
        metadata = data.get('metadata', {})
        duration = int(info.get('gameDuration', 0))
        # Pre-11.20 payloads report gameDuration in milliseconds
        if 'gameEndTimestamp' not in info:
            duration = duration // 1000
        return cls(
            match_id=metadata.get('matchId', ''),
            duration_seconds=duration,
            participants=[MatchParticipantStats.from_api(p) for p in info.get('participants', [])],
        )


@dataclass(frozen=True)
class RankedEntry:
    """One League-V4 queue entry."""
    queue_type: str
    tier: str
    division: str
    league_points: int
    wins: int = 0
    losses: int = 0

    @property
    def is_solo_queue(self) -> bool:
        return self.queue_type == RankConstants.SOLO_QUEUE

    @classmethod
    def from_api(cls, data: dict) -> "RankedEntry":
        return cls(
            queue_type=data.get('queueType', ''),
            tier=data.get('tier', ''),
            division=data.get('rank', ''),
            league_points=int(data.get('leaguePoints', 0)),
            wins=int(data.get('wins', 0)),
            losses=int(data.get('losses', 0)),
        )


def solo_queue_entry(entries: List[RankedEntry]) -> Optional[RankedEntry]:
    return next((e for e in entries or [] if e.is_solo_queue), None)
