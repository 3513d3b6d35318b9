"""
Settlement data models.

Immutable records of what one settled match produced, built inside the
settlement transaction and rendered into the summary post after commit.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from wagerbot.data_models.riot import MatchParticipantStats


@dataclass(frozen=True)
class BetResult:
    """One resolved win/lose bet."""
    discord_id: int
    prediction: str  # 'win' or 'lose'
    amount: int
    correct: bool
    payout: int
    is_auto: bool = False


@dataclass(frozen=True)
class ParleyResult:
    """One resolved parley bet."""
    discord_id: int
    prediction: str  # 'over' or 'under'
    amount: int
    correct: bool
    payout: int


@dataclass(frozen=True)
class SettledMatch:
    """Everything the summary post needs about a settled match."""
    guild_id: int
    match_id: str
    player_name: str
    won: Optional[bool]  # None when the player was missing from the result
    participant: Optional[MatchParticipantStats] = None
    duration_minutes: float = 0.0
    bet_results: List[BetResult] = field(default_factory=list)
    parley_stat: Optional[str] = None
    parley_line: Optional[float] = None
    parley_actual: Optional[object] = None
    parley_results: List[ParleyResult] = field(default_factory=list)
    achievements: List[Tuple[int, str]] = field(default_factory=list)  # (discord_id, achievement_id)
    new_peak: Optional[Tuple[str, str, int]] = None

    @property
    def has_participant(self) -> bool:
        return self.won is not None
