"""
Parley (proposition) stat templates.

A closed set of two variants: OverUnderStat rolls a numeric line inside its
range, YesNoStat has no line and resolves straight from a boolean. Each
template carries its own derivation from the tracked player's end-of-game
stats, so settlement never switches on a stat name.
"""

import random
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Tuple, Union

from wagerbot.data_models.riot import CompletedMatch, MatchParticipantStats


@dataclass(frozen=True)
class OverUnderStat:
    key: str
    label: str
    min_line: float
    max_line: float
    step: float
    derive: Callable[[MatchParticipantStats, CompletedMatch], float]
    unit: str = ""

    is_yes_no = False

    def roll_line(self, rng: random.Random) -> float:
        steps = int(round((self.max_line - self.min_line) / self.step))
        return round(self.min_line + rng.randint(0, steps) * self.step, 2)

    def actual(self, participant: MatchParticipantStats, match: CompletedMatch) -> float:
        return round(float(self.derive(participant, match)), 2)

    def over_hits(self, participant: MatchParticipantStats, match: CompletedMatch, line: float) -> bool:
        """OVER wins iff the actual value is strictly above the line."""
        return self.actual(participant, match) > line

    def describe(self, line: Optional[float]) -> str:
        return f"{self.label} over/under **{line:g}**{self.unit}"

    def format_actual(self, value: float) -> str:
        return f"{value:g}{self.unit}"


@dataclass(frozen=True)
class YesNoStat:
    key: str
    label: str
    derive: Callable[[MatchParticipantStats, CompletedMatch], bool]

    is_yes_no = True

    def roll_line(self, rng: random.Random) -> Optional[float]:
        return None

    def actual(self, participant: MatchParticipantStats, match: CompletedMatch) -> bool:
        return bool(self.derive(participant, match))

    def over_hits(self, participant: MatchParticipantStats, match: CompletedMatch, line: Optional[float] = None) -> bool:
        """OVER is the YES side."""
        return self.actual(participant, match)

    def describe(self, line: Optional[float] = None) -> str:
        return f"{self.label}? **YES / NO**"

    def format_actual(self, value: bool) -> str:
        return "YES" if value else "NO"


ParleyStat = Union[OverUnderStat, YesNoStat]


PARLEY_STATS: Tuple[ParleyStat, ...] = (
    OverUnderStat('kills', 'Kills', 2.5, 12.5, 1, lambda p, m: p.kills),
    OverUnderStat('deaths', 'Deaths', 2.5, 9.5, 1, lambda p, m: p.deaths),
    OverUnderStat('kda', 'KDA', 1.5, 5.5, 0.5, lambda p, m: p.kda),
    OverUnderStat('cs', 'CS', 100.5, 250.5, 10, lambda p, m: p.creep_score),
    OverUnderStat('visionScore', 'Vision Score', 10.5, 50.5, 5, lambda p, m: p.vision_score),
    OverUnderStat('gameLength', 'Game Length', 22.5, 38.5, 1, lambda p, m: m.duration_minutes, unit=" min"),
    YesNoStat('firstBlood', 'First Blood', lambda p, m: p.first_blood),
    YesNoStat('tripleKill', 'Triple Kill', lambda p, m: p.triple_kills > 0),
)

_STATS_BY_KEY: Dict[str, ParleyStat] = {stat.key: stat for stat in PARLEY_STATS}


def get_parley_stat(key: Optional[str]) -> Optional[ParleyStat]:
    if not key:
        return None
    return _STATS_BY_KEY.get(key)


def roll_parley(rng: random.Random) -> Tuple[ParleyStat, Optional[float]]:
    """Pick a template and a line for it."""
    stat = rng.choice(PARLEY_STATS)
    return stat, stat.roll_line(rng)


def prediction_label(stat: ParleyStat, prediction: str) -> str:
    """Display OVER/UNDER, or YES/NO for yes/no stats."""
    if stat.is_yes_no:
        return "YES" if prediction == "over" else "NO"
    return prediction.upper()
