"""
Betting achievements.

A fixed predicate table evaluated against a user's record after settlement.
Unlocks are stored once per (guild, user, achievement).
"""

from dataclasses import dataclass
from typing import Callable, Iterable, List, Optional

from wagerbot.database.models import User


@dataclass(frozen=True)
class AchievementDefinition:
    id: str
    name: str
    emoji: str
    description: str
    predicate: Callable[[User], bool]

    def label(self) -> str:
        return f"{self.emoji} **{self.name}**"


ACHIEVEMENTS = (
    AchievementDefinition('first_bet', 'Rookie Bettor', '🎟️', 'Have a bet settled',
                          lambda u: u.total_bets >= 1),
    AchievementDefinition('bets_10', 'Regular', '🎰', 'Have 10 bets settled',
                          lambda u: u.total_bets >= 10),
    AchievementDefinition('bets_50', 'Degenerate', '🎲', 'Have 50 bets settled',
                          lambda u: u.total_bets >= 50),
    AchievementDefinition('bets_100', 'House Regular', '🏛️', 'Have 100 bets settled',
                          lambda u: u.total_bets >= 100),
    AchievementDefinition('first_win', 'Beginner\'s Luck', '🍀', 'Win a bet',
                          lambda u: u.correct >= 1),
    AchievementDefinition('wins_10', 'Sharp', '🎯', 'Win 10 bets',
                          lambda u: u.correct >= 10),
    AchievementDefinition('wins_50', 'Oracle', '🔮', 'Win 50 bets',
                          lambda u: u.correct >= 50),
    AchievementDefinition('streak_3', 'Heating Up', '🔥', 'Reach a 3 bet win streak',
                          lambda u: u.best_streak >= 3),
    AchievementDefinition('streak_5', 'On Fire', '☄️', 'Reach a 5 bet win streak',
                          lambda u: u.best_streak >= 5),
    AchievementDefinition('streak_10', 'Unstoppable', '👑', 'Reach a 10 bet win streak',
                          lambda u: u.best_streak >= 10),
)

_BY_ID = {a.id: a for a in ACHIEVEMENTS}


def get_achievement(achievement_id: str) -> Optional[AchievementDefinition]:
    return _BY_ID.get(achievement_id)


def newly_satisfied(user: User, already_unlocked: Iterable[str]) -> List[AchievementDefinition]:
    """Achievements whose predicate holds for user and that are not yet held."""
    held = set(already_unlocked)
    return [a for a in ACHIEVEMENTS if a.id not in held and a.predicate(user)]
