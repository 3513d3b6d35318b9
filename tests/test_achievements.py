"""Tests for the achievement table."""

from wagerbot.database.models import User
from wagerbot.services.achievements import ACHIEVEMENTS, get_achievement, newly_satisfied


def _user(correct=0, incorrect=0, best_streak=0):
    return User(guild_id=1, discord_id=2, coins=0, correct=correct, incorrect=incorrect,
                current_streak=0, best_streak=best_streak)


def test_fresh_user_has_nothing():
    assert newly_satisfied(_user(), []) == []


def test_first_settled_win():
    unlocked = {a.id for a in newly_satisfied(_user(correct=1, best_streak=1), [])}
    assert unlocked == {"first_bet", "first_win"}


def test_first_settled_loss():
    unlocked = {a.id for a in newly_satisfied(_user(incorrect=1), [])}
    assert unlocked == {"first_bet"}


def test_already_held_are_not_repeated():
    user = _user(correct=10, incorrect=2, best_streak=5)
    held = ["first_bet", "first_win", "bets_10", "streak_3"]
    unlocked = {a.id for a in newly_satisfied(user, held)}
    assert unlocked == {"wins_10", "streak_5"}


def test_ids_are_unique_and_resolvable():
    ids = [a.id for a in ACHIEVEMENTS]
    assert len(ids) == len(set(ids))
    assert all(get_achievement(i) is not None for i in ids)
    assert get_achievement("nope") is None
