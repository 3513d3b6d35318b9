"""
Ranked standing utilities.

Tier, division and LP are folded onto one monotonic integer scale so peaks can
be compared and sampled participants can be averaged.
"""

from typing import Iterable, Optional, Tuple

from wagerbot.config import Config
from wagerbot.constants import RankConstants


def standing_value(tier: Optional[str], division: Optional[str], lp: Optional[int]) -> Optional[int]:
    """
    Return the single-scale value for a standing, or None if unranked.

    IRON IV 0 LP maps to 0; each tier is worth TIER_WEIGHT and each division
    DIVISION_WEIGHT, so any LP gain inside a division stays below the next one.
    Apex tiers ignore the division.
    """
    if not tier:
        return None
    tier = tier.upper()
    if tier not in RankConstants.TIER_ORDER:
        return None

    tier_index = RankConstants.TIER_ORDER.index(tier)
    if tier in RankConstants.APEX_TIERS:
        division_index = len(RankConstants.DIVISION_ORDER) - 1
    else:
        division_index = RankConstants.DIVISION_ORDER.index(division) if division in RankConstants.DIVISION_ORDER else 0

    points = max(lp or 0, 0)
    if tier not in RankConstants.APEX_TIERS:
        points = min(points, RankConstants.DIVISION_WEIGHT - 1)

    return (
        tier_index * RankConstants.TIER_WEIGHT
        + division_index * RankConstants.DIVISION_WEIGHT
        + points
    )


def value_to_standing(value: float) -> Tuple[str, Optional[str], int]:
    """Inverse of standing_value, used to display an averaged rank."""
    value = max(int(round(value)), 0)
    tier_index = min(value // RankConstants.TIER_WEIGHT, len(RankConstants.TIER_ORDER) - 1)
    tier = RankConstants.TIER_ORDER[tier_index]
    remainder = value - tier_index * RankConstants.TIER_WEIGHT

    if tier in RankConstants.APEX_TIERS:
        apex_base = (len(RankConstants.DIVISION_ORDER) - 1) * RankConstants.DIVISION_WEIGHT
        return tier, None, max(remainder - apex_base, 0)

    division_index = min(remainder // RankConstants.DIVISION_WEIGHT, len(RankConstants.DIVISION_ORDER) - 1)
    lp = remainder - division_index * RankConstants.DIVISION_WEIGHT
    return tier, RankConstants.DIVISION_ORDER[division_index], lp


def average_standing(values: Iterable[int]) -> Optional[Tuple[str, Optional[str], int]]:
    """Average several standing values; None when nothing was ranked."""
    values = [v for v in values if v is not None]
    if not values:
        return None
    return value_to_standing(sum(values) / len(values))


def is_higher_standing(tier, division, lp, peak_tier, peak_division, peak_lp) -> bool:
    """True if the new standing strictly exceeds the stored peak."""
    new_value = standing_value(tier, division, lp)
    if new_value is None:
        return False
    peak_value = standing_value(peak_tier, peak_division, peak_lp)
    return peak_value is None or new_value > peak_value


def format_standing(tier: Optional[str], division: Optional[str], lp: Optional[int] = None,
                    emoji_enabled: bool = False) -> str:
    """Human readable standing, e.g. 'GOLD II (45 LP)'."""
    if not tier:
        return "Unranked"
    label = tier.upper() if tier.upper() in RankConstants.APEX_TIERS or not division else f"{tier.upper()} {division}"
    if lp is not None:
        label = f"{label} ({lp} LP)"
    if emoji_enabled:
        emoji = Config.get_rank_emoji(tier)
        if emoji:
            label = f"{emoji} {label}"
    return label
