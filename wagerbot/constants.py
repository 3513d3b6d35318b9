"""
Bot-wide constants for the wager bot.

Keeps ranked-ladder ordering, embed colors and emoji in one place so the
poller, the cogs and the embed builders agree on them.
"""


class RankConstants:
    """Constants describing the ranked ladder."""

    # Lowest to highest
    TIER_ORDER = [
        'IRON', 'BRONZE', 'SILVER', 'GOLD', 'PLATINUM',
        'EMERALD', 'DIAMOND', 'MASTER', 'GRANDMASTER', 'CHALLENGER',
    ]

    # Lowest to highest
    DIVISION_ORDER = ['IV', 'III', 'II', 'I']

    # Apex tiers have no divisions; Riot reports them as "I"
    APEX_TIERS = {'MASTER', 'GRANDMASTER', 'CHALLENGER'}

    SOLO_QUEUE = 'RANKED_SOLO_5x5'

    # Scale weights for the single monotonic standing value
    TIER_WEIGHT = 10_000
    DIVISION_WEIGHT = 100


class TeamConstants:
    """Map side identifiers."""

    BLUE_TEAM_ID = 100
    RED_TEAM_ID = 200

    TEAM_NAMES = {
        BLUE_TEAM_ID: 'Blue Side',
        RED_TEAM_ID: 'Red Side',
    }


class UIConstants:
    """Constants for Discord UI elements."""

    # Embed colors
    DEFAULT_EMBED_COLOR = 0x3498db  # Blue
    SUCCESS_COLOR = 0x2ecc71        # Green
    ERROR_COLOR = 0xe74c3c          # Red
    CLOSED_COLOR = 0x95a5a6         # Grey
    GOLD_COLOR = 0xf1c40f
    PEAK_COLOR = 0xe67e22
    RANK_COLOR = 0x9b59b6

    # Emoji for UI elements
    COIN_EMOJI = "🪙"
    TROPHY_EMOJI = "🏆"
    SKULL_EMOJI = "💀"
    LOCK_EMOJI = "🔒"
    MEDALS = ["🥇", "🥈", "🥉"]

    HISTORY_LIMIT = 10
    LEADERBOARD_LIMIT = 10

    # Discord embed limits
    FIELD_VALUE_LIMIT = 1024
    SUMMARY_BET_FIELDS = 3       # Bet result fields per settlement summary
    SUMMARY_SECTION_FIELDS = 1   # Parley / achievement fields per summary
