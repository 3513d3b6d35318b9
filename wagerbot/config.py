import os
from dotenv import load_dotenv

load_dotenv()

# Riot routes Spectator/League calls by platform (na1, euw1, ...) and
# Account/Match calls by the continent-level regional cluster.
PLATFORM_TO_REGIONAL = {
    'na1': 'americas',
    'br1': 'americas',
    'la1': 'americas',
    'la2': 'americas',
    'euw1': 'europe',
    'eun1': 'europe',
    'tr1': 'europe',
    'ru': 'europe',
    'kr': 'asia',
    'jp1': 'asia',
    'oc1': 'sea',
    'ph2': 'sea',
    'sg2': 'sea',
    'th2': 'sea',
    'tw2': 'sea',
    'vn2': 'sea',
}


class Config:
    """Bot configuration settings"""

    # Discord settings
    DISCORD_TOKEN = os.getenv('DISCORD_TOKEN')
    DISCORD_GUILD_ID = int(os.getenv('DISCORD_GUILD_ID', 0))
    DISCORD_GUILD_IDS = os.getenv('DISCORD_GUILD_IDS', '')  # Comma-separated for multi-guild support
    OWNER_DISCORD_ID = int(os.getenv('OWNER_DISCORD_ID', 0))

    # Riot API settings
    RIOT_API_KEY = os.getenv('RIOT_API_KEY')
    RIOT_REGION = os.getenv('RIOT_REGION', 'na1').lower()
    RIOT_TIMEOUT_SECONDS = float(os.getenv('RIOT_TIMEOUT_SECONDS', 10))

    # Database settings
    DATABASE_URL = os.getenv('DATABASE_URL', 'sqlite:///wagerbot.db')

    # Bot settings
    COMMAND_PREFIX = os.getenv('COMMAND_PREFIX', '!')
    DEBUG = os.getenv('DEBUG', 'False').lower() == 'true'
    COMMAND_COOLDOWN_SECONDS = int(os.getenv('COMMAND_COOLDOWN_SECONDS', 5))

    # Logging settings
    LOG_LEVEL = os.getenv('LOG_LEVEL', '')                 # Console level override, e.g. WARNING
    LOG_DIR = os.getenv('LOG_DIR', 'logs')
    LOG_TO_FILE = os.getenv('LOG_TO_FILE', 'True').lower() == 'true'

    # Economy settings
    COLLECT_AMOUNT = int(os.getenv('COLLECT_AMOUNT', 10_000))
    COLLECT_COOLDOWN_HOURS = float(os.getenv('COLLECT_COOLDOWN_HOURS', 2))

    # Polling settings
    POLL_INTERVAL_SECONDS = int(os.getenv('POLL_INTERVAL_SECONDS', 60))
    BETTING_WINDOW_SECONDS = int(os.getenv('BETTING_WINDOW_SECONDS', 300))
    RANK_SAMPLE_SIZE = int(os.getenv('RANK_SAMPLE_SIZE', 4))            # Participants sampled for average rank
    RANK_SAMPLE_DELAY_SECONDS = float(os.getenv('RANK_SAMPLE_DELAY_SECONDS', 1.2))

    # Payout settings
    WIN_PAYOUT_MULTIPLIER = float(os.getenv('WIN_PAYOUT_MULTIPLIER', 1.5))   # WIN bets
    LOSE_PAYOUT_MULTIPLIER = float(os.getenv('LOSE_PAYOUT_MULTIPLIER', 3))   # LOSE bets

    # Parley (proposition) settings
    PARLEY_CHANCE = float(os.getenv('PARLEY_CHANCE', 0.1))
    PARLEY_PAYOUT_MULTIPLIER = float(os.getenv('PARLEY_PAYOUT_MULTIPLIER', 2))

    # Custom rank emoji - format '<:name:id>', empty string skips the tier
    RANK_EMOJI = {
        'IRON': os.getenv('EMOJI_IRON', ''),
        'BRONZE': os.getenv('EMOJI_BRONZE', ''),
        'SILVER': os.getenv('EMOJI_SILVER', ''),
        'GOLD': os.getenv('EMOJI_GOLD', ''),
        'PLATINUM': os.getenv('EMOJI_PLATINUM', ''),
        'EMERALD': os.getenv('EMOJI_EMERALD', ''),
        'DIAMOND': os.getenv('EMOJI_DIAMOND', ''),
        'MASTER': os.getenv('EMOJI_MASTER', ''),
        'GRANDMASTER': os.getenv('EMOJI_GRANDMASTER', ''),
        'CHALLENGER': os.getenv('EMOJI_CHALLENGER', ''),
    }

    @classmethod
    def get_guild_ids(cls):
        """Get list of guild IDs for command syncing"""
        if cls.DISCORD_GUILD_IDS:
            try:
                return [int(guild_id.strip()) for guild_id in cls.DISCORD_GUILD_IDS.split(',') if guild_id.strip()]
            except ValueError:
                raise ValueError("DISCORD_GUILD_IDS must be comma-separated integers")
        elif cls.DISCORD_GUILD_ID:
            return [cls.DISCORD_GUILD_ID]
        else:
            # Global sync
            return []

    @classmethod
    def get_regional_route(cls, platform: str) -> str:
        """Map a platform (na1) to its regional cluster (americas)"""
        return PLATFORM_TO_REGIONAL.get((platform or cls.RIOT_REGION).lower(), 'americas')

    @classmethod
    def platform_url(cls, platform: str) -> str:
        return f"https://{(platform or cls.RIOT_REGION).lower()}.api.riotgames.com"

    @classmethod
    def regional_url(cls, platform: str) -> str:
        return f"https://{cls.get_regional_route(platform)}.api.riotgames.com"

    @classmethod
    def get_rank_emoji(cls, tier: str) -> str:
        return cls.RANK_EMOJI.get((tier or '').upper(), '')

    @classmethod
    def validate(cls):
        """Validate that required configuration is present"""
        if not cls.DISCORD_TOKEN:
            raise ValueError("DISCORD_TOKEN is required")
        if not cls.RIOT_API_KEY:
            raise ValueError("RIOT_API_KEY is required")
        if cls.BETTING_WINDOW_SECONDS <= 0:
            raise ValueError("BETTING_WINDOW_SECONDS must be positive")
        if not 0 <= cls.PARLEY_CHANCE <= 1:
            raise ValueError("PARLEY_CHANCE must be between 0 and 1")
