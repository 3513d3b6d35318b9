"""
Custom exceptions for the betting commands with user-friendly error messages.
"""

from wagerbot.constants import UIConstants

class BettingError(Exception):
    """Base exception for betting-related errors."""
    def __init__(self, message: str, user_message: str = None):
        super().__init__(message)
        self.user_message = user_message or message

class InsufficientFundsError(BettingError):
    """Raised when a stake or transfer exceeds the user's balance."""
    def __init__(self, balance: int, amount: int):
        self.balance = balance
        self.amount = amount
        super().__init__(
            f"Insufficient coins: balance {balance}, needed {amount}",
            f"💰 Insufficient coins. You have **{balance:,}** {UIConstants.COIN_EMOJI}."
        )

class DuplicateBetError(BettingError):
    """Raised when a user already has a wager of this kind on the match."""
    def __init__(self, match_id: str, existing_prediction: str = None, existing_amount: int = None):
        self.match_id = match_id
        if existing_prediction and existing_amount:
            detail = f" (**{existing_prediction.upper()}**, {existing_amount:,} {UIConstants.COIN_EMOJI})"
        else:
            detail = ""
        super().__init__(
            f"Duplicate bet on {match_id}",
            f"⚠️ You already bet on this match{detail}."
        )

class InvalidAmountError(BettingError):
    """Raised when a stake is not a positive whole number."""
    def __init__(self, raw_amount):
        super().__init__(
            f"Invalid amount {raw_amount!r}",
            "❌ Enter a valid positive number."
        )

class BettingClosedError(BettingError):
    """Raised when the betting window for a match has expired."""
    def __init__(self, match_id: str):
        super().__init__(
            f"Betting window closed for {match_id}",
            f"{UIConstants.LOCK_EMOJI} Betting is closed for this match."
        )

class MatchNotActiveError(BettingError):
    """Raised when the match is unknown or already finished."""
    def __init__(self, subject: str):
        super().__init__(
            f"No active match for {subject}",
            f"❌ **{subject}** is not currently in an active match."
        )

class NoParleyError(BettingError):
    """Raised when a parley bet targets a match without a parley."""
    def __init__(self, match_id: str):
        super().__init__(
            f"No parley on {match_id}",
            "❌ No parley available for this match."
        )

class PlayerNotTrackedError(BettingError):
    """Raised when a Riot tag is not tracked in the guild."""
    def __init__(self, riot_tag: str):
        super().__init__(
            f"Player '{riot_tag}' not tracked",
            f"❌ **{riot_tag}** is not being tracked in this server."
        )

class PlayerAlreadyTrackedError(BettingError):
    """Raised when adding a player that is already tracked."""
    def __init__(self, riot_tag: str):
        super().__init__(
            f"Player '{riot_tag}' already tracked",
            f"⚠️ **{riot_tag}** is already being tracked in this server."
        )

class AmbiguousPlayerError(BettingError):
    """Raised when no player was named and several are tracked."""
    def __init__(self, riot_tags):
        names = ', '.join(riot_tags)
        super().__init__(
            "Multiple tracked players, none specified",
            f"Multiple tracked players: {names}. Specify one with the `player` option."
        )

class InvalidRiotIdError(BettingError):
    """Raised when a Riot ID is not in GameName#TagLine form."""
    def __init__(self, riot_id: str):
        super().__init__(
            f"Invalid Riot ID '{riot_id}'",
            "❌ Invalid format. Use `GameName#TagLine` (e.g. `Nivy#NA1`)."
        )

class UpstreamUnavailableError(BettingError):
    """Raised when the Riot API cannot answer a command right now."""
    def __init__(self, rate_limited: bool = False):
        if rate_limited:
            user_message = "⏳ Riot API is rate limited. Try again later."
        else:
            user_message = "❌ Could not reach the Riot API. Try again later."
        super().__init__("Riot API unavailable", user_message)

class CollectCooldownError(BettingError):
    """Raised when /collect is used before the cooldown expires."""
    def __init__(self, remaining_seconds: int):
        self.remaining_seconds = remaining_seconds
        hours, rest = divmod(int(remaining_seconds), 3600)
        minutes, seconds = divmod(rest, 60)
        super().__init__(
            f"Collect on cooldown, {remaining_seconds}s remaining",
            f"⏳ You already collected recently. Come back in **{hours}h {minutes}m {seconds}s**."
        )

class InvalidTransferError(BettingError):
    """Raised for self-transfers, transfers to bots and similar."""
    def __init__(self, reason: str):
        super().__init__(f"Invalid transfer: {reason}", f"❌ {reason}")

class NoTrackedPlayersError(BettingError):
    """Raised when a command needs a tracked player and the guild has none."""
    def __init__(self):
        super().__init__(
            "No tracked players",
            "❌ No players are being tracked. Add one with `/adduser`."
        )

class RiotAccountNotFoundError(BettingError):
    """Raised when a Riot ID does not resolve to an account."""
    def __init__(self, riot_id: str):
        super().__init__(
            f"Riot account '{riot_id}' not found",
            f"❌ Account **{riot_id}** not found."
        )
