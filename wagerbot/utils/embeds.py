"""
Shared embed builders for the wager bot.

Keeps the poller's posts and the command replies consistent: one function per
message kind, each returning a ready-to-send discord.Embed.
"""

import discord
from typing import List, Optional, Sequence, Tuple

from wagerbot.config import Config
from wagerbot.constants import UIConstants
from wagerbot.data_models.riot import LiveGame, RankedEntry
from wagerbot.data_models.settlement import SettledMatch
from wagerbot.database.models import AutoBet, Bet, BetOutcome, TrackedPlayer, User
from wagerbot.services.achievements import get_achievement
from wagerbot.services.parley import get_parley_stat, prediction_label
from wagerbot.utils.ranking import format_standing

COIN = UIConstants.COIN_EMOJI


def chunk_field_lines(lines: Sequence[str], max_fields: int,
                      limit: int = UIConstants.FIELD_VALUE_LIMIT) -> List[str]:
    """
    Pack lines into field values of at most limit characters.

    Lines past max_fields values are replaced by an "...and N more" line at the
    end of the last value.
    """
    chunks: List[List[str]] = []
    current: List[str] = []
    size = 0
    for line in lines:
        line = line[:limit]
        extra = len(line) + (1 if current else 0)
        if current and size + extra > limit:
            chunks.append(current)
            current, size, extra = [], 0, len(line)
        current.append(line)
        size += extra
    if current:
        chunks.append(current)

    if len(chunks) <= max_fields:
        return ["\n".join(chunk) for chunk in chunks]

    kept = chunks[:max_fields]
    hidden = sum(len(chunk) for chunk in chunks[max_fields:])
    last = kept[-1]
    while len("\n".join(last + [f"...and {hidden} more"])) > limit:
        last.pop()
        hidden += 1
    last.append(f"...and {hidden} more")
    return ["\n".join(chunk) for chunk in kept]


def _add_line_fields(embed: discord.Embed, name: str, lines: Sequence[str], max_fields: int):
    """Add lines as one field, continued in unnamed fields when it would overflow."""
    for i, value in enumerate(chunk_field_lines(lines, max_fields)):
        embed.add_field(name=name if i == 0 else "\u200b", value=value, inline=False)


def _format_window(seconds: float) -> str:
    minutes, secs = divmod(int(seconds), 60)
    if minutes and secs:
        return f"{minutes}m {secs}s"
    if minutes:
        return f"{minutes} minute{'s' if minutes != 1 else ''}"
    return f"{secs}s"


def build_match_announcement_embed(
    player: TrackedPlayer,
    game: LiveGame,
    average_rank: Optional[Tuple[str, Optional[str], int]],
    parley_stat: Optional[str] = None,
    parley_line: Optional[float] = None,
    window_seconds: Optional[float] = None,
    emoji_enabled: bool = False
) -> discord.Embed:
    """
    Build the "match detected" post that carries the bet buttons.

    Args:
        player: The tracked player who entered the game
        game: Live game snapshot from the spectator endpoint
        average_rank: Averaged (tier, division, lp) of sampled participants, or None
        parley_stat: Key of the rolled parley template, if any
        parley_line: The rolled line (None for yes/no parleys)
        window_seconds: Betting window length for the countdown text
        emoji_enabled: Whether the guild shows custom rank emoji
    """
    window = Config.BETTING_WINDOW_SECONDS if window_seconds is None else window_seconds
    embed = discord.Embed(
        title="🎮 Match Detected!",
        description=(
            f"**{player.display_name}** just entered a match!\n\n"
            f"⏰ Betting closes in **{_format_window(window)}**, place your bets!"
        ),
        color=UIConstants.SUCCESS_COLOR,
        timestamp=discord.utils.utcnow()
    )

    embed.add_field(name="🗺️ Side", value=game.side_of(player.puuid), inline=True)

    if average_rank:
        tier, division, lp = average_rank
        rank_text = format_standing(tier, division, emoji_enabled=emoji_enabled)
    else:
        rank_text = "Unknown"
    embed.add_field(name="📈 Average Rank", value=rank_text, inline=True)

    opponents = game.opponents_of(player.puuid)
    if opponents:
        embed.add_field(
            name="⚔️ Opponents",
            value="\n".join(p.display_name for p in opponents),
            inline=False
        )

    stat = get_parley_stat(parley_stat)
    if stat:
        embed.add_field(
            name="🎲 Parley",
            value=f"{stat.describe(parley_line)}\nPays **{Config.PARLEY_PAYOUT_MULTIPLIER:g}x**",
            inline=False
        )

    embed.set_footer(
        text=f"WIN pays {Config.WIN_PAYOUT_MULTIPLIER:g}x | LOSE pays {Config.LOSE_PAYOUT_MULTIPLIER:g}x"
    )
    return embed


def build_betting_closed_embed(player_name: str) -> discord.Embed:
    return discord.Embed(
        title=f"{UIConstants.LOCK_EMOJI} Betting Closed",
        description=f"Betting on **{player_name}**'s match is now closed. Good luck!",
        color=UIConstants.CLOSED_COLOR,
        timestamp=discord.utils.utcnow()
    )


def build_settlement_embed(settled: SettledMatch) -> discord.Embed:
    """Build the single "match over" summary for a settled match."""
    if settled.won:
        title = f"{UIConstants.TROPHY_EMOJI} Match Over!"
        outcome_text = "WON"
        color = UIConstants.SUCCESS_COLOR
    else:
        title = f"{UIConstants.SKULL_EMOJI} Match Over!"
        outcome_text = "LOST"
        color = UIConstants.ERROR_COLOR

    embed = discord.Embed(
        title=title,
        description=f"**{settled.player_name}** has **{outcome_text}** the match!",
        color=color,
        timestamp=discord.utils.utcnow()
    )

    p = settled.participant
    if p:
        champion = f" on **{p.champion_name}**" if p.champion_name else ""
        embed.add_field(
            name="📊 Performance",
            value=(
                f"KDA **{p.kills}/{p.deaths}/{p.assists}**{champion}\n"
                f"CS **{p.creep_score}** | Vision **{p.vision_score}**\n"
                f"Duration **{settled.duration_minutes:.0f} min**"
            ),
            inline=False
        )

    lines = []
    for result in settled.bet_results:
        emoji = "✅" if result.correct else "❌"
        auto = " (auto)" if result.is_auto else ""
        outcome = f"won **{result.payout:,}** {COIN}" if result.correct else "lost their bet"
        lines.append(
            f"{emoji} <@{result.discord_id}> bet **{result.prediction.upper()}**{auto} "
            f"({result.amount:,} {COIN}): {outcome}"
        )
    _add_line_fields(
        embed, "💰 Bets",
        lines or ["_No bets were placed on this match._"],
        UIConstants.SUMMARY_BET_FIELDS
    )

    stat = get_parley_stat(settled.parley_stat)
    if stat and settled.parley_actual is not None:
        parley_lines = [
            f"{stat.describe(settled.parley_line)}: actual **{stat.format_actual(settled.parley_actual)}**"
        ]
        for result in settled.parley_results:
            emoji = "✅" if result.correct else "❌"
            outcome = f"won **{result.payout:,}** {COIN}" if result.correct else "lost their bet"
            parley_lines.append(
                f"{emoji} <@{result.discord_id}> took **{prediction_label(stat, result.prediction)}** "
                f"({result.amount:,} {COIN}): {outcome}"
            )
        _add_line_fields(embed, "🎲 Parley", parley_lines, UIConstants.SUMMARY_SECTION_FIELDS)

    if settled.achievements:
        unlock_lines = []
        for discord_id, achievement_id in settled.achievements:
            achievement = get_achievement(achievement_id)
            if achievement:
                unlock_lines.append(f"<@{discord_id}> unlocked {achievement.label()}")
        if unlock_lines:
            _add_line_fields(embed, "🏅 Achievements", unlock_lines, UIConstants.SUMMARY_SECTION_FIELDS)

    if settled.new_peak:
        tier, division, lp = settled.new_peak
        embed.add_field(
            name="⛰️ New Peak",
            value=f"{settled.player_name} reached a new peak: **{format_standing(tier, division, lp)}**",
            inline=False
        )

    embed.set_footer(text=f"Match {settled.match_id}")
    return embed


def build_autobet_placed_embed(discord_id: int, player_name: str, prediction: str, amount: int) -> discord.Embed:
    emoji = "🟢" if prediction == "win" else "🔴"
    return discord.Embed(
        description=(
            f"🤖 {emoji} Auto-bet placed for <@{discord_id}>: **{prediction.upper()}** on "
            f"**{player_name}** for **{amount:,}** {COIN}"
        ),
        color=UIConstants.DEFAULT_EMBED_COLOR
    )


def build_autobet_skipped_embed(discord_id: int, player_name: str, amount: int, balance: int) -> discord.Embed:
    return discord.Embed(
        description=(
            f"🤖 Auto-bet skipped for <@{discord_id}> on **{player_name}**: needs **{amount:,}** {COIN}, "
            f"balance is **{balance:,}** {COIN}"
        ),
        color=UIConstants.CLOSED_COLOR
    )


def build_stats_embed(member: discord.abc.User, user: User,
                      achievements: Sequence[str] = ()) -> discord.Embed:
    """Balance, record, volume, streaks and unlocked achievements."""
    embed = discord.Embed(
        title=f"📊 Stats for {member.display_name}",
        color=UIConstants.DEFAULT_EMBED_COLOR
    )
    embed.set_thumbnail(url=member.display_avatar.url)

    embed.add_field(name=f"{COIN} Coins", value=f"{user.coins:,}", inline=True)
    embed.add_field(
        name="🎯 Record",
        value=f"{user.correct}W / {user.incorrect}L ({user.win_rate:.0%})",
        inline=True
    )
    embed.add_field(
        name="🔥 Streak",
        value=f"Current **{user.current_streak}** | Best **{user.best_streak}**",
        inline=True
    )
    embed.add_field(name="💸 Total Wagered", value=f"{user.total_wagered:,}", inline=True)
    embed.add_field(name="💰 Total Won", value=f"{user.total_won:,}", inline=True)

    labels = [get_achievement(a).label() for a in achievements if get_achievement(a)]
    embed.add_field(
        name=f"🏅 Achievements ({len(labels)})",
        value="\n".join(labels) if labels else "None yet",
        inline=False
    )
    return embed


def build_leaderboard_embed(users: List[User], guild_name: str) -> discord.Embed:
    embed = discord.Embed(
        title=f"{COIN} Richest in {guild_name}",
        color=UIConstants.GOLD_COLOR
    )
    if not users:
        embed.description = "Nobody has any coins yet. Use `/collect` to get started!"
        return embed

    lines = []
    for i, user in enumerate(users):
        prefix = UIConstants.MEDALS[i] if i < len(UIConstants.MEDALS) else f"**{i + 1}.**"
        lines.append(f"{prefix} <@{user.discord_id}>: **{user.coins:,}** {COIN}")
    embed.description = "\n".join(lines)
    return embed


def build_history_embed(member: discord.abc.User, history: List[Tuple[Bet, Optional[str]]]) -> discord.Embed:
    embed = discord.Embed(
        title=f"📜 Bet History for {member.display_name}",
        color=UIConstants.DEFAULT_EMBED_COLOR
    )
    if not history:
        embed.description = "No bets placed yet."
        return embed

    lines = []
    for bet, riot_tag in history:
        name = riot_tag.split('#')[0] if riot_tag else "Unknown"
        auto = " 🤖" if bet.is_auto else ""
        if bet.outcome == BetOutcome.PENDING:
            result = "⏳ pending"
        elif bet.outcome == BetOutcome.CORRECT:
            result = f"✅ +{bet.payout:,}"
        else:
            result = f"❌ -{bet.amount:,}"
        lines.append(
            f"**{bet.prediction.value.upper()}** on {name} for {bet.amount:,} {COIN}{auto}: {result}"
        )
    embed.description = "\n".join(lines)
    embed.set_footer(text=f"Last {len(history)} bets")
    return embed


def build_autobet_list_embed(auto_bets: List[Tuple[AutoBet, str]]) -> discord.Embed:
    embed = discord.Embed(title="🤖 Your Auto-Bets", color=UIConstants.DEFAULT_EMBED_COLOR)
    if not auto_bets:
        embed.description = "You have no auto-bets. Set one with `/autobet player prediction amount`."
        return embed
    embed.description = "\n".join(
        f"**{riot_tag}**: {auto_bet.prediction.value.upper()} for {auto_bet.amount:,} {COIN}"
        for auto_bet, riot_tag in auto_bets
    )
    return embed


def build_rank_embed(riot_tag: str, entry: Optional[RankedEntry], emoji_enabled: bool = False) -> discord.Embed:
    embed = discord.Embed(title=f"{riot_tag}: Solo/Duo", color=UIConstants.RANK_COLOR)
    if entry is None:
        embed.description = f"**{riot_tag}** is unranked in Solo/Duo."
        return embed
    embed.add_field(
        name="Rank",
        value=format_standing(entry.tier, entry.division, emoji_enabled=emoji_enabled),
        inline=True
    )
    embed.add_field(name="LP", value=str(entry.league_points), inline=True)
    embed.add_field(name="Record", value=f"{entry.wins}W / {entry.losses}L", inline=True)
    return embed


def build_ranks_overview_embed(rows: List[Tuple[TrackedPlayer, Optional[RankedEntry]]],
                               today: str, emoji_enabled: bool = False) -> discord.Embed:
    """Every tracked player's current rank with today's record."""
    embed = discord.Embed(title="📈 Tracked Player Ranks", color=UIConstants.RANK_COLOR)
    if not rows:
        embed.description = "No players are being tracked. Add one with `/adduser`."
        return embed

    lines = []
    for player, entry in rows:
        if entry:
            rank = format_standing(entry.tier, entry.division, entry.league_points, emoji_enabled)
        else:
            rank = "Unranked"
        if player.daily_date == today:
            daily = f"{player.daily_wins}W / {player.daily_losses}L today"
        else:
            daily = "0W / 0L today"
        lines.append(f"**{player.riot_tag}**: {rank} ({daily})")
    embed.description = "\n".join(lines)
    return embed


def build_peak_embed(players: List[TrackedPlayer], emoji_enabled: bool = False) -> discord.Embed:
    """Peaks, already sorted highest first."""
    embed = discord.Embed(title="⛰️ Peak Ranks", color=UIConstants.PEAK_COLOR)
    if not players:
        embed.description = "No peaks recorded yet. Peaks are captured after a tracked player wins."
        return embed

    lines = []
    for i, player in enumerate(players):
        prefix = UIConstants.MEDALS[i] if i < len(UIConstants.MEDALS) else f"**{i + 1}.**"
        if player.peak_tier:
            standing = format_standing(player.peak_tier, player.peak_division, player.peak_lp, emoji_enabled)
        else:
            standing = "No peak yet"
        lines.append(f"{prefix} **{player.riot_tag}**: {standing}")
    embed.description = "\n".join(lines)
    return embed
