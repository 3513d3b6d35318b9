"""Settlement summary layout against Discord's embed size limits."""

from wagerbot.data_models.settlement import BetResult, ParleyResult, SettledMatch
from wagerbot.utils.embeds import build_settlement_embed, chunk_field_lines
from tests.conftest import PLAYER_PUUID, make_completed

FIELD_LIMIT = 1024
EMBED_LIMIT = 6000


def _settled(bettors: int, parley_bettors: int = 0) -> SettledMatch:
    completed = make_completed()
    bet_results = [
        BetResult(discord_id=400000000000000000 + i, prediction="win" if i % 2 else "lose",
                  amount=10_000, correct=bool(i % 2), payout=15_000 if i % 2 else 0, is_auto=True)
        for i in range(bettors)
    ]
    parley_results = [
        ParleyResult(discord_id=500000000000000000 + i, prediction="over", amount=2_500,
                     correct=True, payout=5_000)
        for i in range(parley_bettors)
    ]
    return SettledMatch(
        guild_id=1, match_id="NA1_555", player_name="Nivy", won=True,
        participant=completed.participant(PLAYER_PUUID), duration_minutes=30,
        bet_results=bet_results,
        parley_stat="kills" if parley_bettors else None,
        parley_line=6.5 if parley_bettors else None,
        parley_actual=7 if parley_bettors else None,
        parley_results=parley_results,
    )


def _bet_fields(embed):
    fields = embed.fields
    start = next(i for i, f in enumerate(fields) if f.name == "💰 Bets")
    bet_fields = [fields[start]]
    for field in fields[start + 1:]:
        if field.name != "\u200b":
            break
        bet_fields.append(field)
    return bet_fields


class TestSettlementSummaryLimits:

    def test_fifteen_bettors_all_listed_within_field_limit(self):
        embed = build_settlement_embed(_settled(15))

        bet_fields = _bet_fields(embed)
        assert len(bet_fields) > 1
        assert all(len(f.value) <= FIELD_LIMIT for f in bet_fields)
        listed = "\n".join(f.value for f in bet_fields)
        assert all(f"<@{400000000000000000 + i}>" in listed for i in range(15))
        assert "more" not in listed

    def test_large_match_is_cut_off_with_count(self):
        embed = build_settlement_embed(_settled(200, parley_bettors=100))

        bet_fields = _bet_fields(embed)
        assert len(bet_fields) == 3
        assert bet_fields[-1].value.endswith("more")
        assert all(len(f.value) <= FIELD_LIMIT for f in embed.fields)
        assert len(embed) <= EMBED_LIMIT

    def test_no_bets(self):
        bet_fields = _bet_fields(build_settlement_embed(_settled(0)))
        assert [f.value for f in bet_fields] == ["_No bets were placed on this match._"]


class TestChunkFieldLines:

    def test_fits_in_one_value(self):
        assert chunk_field_lines(["a", "b"], max_fields=2) == ["a\nb"]

    def test_splits_at_line_boundaries(self):
        values = chunk_field_lines(["x" * 6, "y" * 6, "z" * 6], max_fields=3, limit=13)
        assert values == ["x" * 6 + "\n" + "y" * 6, "z" * 6]

    def test_overflow_count_includes_displaced_lines(self):
        values = chunk_field_lines(["x" * 10] * 5, max_fields=1, limit=25)
        # Two lines fit, the marker displaces one of them
        assert values == ["x" * 10 + "\n...and 4 more"]

    def test_long_single_line_is_clipped(self):
        assert chunk_field_lines(["x" * 50], max_fields=1, limit=20) == ["x" * 20]
