"""Unit tests for the autoplay stats model."""

import pytest

from fairplay.models.stats import AutoplayStats, GameHistoryItem


def item(result, wager=10.0, payout=0.0):
    return GameHistoryItem(
        game_id="g", player_choice=1, opponent_choices=[3], result=result,
        timestamp=0.0, wager_amount=wager, payout=payout,
    )


def play(stats, *results):
    for r in results:
        stats.record(item(r, payout=19.8 if r == "win" else 0.0))
    return stats


class TestAutoplayStats:
    """Test counter and streak updates."""

    def test_streak_rules(self):
        stats = AutoplayStats()
        play(stats, "win", "win")
        assert stats.current_streak == 2
        play(stats, "loss")
        assert stats.current_streak == -1
        play(stats, "loss")
        assert stats.current_streak == -2
        play(stats, "tie")
        assert stats.current_streak == -2
        play(stats, "win")
        assert stats.current_streak == 1

    def test_totals_match_history(self):
        stats = play(AutoplayStats(), "win", "loss", "tie", "loss")
        assert stats.wins + stats.losses + stats.ties == len(stats.game_history)
        assert stats.total_wagered == sum(i.wager_amount for i in stats.game_history)

    def test_loss_subtracts_wager(self):
        stats = AutoplayStats()
        stats.record(item("loss", wager=10.0))
        assert stats.net_profit == -10.0

    def test_json_round_trip_keeps_history(self):
        stats = play(AutoplayStats(), "win", "loss")
        restored = AutoplayStats.from_json(stats.to_json())
        assert restored.to_dict() == stats.to_dict()

    def test_snapshot_is_detached(self):
        stats = play(AutoplayStats(), "win")
        snap = stats.snapshot()
        play(stats, "loss")
        assert snap.games_played == 1

    def test_win_adds_payout_minus_wager(self):
        stats = AutoplayStats()
        stats.record(item("win", wager=10.0, payout=19.8))
        assert stats.net_profit == pytest.approx(9.8)
        assert stats.total_wagered == 10.0

    def test_from_dict_defaults(self):
        stats = AutoplayStats.from_dict({})
        assert stats.games_played == 0
        assert stats.game_history == []
