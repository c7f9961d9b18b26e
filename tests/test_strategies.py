"""Unit tests for wagering strategies."""

import pytest

from fairplay.errors import ConfigurationError
from fairplay.models.stats import AutoplayStats, GameHistoryItem
from fairplay.services.strategies import (
    CallbackStrategy,
    DAlembertStrategy,
    FibonacciStrategy,
    FlatStrategy,
    MartingaleStrategy,
    StreakStrategy,
    as_strategy,
    get_strategy,
)


def item(result, wager=10.0, payout=0.0):
    return GameHistoryItem(
        game_id="g", player_choice=1, opponent_choices=[3], result=result,
        timestamp=0.0, wager_amount=wager, payout=payout,
    )


def play(stats, *results):
    for r in results:
        stats.record(item(r, payout=19.8 if r == "win" else 0.0))
    return stats


class TestStrategies:
    """Test each wager rule."""

    def test_flat(self):
        s = FlatStrategy(10)
        assert s.next_wager(play(AutoplayStats(), "loss"), item("loss"), 40) == 10

    def test_martingale(self):
        s = MartingaleStrategy(10)
        assert s.next_wager(AutoplayStats(), item("loss"), 10) == 20
        assert s.next_wager(AutoplayStats(), item("loss"), 20) == 40
        assert s.next_wager(AutoplayStats(), item("win"), 40) == 10
        assert s.next_wager(AutoplayStats(), item("tie"), 40) == 10

    def test_martingale_cap(self):
        s = MartingaleStrategy(10, max_wager=30)
        assert s.next_wager(AutoplayStats(), item("loss"), 20) == 30

    def test_dalembert(self):
        s = DAlembertStrategy(10)
        assert s.next_wager(AutoplayStats(), item("loss"), 10) == pytest.approx(11)
        assert s.next_wager(AutoplayStats(), item("win"), 12) == pytest.approx(11)
        assert s.next_wager(AutoplayStats(), item("win"), 10) == 10
        assert s.next_wager(AutoplayStats(), item("tie"), 12) == 12

    @pytest.mark.parametrize("losses,multiplier", [(1, 1), (2, 1), (3, 2), (4, 3), (5, 5), (6, 8)])
    def test_fibonacci(self, losses, multiplier):
        s = FibonacciStrategy(10)
        stats = play(AutoplayStats(), *["loss"] * losses)
        assert s.next_wager(stats, item("loss"), 10) == 10 * multiplier

    def test_fibonacci_resets_on_win(self):
        s = FibonacciStrategy(10)
        stats = play(AutoplayStats(), "loss", "loss", "loss", "win")
        assert s.next_wager(stats, item("win"), 30) == 10

    def test_streak(self):
        s = StreakStrategy(10, step=0.5, max_multiplier=2.0)
        assert s.next_wager(play(AutoplayStats(), "win"), item("win"), 10) == 15
        assert s.next_wager(play(AutoplayStats(), "win", "win", "win"), item("win"), 10) == 20
        assert s.next_wager(play(AutoplayStats(), "loss"), item("loss"), 10) == 10

    def test_callback(self):
        s = CallbackStrategy(lambda stats, last, wager: wager + 1, base_wager=5)
        assert s.next_wager(AutoplayStats(), item("win"), 5) == 6


class TestFactory:
    """Test strategy lookup."""

    @pytest.mark.parametrize("name,cls", [
        ("fixed", FlatStrategy),
        ("martingale", MartingaleStrategy),
        ("DAlembert", DAlembertStrategy),
        ("fibonacci", FibonacciStrategy),
        ("streak", StreakStrategy),
    ])
    def test_get_strategy(self, name, cls):
        assert isinstance(get_strategy(name, 1.0), cls)

    def test_unknown_strategy(self):
        with pytest.raises(ConfigurationError):
            get_strategy("labouchere", 1.0)

    def test_non_positive_base(self):
        with pytest.raises(ConfigurationError):
            FlatStrategy(0)

    def test_as_strategy_wraps_callable(self):
        s = as_strategy(lambda stats, last, wager: 3.0, 1.0)
        assert isinstance(s, CallbackStrategy)
        assert s.next_wager(AutoplayStats(), item("win"), 1.0) == 3.0

    def test_as_strategy_rejects_junk(self):
        with pytest.raises(ConfigurationError):
            as_strategy(42, 1.0)
