"""Wagering strategies for the autoplay driver.

A strategy answers one question after every settled round: how much to
wager next. Strategies are picked when the driver is built, so the loop
never branches on the strategy kind.
"""

from typing import Callable, Optional

from fairplay.constants import STRATEGY_NAMES
from fairplay.errors import ConfigurationError
from fairplay.models.stats import AutoplayStats, GameHistoryItem

WagerCallback = Callable[[AutoplayStats, GameHistoryItem, float], float]


class WagerStrategy:
    """Base class. Subclasses implement ``_next``."""

    name = "base"

    def __init__(self, base_wager: float, max_wager: Optional[float] = None):
        if base_wager <= 0:
            raise ConfigurationError(f"Base wager must be positive, got {base_wager}")
        if max_wager is not None and max_wager < base_wager:
            raise ConfigurationError("max_wager must not be below base_wager")
        self.base_wager = base_wager
        self.max_wager = max_wager

    def next_wager(self, stats: AutoplayStats, last_round: GameHistoryItem,
                   current_wager: float) -> float:
        wager = self._next(stats, last_round, current_wager)
        if self.max_wager is not None:
            wager = min(wager, self.max_wager)
        return wager

    def _next(self, stats: AutoplayStats, last_round: GameHistoryItem,
              current_wager: float) -> float:
        raise NotImplementedError

    def __call__(self, stats: AutoplayStats, last_round: GameHistoryItem,
                 current_wager: float) -> float:
        return self.next_wager(stats, last_round, current_wager)


class FlatStrategy(WagerStrategy):
    """Always wager the base amount."""

    name = "fixed"

    def _next(self, stats, last_round, current_wager):
        return self.base_wager


class MartingaleStrategy(WagerStrategy):
    """Double after each loss, back to base after a win or tie."""

    name = "martingale"

    def _next(self, stats, last_round, current_wager):
        if last_round.result == "loss":
            return current_wager * 2
        return self.base_wager


class DAlembertStrategy(WagerStrategy):
    """One unit up after a loss, one unit down after a win, never below base."""

    name = "dalembert"

    def __init__(self, base_wager: float, max_wager: Optional[float] = None,
                 unit_fraction: float = 0.1):
        super().__init__(base_wager, max_wager)
        self.unit = base_wager * unit_fraction

    def _next(self, stats, last_round, current_wager):
        if last_round.result == "loss":
            return current_wager + self.unit
        if last_round.result == "win":
            return max(self.base_wager, current_wager - self.unit)
        return current_wager


class FibonacciStrategy(WagerStrategy):
    """Base times fib(n) during an n-round losing streak (1, 1, 2, 3, 5, ...)."""

    name = "fibonacci"

    def _next(self, stats, last_round, current_wager):
        if last_round.result != "loss":
            return self.base_wager
        losing = -stats.current_streak if stats.current_streak < 0 else 0
        if losing <= 1:
            return self.base_wager
        a, b = 1, 1
        for _ in range(2, losing):
            a, b = b, a + b
        return self.base_wager * b


class StreakStrategy(WagerStrategy):
    """Press a winning streak: base * (1 + step * streak), capped at max_multiplier."""

    name = "streak"

    def __init__(self, base_wager: float, max_wager: Optional[float] = None,
                 step: float = 0.5, max_multiplier: float = 4.0):
        super().__init__(base_wager, max_wager)
        self.step = step
        self.max_multiplier = max_multiplier

    def _next(self, stats, last_round, current_wager):
        streak = max(0, stats.current_streak)
        return self.base_wager * min(1 + self.step * streak, self.max_multiplier)


class CallbackStrategy(WagerStrategy):
    """Adapts a plain ``(stats, last_round, current_wager) -> wager`` callable."""

    name = "callback"

    def __init__(self, callback: WagerCallback, base_wager: float = 1.0,
                 max_wager: Optional[float] = None):
        super().__init__(base_wager, max_wager)
        self.callback = callback

    def _next(self, stats, last_round, current_wager):
        return self.callback(stats, last_round, current_wager)


_STRATEGIES = {
    FlatStrategy.name: FlatStrategy,
    MartingaleStrategy.name: MartingaleStrategy,
    DAlembertStrategy.name: DAlembertStrategy,
    FibonacciStrategy.name: FibonacciStrategy,
    StreakStrategy.name: StreakStrategy,
}


def get_strategy(name: str, base_wager: float, max_wager: Optional[float] = None) -> WagerStrategy:
    """Build a strategy by name (fixed, martingale, dalembert, fibonacci, streak)."""
    cls = _STRATEGIES.get(name.lower())
    if cls is None:
        raise ConfigurationError(f"Unknown strategy {name!r}, expected one of {STRATEGY_NAMES}")
    return cls(base_wager, max_wager=max_wager)


def as_strategy(strategy, base_wager: float) -> WagerStrategy:
    """Accept a WagerStrategy, a strategy name or a bare callable."""
    if isinstance(strategy, WagerStrategy):
        return strategy
    if isinstance(strategy, str):
        return get_strategy(strategy, base_wager)
    if callable(strategy):
        return CallbackStrategy(strategy, base_wager=base_wager)
    raise ConfigurationError(f"Not a wagering strategy: {strategy!r}")
