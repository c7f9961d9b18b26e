"""Autoplay service for fairplay.

This module runs rounds unattended:
- Creating a game, committing a fresh salted choice, revealing and settling
- Folding each settled round into AutoplayStats
- Asking the wagering strategy for the next wager
- Backing off after failures and reconnecting after connection loss

The loop is a single asyncio task per driver. ``stop()`` is only observed
between rounds; the round in flight always runs to completion.
"""

import asyncio
import logging
import secrets
import time
from enum import Enum
from typing import Any, Awaitable, Callable, Optional

from fairplay.config import settings
from fairplay.constants import VALID_CHOICES, Choice
from fairplay.errors import ConfigurationError, NetworkError
from fairplay.models.stats import AutoplayStats, GameHistoryItem
from fairplay.services.network import GameNetwork
from fairplay.services.stats_store import StatsStore
from fairplay.services.strategies import WagerStrategy, as_strategy
from fairplay.utils.commit_reveal import CommitmentScheme

logger = logging.getLogger(__name__)

ErrorCallback = Callable[[Exception], Any]
RoundCallback = Callable[[AutoplayStats, GameHistoryItem, float], Any]

MAX_RECONNECT_MESSAGE = "Connection lost. Max reconnection attempts reached."


class ConnectionState(str, Enum):
    CONNECTED = "connected"
    DEGRADED = "degraded"
    DISCONNECTED = "disconnected"


def random_choice() -> Choice:
    """Uniform choice from a cryptographically secure source."""
    return secrets.choice(VALID_CHOICES)


class AutoplayDriver:
    """Plays rounds back to back under a wagering strategy."""

    def __init__(
        self,
        network: GameNetwork,
        strategy: Any = None,
        scheme: Optional[CommitmentScheme] = None,
        choose: Callable[[], int] = random_choice,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        clock: Callable[[], float] = time.time,
        store: Optional[StatsStore] = None,
        min_players: Optional[int] = None,
        max_players: Optional[int] = None,
        timeout_seconds: Optional[float] = None,
        round_delay: Optional[float] = None,
        error_backoff: Optional[float] = None,
        max_reconnect_attempts: Optional[int] = None,
        reconnect_delay: Optional[float] = None,
        stop_on_profit: Optional[float] = None,
        stop_on_loss: Optional[float] = None,
    ):
        self.network = network
        self.strategy = strategy
        self.scheme = scheme or CommitmentScheme(secret_key=settings.commit_secret.encode("utf-8"))
        self.choose = choose
        self.sleep = sleep
        self.clock = clock
        self.store = store

        self.min_players = settings.min_players if min_players is None else min_players
        self.max_players = settings.max_players if max_players is None else max_players
        self.timeout_seconds = settings.round_timeout_secs if timeout_seconds is None else timeout_seconds
        self.round_delay = settings.round_delay_secs if round_delay is None else round_delay
        self.error_backoff = settings.error_backoff_secs if error_backoff is None else error_backoff
        self.max_reconnect_attempts = (
            settings.max_reconnect_attempts if max_reconnect_attempts is None else max_reconnect_attempts
        )
        self.reconnect_delay = settings.reconnect_delay_secs if reconnect_delay is None else reconnect_delay
        self.stop_on_profit = stop_on_profit
        self.stop_on_loss = stop_on_loss

        self._running = False
        self._loop_active = False
        self._stats = (store.load() if store else None) or AutoplayStats()
        self.current_wager: float = 0.0
        self.connection_state = ConnectionState.CONNECTED
        self.reconnect_attempts = 0
        self.stop_reason: Optional[str] = None
        self.last_error: Optional[str] = None
        self.rounds_this_session = 0

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def is_active(self) -> bool:
        """True while a loop is alive, including one draining after stop()."""
        return self._loop_active

    async def start(
        self,
        initial_wager: float,
        strategy: Any = None,
        on_error: Optional[ErrorCallback] = None,
        on_round_complete: Optional[RoundCallback] = None,
    ):
        """Play rounds until ``stop()`` is called.

        Args:
            initial_wager: Wager for the first round
            strategy: WagerStrategy, strategy name or ``(stats, last, wager) -> wager``
                callable; falls back to the driver's strategy, then flat betting
            on_error: Called with every exception caught by the loop
            on_round_complete: Called with (stats snapshot, last round, next wager)

        A second call returns immediately while a loop is running or still
        finishing its last round after ``stop()``.
        """
        if self._loop_active:
            return
        if initial_wager <= 0:
            raise ConfigurationError(f"Wager must be positive, got {initial_wager}")
        wager_strategy = as_strategy(strategy or self.strategy or "fixed", initial_wager)

        self._running = True
        self._loop_active = True
        self.stop_reason = None
        self.current_wager = initial_wager
        self.rounds_this_session = 0
        logger.info("Autoplay started: wager=%s strategy=%s", initial_wager, wager_strategy.name)

        try:
            while self._running:
                if not self.network.connected:
                    await self._recover_connection(on_error)
                    continue

                try:
                    item = await self.play_round()
                    self.current_wager = self._next_wager(wager_strategy, item)
                    if on_round_complete:
                        on_round_complete(self.get_stats(), item, self.current_wager)
                except Exception as exc:
                    self._report_error(exc, on_error)
                    await self.sleep(self.error_backoff)
                    continue

                self._check_stop_limits()
                if self._running:
                    await self.sleep(self.round_delay)
        finally:
            self._running = False
            self._loop_active = False
            logger.info("Autoplay stopped after %d rounds (%s)",
                        self.rounds_this_session, self.stop_reason or "stopped")

    def stop(self, reason: str = "stopped by user"):
        """Ask the loop to exit after the current round."""
        if self._running and self.stop_reason is None:
            self.stop_reason = reason
        self._running = False

    def get_stats(self) -> AutoplayStats:
        """Snapshot of the current stats; safe to read while the loop runs."""
        return self._stats.snapshot()

    def reset_stats(self):
        """Clear all counters and history (the only way history is discarded)."""
        self._stats = AutoplayStats()
        if self.store:
            self.store.clear()

    def status(self) -> dict:
        return {
            "running": self._running,
            "active": self._loop_active,
            "connection_state": self.connection_state.value,
            "current_wager": self.current_wager,
            "reconnect_attempts": self.reconnect_attempts,
            "stop_reason": self.stop_reason,
            "last_error": self.last_error,
            "rounds_this_session": self.rounds_this_session,
        }

    # ------------------------------------------------------------------
    # One round
    # ------------------------------------------------------------------
    async def play_round(self) -> GameHistoryItem:
        """Create, commit, reveal and settle one round; record it in stats."""
        wager = self.current_wager
        game_id = await self.network.create_game(
            self.min_players, self.max_players, 1, wager, self.timeout_seconds, False
        )
        choice = self.choose()
        salt = self.scheme.generate_salt(settings.salt_bytes)
        await self.network.commit_choice(game_id, choice, salt)
        settlement = await self.network.reveal_choice(game_id, choice, salt)

        item = GameHistoryItem(
            game_id=game_id,
            player_choice=int(choice),
            opponent_choices=list(settlement.opponent_choices),
            result=settlement.outcome,
            timestamp=self.clock(),
            wager_amount=wager,
            payout=settlement.payout,
        )
        self._stats.record(item)
        self.rounds_this_session += 1
        if self.store:
            self.store.save(self._stats)
        logger.info("Round %s: %s (wager=%s payout=%s net=%s)",
                    game_id, item.result, wager, item.payout, self._stats.net_profit)
        return item

    def _next_wager(self, strategy: WagerStrategy, item: GameHistoryItem) -> float:
        next_wager = strategy.next_wager(self._stats, item, self.current_wager)
        if next_wager is None or next_wager <= 0:
            raise ConfigurationError(f"Strategy returned an invalid wager: {next_wager!r}")
        return next_wager

    # ------------------------------------------------------------------
    # Resilience
    # ------------------------------------------------------------------
    def _report_error(self, exc: Exception, on_error: Optional[ErrorCallback]):
        self.last_error = str(exc)
        logger.warning("Autoplay iteration failed: %s: %s", type(exc).__name__, exc)
        if on_error:
            on_error(exc)

    async def _recover_connection(self, on_error: Optional[ErrorCallback]):
        self.connection_state = ConnectionState.DEGRADED
        logger.warning("Connection lost while autoplay is running, reconnecting")

        while self._running and self.reconnect_attempts < self.max_reconnect_attempts:
            self.reconnect_attempts += 1
            await self.sleep(self.reconnect_delay)
            try:
                ok = await self.network.reconnect()
            except Exception as exc:
                self._report_error(exc, on_error)
                ok = False
            if ok:
                logger.info("Reconnected after %d attempt(s)", self.reconnect_attempts)
                self.connection_state = ConnectionState.CONNECTED
                self.reconnect_attempts = 0
                return

        if not self._running:
            self.reconnect_attempts = 0
            return
        logger.error("%s (%d attempts)", MAX_RECONNECT_MESSAGE, self.reconnect_attempts)
        self.connection_state = ConnectionState.DISCONNECTED
        self.reconnect_attempts = 0
        self.stop(MAX_RECONNECT_MESSAGE)
        self._report_error(NetworkError(MAX_RECONNECT_MESSAGE), on_error)

    def _check_stop_limits(self):
        net = self._stats.net_profit
        if self.stop_on_profit and net >= self.stop_on_profit:
            self.stop(f"profit target reached ({net})")
        elif self.stop_on_loss and net <= -self.stop_on_loss:
            self.stop(f"loss limit reached ({net})")
