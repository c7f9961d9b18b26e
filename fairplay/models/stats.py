"""Autoplay statistics models for fairplay."""

import copy
import json
from dataclasses import dataclass, field
from typing import List

from fairplay.constants import GameOutcome


@dataclass
class GameHistoryItem:
    """One completed autoplay round."""
    game_id: str
    player_choice: int
    opponent_choices: List[int]
    result: GameOutcome
    timestamp: float
    wager_amount: float
    payout: float = 0.0

    def to_dict(self) -> dict:
        return {
            "game_id": self.game_id,
            "player_choice": self.player_choice,
            "opponent_choices": list(self.opponent_choices),
            "result": self.result,
            "timestamp": self.timestamp,
            "wager_amount": self.wager_amount,
            "payout": self.payout,
        }


@dataclass
class AutoplayStats:
    """Running counters for an autoplay session.

    Owned by a single driver loop. Readers should work on ``snapshot()``.
    """
    wins: int = 0
    losses: int = 0
    ties: int = 0
    current_streak: int = 0  # >0 run of wins, <0 run of losses
    total_wagered: float = 0.0
    net_profit: float = 0.0
    game_history: List[GameHistoryItem] = field(default_factory=list)

    @property
    def games_played(self) -> int:
        return len(self.game_history)

    def record(self, item: GameHistoryItem):
        """Fold one settled round into the counters."""
        self.total_wagered += item.wager_amount
        self.net_profit += item.payout - item.wager_amount

        if item.result == "win":
            self.wins += 1
            self.current_streak = max(0, self.current_streak) + 1
        elif item.result == "loss":
            self.losses += 1
            self.current_streak = -1 if self.current_streak > 0 else self.current_streak - 1
        else:
            # ties leave the streak alone
            self.ties += 1

        self.game_history.append(item)

    def snapshot(self) -> "AutoplayStats":
        return copy.deepcopy(self)

    def to_dict(self) -> dict:
        """Convert to dictionary for storage."""
        return {
            "wins": self.wins,
            "losses": self.losses,
            "ties": self.ties,
            "current_streak": self.current_streak,
            "total_wagered": self.total_wagered,
            "net_profit": self.net_profit,
            "games_played": self.games_played,
            "game_history": [item.to_dict() for item in self.game_history],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "AutoplayStats":
        """Load from dictionary."""
        stats = cls(
            wins=data.get("wins", 0),
            losses=data.get("losses", 0),
            ties=data.get("ties", 0),
            current_streak=data.get("current_streak", 0),
            total_wagered=data.get("total_wagered", 0.0),
            net_profit=data.get("net_profit", 0.0),
        )

        # Restore history
        for item_data in data.get("game_history", []):
            stats.game_history.append(GameHistoryItem(**item_data))

        return stats

    def to_json(self) -> str:
        """Serialize to JSON."""
        return json.dumps(self.to_dict(), indent=2)

    @classmethod
    def from_json(cls, json_str: str) -> "AutoplayStats":
        """Deserialize from JSON."""
        return cls.from_dict(json.loads(json_str))
