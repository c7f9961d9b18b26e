"""Round state machine for fairplay.

This module drives one game through its phases:
- WaitingForPlayers: players join until the round is full or the host starts it
- CommitPhase: each player stores exactly one commitment
- RevealPhase: each committed player reveals (choice, salt), checked against
  the stored commitment
- Finished / Abandoned: terminal, retained for history and audit

Timeouts are operational events. ``tick()`` applies them and never raises.
"""

import logging
import secrets
import time
from typing import Callable, Dict, List, Optional

from fairplay.config import settings
from fairplay.models.round import Phase, PhaseTransition, Player, commitment_hex
from fairplay.services.resolver import Resolution, resolve
from fairplay.utils.commit_reveal import CommitmentScheme, is_empty_commitment, validate_choice
from fairplay.errors import ConfigurationError, RejectedError, VerificationError

logger = logging.getLogger(__name__)


def validate_round_config(min_players: int, max_players: int, wager: float, timeout_seconds: float):
    """Reject invalid round parameters before anything is created.

    Raises:
        ConfigurationError: On bad player counts, wager or timeout
    """
    if min_players < 2:
        raise ConfigurationError(f"min_players must be at least 2, got {min_players}")
    if max_players < min_players:
        raise ConfigurationError(f"max_players ({max_players}) is below min_players ({min_players})")
    if max_players > settings.max_players_limit:
        raise ConfigurationError(
            f"max_players ({max_players}) exceeds the limit of {settings.max_players_limit}"
        )
    if wager <= 0:
        raise ConfigurationError(f"Wager must be positive, got {wager}")
    if timeout_seconds <= 0:
        raise ConfigurationError(f"Timeout must be positive, got {timeout_seconds}")


class RoundStateMachine:
    """One round of rock/paper/scissors among 2..N players."""

    def __init__(
        self,
        min_players: int = settings.min_players,
        max_players: int = settings.max_players,
        wager: float = settings.default_wager,
        timeout_seconds: float = settings.round_timeout_secs,
        game_id: Optional[str] = None,
        scheme: Optional[CommitmentScheme] = None,
        clock: Callable[[], float] = time.time,
    ):
        validate_round_config(min_players, max_players, wager, timeout_seconds)
        self.game_id = game_id or secrets.token_hex(8)
        self.min_players = min_players
        self.max_players = max_players
        self.wager = wager
        self.timeout_seconds = timeout_seconds
        self.scheme = scheme or CommitmentScheme()
        self.clock = clock

        self.players: Dict[str, Player] = {}
        self.phase = Phase.WAITING_FOR_PLAYERS
        self.created_at = clock()
        self.deadline = self.created_at + timeout_seconds
        self.transitions: List[PhaseTransition] = []
        self.resolution: Optional[Resolution] = None
        self.abandon_reason: Optional[str] = None

    # ------------------------------------------------------------------
    # Phase bookkeeping
    # ------------------------------------------------------------------
    def _advance(self, to_phase: Phase, reason: str):
        """Move forward exactly once. Regressions are programming errors."""
        if self.phase.terminal or to_phase.rank <= self.phase.rank:
            raise RuntimeError(f"Illegal transition {self.phase.value} -> {to_phase.value}")
        now = self.clock()
        self.transitions.append(PhaseTransition(self.phase, to_phase, now, reason))
        logger.debug("Round %s: %s -> %s (%s)", self.game_id, self.phase.value, to_phase.value, reason)
        self.phase = to_phase
        self.deadline = None if to_phase.terminal else now + self.timeout_seconds

    def _require_phase(self, phase: Phase, action: str):
        if self.phase != phase:
            raise RejectedError(
                f"Cannot {action} in {self.phase.value} (round {self.game_id} expects {phase.value})"
            )

    def _require_player(self, player_id: str) -> Player:
        player = self.players.get(player_id)
        if player is None:
            raise RejectedError(f"Player {player_id} is not in round {self.game_id}")
        return player

    @property
    def is_terminal(self) -> bool:
        return self.phase.terminal

    def time_left(self) -> float:
        """Seconds until the current phase deadline (0 for terminal rounds)."""
        if self.deadline is None:
            return 0.0
        return max(0.0, self.deadline - self.clock())

    # ------------------------------------------------------------------
    # Waiting for players
    # ------------------------------------------------------------------
    def join(self, player_id: str) -> Player:
        """Add a player. Reaching max_players starts the commit phase."""
        self.tick()
        self._require_phase(Phase.WAITING_FOR_PLAYERS, "join")
        if player_id in self.players:
            raise RejectedError(f"Player {player_id} already joined round {self.game_id}")
        if len(self.players) >= self.max_players:
            raise RejectedError(f"Round {self.game_id} is full")
        player = Player(player_id)
        self.players[player_id] = player
        if len(self.players) == self.max_players:
            self._advance(Phase.COMMIT_PHASE, "round full")
        return player

    def start(self):
        """Host-triggered start once enough players are present."""
        self.tick()
        self._require_phase(Phase.WAITING_FOR_PLAYERS, "start")
        if len(self.players) < self.min_players:
            raise RejectedError(
                f"Round {self.game_id} needs {self.min_players} players, has {len(self.players)}"
            )
        self._advance(Phase.COMMIT_PHASE, "started by host")

    # ------------------------------------------------------------------
    # Commit phase
    # ------------------------------------------------------------------
    def commit(self, player_id: str, digest: bytes):
        """Store a player's commitment. First write wins."""
        self.tick()
        self._require_phase(Phase.COMMIT_PHASE, "commit")
        player = self._require_player(player_id)
        if player.committed:
            raise RejectedError(f"Player {player_id} already committed in round {self.game_id}")
        if is_empty_commitment(digest):
            raise ConfigurationError("Commitment must not be empty")
        player.commitment = bytes(digest)
        player.committed = True
        if all(p.committed for p in self.players.values()):
            self._advance(Phase.REVEAL_PHASE, "all committed")

    # ------------------------------------------------------------------
    # Reveal phase
    # ------------------------------------------------------------------
    def reveal(self, player_id: str, choice: int, salt: bytes):
        """Reveal a committed choice.

        A mismatch forfeits the player and raises VerificationError; the round
        carries on without them.
        """
        self.tick()
        self._require_phase(Phase.REVEAL_PHASE, "reveal")
        player = self._require_player(player_id)
        if not player.committed:
            raise RejectedError(f"Player {player_id} has no commitment in round {self.game_id}")
        if player.acted_in_reveal:
            raise RejectedError(f"Player {player_id} already revealed in round {self.game_id}")
        choice = validate_choice(choice)

        if not self.scheme.verify(choice, salt, player.commitment):
            player.reveal_invalid = True
            player.forfeited = True
            logger.info("Round %s: reveal from %s failed verification", self.game_id, player_id)
            self._maybe_settle()
            raise VerificationError(
                f"Reveal from {player_id} does not match its commitment", player_id=player_id
            )

        player.choice = choice
        player.revealed = True
        self._maybe_settle()

    def _reveal_pending(self) -> List[Player]:
        return [p for p in self.players.values() if p.committed and not p.acted_in_reveal]

    def _maybe_settle(self):
        if not self._reveal_pending():
            self._settle("all revealed")

    def _settle(self, reason: str):
        choices = {p.player_id: p.choice for p in self.players.values() if p.revealed}
        for p in self.players.values():
            if not p.revealed:
                p.forfeited = True
        forfeited = [p.player_id for p in self.players.values() if p.forfeited]
        self.resolution = resolve(choices, forfeited=forfeited)
        self._advance(Phase.FINISHED, reason)
        logger.info(
            "Round %s settled: %s (winner=%s, tied=%s, forfeited=%s)",
            self.game_id, self.resolution.outcome, self.resolution.winner,
            self.resolution.tied, self.resolution.forfeited,
        )

    # ------------------------------------------------------------------
    # Timeouts
    # ------------------------------------------------------------------
    def tick(self, now: Optional[float] = None) -> Phase:
        """Apply the current phase deadline if it has elapsed."""
        if self.phase.terminal or self.deadline is None:
            return self.phase
        now = self.clock() if now is None else now
        if now < self.deadline:
            return self.phase

        if self.phase == Phase.WAITING_FOR_PLAYERS:
            if len(self.players) >= self.min_players:
                self._advance(Phase.COMMIT_PHASE, "join timeout with quorum")
            else:
                self._abandon("not enough players joined")
        elif self.phase == Phase.COMMIT_PHASE:
            committed = [p for p in self.players.values() if p.committed]
            if len(committed) >= 2:
                for p in self.players.values():
                    if not p.committed:
                        p.forfeited = True
                self._advance(Phase.REVEAL_PHASE, "commit timeout")
            else:
                self._abandon("not enough players committed")
        elif self.phase == Phase.REVEAL_PHASE:
            self._settle("reveal timeout")
        return self.phase

    def _abandon(self, reason: str):
        self.abandon_reason = reason
        self._advance(Phase.ABANDONED, reason)
        logger.info("Round %s abandoned: %s", self.game_id, reason)

    # ------------------------------------------------------------------
    # Display
    # ------------------------------------------------------------------
    def snapshot(self) -> dict:
        """JSON-friendly view of the round for display layers."""
        return {
            "game_id": self.game_id,
            "phase": self.phase.value,
            "wager": self.wager,
            "min_players": self.min_players,
            "max_players": self.max_players,
            "time_left": self.time_left(),
            "players": [
                {**p.to_dict(), "commitment": commitment_hex(p)} for p in self.players.values()
            ],
            "transitions": [t.to_dict() for t in self.transitions],
            "resolution": self.resolution.to_dict() if self.resolution else None,
            "abandon_reason": self.abandon_reason,
        }
