"""Round state models for fairplay."""

from enum import Enum
from typing import Optional

from fairplay.constants import Choice


class Phase(str, Enum):
    """Round phases. Declaration order is the only allowed direction of travel."""

    WAITING_FOR_PLAYERS = "WaitingForPlayers"
    COMMIT_PHASE = "CommitPhase"
    REVEAL_PHASE = "RevealPhase"
    FINISHED = "Finished"
    ABANDONED = "Abandoned"

    @property
    def terminal(self) -> bool:
        return self in (Phase.FINISHED, Phase.ABANDONED)

    @property
    def rank(self) -> int:
        # both terminal phases sit after the reveal phase
        return min(list(Phase).index(self), 3)


class Player:
    """A participant in one round."""

    __slots__ = ("player_id", "commitment", "committed", "revealed",
                 "choice", "reveal_invalid", "forfeited")

    def __init__(self, player_id: str):
        self.player_id = player_id
        self.commitment: bytes = b""
        self.committed: bool = False
        self.revealed: bool = False
        # valid only once revealed is True
        self.choice: Choice = Choice.NONE
        self.reveal_invalid: bool = False
        self.forfeited: bool = False

    @property
    def acted_in_reveal(self) -> bool:
        return self.revealed or self.reveal_invalid

    def to_dict(self) -> dict:
        return {
            "player_id": self.player_id,
            "committed": self.committed,
            "revealed": self.revealed,
            "choice": int(self.choice) if self.revealed else None,
            "reveal_invalid": self.reveal_invalid,
            "forfeited": self.forfeited,
        }


class PhaseTransition:
    """One recorded phase change."""

    __slots__ = ("from_phase", "to_phase", "at", "reason")

    def __init__(self, from_phase: Phase, to_phase: Phase, at: float, reason: str):
        self.from_phase = from_phase
        self.to_phase = to_phase
        self.at = at
        self.reason = reason

    def to_dict(self) -> dict:
        return {
            "from": self.from_phase.value,
            "to": self.to_phase.value,
            "at": self.at,
            "reason": self.reason,
        }


def commitment_hex(player: Player) -> Optional[str]:
    return player.commitment.hex() if player.committed else None
