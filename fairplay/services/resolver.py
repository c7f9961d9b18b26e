"""Outcome resolution for rounds of 2..N players.

Every unordered pair of revealed players is scored with the cyclic dominance
rule; a pair win is worth one point. The highest aggregate score wins the
round. When several players share the top score the round is a tie among
them. Players who did not produce a valid reveal are listed as forfeited and
take no part in scoring.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Iterable, List, Mapping, Optional

from fairplay.constants import BEATS, Choice, GameOutcome, ResolutionOutcome
from fairplay.utils.commit_reveal import validate_choice

logger = logging.getLogger(__name__)


def determine_winner(choice: int, other: int) -> GameOutcome:
    """Outcome of ``choice`` against ``other`` from the first player's side."""
    a = validate_choice(choice)
    b = validate_choice(other)
    if a == b:
        return "tie"
    return "win" if BEATS[a] == b else "loss"


@dataclass(frozen=True)
class PairResult:
    """Result of one unordered pair."""

    players: tuple
    choices: tuple
    winner: Optional[str] = None  # None means tie

    @property
    def is_tie(self) -> bool:
        return self.winner is None


@dataclass
class Resolution:
    """Pairwise results plus ranking for one round."""

    outcome: ResolutionOutcome
    pairwise: Dict[FrozenSet[str], PairResult] = field(default_factory=dict)
    scores: Dict[str, int] = field(default_factory=dict)
    ranking: List[str] = field(default_factory=list)
    winner: Optional[str] = None
    tied: List[str] = field(default_factory=list)
    forfeited: List[str] = field(default_factory=list)

    def result_for(self, player_id: str) -> GameOutcome:
        """Round outcome from ``player_id``'s perspective."""
        if self.outcome == "winner":
            return "win" if self.winner == player_id else "loss"
        if self.outcome == "tie" and player_id in self.tied:
            return "tie"
        if self.outcome == "insufficient_reveals" and player_id not in self.forfeited:
            return "tie"
        return "loss"

    def pair(self, a: str, b: str) -> PairResult:
        return self.pairwise[frozenset((a, b))]

    def to_dict(self) -> dict:
        return {
            "outcome": self.outcome,
            "scores": dict(self.scores),
            "ranking": list(self.ranking),
            "winner": self.winner,
            "tied": list(self.tied),
            "forfeited": list(self.forfeited),
            "pairs": [
                {
                    "players": list(p.players),
                    "choices": [int(c) for c in p.choices],
                    "winner": p.winner,
                }
                for p in self.pairwise.values()
            ],
        }


def resolve(choices: Mapping[str, int], forfeited: Iterable[str] = ()) -> Resolution:
    """Resolve a round from the revealed choices.

    Args:
        choices: Player id -> revealed choice, in join order
        forfeited: Players excluded from scoring (no reveal or bad reveal)

    Returns:
        Resolution with pairwise results, scores, ranking and winner

    Raises:
        ConfigurationError: If any choice is outside {1, 2, 3}
    """
    forfeited_ids = list(dict.fromkeys(forfeited))
    # validate everything before scoring anything
    valid: Dict[str, Choice] = {}
    for player_id, choice in choices.items():
        valid[player_id] = validate_choice(choice)
    for player_id in forfeited_ids:
        valid.pop(player_id, None)

    players = list(valid)
    if len(players) < 2:
        logger.debug("Insufficient reveals: %d valid", len(players))
        return Resolution(
            outcome="insufficient_reveals",
            scores={p: 0 for p in players},
            ranking=players,
            forfeited=forfeited_ids,
        )

    scores = {p: 0 for p in players}
    pairwise: Dict[FrozenSet[str], PairResult] = {}
    for i, a in enumerate(players):
        for b in players[i + 1:]:
            result = determine_winner(valid[a], valid[b])
            winner = None
            if result == "win":
                winner = a
            elif result == "loss":
                winner = b
            if winner is not None:
                scores[winner] += 1
            pairwise[frozenset((a, b))] = PairResult(
                players=(a, b), choices=(valid[a], valid[b]), winner=winner
            )

    order = {p: i for i, p in enumerate(players)}
    ranking = sorted(players, key=lambda p: (-scores[p], order[p]))
    top = scores[ranking[0]]
    leaders = [p for p in ranking if scores[p] == top]

    if len(leaders) == 1:
        return Resolution(
            outcome="winner",
            pairwise=pairwise,
            scores=scores,
            ranking=ranking,
            winner=leaders[0],
            forfeited=forfeited_ids,
        )
    return Resolution(
        outcome="tie",
        pairwise=pairwise,
        scores=scores,
        ranking=ranking,
        tied=leaders,
        forfeited=forfeited_ids,
    )
