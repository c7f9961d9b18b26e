"""Fee audit models for fairplay."""

from dataclasses import asdict, dataclass, field
from typing import List, Optional


@dataclass(frozen=True)
class FeeRecord:
    """One settlement transaction as seen by the fee collector."""
    wagered: float
    fee: float
    pre_balance: float = 0.0
    post_balance: float = 0.0
    signature: Optional[str] = None
    game_id: Optional[str] = None

    @property
    def balance_delta(self) -> float:
        return self.post_balance - self.pre_balance

    @classmethod
    def from_dict(cls, data: dict) -> "FeeRecord":
        return cls(
            wagered=data["wagered"],
            fee=data["fee"],
            pre_balance=data.get("pre_balance", 0.0),
            post_balance=data.get("post_balance", 0.0),
            signature=data.get("signature"),
            game_id=data.get("game_id"),
        )

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class FeeAnomaly:
    """A single record that looks wrong."""
    index: int
    kind: str  # negative_fee | fee_exceeds_wager | balance_mismatch | rate_out_of_tolerance
    detail: str
    signature: Optional[str] = None


@dataclass
class FeeReport:
    """Aggregate fee integrity result for one batch."""
    total_wagered: float
    total_fees: float
    actual_rate: float
    expected_rate: float
    is_correct: bool
    difference_percentage: float
    record_count: int
    tolerance: float
    anomalies: List[FeeAnomaly] = field(default_factory=list)

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class FairnessReport:
    """Distribution of winning choices across a batch of two-player games."""
    total_games: int
    rock_wins: int
    paper_wins: int
    scissors_wins: int
    ties: int
    rock_win_percentage: float
    paper_win_percentage: float
    scissors_win_percentage: float
    tie_percentage: float
    max_variance: float
    is_balanced: bool

    def to_dict(self) -> dict:
        return asdict(self)
