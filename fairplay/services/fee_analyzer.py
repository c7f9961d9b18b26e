"""Fee integrity and fairness analysis.

Batch, side-effect-free checks over historical settlement data:
- Fee integrity: do collected fees match the agreed rate?
- Fairness: are outcomes spread evenly across the three choices?
"""

import logging
import math
from typing import Iterable, Mapping, Optional, Sequence, Union

from fairplay.config import settings
from fairplay.constants import Choice
from fairplay.errors import ConfigurationError, VerificationError
from fairplay.models.fees import FairnessReport, FeeAnomaly, FeeRecord, FeeReport
from fairplay.services.resolver import determine_winner

logger = logging.getLogger(__name__)

# An even three-way split, in percent
PERFECT_DISTRIBUTION = 100.0 / 3
# Maximum deviation from an even split still considered balanced, in percent
FAIRNESS_THRESHOLD = 10.0


def calculate_fee(amount: Union[int, float]) -> Union[int, float]:
    """Fee charged on ``amount``.

    Integer amounts (lamports) are floored exactly as the program does.
    """
    if isinstance(amount, int):
        return amount * settings.fee_percentage // settings.fee_denominator
    return amount * settings.fee_percentage / settings.fee_denominator


def _relative_difference(actual: float, expected: float) -> float:
    if math.isclose(actual, expected, rel_tol=1e-12, abs_tol=0.0):
        return 0.0
    return abs(actual - expected) / expected


def _record_anomalies(index: int, record: FeeRecord, expected_rate: float,
                      tolerance: float) -> list:
    anomalies = []
    if record.wagered <= 0:
        anomalies.append(FeeAnomaly(index, "non_positive_wager",
                                    f"wagered={record.wagered}", record.signature))
        return anomalies
    if record.fee < 0:
        anomalies.append(FeeAnomaly(index, "negative_fee", f"fee={record.fee}", record.signature))
    elif record.fee > record.wagered:
        anomalies.append(FeeAnomaly(index, "fee_exceeds_wager",
                                    f"fee={record.fee} wagered={record.wagered}", record.signature))
    else:
        rate = record.fee / record.wagered
        if _relative_difference(rate, expected_rate) > tolerance:
            anomalies.append(FeeAnomaly(index, "rate_out_of_tolerance",
                                        f"rate={rate:.6f} expected={expected_rate:.6f}",
                                        record.signature))
    if record.pre_balance or record.post_balance:
        delta = record.balance_delta
        if not math.isclose(delta, record.fee, rel_tol=1e-9, abs_tol=1e-12):
            anomalies.append(FeeAnomaly(index, "balance_mismatch",
                                        f"balance delta={delta} fee={record.fee}",
                                        record.signature))
    return anomalies


def analyze_fees(
    records: Iterable[FeeRecord],
    expected_rate: float,
    tolerance: Optional[float] = None,
) -> FeeReport:
    """Check collected fees against the expected rate.

    Args:
        records: Settlement fee records
        expected_rate: Agreed fee as a fraction of the wager (0.01 = 1%)
        tolerance: Allowed relative deviation (0.05 = 5%); settings default

    Returns:
        FeeReport with totals, actual rate, verdict and per-record anomalies
    """
    if expected_rate <= 0:
        raise ConfigurationError(f"Expected fee rate must be positive, got {expected_rate}")
    tolerance = settings.fee_tolerance if tolerance is None else tolerance
    if tolerance < 0:
        raise ConfigurationError(f"Tolerance must not be negative, got {tolerance}")

    total_wagered = 0.0
    total_fees = 0.0
    count = 0
    anomalies = []
    for index, record in enumerate(records):
        count += 1
        anomalies.extend(_record_anomalies(index, record, expected_rate, tolerance))
        total_wagered += record.wagered
        total_fees += record.fee

    if total_wagered <= 0:
        # nothing positive wagered: report it, never divide by zero
        logger.info("Fee analysis over %d records found nothing wagered", count)
        return FeeReport(
            total_wagered=total_wagered,
            total_fees=total_fees,
            actual_rate=0.0,
            expected_rate=expected_rate,
            is_correct=False,
            difference_percentage=100.0,
            record_count=count,
            tolerance=tolerance,
            anomalies=anomalies,
        )

    actual_rate = total_fees / total_wagered
    difference = _relative_difference(actual_rate, expected_rate)
    return FeeReport(
        total_wagered=total_wagered,
        total_fees=total_fees,
        actual_rate=actual_rate,
        expected_rate=expected_rate,
        is_correct=difference <= tolerance,
        difference_percentage=difference * 100,
        record_count=count,
        tolerance=tolerance,
        anomalies=anomalies,
    )


def analyze_fairness(games: Sequence[Mapping]) -> FairnessReport:
    """Check recorded two-player results and their distribution.

    Each game is a mapping with ``player_choice``, ``opponent_choice`` and
    ``result`` ("win" | "loss" | "tie" from the player's side).

    Raises:
        VerificationError: If a recorded result contradicts the rules
    """
    wins = {Choice.ROCK: 0, Choice.PAPER: 0, Choice.SCISSORS: 0}
    ties = 0
    for index, game in enumerate(games):
        expected = determine_winner(game["player_choice"], game["opponent_choice"])
        if game["result"] != expected:
            raise VerificationError(
                f"Game {index}: recorded {game['result']!r}, rules give {expected!r}"
            )
        if expected == "win":
            wins[Choice(game["player_choice"])] += 1
        elif expected == "loss":
            wins[Choice(game["opponent_choice"])] += 1
        else:
            ties += 1

    total = len(games)
    decided = total - ties

    def pct(n: int, of: int) -> float:
        return (n / of) * 100 if of > 0 else 0.0

    rock = pct(wins[Choice.ROCK], decided)
    paper = pct(wins[Choice.PAPER], decided)
    scissors = pct(wins[Choice.SCISSORS], decided)
    max_variance = max(abs(p - PERFECT_DISTRIBUTION) for p in (rock, paper, scissors)) if decided else 0.0

    return FairnessReport(
        total_games=total,
        rock_wins=wins[Choice.ROCK],
        paper_wins=wins[Choice.PAPER],
        scissors_wins=wins[Choice.SCISSORS],
        ties=ties,
        rock_win_percentage=rock,
        paper_win_percentage=paper,
        scissors_win_percentage=scissors,
        tie_percentage=pct(ties, total),
        max_variance=max_variance,
        is_balanced=max_variance < FAIRNESS_THRESHOLD,
    )
