"""Constants and type definitions for fairplay."""

from enum import IntEnum
from typing import Literal

# Type definitions
GameOutcome = Literal["win", "loss", "tie"]
ResolutionOutcome = Literal["winner", "tie", "insufficient_reveals"]


class Choice(IntEnum):
    """Rock/paper/scissors encoded the way the on-chain program stores it."""

    NONE = 0
    ROCK = 1
    PAPER = 2
    SCISSORS = 3


VALID_CHOICES = (Choice.ROCK, Choice.PAPER, Choice.SCISSORS)

# Key beats value
BEATS = {
    Choice.ROCK: Choice.SCISSORS,
    Choice.PAPER: Choice.ROCK,
    Choice.SCISSORS: Choice.PAPER,
}

# Commit-reveal
MIN_SALT_BYTES = 16
DEFAULT_SALT_BYTES = 32

# Fee schedule mirrored from the program: 10 / 1000 = 1%
FEE_PERCENTAGE = 10
FEE_DENOMINATOR = 1000

# Betting strategy names accepted by get_strategy()
STRATEGY_NAMES = ["fixed", "martingale", "dalembert", "fibonacci", "streak"]
