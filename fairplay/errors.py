"""Exception hierarchy for the fairplay core."""

from typing import Optional


class FairplayError(Exception):
    """Base class for every error raised by fairplay."""


class NetworkError(FairplayError):
    """Transient transport failure. Retried with backoff by the autoplay driver."""


class RejectedError(FairplayError):
    """Protocol violation such as a double commit or an action in the wrong phase.

    Round state is left unchanged when this is raised.
    """


class VerificationError(FairplayError):
    """A reveal did not re-derive the stored commitment."""

    def __init__(self, message: str, player_id: Optional[str] = None):
        super().__init__(message)
        self.player_id = player_id


class ConfigurationError(FairplayError):
    """Invalid parameters (player counts, malformed choice, non-positive wager)."""
