"""Game network collaborator for fairplay.

The autoplay driver only talks to the network through ``GameNetwork``:
create a game, commit, reveal, and read fee records. ``LocalGameNetwork``
is an in-memory implementation that fills each game with bot opponents and
settles it through the real round state machine and resolver.
"""

import asyncio
import logging
import random
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Protocol, Tuple

from fairplay.config import settings
from fairplay.constants import Choice, GameOutcome
from fairplay.errors import ConfigurationError, NetworkError, RejectedError
from fairplay.models.fees import FeeRecord
from fairplay.models.round import Phase
from fairplay.services.fee_analyzer import calculate_fee
from fairplay.services.round_service import RoundStateMachine, validate_round_config
from fairplay.utils.commit_reveal import CommitmentScheme

logger = logging.getLogger(__name__)


@dataclass
class SettlementResult:
    """What the caller learns once its reveal settles the round."""
    game_id: str
    outcome: GameOutcome
    player_choice: int
    opponent_choices: List[int] = field(default_factory=list)
    wager: float = 0.0
    payout: float = 0.0
    fee: float = 0.0
    resolution: Optional[dict] = None


class GameNetwork(Protocol):
    """Operations the core consumes from the transport/session layer."""

    @property
    def connected(self) -> bool: ...

    async def reconnect(self) -> bool: ...

    async def create_game(self, min_players: int, max_players: int, total_rounds: int,
                          wager_amount: float, timeout_seconds: float,
                          losers_can_rejoin: bool) -> str: ...

    async def commit_choice(self, game_id: str, choice: int, salt: bytes) -> dict: ...

    async def reveal_choice(self, game_id: str, choice: int, salt: bytes) -> SettlementResult: ...

    def fee_records(self) -> List[FeeRecord]: ...


class LocalGameNetwork:
    """In-memory game network with bot opponents.

    Safe to share between independent drivers: the games table is guarded by
    an ``asyncio.Lock`` and every game belongs to exactly one caller.
    """

    def __init__(
        self,
        player_id: str = "autoplayer",
        scheme: Optional[CommitmentScheme] = None,
        rng: Optional[random.Random] = None,
        clock: Callable[[], float] = time.time,
        latency: float = 0.0,
    ):
        self.player_id = player_id
        self.scheme = scheme or CommitmentScheme(secret_key=settings.commit_secret.encode("utf-8"))
        self.rng = rng or random.Random()
        self.clock = clock
        self.latency = latency
        self.games: Dict[str, RoundStateMachine] = {}
        self.collector_balance: float = 0.0
        self._bot_secrets: Dict[str, Dict[str, Tuple[Choice, bytes]]] = {}
        self._fee_records: List[FeeRecord] = []
        self._connected = True
        self._reconnect_succeeds = True
        self._failures: List[Exception] = []
        self._lock = asyncio.Lock()

    # ------------------------------------------------------------------
    # Connection simulation
    # ------------------------------------------------------------------
    @property
    def connected(self) -> bool:
        return self._connected

    def disconnect(self, can_reconnect: bool = True):
        """Drop the connection; ``can_reconnect`` decides whether reconnect() works."""
        self._connected = False
        self._reconnect_succeeds = can_reconnect

    async def reconnect(self) -> bool:
        if self._reconnect_succeeds:
            self._connected = True
        return self._connected

    def inject_failure(self, exc: Exception):
        """Make the next network call raise ``exc``."""
        self._failures.append(exc)

    async def _call(self):
        if self.latency:
            await asyncio.sleep(self.latency)
        if not self._connected:
            raise NetworkError("Not connected")
        if self._failures:
            raise self._failures.pop(0)

    def _get(self, game_id: str) -> RoundStateMachine:
        game = self.games.get(game_id)
        if game is None:
            raise RejectedError(f"Unknown game {game_id}")
        return game

    def round(self, game_id: str) -> Optional[RoundStateMachine]:
        return self.games.get(game_id)

    # ------------------------------------------------------------------
    # Game operations
    # ------------------------------------------------------------------
    async def create_game(self, min_players: int, max_players: int, total_rounds: int,
                          wager_amount: float, timeout_seconds: float,
                          losers_can_rejoin: bool = False) -> str:
        """Create a game and fill it with bots up to ``max_players``."""
        await self._call()
        validate_round_config(min_players, max_players, wager_amount, timeout_seconds)
        if total_rounds != 1:
            raise ConfigurationError("Only single-round games are supported")

        game = RoundStateMachine(
            min_players=min_players,
            max_players=max_players,
            wager=wager_amount,
            timeout_seconds=timeout_seconds,
            scheme=self.scheme,
            clock=self.clock,
        )
        async with self._lock:
            self.games[game.game_id] = game
            self._bot_secrets[game.game_id] = {}
            game.join(self.player_id)
            for i in range(1, max_players):
                game.join(f"bot-{i}")
        logger.debug("Created game %s with %d players", game.game_id, len(game.players))
        return game.game_id

    async def commit_choice(self, game_id: str, choice: int, salt: bytes) -> dict:
        """Commit the caller's choice; bots commit right after."""
        await self._call()
        async with self._lock:
            game = self._get(game_id)
            digest = self.scheme.commit(choice, salt)
            game.commit(self.player_id, digest)
            secrets_for_game = self._bot_secrets[game_id]
            for bot_id in game.players:
                if bot_id == self.player_id:
                    continue
                bot_choice = Choice(self.rng.randint(1, 3))
                bot_salt = self.scheme.generate_salt(settings.salt_bytes)
                secrets_for_game[bot_id] = (bot_choice, bot_salt)
                game.commit(bot_id, self.scheme.commit(bot_choice, bot_salt))
        return {"game_id": game_id, "commitment": digest.hex(), "phase": game.phase.value}

    async def reveal_choice(self, game_id: str, choice: int, salt: bytes) -> SettlementResult:
        """Reveal the caller's choice after the bots; settles the round.

        Raises:
            VerificationError: If (choice, salt) does not match the commitment.
                The round still settles without the caller.
        """
        await self._call()
        async with self._lock:
            game = self._get(game_id)
            if game.phase != Phase.REVEAL_PHASE:
                raise RejectedError(f"Game {game_id} is not in the reveal phase")
            for bot_id, (bot_choice, bot_salt) in self._bot_secrets[game_id].items():
                game.reveal(bot_id, bot_choice, bot_salt)
            try:
                game.reveal(self.player_id, choice, salt)
            finally:
                self._settle_fees(game)
            return self._settlement(game, choice)

    def fee_records(self) -> List[FeeRecord]:
        return list(self._fee_records)

    # ------------------------------------------------------------------
    # Settlement
    # ------------------------------------------------------------------
    def _settle_fees(self, game: RoundStateMachine):
        if game.phase != Phase.FINISHED:
            return
        fee_total = calculate_fee(game.wager) * len(game.players)
        pre = self.collector_balance
        self.collector_balance = pre + fee_total
        self._fee_records.append(FeeRecord(
            wagered=game.wager * len(game.players),
            fee=fee_total,
            pre_balance=pre,
            post_balance=self.collector_balance,
            signature=f"settle-{game.game_id}",
            game_id=game.game_id,
        ))
        self._bot_secrets.pop(game.game_id, None)

    def _settlement(self, game: RoundStateMachine, choice: int) -> SettlementResult:
        resolution = game.resolution
        fee = calculate_fee(game.wager)
        pot = (game.wager - fee) * len(game.players)
        outcome = resolution.result_for(self.player_id)

        if resolution.outcome == "winner":
            payout = pot if outcome == "win" else 0.0
        elif resolution.outcome == "tie":
            payout = pot / len(resolution.tied) if outcome == "tie" else 0.0
        else:
            payout = game.wager - fee if outcome == "tie" else 0.0

        opponents = [
            int(p.choice) for pid, p in game.players.items()
            if pid != self.player_id and p.revealed
        ]
        return SettlementResult(
            game_id=game.game_id,
            outcome=outcome,
            player_choice=int(choice),
            opponent_choices=opponents,
            wager=game.wager,
            payout=payout,
            fee=fee,
            resolution=resolution.to_dict(),
        )
