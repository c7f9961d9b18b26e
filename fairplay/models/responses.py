"""Pydantic response models for the fairplay API."""

from typing import List, Optional

from pydantic import BaseModel


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    env: str
    version: str


class AutoplayStatusResponse(BaseModel):
    """Driver status snapshot."""
    running: bool
    active: bool = False
    connection_state: str
    current_wager: float
    reconnect_attempts: int
    stop_reason: Optional[str] = None
    last_error: Optional[str] = None
    rounds_this_session: int


class GameHistoryItemResponse(BaseModel):
    game_id: str
    player_choice: int
    opponent_choices: List[int]
    result: str
    timestamp: float
    wager_amount: float
    payout: float


class AutoplayStatsResponse(BaseModel):
    """AutoplayStats snapshot."""
    wins: int
    losses: int
    ties: int
    current_streak: int
    total_wagered: float
    net_profit: float
    games_played: int
    game_history: List[GameHistoryItemResponse]


class FeeAnomalyResponse(BaseModel):
    index: int
    kind: str
    detail: str
    signature: Optional[str] = None


class FeeReportResponse(BaseModel):
    """Fee integrity analysis result."""
    report_id: str
    total_wagered: float
    total_fees: float
    actual_rate: float
    expected_rate: float
    is_correct: bool
    difference_percentage: float
    record_count: int
    tolerance: float
    anomalies: List[FeeAnomalyResponse]
