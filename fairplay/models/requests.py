"""Pydantic request models for the fairplay API."""

from typing import List, Optional

from pydantic import BaseModel, Field


class AutoplayStartRequest(BaseModel):
    """Request to start the autoplay loop."""
    wager: float = Field(..., gt=0)
    strategy: str = "fixed"
    max_wager: Optional[float] = None
    stop_on_profit: Optional[float] = None
    stop_on_loss: Optional[float] = None


class FeeRecordIn(BaseModel):
    """One settlement fee record."""
    wagered: float
    fee: float
    pre_balance: float = 0.0
    post_balance: float = 0.0
    signature: Optional[str] = None
    game_id: Optional[str] = None


class FeeAuditRequest(BaseModel):
    """Request to analyze a batch of fee records.

    When ``records`` is omitted the local network's own settlement records
    are audited.
    """
    records: Optional[List[FeeRecordIn]] = None
    expected_rate: Optional[float] = Field(None, gt=0)
    tolerance: Optional[float] = Field(None, ge=0)
    label: Optional[str] = None
