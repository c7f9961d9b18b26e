"""Autoplay router for fairplay."""

import asyncio
import logging

from fastapi import APIRouter, HTTPException

from fairplay.errors import ConfigurationError
from fairplay.models.requests import AutoplayStartRequest
from fairplay.models.responses import AutoplayStatsResponse, AutoplayStatusResponse
from fairplay.services import session
from fairplay.services.strategies import get_strategy

router = APIRouter(prefix="/autoplay", tags=["autoplay"])

logger = logging.getLogger(__name__)


@router.post("/start", response_model=AutoplayStatusResponse)
async def autoplay_start(request: AutoplayStartRequest):
    """Start the autoplay loop in the background.

    Starting while a loop is running, or still finishing its last round after
    a stop, changes nothing and returns the current status.
    """
    driver = session.get_driver()
    if driver.is_active:
        return driver.status()

    try:
        strategy = get_strategy(request.strategy, request.wager, max_wager=request.max_wager)
    except ConfigurationError as e:
        raise HTTPException(status_code=400, detail=str(e))

    driver.stop_on_profit = request.stop_on_profit
    driver.stop_on_loss = request.stop_on_loss
    session.autoplay_task = asyncio.create_task(
        driver.start(request.wager, strategy, on_error=lambda e: logger.debug("autoplay error: %s", e))
    )
    # let the loop claim the running flag before reporting status
    await asyncio.sleep(0)
    return driver.status()


@router.post("/stop", response_model=AutoplayStatusResponse)
async def autoplay_stop():
    """Stop after the current round."""
    driver = session.get_driver()
    driver.stop()
    return driver.status()


@router.get("/status", response_model=AutoplayStatusResponse)
async def autoplay_status():
    return session.get_driver().status()


@router.get("/stats", response_model=AutoplayStatsResponse)
async def autoplay_stats():
    """Current stats snapshot."""
    return session.get_driver().get_stats().to_dict()


@router.post("/reset")
async def autoplay_reset():
    """Clear stats and history."""
    session.get_driver().reset_stats()
    return {"ok": True}
