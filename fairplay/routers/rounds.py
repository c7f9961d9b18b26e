"""Round snapshot router for fairplay."""

from fastapi import APIRouter, HTTPException

from fairplay.services import session

router = APIRouter(prefix="/rounds", tags=["rounds"])


@router.get("/{game_id}")
async def round_snapshot(game_id: str):
    """Phase, players and resolution of one round."""
    game = session.get_network().round(game_id)
    if game is None:
        raise HTTPException(status_code=404, detail="Round not found")
    game.tick()
    return game.snapshot()
