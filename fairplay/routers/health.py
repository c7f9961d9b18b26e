"""Health check router for fairplay."""

from fastapi import APIRouter

from fairplay.config import settings
from fairplay.models.responses import HealthResponse

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def health():
    """Health check endpoint."""
    return {"status": "ok", "env": settings.app_env, "version": settings.app_version}
