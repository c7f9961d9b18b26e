import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

# --- .env support ---
try:
    from dotenv import load_dotenv
    load_dotenv()
except ImportError:
    pass

from fairplay.config import settings

# Import routers
from fairplay.routers import audit, autoplay, health, rounds

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

# ------------------------------------------------------------------------------
# FastAPI
# ------------------------------------------------------------------------------
app = FastAPI(title="Fairplay RPS")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("shutdown")
async def shutdown():
    from fairplay.services import session
    session.reset()


# ------------------------------------------------------------------------------
# Include routers
# ------------------------------------------------------------------------------
app.include_router(health.router)
app.include_router(autoplay.router)
app.include_router(rounds.router)
app.include_router(audit.router)
