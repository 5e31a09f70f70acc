import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from sidequest.config import settings
from sidequest.database import AsyncSessionLocal
from sidequest.routers import auth, badges, checkpoints, hunts, play, users
from sidequest.services.badge_service import seed_derived_badges

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    try:
        async with AsyncSessionLocal() as session:
            await seed_derived_badges(session)
    except Exception:
        logger.exception("Could not seed derived badges; run migrations first")
    yield


app = FastAPI(
    title="SideQuest",
    description="Scavenger hunts with geolocated riddle checkpoints, badges and leaderboards",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth.router)
app.include_router(hunts.router)
app.include_router(checkpoints.router)
app.include_router(play.router)
app.include_router(badges.router)
app.include_router(users.router)


@app.get("/health")
async def health_check():
    return {"status": "ok"}
