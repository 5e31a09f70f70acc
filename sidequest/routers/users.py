from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from sidequest.database import get_db
from sidequest.models.player_run import RunStatus
from sidequest.models.user import User
from sidequest.schemas.auth import UserResponse
from sidequest.schemas.badge import BadgeResponse, EarnedBadgeResponse
from sidequest.schemas.hunt import HuntSummary, JoinedHuntResponse, PlayerOverview, PlayerStats, RunResponse
from sidequest.services.auth_service import get_user_by_id
from sidequest.services.badge_service import count_distinct_badges, get_user_badges
from sidequest.services.hunt_service import list_hunts_by_creator
from sidequest.services.run_service import list_runs_for_user

router = APIRouter(prefix="/users", tags=["users"])


async def _get_user_or_404(db: AsyncSession, user_id: int) -> User:
    user = await get_user_by_id(db, user_id)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return user


async def _joined_runs(db: AsyncSession, user_id: int) -> list[JoinedHuntResponse]:
    return [
        JoinedHuntResponse(run=RunResponse.model_validate(run), hunt_title=hunt.title, solved_count=solved)
        for run, hunt, solved in await list_runs_for_user(db, user_id)
    ]


@router.get("/{user_id}", response_model=UserResponse)
async def profile(user_id: int, db: AsyncSession = Depends(get_db)):
    return await _get_user_or_404(db, user_id)


@router.get("/{user_id}/badges", response_model=list[EarnedBadgeResponse])
async def user_badges(user_id: int, db: AsyncSession = Depends(get_db)):
    await _get_user_or_404(db, user_id)
    return [
        EarnedBadgeResponse(
            **BadgeResponse.model_validate(badge).model_dump(),
            earned_at=grant.earned_at,
        )
        for badge, grant in await get_user_badges(db, user_id)
    ]


@router.get("/{user_id}/runs", response_model=list[JoinedHuntResponse])
async def user_runs(user_id: int, db: AsyncSession = Depends(get_db)):
    await _get_user_or_404(db, user_id)
    return await _joined_runs(db, user_id)


@router.get("/{user_id}/hunts/created", response_model=list[HuntSummary])
async def created_hunts(user_id: int, db: AsyncSession = Depends(get_db)):
    await _get_user_or_404(db, user_id)
    return await list_hunts_by_creator(db, user_id)


@router.get("/{user_id}/overview", response_model=PlayerOverview)
async def overview(user_id: int, db: AsyncSession = Depends(get_db)):
    """Dashboard numbers: runs in progress, runs completed and distinct badges."""
    await _get_user_or_404(db, user_id)
    runs = await _joined_runs(db, user_id)
    stats = PlayerStats(
        in_progress=sum(1 for r in runs if r.run.status == RunStatus.active),
        completed=sum(1 for r in runs if r.run.status == RunStatus.completed),
        badges=await count_distinct_badges(db, user_id),
    )
    return PlayerOverview(stats=stats, runs=runs)
