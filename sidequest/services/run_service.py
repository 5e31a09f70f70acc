from datetime import datetime, timezone

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from sidequest.models.checkpoint_progress import CheckpointProgress
from sidequest.models.hunt import Hunt
from sidequest.models.player_run import PlayerRun, RunStatus
from sidequest.models.user import User


async def get_run(db: AsyncSession, run_id: int, for_update: bool = False) -> PlayerRun | None:
    query = select(PlayerRun).where(PlayerRun.id == run_id)
    if for_update:
        # Locked reads must not be served from the identity map.
        query = query.with_for_update().execution_options(populate_existing=True)
    result = await db.execute(query)
    return result.scalar_one_or_none()


async def get_run_for_user(db: AsyncSession, hunt_id: int, user_id: int) -> PlayerRun | None:
    result = await db.execute(
        select(PlayerRun).where(PlayerRun.hunt_id == hunt_id, PlayerRun.user_id == user_id)
    )
    return result.scalar_one_or_none()


async def save_run(db: AsyncSession, run: PlayerRun) -> PlayerRun:
    db.add(run)
    await db.flush()
    return run


async def join_hunt(db: AsyncSession, hunt: Hunt, user: User) -> PlayerRun:
    """Start the user's single run of this hunt. Raises ValueError if they already joined."""
    if not hunt.is_active:
        raise ValueError("Hunt is not active")
    if await get_run_for_user(db, hunt.id, user.id) is not None:
        raise ValueError("Already joined this hunt")

    run = PlayerRun(
        user_id=user.id,
        hunt_id=hunt.id,
        status=RunStatus.active,
        started_at=datetime.now(timezone.utc),
    )
    db.add(run)
    await db.commit()
    await db.refresh(run)
    return run


async def abandon_run(db: AsyncSession, run: PlayerRun) -> PlayerRun:
    if run.status != RunStatus.active:
        raise ValueError("Only an active run can be abandoned")
    run.status = RunStatus.abandoned
    await db.commit()
    await db.refresh(run)
    return run


async def list_runs_for_user(db: AsyncSession, user_id: int) -> list[tuple[PlayerRun, Hunt, int]]:
    """The user's runs, newest first, each with its hunt and how many checkpoints are solved."""
    solved = (
        select(func.count(CheckpointProgress.id))
        .where(
            CheckpointProgress.run_id == PlayerRun.id,
            CheckpointProgress.solved_at.is_not(None),
        )
        .correlate(PlayerRun)
        .scalar_subquery()
    )
    result = await db.execute(
        select(PlayerRun, Hunt, solved)
        .join(Hunt, Hunt.id == PlayerRun.hunt_id)
        .where(PlayerRun.user_id == user_id)
        .order_by(PlayerRun.id.desc())
    )
    return [(run, hunt, solved_count) for run, hunt, solved_count in result.all()]


async def get_leaderboard(db: AsyncSession, hunt_id: int, limit: int = 50) -> list[dict]:
    """Completed runs of a hunt, fastest first, ties broken by who finished earlier."""
    result = await db.execute(
        select(PlayerRun, User)
        .join(User, User.id == PlayerRun.user_id)
        .where(PlayerRun.hunt_id == hunt_id, PlayerRun.status == RunStatus.completed)
        .order_by(
            PlayerRun.total_time_seconds.asc(),
            PlayerRun.completed_at.asc(),
            PlayerRun.id.asc(),
        )
        .limit(limit)
    )
    standings = []
    for rank, (run, user) in enumerate(result.all(), start=1):
        standings.append(
            {
                "rank": rank,
                "run_id": run.id,
                "user_id": user.id,
                "username": user.username,
                "total_time_seconds": run.total_time_seconds,
                "completed_at": run.completed_at,
            }
        )
    return standings
