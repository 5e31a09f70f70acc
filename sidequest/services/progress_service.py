from datetime import datetime

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from sidequest.models.checkpoint_attempt import CheckpointAttempt
from sidequest.models.checkpoint_progress import CheckpointProgress
from sidequest.services.errors import StorageError


async def get_progress(
    db: AsyncSession, run_id: int, checkpoint_id: int, for_update: bool = False
) -> CheckpointProgress | None:
    query = select(CheckpointProgress).where(
        CheckpointProgress.run_id == run_id,
        CheckpointProgress.checkpoint_id == checkpoint_id,
    )
    if for_update:
        # Locked reads must not be served from the identity map.
        query = query.with_for_update().execution_options(populate_existing=True)
    result = await db.execute(query)
    return result.scalar_one_or_none()


async def get_or_create_progress(
    db: AsyncSession, run_id: int, checkpoint_id: int
) -> CheckpointProgress:
    """Return the locked progress row for (run, checkpoint), creating it on first attempt.

    A concurrent creator winning the unique constraint surfaces as StorageError;
    the caller rolls back and may retry.
    """
    progress = await get_progress(db, run_id, checkpoint_id, for_update=True)
    if progress is not None:
        return progress

    progress = CheckpointProgress(run_id=run_id, checkpoint_id=checkpoint_id, attempts_count=0)
    db.add(progress)
    try:
        await db.flush()
    except IntegrityError as exc:
        raise StorageError("Progress row was created concurrently; retry the attempt") from exc
    return progress


async def save_progress(db: AsyncSession, progress: CheckpointProgress) -> CheckpointProgress:
    db.add(progress)
    await db.flush()
    return progress


async def append_attempt(
    db: AsyncSession,
    run_id: int,
    checkpoint_id: int,
    submitted_answer: str,
    was_correct: bool,
    created_at: datetime,
    lat: float | None = None,
    lng: float | None = None,
) -> CheckpointAttempt:
    attempt = CheckpointAttempt(
        run_id=run_id,
        checkpoint_id=checkpoint_id,
        submitted_answer=submitted_answer,
        was_correct=was_correct,
        lat=lat,
        lng=lng,
        created_at=created_at,
    )
    db.add(attempt)
    await db.flush()
    return attempt


async def any_other_solved(db: AsyncSession, run_id: int, checkpoint_id: int) -> bool:
    """Whether some checkpoint of this run other than `checkpoint_id` is already solved."""
    result = await db.execute(
        select(CheckpointProgress.id)
        .where(
            CheckpointProgress.run_id == run_id,
            CheckpointProgress.checkpoint_id != checkpoint_id,
            CheckpointProgress.solved_at.is_not(None),
        )
        .limit(1)
    )
    return result.first() is not None


async def get_attempts(
    db: AsyncSession, run_id: int, checkpoint_id: int | None = None
) -> list[CheckpointAttempt]:
    query = select(CheckpointAttempt).where(CheckpointAttempt.run_id == run_id)
    if checkpoint_id is not None:
        query = query.where(CheckpointAttempt.checkpoint_id == checkpoint_id)
    result = await db.execute(query.order_by(CheckpointAttempt.id))
    return list(result.scalars().all())
