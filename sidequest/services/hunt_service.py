from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from sidequest.config import settings
from sidequest.models.checkpoint import Checkpoint
from sidequest.models.hunt import Hunt
from sidequest.models.user import User


async def create_hunt(
    db: AsyncSession,
    creator: User,
    title: str,
    description: str = "",
    checkpoints: list[dict] | None = None,
) -> Hunt:
    """Create a hunt and its initial checkpoints in one commit.

    Each checkpoint dict needs `answer`; `position` defaults to list order (1-based).
    """
    checkpoints = checkpoints or []
    positions = [cp.get("position") or index for index, cp in enumerate(checkpoints, start=1)]
    if len(set(positions)) != len(positions):
        raise ValueError("Checkpoint positions must be unique within a hunt")

    hunt = Hunt(creator_id=creator.id, title=title, description=description)
    db.add(hunt)
    await db.flush()  # need hunt.id for the checkpoints

    for position, data in zip(positions, checkpoints):
        db.add(
            Checkpoint(
                hunt_id=hunt.id,
                position=position,
                title=data.get("title") or "",
                riddle=data.get("riddle") or "",
                hint=data.get("hint"),
                answer=data["answer"],
                lat=data.get("lat"),
                lng=data.get("lng"),
                tolerance_m=data.get("tolerance_m", settings.default_tolerance_m),
                max_attempts=data.get("max_attempts"),
            )
        )
    await db.commit()
    await db.refresh(hunt)
    return hunt


async def get_hunt(db: AsyncSession, hunt_id: int) -> Hunt | None:
    result = await db.execute(select(Hunt).where(Hunt.id == hunt_id))
    return result.scalar_one_or_none()


async def list_published_hunts(db: AsyncSession) -> list[Hunt]:
    result = await db.execute(
        select(Hunt)
        .where(Hunt.is_published == True, Hunt.is_active == True)  # noqa: E712
        .order_by(Hunt.created_at.desc(), Hunt.id.desc())
    )
    return list(result.scalars().all())


async def publish_hunt(db: AsyncSession, hunt: Hunt) -> Hunt:
    result = await db.execute(select(Checkpoint.id).where(Checkpoint.hunt_id == hunt.id).limit(1))
    if result.scalar_one_or_none() is None:
        raise ValueError("A hunt needs at least one checkpoint before it can be published")
    hunt.is_published = True
    await db.commit()
    await db.refresh(hunt)
    return hunt


async def list_hunts_by_creator(db: AsyncSession, creator_id: int) -> list[Hunt]:
    result = await db.execute(
        select(Hunt).where(Hunt.creator_id == creator_id).order_by(Hunt.created_at.desc(), Hunt.id.desc())
    )
    return list(result.scalars().all())
