"""Badge catalogue lookups and idempotent grants."""

import logging
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from sidequest.data.badges import DERIVED_BADGES, list_badge_definitions
from sidequest.models.badge import Badge, UserBadge
from sidequest.models.checkpoint import Checkpoint

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = ("title", "description", "image_url", "checkpoint_id")


async def get_badge(db: AsyncSession, badge_id: int) -> Badge | None:
    result = await db.execute(select(Badge).where(Badge.id == badge_id))
    return result.scalar_one_or_none()


async def find_badge_by_key(db: AsyncSession, key: str) -> Badge | None:
    result = await db.execute(select(Badge).where(Badge.key == key))
    return result.scalar_one_or_none()


async def find_badges_by_checkpoint(db: AsyncSession, checkpoint_id: int) -> list[Badge]:
    result = await db.execute(
        select(Badge).where(Badge.checkpoint_id == checkpoint_id).order_by(Badge.id)
    )
    return list(result.scalars().all())


async def list_badges(
    db: AsyncSession,
    checkpoint_id: int | None = None,
    hunt_id: int | None = None,
) -> list[Badge]:
    query = select(Badge)
    if checkpoint_id is not None:
        query = query.where(Badge.checkpoint_id == checkpoint_id)
    if hunt_id is not None:
        query = query.join(Checkpoint, Checkpoint.id == Badge.checkpoint_id).where(
            Checkpoint.hunt_id == hunt_id
        )
    result = await db.execute(query.order_by(Badge.id))
    return list(result.scalars().all())


async def create_badge(
    db: AsyncSession,
    key: str,
    title: str,
    description: str | None = None,
    image_url: str | None = None,
    checkpoint_id: int | None = None,
) -> Badge:
    if await find_badge_by_key(db, key) is not None:
        raise ValueError(f"Badge key '{key}' already in use")
    badge = Badge(
        key=key,
        title=title,
        description=description,
        image_url=image_url,
        checkpoint_id=checkpoint_id,
    )
    db.add(badge)
    await db.commit()
    await db.refresh(badge)
    return badge


def is_derived(badge: Badge) -> bool:
    return badge.key in DERIVED_BADGES


async def update_badge(db: AsyncSession, badge: Badge, updates: dict[str, Any]) -> Badge:
    """Apply a partial update. The key never changes; rules and grants refer to it."""
    if "title" in updates and not (updates["title"] or "").strip():
        raise ValueError("title cannot be empty")
    if is_derived(badge) and updates.get("checkpoint_id") is not None:
        raise ValueError(f"Derived badge '{badge.key}' cannot be attached to a checkpoint")

    for field in EDITABLE_FIELDS:
        if field in updates:
            setattr(badge, field, updates[field])
    await db.commit()
    await db.refresh(badge)
    return badge


async def delete_badge(db: AsyncSession, badge: Badge) -> None:
    """Remove a badge together with every grant of it."""
    if is_derived(badge):
        raise ValueError(f"Derived badge '{badge.key}' cannot be deleted")
    await db.execute(delete(UserBadge).where(UserBadge.badge_id == badge.id))
    await db.delete(badge)
    await db.commit()


async def get_user_badge(db: AsyncSession, user_id: int, badge_id: int) -> UserBadge | None:
    result = await db.execute(
        select(UserBadge).where(UserBadge.user_id == user_id, UserBadge.badge_id == badge_id)
    )
    return result.scalar_one_or_none()


async def has_badge(db: AsyncSession, user_id: int, badge_id: int) -> bool:
    return await get_user_badge(db, user_id, badge_id) is not None


async def grant_badge_if_absent(
    db: AsyncSession, user_id: int, badge_id: int, now: datetime | None = None
) -> bool:
    """Grant a badge inside the caller's transaction.

    Returns True if a new grant row was added, False if the user already held it.
    """
    if await has_badge(db, user_id, badge_id):
        return False
    db.add(
        UserBadge(
            user_id=user_id,
            badge_id=badge_id,
            earned_at=now or datetime.now(timezone.utc),
        )
    )
    await db.flush()
    return True


async def count_distinct_badges(db: AsyncSession, user_id: int) -> int:
    result = await db.execute(
        select(func.count(func.distinct(UserBadge.badge_id))).where(UserBadge.user_id == user_id)
    )
    return result.scalar_one()


async def get_user_badges(db: AsyncSession, user_id: int) -> list[tuple[Badge, UserBadge]]:
    result = await db.execute(
        select(Badge, UserBadge)
        .join(UserBadge, UserBadge.badge_id == Badge.id)
        .where(UserBadge.user_id == user_id)
        .order_by(UserBadge.earned_at.desc(), Badge.id)
    )
    return [(badge, grant) for badge, grant in result.all()]


async def seed_derived_badges(db: AsyncSession) -> int:
    """Insert the run-level badge definitions that are missing. Returns how many were added."""
    added = 0
    for definition in list_badge_definitions():
        if await find_badge_by_key(db, definition.key) is not None:
            continue
        db.add(
            Badge(
                key=definition.key,
                title=definition.title,
                description=definition.description,
            )
        )
        added += 1
    await db.commit()
    if added:
        logger.info("Seeded %d derived badge definitions", added)
    return added
