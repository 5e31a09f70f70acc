import enum
from datetime import datetime

from sqlalchemy import DateTime, Enum, ForeignKey, Integer, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from sidequest.models.base import Base


class RunStatus(str, enum.Enum):
    active = "active"
    completed = "completed"
    abandoned = "abandoned"


class PlayerRun(Base):
    """One player's participation in one hunt."""

    __tablename__ = "player_runs"
    __table_args__ = (
        UniqueConstraint("user_id", "hunt_id", name="uq_player_run_user_hunt"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False, index=True)
    hunt_id: Mapped[int] = mapped_column(ForeignKey("hunts.id"), nullable=False, index=True)
    status: Mapped[RunStatus] = mapped_column(
        Enum(RunStatus), nullable=False, default=RunStatus.active
    )
    started_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True, default=None
    )
    completed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True, default=None
    )
    total_time_seconds: Mapped[int | None] = mapped_column(Integer, nullable=True, default=None)
