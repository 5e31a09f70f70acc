from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Integer, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from sidequest.models.base import Base


class CheckpointProgress(Base):
    __tablename__ = "checkpoint_progress"
    __table_args__ = (
        UniqueConstraint("run_id", "checkpoint_id", name="uq_progress_run_checkpoint"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    run_id: Mapped[int] = mapped_column(ForeignKey("player_runs.id"), nullable=False, index=True)
    checkpoint_id: Mapped[int] = mapped_column(
        ForeignKey("checkpoints.id"), nullable=False, index=True
    )
    attempts_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    # Set on the first correct answer, never changed afterwards.
    solved_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True, default=None
    )
    last_attempt_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True, default=None
    )
