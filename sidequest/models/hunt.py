from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from sidequest.models.base import Base


class Hunt(Base):
    __tablename__ = "hunts"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    creator_id: Mapped[int | None] = mapped_column(
        ForeignKey("users.id"), nullable=True, index=True, default=None
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    is_published: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
