from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class BadgeCreate(BaseModel):
    key: str = Field(min_length=1, max_length=100, pattern=r"^[a-z0-9][a-z0-9_-]*$")
    title: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    image_url: Optional[str] = None
    checkpoint_id: Optional[int] = None


class BadgeUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    image_url: Optional[str] = None
    checkpoint_id: Optional[int] = None


class BadgeResponse(BaseModel):
    id: int
    key: str
    title: str
    description: Optional[str]
    image_url: Optional[str]
    checkpoint_id: Optional[int]

    model_config = {"from_attributes": True}


class BadgeGrantRequest(BaseModel):
    user_id: int
    badge_id: int


class EarnedBadgeResponse(BadgeResponse):
    earned_at: datetime
    newly_granted: Optional[bool] = None
