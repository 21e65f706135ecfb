from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class RatingCreate(BaseModel):
    rating: int = Field(ge=1, le=5)
    review: Optional[str] = Field(default=None, max_length=5000)


class RatingResponse(BaseModel):
    id: UUID
    marketplace_item_id: UUID
    user_id: UUID
    rating: int
    review: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class RatingSummary(BaseModel):
    """All ratings of an item with their average, ``None`` when unrated."""
    average: Optional[float] = None
    count: int
    ratings: List[RatingResponse]
