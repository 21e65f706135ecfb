from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class MarketplaceItemCreate(BaseModel):
    project_id: UUID
    title: str = Field(min_length=1, max_length=200)
    description: Optional[str] = None
    category: str = Field(min_length=1, max_length=50)
    thumbnail: Optional[str] = None
    price: int = Field(default=0, ge=0)  # cents


class MarketplaceItemResponse(BaseModel):
    id: UUID
    project_id: UUID
    creator_id: UUID
    title: str
    description: Optional[str] = None
    category: str
    thumbnail: Optional[str] = None
    clone_count: int
    price: int
    featured: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
