from datetime import datetime
from typing import Any, Dict, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class AnalyticsEventCreate(BaseModel):
    event_type: str = Field(min_length=1, max_length=50)
    project_id: Optional[UUID] = None
    event_data: Dict[str, Any] = {}


class AnalyticsEventResponse(BaseModel):
    id: UUID
    user_id: UUID
    project_id: Optional[UUID] = None
    event_type: str
    event_data: Dict[str, Any]
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
