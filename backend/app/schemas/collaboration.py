from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

CollaboratorRole = Literal["viewer", "editor"]


class CollaboratorCreate(BaseModel):
    # The invitee must already have an account
    email: str = Field(min_length=3, max_length=255)
    role: CollaboratorRole = "viewer"


class CollaboratorResponse(BaseModel):
    id: UUID
    project_id: UUID
    user_id: UUID
    role: CollaboratorRole
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
