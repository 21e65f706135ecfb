from datetime import datetime
from typing import Any, Dict, Literal, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

ProjectType = Literal["ai", "website", "bot", "game", "web3"]


class ProjectBase(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    type: ProjectType
    description: Optional[str] = None
    # Generated code is kept under html / css / js / files
    content: Dict[str, Any] = {}
    preview: Optional[str] = None
    is_public: bool = False


class ProjectCreate(ProjectBase):
    pass


class ProjectUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    type: Optional[ProjectType] = None
    description: Optional[str] = None
    content: Optional[Dict[str, Any]] = None
    preview: Optional[str] = None
    is_public: Optional[bool] = None


class ProjectResponse(ProjectBase):
    id: UUID
    owner_id: UUID
    deploy_url: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)
