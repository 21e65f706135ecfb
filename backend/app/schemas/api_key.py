from datetime import datetime
from typing import Literal, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

Provider = Literal["openai", "anthropic", "gemini", "cohere"]


class ApiKeyCreate(BaseModel):
    provider: Provider
    api_key: str = Field(min_length=1)
    display_name: Optional[str] = Field(default=None, max_length=100)


class ApiKeyUpdate(BaseModel):
    display_name: Optional[str] = Field(default=None, max_length=100)
    is_active: Optional[bool] = None


class ApiKeyResponse(BaseModel):
    """Stored key metadata. Key material is never part of a response."""
    id: UUID
    provider: str
    display_name: Optional[str] = None
    is_active: bool
    # Rows only exist for stored keys
    has_key: bool = True
    created_at: datetime
    last_used_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)
