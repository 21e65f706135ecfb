from datetime import datetime
from typing import List, Literal, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from app.schemas.api_key import Provider


class ChatMessage(BaseModel):
    role: Literal["system", "user", "assistant"]
    content: str
    timestamp: Optional[datetime] = None


class ConversationCreate(BaseModel):
    project_id: Optional[UUID] = None
    messages: List[ChatMessage] = []
    ai_provider: Provider = "openai"


class ConversationUpdate(BaseModel):
    messages: Optional[List[ChatMessage]] = None
    ai_provider: Optional[Provider] = None


class ConversationMessageRequest(BaseModel):
    content: str = Field(min_length=1)
    # Use the conversation's provider only (no template fallback)
    strict_provider: bool = False


class ConversationResponse(BaseModel):
    id: UUID
    owner_id: UUID
    project_id: Optional[UUID] = None
    messages: List[ChatMessage]
    ai_provider: str
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)
