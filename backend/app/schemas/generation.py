from typing import List, Literal, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from app.schemas.api_key import Provider
from app.schemas.conversation import ChatMessage


class GenerationParams(BaseModel):
    temperature: float = Field(default=0.7, ge=0, le=1)
    max_output_tokens: int = Field(default=2048, gt=0)
    model: Optional[str] = None


class ChatRequest(GenerationParams):
    messages: List[ChatMessage] = Field(min_length=1)
    # When set, only this provider is used and a missing key is an error
    provider: Optional[Provider] = None
    preset: Optional[Literal["chat", "writer", "debugger"]] = None


class ChatResponse(BaseModel):
    response: str
    provider: str
    model: Optional[str] = None
    fallback: bool = False


class CodeGenerationRequest(GenerationParams):
    prompt: str = Field(min_length=1)
    language: str = "javascript"
    provider: Optional[Provider] = None
    # Attributes the generation event to one of the caller's projects
    project_id: Optional[UUID] = None


class CodeGenerationResponse(BaseModel):
    code: str
    provider: str
    model: Optional[str] = None
    fallback: bool = False
