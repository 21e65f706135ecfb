from pydantic import BaseModel, ConfigDict, Field
from typing import Dict, Any, List, Literal, Optional
from datetime import datetime
from uuid import UUID

HostingProvider = Literal["vercel", "netlify", "render", "railway", "fleek"]


class DeploymentCreate(BaseModel):
    provider: HostingProvider = "netlify"
    # Domain for robots.txt / sitemap.xml, e.g. "example.com"
    domain: Optional[str] = Field(default=None, max_length=255, pattern=r"^[A-Za-z0-9.-]+(:\d+)?$")


class DeploymentResponse(BaseModel):
    id: UUID
    project_id: UUID
    provider: str
    domain: Optional[str] = None
    status: str
    url: Optional[str] = None
    build_log: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class HostingGuide(BaseModel):
    provider: str
    instructions: str
    commands: List[str] = []
    dockerfile: Optional[str] = None


class DeploymentCreateResponse(DeploymentResponse):
    guide: HostingGuide


class PackageResponse(BaseModel):
    project_id: UUID
    files: Dict[str, str]
    guide: Optional[HostingGuide] = None


class SSLInstructions(BaseModel):
    provider: str
    steps: List[str]
    manual: List[str]
