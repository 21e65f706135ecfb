from typing import List, Optional

from pydantic import BaseModel, Field


class RobotsRequest(BaseModel):
    disallow_paths: List[str] = []
    domain: Optional[str] = None


class SitemapRequest(BaseModel):
    domain: str = Field(min_length=1)
    pages: List[str] = ["/"]
