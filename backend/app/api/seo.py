"""Stand-alone SEO helpers for users hosting pages elsewhere."""
from fastapi import APIRouter, Depends, Response
from fastapi.responses import PlainTextResponse

from app.core.auth import get_current_user
from app.models.user import User
from app.schemas.seo import RobotsRequest, SitemapRequest
from app.services.deployment_packager import generate_robots_txt, generate_sitemap

router = APIRouter()


@router.post("/robots", response_class=PlainTextResponse)
async def create_robots_txt(
    request_in: RobotsRequest,
    current_user: User = Depends(get_current_user),
):
    return PlainTextResponse(generate_robots_txt(request_in.disallow_paths, request_in.domain))


@router.post("/sitemap")
async def create_sitemap(
    request_in: SitemapRequest,
    current_user: User = Depends(get_current_user),
):
    return Response(
        content=generate_sitemap(request_in.domain, request_in.pages),
        media_type="application/xml",
    )
