from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Request, Response
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional
import logging
import uuid

from app.api.deps import api_base_url, get_owned_project
from app.core.auth import get_current_user
from app.db.session import get_db
from app.models.deployment import Deployment
from app.models.project import Project
from app.models.user import User
from app.schemas.deployment import (
    DeploymentCreate,
    DeploymentCreateResponse,
    DeploymentResponse,
    HostingGuide,
    PackageResponse,
    SSLInstructions,
)
from app.services.analytics import track_event
from app.services.deployment_packager import archive, build_file_set, extract_project_code
from app.services.deployment_runner import run_deployment
from app.services.hosting_guides import SSL_INSTRUCTIONS, get_hosting_guide

# Routes nested under a project: /api/projects/{project_id}/...
project_router = APIRouter()
# Routes on deployment records: /api/deployments/...
router = APIRouter()
logger = logging.getLogger(__name__)


def _zip_response(file_set, name: str) -> Response:
    bundle = archive(file_set, name)
    return Response(
        content=bundle.content,
        media_type=bundle.media_type,
        headers={"Content-Disposition": bundle.content_disposition},
    )


@project_router.post("/{project_id}/deployments", response_model=DeploymentCreateResponse)
@project_router.post("/{project_id}/deploy", response_model=DeploymentCreateResponse, include_in_schema=False)
async def create_deployment(
    deployment_in: DeploymentCreate,
    request: Request,
    background_tasks: BackgroundTasks,
    project: Project = Depends(get_owned_project),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    # 1. Create the record; the build happens after the response is sent
    deployment = Deployment(
        project_id=project.id,
        owner_id=current_user.id,
        provider=deployment_in.provider,
        domain=deployment_in.domain,
        status="pending",
    )
    db.add(deployment)
    await db.flush()

    track_event(db, current_user.id, "deployment_created", project.id, {"provider": deployment.provider})
    await db.commit()
    await db.refresh(deployment)

    # 2. Enqueue the build
    background_tasks.add_task(
        run_deployment,
        deployment_id=str(deployment.id),
        base_url=api_base_url(request),
    )
    logger.info(f"Queued deployment {deployment.id} of project {project.id} to {deployment.provider}")

    return DeploymentCreateResponse(
        **DeploymentResponse.model_validate(deployment).model_dump(),
        guide=HostingGuide(**get_hosting_guide(deployment.provider)),
    )


@project_router.get("/{project_id}/deployments", response_model=List[DeploymentResponse])
async def list_project_deployments(
    project: Project = Depends(get_owned_project),
    db: AsyncSession = Depends(get_db)
):
    result = await db.execute(
        select(Deployment)
        .where(Deployment.project_id == project.id)
        .order_by(Deployment.created_at)
    )
    return result.scalars().all()


@project_router.get("/{project_id}/package", response_model=PackageResponse)
async def get_project_package(
    project: Project = Depends(get_owned_project),
    provider: Optional[str] = None,
    domain: Optional[str] = None,
):
    """File set for manual upload to a host, with that host's instructions."""
    file_set = build_file_set(
        extract_project_code(project.content), str(project.id), domain=domain, title=project.name
    )
    guide = None
    if provider:
        try:
            guide = HostingGuide(**get_hosting_guide(provider))
        except KeyError:
            raise HTTPException(status_code=400, detail={
                "error": "unknown_provider",
                "message": f"Unknown hosting provider '{provider}'",
            })
    return PackageResponse(project_id=project.id, files=dict(file_set), guide=guide)


@project_router.get("/{project_id}/download")
async def download_project(
    project: Project = Depends(get_owned_project),
    domain: Optional[str] = None,
):
    """Build the bundle on the fly and return it as a ZIP attachment."""
    file_set = build_file_set(
        extract_project_code(project.content), str(project.id), domain=domain, title=project.name
    )
    return _zip_response(file_set, project.name)


@router.get("/ssl", response_model=SSLInstructions)
async def get_ssl_instructions():
    return SSL_INSTRUCTIONS


async def _get_owned_deployment(deployment_id: uuid.UUID, user: User, db: AsyncSession) -> Deployment:
    deployment = await db.get(Deployment, deployment_id)
    if not deployment or deployment.owner_id != user.id:
        raise HTTPException(status_code=404, detail="Deployment not found")
    return deployment


@router.get("/{deployment_id}", response_model=DeploymentResponse)
async def get_deployment(
    deployment_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Poll this endpoint for the outcome of a build."""
    return await _get_owned_deployment(deployment_id, current_user, db)


@router.get("/{deployment_id}/download")
async def download_deployment(
    deployment_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """ZIP of the file set snapshot taken when the deployment was built."""
    deployment = await _get_owned_deployment(deployment_id, current_user, db)
    if deployment.status != "deployed" or not deployment.files:
        raise HTTPException(status_code=409, detail={
            "error": "deployment_not_ready",
            "message": f"Deployment is {deployment.status}; nothing to download yet",
        })
    project = await db.get(Project, deployment.project_id)
    name = project.name if project else f"deployment-{deployment.id}"
    return _zip_response(deployment.files, name)
