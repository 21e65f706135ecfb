"""Project sharing: the owner grants other users viewer or editor access."""
import logging
import uuid
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_collaboration, get_member_project, get_owned_project
from app.db.session import get_db
from app.models.collaboration import Collaboration
from app.models.project import Project
from app.models.user import User
from app.schemas.collaboration import CollaboratorCreate, CollaboratorResponse
from app.services.analytics import track_event

# Mounted under /api/projects
router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/{project_id}/collaborators", response_model=List[CollaboratorResponse])
async def list_collaborators(
    project: Project = Depends(get_member_project),
    db: AsyncSession = Depends(get_db)
):
    result = await db.execute(
        select(Collaboration)
        .where(Collaboration.project_id == project.id)
        .order_by(Collaboration.created_at)
    )
    return result.scalars().all()


@router.post("/{project_id}/collaborators", response_model=CollaboratorResponse, status_code=201)
async def add_collaborator(
    collaborator_in: CollaboratorCreate,
    project: Project = Depends(get_owned_project),
    db: AsyncSession = Depends(get_db)
):
    """Share the project with an existing user, looked up by email."""
    result = await db.execute(select(User).where(User.email == collaborator_in.email.strip()))
    invitee = result.scalar_one_or_none()
    if invitee is None:
        raise HTTPException(status_code=404, detail="User not found")
    if invitee.id == project.owner_id:
        raise HTTPException(
            status_code=400,
            detail={"error": "invalid_input", "message": "The owner cannot be added as a collaborator"},
        )
    if await get_collaboration(project.id, invitee.id, db):
        raise HTTPException(
            status_code=409,
            detail={"error": "already_collaborator", "message": "User already has access to this project"},
        )

    collaboration = Collaboration(project_id=project.id, user_id=invitee.id, role=collaborator_in.role)
    db.add(collaboration)
    track_event(db, project.owner_id, "collaborator_added", project.id, {"role": collaboration.role})
    await db.commit()
    await db.refresh(collaboration)

    logger.info(f"Shared project {project.id} with user {invitee.id} as {collaboration.role}")
    return collaboration


@router.delete("/{project_id}/collaborators/{collaborator_id}")
async def remove_collaborator(
    collaborator_id: uuid.UUID,
    project: Project = Depends(get_owned_project),
    db: AsyncSession = Depends(get_db)
):
    collaboration = await db.get(Collaboration, collaborator_id)
    if not collaboration or collaboration.project_id != project.id:
        raise HTTPException(status_code=404, detail="Collaborator not found")

    await db.delete(collaboration)
    await db.commit()
    return {"success": True}
