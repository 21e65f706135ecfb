"""Shared API dependencies."""
import uuid
from typing import Optional

from fastapi import Depends, HTTPException, Request
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import get_current_user
from app.core.config import settings
from app.db.session import get_db
from app.models.collaboration import Collaboration
from app.models.project import Project
from app.models.user import User


def api_base_url(request: Request) -> str:
    """Absolute base of the API, e.g. https://host/api."""
    base_url = settings.PUBLIC_URL if settings.PUBLIC_URL else str(request.base_url).rstrip("/")
    return f"{base_url.rstrip('/')}{settings.API_V1_STR}"


async def get_collaboration(project_id: uuid.UUID, user_id: uuid.UUID, db: AsyncSession) -> Optional[Collaboration]:
    result = await db.execute(
        select(Collaboration).where(
            Collaboration.project_id == project_id,
            Collaboration.user_id == user_id,
        )
    )
    return result.scalar_one_or_none()


async def get_owned_project(
    project_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> Project:
    """Project owned by the current user, or 404."""
    project = await db.get(Project, project_id)
    if not project or project.owner_id != current_user.id:
        raise HTTPException(status_code=404, detail="Project not found")
    return project


async def get_member_project(
    project_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> Project:
    """Project the current user owns or collaborates on, or 404."""
    project = await db.get(Project, project_id)
    if not project:
        raise HTTPException(status_code=404, detail="Project not found")
    if project.owner_id != current_user.id and not await get_collaboration(project.id, current_user.id, db):
        raise HTTPException(status_code=404, detail="Project not found")
    return project


async def get_readable_project(
    project_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> Project:
    """Project the current user owns, collaborates on, or that is public; else 404."""
    project = await db.get(Project, project_id)
    if not project:
        raise HTTPException(status_code=404, detail="Project not found")
    if project.owner_id == current_user.id or project.is_public:
        return project
    if not await get_collaboration(project.id, current_user.id, db):
        raise HTTPException(status_code=404, detail="Project not found")
    return project


async def get_editable_project(
    project_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> Project:
    """
    Project the current user may change: owned, or shared with them as editor.

    Viewers get 403; anyone else gets 404 so private projects stay hidden.
    """
    project = await db.get(Project, project_id)
    if not project:
        raise HTTPException(status_code=404, detail="Project not found")
    if project.owner_id == current_user.id:
        return project

    collaboration = await get_collaboration(project.id, current_user.id, db)
    if collaboration is None:
        raise HTTPException(status_code=404, detail="Project not found")
    if collaboration.role != "editor":
        raise HTTPException(
            status_code=403,
            detail={"error": "read_only", "message": "Viewers cannot change this project"},
        )
    return project
