import logging
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_editable_project, get_owned_project, get_readable_project
from app.core.auth import get_current_user
from app.db.session import get_db
from app.models.project import Project
from app.models.user import User
from app.schemas.project import ProjectCreate, ProjectResponse, ProjectUpdate
from app.services.analytics import track_event

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("", response_model=List[ProjectResponse])
async def list_projects(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    result = await db.execute(
        select(Project)
        .where(Project.owner_id == current_user.id)
        .order_by(Project.updated_at.desc())
    )
    return result.scalars().all()


@router.post("", response_model=ProjectResponse)
async def create_project(
    project_in: ProjectCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    project = Project(owner_id=current_user.id, **project_in.model_dump())
    db.add(project)
    await db.flush()

    track_event(db, current_user.id, "project_created", project.id, {"type": project.type})
    await db.commit()
    await db.refresh(project)

    logger.info(f"Created {project.type} project {project.id} for user {current_user.id}")
    return project


@router.get("/{project_id}", response_model=ProjectResponse)
async def get_project(project: Project = Depends(get_readable_project)):
    return project


@router.patch("/{project_id}", response_model=ProjectResponse)
async def update_project(
    project_in: ProjectUpdate,
    project: Project = Depends(get_editable_project),
    db: AsyncSession = Depends(get_db)
):
    updates = project_in.model_dump(exclude_unset=True)
    for field, value in updates.items():
        # Only description and preview may be cleared
        if value is None and field not in ("description", "preview"):
            continue
        setattr(project, field, value)

    await db.commit()
    await db.refresh(project)
    return project


@router.delete("/{project_id}")
async def delete_project(
    project: Project = Depends(get_owned_project),
    db: AsyncSession = Depends(get_db)
):
    await db.delete(project)
    await db.commit()
    return {"success": True}
