from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_owned_project
from app.core.auth import get_current_user
from app.db.session import get_db
from app.models.analytics_event import AnalyticsEvent
from app.models.project import Project
from app.models.user import User
from app.schemas.analytics import AnalyticsEventCreate, AnalyticsEventResponse
from app.services.analytics import track_event

router = APIRouter()
project_router = APIRouter()


@router.post("/events", response_model=AnalyticsEventResponse, status_code=201)
async def record_event(
    event_in: AnalyticsEventCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Record a client-side event, optionally tied to one of the user's projects."""
    if event_in.project_id is not None:
        project = await db.get(Project, event_in.project_id)
        if not project or project.owner_id != current_user.id:
            raise HTTPException(status_code=404, detail="Project not found")

    event = track_event(
        db, current_user.id, event_in.event_type, event_in.project_id, event_in.event_data
    )
    await db.commit()
    await db.refresh(event)
    return event


@router.get("", response_model=List[AnalyticsEventResponse])
@router.get("/user", response_model=List[AnalyticsEventResponse], include_in_schema=False)
async def list_user_events(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    result = await db.execute(
        select(AnalyticsEvent)
        .where(AnalyticsEvent.user_id == current_user.id)
        .order_by(AnalyticsEvent.created_at)
    )
    return result.scalars().all()


@project_router.get("/{project_id}/analytics", response_model=List[AnalyticsEventResponse])
async def list_project_events(
    project: Project = Depends(get_owned_project),
    db: AsyncSession = Depends(get_db)
):
    result = await db.execute(
        select(AnalyticsEvent)
        .where(AnalyticsEvent.project_id == project.id)
        .order_by(AnalyticsEvent.created_at)
    )
    return result.scalars().all()
