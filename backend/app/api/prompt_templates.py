import logging
import uuid
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import get_current_user
from app.db.session import get_db
from app.models.prompt_template import PromptTemplate
from app.models.user import User
from app.schemas.prompt_template import (
    PromptTemplateCreate,
    PromptTemplateResponse,
    PromptTemplateUpdate,
)

router = APIRouter()
logger = logging.getLogger(__name__)


async def _get_owned_template(template_id: uuid.UUID, user: User, db: AsyncSession) -> PromptTemplate:
    template = await db.get(PromptTemplate, template_id)
    if not template or template.user_id != user.id:
        raise HTTPException(status_code=404, detail="Prompt template not found")
    return template


@router.get("", response_model=List[PromptTemplateResponse])
async def list_prompt_templates(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    result = await db.execute(
        select(PromptTemplate)
        .where(PromptTemplate.user_id == current_user.id)
        .order_by(PromptTemplate.created_at)
    )
    return result.scalars().all()


@router.get("/public", response_model=List[PromptTemplateResponse])
async def list_public_prompt_templates(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Templates any user has shared, oldest first."""
    result = await db.execute(
        select(PromptTemplate)
        .where(PromptTemplate.is_public.is_(True))
        .order_by(PromptTemplate.created_at)
    )
    return result.scalars().all()


@router.post("", response_model=PromptTemplateResponse, status_code=201)
async def create_prompt_template(
    template_in: PromptTemplateCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    template = PromptTemplate(user_id=current_user.id, **template_in.model_dump())
    db.add(template)
    await db.commit()
    await db.refresh(template)
    return template


@router.get("/{template_id}", response_model=PromptTemplateResponse)
async def get_prompt_template(
    template_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    template = await db.get(PromptTemplate, template_id)
    if not template or (template.user_id != current_user.id and not template.is_public):
        raise HTTPException(status_code=404, detail="Prompt template not found")
    return template


@router.patch("/{template_id}", response_model=PromptTemplateResponse)
async def update_prompt_template(
    template_id: uuid.UUID,
    template_in: PromptTemplateUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    template = await _get_owned_template(template_id, current_user, db)

    for field, value in template_in.model_dump(exclude_unset=True).items():
        # Only description and category may be cleared
        if value is None and field not in ("description", "category"):
            continue
        setattr(template, field, value)

    await db.commit()
    await db.refresh(template)
    return template


@router.delete("/{template_id}")
async def delete_prompt_template(
    template_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    template = await _get_owned_template(template_id, current_user, db)
    await db.delete(template)
    await db.commit()
    return {"success": True}
