import logging
import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import get_current_user
from app.db.session import get_db
from app.models.marketplace import MarketplaceItem
from app.models.project import Project
from app.models.rating import Rating
from app.models.user import User
from app.schemas.marketplace import MarketplaceItemCreate, MarketplaceItemResponse
from app.schemas.project import ProjectResponse
from app.schemas.rating import RatingCreate, RatingResponse, RatingSummary
from app.services.analytics import track_event

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("", response_model=List[MarketplaceItemResponse])
async def list_marketplace_items(
    category: Optional[str] = Query(default=None),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    stmt = select(MarketplaceItem).order_by(
        MarketplaceItem.featured.desc(), MarketplaceItem.created_at.desc()
    )
    if category:
        stmt = stmt.where(MarketplaceItem.category == category)
    result = await db.execute(stmt)
    return result.scalars().all()


@router.post("", response_model=MarketplaceItemResponse)
async def publish_marketplace_item(
    item_in: MarketplaceItemCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Publish one of the current user's projects to the marketplace."""
    project = await db.get(Project, item_in.project_id)
    if not project or project.owner_id != current_user.id:
        raise HTTPException(status_code=404, detail="Project not found")

    item = MarketplaceItem(creator_id=current_user.id, **item_in.model_dump())
    db.add(item)
    await db.commit()
    await db.refresh(item)
    return item


@router.post("/{item_id}/clone", response_model=ProjectResponse)
async def clone_marketplace_item(
    item_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Copy the listed project into the current user's workspace as a private project."""
    item = await db.get(MarketplaceItem, item_id)
    if not item:
        raise HTTPException(status_code=404, detail="Marketplace item not found")

    original = await db.get(Project, item.project_id)
    if not original:
        raise HTTPException(status_code=404, detail="Original project not found")

    clone = Project(
        owner_id=current_user.id,
        name=f"{original.name} (Clone)",
        type=original.type,
        description=original.description,
        content=dict(original.content or {}),
        is_public=False,
    )
    db.add(clone)

    # Atomic increment so concurrent clones are all counted
    await db.execute(
        update(MarketplaceItem)
        .where(MarketplaceItem.id == item_id)
        .values(clone_count=MarketplaceItem.clone_count + 1)
    )
    await db.flush()

    track_event(db, current_user.id, "project_cloned", clone.id, {"marketplace_item_id": str(item_id)})
    await db.commit()
    await db.refresh(clone)

    logger.info(f"User {current_user.id} cloned marketplace item {item_id} into {clone.id}")
    return clone


async def _get_item(item_id: uuid.UUID, db: AsyncSession) -> MarketplaceItem:
    item = await db.get(MarketplaceItem, item_id)
    if not item:
        raise HTTPException(status_code=404, detail="Marketplace item not found")
    return item


async def _get_user_rating(item_id: uuid.UUID, user_id: uuid.UUID, db: AsyncSession) -> Optional[Rating]:
    result = await db.execute(
        select(Rating).where(Rating.marketplace_item_id == item_id, Rating.user_id == user_id)
    )
    return result.scalar_one_or_none()


@router.post("/{item_id}/ratings", response_model=RatingResponse, status_code=201)
async def rate_marketplace_item(
    item_id: uuid.UUID,
    rating_in: RatingCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Rate an item. Rating it again replaces the user's earlier rating."""
    item = await _get_item(item_id, db)
    rating = await _get_user_rating(item.id, current_user.id, db)
    if rating is None:
        rating = Rating(marketplace_item_id=item.id, user_id=current_user.id)
        db.add(rating)
    rating.rating = rating_in.rating
    rating.review = rating_in.review

    await db.commit()
    await db.refresh(rating)
    return rating


@router.get("/{item_id}/ratings", response_model=RatingSummary)
async def list_item_ratings(
    item_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    item = await _get_item(item_id, db)
    average = await db.scalar(select(func.avg(Rating.rating)).where(Rating.marketplace_item_id == item.id))
    result = await db.execute(
        select(Rating)
        .where(Rating.marketplace_item_id == item.id)
        .order_by(Rating.created_at.desc())
    )
    ratings = result.scalars().all()
    return RatingSummary(
        average=round(float(average), 2) if average is not None else None,
        count=len(ratings),
        ratings=[RatingResponse.model_validate(r) for r in ratings],
    )


@router.get("/{item_id}/ratings/me", response_model=RatingResponse)
async def get_my_rating(
    item_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    item = await _get_item(item_id, db)
    rating = await _get_user_rating(item.id, current_user.id, db)
    if rating is None:
        raise HTTPException(status_code=404, detail="Rating not found")
    return rating
