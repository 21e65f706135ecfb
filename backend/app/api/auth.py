"""Authentication API endpoints."""
from datetime import datetime
from fastapi import APIRouter, Depends
from pydantic import BaseModel

from app.core.auth import get_current_user
from app.models.user import User

router = APIRouter(prefix="/auth", tags=["auth"])


class UserResponse(BaseModel):
    """Response model for user data."""
    id: str
    email: str
    name: str | None
    avatar_url: str | None
    subscription_tier: str
    created_at: datetime
    updated_at: datetime


@router.get("/me", response_model=UserResponse)
async def get_current_user_info(
    current_user: User = Depends(get_current_user),
):
    """
    Get current authenticated user's information.

    Requires valid JWT token in Authorization header.
    """
    return UserResponse(
        id=str(current_user.id),
        email=current_user.email,
        name=current_user.name,
        avatar_url=current_user.avatar_url,
        subscription_tier=current_user.subscription_tier,
        created_at=current_user.created_at,
        updated_at=current_user.updated_at,
    )
