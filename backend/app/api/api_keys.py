"""API key endpoints: users store provider keys, encrypted before storage."""
import logging
import uuid
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.session import get_db
from app.models.api_key import ApiKey
from app.models.user import User
from app.core.auth import get_current_user
from app.schemas.api_key import ApiKeyCreate, ApiKeyResponse, ApiKeyUpdate
from app.services.encryption import CredentialVault, get_encryption_service
from app.services.user_api_keys import deactivate_provider_keys, store_api_key

router = APIRouter()
logger = logging.getLogger(__name__)


async def _get_owned_key(key_id: uuid.UUID, user: User, db: AsyncSession) -> ApiKey:
    api_key = await db.get(ApiKey, key_id)
    if not api_key or api_key.owner_id != user.id:
        raise HTTPException(status_code=404, detail="API key not found")
    return api_key


@router.get("", response_model=List[ApiKeyResponse])
async def list_api_keys(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    List the current user's stored keys.

    Only metadata is returned; the key itself never leaves the server.
    """
    result = await db.execute(
        select(ApiKey).where(ApiKey.owner_id == current_user.id).order_by(ApiKey.created_at)
    )
    return result.scalars().all()


@router.post("", response_model=ApiKeyResponse, status_code=201)
async def create_api_key(
    key_in: ApiKeyCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    encryption_service: CredentialVault = Depends(get_encryption_service),
):
    """
    Store a provider key (encrypted before storage).

    The new key becomes the active key for its provider.
    """
    plaintext = key_in.api_key.strip()
    if not plaintext:
        raise HTTPException(
            status_code=400,
            detail={"error": "api_key_empty", "message": "API key must not be blank"},
        )

    api_key = await store_api_key(
        user_id=current_user.id,
        provider=key_in.provider,
        plaintext_key=plaintext,
        db=db,
        display_name=key_in.display_name,
        encryption_service=encryption_service,
    )
    await db.commit()
    await db.refresh(api_key)
    return api_key


@router.patch("/{key_id}", response_model=ApiKeyResponse)
async def update_api_key(
    key_id: uuid.UUID,
    key_in: ApiKeyUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Rename a key or toggle whether it is used for generation."""
    api_key = await _get_owned_key(key_id, current_user, db)

    updates = key_in.model_dump(exclude_unset=True)
    if "display_name" in updates:
        api_key.display_name = updates["display_name"]
    if updates.get("is_active"):
        # Reactivating a key makes it the one used for its provider
        await deactivate_provider_keys(current_user.id, api_key.provider, db, exclude_id=api_key.id)
        api_key.is_active = True
    elif updates.get("is_active") is False:
        api_key.is_active = False

    await db.commit()
    await db.refresh(api_key)
    return api_key


@router.delete("/{key_id}")
async def delete_api_key(
    key_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    api_key = await _get_owned_key(key_id, current_user, db)
    await db.delete(api_key)
    await db.commit()
    logger.info("[AUDIT] api_key_delete user_id=%s key_id=%s", current_user.id, key_id)
    return {"message": "API key deleted successfully"}
