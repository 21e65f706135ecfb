"""Helper service for storing, fetching and decrypting user API keys."""
import logging
import uuid
from datetime import datetime
from typing import Dict, Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.errors import NoProviderAvailableError
from app.models.api_key import ApiKey, PROVIDERS
from app.services.encryption import CredentialVault, get_encryption_service

logger = logging.getLogger(__name__)


async def deactivate_provider_keys(
    user_id: uuid.UUID,
    provider: str,
    db: AsyncSession,
    exclude_id: Optional[uuid.UUID] = None,
) -> None:
    """Mark the user's active keys for ``provider`` inactive, except ``exclude_id``."""
    stmt = (
        update(ApiKey)
        .where(ApiKey.owner_id == user_id, ApiKey.provider == provider, ApiKey.is_active.is_(True))
        .values(is_active=False)
    )
    if exclude_id is not None:
        stmt = stmt.where(ApiKey.id != exclude_id)
    await db.execute(stmt)


async def store_api_key(
    user_id: uuid.UUID,
    provider: str,
    plaintext_key: str,
    db: AsyncSession,
    display_name: Optional[str] = None,
    encryption_service: CredentialVault | None = None,
) -> ApiKey:
    """
    Encrypt and stage a new key for the user.

    Previously active keys for the same provider are deactivated so that a
    single key per provider is used for generation. Does not commit.
    """
    if encryption_service is None:
        encryption_service = get_encryption_service()

    await deactivate_provider_keys(user_id, provider, db)

    api_key = ApiKey(
        owner_id=user_id,
        provider=provider,
        display_name=display_name,
        ciphertext=encryption_service.encrypt(plaintext_key),
        is_active=True,
    )
    db.add(api_key)
    await db.flush()
    logger.info("[AUDIT] api_key_create user_id=%s provider=%s key_id=%s", user_id, provider, api_key.id)
    return api_key


async def get_active_api_key(user_id: uuid.UUID, provider: str, db: AsyncSession) -> Optional[ApiKey]:
    result = await db.execute(
        select(ApiKey)
        .where(ApiKey.owner_id == user_id, ApiKey.provider == provider, ApiKey.is_active.is_(True))
        .order_by(ApiKey.created_at.desc())
    )
    return result.scalars().first()


async def get_user_api_keys(
    user_id: uuid.UUID,
    db: AsyncSession,
    encryption_service: CredentialVault | None = None
) -> Dict[str, str]:
    """
    Fetch and decrypt the user's active API keys.

    Args:
        user_id: The user's UUID
        db: Database session
        encryption_service: Optional vault (the process-wide one if not provided)

    Returns:
        Mapping of provider -> plaintext key, only for providers with an active key.
        Marks every returned key as used.

    Raises:
        IntegrityError: If a stored key cannot be decrypted.
    """
    if encryption_service is None:
        encryption_service = get_encryption_service()

    result = await db.execute(
        select(ApiKey)
        .where(ApiKey.owner_id == user_id, ApiKey.is_active.is_(True))
        .order_by(ApiKey.created_at.desc())
    )
    stored = result.scalars().all()

    keys: Dict[str, str] = {}
    now = datetime.utcnow()
    for api_key in stored:
        if api_key.provider in keys:
            continue
        try:
            keys[api_key.provider] = encryption_service.decrypt(api_key.ciphertext)
        except Exception:
            logger.error(f"Failed to decrypt {api_key.provider} key {api_key.id} for user {user_id}")
            raise
        api_key.last_used_at = now
        logger.debug(f"Decrypted {api_key.provider} key for user {user_id}")

    return keys


async def get_effective_api_keys(
    user_id: uuid.UUID,
    db: AsyncSession,
    encryption_service: CredentialVault | None = None,
) -> Dict[str, str]:
    """
    Get effective API keys with fallback to system-level settings.

    Priority:
    1. User's active keys (if set)
    2. System-level keys from environment variables (fallback)

    Returns:
        Mapping of provider -> key for every provider that has one.
    """
    user_keys = await get_user_api_keys(
        user_id=user_id,
        db=db,
        encryption_service=encryption_service
    )

    effective: Dict[str, str] = {}
    sources = []
    for provider in PROVIDERS:
        key = user_keys.get(provider) or settings.system_api_key(provider)
        if key:
            effective[provider] = key
            sources.append(f"{provider}={'user' if provider in user_keys else 'system'}")

    logger.info(f"Using API keys for user {user_id}: {', '.join(sources) or 'none'}")
    return effective


async def require_api_key(
    user_id: uuid.UUID,
    provider: str,
    db: AsyncSession,
    encryption_service: CredentialVault | None = None,
) -> str:
    """
    Key for one named provider, user key first, then system key.

    Raises:
        NoProviderAvailableError: If neither the user nor the system has a key.
        IntegrityError: If the user's stored key cannot be decrypted.
    """
    if encryption_service is None:
        encryption_service = get_encryption_service()

    api_key = await get_active_api_key(user_id, provider, db)
    if api_key:
        plaintext = encryption_service.decrypt(api_key.ciphertext)
        api_key.last_used_at = datetime.utcnow()
        logger.info(f"Using user {provider} key for user {user_id}")
        return plaintext

    system_key = settings.system_api_key(provider)
    if system_key:
        logger.info(f"Using system {provider} key for user {user_id}")
        return system_key

    raise NoProviderAvailableError(provider, reason="missing_key")
