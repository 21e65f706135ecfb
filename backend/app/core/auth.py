"""JWT authentication dependencies for FastAPI.

The frontend auth layer signs HS256 tokens with the shared AUTH_SECRET and
sends them as ``Authorization: Bearer <token>``. The backend verifies the
signature and expiry, then resolves (or provisions) the matching user.

JWT Payload Structure:
{
    "sub": "user-uuid",           # User ID
    "email": "user@example.com",
    "name": "Jane Doe",
    "picture": "https://...",     # Avatar URL
    "iat": 1234567890,            # Issued at
    "exp": 1234567890             # Expiration
}
"""
import jwt
from datetime import datetime, timedelta, timezone
import logging
import uuid
from typing import Optional
from uuid import UUID
from fastapi import HTTPException, status, Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.db.session import get_db
from app.models.user import User

logger = logging.getLogger(__name__)

# Security scheme for Swagger UI
security = HTTPBearer(
    scheme_name="JWT Bearer Token",
    description="JWT issued by the frontend auth layer"
)


class JWTPayload:
    """
    Structured JWT payload.

    Attributes:
        sub: User ID (UUID as string)
        email: User's email address
        name: User's display name
        picture: Avatar URL
        iat: Issued at timestamp
        exp: Expiration timestamp
    """
    def __init__(self, payload: dict):
        self.sub: str = payload.get("sub", "")
        self.email: str = payload.get("email", "")
        self.name: Optional[str] = payload.get("name")
        self.picture: Optional[str] = payload.get("picture")
        self.iat: int = payload.get("iat", 0)
        self.exp: int = payload.get("exp", 0)


def verify_jwt_token(token: str) -> JWTPayload:
    """
    Verify JWT token signature and extract payload.

    Raises:
        HTTPException: 401 if token is invalid or expired, 500 if AUTH_SECRET is unset
    """
    if not settings.AUTH_SECRET:
        logger.error("AUTH_SECRET is not configured; refusing to verify JWTs")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Server authentication is not configured",
        )

    required_claims = ["sub", "email", "exp"]
    if settings.AUTH_JWT_ISSUER:
        required_claims.append("iss")
    if settings.AUTH_JWT_AUDIENCE:
        required_claims.append("aud")

    try:
        payload = jwt.decode(
            token,
            settings.AUTH_SECRET,
            algorithms=["HS256"],
            issuer=settings.AUTH_JWT_ISSUER,
            audience=settings.AUTH_JWT_AUDIENCE,
            options={
                "verify_signature": True,
                "verify_exp": True,
                "require": required_claims,
            }
        )
    except jwt.ExpiredSignatureError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token has expired. Please log in again.",
            headers={"WWW-Authenticate": "Bearer"}
        )
    except jwt.InvalidTokenError as e:
        logger.info("JWT validation failed", exc_info=e)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token",
            headers={"WWW-Authenticate": "Bearer"}
        )

    return JWTPayload(payload)


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: AsyncSession = Depends(get_db)
) -> User:
    """
    FastAPI dependency to get current authenticated user.

    Flow:
        1. Verify JWT signature and expiration
        2. Look the user up by subject (UUID), then by email
        3. Provision a new user from the claims if none exists

    Raises:
        HTTPException: 401 if token invalid or claims conflict with the stored user
    """
    payload = verify_jwt_token(credentials.credentials)

    user: User | None = None

    try:
        sub_uuid = UUID(payload.sub)
    except ValueError:
        sub_uuid = None

    if sub_uuid:
        result = await db.execute(select(User).where(User.id == sub_uuid))
        user = result.scalar_one_or_none()

    if not user and payload.email:
        result = await db.execute(select(User).where(User.email == payload.email))
        user = result.scalar_one_or_none()

    # If both are present, ensure token claims match the stored user.
    if user and payload.email and user.email != payload.email:
        logger.warning(
            "JWT claim mismatch: subject resolved to user_id=%s but email claim differs",
            user.id,
        )
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if not user:
        user = User(
            id=sub_uuid or uuid.uuid4(),
            email=payload.email,
            name=payload.name,
            avatar_url=payload.picture,
        )
        db.add(user)
        await db.commit()
        await db.refresh(user)
        logger.info("[AUDIT] user_provisioned user_id=%s", user.id)

    return user


def create_test_token(
    user_email: str,
    user_id: str | None = None,
    expires_in_minutes: int = 30,
) -> str:
    """
    Create a signed JWT for development and testing.

    WARNING: Only use in development! Production tokens come from the frontend.
    """
    if settings.ENVIRONMENT.lower() in {"production", "prod"}:
        raise RuntimeError("create_test_token is not allowed in production")

    if not settings.AUTH_SECRET:
        raise RuntimeError("AUTH_SECRET is not configured")

    now = datetime.now(timezone.utc)
    payload = {
        "sub": user_id or str(uuid.uuid4()),
        "email": user_email,
        "name": "Test User",
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(minutes=expires_in_minutes)).timestamp())
    }

    return jwt.encode(payload, settings.AUTH_SECRET, algorithm="HS256")
