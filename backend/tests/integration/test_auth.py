import uuid

import pytest
from httpx import AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import create_test_token
from app.models.user import User


@pytest.mark.asyncio
async def test_get_me_success(client: AsyncClient, auth_headers: dict, mock_user: User):
    """Test /auth/me for an authenticated user."""
    response = await client.get("/api/auth/me", headers=auth_headers)
    assert response.status_code == 200
    data = response.json()
    assert data["email"] == mock_user.email
    assert data["id"] == str(mock_user.id)
    assert data["subscription_tier"] == "free_forever"


@pytest.mark.asyncio
async def test_get_me_unauthorized(client: AsyncClient):
    response = await client.get("/api/auth/me")
    assert response.status_code in (401, 403)


@pytest.mark.asyncio
async def test_get_me_invalid_token(client: AsyncClient):
    response = await client.get("/api/auth/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_real_token_provisions_user(client: AsyncClient, db_session: AsyncSession):
    """A valid token for an unknown subject creates the user on first use."""
    user_id = str(uuid.uuid4())
    token = create_test_token("new@example.com", user_id=user_id)

    response = await client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 200
    assert response.json()["id"] == user_id
    result = await db_session.execute(select(User).where(User.email == "new@example.com"))
    assert result.scalar_one().id == uuid.UUID(user_id)


@pytest.mark.asyncio
async def test_real_token_resolves_existing_user_by_email(client: AsyncClient, mock_user: User):
    token = create_test_token(mock_user.email, user_id="not-a-uuid")

    response = await client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 200
    assert response.json()["id"] == str(mock_user.id)


@pytest.mark.asyncio
async def test_email_mismatch_rejected(client: AsyncClient, mock_user: User):
    token = create_test_token("someone-else@example.com", user_id=str(mock_user.id))

    response = await client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 401
